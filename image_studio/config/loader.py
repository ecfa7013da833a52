"""
Pricing configuration loading.

Reads a pricing table from YAML so rates and free-tier quotas can be
changed without a release.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict

import yaml

from image_studio.core.pricing import DEFAULT_MODEL, PricingEntry, PricingTable


def load_pricing_config(path: str) -> PricingTable:
    """Load and validate a pricing table from a YAML file.

    Expected layout::

        default_model: gemini-2.5-flash-image-preview
        models:
          gemini-2.5-flash-image-preview:
            free_tier:
              requests_per_day: 100
              tokens_per_day: 10000
            paid:
              cost_per_request: 0.0005
              cost_per_token: 0.000001

    Strict validation ensures a typo cannot silently price every
    request at zero.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated PricingTable

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Pricing config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'default_model', 'models'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    if 'models' not in raw_config:
        raise ValueError("Missing required 'models' section")

    models_data = raw_config['models']
    if not isinstance(models_data, dict) or not models_data:
        raise ValueError("'models' must be a non-empty dictionary")

    prices: Dict[str, PricingEntry] = {}
    for model_name, model_data in models_data.items():
        if not isinstance(model_data, dict):
            raise ValueError(f"Model '{model_name}' must be a dictionary")
        prices[str(model_name)] = _parse_pricing_entry(model_data, f"models.{model_name}")

    default_model = raw_config.get('default_model', DEFAULT_MODEL)
    if not isinstance(default_model, str):
        raise ValueError("'default_model' must be a string")
    if default_model not in prices:
        raise ValueError(f"'default_model' {default_model!r} is not listed under 'models'")

    return PricingTable(prices=prices, default_model=default_model)


def _parse_pricing_entry(data: Dict, path: str) -> PricingEntry:
    """Parse and validate one model's pricing.

    Args:
        data: Model pricing data
        path: Path for error messages

    Returns:
        Validated PricingEntry

    Raises:
        ValueError: If configuration is invalid
    """
    allowed_keys = {'free_tier', 'paid'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    free_tier = _require_section(data, 'free_tier', path)
    paid = _require_section(data, 'paid', path)

    _reject_unknown(free_tier, {'requests_per_day', 'tokens_per_day'}, f"{path}.free_tier")
    _reject_unknown(paid, {'cost_per_request', 'cost_per_token'}, f"{path}.paid")

    return PricingEntry(
        free_tier_requests_per_day=_positive_int(free_tier, 'requests_per_day', f"{path}.free_tier"),
        free_tier_tokens_per_day=_positive_int(free_tier, 'tokens_per_day', f"{path}.free_tier"),
        cost_per_request=_non_negative_decimal(paid, 'cost_per_request', f"{path}.paid"),
        cost_per_token=_non_negative_decimal(paid, 'cost_per_token', f"{path}.paid"),
    )


def _require_section(data: Dict, key: str, path: str) -> Dict:
    if key not in data:
        raise ValueError(f"Missing required '{key}' in {path}")
    section = data[key]
    if not isinstance(section, dict):
        raise ValueError(f"'{key}' in {path} must be a dictionary")
    return section


def _reject_unknown(data: Dict, allowed: set, path: str) -> None:
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def _positive_int(data: Dict, key: str, path: str) -> int:
    if key not in data:
        raise ValueError(f"Missing required '{key}' in {path}")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{key}' in {path} must be a positive integer")
    return value


def _non_negative_decimal(data: Dict, key: str, path: str) -> Decimal:
    if key not in data:
        raise ValueError(f"Missing required '{key}' in {path}")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"'{key}' in {path} must be a number")
    try:
        # str() keeps YAML floats like 0.0003 exact
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"'{key}' in {path} must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"'{key}' in {path} must be >= 0")
    return amount
