"""
Token counting and estimation.

The image endpoints do not get token counts back from the model, so usage
is estimated from the prompt length.
"""

import math
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Any

MIN_ESTIMATED_TOKENS = 100
TOKENS_PER_CHARACTER = 1.5
MAX_TOKENS_PER_REQUEST = 10_000_000


def estimate_prompt_tokens(prompt: str) -> int:
    """Estimate tokens for a prompt: ``max(100, ceil(len(prompt) * 1.5))``."""
    return max(MIN_ESTIMATED_TOKENS, math.ceil(len(prompt or "") * TOKENS_PER_CHARACTER))


def coerce_token_count(value: Any) -> int:
    """Coerce a reported token count to a non-negative integer.

    Missing, non-numeric, negative or implausibly large values
    (above ``MAX_TOKENS_PER_REQUEST``) become 0. Fractional
    values are rounded up.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return 0
    if not number.is_finite() or number <= 0 or number > MAX_TOKENS_PER_REQUEST:
        return 0
    return int(number.to_integral_value(rounding=ROUND_CEILING))
