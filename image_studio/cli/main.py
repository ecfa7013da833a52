"""
CLI interface for Image Studio.

Provides command-line access to the usage ledger and the API server.
"""

import json
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from image_studio.config.loader import load_pricing_config
from image_studio.config.settings import get_settings
from image_studio.core.accounting import DEFAULT_REQUEST_TYPE, UsageAccountingService, UsageSummary
from image_studio.core.pricing import PRICING_TABLE, PricingTable
from image_studio.demo.seed_demo_data import seed_demo_ledger
from image_studio.storage.db import DEFAULT_DB_PATH
from image_studio.storage.repository import SqliteUsageLedger, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DB_OPTION = typer.Option(None, "--db", help="Path to the SQLite usage ledger")
PRICING_OPTION = typer.Option(None, "--pricing", "-p", help="Path to a YAML pricing table")


def _resolve_db_path(db: Optional[str]) -> str:
    return db or get_settings().ledger_db_path or DEFAULT_DB_PATH


def _resolve_pricing(pricing_path: Optional[str]) -> PricingTable:
    path = pricing_path or get_settings().pricing_config_path
    return load_pricing_config(path) if path else PRICING_TABLE


def _build_service(db: Optional[str], pricing_path: Optional[str]) -> UsageAccountingService:
    return UsageAccountingService(SqliteUsageLedger(_resolve_db_path(db)), _resolve_pricing(pricing_path))


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Image Studio CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Image Studio - Use --help to see available commands")


@app.command()
def init(db: Optional[str] = DB_OPTION):
    """Initialize the usage ledger database."""
    try:
        initialize_schema(_resolve_db_path(db))
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def seed(db: Optional[str] = DB_OPTION):
    """Insert the demo usage records into the ledger."""
    try:
        inserted = seed_demo_ledger(SqliteUsageLedger(_resolve_db_path(db)))
        console.print(f"[green]✓[/] Inserted {inserted} demo usage records")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error seeding demo data:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def record(
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model the request was made with"),
    tokens: int = typer.Option(0, "--tokens", "-t", help="Tokens consumed by the request"),
    request_type: str = typer.Option(DEFAULT_REQUEST_TYPE, "--type", help="Kind of request"),
    db: Optional[str] = DB_OPTION,
    pricing: Optional[str] = PRICING_OPTION,
):
    """Record one request's usage against today's totals."""
    try:
        service = _build_service(db, pricing)
        update = service.record_usage(model, tokens, request_type)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(
        f"[green]✓[/] Recorded usage on {update.record.date} costing {_format_cost(update.cost)}"
    )
    console.print(
        f"Today: {update.record.requests} requests, {update.record.tokens_used:,} tokens, "
        f"{_format_cost(update.record.estimated_cost)}"
    )
    sys.exit(EXIT_CODE_PASS)


@app.command(name="usage")
def show_usage(
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON"),
    db: Optional[str] = DB_OPTION,
    pricing: Optional[str] = PRICING_OPTION,
):
    """Show the usage dashboard: today, totals, free-tier status and billing."""
    try:
        summary = _build_service(db, pricing).get_summary()
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _display_summary(summary)
    sys.exit(EXIT_CODE_PASS)


@app.command(name="pricing")
def show_pricing(pricing: Optional[str] = PRICING_OPTION):
    """Show free-tier quotas and paid rates per model."""
    try:
        table = _resolve_pricing(pricing)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    output = Table(title="Model Pricing")
    output.add_column("Model")
    output.add_column("Requests/day", justify="right")
    output.add_column("Tokens/day", justify="right")
    output.add_column("Cost/request", justify="right")
    output.add_column("Cost/token", justify="right")
    for model, entry in table.prices.items():
        name = f"{model} (default)" if model == table.default_model else model
        output.add_row(
            name,
            f"{entry.free_tier_requests_per_day:,}",
            f"{entry.free_tier_tokens_per_day:,}",
            f"${entry.cost_per_request}",
            f"${entry.cost_per_token}",
        )
    console.print(output)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "image_studio.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


def _format_cost(amount) -> str:
    """Format small costs without hiding sub-cent amounts."""
    return f"${float(amount):,.6f}"


def _format_percent(percent: int) -> str:
    if percent > 100:
        return f"[red]{percent}%[/]"
    if percent > 80:
        return f"[yellow]{percent}%[/]"
    return f"{percent}%"


def _display_summary(summary: UsageSummary):
    """Display the usage summary as a dashboard."""
    console.print("\n[bold]API Usage Dashboard[/bold]")
    console.print("-" * 40)

    today = summary.current_usage
    limits = summary.free_tier_limits
    console.print(f"\n[bold]Today ({today.date})[/bold]")
    console.print(
        f"Requests: {today.requests:,} / {limits.free_tier_requests_per_day:,} "
        f"({_format_percent(summary.requests_percent)})"
    )
    console.print(
        f"Tokens: {today.tokens_used:,} / {limits.free_tier_tokens_per_day:,} "
        f"({_format_percent(summary.tokens_percent)})"
    )
    console.print(f"Estimated cost: {_format_cost(today.estimated_cost)}")

    if summary.status.is_over_limit:
        console.print(f"\n[bold red]{summary.status.message}[/]")
    elif summary.status.is_approaching_limit:
        console.print(f"\n[bold yellow]{summary.status.message}[/]")
    else:
        console.print(f"\n[green]{summary.status.message}[/]")

    console.print("\n[bold]Totals[/bold]")
    console.print(f"Requests: {summary.total_requests:,}")
    console.print(f"Tokens: {summary.total_tokens:,}")
    console.print(f"Cost: {_format_cost(summary.total_cost)}")

    if summary.recent_usage:
        recent = Table(title="Recent Usage")
        recent.add_column("Date")
        recent.add_column("Requests", justify="right")
        recent.add_column("Tokens", justify="right")
        recent.add_column("Cost", justify="right")
        for day in summary.recent_usage:
            recent.add_row(
                day.date,
                f"{day.requests:,}",
                f"{day.tokens_used:,}",
                _format_cost(day.estimated_cost),
            )
        console.print()
        console.print(recent)

    billing = summary.billing_info
    console.print("\n[bold]Billing[/bold]")
    console.print(f"Free tier active: {'yes' if billing.free_tier_active else 'no'}")
    console.print(f"Estimated monthly cost: {_format_cost(billing.estimated_monthly_cost)}")
    console.print(f"Next billing date: {billing.next_billing_date}")
    console.print(f"Payment method: {billing.payment_method}")


if __name__ == "__main__":
    app()
