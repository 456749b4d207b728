"""CLI entry point using Typer."""

import logging

import structlog
import typer
from rich.console import Console
from rich.table import Table

from junkscan.config import get_settings
from junkscan.errors import StoreError

app = typer.Typer(
    name="junkscan",
    help="Junkscan - new DeFi protocol listings, alerted to Telegram.",
)
console = Console()


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


@app.callback()
def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)


@app.command()
def serve() -> None:
    """Serve the liveness endpoint and scan on the configured interval."""
    import uvicorn

    from junkscan.runtime import build_runtime
    from junkscan.web.app import create_app

    settings = get_settings()
    runtime = build_runtime(settings)
    structlog.get_logger().info("Server starting", port=settings.port)
    uvicorn.run(
        create_app(ticker_factory=lambda: runtime.ticker),
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


@app.command()
def scan() -> None:
    """Run a single scan cycle and print what happened to each candidate."""
    from junkscan.runtime import build_runtime

    runtime = build_runtime(get_settings())
    report = runtime.orchestrator.run_cycle()

    if report.error:
        console.print(f"[bold red]Error:[/bold red] {report.error}")

    table = Table(title=f"Scan Results ({report.fetched} fetched, {report.candidates} candidates)")
    table.add_column("Signal", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Error", style="red")
    for outcome in report.outcomes:
        table.add_row(outcome.signal_id, outcome.status.value, outcome.error or "")
    console.print(table)

    if report.error:
        raise typer.Exit(1)


@app.command()
def signals(limit: int = typer.Option(20, help="Number of signals to show")) -> None:
    """Show the most recently stored signals."""
    from junkscan.runtime import build_store

    store = build_store(get_settings())
    try:
        rows = store.recent(limit)
        total = store.count()
    except StoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Stored Signals ({total} total)")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Details", style="green")
    table.add_column("Link", style="magenta")
    for signal in rows:
        table.add_row(signal.id, signal.title, signal.description, signal.link)
    console.print(table)


if __name__ == "__main__":
    app()
