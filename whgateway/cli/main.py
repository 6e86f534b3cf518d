"""
Gateway CLI - Command Line Interface

Main entry point for the `whgateway` command.
"""

import typer
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from typing import Optional

from whgateway.__version__ import __version__
from whgateway.core.config import get_settings
from whgateway.core.exceptions import ConfigurationError
from whgateway.webhooks.server import create_app

app = typer.Typer(
    name="whgateway",
    help="Relay WhatsApp message webhooks to an OAuth2-protected endpoint",
    add_completion=False,
)

console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default: PORT or 3000)"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default: LOG_LEVEL or INFO)"),
):
    """
    Start the webhook gateway.

    Examples:
        whgateway serve
        whgateway serve --port 8080 --log-level debug
    """
    settings = get_settings()

    overrides = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if log_level is not None:
        overrides["log_level"] = log_level
    if overrides:
        try:
            settings = settings.with_overrides(**overrides)
        except ConfigurationError as e:
            console.print(f"[bold red]Error:[/bold red] {escape(e.message)}")
            raise typer.Exit(code=2)

    missing = settings.missing_fields()
    if missing:
        console.print(
            f"[yellow]Missing configuration:[/yellow] {', '.join(missing)} "
            "(requests will fail where these are needed)"
        )

    console.print(f"\n[bold green]Listening on port {settings.port}[/bold green]\n")

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


@app.command()
def config(
    show_secrets: bool = typer.Option(False, "--show-secrets", help="Print secret values unmasked"),
):
    """Show the effective configuration."""
    settings = get_settings()

    table = Table(title="Gateway configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in settings.to_dict(include_secrets=show_secrets).items():
        table.add_row(name, "[red]<unset>[/red]" if value is None else str(value))

    console.print(table)

    missing = settings.missing_fields()
    if missing:
        console.print(Panel.fit(
            "\n".join(missing),
            title="[yellow]Missing values[/yellow]",
            border_style="yellow"
        ))
        raise typer.Exit(code=1)


@app.command()
def version():
    """Show gateway version."""
    console.print(f"[bold green]whgateway[/bold green] version [cyan]{__version__}[/cyan]")


def main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    main()
