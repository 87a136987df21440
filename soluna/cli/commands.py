"""CLI commands for soluna."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from soluna import __logo__, __version__

app = typer.Typer(
    name="soluna",
    help=f"{__logo__} soluna - Sun, Moon & Prayer Times gateway",
    no_args_is_help=True,
)

console = Console()


@app.command()
def serve(
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.json"),
    host: str = typer.Option(None, "--host", help="Bind address"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port"),
):
    """Run the HTTP gateway."""
    from aiohttp import web

    from soluna.config.loader import load_config
    from soluna.core.logger import configure_logger
    from soluna.gateway.server import GatewayServer

    config = load_config(config_path)
    configure_logger(config.logging)

    rl = config.rate_limit
    if rl.enabled:
        console.print(
            f"[green]✓[/green] Rate limit: {rl.bucket_size} burst, "
            f"{rl.tokens_per_interval:g} token(s) every {rl.interval_ms:g}ms"
        )
    else:
        console.print("[yellow]Rate limiting disabled[/yellow]")

    server = GatewayServer(config)
    web.run_app(
        server.app,
        host=host or config.gateway.host,
        port=port or config.gateway.port,
        print=None,
    )


@app.command()
def methods():
    """List prayer time calculation methods."""
    from soluna.providers.aladhan import get_methods

    table = Table(title="Calculation Methods")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    for method in get_methods():
        table.add_row(str(method["id"]), method["name"])
    console.print(table)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(None, help="Where to write the config (default: ~/.soluna/config.json)"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Write the default configuration file."""
    from soluna.config.loader import get_config_path, save_config
    from soluna.config.schema import Config

    target = path or get_config_path()
    if target.exists() and not force:
        console.print(f"[yellow]Config already exists at {target}[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)

    written = save_config(Config(), target)
    console.print(f"[green]✓[/green] Wrote default config to {written}")


@app.command()
def version():
    """Show version."""
    console.print(f"{__logo__} soluna v{__version__}")


if __name__ == "__main__":
    app()
