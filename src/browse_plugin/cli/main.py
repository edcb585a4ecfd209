"""Main CLI application entry point."""

import logging
import subprocess
import sys

import typer
from rich.console import Console

from browse_plugin import __version__
from browse_plugin.mcp_server.server import run_server
from browse_plugin.services.browserbase import BrowserbaseSessionProvider
from browse_plugin.utils.chrome import kill_recorded_chrome
from browse_plugin.utils.config import AppConfig, ConfigLoader
from browse_plugin.utils.exceptions import BrowsePluginError, ConfigurationError

# Diagnostics go to stderr; stdout belongs to the MCP transport.
console = Console(stderr=True)

app = typer.Typer(
    name="browse-plugin",
    help="Browser automation tools for agents over MCP.",
    no_args_is_help=True,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"browse-plugin v{__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)


def load_config() -> AppConfig:
    try:
        return ConfigLoader.load()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """browse-plugin - browser automation tools for agents."""
    pass


@app.command()
def serve() -> None:
    """Run the MCP server on stdio."""
    config = load_config()
    configure_logging(config.log_level)
    run_server(config)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def browse(ctx: typer.Context) -> None:
    """Forward arguments to the browse CLI, attaching to Browserbase if configured."""
    config = load_config()
    configure_logging(config.log_level)
    args = list(ctx.args)

    if not config.browse_bin.exists():
        console.print(
            f"[red]Error: browse CLI not found at {config.browse_bin}. "
            "Run 'npm install' in the plugin directory.[/red]"
        )
        raise typer.Exit(code=1)

    provider = BrowserbaseSessionProvider(config)
    if config.browserbase_mode and "--ws" not in args:
        try:
            session = provider.get_or_create()
        except BrowsePluginError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        args = ["--ws", session.connect_url, *args]

    result = subprocess.run([str(config.browse_bin), *args])
    if ctx.args[:1] == ["stop"]:
        provider.clear()
    raise typer.Exit(code=result.returncode)


@app.command()
def close() -> None:
    """Stop the local Chrome started by the plugin, if any."""
    config = load_config()
    configure_logging(config.log_level)
    if not config.pid_file.exists():
        typer.echo("No local Chrome recorded.")
        return
    if kill_recorded_chrome(config.pid_file):
        typer.echo("Local Chrome stopped.")
    else:
        typer.echo("Recorded Chrome was not running.")


if __name__ == "__main__":
    app()
