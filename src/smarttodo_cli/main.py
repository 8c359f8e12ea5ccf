"""Main entry point for Smart To-Do CLI."""

import typer

from smarttodo_cli import __version__
from smarttodo_cli.commands import auth, config, tasks
from smarttodo_cli.services.config_service import get_config_service
from smarttodo_cli.utils import exit_codes
from smarttodo_cli.utils.typer_helpers import SuggestingGroup
from smarttodo_cli.utils.ui.console import configure_console, get_console
from smarttodo_cli.utils.ui.formatters import format_error

# Create main app with custom group class
app = typer.Typer(
    name="smarttodo",
    cls=SuggestingGroup,
    help="Command-line client for Smart To-Do, with live sync across devices",
    no_args_is_help=True,
)

console = get_console()

# Auth and task commands live at the top level: `smarttodo login`, `smarttodo add`
app.add_typer(auth.app)
app.add_typer(tasks.app)
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def configure_output() -> None:
    """Apply output settings before any command runs."""
    try:
        output = get_config_service().config.output
    except RuntimeError as e:
        format_error(str(e))
        raise typer.Exit(exit_codes.ERROR_GENERAL) from e
    configure_console(output)


@app.command()
def version() -> None:
    """Show version information and the configured backend."""
    console.print(f"[bold]Smart To-Do CLI[/bold] version [cyan]{__version__}[/cyan]")
    console.print(f"[dim]Backend: {get_config_service().backend().url}[/dim]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
