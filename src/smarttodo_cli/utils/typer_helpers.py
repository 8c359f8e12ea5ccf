"""Typer helper utilities."""

from difflib import get_close_matches

import click
import typer
from typer.core import TyperGroup

from smarttodo_cli.utils import exit_codes
from smarttodo_cli.utils.ui.console import get_console


def suggest_commands(attempted: str, available: list[str]) -> list[str]:
    """Up to three known commands that look like *attempted*."""
    return get_close_matches(attempted, sorted(available), n=3, cutoff=0.6)


class SuggestingGroup(TyperGroup):
    """Typer group that answers a mistyped command with "Did you mean ...?"."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if not args:
                raise
            attempted = args[0]
            suggestions = suggest_commands(attempted, list(self.commands))
            if not suggestions:
                raise

            console = get_console()
            console.print(
                f'[red]Error:[/red] unknown command "{attempted}" for "{ctx.info_name}"'
            )
            console.print()
            if len(suggestions) == 1:
                console.print("[yellow]Did you mean this?[/yellow]")
            else:
                console.print("[yellow]Did you mean one of these?[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {suggestion}")
            console.print(f"\nRun '{ctx.command_path} --help' for usage.")
            raise typer.Exit(exit_codes.ERROR_INVALID_ARGS) from e
