"""Console utilities for Smart To-Do."""

from functools import lru_cache

from rich.console import Console

from smarttodo_cli.models.config_models import OutputConfig


@lru_cache(maxsize=2)
def get_console(highlight: bool = True) -> Console:
    """Get a Rich Console instance for consistent output formatting."""
    return Console(highlight=highlight)


def configure_console(output: OutputConfig) -> Console:
    """Apply the output settings to the shared console.

    Disabling color strips it from everything printed afterwards; enabling it
    leaves the terminal's own preference (e.g. ``NO_COLOR``) in charge.
    """
    console = get_console()
    if not output.color:
        console.no_color = True
    return console
