"""Decorators for command functions."""

import asyncio
import functools
import inspect
import time
import traceback
from collections.abc import Callable

import typer

from smarttodo_cli.exceptions import SmartTodoError
from smarttodo_cli.utils import exit_codes
from smarttodo_cli.utils.logger import get_logger
from smarttodo_cli.utils.ui.formatters import format_error


def command_wrapper(func: Callable):
    """Run a (possibly async) command, logging it and mapping errors to exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if inspect.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            elapsed = time.monotonic() - start
            logger.info("command completed: %s (%.3fs)", cmd, elapsed)
            return result

        except SmartTodoError as e:
            elapsed = time.monotonic() - start
            logger.error(
                "command failed: %s (%.3fs) [%s] - %s",
                cmd,
                elapsed,
                exit_codes.get_exit_code_name(e.exit_code),
                e.message,
            )
            format_error(e.message)
            raise typer.Exit(code=e.exit_code) from e

        except KeyboardInterrupt as e:
            logger.info("command interrupted: %s", cmd)
            raise typer.Exit(code=exit_codes.SUCCESS) from e

        except typer.Exit:
            # Re-raise Typer's own exits (like --help or explicit Exit(0))
            raise

        except Exception as e:
            elapsed = time.monotonic() - start
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                elapsed,
                str(e),
                traceback.format_exc(),
            )
            # Generic fallback for unexpected crashes
            format_error(f"An unexpected error occurred: {str(e)}")
            raise typer.Exit(code=exit_codes.ERROR_GENERAL) from e

    return wrapper
