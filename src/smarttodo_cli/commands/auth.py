"""Authentication commands."""

from typing import NoReturn

import typer
from rich.prompt import Prompt

from smarttodo_cli.exceptions import NotAuthenticatedError, RemoteError, TaskValidationError
from smarttodo_cli.services.runtime import open_app
from smarttodo_cli.utils.typer_helpers import SuggestingGroup
from smarttodo_cli.utils.ui.console import get_console
from smarttodo_cli.utils.ui.formatters import (
    format_info,
    format_single_item,
    format_success,
)

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Authentication commands")
console = get_console()


def _prompt_credentials(
    email: str | None, password: str | None, confirm: bool = False
) -> tuple[str, str]:
    if not email:
        email = Prompt.ask("Email")
    if not password:
        password = Prompt.ask("Password", password=True)
        if confirm and Prompt.ask("Confirm password", password=True) != password:
            raise TaskValidationError("Passwords do not match")

    if not email or not password:
        raise TaskValidationError("Email and password are required")
    return email.strip(), password


def _raise_auth_failure(action: str, error: RemoteError) -> NoReturn:
    """Report rejected credentials as an auth failure, anything else as is."""
    if error.is_auth_rejection:
        raise NotAuthenticatedError(f"{action} failed: {error.message}") from error
    raise error


@app.command()
@command_wrapper
async def signup(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Create a new account."""
    email, password = _prompt_credentials(email, password, confirm=True)

    async with open_app() as todo:
        try:
            session = await todo.lifecycle.sign_up(email, password)
        except RemoteError as e:
            _raise_auth_failure("Sign up", e)

    if session is None:
        format_info(f"Check {email} for a confirmation link, then run 'smarttodo login'.")
        return
    format_success(f"Signed up and logged in as {session.user.email or email}")


@app.command()
@command_wrapper
async def login(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Log in with email and password."""
    email, password = _prompt_credentials(email, password)

    async with open_app() as todo:
        try:
            session = await todo.lifecycle.sign_in_with_password(email, password)
        except RemoteError as e:
            _raise_auth_failure("Login", e)
        count = len(todo.synchronizer.tasks)

    format_success(f"Logged in as {session.user.email or email} ({count} tasks)")


@app.command("magic-link")
@command_wrapper
async def magic_link(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    code: str | None = typer.Option(
        None, "--code", help="One-time code from the email, completes the sign-in"
    ),
) -> None:
    """Sign in without a password via an emailed link and code."""
    if not email:
        email = Prompt.ask("Email")
    if not email:
        raise TaskValidationError("Email is required")
    email = email.strip()

    async with open_app() as todo:
        if code is None:
            await todo.lifecycle.sign_in_with_magic_link(email)
            format_info(
                f"Magic link sent to {email}. "
                "Run 'smarttodo magic-link --email <email> --code <code>' to finish."
            )
            return

        try:
            session = await todo.lifecycle.verify_magic_link(email, code.strip())
        except RemoteError as e:
            _raise_auth_failure("Magic link sign-in", e)

    format_success(f"Logged in as {session.user.email or email}")


@app.command()
@command_wrapper
async def logout() -> None:
    """Log out and forget the stored session."""
    async with open_app() as todo:
        if todo.lifecycle.session is None:
            format_info("Not logged in")
            return
        await todo.lifecycle.sign_out()

    format_success("Logged out")


@app.command()
@command_wrapper
async def whoami() -> None:
    """Show the signed-in user, as confirmed by the backend."""
    async with open_app() as todo:
        if todo.lifecycle.session is None:
            raise NotAuthenticatedError(
                "Not signed in. Use 'smarttodo login' to authenticate."
            )
        try:
            user = await todo.provider.get_user()
        except RemoteError as e:
            _raise_auth_failure("Session check", e)
        format_single_item(
            {
                "id": user.id,
                "email": user.email,
                "created_at": user.created_at,
                "state": todo.lifecycle.state.value,
            }
        )
