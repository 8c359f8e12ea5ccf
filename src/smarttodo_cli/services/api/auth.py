"""Authentication API endpoints."""

from smarttodo_cli.services.api.client import APIClient

AUTH_PREFIX = "/auth/v1"


class AuthAPI:
    """Authentication API client."""

    def __init__(self, client: APIClient):
        self.client = client

    async def signup(self, email: str, password: str) -> dict:
        """Create an account. Returns a session, or only the user when
        the backend requires email confirmation first."""
        response = await self.client.post(
            f"{AUTH_PREFIX}/signup",
            json={"email": email, "password": password},
            skip_auth=True,
        )
        return response.json()

    async def login(self, email: str, password: str) -> dict:
        """Login with email and password."""
        response = await self.client.post(
            f"{AUTH_PREFIX}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            skip_auth=True,
        )
        return response.json()

    async def refresh(self, refresh_token: str) -> dict:
        """Exchange a refresh token for a new session."""
        response = await self.client.post(
            f"{AUTH_PREFIX}/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
            skip_auth=True,
        )
        return response.json()

    async def send_magic_link(self, email: str) -> None:
        """Email a one-time sign-in link (and code) to *email*."""
        await self.client.post(
            f"{AUTH_PREFIX}/otp",
            json={"email": email, "create_user": True},
            skip_auth=True,
        )

    async def verify_otp(self, email: str, token: str) -> dict:
        """Complete a magic-link sign-in with the emailed code."""
        response = await self.client.post(
            f"{AUTH_PREFIX}/verify",
            json={"type": "email", "email": email, "token": token},
            skip_auth=True,
        )
        return response.json()

    async def logout(self) -> None:
        """Revoke the current session's refresh tokens."""
        await self.client.request("POST", f"{AUTH_PREFIX}/logout", retry=0)

    async def get_user(self) -> dict:
        """Get the user behind the current access token."""
        response = await self.client.get(f"{AUTH_PREFIX}/user")
        return response.json()
