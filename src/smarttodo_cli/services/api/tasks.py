"""Tasks table API endpoints."""

from typing import Any

from smarttodo_cli.services.api.client import APIClient

REST_PREFIX = "/rest/v1"


class TasksAPI:
    """Row-level access to a task table."""

    def __init__(self, client: APIClient, table: str = "tasks"):
        self.client = client
        self.table = table

    @property
    def path(self) -> str:
        return f"{REST_PREFIX}/{self.table}"

    async def list_tasks(self) -> list[dict]:
        """List every row visible to the current identity, newest first."""
        response = await self.client.get(
            self.path, params={"select": "*", "order": "inserted_at.desc"}
        )
        return response.json()

    async def list_versions(self) -> list[dict]:
        """List ``id`` and ``updated_at`` of every visible row."""
        response = await self.client.get(
            self.path, params={"select": "id,updated_at"}
        )
        return response.json()

    async def insert_task(self, record: dict[str, Any]) -> None:
        """Insert a row."""
        await self.client.post(
            self.path,
            json=record,
            headers={"Prefer": "return=minimal"},
        )

    async def update_task(self, task_id: str, patch: dict[str, Any]) -> None:
        """Patch the row with the given id."""
        await self.client.patch(
            self.path,
            params={"id": f"eq.{task_id}"},
            json=patch,
            headers={"Prefer": "return=minimal"},
        )

    async def delete_task(self, task_id: str) -> None:
        """Delete the row with the given id."""
        await self.client.delete(
            self.path,
            params={"id": f"eq.{task_id}"},
            headers={"Prefer": "return=minimal"},
        )
