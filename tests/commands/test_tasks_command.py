"""Unit tests for the task commands.

The commands run against an in-memory task store and session provider
wired through a real SessionLifecycle, so each invocation exercises the
synchronizer exactly as the CLI does.
"""

from __future__ import annotations

import asyncio
import json
import re
from datetime import date
from unittest.mock import patch

import pytest
from fakes import FakeSessionProvider, FakeTaskStore, fake_open_app, make_session, make_task
from rich.console import Console
from typer.testing import CliRunner

from smarttodo_cli.commands.tasks import _watch_view, app
from smarttodo_cli.exceptions import RemoteError
from smarttodo_cli.models import Priority, StatusFilter
from smarttodo_cli.services.task_sync import TaskSynchronizer

runner = CliRunner()


def strip_ansi(text: str) -> str:
    ansi = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi.sub("", text)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def store():
    return FakeTaskStore(
        [
            make_task("aaaa-1111", title="Write report", description="Quarterly numbers"),
            make_task("bbbb-2222", title="Call mom", completed=True),
            make_task("cccc-3331", title="Buy milk", priority=Priority.LOW),
        ]
    )


@pytest.fixture()
def provider():
    return FakeSessionProvider(make_session())


@pytest.fixture()
def invoke(store, provider, tmp_config):
    """Run a task command against the fakes."""

    def run(*args, **kwargs):
        with patch(
            "smarttodo_cli.commands.tasks.open_app",
            fake_open_app(store, provider, tmp_config),
        ):
            result = runner.invoke(app, list(args), **kwargs)
        result.text = strip_ansi(result.output)
        return result

    return run


# ---------------------------------------------------------------------------
# Session requirements
# ---------------------------------------------------------------------------


def test_list_requires_sign_in(invoke, provider):
    provider.session = None

    result = invoke("list")

    assert result.exit_code == 3
    assert "Not signed in" in result.text


def test_list_reports_load_failure(invoke, store):
    store.failures["select"] = RemoteError("connection refused")

    result = invoke("list")

    assert result.exit_code == 4
    assert "Could not load tasks: connection refused" in result.text


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


def test_list_pretty(invoke):
    result = invoke("list")

    assert result.exit_code == 0
    assert "Write report" in result.text
    assert "Call mom" in result.text
    assert "(2 active, 1 done)" in result.text


def test_list_filter_completed(invoke):
    result = invoke("list", "--filter", "completed", "--output", "json")

    assert result.exit_code == 0
    assert [t["id"] for t in json.loads(result.output)] == ["bbbb-2222"]


def test_list_search_is_case_insensitive(invoke):
    result = invoke("list", "--search", "QUARTERLY", "-o", "json")

    assert [t["title"] for t in json.loads(result.output)] == ["Write report"]


def test_list_sort_by_priority(invoke, store):
    store.rows["dddd-4444"] = make_task("dddd-4444", title="Fix leak", priority=Priority.HIGH)

    result = invoke("list", "--sort", "priority", "-o", "json")

    assert json.loads(result.output)[0]["id"] == "dddd-4444"


def test_list_uses_configured_output_format(invoke, tmp_config):
    tmp_config.set("output.format", "json")

    result = invoke("list")

    assert len(json.loads(result.output)) == 3


def test_list_invalid_filter(invoke):
    result = invoke("list", "--filter", "archived")
    assert result.exit_code == 2


# ---------------------------------------------------------------------------
# add / edit
# ---------------------------------------------------------------------------


def test_add_task(invoke, store):
    result = invoke(
        "add", "Buy milk", "--priority", "high", "--deadline", "2025-01-31", "-d", "2 litres"
    )

    assert result.exit_code == 0
    assert "Task created: Buy milk" in result.text
    created = [t for t in store.rows.values() if t.description == "2 litres"]
    assert len(created) == 1
    assert created[0].priority is Priority.HIGH
    assert created[0].deadline == date(2025, 1, 31)
    assert created[0].owner == "user-1"


def test_add_empty_title_is_rejected(invoke, store):
    result = invoke("add", "   ")

    assert result.exit_code == 2
    assert "title cannot be empty" in result.text
    assert "insert" not in store.ops()


def test_add_failure_reports_backend_message(invoke, store):
    store.failures["insert"] = RemoteError("new row violates row-level security policy", 403)

    result = invoke("add", "Buy milk")

    assert result.exit_code == 4
    assert "row-level security" in result.text


def test_edit_task_by_suffix(invoke, store):
    result = invoke("edit", "1111", "--title", "Write final report", "--priority", "high")

    assert result.exit_code == 0
    assert store.rows["aaaa-1111"].title == "Write final report"
    assert store.rows["aaaa-1111"].priority is Priority.HIGH


def test_edit_clear_deadline(invoke, store):
    store.rows["aaaa-1111"] = make_task("aaaa-1111", deadline=date(2025, 1, 1))

    result = invoke("edit", "aaaa-1111", "--clear-deadline")

    assert result.exit_code == 0
    assert store.rows["aaaa-1111"].deadline is None


def test_edit_without_changes(invoke):
    result = invoke("edit", "1111")

    assert result.exit_code == 2
    assert "Nothing to change" in result.text


def test_edit_ambiguous_suffix(invoke, store):
    store.rows["dddd-3311"] = make_task("dddd-3311")

    result = invoke("edit", "1", "--title", "x")

    assert result.exit_code == 5
    assert "Multiple tasks match" in result.text


def test_edit_unknown_task(invoke):
    result = invoke("edit", "zzzz", "--title", "x")

    assert result.exit_code == 5
    assert "No task found" in result.text


# ---------------------------------------------------------------------------
# done / undo / toggle
# ---------------------------------------------------------------------------


def test_done_marks_completed(invoke, store):
    result = invoke("done", "1111")

    assert result.exit_code == 0
    assert "Task completed: Write report" in result.text
    assert store.rows["aaaa-1111"].completed is True
    assert store.rows["aaaa-1111"].updated_at is not None


def test_done_on_completed_task_is_a_no_op(invoke, store):
    result = invoke("done", "2222")

    assert result.exit_code == 0
    assert "already completed" in result.text
    assert "update" not in store.ops()


def test_undo_reopens(invoke, store):
    result = invoke("undo", "2222")

    assert result.exit_code == 0
    assert store.rows["bbbb-2222"].completed is False


def test_toggle_failure_reports_and_keeps_remote_value(invoke, store):
    store.failures["update"] = RemoteError("network down")

    result = invoke("toggle", "1111")

    assert result.exit_code == 4
    assert "network down" in result.text
    assert store.rows["aaaa-1111"].completed is False
    # Update failed, local state was reloaded from the store
    assert store.ops()[-2:] == ["update", "select"]


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_delete_with_force(invoke, store):
    result = invoke("delete", "1111", "--force")

    assert result.exit_code == 0
    assert "aaaa-1111" not in store.rows


def test_delete_confirmation_declined(invoke, store):
    result = invoke("delete", "1111", input="n\n")

    assert result.exit_code == 0
    assert "Cancelled" in result.text
    assert "aaaa-1111" in store.rows


def test_delete_confirmation_accepted(invoke, store):
    result = invoke("delete", "1111", input="y\n")

    assert result.exit_code == 0
    assert "Delete task 'Write report'?" in result.text
    assert "aaaa-1111" not in store.rows


def test_delete_failure(invoke, store):
    store.failures["delete"] = RemoteError("timeout")

    result = invoke("delete", "1111", "-f")

    assert result.exit_code == 4
    assert "aaaa-1111" in store.rows


# ---------------------------------------------------------------------------
# complete-all / stats / refresh
# ---------------------------------------------------------------------------


def test_complete_all(invoke, store):
    result = invoke("complete-all")

    assert result.exit_code == 0
    assert "Marked 2 tasks as completed" in result.text
    assert all(t.completed for t in store.rows.values())


def test_complete_all_nothing_active(invoke, store):
    for task_id in list(store.rows):
        store.rows[task_id] = store.rows[task_id].model_copy(update={"completed": True})

    result = invoke("complete-all")

    assert "No active tasks" in result.text


def test_stats(invoke):
    result = invoke("stats")

    assert result.exit_code == 0
    assert re.search(r"Total\s+3", result.text)
    assert re.search(r"Active\s+2", result.text)
    assert re.search(r"Completed\s+1", result.text)


def test_refresh(invoke, store):
    result = invoke("refresh")

    assert result.exit_code == 0
    assert "Loaded 3 tasks" in result.text
    assert store.ops() == ["select", "select"]


def test_refresh_recovers_from_failed_initial_load(invoke, store):
    store.failures["select"] = RemoteError("offline")

    result = invoke("refresh")

    assert result.exit_code == 0
    assert "Loaded 3 tasks" in result.text


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------


def test_watch_view_renders_counts_and_error():
    sync = TaskSynchronizer(FakeTaskStore(), owner_id="user-1")
    sync.tasks = {
        "aaaa-1111": make_task("aaaa-1111", title="Write report"),
        "bbbb-2222": make_task("bbbb-2222", title="Call mom", completed=True),
    }
    sync.loading = False
    sync.last_error = "offline"

    console = Console(record=True, width=120, color_system=None)
    console.print(_watch_view(sync, StatusFilter.ACTIVE, "", False))
    text = console.export_text()

    assert "1 active, 1 done, 2 total" in text
    assert "offline" in text
    assert "Write report" in text
    assert "Call mom" not in text


def test_watch_ends_when_session_ends(store, provider, tmp_config):
    class SigningOutStore(FakeTaskStore):
        async def select(self):
            rows = await super().select()
            asyncio.get_running_loop().call_later(
                0.05, lambda: asyncio.ensure_future(provider.sign_out())
            )
            return rows

    signing_out = SigningOutStore(list(store.rows.values()))
    with patch(
        "smarttodo_cli.commands.tasks.open_app",
        fake_open_app(signing_out, provider, tmp_config),
    ):
        result = runner.invoke(app, ["watch"])

    assert result.exit_code == 0
    assert "Session ended" in strip_ansi(result.output)
    assert signing_out.subscriptions[0].active is False
