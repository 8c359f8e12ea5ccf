"""Tests for client-side filtering, search, ordering and counts."""

from datetime import UTC, date, datetime

import pytest
from fakes import make_task

from smarttodo_cli.models import Priority, SortKey, StatusFilter
from smarttodo_cli.services.task_filters import filter_tasks, sort_tasks, summarize

TASKS = [
    make_task("t1", title="Buy milk", description="Semi-skimmed"),
    make_task("t2", title="Call plumber", completed=True, description="Kitchen SINK"),
    make_task("t3", title="Book flights", description=""),
    make_task("t4", title="Pay rent", completed=True),
]


def _ids(tasks):
    return [t.id for t in tasks]


def test_filter_all_returns_everything():
    assert _ids(filter_tasks(TASKS)) == ["t1", "t2", "t3", "t4"]


def test_filter_completed_is_exactly_completed_subset():
    result = filter_tasks(TASKS, "completed")
    assert _ids(result) == ["t2", "t4"]
    assert all(t.completed for t in result)


def test_filter_active_excludes_completed():
    assert _ids(filter_tasks(TASKS, StatusFilter.ACTIVE)) == ["t1", "t3"]


@pytest.mark.parametrize(
    ("query", "expected"),
    [
        ("milk", ["t1"]),
        ("MILK", ["t1"]),
        ("sink", ["t2"]),
        ("b", ["t1", "t2", "t3"]),
        ("", ["t1", "t2", "t3", "t4"]),
        ("nothing", []),
    ],
)
def test_search_matches_title_or_description_case_insensitively(query, expected):
    assert _ids(filter_tasks(TASKS, query=query)) == expected


def test_status_and_search_combine():
    assert _ids(filter_tasks(TASKS, "active", "b")) == ["t1", "t3"]


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        filter_tasks(TASKS, "archived")


def test_filtering_does_not_modify_input():
    tasks = list(TASKS)
    filter_tasks(tasks, "completed", "pay")
    assert tasks == TASKS


def test_summarize_counts():
    summary = summarize(TASKS)
    assert (summary.total, summary.completed, summary.active) == (4, 2, 2)
    assert summarize([]).total == 0


def test_sort_created_newest_first_with_unsaved_on_top():
    tasks = [
        make_task("old", created_at=datetime(2024, 1, 1, tzinfo=UTC)),
        make_task("unsaved", created_at=None),
        make_task("new", created_at=datetime(2024, 3, 1, tzinfo=UTC)),
    ]
    assert _ids(sort_tasks(tasks)) == ["unsaved", "new", "old"]


def test_sort_deadline_earliest_first_undated_last():
    tasks = [
        make_task("none"),
        make_task("late", deadline=date(2025, 12, 1)),
        make_task("soon", deadline=date(2025, 1, 1)),
    ]
    assert _ids(sort_tasks(tasks, SortKey.DEADLINE)) == ["soon", "late", "none"]


def test_sort_priority_high_first():
    tasks = [
        make_task("low", priority=Priority.LOW),
        make_task("high", priority=Priority.HIGH),
        make_task("medium", priority=Priority.MEDIUM),
    ]
    assert _ids(sort_tasks(tasks, "priority")) == ["high", "medium", "low"]


def test_sort_title_is_case_insensitive():
    tasks = [make_task("b", title="banana"), make_task("a", title="Apple")]
    assert _ids(sort_tasks(tasks, SortKey.TITLE)) == ["a", "b"]
