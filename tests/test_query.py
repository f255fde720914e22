from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from smarttask.models import Priority
from smarttask.query import (
    SortKey,
    TaskFilter,
    apply_query,
    can_schedule_reminder,
    filter_tasks,
    is_overdue,
    relative_date_label,
    sort_tasks,
)

from .fakes import NOW, make_task


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestSort:
    def test_sort_by_date_earliest_first(self):
        tasks = [
            make_task(id="c", due_date=utc(2025, 3, 3)),
            make_task(id="a", due_date=utc(2025, 3, 1)),
            make_task(id="b", due_date=utc(2025, 3, 2)),
        ]
        assert [t["id"] for t in sort_tasks(tasks, SortKey.DATE)] == ["a", "b", "c"]

    def test_sort_by_priority_high_first_and_stable(self):
        tasks = [
            make_task(id="low", priority=Priority.LOW),
            make_task(id="high1", priority=Priority.HIGH),
            make_task(id="medium", priority=Priority.MEDIUM),
            make_task(id="high2", priority=Priority.HIGH),
        ]
        result = sort_tasks(tasks, "priority")
        assert [t["id"] for t in result] == ["high1", "high2", "medium", "low"]

    def test_sort_by_date_ties_keep_input_order(self):
        tasks = [make_task(id=str(i), due_date=utc(2025, 3, 1)) for i in range(5)]
        assert [t["id"] for t in sort_tasks(tasks, SortKey.DATE)] == ["0", "1", "2", "3", "4"]

    def test_alphabetical_ignores_case(self):
        tasks = [
            make_task(id="1", title="banana"),
            make_task(id="2", title="Apple"),
            make_task(id="3", title="cherry"),
            make_task(id="4", title="apple"),
        ]
        assert [t["id"] for t in sort_tasks(tasks, SortKey.ALPHABETICAL)] == ["2", "4", "1", "3"]

    def test_alphabetical_places_accented_titles_by_base_letter(self):
        tasks = [
            make_task(id="z", title="zebra"),
            make_task(id="e", title="Éclair"),
            make_task(id="a", title="apple"),
            make_task(id="e2", title="eclair"),
        ]
        assert [t["id"] for t in sort_tasks(tasks, SortKey.ALPHABETICAL)] == ["a", "e2", "e", "z"]

    @pytest.mark.parametrize("key", ["newest", "", None])
    def test_unknown_key_returns_input_order(self, key):
        tasks = [make_task(id="b"), make_task(id="a")]
        result = sort_tasks(tasks, key)
        assert [t["id"] for t in result] == ["b", "a"]
        assert result is not tasks

    def test_input_is_not_reordered(self):
        tasks = [make_task(id="late", due_date=utc(2025, 4, 1)), make_task(id="early", due_date=utc(2025, 1, 1))]
        sort_tasks(tasks, SortKey.DATE)
        assert [t["id"] for t in tasks] == ["late", "early"]


class TestFilter:
    @pytest.fixture()
    def tasks(self):
        return [
            make_task(id="1", title="Buy groceries", priority=Priority.HIGH, is_completed=False),
            make_task(id="2", title="Pay rent", priority=Priority.HIGH, is_completed=True),
            make_task(id="3", title="Walk dog", description="groceries and milk", priority=Priority.LOW),
            make_task(id="4", title="Book flights", priority=Priority.HIGH, is_completed=False),
            make_task(id="5", title="Call mom", priority=Priority.MEDIUM, is_completed=True),
        ]

    def test_no_criteria_is_pass_through(self, tasks):
        assert filter_tasks(tasks) == tasks
        assert filter_tasks(tasks, TaskFilter(text="   ")) == tasks

    def test_text_matches_title_or_description(self, tasks):
        result = filter_tasks(tasks, TaskFilter(text="GROCERIES"))
        assert [t["id"] for t in result] == ["1", "3"]

    def test_text_without_match(self, tasks):
        assert filter_tasks(tasks, TaskFilter(text="laundry")) == []

    def test_priority_and_completion_intersection(self, tasks):
        result = filter_tasks(tasks, TaskFilter(priority=Priority.HIGH, completed=False))
        assert [t["id"] for t in result] == ["1", "4"]

    def test_all_three_stages(self, tasks):
        result = filter_tasks(tasks, TaskFilter(text="o", priority=Priority.HIGH, completed=False))
        assert [t["id"] for t in result] == ["1", "4"]

    def test_completed_false_is_not_pass_through(self, tasks):
        result = filter_tasks(tasks, TaskFilter(completed=False))
        assert [t["id"] for t in result] == ["1", "3", "4"]

    def test_filter_then_sort(self, tasks):
        result = apply_query(tasks, TaskFilter(completed=True), SortKey.ALPHABETICAL)
        assert [t["id"] for t in result] == ["5", "2"]


class TestDueStatus:
    def test_overdue_one_hour_ago(self):
        task = make_task(due_date=NOW - timedelta(hours=1))
        assert is_overdue(task, NOW) is True

    def test_completed_task_is_never_overdue(self):
        task = make_task(due_date=NOW - timedelta(hours=1), is_completed=True)
        assert is_overdue(task, NOW) is False

    def test_due_exactly_now_is_not_overdue(self):
        assert is_overdue(make_task(due_date=NOW), NOW) is False

    def test_reminder_requires_future_date(self):
        assert can_schedule_reminder(NOW + timedelta(seconds=1), NOW) is True
        assert can_schedule_reminder(NOW, NOW) is False
        assert can_schedule_reminder(NOW - timedelta(minutes=5), NOW) is False


class TestRelativeDateLabel:
    @pytest.mark.parametrize(
        "due, expected",
        [
            (utc(2025, 3, 1, 23, 0), "Today"),
            (utc(2025, 3, 1, 0, 0), "Today"),
            (utc(2025, 3, 2, 8, 0), "Tomorrow"),
            (utc(2025, 2, 28, 20, 0), "Yesterday"),
            (utc(2025, 2, 26, 12, 0), "3 days ago"),
            (utc(2025, 3, 4, 12, 0), "In 3 days"),
            (utc(2025, 3, 8, 12, 0), "In 7 days"),
            (utc(2025, 3, 9, 12, 0), "Mar 9"),
            (utc(2025, 12, 25, 12, 0), "Dec 25"),
        ],
    )
    def test_labels(self, due, expected):
        assert relative_date_label(due, NOW) == expected

    def test_two_minutes_across_midnight_is_tomorrow(self):
        now = utc(2025, 3, 1, 23, 59)
        assert relative_date_label(utc(2025, 3, 2, 0, 1), now) == "Tomorrow"

    def test_same_calendar_day_late_evening_is_today(self):
        now = utc(2025, 3, 1, 0, 1)
        assert relative_date_label(utc(2025, 3, 1, 23, 59), now) == "Today"

    def test_just_before_midnight_yesterday(self):
        now = utc(2025, 3, 2, 0, 1)
        assert relative_date_label(utc(2025, 3, 1, 23, 59), now) == "Yesterday"

    def test_days_counted_in_given_timezone(self):
        # 02:00 UTC on Mar 2 is still the evening of Mar 1 in New York
        now = utc(2025, 3, 1, 15, 0)
        due = utc(2025, 3, 2, 2, 0)
        assert relative_date_label(due, now) == "Tomorrow"
        assert relative_date_label(due, now, ZoneInfo("America/New_York")) == "Today"

    def test_month_label_uses_local_date(self):
        now = utc(2025, 3, 1, 12, 0)
        due = utc(2025, 3, 20, 3, 0)
        assert relative_date_label(due, now, ZoneInfo("America/Los_Angeles")) == "Mar 19"
