from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from smarttask.errors import ValidationError
from smarttask.models import Priority
from smarttask.schemas import TaskUpdate, validate_create, validate_update
from smarttask.utils import format_timestamp, parse_timestamp


class TestTaskCreate:
    def test_defaults_applied_at_creation(self):
        data = validate_create({"title": "Buy milk", "dueDate": "2025-03-02T09:00:00Z"})
        assert data.priority is Priority.MEDIUM
        assert data.is_completed is False
        assert data.description == ""

    def test_title_is_trimmed(self):
        data = validate_create({"title": "  Buy milk  ", "due_date": "2025-03-02"})
        assert data.title == "Buy milk"

    @pytest.mark.parametrize("title", ["", "   ", "x" * 101])
    def test_bad_title_rejected(self, title):
        with pytest.raises(ValidationError) as exc_info:
            validate_create({"title": title, "dueDate": "2025-03-02"})
        assert exc_info.value.errors

    def test_title_of_exactly_max_length_accepted(self):
        assert len(validate_create({"title": "x" * 100, "dueDate": "2025-03-02"}).title) == 100

    def test_description_length_enforced(self):
        with pytest.raises(ValidationError):
            validate_create({"title": "a", "description": "d" * 501, "dueDate": "2025-03-02"})

    def test_null_description_becomes_empty(self):
        assert validate_create({"title": "a", "description": None, "dueDate": "2025-03-02"}).description == ""

    @pytest.mark.parametrize("priority", ["Urgent", "high", ""])
    def test_unknown_priority_rejected(self, priority):
        with pytest.raises(ValidationError):
            validate_create({"title": "a", "priority": priority, "dueDate": "2025-03-02"})

    @pytest.mark.parametrize("due", [None, "not-a-date", "2025-13-45"])
    def test_missing_or_bad_due_date_rejected(self, due):
        with pytest.raises(ValidationError):
            validate_create({"title": "a", "dueDate": due})

    @pytest.mark.parametrize("due", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
    def test_due_date_at_range_edge_rejected(self, due):
        with pytest.raises(ValidationError):
            validate_create({"title": "a", "dueDate": due})
        with pytest.raises(ValidationError):
            validate_update({"dueDate": due})

    def test_due_date_normalized_to_utc(self):
        data = validate_create({"title": "a", "dueDate": "2025-03-02T09:00:00+02:00"})
        assert data.due_date == datetime(2025, 3, 2, 7, 0, tzinfo=timezone.utc)
        assert data.due_date.utcoffset() == timedelta(0)

    def test_exported_fields_are_ignored(self):
        data = validate_create(
            {"id": "abc", "createdAt": "2020-01-01", "title": "a", "dueDate": "2025-03-02"}
        )
        assert not hasattr(data, "id")


class TestTaskUpdate:
    def test_only_supplied_fields_are_changes(self):
        update = validate_update({"isCompleted": True})
        assert update.changes() == {"is_completed": True}

    def test_empty_update_has_no_changes(self):
        assert TaskUpdate().changes() == {}

    @pytest.mark.parametrize("field", ["title", "description", "dueDate", "priority", "isCompleted"])
    def test_explicit_null_rejected(self, field):
        with pytest.raises(ValidationError):
            validate_update({field: None})

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            validate_update({"title": "  "})

    def test_invalid_priority_rejected(self):
        with pytest.raises(ValidationError):
            validate_update({"priority": "Critical"})

    def test_due_date_parsed(self):
        update = validate_update({"dueDate": "2025-04-01"})
        assert update.changes()["due_date"] == datetime(2025, 4, 1, tzinfo=timezone.utc)


class TestTimestamps:
    def test_naive_datetime_is_utc(self):
        assert parse_timestamp(datetime(2025, 1, 1, 8)) == datetime(2025, 1, 1, 8, tzinfo=timezone.utc)

    def test_date_promoted_to_midnight(self):
        assert parse_timestamp(date(2025, 1, 31)) == datetime(2025, 1, 31, tzinfo=timezone.utc)

    def test_z_suffix_accepted(self):
        assert parse_timestamp("2025-01-31T13:45:00Z") == datetime(2025, 1, 31, 13, 45, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
    def test_out_of_range_after_utc_conversion(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_format_is_fixed_width(self):
        a = format_timestamp(datetime(2025, 1, 1, tzinfo=timezone.utc))
        b = format_timestamp(datetime(2025, 1, 1, 0, 0, 0, 1, tzinfo=timezone.utc))
        assert a == "2025-01-01T00:00:00.000000+00:00"
        assert len(a) == len(b) and a < b
