"""Tests for the Supabase-backed activity log store."""

import asyncio
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from bluemoon.db import activity_logs as store
from bluemoon.models.activity_log import ActivityEvent


def fake_client(data=None, count=None):
    """Supabase client whose query builder methods chain onto one mock."""
    query = MagicMock()
    for method in ("select", "insert", "delete", "eq", "gte", "lte", "lt", "or_", "order", "range", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data, count=count)

    client = MagicMock()
    client.table.return_value = query
    return client, query


class TestCreateActivityLog:

    def test_inserts_event_row(self):
        """The event record is inserted and the row returned."""
        event = ActivityEvent(
            user_id="42",
            username="resident.a101@bluemoon.vn",
            action="vehicles_create",
            resource_type="vehicles",
            details={"method": "POST", "path": "/api/vehicles", "statusCode": 201},
        )
        client, query = fake_client(data=[{"id": 1, **event.to_record()}])

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            row = asyncio.run(store.create_activity_log(event))

        client.table.assert_called_once_with("activity_logs")
        inserted = query.insert.call_args.args[0]
        assert inserted["action"] == "vehicles_create"
        assert inserted["resource_id"] is None
        assert inserted["status"] == "success"
        assert row["id"] == 1

    def test_empty_result_raises(self):
        """An insert that returns no row raises."""
        client, _ = fake_client(data=[])
        event = ActivityEvent(user_id="1", username="admin1", action="bills_create", resource_type="bills")

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            with pytest.raises(RuntimeError):
                asyncio.run(store.create_activity_log(event))

    def test_client_error_propagates(self):
        """Client errors are re-raised."""
        client, query = fake_client()
        query.execute.side_effect = ConnectionError("network down")
        event = ActivityEvent(user_id="1", username="admin1", action="bills_create", resource_type="bills")

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            with pytest.raises(ConnectionError):
                asyncio.run(store.create_activity_log(event))

    def test_slow_insert_leaves_event_loop_free(self):
        """Other coroutines keep running while the insert blocks its thread."""
        client, query = fake_client(data=[{"id": 1}])

        def slow_execute():
            time.sleep(0.5)
            return MagicMock(data=[{"id": 1}], count=None)

        query.execute.side_effect = slow_execute
        event = ActivityEvent(user_id="1", username="admin1", action="bills_create", resource_type="bills")

        async def insert_and_tick():
            started = time.monotonic()
            write = asyncio.create_task(store.create_activity_log(event))
            await asyncio.sleep(0.05)
            ticked = time.monotonic() - started
            return await write, ticked

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            row, ticked = asyncio.run(insert_and_tick())

        assert row == {"id": 1}
        assert ticked < 0.3


class TestGetActivityLogs:

    def test_filters_and_pagination(self):
        """Filters, ordering and range are applied."""
        client, query = fake_client(data=[{"id": 1}], count=75)
        start = datetime(2025, 10, 1, tzinfo=timezone.utc)

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            rows, total = asyncio.run(store.get_activity_logs(
                page=3,
                limit=25,
                user_id="42",
                status="warning",
                start_date=start,
                search="bills",
            ))

        assert rows == [{"id": 1}]
        assert total == 75
        query.select.assert_called_once_with("*", count="exact")
        query.eq.assert_any_call("user_id", "42")
        query.eq.assert_any_call("status", "warning")
        assert query.eq.call_count == 2
        query.gte.assert_called_once_with("created_at", start.isoformat())
        query.lte.assert_not_called()
        query.order.assert_called_once_with("created_at", desc=True)
        query.range.assert_called_once_with(50, 74)
        query.or_.assert_called_once_with(
            "username.ilike.%bills%,action.ilike.%bills%,resource_type.ilike.%bills%"
        )

    def test_search_drops_filter_syntax_characters(self):
        """Filter syntax characters are removed from search."""
        client, query = fake_client(data=[], count=0)

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            asyncio.run(store.get_activity_logs(search="a,b(c)"))

        query.or_.assert_called_once_with(
            "username.ilike.%abc%,action.ilike.%abc%,resource_type.ilike.%abc%"
        )

    def test_missing_count_falls_back_to_rows(self):
        """Without an exact count the row count is used."""
        client, _ = fake_client(data=[{"id": 1}, {"id": 2}], count=None)

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            _, total = asyncio.run(store.get_activity_logs())

        assert total == 2


class TestSummarizeActivity:

    def test_counts(self):
        """Rows are counted by action, resource type and status."""
        rows = [
            {"action": "vehicles_create", "resource_type": "vehicles", "status": "success"},
            {"action": "vehicles_create", "resource_type": "vehicles", "status": "warning"},
            {"action": "login", "resource_type": "login", "status": "success"},
        ]

        stats = store.summarize_activity(rows)

        assert stats["total"] == 3
        assert stats["by_action"] == {"vehicles_create": 2, "login": 1}
        assert stats["by_resource_type"] == {"vehicles": 2, "login": 1}
        assert stats["by_status"] == {"success": 2, "failure": 0, "warning": 1}
        assert stats["recent_activity"] == rows

    def test_empty(self):
        """No rows give zeroed counts."""
        stats = store.summarize_activity([])
        assert stats["total"] == 0
        assert stats["by_status"] == {"success": 0, "failure": 0, "warning": 0}

    def test_recent_activity_is_capped(self):
        """Recent activity holds at most ten rows."""
        rows = [{"action": "bills_create", "resource_type": "bills", "status": "success", "id": i} for i in range(25)]
        stats = store.summarize_activity(rows)
        assert [row["id"] for row in stats["recent_activity"]] == list(range(10))


class TestDeleteOldActivityLogs:

    def test_deletes_rows_older_than_cutoff(self):
        """Rows before the cutoff are deleted and counted."""
        client, query = fake_client(data=[{"id": 1}, {"id": 2}])

        with patch.object(store, "get_supabase_admin_client", return_value=client):
            deleted = asyncio.run(store.delete_old_activity_logs(30))

        assert deleted == 2
        query.delete.assert_called_once_with()
        column, cutoff = query.lt.call_args.args
        assert column == "created_at"
        age = datetime.now(timezone.utc) - datetime.fromisoformat(cutoff)
        assert 29.9 < age.total_seconds() / 86400 < 30.1
