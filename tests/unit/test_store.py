"""
Tests for SubjectState and StateStore.
"""

import asyncio
from datetime import timedelta

import pytest

from heartwatch.monitor.models import SubjectState
from heartwatch.monitor.store import StateStore


class TestSubjectState:
    """Tests for SubjectState."""

    def test_allowed_window_defaults_to_interval(self, make_message) -> None:
        """Test the window is the interval without a grace period."""
        state = SubjectState.from_message(make_message(interval=timedelta(seconds=1)))
        assert state.allowed_window() == timedelta(seconds=1)

    def test_allowed_window_prefers_grace(self, make_message) -> None:
        """Test a positive grace period replaces the interval."""
        state = SubjectState.from_message(make_message(
            interval=timedelta(seconds=3),
            grace_period=timedelta(seconds=5),
            skippable=2,
        ))
        assert state.allowed_window() == timedelta(seconds=5)

    def test_zero_grace_ignored(self, make_message) -> None:
        """Test a zero grace period falls back to the interval."""
        state = SubjectState.from_message(make_message(
            interval=timedelta(seconds=3),
            grace_period=timedelta(0),
        ))
        assert state.allowed_window() == timedelta(seconds=3)

    def test_grace_may_be_shorter_than_interval(self, make_message) -> None:
        """Test grace overrides the interval even when smaller."""
        state = SubjectState.from_message(make_message(
            interval=timedelta(seconds=10),
            grace_period=timedelta(seconds=2),
        ))
        assert state.allowed_window() == timedelta(seconds=2)

    def test_from_message(self, make_message, now) -> None:
        """Test initial state fields."""
        state = SubjectState.from_message(make_message(host="web-1"))

        assert state.subject == "heartbeat.svc"
        assert state.description == "heartbeat.svc"
        assert state.host == "web-1"
        assert state.last_seen == now
        assert state.alert_active is False
        assert state.miss_count == 0
        assert state.last_alert is None

    def test_misses(self, make_message) -> None:
        """Test whole intervals are counted."""
        state = SubjectState.from_message(make_message(interval=timedelta(seconds=2)))
        assert state.misses(timedelta(seconds=7)) == 3
        assert state.misses(timedelta(seconds=1)) == 0


class TestStateStore:
    """Tests for StateStore."""

    @pytest.mark.asyncio
    async def test_upsert_creates(self, store: StateStore, make_message) -> None:
        """Test unknown subjects are created without calling update."""
        msg = make_message()
        updated = []

        result = await store.upsert(
            msg.subject,
            create=lambda: SubjectState.from_message(msg),
            update=lambda s: updated.append(s) or "updated",
        )

        assert result is None
        assert updated == []
        assert msg.subject in store
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_upsert_updates_in_place(self, store: StateStore, make_message) -> None:
        """Test known subjects are passed to update."""
        msg = make_message()
        await store.upsert(msg.subject, lambda: SubjectState.from_message(msg), lambda s: None)

        def update(state: SubjectState) -> str:
            state.description = "changed"
            return "updated"

        result = await store.upsert(msg.subject, lambda: pytest.fail("created twice"), update)

        assert result == "updated"
        assert len(store) == 1
        assert (await store.get(msg.subject)).description == "changed"

    @pytest.mark.asyncio
    async def test_for_each_collects_results(self, store: StateStore, make_message) -> None:
        """Test for_each visits every subject and drops None results."""
        for name in ("a", "b", "c"):
            msg = make_message(subject=name)
            await store.upsert(name, lambda msg=msg: SubjectState.from_message(msg), lambda s: None)

        results = await store.for_each(lambda s: s.subject if s.subject != "b" else None)

        assert sorted(results) == ["a", "c"]

    @pytest.mark.asyncio
    async def test_snapshot_is_sorted_copy(self, store: StateStore, make_message) -> None:
        """Test snapshot returns sorted copies detached from the store."""
        for name in ("zeta", "alpha", "mid"):
            msg = make_message(subject=name)
            await store.upsert(name, lambda msg=msg: SubjectState.from_message(msg), lambda s: None)

        snapshot = await store.snapshot()
        assert [s.subject for s in snapshot] == ["alpha", "mid", "zeta"]

        snapshot[0].alert_active = True
        assert (await store.get("alpha")).alert_active is False

    @pytest.mark.asyncio
    async def test_get_unknown(self, store: StateStore) -> None:
        """Test unknown subjects return None."""
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_concurrent_upserts(self, store: StateStore, make_message) -> None:
        """Test concurrent writers produce one state per subject."""
        messages = [make_message(subject=f"s{i % 5}") for i in range(50)]

        await asyncio.gather(*(
            store.upsert(m.subject, lambda m=m: SubjectState.from_message(m), lambda s: None)
            for m in messages
        ))

        assert len(store) == 5
