"""
Tests for GoalTracker.
"""

from datetime import timedelta

import pytest

from savings_vault.ledger import GoalTracker
from savings_vault.models.account import SavingsGoal
from savings_vault.models.audit import AuditEventType


@pytest.fixture
def tracker(store, clock, audit_logger) -> GoalTracker:
    return GoalTracker(store, clock, audit_logger)


def set_goal(store, clock, target: int, locked: bool = False) -> None:
    now = clock.now()
    store.set_goal("alice", SavingsGoal(
        target_amount=target,
        deadline=now + timedelta(days=30),
        created_at=now,
    ))
    if locked:
        store.lock_goal("alice")


class TestGoalTracker:
    """Tests for goal evaluation after balance increases."""

    @pytest.mark.asyncio
    async def test_no_goal(self, tracker, store):
        store.add_balance("alice", 100)
        assert await tracker.evaluate("alice") is False

    @pytest.mark.asyncio
    async def test_below_target(self, tracker, store, clock, audit_storage):
        set_goal(store, clock, 100)
        store.add_balance("alice", 99)
        assert await tracker.evaluate("alice") is False
        assert audit_storage.events_of_type(AuditEventType.GOAL_ACHIEVED) == []

    @pytest.mark.asyncio
    async def test_reaching_target_signals_once(self, tracker, store, clock, audit_storage, start):
        set_goal(store, clock, 100)
        store.add_balance("alice", 100)

        assert await tracker.evaluate("alice") is True
        store.add_balance("alice", 50)
        assert await tracker.evaluate("alice") is False

        events = audit_storage.events_of_type(AuditEventType.GOAL_ACHIEVED)
        assert len(events) == 1
        assert events[0].entity_id == "alice"
        assert store.get_goal("alice").achieved_at == start

    @pytest.mark.asyncio
    async def test_achievement_unlocks_locked_goal(self, tracker, store, clock):
        set_goal(store, clock, 100, locked=True)
        store.add_balance("alice", 120)

        assert await tracker.evaluate("alice") is True
        assert store.get_goal("alice").locked is False

    @pytest.mark.asyncio
    async def test_new_goal_rearms_signal(self, tracker, store, clock, audit_storage):
        set_goal(store, clock, 10)
        store.add_balance("alice", 10)
        await tracker.evaluate("alice")

        set_goal(store, clock, 20)
        store.add_balance("alice", 10)
        assert await tracker.evaluate("alice") is True
        assert len(audit_storage.events_of_type(AuditEventType.GOAL_ACHIEVED)) == 2

    @pytest.mark.asyncio
    async def test_without_audit_logger(self, store, clock):
        """Achievement is still recorded when nothing listens."""
        tracker = GoalTracker(store, clock)
        set_goal(store, clock, 5)
        store.add_balance("alice", 5)
        assert await tracker.evaluate("alice") is True
        assert store.get_goal("alice").is_achieved
