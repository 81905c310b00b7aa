"""
Tests for AccountStore.
"""

from datetime import datetime, timedelta, timezone

import pytest

from savings_vault.ledger import (
    AlreadyLockedError,
    DuplicatePartnerError,
    InsufficientBalanceError,
    InvalidAmountError,
    NoGoalSetError,
    NoRequestError,
    RequestAlreadyExistsError,
)
from savings_vault.ledger.store import validate_amount
from savings_vault.models.account import SavingsGoal, WithdrawalRequest


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_goal(target: int = 100) -> SavingsGoal:
    return SavingsGoal(
        target_amount=target,
        deadline=NOW + timedelta(days=30),
        created_at=NOW,
    )


def make_request(amount: int = 5) -> WithdrawalRequest:
    return WithdrawalRequest(
        amount=amount,
        requested_at=NOW,
        unlock_time=NOW + timedelta(days=7),
    )


class TestValidateAmount:
    """Tests for amount validation."""

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5, "10", None])
    def test_rejects_non_positive_and_non_integers(self, amount):
        with pytest.raises(InvalidAmountError):
            validate_amount(amount)

    def test_accepts_positive_integer(self):
        assert validate_amount(7) == 7


class TestBalances:
    """Tests for balance mutation and the ledger total."""

    def test_unknown_account_reads_zero(self, store):
        assert store.get_balance("nobody") == 0
        assert store.exists("nobody") is False

    def test_add_and_subtract_track_total(self, store):
        store.add_balance("alice", 10)
        store.add_balance("bob", 5)
        assert store.subtract_balance("alice", 4) == 6

        assert store.statistics().total_balance == 11
        assert store.balance_sum() == 11

    def test_overdraw_changes_nothing(self, store):
        """A failed subtraction leaves balance and total untouched."""
        store.add_balance("alice", 3)
        with pytest.raises(InsufficientBalanceError) as exc_info:
            store.subtract_balance("alice", 4)

        assert exc_info.value.balance == 3
        assert exc_info.value.requested == 4
        assert store.get_balance("alice") == 3
        assert store.statistics().total_balance == 3

    def test_mark_funded_once(self, store):
        store.add_balance("alice", 1)
        assert store.mark_funded("alice") is True
        assert store.mark_funded("alice") is False
        assert store.statistics().total_accounts_ever_funded == 1
        assert store.funded_accounts() == ["alice"]

    def test_snapshot_is_a_copy(self, store):
        """Mutating a snapshot never reaches the store."""
        store.add_balance("alice", 10)
        store.add_partner("alice", "bob")
        snapshot = store.snapshot("alice")
        snapshot.partners.add("mallory")
        assert store.get_partners("alice") == ["bob"]


class TestGoals:
    """Tests for goal storage."""

    def test_lock_requires_goal(self, store):
        with pytest.raises(NoGoalSetError):
            store.lock_goal("alice")

    def test_lock_twice(self, store):
        store.set_goal("alice", make_goal())
        store.lock_goal("alice")
        with pytest.raises(AlreadyLockedError):
            store.lock_goal("alice")
        assert store.get_goal("alice").locked is True

    def test_set_goal_overwrites_locked_goal(self, store):
        store.set_goal("alice", make_goal(100))
        store.lock_goal("alice")
        store.set_goal("alice", make_goal(200))

        goal = store.get_goal("alice")
        assert goal.target_amount == 200
        assert goal.locked is False

    def test_get_goal_returns_copy(self, store):
        store.set_goal("alice", make_goal())
        store.get_goal("alice").locked = True
        assert store.get_goal("alice").locked is False

    def test_mark_goal_achieved_keeps_first_time(self, store):
        store.set_goal("alice", make_goal())
        store.mark_goal_achieved("alice", NOW)
        store.mark_goal_achieved("alice", NOW + timedelta(days=1))
        assert store.get_goal("alice").achieved_at == NOW


class TestWithdrawalSlot:
    """Tests for the single withdrawal request slot."""

    def test_second_unexecuted_request_rejected(self, store):
        store.set_pending_withdrawal("alice", make_request())
        with pytest.raises(RequestAlreadyExistsError):
            store.set_pending_withdrawal("alice", make_request())

    def test_executed_request_can_be_cleared(self, store):
        store.set_pending_withdrawal("alice", make_request())
        store.mark_withdrawal_executed("alice", NOW)
        assert store.statistics().total_withdrawals_executed == 1

        store.clear_pending_withdrawal("alice")
        assert store.get_pending_withdrawal("alice") is None

    def test_unexecuted_request_cannot_be_cleared(self, store):
        store.set_pending_withdrawal("alice", make_request())
        with pytest.raises(RequestAlreadyExistsError):
            store.clear_pending_withdrawal("alice")

    def test_mark_executed_without_request(self, store):
        with pytest.raises(NoRequestError):
            store.mark_withdrawal_executed("alice", NOW)


class TestPartners:
    """Tests for the partner set."""

    def test_partners_sorted_and_one_directional(self, store):
        store.add_partner("alice", "carol")
        store.add_partner("alice", "bob")
        assert store.get_partners("alice") == ["bob", "carol"]
        assert store.is_partner("alice", "bob") is True
        assert store.is_partner("bob", "alice") is False

    def test_duplicate_partner(self, store):
        store.add_partner("alice", "bob")
        with pytest.raises(DuplicatePartnerError):
            store.add_partner("alice", "bob")
