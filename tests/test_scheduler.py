"""
Tests for the withdrawal time-lock state machine.
"""

from datetime import timedelta

import pytest

from savings_vault.ledger import (
    AlreadyExecutedError,
    InsufficientBalanceError,
    InvalidAmountError,
    NoRequestError,
    RequestAlreadyExistsError,
    TimeLockNotExpiredError,
    WithdrawalScheduler,
)
from savings_vault.models.account import WithdrawalState


WEEK = timedelta(days=7)


@pytest.fixture
def scheduler(store, clock) -> WithdrawalScheduler:
    return WithdrawalScheduler(store, WEEK, clock)


class TestRequest:
    """Tests for NO_REQUEST → PENDING."""

    def test_negative_delay_rejected(self, store, clock):
        with pytest.raises(ValueError):
            WithdrawalScheduler(store, timedelta(seconds=-1), clock)

    def test_request_sets_unlock_time(self, scheduler, store, start):
        store.add_balance("alice", 10)
        request = scheduler.request("alice", 4)

        assert request.unlock_time == start + WEEK
        assert request.requested_at == start
        assert scheduler.state("alice") == WithdrawalState.PENDING

    def test_request_does_not_reserve_funds(self, scheduler, store):
        store.add_balance("alice", 10)
        scheduler.request("alice", 10)
        assert store.get_balance("alice") == 10

    def test_request_over_balance(self, scheduler, store):
        store.add_balance("alice", 3)
        with pytest.raises(InsufficientBalanceError):
            scheduler.request("alice", 4)
        assert scheduler.state("alice") == WithdrawalState.NO_REQUEST

    def test_request_invalid_amount(self, scheduler, store):
        store.add_balance("alice", 3)
        with pytest.raises(InvalidAmountError):
            scheduler.request("alice", 0)

    def test_second_pending_request(self, scheduler, store):
        store.add_balance("alice", 10)
        scheduler.request("alice", 4)
        with pytest.raises(RequestAlreadyExistsError):
            scheduler.request("alice", 1)
        assert store.get_pending_withdrawal("alice").amount == 4


class TestExecute:
    """Tests for PENDING → EXECUTED."""

    def test_no_request(self, scheduler):
        with pytest.raises(NoRequestError):
            scheduler.check_executable("alice")

    def test_time_lock(self, scheduler, store, clock, start):
        store.add_balance("alice", 10)
        scheduler.request("alice", 4)

        clock.advance(WEEK - timedelta(seconds=1))
        with pytest.raises(TimeLockNotExpiredError) as exc_info:
            scheduler.check_executable("alice")
        assert exc_info.value.unlock_time == start + WEEK

        clock.advance(timedelta(seconds=1))
        assert scheduler.check_executable("alice").amount == 4

    def test_balance_rechecked_at_execution(self, scheduler, store, clock):
        store.add_balance("alice", 10)
        scheduler.request("alice", 8)
        store.subtract_balance("alice", 5)

        clock.advance(WEEK)
        with pytest.raises(InsufficientBalanceError):
            scheduler.complete("alice")
        assert store.get_balance("alice") == 5
        assert scheduler.state("alice") == WithdrawalState.PENDING

    def test_complete_then_already_executed(self, scheduler, store, clock, start):
        store.add_balance("alice", 10)
        scheduler.request("alice", 4)
        clock.advance(WEEK)

        assert scheduler.complete("alice") == 6
        assert scheduler.state("alice") == WithdrawalState.EXECUTED
        assert store.get_pending_withdrawal("alice").executed_at == start + WEEK

        with pytest.raises(AlreadyExecutedError):
            scheduler.complete("alice")
        assert store.get_balance("alice") == 6
        assert store.statistics().total_withdrawals_executed == 1

    def test_new_request_after_execution(self, scheduler, store, clock, start):
        """EXECUTED is cleared by the next request."""
        store.add_balance("alice", 10)
        scheduler.request("alice", 4)
        clock.advance(WEEK)
        scheduler.complete("alice")

        request = scheduler.request("alice", 6)
        assert request.unlock_time == start + WEEK + WEEK
        assert scheduler.state("alice") == WithdrawalState.PENDING

    def test_zero_delay_executes_immediately(self, store, clock):
        scheduler = WithdrawalScheduler(store, timedelta(0), clock)
        store.add_balance("alice", 2)
        scheduler.request("alice", 2)
        assert scheduler.complete("alice") == 0
