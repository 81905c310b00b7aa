"""
Tests for BackgroundLoop, the shared loop that sync callers submit to.

Each Streamlit session runs its script on its own thread, so these tests
drive one ledger from several plain threads.
"""

import asyncio
import threading
from datetime import timedelta

import pytest

from savings_vault.audit import AuditLogger
from savings_vault.ledger import LedgerService, NoRequestError
from savings_vault.runner import BackgroundLoop


WEEK = timedelta(days=7)


@pytest.fixture
def runner():
    loop = BackgroundLoop(name="test-loop")
    yield loop
    loop.close()


@pytest.fixture
def shared_ledger(ledger_settings, yielding_transfer, yielding_storage, clock) -> LedgerService:
    """A ledger built outside any event loop, as the app builds it."""
    return LedgerService(
        settings=ledger_settings,
        transfer=yielding_transfer,
        audit_logger=AuditLogger(yielding_storage),
        clock=clock,
    )


def run_in_thread(target) -> list:
    """Run target on a fresh thread; return anything it raised."""
    raised = []

    def body():
        try:
            target()
        except Exception as e:
            raised.append(e)

    thread = threading.Thread(target=body)
    thread.start()
    thread.join(timeout=10)
    assert not thread.is_alive()
    return raised


class TestBackgroundLoop:
    """Tests for running ledger calls from sync threads."""

    def test_runs_coroutine(self, runner):
        async def answer():
            return 42

        assert runner.run(answer()) == 42

    def test_contended_lock_survives_across_threads(self, runner, shared_ledger, clock):
        """Two sessions racing on one account, one after another, both succeed."""
        ledger = shared_ledger
        runner.run(ledger.deposit("alice", 20))

        async def execute_and_deposit():
            return await asyncio.gather(
                ledger.execute_withdrawal("alice"),
                ledger.deposit("alice", 1),
            )

        results = []
        for amount in (6, 5):
            runner.run(ledger.request_withdrawal("alice", amount))
            clock.advance(WEEK)
            raised = run_in_thread(lambda: results.append(runner.run(execute_and_deposit())))
            assert raised == []

        assert [paid for paid, _ in results] == [6, 5]
        assert ledger.get_balance("alice") == 11
        assert ledger.get_statistics().total_withdrawals_executed == 2

    def test_ledger_errors_propagate(self, runner, ledger):
        with pytest.raises(NoRequestError):
            runner.run(ledger.execute_withdrawal("bob"))

    def test_closed_loop_refuses_work(self, runner):
        async def answer():
            return 42

        runner.close()

        assert runner.running is False
        with pytest.raises(RuntimeError):
            runner.run(answer())
        runner.close()
