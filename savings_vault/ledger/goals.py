"""
Goal Tracker

Decides whether a balance increase has met the account's savings goal.

POLICY:
- Reaching the target unlocks the goal, even if the account locked it.
  Savings are meant to be released once the goal is met.
- GoalAchieved is signalled once per goal, on the deposit that first
  reaches the target. Setting a new goal re-arms the signal.
- The deadline is advisory. Nothing happens when it passes.
"""

from typing import Optional
from uuid import UUID

from savings_vault.audit import AuditLogger
from savings_vault.ledger.clock import Clock
from savings_vault.ledger.store import AccountStore


class GoalTracker:
    """
    Evaluates goals after balance increases.

    Args:
        store: Account records
        clock: Source of the achievement timestamp
        audit_logger: Event sink for GoalAchieved. If None, achievement
                      is still recorded on the goal but not announced.
    """

    def __init__(
        self,
        store: AccountStore,
        clock: Clock,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._clock = clock
        self._audit_logger = audit_logger

    async def evaluate(
        self,
        account_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Check account_id's goal against its balance.

        Returns:
            True if this evaluation achieved the goal (and signalled it)
        """
        goal = self._store.get_goal(account_id)
        if goal is None or goal.target_amount <= 0:
            return False

        balance = self._store.get_balance(account_id)
        if balance < goal.target_amount:
            return False

        if goal.locked:
            self._store.unlock_goal(account_id)

        if goal.is_achieved:
            return False

        self._store.mark_goal_achieved(account_id, self._clock.now())

        if self._audit_logger:
            await self._audit_logger.log_goal_achieved(
                account_id=account_id,
                target_amount=goal.target_amount,
                balance=balance,
                correlation_id=correlation_id,
            )
        return True
