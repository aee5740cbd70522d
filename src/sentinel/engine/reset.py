"""Midnight reset of the per-day counters."""

from __future__ import annotations

from sentinel.engine.state import AlarmBudget, EscalationLadder
from sentinel.framework.logging import get_logger

log = get_logger(__name__)


class DayResetController:
    """Zeroes the escalation ladder and the port alarm budget.

    Idempotent, and independent of whether any other check ran today.
    """

    def __init__(self, ladder: EscalationLadder, budget: AlarmBudget) -> None:
        self._ladder = ladder
        self._budget = budget

    def reset(self) -> None:
        with self._ladder.lock:
            previous_level = self._ladder.highest_reported_level
            self._ladder.highest_reported_level = 0
        with self._budget.lock:
            previous_alarms = self._budget.count_today
            self._budget.count_today = 0
        log.info("reset.done", previous_level=previous_level, previous_port_alarms=previous_alarms)
