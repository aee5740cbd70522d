"""
In-memory engine state.

Four entities, each owned by exactly one check and each carrying its own
lock. The owning check holds the lock for the whole tick, so the
invariants below hold even if two ticks of the same check were ever to
run at once.

- ``Cursor``: highest source id already reported. Never decreases once set.
- ``StalenessWatermark``: last time new articles were observed.
- ``EscalationLadder``: highest failure level reported today.
- ``AlarmBudget``: port alarms sent today against a daily limit.

Nothing here is persisted. After a restart the cursor bootstraps from the
store and the watermark is re-read, so restarts never replay old alerts.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sentinel.core.timestamps import local_now


def _lock() -> threading.Lock:
    return threading.Lock()


@dataclass
class Cursor:
    last_seen_id: int | None = None
    lock: threading.Lock = field(default_factory=_lock, repr=False, compare=False)

    @property
    def is_bootstrapped(self) -> bool:
        return self.last_seen_id is not None


@dataclass
class StalenessWatermark:
    last_activity: datetime = field(default_factory=local_now)
    lock: threading.Lock = field(default_factory=_lock, repr=False, compare=False)


@dataclass
class EscalationLadder:
    highest_reported_level: int = 0
    lock: threading.Lock = field(default_factory=_lock, repr=False, compare=False)


@dataclass
class AlarmBudget:
    limit: int
    count_today: int = 0
    lock: threading.Lock = field(default_factory=_lock, repr=False, compare=False)

    @property
    def exhausted(self) -> bool:
        return self.count_today >= self.limit

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count_today, 0)


@dataclass
class EngineState:
    """Aggregate of all mutable engine state, injected into every check."""

    cursor: Cursor
    watermark: StalenessWatermark
    ladder: EscalationLadder
    budget: AlarmBudget

    @classmethod
    def fresh(cls, *, port_alarm_limit: int, started_at: datetime | None = None) -> EngineState:
        """State as it looks at process start."""
        return cls(
            cursor=Cursor(),
            watermark=StalenessWatermark(last_activity=started_at or local_now()),
            ladder=EscalationLadder(),
            budget=AlarmBudget(limit=port_alarm_limit),
        )

    def snapshot(self) -> dict[str, Any]:
        """Point-in-time view for logs and the CLI."""
        return {
            "cursor": self.cursor.last_seen_id,
            "last_activity": self.watermark.last_activity.isoformat(timespec="seconds"),
            "highest_reported_level": self.ladder.highest_reported_level,
            "port_alarms_today": self.budget.count_today,
            "port_alarm_limit": self.budget.limit,
        }
