"""Stateful alert-evaluation engine."""

from sentinel.engine.cursor import CursorOutcome, CursorStatus, CursorTracker
from sentinel.engine.escalation import EscalationMonitor, FailureThresholds
from sentinel.engine.health_report import DailyHealthReport, ServiceInspector
from sentinel.engine.monitor import CHECK_NAMES, Monitor, build_notifier
from sentinel.engine.ports import PortConnectivityCheck, ScanOutcome, ScanStatus
from sentinel.engine.reset import DayResetController
from sentinel.engine.staleness import StalenessDetector, StalenessOutcome, StalenessStatus
from sentinel.engine.state import AlarmBudget, Cursor, EngineState, EscalationLadder, StalenessWatermark

__all__ = [
    "AlarmBudget",
    "CHECK_NAMES",
    "Cursor",
    "CursorOutcome",
    "CursorStatus",
    "CursorTracker",
    "DailyHealthReport",
    "DayResetController",
    "EngineState",
    "EscalationLadder",
    "EscalationMonitor",
    "FailureThresholds",
    "Monitor",
    "PortConnectivityCheck",
    "ScanOutcome",
    "ScanStatus",
    "ServiceInspector",
    "StalenessDetector",
    "StalenessOutcome",
    "StalenessStatus",
    "StalenessWatermark",
    "build_notifier",
]
