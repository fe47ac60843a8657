"""
Computation trace sink.

Every evaluated condition, rule, table and command is reported here. The
trace is purely observational: nothing in the engine reads it back.
Events are mirrored to the module logger at DEBUG level.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Kinds of trace events."""
    CONDITION = "CN"
    RULE = "RL"
    TABLE = "TB"
    COMMAND = "CM"


@dataclass(frozen=True)
class TraceEvent:
    """One traced computation step."""
    kind: EventType
    description: str
    result: Any = None


@dataclass
class OutputTracker:
    """Collects TraceEvents in the order they happen."""

    events: List[TraceEvent] = field(default_factory=list)

    def track(self, kind: EventType, description: str, result: Any = None) -> None:
        event = TraceEvent(kind, description, result)
        self.events.append(event)
        logger.debug("[%s] %s", kind.value, description)

    def of_kind(self, kind: EventType) -> List[TraceEvent]:
        return [e for e in self.events if e.kind is kind]

    def last(self) -> Optional[TraceEvent]:
        return self.events[-1] if self.events else None

    def clear(self) -> None:
        self.events.clear()
