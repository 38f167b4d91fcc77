"""
Workflow events - A structured side channel describing registration progress.

Each orchestrator step records one or more WorkflowEvent entries (step name,
outcome, remote ids involved). The same information is logged, but tests and
callers read the EventLog instead of parsing log text.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

OK = "ok"
SKIPPED = "skipped"
NOT_FOUND = "not_found"
SOFT_ERROR = "soft_error"
ERROR = "error"


@dataclass
class WorkflowEvent:
    step: str
    outcome: str
    ids: Dict[str, Any] = field(default_factory=dict)
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "outcome": self.outcome,
            "ids": dict(self.ids),
            "detail": self.detail,
        }


class EventLog:
    """Ordered list of WorkflowEvents with a few lookup helpers."""

    def __init__(self):
        self.events: List[WorkflowEvent] = []

    def emit(self, step: str, outcome: str, detail: Optional[str] = None, **ids) -> WorkflowEvent:
        event = WorkflowEvent(step=step, outcome=outcome, ids=ids, detail=detail)
        self.events.append(event)

        level = logging.WARNING if outcome in (SOFT_ERROR, ERROR) else logging.INFO
        logger.log(level, "%s: %s %s%s", step, outcome, ids or "", f" ({detail})" if detail else "")
        return event

    def steps(self) -> List[str]:
        return [e.step for e in self.events]

    def find(self, step: str) -> Optional[WorkflowEvent]:
        for event in self.events:
            if event.step == step:
                return event
        return None

    def outcome_of(self, step: str) -> Optional[str]:
        event = self.find(step)
        return event.outcome if event else None

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.events]

    def __len__(self):
        return len(self.events)

    def __iter__(self):
        return iter(self.events)
