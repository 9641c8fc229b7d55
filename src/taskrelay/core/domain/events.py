"""Progress event emitted for each task lifecycle transition."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from taskrelay.core.domain.enums import ProgressEventType
from taskrelay.core.utils.time import utc_now


@dataclass(frozen=True)
class ProgressEvent:
    """A task lifecycle event on the progress boundary.

    Attributes:
        event_type: started, succeeded, failed or confirmation_required.
        capability_name: Capability the event refers to.
        session_id: Session the plan runs in.
        ordinal: Task position in the plan, when known.
        details: Output preview or error detail.
        timestamp: When the transition happened.
    """

    event_type: ProgressEventType
    capability_name: str
    session_id: str
    ordinal: int | None = None
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "capability_name": self.capability_name,
            "session_id": self.session_id,
            "ordinal": self.ordinal,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }
