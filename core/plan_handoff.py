"""Plan Hand-off

Once the dialogue decides it knows enough, the finished profile is handed to
the meal-building pipeline. The hand-off is fire-and-forget: the dialogue's
job ends when begin_plan returns.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from models.session import Profile

logger = logging.getLogger(__name__)


@dataclass
class PlanRequest:
    """Message sent to the meal-plan pipeline."""
    session_id: str
    profile: Dict[str, Any]
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "session_id": self.session_id,
            "timestamp": self.timestamp,
            "profile": self.profile,
        }


class PlanTrigger:
    """Interface for whatever builds the meal plan."""

    def begin_plan(self, session_id: str, profile: Profile) -> None:
        raise NotImplementedError


class RecordingPlanTrigger(PlanTrigger):
    """Keeps every hand-off in memory. Default for the demo and for tests."""

    def __init__(self):
        self.requests: List[PlanRequest] = []

    def begin_plan(self, session_id: str, profile: Profile) -> None:
        request = PlanRequest(session_id=session_id, profile=profile.to_dict())
        self.requests.append(request)
        logger.info(f"Plan requested: {request.request_id} for session {session_id}")
