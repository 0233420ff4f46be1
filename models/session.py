from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
import logging

logger = logging.getLogger(__name__)

# Known values written by the extraction rules
GOALS = ("lose_weight", "maintain", "build_muscle", "eat_healthier")
CONDITIONS = ("NAFLD", "diabetes", "ED_recovery")
WEIGHT_PACES = ("0.5kg", "0.75kg", "1kg")
ACTIVITY_LEVELS = ("sedentary", "active")


class SessionPhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"            # waiting for the user
    PROCESSING = "processing"    # one turn in flight
    EVALUATED = "evaluated"
    FINALIZING = "finalizing"    # deriving targets + plan hand-off
    TERMINAL = "terminal"


@dataclass
class Profile:
    """Everything learned about the user in this conversation."""
    goal: Optional[str] = None
    condition: Optional[str] = None         # at most one at a time
    weight_pace: Optional[str] = None       # per week
    activity_level: Optional[str] = None
    daily_steps: Optional[int] = None
    age: Optional[int] = None

    # Mention order, duplicates kept
    restrictions: List[str] = field(default_factory=list)
    preferences: List[str] = field(default_factory=list)

    # Safety: set on eating-disorder recovery, never unset for the session
    hide_numbers: bool = False

    # Derived (filled in by nutrition derivation)
    target_calories: Optional[int] = None
    macros: Optional[Dict[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goal": self.goal,
            "condition": self.condition,
            "weight_pace": self.weight_pace,
            "activity_level": self.activity_level,
            "daily_steps": self.daily_steps,
            "age": self.age,
            "restrictions": list(self.restrictions),
            "preferences": list(self.preferences),
            "hide_numbers": self.hide_numbers,
            "target_calories": self.target_calories,
            "macros": dict(self.macros) if self.macros else None,
        }


_FIELD_TYPES = {
    "goal": str,
    "condition": str,
    "weight_pace": str,
    "activity_level": str,
    "daily_steps": int,
    "age": int,
    "restrictions": list,
    "preferences": list,
    "hide_numbers": bool,
    "target_calories": int,
    "macros": dict,
}
_NOT_NULLABLE = {"restrictions", "preferences", "hide_numbers"}
_LIST_FIELDS = {"restrictions", "preferences"}


class ProfileStore:
    """Mutable holder for one session's Profile.

    Only checks types; deciding what is correct is the extraction rules' job.
    """

    def __init__(self, profile: Optional[Profile] = None):
        self._profile = profile or Profile()

    def get(self) -> Profile:
        """Snapshot copy, so callers cannot mutate around the store."""
        p = self._profile
        return replace(
            p,
            restrictions=list(p.restrictions),
            preferences=list(p.preferences),
            macros=dict(p.macros) if p.macros else None,
        )

    def set(self, name: str, value: Any):
        self._check(name, value)
        if name == "hide_numbers" and self._profile.hide_numbers and not value:
            logger.warning("Ignoring attempt to clear hide_numbers; it stays on for the session")
            return
        setattr(self._profile, name, value)
        logger.debug(f"✓ Profile {name} = {value!r}")

    def append(self, name: str, value: str):
        if name not in _LIST_FIELDS:
            raise KeyError(f"Profile field '{name}' is not a list")
        if not isinstance(value, str):
            raise TypeError(f"{name} entries must be str, got {type(value).__name__}")
        getattr(self._profile, name).append(value)
        logger.debug(f"✓ Profile {name} += {value!r}")

    @staticmethod
    def _check(name: str, value: Any):
        expected = _FIELD_TYPES.get(name)
        if expected is None:
            raise KeyError(f"Unknown profile field '{name}'")
        if value is None:
            if name in _NOT_NULLABLE:
                raise TypeError(f"Profile field '{name}' cannot be None")
            return
        # bool is an int subclass; steps/age/calories must be real ints
        if expected is int and isinstance(value, bool):
            raise TypeError(f"Profile field '{name}' expects int, got bool")
        if not isinstance(value, expected):
            raise TypeError(
                f"Profile field '{name}' expects {expected.__name__}, got {type(value).__name__}"
            )


@dataclass
class DataNeeded:
    """What we still need to learn. Flags only ever go from True to False."""
    goal: bool = True
    activity: bool = True
    demographics: bool = True

    def __setattr__(self, name: str, value: Any):
        if name in self.__dict__ and self.__dict__[name] is False and value:
            logger.warning(f"DataNeeded.{name} already satisfied; not reopening it")
            return
        super().__setattr__(name, value)

    def clear(self, name: str):
        if name not in {f.name for f in fields(self)}:
            raise KeyError(f"Unknown DataNeeded flag '{name}'")
        setattr(self, name, False)

    @property
    def missing(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]


@dataclass
class Turn:
    """One exchange: what the user said and what Hannah replied."""
    user_text: str
    provider_reply: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, str]:
        return {
            "user_text": self.user_text,
            "provider_reply": self.provider_reply,
            "timestamp": self.timestamp,
        }


class ConversationHistory:
    """Append-only record of turns."""

    def __init__(self):
        self._turns: List[Turn] = []

    def append(self, turn: Turn):
        self._turns.append(turn)

    def recent(self, n: int) -> List[Turn]:
        if n <= 0:
            return []
        return list(self._turns[-n:])

    @property
    def latest(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self):
        return iter(list(self._turns))


@dataclass
class ConversationState:
    """The flowing state of one chat session."""
    profile: ProfileStore = field(default_factory=ProfileStore)
    data_needed: DataNeeded = field(default_factory=DataNeeded)
    history: ConversationHistory = field(default_factory=ConversationHistory)
    message_count: int = 0


# === Outbound presentation events ===

@dataclass
class MessageEvent:
    sender: str  # "assistant" or "user"
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "message", "sender": self.sender, "text": self.text}


@dataclass
class SuggestionsEvent:
    options: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "suggestions", "options": list(self.options)}
