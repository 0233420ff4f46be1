"""Hannah - Conversational Profile Builder

Drives the getting-to-know-you chat that precedes meal planning:
each user turn goes through the response provider (or a deterministic
fallback), profile extraction, and the completion policy, until Hannah knows
enough (or has asked enough) to hand a finished profile to the meal-plan
pipeline.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from agents.intake_agent import IntakeAgent
from agents.suggestion_agent import suggest
from core.observability import Tracer, metrics, get_metrics_summary
from core.output_guard import plan_summary, public_profile, public_suggestions
from core.plan_handoff import PlanTrigger, RecordingPlanTrigger
from models.session import MessageEvent, Profile, SessionPhase, SuggestionsEvent
from services.completion_policy import Decision, evaluate
from services.response_provider import GeminiResponseProvider, ResponseProvider
from services.session_service import InMemorySessionService
from tools.nutrition_targets import derive
from tools.profile_extraction import extract

logger = logging.getLogger(__name__)

OPENING_MESSAGE = "Hi! I'm Hannah. I can help you plan your meals for the week. What brings you here today?"
OPENING_SUGGESTIONS = [
    "I want to lose some weight",
    "I have a health condition",
    "Just want to eat healthier",
]
REPROMPT_MESSAGE = "I didn't catch that - could you tell me a little about what you're hoping for?"
WRAP_UP_MESSAGE = "I think I have enough to get started! Let me create your meal plan..."
BUILDING_MESSAGE = "Let me start adding meals to your plan..."
CLOSED_MESSAGE = "Your meal plan is already on its way! Feel free to swap any meals you don't like."
SKIP_MESSAGE = ("No problem! Feel free to drag meals from the categories above to build your plan. "
                "I'm here if you need me!")


@dataclass
class TurnResult:
    """What one user turn produced."""
    reply: str
    suggestions: List[str] = field(default_factory=list)
    done: bool = False
    accepted: bool = True
    decision: Optional[Decision] = None
    used_fallback: bool = False
    events: List[object] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "reply": self.reply,
            "suggestions": list(self.suggestions),
            "done": self.done,
            "accepted": self.accepted,
            "decision": self.decision.value if self.decision else None,
            "used_fallback": self.used_fallback,
            "events": [e.to_dict() for e in self.events],
        }


class HannahSystem:
    """
    ORCHESTRATOR: owns one conversation session end to end.

    State machine:
        IDLE → ACTIVE (opening message) → PROCESSING (user turn) → EVALUATED
        → ACTIVE (keep chatting) | FINALIZING (derive targets, hand off) → TERMINAL

    Attributes:
        session: Session record (id, phase, ConversationState) in the session service.
        intake: Gets Hannah's reply from the provider, or the fallback.
        plan_trigger: Receives the finished profile.
        on_event: Optional presentation callback, called with event dicts.
    """

    def __init__(self, user_id: str = "default_user",
                 provider: Optional[ResponseProvider] = None,
                 plan_trigger: Optional[PlanTrigger] = None,
                 session_service: Optional[InMemorySessionService] = None,
                 on_event: Optional[Callable[[dict], None]] = None):
        self.session_service = session_service or InMemorySessionService()
        self.session = self.session_service.create_session(user_id)
        self.session_id = self.session.session_id

        self.intake = IntakeAgent(provider if provider is not None else GeminiResponseProvider())
        self.plan_trigger = plan_trigger or RecordingPlanTrigger()
        self.on_event = on_event
        self.abandoned = False

        # One turn at a time per session
        self._lock = asyncio.Lock()

    # === Read-only views ===

    @property
    def phase(self) -> SessionPhase:
        return self.session.phase

    @property
    def state(self):
        return self.session.state

    @property
    def profile(self) -> Profile:
        return self.session.state.profile.get()

    @property
    def done(self) -> bool:
        return self.session.phase == SessionPhase.TERMINAL

    def public_profile(self) -> dict:
        return public_profile(self.profile)

    def get_metrics(self) -> dict:
        return get_metrics_summary()

    # === Session lifecycle ===

    def start(self) -> List[object]:
        """Send the opening message. No extraction happens here."""
        if self.phase != SessionPhase.IDLE:
            logger.debug(f"Session {self.session_id} already started")
            return []
        events = [
            MessageEvent("assistant", OPENING_MESSAGE),
            SuggestionsEvent(list(OPENING_SUGGESTIONS)),
        ]
        self._set_phase(SessionPhase.ACTIVE)
        self._emit(events)
        return events

    async def process(self, user_text: str) -> TurnResult:
        """Run one user turn through provider → extraction → completion policy."""
        async with self._lock:
            if self.phase == SessionPhase.TERMINAL:
                closing = SKIP_MESSAGE if self.abandoned else CLOSED_MESSAGE
                events = [MessageEvent("assistant", closing)]
                self._emit(events)
                return TurnResult(reply=closing, done=True, accepted=False, events=events)

            events = self.start() if self.phase == SessionPhase.IDLE else []

            text = (user_text or "").strip()
            if not text:
                metrics.record_rejected_input()
                reprompt = [MessageEvent("assistant", REPROMPT_MESSAGE)]
                self._emit(reprompt)
                return TurnResult(reply=REPROMPT_MESSAGE, accepted=False, events=events + reprompt)

            return await self._run_turn(text, events)

    def abandon(self) -> List[object]:
        """User skipped the chat. Drop everything learned in this session."""
        events = [MessageEvent("assistant", SKIP_MESSAGE)]
        self.abandoned = True
        self._set_phase(SessionPhase.TERMINAL)
        self.session_service.delete_session(self.session_id)
        self._emit(events)
        return events

    # === Turn pipeline ===

    async def _run_turn(self, text: str, events: List[object]) -> TurnResult:
        state = self.session.state
        turn_events = [MessageEvent("user", text)]
        state.message_count += 1
        metrics.record_turn()
        self._set_phase(SessionPhase.PROCESSING)

        reply, used_fallback = await self.intake.reply(text, state)
        turn_events.append(MessageEvent("assistant", reply))

        extract(text, reply, state)
        decision = evaluate(state.profile.get(), state.message_count)
        self._set_phase(SessionPhase.EVALUATED)

        if decision is Decision.CONTINUE:
            suggestions = public_suggestions(
                suggest(state.history, state.data_needed, state.message_count),
                state.profile.get(),
            )
            if suggestions:
                turn_events.append(SuggestionsEvent(suggestions))
            self._set_phase(SessionPhase.ACTIVE)
            self._emit(turn_events)
            return TurnResult(reply=reply, suggestions=suggestions, decision=decision,
                              used_fallback=used_fallback, events=events + turn_events)

        if decision is Decision.WRAP_UP:
            logger.info(f"Session {self.session_id}: wrapping up after {state.message_count} messages")
            turn_events.append(MessageEvent("assistant", WRAP_UP_MESSAGE))

        turn_events.extend(self._finalize())
        self._emit(turn_events)
        return TurnResult(reply=reply, done=True, decision=decision,
                          used_fallback=used_fallback, events=events + turn_events)

    def _finalize(self) -> List[object]:
        """Derive targets, show the (guarded) summary, hand off the plan."""
        self._set_phase(SessionPhase.FINALIZING)
        store = self.session.state.profile

        with Tracer("NutritionDerivation"):
            targets = derive(store.get())
        store.set("target_calories", targets.target_calories)
        store.set("macros", targets.macros)
        profile = store.get()

        events = [
            MessageEvent("assistant", plan_summary(profile)),
            MessageEvent("assistant", BUILDING_MESSAGE),
        ]

        try:
            with Tracer("PlanHandoff", self.session_id):
                self.plan_trigger.begin_plan(self.session_id, profile)
            metrics.record_plan_started()
        except Exception as e:
            # The hand-off is fire-and-forget; the conversation is over either way
            logger.error(f"Plan hand-off failed for session {self.session_id}: {e}")

        self._set_phase(SessionPhase.TERMINAL)
        return events

    def _set_phase(self, phase: SessionPhase):
        logger.debug(f"Session {self.session_id}: {self.session.phase.value} → {phase.value}")
        self.session.phase = phase
        self.session.touch()

    def _emit(self, events: List[object]):
        if self.on_event is None:
            return
        for event in events:
            self.on_event(event.to_dict())


def _print_event(event: dict):
    if event["type"] == "message" and event["sender"] == "assistant":
        print(f"Hannah: {event['text']}")
    elif event["type"] == "suggestions":
        for i, option in enumerate(event["options"], 1):
            print(f"   [{i}] {option}")


async def _console():
    last_options: List[str] = []

    def remember(event: dict):
        nonlocal last_options
        if event["type"] == "suggestions":
            last_options = event["options"]
        _print_event(event)

    hannah = HannahSystem(on_event=remember)

    print("=== Hannah Meal Planning Chat ===")
    print("Type a number to pick a suggestion, 'skip' to plan manually, 'exit' to quit.\n")
    hannah.start()

    while not hannah.done:
        user_input = input("\nYou: ").strip()
        if user_input.lower() in ["exit", "quit"]:
            print("Hannah: Take care! Goodbye.")
            return
        if user_input.lower() == "skip":
            hannah.abandon()
            return
        if user_input.isdigit() and 1 <= int(user_input) <= len(last_options):
            user_input = last_options[int(user_input) - 1]
        last_options = []
        await hannah.process(user_input)

    print(f"\n[Plan hand-off] {hannah.public_profile()}")
    print(f"[Metrics] {hannah.get_metrics()}")


def main():
    asyncio.run(_console())


if __name__ == "__main__":
    main()
