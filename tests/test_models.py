"""Tests for session state models, the output guard and the session service."""
import pytest

from core.observability import DialogueMetrics, StepTrace, Tracer
from core.output_guard import (
    SUPPORTIVE_PACE_OPTIONS,
    SUPPORTIVE_SUMMARY,
    plan_summary,
    public_profile,
    public_suggestions,
)
from models.session import (
    ConversationHistory,
    DataNeeded,
    MessageEvent,
    Profile,
    ProfileStore,
    SuggestionsEvent,
    Turn,
)
from services.session_service import InMemorySessionService


class TestProfileStore:

    def test_defaults(self):
        profile = ProfileStore().get()
        assert profile.goal is None
        assert profile.restrictions == []
        assert profile.hide_numbers is False
        assert profile.target_calories is None

    def test_set_and_get(self):
        store = ProfileStore()
        store.set("daily_steps", 8500)
        assert store.get().daily_steps == 8500

    def test_unknown_field(self):
        with pytest.raises(KeyError):
            ProfileStore().set("weight_kg", 70)

    def test_type_checked(self):
        store = ProfileStore()
        with pytest.raises(TypeError):
            store.set("age", "thirty")
        with pytest.raises(TypeError):
            store.set("daily_steps", True)
        with pytest.raises(TypeError):
            store.set("restrictions", None)

    def test_hide_numbers_cannot_be_cleared(self):
        store = ProfileStore()
        store.set("hide_numbers", True)
        store.set("hide_numbers", False)
        assert store.get().hide_numbers is True

    def test_get_returns_snapshot(self):
        store = ProfileStore()
        store.append("restrictions", "vegan")
        snapshot = store.get()
        snapshot.restrictions.append("gluten-free")
        snapshot.goal = "maintain"
        assert store.get().restrictions == ["vegan"]
        assert store.get().goal is None

    def test_append_only_to_lists(self):
        with pytest.raises(KeyError):
            ProfileStore().append("goal", "maintain")


class TestDataNeeded:

    def test_starts_all_needed(self):
        assert DataNeeded().missing == ["goal", "activity", "demographics"]

    def test_clear(self):
        needed = DataNeeded()
        needed.clear("activity")
        assert needed.activity is False
        assert needed.missing == ["goal", "demographics"]

    def test_flags_never_reopen(self):
        needed = DataNeeded()
        needed.clear("goal")
        needed.goal = True
        assert needed.goal is False

    def test_unknown_flag(self):
        with pytest.raises(KeyError):
            DataNeeded().clear("sleep")


class TestConversationHistory:

    def test_recent_window(self):
        history = ConversationHistory()
        for i in range(7):
            history.append(Turn(user_text=f"u{i}", provider_reply=f"h{i}"))
        recent = history.recent(5)
        assert [t.user_text for t in recent] == ["u2", "u3", "u4", "u5", "u6"]
        assert len(history) == 7
        assert history.latest.user_text == "u6"

    def test_empty(self):
        history = ConversationHistory()
        assert history.latest is None
        assert history.recent(5) == []


class TestEvents:

    def test_message_event(self):
        assert MessageEvent("assistant", "Hi!").to_dict() == {
            "type": "message", "sender": "assistant", "text": "Hi!"
        }

    def test_suggestions_event(self):
        assert SuggestionsEvent(["A", "B"]).to_dict() == {"type": "suggestions", "options": ["A", "B"]}


class TestOutputGuard:
    """Numeric targets never reach users in eating-disorder recovery."""

    def numeric_profile(self, hide_numbers: bool) -> Profile:
        return Profile(
            condition="NAFLD", weight_pace="0.5kg", daily_steps=8500,
            target_calories=1550, macros={"carbs": 40, "protein": 30, "fat": 30},
            hide_numbers=hide_numbers,
        )

    def test_summary_with_numbers(self):
        summary = plan_summary(self.numeric_profile(hide_numbers=False))
        assert "Weight goal: 0.5kg/week" in summary
        assert "Daily calories: ~1550" in summary
        assert "40% carbs" in summary

    def test_summary_hides_numbers(self):
        summary = plan_summary(self.numeric_profile(hide_numbers=True))
        assert summary == SUPPORTIVE_SUMMARY
        assert not any(ch.isdigit() for ch in summary)

    def test_public_profile_redacts_targets(self):
        data = public_profile(self.numeric_profile(hide_numbers=True))
        assert "target_calories" not in data
        assert "weight_pace" not in data
        assert "macros" not in data
        assert data["condition"] == "NAFLD"

    def test_public_profile_untouched_otherwise(self):
        data = public_profile(self.numeric_profile(hide_numbers=False))
        assert data["target_calories"] == 1550

    def test_suggestions_with_weight_figures_replaced(self):
        pace = ["Yes, 0.5kg per week", "Maybe 0.75kg per week", "I'd still prefer 1kg per week"]
        assert public_suggestions(pace, self.numeric_profile(hide_numbers=True)) == SUPPORTIVE_PACE_OPTIONS
        assert public_suggestions(pace, self.numeric_profile(hide_numbers=False)) == pace

    def test_step_suggestions_kept(self):
        steps = ["About 5,000 steps", "8,000-10,000 steps", "Over 12,000 steps"]
        assert public_suggestions(steps, self.numeric_profile(hide_numbers=True)) == steps


class TestSessionService:

    def test_sessions_are_isolated(self):
        service = InMemorySessionService()
        a = service.create_session("alice")
        b = service.create_session("bob")
        a.state.profile.set("condition", "NAFLD")
        assert b.state.profile.get().condition is None
        assert a.state is not b.state

    def test_list_and_delete(self):
        service = InMemorySessionService()
        a = service.create_session("alice")
        service.create_session("bob")
        assert [s.user_id for s in service.list_sessions("alice")] == ["alice"]
        assert service.delete_session(a.session_id) is True
        assert service.get_session(a.session_id) is None
        assert service.delete_session(a.session_id) is False

    def test_duplicate_id_rejected(self):
        service = InMemorySessionService()
        service.create_session("alice", session_id="s1")
        with pytest.raises(ValueError):
            service.create_session("bob", session_id="s1")


class TestObservability:

    def test_tracer_records_latency_and_failures(self):
        local = DialogueMetrics()
        trace = StepTrace(step_name="ResponseProvider")
        trace.complete(success=False, error="timeout")
        local.record(trace)
        assert local.failed_steps == 1
        assert "ResponseProvider" in local.step_latencies

    def test_fallback_rate(self):
        local = DialogueMetrics()
        assert local.fallback_rate == 0.0
        for _ in range(4):
            local.record_turn()
        local.record_fallback()
        assert local.summary()["fallback_rate"] == "25.0%"

    def test_tracer_does_not_swallow_errors(self):
        with pytest.raises(RuntimeError):
            with Tracer("PlanHandoff"):
                raise RuntimeError("boom")
