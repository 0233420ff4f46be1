"""Completion Policy

Decides after every turn whether Hannah keeps asking, wraps up, or starts
building the meal plan. Lenient on purpose: a conversation that never
converges is still handed off after WRAP_UP_AFTER_MESSAGES + 1 user turns.
"""
import logging
from enum import Enum

from config.settings import PROCEED_AFTER_MESSAGES, WRAP_UP_AFTER_MESSAGES
from models.session import Profile

logger = logging.getLogger(__name__)


class Decision(Enum):
    CONTINUE = "continue"
    WRAP_UP = "wrap_up"    # stop asking, build with what we have
    PROCEED = "proceed"    # derive targets + hand off


def has_enough_info(profile: Profile) -> bool:
    """A goal, a condition or a weight pace is enough to plan around."""
    return bool(profile.goal or profile.condition or profile.weight_pace)


def evaluate(profile: Profile, message_count: int,
             proceed_after: int = PROCEED_AFTER_MESSAGES,
             wrap_up_after: int = WRAP_UP_AFTER_MESSAGES) -> Decision:
    if has_enough_info(profile) and message_count > proceed_after:
        decision = Decision.PROCEED
    elif message_count > wrap_up_after:
        decision = Decision.WRAP_UP
    else:
        decision = Decision.CONTINUE
    logger.debug(f"Completion policy at message {message_count}: {decision.value}")
    return decision
