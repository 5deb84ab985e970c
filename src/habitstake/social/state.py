"""Social challenge lifecycle.

State progression: open -> closed -> settled
``open`` while end_date has not passed, ``closed`` once it has, ``settled``
after payout. Transitions are validated: no skipping states or going backwards.
"""

from __future__ import annotations

import enum
from datetime import datetime

from habitstake.db.models import Challenge


class SocialState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    SETTLED = "settled"


VALID_TRANSITIONS: dict[SocialState, list[SocialState]] = {
    SocialState.OPEN: [SocialState.CLOSED],
    SocialState.CLOSED: [SocialState.SETTLED],
    SocialState.SETTLED: [],
}


def state_of(challenge: Challenge, now: datetime) -> SocialState:
    """Derive the lifecycle state of a social challenge at ``now``."""
    if challenge.is_settled:
        return SocialState.SETTLED
    if challenge.end_date < now:
        return SocialState.CLOSED
    return SocialState.OPEN


def validate_transition(current: SocialState, target: SocialState) -> None:
    """Validate a state transition. Raises ValueError if invalid."""
    valid = VALID_TRANSITIONS.get(current, [])
    if target not in valid:
        raise ValueError(
            f"Invalid transition: {current.value} -> {target.value}. "
            f"Valid transitions: {[s.value for s in valid]}"
        )
