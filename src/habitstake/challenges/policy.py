"""Points policy handed to the challenge services at construction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from habitstake.config import Settings


@dataclass(frozen=True)
class ChallengePolicy:
    reward_default: int = 50
    stake_minimum: int = 10
    challenge_duration_default: timedelta = timedelta(days=7)
    signup_bonus: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> ChallengePolicy:
        return cls(
            reward_default=settings.reward_default,
            stake_minimum=settings.stake_minimum,
            challenge_duration_default=timedelta(days=settings.challenge_duration_default_days),
            signup_bonus=settings.signup_bonus,
        )
