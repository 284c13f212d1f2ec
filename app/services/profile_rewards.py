from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from app.models import Profile


@dataclass(frozen=True)
class ProfileProgress:
    total_points: int
    streak_days: int
    level_before: int
    level_after: int

    @property
    def leveled_up(self) -> bool:
        return self.level_after > self.level_before


def level_for_points(total_points: int) -> int:
    return math.floor(math.sqrt(max(total_points, 0) / 100)) + 1


def next_streak(*, current: int, last_completion_date: date | None, completed_on: date) -> int:
    if last_completion_date is None:
        return 1
    gap = (completed_on - last_completion_date).days
    if gap <= 0:
        return max(current, 1)
    if gap == 1:
        return current + 1
    return 1


def apply_reward_to_profile(profile: Profile, *, points_awarded: int, completed_on: date) -> ProfileProgress:
    level_before = profile.level
    profile.total_points = profile.total_points + points_awarded
    profile.streak_days = next_streak(
        current=profile.streak_days,
        last_completion_date=profile.last_completion_date,
        completed_on=completed_on,
    )
    if profile.last_completion_date is None or completed_on > profile.last_completion_date:
        profile.last_completion_date = completed_on
    profile.level = max(level_before, level_for_points(profile.total_points))
    return ProfileProgress(
        total_points=profile.total_points,
        streak_days=profile.streak_days,
        level_before=level_before,
        level_after=profile.level,
    )
