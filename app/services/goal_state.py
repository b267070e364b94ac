"""Goal state calculator - pure projections of a goal's completion history."""
from datetime import date, datetime, timedelta
from typing import Iterable

from app.models.goal import Goal, GoalState


def weekday_index(day: date) -> int:
    """Weekday index with 0 = Sunday, 6 = Saturday."""
    return day.isoweekday() % 7


def days_since_created(goal: Goal, now: datetime) -> int:
    """Whole days elapsed since the goal was created."""
    return (now - goal.created_at).days


def required_completions(goal: Goal) -> int:
    """
    Number of due occurrences expected over the goal's full duration.

    Example:
        A Mon/Wed/Fri goal running 60 days expects floor(60 / 7 * 3) = 25.
    """
    return goal.duration * len(goal.selected_days) // 7


def calculate_state(goal: Goal, now: datetime) -> GoalState:
    """
    Derive the lifecycle state of a goal.

    Completion is checked before expiry, so a goal that reaches its target on
    its final day is completed rather than inactive.
    """
    if len(goal.completed_dates) >= required_completions(goal):
        return GoalState.COMPLETED
    if days_since_created(goal, now) >= goal.duration:
        return GoalState.INACTIVE
    return GoalState.ACTIVE


def completed_days(completed_dates: Iterable[datetime]) -> set[date]:
    """Calendar days on which at least one completion was recorded."""
    return {moment.date() for moment in completed_dates}


def is_completed_on(goal: Goal, day: date) -> bool:
    """Whether the goal has a completion on the given calendar day."""
    return day in completed_days(goal.completed_dates)


def calculate_streak(completed_dates: Iterable[datetime]) -> int:
    """
    Length of the run of consecutive calendar days ending at the most recent
    completion.

    The streak is not broken by days passing without a completion; it only
    resets when the next completion arrives after a gap.
    """
    days = completed_days(completed_dates)
    if not days:
        return 0

    current = max(days)
    streak = 0
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


def mark_complete(goal: Goal, now: datetime) -> Goal:
    """
    Record a completion for today.

    Returns the goal unchanged when it was already completed today. Otherwise
    the streak grows by one if yesterday was completed and restarts at 1 if not.
    """
    today = now.date()
    days = completed_days(goal.completed_dates)
    if today in days:
        return goal

    yesterday = today - timedelta(days=1)
    streak = goal.streak + 1 if yesterday in days else 1

    updated = goal.model_copy(
        update={
            "completed_dates": [*goal.completed_dates, now],
            "streak": streak,
        }
    )
    return updated.model_copy(update={"state": calculate_state(updated, now)})


def refresh_derived(goal: Goal, now: datetime) -> Goal:
    """Recompute the cached streak and state from the source fields."""
    return goal.model_copy(
        update={
            "streak": calculate_streak(goal.completed_dates),
            "state": calculate_state(goal, now),
        }
    )


def scheduled_day_count(goal: Goal, now: datetime) -> int:
    """
    Count due days from creation up to now or the end of the goal's duration,
    whichever comes first, both ends inclusive.
    """
    first = goal.created_at.date()
    last = min(now, goal.created_at + timedelta(days=goal.duration)).date()

    count = 0
    day = first
    while day <= last:
        if weekday_index(day) in goal.selected_days:
            count += 1
        day += timedelta(days=1)
    return count


def consistency_ratio(goal: Goal, now: datetime) -> float:
    """Completions as a percentage of due days so far, clamped to [0, 100], unrounded."""
    scheduled = scheduled_day_count(goal, now)
    if scheduled == 0:
        return 0.0
    return min(len(goal.completed_dates) / scheduled, 1) * 100


def consistency_percentage(goal: Goal, now: datetime) -> int:
    """
    Completions as a percentage of due days so far, clamped to [0, 100].

    Returns 0 when no due day has occurred yet.
    """
    return round(consistency_ratio(goal, now))


def overall_consistency(goals: list[Goal], now: datetime) -> int:
    """
    Average consistency across active goals, rounded once at the end.

    Deactivated goals are left out; returns 0 when no goal is active.
    """
    active = [goal for goal in goals if goal.is_active]
    if not active:
        return 0
    total = sum(consistency_ratio(goal, now) for goal in active)
    return round(total / len(active))
