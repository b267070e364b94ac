"""Goal model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from app.models.base import CamelModel, to_local_naive, validate_weekdays


class GoalState(str, Enum):
    """Derived goal lifecycle states."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class GoalBase(CamelModel):
    """Base goal fields."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    selected_days: list[int]  # 0 = Sunday
    duration: int = Field(ge=1)  # days
    scheduled_time: Optional[str] = None

    @field_validator("selected_days")
    @classmethod
    def check_selected_days(cls, value: list[int]) -> list[int]:
        return validate_weekdays(value)


class GoalCreate(GoalBase):
    """Goal creation model."""

    pass


class GoalUpdate(CamelModel):
    """Goal update model - all fields optional."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    selected_days: Optional[list[int]] = None
    duration: Optional[int] = Field(default=None, ge=1)
    scheduled_time: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("selected_days")
    @classmethod
    def check_selected_days(cls, value: Optional[list[int]]) -> Optional[list[int]]:
        if value is None:
            return None
        return validate_weekdays(value)


class Goal(GoalBase):
    """
    Full goal model as persisted.

    `streak` and `state` are cached projections of the completion history and
    are recomputed whenever a goal is loaded or mutated.
    """

    id: str
    created_at: datetime
    completed_dates: list[datetime] = Field(default_factory=list)
    streak: int = 0
    is_active: bool = True
    state: GoalState = GoalState.ACTIVE

    @field_validator("created_at")
    @classmethod
    def localize_created_at(cls, value: datetime) -> datetime:
        return to_local_naive(value)

    @field_validator("completed_dates")
    @classmethod
    def localize_completed_dates(cls, value: list[datetime]) -> list[datetime]:
        return [to_local_naive(item) for item in value]


class GoalStats(CamelModel):
    """Derived progress figures for a single goal."""

    goal_id: str
    state: GoalState
    streak: int
    consistency: int
    required_completions: int
    completion_count: int
    days_since_created: int
    completed_today: bool


class DashboardStats(CamelModel):
    """Aggregate progress across all goals."""

    total_goals: int
    active_goals: int
    best_streak: int
    overall_consistency: int
