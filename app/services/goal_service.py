"""Goal service - business logic for goal management."""
import logging
import uuid
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from app.config import settings
from app.models.goal import (
    DashboardStats,
    Goal,
    GoalCreate,
    GoalState,
    GoalStats,
    GoalUpdate,
)
from app.services import goal_state
from app.store.base import GOALS_KEY, KeyValueStore, StoreError

logger = logging.getLogger(__name__)


class GoalService:
    """Service for handling goal operations."""

    def __init__(self, store: KeyValueStore, max_active_goals: Optional[int] = None):
        """Initialize service with the key-value store."""
        self.store = store
        self.max_active_goals = (
            settings.max_active_goals if max_active_goals is None else max_active_goals
        )

    async def _load_goals(self, now: datetime) -> list[Goal]:
        """
        Load and validate all stored goals.

        Unreadable values are treated as an empty list and invalid records are
        skipped. Cached streak/state are recomputed on every load.
        """
        try:
            raw = await self.store.get(GOALS_KEY)
        except StoreError as e:
            logger.error("Could not read goals, treating as empty: %s", e)
            return []

        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Stored goals are not a list, treating as empty")
            return []

        goals = []
        for record in raw:
            try:
                goal = Goal.model_validate(record)
            except ValidationError as e:
                logger.warning("Skipping invalid goal record: %s", e.errors()[:1])
                continue
            goals.append(goal_state.refresh_derived(goal, now))
        return goals

    async def _save_goals(self, goals: list[Goal]) -> None:
        await self.store.set(
            GOALS_KEY,
            [goal.model_dump(mode="json", by_alias=True) for goal in goals],
        )

    def _find(self, goals: list[Goal], goal_id: str) -> int:
        for index, goal in enumerate(goals):
            if goal.id == goal_id:
                return index
        raise ValueError("Goal not found")

    async def list_goals(
        self,
        state: Optional[GoalState] = None,
        now: Optional[datetime] = None,
    ) -> list[Goal]:
        """
        List goals with optional filtering by derived state.

        Args:
            state: Optional lifecycle state filter
            now: Current time (defaults to now)

        Returns:
            List of goals, newest first
        """
        if now is None:
            now = datetime.now()

        goals = await self._load_goals(now)
        if state is not None:
            goals = [goal for goal in goals if goal.state == state]
        return goals

    async def get_goal(self, goal_id: str, now: Optional[datetime] = None) -> Goal:
        """
        Get a single goal by id.

        Raises:
            ValueError: If goal not found
        """
        if now is None:
            now = datetime.now()

        goals = await self._load_goals(now)
        return goals[self._find(goals, goal_id)]

    async def create_goal(
        self,
        goal_create: GoalCreate,
        now: Optional[datetime] = None,
    ) -> Goal:
        """
        Create a new goal.

        Args:
            goal_create: Goal creation data
            now: Creation time (defaults to now)

        Returns:
            Created goal object

        Raises:
            ValueError: If the active-goal limit is already reached
        """
        if now is None:
            now = datetime.now()

        goals = await self._load_goals(now)

        active_count = sum(1 for goal in goals if goal.is_active)
        if active_count >= self.max_active_goals:
            raise ValueError(
                f"You can have at most {self.max_active_goals} active goals. "
                "Complete or deactivate one before adding another."
            )

        goal = Goal(
            id=str(uuid.uuid4()),
            title=goal_create.title,
            description=goal_create.description,
            selected_days=goal_create.selected_days,
            duration=goal_create.duration,
            scheduled_time=goal_create.scheduled_time,
            created_at=now,
            completed_dates=[],
            streak=0,
            is_active=True,
        )
        goal = goal_state.refresh_derived(goal, now)

        await self._save_goals([goal, *goals])
        logger.info("Created goal %s (%s)", goal.id, goal.title)
        return goal

    async def update_goal(
        self,
        goal_id: str,
        goal_update: GoalUpdate,
        now: Optional[datetime] = None,
    ) -> Goal:
        """
        Update a goal.

        Raises:
            ValueError: If goal not found, or re-activating it would exceed
                the active-goal limit
        """
        if now is None:
            now = datetime.now()

        goals = await self._load_goals(now)
        index = self._find(goals, goal_id)
        existing = goals[index]

        changes = goal_update.model_dump(exclude_unset=True)
        # Explicit nulls only make sense for optional text fields
        changes = {
            key: value
            for key, value in changes.items()
            if value is not None or key in ("description", "scheduled_time")
        }

        if changes.get("is_active") and not existing.is_active:
            active_count = sum(1 for goal in goals if goal.is_active)
            if active_count >= self.max_active_goals:
                raise ValueError(
                    f"You can have at most {self.max_active_goals} active goals."
                )

        updated = goal_state.refresh_derived(existing.model_copy(update=changes), now)
        goals[index] = updated

        await self._save_goals(goals)
        return updated

    async def delete_goal(self, goal_id: str) -> dict:
        """
        Delete a goal.

        Any reminder markers written for it are left to expire.

        Raises:
            ValueError: If goal not found
        """
        now = datetime.now()
        goals = await self._load_goals(now)
        index = self._find(goals, goal_id)
        del goals[index]

        await self._save_goals(goals)
        logger.info("Deleted goal %s", goal_id)
        return {"deleted_count": 1}

    async def complete_goal(self, goal_id: str, now: Optional[datetime] = None) -> Goal:
        """
        Mark a goal complete for today.

        Completing twice on the same calendar day is a no-op.

        Raises:
            ValueError: If goal not found
        """
        if now is None:
            now = datetime.now()

        goals = await self._load_goals(now)
        index = self._find(goals, goal_id)
        existing = goals[index]

        updated = goal_state.mark_complete(existing, now)
        if updated is existing:
            return existing

        goals[index] = updated
        await self._save_goals(goals)
        return updated

    async def get_goal_stats(
        self,
        goal_id: str,
        now: Optional[datetime] = None,
    ) -> GoalStats:
        """
        Get derived progress figures for a goal.

        Raises:
            ValueError: If goal not found
        """
        if now is None:
            now = datetime.now()

        goal = await self.get_goal(goal_id, now=now)
        return GoalStats(
            goal_id=goal.id,
            state=goal.state,
            streak=goal.streak,
            consistency=goal_state.consistency_percentage(goal, now),
            required_completions=goal_state.required_completions(goal),
            completion_count=len(goal.completed_dates),
            days_since_created=goal_state.days_since_created(goal, now),
            completed_today=goal_state.is_completed_on(goal, now.date()),
        )

    async def get_dashboard(self, now: Optional[datetime] = None) -> DashboardStats:
        """Get aggregate progress across all goals."""
        if now is None:
            now = datetime.now()

        goals = await self._load_goals(now)
        return DashboardStats(
            total_goals=len(goals),
            active_goals=sum(1 for goal in goals if goal.is_active),
            best_streak=max((goal.streak for goal in goals), default=0),
            overall_consistency=goal_state.overall_consistency(goals, now),
        )
