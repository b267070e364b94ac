"""Tests for GoalService."""
import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock


NOW = datetime(2026, 10, 17, 10, 0)


def goal_create(**overrides):
    from app.models.goal import GoalCreate

    data = {
        "title": "Exercise",
        "description": "30 minutes",
        "selected_days": [1, 3, 5],
        "duration": 60,
        "scheduled_time": "07:00",
    }
    data.update(overrides)
    return GoalCreate(**data)


@pytest.mark.asyncio
class TestGoalServiceCreate:
    """Tests for creating goals."""

    async def test_create_goal_success(self):
        """Test successful goal creation."""
        from app.models.goal import GoalState
        from app.services.goal_service import GoalService
        from app.store.base import GOALS_KEY
        from app.store.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore()
        service = GoalService(store, max_active_goals=3)

        goal = await service.create_goal(goal_create(), now=NOW)

        assert goal.title == "Exercise"
        assert goal.selected_days == [1, 3, 5]
        assert goal.created_at == NOW
        assert goal.completed_dates == []
        assert goal.streak == 0
        assert goal.is_active is True
        assert goal.state == GoalState.ACTIVE

        stored = await store.get(GOALS_KEY)
        assert len(stored) == 1
        assert stored[0]["selectedDays"] == [1, 3, 5]
        assert stored[0]["createdAt"] == NOW.isoformat()

    async def test_create_goal_newest_first(self):
        """Test that new goals are listed first."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore(), max_active_goals=3)
        await service.create_goal(goal_create(title="First"), now=NOW)
        await service.create_goal(goal_create(title="Second"), now=NOW)

        goals = await service.list_goals(now=NOW)
        assert [goal.title for goal in goals] == ["Second", "First"]

    async def test_create_goal_at_cap_rejected(self):
        """Test that creation is rejected when the active-goal cap is reached."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore(), max_active_goals=2)
        await service.create_goal(goal_create(title="One"), now=NOW)
        await service.create_goal(goal_create(title="Two"), now=NOW)

        with pytest.raises(ValueError, match="at most 2 active goals"):
            await service.create_goal(goal_create(title="Three"), now=NOW)

        goals = await service.list_goals(now=NOW)
        assert len(goals) == 2

    async def test_inactive_goals_do_not_count_toward_cap(self):
        """Test that deactivated goals free a slot."""
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore(), max_active_goals=1)
        first = await service.create_goal(goal_create(title="One"), now=NOW)
        await service.update_goal(first.id, GoalUpdate(is_active=False), now=NOW)

        second = await service.create_goal(goal_create(title="Two"), now=NOW)
        assert second.is_active is True

        with pytest.raises(ValueError, match="at most 1 active goals"):
            await service.update_goal(first.id, GoalUpdate(is_active=True), now=NOW)


@pytest.mark.asyncio
class TestGoalServiceLoad:
    """Tests for reading goals from the store."""

    async def test_list_goals_absent_key(self):
        """Test that a missing key reads as no goals."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        assert await service.list_goals(now=NOW) == []

    async def test_list_goals_corrupt_json(self):
        """Test that corrupt stored JSON reads as no goals."""
        from app.services.goal_service import GoalService
        from app.store.base import GOALS_KEY
        from app.store.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore()
        store.set_raw(GOALS_KEY, "[{not json")

        service = GoalService(store)
        assert await service.list_goals(now=NOW) == []

    async def test_list_goals_store_failure(self):
        """Test that a failing store reads as no goals."""
        from app.services.goal_service import GoalService
        from app.store.base import StoreError

        mock_store = MagicMock()
        mock_store.get = AsyncMock(side_effect=StoreError("connection refused"))

        service = GoalService(mock_store)
        assert await service.list_goals(now=NOW) == []

    async def test_list_goals_skips_invalid_records(self):
        """Test that malformed records are skipped and valid ones kept."""
        from app.services.goal_service import GoalService
        from app.store.base import GOALS_KEY
        from app.store.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore({
            GOALS_KEY: [
                {"id": "bad", "title": "No days", "selectedDays": [], "duration": 7,
                 "createdAt": "2026-10-01T08:00:00"},
                {"id": "worse"},
                "not a record",
                {"id": "good", "title": "Read", "selectedDays": [0, 6], "duration": 14,
                 "createdAt": "2026-10-01T08:00:00.000Z", "completedDates": []},
            ]
        })

        goals = await GoalService(store).list_goals(now=NOW)
        assert [goal.id for goal in goals] == ["good"]
        assert goals[0].created_at.tzinfo is None

    async def test_list_goals_recomputes_cached_fields(self):
        """Test that stored streak/state are not trusted."""
        from app.models.goal import GoalState
        from app.services.goal_service import GoalService
        from app.store.base import GOALS_KEY
        from app.store.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore({
            GOALS_KEY: [
                {"id": "g1", "title": "Walk", "selectedDays": [0, 1, 2, 3, 4, 5, 6],
                 "duration": 7, "createdAt": "2026-10-01T08:00:00",
                 "completedDates": ["2026-10-02T08:00:00"], "streak": 12, "state": "completed"},
            ]
        })

        goal = (await GoalService(store).list_goals(now=NOW))[0]
        assert goal.streak == 1
        assert goal.state == GoalState.INACTIVE

    async def test_list_goals_filtered_by_state(self):
        """Test filtering goals by derived state."""
        from app.models.goal import GoalState
        from app.services.goal_service import GoalService
        from app.store.base import GOALS_KEY
        from app.store.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore({
            GOALS_KEY: [
                {"id": "old", "title": "Old", "selectedDays": [1], "duration": 7,
                 "createdAt": "2026-09-01T08:00:00"},
                {"id": "new", "title": "New", "selectedDays": [1], "duration": 30,
                 "createdAt": "2026-10-16T08:00:00"},
            ]
        })
        service = GoalService(store)

        inactive = await service.list_goals(state=GoalState.INACTIVE, now=NOW)
        active = await service.list_goals(state=GoalState.ACTIVE, now=NOW)

        assert [goal.id for goal in inactive] == ["old"]
        assert [goal.id for goal in active] == ["new"]

    async def test_get_goal_not_found(self):
        """Test getting a missing goal."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        with pytest.raises(ValueError, match="Goal not found"):
            await GoalService(MemoryKeyValueStore()).get_goal("missing", now=NOW)


@pytest.mark.asyncio
class TestGoalServiceComplete:
    """Tests for marking goals complete."""

    async def test_complete_goal_idempotent(self):
        """Test that completing twice on the same day is a no-op."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        goal = await service.create_goal(goal_create(), now=NOW)

        first = await service.complete_goal(goal.id, now=NOW)
        second = await service.complete_goal(goal.id, now=NOW + timedelta(hours=5))

        assert len(first.completed_dates) == 1
        assert first.streak == 1
        assert len(second.completed_dates) == 1
        assert second.streak == 1

        stored = await service.get_goal(goal.id, now=NOW)
        assert len(stored.completed_dates) == 1

    async def test_complete_goal_consecutive_days(self):
        """Test streak growth and reset through the service."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        start = datetime(2026, 10, 1, 8, 0)
        goal = await service.create_goal(goal_create(selected_days=[0, 1, 2, 3, 4, 5, 6]), now=start)

        for offset in range(3):
            goal = await service.complete_goal(goal.id, now=start + timedelta(days=offset))
        assert goal.streak == 3

        goal = await service.complete_goal(goal.id, now=start + timedelta(days=4))
        assert goal.streak == 1

    async def test_complete_goal_not_found(self):
        """Test completing a missing goal."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        with pytest.raises(ValueError, match="Goal not found"):
            await GoalService(MemoryKeyValueStore()).complete_goal("missing", now=NOW)


@pytest.mark.asyncio
class TestGoalServiceUpdateDelete:
    """Tests for updating and deleting goals."""

    async def test_update_goal_fields(self):
        """Test editing title, days and time."""
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        goal = await service.create_goal(goal_create(), now=NOW)

        updated = await service.update_goal(
            goal.id,
            GoalUpdate(title="Run", selected_days=[2, 4], scheduled_time="6:30 PM"),
            now=NOW,
        )

        assert updated.title == "Run"
        assert updated.selected_days == [2, 4]
        assert updated.scheduled_time == "6:30 PM"
        assert updated.description == "30 minutes"
        assert updated.created_at == goal.created_at

    async def test_update_goal_duration_recomputes_state(self):
        """Test that shortening the duration can expire a goal."""
        from app.models.goal import GoalState, GoalUpdate
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        goal = await service.create_goal(goal_create(), now=NOW - timedelta(days=10))

        updated = await service.update_goal(goal.id, GoalUpdate(duration=7), now=NOW)
        assert updated.state == GoalState.INACTIVE

    async def test_update_goal_not_found(self):
        """Test updating a missing goal."""
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        with pytest.raises(ValueError, match="Goal not found"):
            await GoalService(MemoryKeyValueStore()).update_goal("missing", GoalUpdate(title="x"))

    async def test_delete_goal(self):
        """Test deleting a goal."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        goal = await service.create_goal(goal_create(), now=NOW)

        result = await service.delete_goal(goal.id)

        assert result == {"deleted_count": 1}
        assert await service.list_goals(now=NOW) == []

    async def test_delete_goal_not_found(self):
        """Test deleting a missing goal."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        with pytest.raises(ValueError, match="Goal not found"):
            await GoalService(MemoryKeyValueStore()).delete_goal("missing")


@pytest.mark.asyncio
class TestGoalServiceStats:
    """Tests for goal statistics."""

    async def test_get_goal_stats(self):
        """Test per-goal stats."""
        from app.models.goal import GoalState
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        created = datetime(2026, 10, 12, 9, 0)  # Monday
        goal = await service.create_goal(goal_create(duration=14), now=created)
        await service.complete_goal(goal.id, now=created + timedelta(hours=1))

        stats = await service.get_goal_stats(goal.id, now=NOW)

        assert stats.goal_id == goal.id
        assert stats.state == GoalState.ACTIVE
        assert stats.streak == 1
        assert stats.required_completions == 6
        assert stats.completion_count == 1
        assert stats.days_since_created == 5
        assert stats.consistency == 33
        assert stats.completed_today is False

    async def test_get_dashboard(self):
        """Test aggregate dashboard stats."""
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        created = datetime(2026, 10, 12, 9, 0)
        first = await service.create_goal(goal_create(selected_days=[1]), now=created)
        second = await service.create_goal(goal_create(), now=created)
        await service.complete_goal(first.id, now=created)
        await service.update_goal(second.id, GoalUpdate(is_active=False), now=NOW)

        dashboard = await service.get_dashboard(now=NOW)

        assert dashboard.total_goals == 2
        assert dashboard.active_goals == 1
        assert dashboard.best_streak == 1
        # Only the active Monday goal counts: 100%
        assert dashboard.overall_consistency == 100

    async def test_get_dashboard_no_active_goals(self):
        """Test that consistency is 0 when every goal is deactivated."""
        from app.models.goal import GoalUpdate
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        service = GoalService(MemoryKeyValueStore())
        created = datetime(2026, 10, 12, 9, 0)
        goal = await service.create_goal(goal_create(selected_days=[1]), now=created)
        await service.complete_goal(goal.id, now=created)
        await service.update_goal(goal.id, GoalUpdate(is_active=False), now=NOW)

        dashboard = await service.get_dashboard(now=NOW)

        assert dashboard.active_goals == 0
        assert dashboard.best_streak == 1
        assert dashboard.overall_consistency == 0

    async def test_get_dashboard_empty(self):
        """Test dashboard with no goals."""
        from app.services.goal_service import GoalService
        from app.store.memory import MemoryKeyValueStore

        dashboard = await GoalService(MemoryKeyValueStore()).get_dashboard(now=NOW)
        assert dashboard.total_goals == 0
        assert dashboard.overall_consistency == 0
