"""Goal router - API endpoints for goal management."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.database import get_store
from app.models.goal import DashboardStats, Goal, GoalCreate, GoalState, GoalStats, GoalUpdate
from app.services.goal_service import GoalService


router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(goal: GoalCreate, store=Depends(get_store)):
    """
    Create a new goal.

    - Starts active with an empty completion history
    - Returns 400 if the active-goal limit is reached
    """
    service = GoalService(store)
    try:
        return await service.create_goal(goal_create=goal)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[Goal])
async def list_goals(
    state: Optional[GoalState] = Query(None, description="Filter by state (active, completed, inactive)"),
    store=Depends(get_store),
):
    """
    List goals.

    - Optional filter: derived lifecycle state
    """
    service = GoalService(store)
    return await service.list_goals(state=state)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard(store=Depends(get_store)):
    """Aggregate progress across all goals."""
    service = GoalService(store)
    return await service.get_dashboard()


@router.get("/{goal_id}", response_model=Goal)
async def get_goal(goal_id: str, store=Depends(get_store)):
    """
    Get a single goal by id.

    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        return await service.get_goal(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{goal_id}/stats", response_model=GoalStats)
async def get_goal_stats(goal_id: str, store=Depends(get_store)):
    """
    Get streak, consistency and state for a goal.

    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        return await service.get_goal_stats(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(goal_id: str, goal_update: GoalUpdate, store=Depends(get_store)):
    """
    Update a goal.

    - Returns 404 if goal not found
    - Returns 400 if re-activating would exceed the active-goal limit
    """
    service = GoalService(store)
    try:
        return await service.update_goal(goal_id=goal_id, goal_update=goal_update)
    except ValueError as e:
        code = 404 if str(e) == "Goal not found" else 400
        raise HTTPException(status_code=code, detail=str(e))


@router.delete("/{goal_id}")
async def delete_goal(goal_id: str, store=Depends(get_store)):
    """
    Delete a goal.

    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        return await service.delete_goal(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{goal_id}/complete", response_model=Goal)
async def complete_goal(goal_id: str, store=Depends(get_store)):
    """
    Mark a goal complete for today.

    - Repeating on the same day changes nothing
    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        return await service.complete_goal(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
