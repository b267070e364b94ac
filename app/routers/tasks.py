"""Task router - API endpoints for schedule tasks."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.database import get_store
from app.models.schedule_task import ScheduleTask, ScheduleTaskCreate, ScheduleTaskUpdate, TaskBatch
from app.services.task_service import TaskService


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskBatch, status_code=status.HTTP_201_CREATED)
async def create_tasks(task: ScheduleTaskCreate, store=Depends(get_store)):
    """
    Create a task, or a series of independent tasks for a recurrence.

    - Occurrences before today are dropped
    - An empty batch is reported through `message`, not as an error
    """
    service = TaskService(store)
    return await service.create_tasks(task_create=task)


@router.get("", response_model=list[ScheduleTask])
async def list_tasks(
    day: Optional[date] = Query(None, description="Filter by date (YYYY-MM-DD)"),
    store=Depends(get_store),
):
    """List tasks, optionally for a single date."""
    service = TaskService(store)
    return await service.list_tasks(day=day)


@router.get("/{task_id}", response_model=ScheduleTask)
async def get_task(task_id: str, store=Depends(get_store)):
    """
    Get a single task by id.

    - Returns 404 if task not found
    """
    service = TaskService(store)
    try:
        return await service.get_task(task_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{task_id}", response_model=ScheduleTask)
async def update_task(task_id: str, task_update: ScheduleTaskUpdate, store=Depends(get_store)):
    """
    Update a single task instance.

    - Other tasks of the same series are untouched
    - Returns 404 if task not found
    """
    service = TaskService(store)
    try:
        return await service.update_task(task_id=task_id, task_update=task_update)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{task_id}/toggle", response_model=ScheduleTask)
async def toggle_task(task_id: str, store=Depends(get_store)):
    """
    Flip a task's completed flag.

    - Returns 404 if task not found
    """
    service = TaskService(store)
    try:
        return await service.toggle_task(task_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{task_id}")
async def delete_task(task_id: str, store=Depends(get_store)):
    """
    Delete a single task instance.

    - Returns 404 if task not found
    """
    service = TaskService(store)
    try:
        return await service.delete_task(task_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
