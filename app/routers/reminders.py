"""Reminder router - manual ticks and native alarm batches."""
from fastapi import APIRouter, Depends

from app.database import get_store
from app.models.notification import Notification, ScheduledAlarm
from app.services.dispatch import (
    AlarmScheduler,
    DispatchSink,
    LoggingDispatchSink,
    get_alarm_scheduler,
    get_dispatch_sink,
)
from app.services.reminder_service import ReminderService, reminder_loop


router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("/tick", response_model=list[Notification])
async def run_tick(
    store=Depends(get_store),
    sink: DispatchSink = Depends(get_dispatch_sink),
):
    """
    Run one scheduler pass now.

    - Returns the notifications dispatched by this pass
    - Never re-dispatches a firing already sent today
    """
    service = ReminderService(store, sink)
    return await reminder_loop.run_once(service)


@router.get("/batch", response_model=list[ScheduledAlarm])
async def get_batch(
    store=Depends(get_store),
    sink: DispatchSink = Depends(get_dispatch_sink),
):
    """Preview today's remaining firings as a native alarm batch."""
    service = ReminderService(store, sink)
    return await service.plan_batch()


@router.post("/reschedule", response_model=list[ScheduledAlarm])
async def reschedule(
    store=Depends(get_store),
    sink: DispatchSink = Depends(get_dispatch_sink),
    alarms: AlarmScheduler = Depends(get_alarm_scheduler),
):
    """
    Cancel all pending native alarms and submit a fresh batch.
    """
    service = ReminderService(store, sink)
    return await service.reschedule(alarms)


@router.get("/pending", response_model=list[ScheduledAlarm])
async def get_pending(alarms: AlarmScheduler = Depends(get_alarm_scheduler)):
    """List native alarms that have not fired yet."""
    return await alarms.get_pending()


@router.get("/recent", response_model=list[Notification])
async def get_recent(sink: DispatchSink = Depends(get_dispatch_sink)):
    """Most recently dispatched notifications, oldest first."""
    if isinstance(sink, LoggingDispatchSink):
        return list(sink.recent)
    return []
