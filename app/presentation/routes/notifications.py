# app/presentation/routes/notifications.py
from __future__ import annotations

import logging
import math
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.application.expiry_job import ExpiryNotificationJob
from app.application.scheduler import DailyScheduler
from app.container import (
    get_expiry_job, get_notifier, get_scheduler, get_status_store, require_db,
)
from app.domain.ports import NotifierPort
from app.presentation.schemas import SchedulerStatus, TriggerResponse, UpcomingItem
from app.services.job_status import JobStatusService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications")


@router.get("/upcoming", response_model=List[UpcomingItem], dependencies=[Depends(require_db)])
async def upcoming(job: ExpiryNotificationJob = Depends(get_expiry_job)):
    """Products that the next run would alert on, if it ran right now."""
    try:
        items = await job.preview()
    except Exception as e:
        logger.exception("upcoming preview failed")
        raise HTTPException(status_code=500, detail=f"Failed to compute upcoming expiries: {e}")
    return [
        UpcomingItem(product=i.product, days_left=round(i.days_left, 3), notify_days=math.ceil(i.days_left))
        for i in items
    ]

@router.get("/status", response_model=SchedulerStatus)
async def status(
    sched: DailyScheduler = Depends(get_scheduler),
    store: JobStatusService = Depends(get_status_store),
    notifier: NotifierPort = Depends(get_notifier),
):
    try:
        last = await store.get_last_expiry_run()
    except Exception as e:
        logger.warning("last run lookup failed: %s", e)
        last = None
    return SchedulerStatus(
        state=sched.state,
        at=sched.at,
        next_run=sched.next_run,
        runs_started=sched.runs_started,
        triggers_dropped=sched.triggers_dropped,
        transport_ready=bool(notifier.initialized),
        last_run=last,
    )

@router.post("/run", response_model=TriggerResponse, status_code=202)
async def run_now(sched: DailyScheduler = Depends(get_scheduler)):
    """Manual trigger. Discarded (started=false) while a run is in progress."""
    started = sched.trigger()
    return TriggerResponse(started=started, state=sched.state)
