"""Timer endpoints - time tracking operations."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.database import get_database
from app.models.time_entry import (
    CurrentTimer,
    TimeEntry,
    TimeEntryCategory,
    TimeEntryCreate,
    TimeEntryUpdate,
    TimerStart,
    TimerStop,
)
from app.routers.auth import get_current_user_id
from app.routers.errors import to_http_exception
from app.services.errors import ServiceError
from app.services.timer_service import TimerService


router = APIRouter(prefix="/timers", tags=["timers"])


@router.post("/start", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
async def start_timer(
    timer_start: TimerStart,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Start a new timer.

    - Requires authentication
    - Only one timer can run at a time (409 otherwise)
    - Project must exist and allow the user to track time
    """
    service = TimerService(db)
    try:
        return await service.start_timer(
            user_id=user_id,
            project_id=timer_start.project_id,
            task_id=timer_start.task_id,
            description=timer_start.description,
            category=timer_start.category,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/stop", response_model=TimeEntry)
async def stop_timer(
    timer_stop: Optional[TimerStop] = None,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Stop the currently running timer.

    - Requires authentication
    - Must have a running timer (404 otherwise)
    - End time defaults to now
    """
    service = TimerService(db)
    try:
        return await service.stop_timer(
            user_id=user_id,
            end_time=timer_stop.end_time if timer_stop else None,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/current", response_model=CurrentTimer)
async def get_current_timer(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get the currently running timer, if any.

    - Requires authentication
    - Returns 404 if no timer is running
    - Includes elapsed_seconds for the live display
    """
    service = TimerService(db)
    entry = await service.get_current_timer(user_id=user_id)

    if not entry:
        raise HTTPException(status_code=404, detail="No timer running")

    return entry


@router.get("", response_model=list[TimeEntry])
async def list_entries(
    project_id: Optional[str] = Query(None),
    task_id: Optional[str] = Query(None),
    category: Optional[TimeEntryCategory] = Query(None),
    is_running: Optional[bool] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List time entries for the authenticated user.

    - Requires authentication
    - Optional filters: project_id, task_id, category, is_running,
      start_date, end_date
    - Results sorted by start_time descending (most recent first)
    """
    service = TimerService(db)
    return await service.list_entries(
        user_id=user_id,
        project_id=project_id,
        task_id=task_id,
        category=category,
        is_running=is_running,
        start_date=start_date,
        end_date=end_date,
    )


@router.post("", response_model=TimeEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_create: TimeEntryCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Record a manual time entry.

    - Requires authentication
    - Needs start_time and either end_time or duration_minutes
    - end_time before start_time is rejected (400)
    """
    service = TimerService(db)
    try:
        return await service.create_entry(
            user_id=user_id,
            entry_create=entry_create,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{entry_id}", response_model=TimeEntry)
async def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a specific time entry by ID.

    - Requires authentication
    - User must own the entry
    """
    service = TimerService(db)
    try:
        return await service.get_entry(user_id=user_id, entry_id=entry_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/{entry_id}/stop", response_model=TimeEntry)
async def stop_entry(
    entry_id: str,
    timer_stop: Optional[TimerStop] = None,
    strict: bool = Query(False, description="Fail with 409 if already stopped"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Stop a specific time entry.

    - Requires authentication
    - Stopping an already stopped entry returns it unchanged,
      unless strict=true
    """
    service = TimerService(db)
    try:
        return await service.stop_entry(
            user_id=user_id,
            entry_id=entry_id,
            end_time=timer_stop.end_time if timer_stop else None,
            strict=strict,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.patch("/{entry_id}", response_model=TimeEntry)
async def update_entry(
    entry_id: str,
    entry_update: TimeEntryUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a time entry.

    - Requires authentication
    - User must own the entry
    - is_running=false closes a running entry at now
    - Start and end of stopped entries cannot change (409)
    """
    service = TimerService(db)
    try:
        return await service.update_entry(
            user_id=user_id,
            entry_id=entry_id,
            entry_update=entry_update,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a time entry.

    - Requires authentication
    - User must own the entry
    - Hard delete (permanent)
    """
    service = TimerService(db)
    try:
        return await service.delete_entry(
            user_id=user_id,
            entry_id=entry_id,
        )
    except ServiceError as e:
        raise to_http_exception(e)
