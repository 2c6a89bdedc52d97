"""Task router - API endpoints for individual tasks."""
from fastapi import APIRouter, Depends

from app.database import get_database
from app.models.task import Task, TaskUpdate
from app.routers.auth import get_current_user_id
from app.routers.errors import to_http_exception
from app.services.errors import ServiceError
from app.services.task_service import TaskService


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Get a task by ID."""
    service = TaskService(db)
    try:
        return await service.get_task(user_id=user_id, task_id=task_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_update: TaskUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a task.

    - Requires authentication
    - Viewers cannot edit tasks (403)
    """
    service = TaskService(db)
    try:
        return await service.update_task(
            user_id=user_id,
            task_id=task_id,
            task_update=task_update,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a task.

    - Time entries on the task are kept, with task_id cleared
    """
    service = TaskService(db)
    try:
        return await service.delete_task(user_id=user_id, task_id=task_id)
    except ServiceError as e:
        raise to_http_exception(e)
