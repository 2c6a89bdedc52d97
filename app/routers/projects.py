"""Project router - API endpoints for project management."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.database import get_database
from app.models.project import (
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberCreate,
    ProjectUpdate,
)
from app.models.task import Task, TaskCreate, TaskStatus
from app.routers.auth import get_current_user_id
from app.routers.errors import to_http_exception
from app.services.errors import ServiceError
from app.services.project_service import ProjectService
from app.services.task_service import TaskService


router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project: ProjectCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Create a new project owned by the current user.

    Args:
        project: Project creation data
        user_id: Current user ID (from token)
        db: Database connection

    Returns:
        Created project object
    """
    service = ProjectService(db)
    return await service.create_project(
        user_id=user_id,
        project_create=project,
    )


@router.get("", response_model=list[Project])
async def list_projects(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    List projects the current user owns or is a member of.

    Returns:
        List of projects, newest first
    """
    service = ProjectService(db)
    return await service.list_projects(user_id=user_id)


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Get a project by ID.

    Raises:
        HTTPException: If project not found (404)
    """
    service = ProjectService(db)
    try:
        return await service.get_project(user_id=user_id, project_id=project_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Update a project.

    Raises:
        HTTPException: If project not found (404) or user is not
            owner/admin (403)
    """
    service = ProjectService(db)
    try:
        return await service.update_project(
            user_id=user_id,
            project_id=project_id,
            project_update=project_update,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Delete a project together with its tasks, members and time entries.

    Raises:
        HTTPException: If project not found (404) or user is not owner (403)
    """
    service = ProjectService(db)
    try:
        return await service.delete_project(user_id=user_id, project_id=project_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{project_id}/members", response_model=list[ProjectMember])
async def list_members(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """List members of a project."""
    service = ProjectService(db)
    try:
        return await service.list_members(user_id=user_id, project_id=project_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post(
    "/{project_id}/members",
    response_model=ProjectMember,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    project_id: str,
    member: ProjectMemberCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """
    Add a member to a project.

    Raises:
        HTTPException: 403 unless owner/admin, 409 if already a member
    """
    service = ProjectService(db)
    try:
        return await service.add_member(
            user_id=user_id,
            project_id=project_id,
            member_create=member,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{project_id}/members/{member_user_id}")
async def remove_member(
    project_id: str,
    member_user_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Remove a member from a project."""
    service = ProjectService(db)
    try:
        return await service.remove_member(
            user_id=user_id,
            project_id=project_id,
            member_user_id=member_user_id,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.post(
    "/{project_id}/tasks",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    project_id: str,
    task: TaskCreate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Create a task in a project."""
    service = TaskService(db)
    try:
        return await service.create_task(
            user_id=user_id,
            project_id=project_id,
            task_create=task,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{project_id}/tasks", response_model=list[Task])
async def list_tasks(
    project_id: str,
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """List tasks in a project, optionally filtered by status."""
    service = TaskService(db)
    try:
        return await service.list_tasks(
            user_id=user_id,
            project_id=project_id,
            status=task_status,
        )
    except ServiceError as e:
        raise to_http_exception(e)
