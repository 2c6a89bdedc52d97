"""Task model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task statuses."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskBase(BaseModel):
    """Base task fields."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    assigned_to: Optional[str] = None
    deadline: Optional[datetime] = None


class TaskCreate(TaskBase):
    """Task creation model."""

    pass


class TaskUpdate(BaseModel):
    """Task update model - all fields optional."""

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[str] = None
    deadline: Optional[datetime] = None


class Task(TaskBase):
    """Full task model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    project_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}
