"""Project model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MemberRole(str, Enum):
    """Roles a user can hold on a project."""

    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class ProjectBase(BaseModel):
    """Base project fields."""

    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: str = "#3B82F6"
    deadline: Optional[datetime] = None


class ProjectCreate(ProjectBase):
    """Project creation model."""

    pass


class ProjectUpdate(BaseModel):
    """Project update model - all fields optional."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None
    deadline: Optional[datetime] = None


class Project(ProjectBase):
    """Full project model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class ProjectMemberCreate(BaseModel):
    """Request model for adding a member to a project."""

    user_id: str
    role: MemberRole = MemberRole.MEMBER


class ProjectMember(BaseModel):
    """Project membership record."""

    project_id: str
    user_id: str
    role: MemberRole
    joined_at: datetime
