"""Time entry model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

# Longest manual entry accepted, about ten years
MAX_DURATION_MINUTES = 10 * 366 * 24 * 60


class TimeEntryCategory(str, Enum):
    """Time entry categories."""

    WORK = "work"
    STUDY = "study"
    BREAK = "break"
    CUSTOM = "custom"


class TimeEntryBase(BaseModel):
    """Base time entry fields."""

    project_id: str
    task_id: Optional[str] = None
    category: TimeEntryCategory = TimeEntryCategory.WORK
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    is_running: bool = False


class TimerStart(BaseModel):
    """Request model for starting a timer."""

    project_id: str
    task_id: Optional[str] = None
    category: TimeEntryCategory = TimeEntryCategory.WORK
    description: str = ""


class TimerStop(BaseModel):
    """Request model for stopping a timer."""

    end_time: Optional[datetime] = None


class TimeEntryCreate(BaseModel):
    """
    Manual time entry creation model.

    Either ``end_time`` or ``duration_minutes`` must be given, not both.
    """

    project_id: str
    task_id: Optional[str] = None
    category: TimeEntryCategory = TimeEntryCategory.WORK
    description: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0, le=MAX_DURATION_MINUTES)

    @model_validator(mode="after")
    def check_end_or_duration(self):
        if (self.end_time is None) == (self.duration_minutes is None):
            raise ValueError("Provide exactly one of end_time or duration_minutes")
        return self


class TimeEntryUpdate(BaseModel):
    """
    Time entry update model.

    ``duration_minutes`` is deliberately absent: it is always derived.
    """

    description: Optional[str] = None
    category: Optional[TimeEntryCategory] = None
    task_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_running: Optional[bool] = None


class TimeEntry(TimeEntryBase):
    """Full time entry model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class CurrentTimer(TimeEntry):
    """Running time entry plus the live elapsed time."""

    elapsed_seconds: int = 0
