"""
Event Pydantic schemas.
"""

from pydantic import BaseModel, Field, StringConstraints, field_validator, model_validator
from datetime import datetime, timezone
from typing import Annotated, Optional, List
from batchhub.app.models.event import AttendanceStatus

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10)]
Task = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class EventCreate(BaseModel):
    """Schema for creating an event inside a community."""
    community_id: int
    title: Title
    description: Description
    date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)

    @field_validator("date", "end_date")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are read as UTC so they compare with aware ones
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.date:
            raise ValueError("end_date must not be before date")
        return self


class AttendanceUpdate(BaseModel):
    status: AttendanceStatus


class AttendeeResponse(BaseModel):
    user_id: int
    status: AttendanceStatus

    class Config:
        from_attributes = True


class TodoCreate(BaseModel):
    task: Task
    assigned_to_id: Optional[int] = Field(None, gt=0)


class TodoResponse(BaseModel):
    id: int
    task: str
    assigned_to_id: Optional[int]
    completed: bool

    class Config:
        from_attributes = True


class EventResponse(BaseModel):
    id: int
    community_id: int
    created_by_id: int
    title: str
    description: str
    date: datetime
    end_date: Optional[datetime]
    location: Optional[str]
    created_at: datetime
    expense_ids: List[int] = []
    attendees: List[AttendeeResponse] = []
    todos: List[TodoResponse] = []

    class Config:
        from_attributes = True
