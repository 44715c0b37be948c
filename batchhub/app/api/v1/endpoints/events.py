"""
Event API Endpoints.

Events are community-scoped; expenses recorded against an event show up in
its `expense_ids` list. Members RSVP and share a todo list per event.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import List

from batchhub.app.db.session import get_db
from batchhub.app.models.event import Event, EventAttendee, EventTodo, AttendanceStatus
from batchhub.app.schemas.event import (
    EventCreate, EventResponse, AttendanceUpdate, AttendeeResponse, TodoCreate, TodoResponse
)
from batchhub.app.core.dependencies import get_current_user
from batchhub.app.core.exceptions import NotFound, ValidationError
from batchhub.app.core.guards import get_membership, require_community_member
from batchhub.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/events", tags=["Events"])


def _with_details(query):
    return query.options(
        selectinload(Event.expense_links),
        selectinload(Event.attendees),
        selectinload(Event.todos),
    )


async def _load_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(
        _with_details(select(Event).where(Event.id == event_id))
        .execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFound("Event", event_id)
    return event


async def _load_member_event(db: AsyncSession, event_id: int, current_user: dict) -> Event:
    event = await _load_event(db, event_id)
    await require_community_member(db, event.community_id, current_user)
    return event


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an event in a community (members only).

    The creator is recorded as going.
    """
    await require_community_member(db, data.community_id, current_user)

    event = Event(
        community_id=data.community_id,
        created_by_id=current_user["user_id"],
        title=data.title,
        description=data.description,
        date=data.date,
        end_date=data.end_date,
        location=data.location,
        attendees=[EventAttendee(user_id=current_user["user_id"], status=AttendanceStatus.GOING)],
    )
    db.add(event)
    await db.flush()

    await log_event(
        db=db,
        action=AuditAction.EVENT_CREATED,
        actor_id=current_user["user_id"],
        actor_email=current_user.get("sub"),
        target_type="event",
        target_id=event.id,
        metadata={"community_id": data.community_id, "title": event.title}
    )
    await db.commit()

    return EventResponse.model_validate(await _load_event(db, event.id))


@router.get("/community/{community_id}", response_model=List[EventResponse])
async def list_community_events(
    community_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List a community's events by date (members only)."""
    await require_community_member(db, community_id, current_user)

    result = await db.execute(
        _with_details(select(Event).where(Event.community_id == community_id))
        .order_by(Event.date, Event.id)
    )
    return [EventResponse.model_validate(event) for event in result.scalars().all()]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Event details including attendance, todos and expense back-references."""
    return EventResponse.model_validate(await _load_member_event(db, event_id, current_user))


@router.post("/{event_id}/attendance", response_model=AttendeeResponse)
async def update_attendance(
    event_id: int,
    data: AttendanceUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set the current user's RSVP (going / maybe / not_going)."""
    event = await _load_member_event(db, event_id, current_user)

    attendee = await db.get(EventAttendee, (event.id, current_user["user_id"]))
    if attendee is None:
        attendee = EventAttendee(event_id=event.id, user_id=current_user["user_id"])
        db.add(attendee)
    attendee.status = data.status

    await db.commit()
    return AttendeeResponse(user_id=current_user["user_id"], status=data.status)


@router.post("/{event_id}/todo", response_model=List[TodoResponse])
async def add_todo(
    event_id: int,
    data: TodoCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Add a todo item to the event and return the whole list.

    An assignee must be a member of the event's community.
    """
    event = await _load_member_event(db, event_id, current_user)

    if data.assigned_to_id is not None and not await get_membership(db, event.community_id, data.assigned_to_id):
        raise ValidationError(
            message="Assignee is not a member of this community",
            errors=[{"field": "assigned_to_id", "message": f"User {data.assigned_to_id} is not a member"}]
        )

    db.add(EventTodo(event_id=event.id, task=data.task, assigned_to_id=data.assigned_to_id))
    await db.commit()

    event = await _load_event(db, event.id)
    return [TodoResponse.model_validate(todo) for todo in event.todos]


@router.put("/{event_id}/todo/{todo_id}", response_model=TodoResponse)
async def toggle_todo(
    event_id: int,
    todo_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Flip a todo item between done and not done."""
    event = await _load_member_event(db, event_id, current_user)

    todo = next((item for item in event.todos if item.id == todo_id), None)
    if todo is None:
        raise NotFound("Todo", todo_id)

    todo.completed = not todo.completed
    await db.commit()

    return TodoResponse.model_validate(todo)
