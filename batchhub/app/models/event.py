"""
Event model, attendance, todo items and the event -> expense back-reference list.
"""

import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from batchhub.app.db.session import Base


class AttendanceStatus(str, enum.Enum):
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not_going"


class Event(Base):
    """
    Community event (trip, party, study session).

    Expenses recorded against an event are registered in `event_expenses`
    for discovery; the event does not own them.
    """
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("communities.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    expense_links = relationship(
        "EventExpenseLink",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventExpenseLink.expense_id",
    )
    attendees = relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventAttendee.user_id",
    )
    todos = relationship(
        "EventTodo",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventTodo.id",
    )

    @property
    def expense_ids(self):
        return [link.expense_id for link in self.expense_links]

    def __repr__(self):
        return f"<Event(id={self.id}, title='{self.title}', community={self.community_id})>"


class EventExpenseLink(Base):
    __tablename__ = "event_expenses"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True)

    event = relationship("Event", back_populates="expense_links")


class EventAttendee(Base):
    """One RSVP per user per event; re-answering overwrites the status."""
    __tablename__ = "event_attendees"

    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    status = Column(Enum(AttendanceStatus), default=AttendanceStatus.MAYBE, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event", back_populates="attendees")


class EventTodo(Base):
    __tablename__ = "event_todos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    task = Column(String(200), nullable=False)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    completed = Column(Boolean, default=False, nullable=False)

    event = relationship("Event", back_populates="todos")

    def __repr__(self):
        return f"<EventTodo(id={self.id}, event={self.event_id}, done={self.completed})>"
