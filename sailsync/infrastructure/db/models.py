"""
SQLAlchemy ORM models (scheduling tables + event log)

Calendar dates are stored as YYYY-MM-DD strings, the same shape the domain
uses; rows with malformed dates still load and are reported by the
assignment index instead of failing the whole snapshot.
"""
from datetime import datetime
from sqlalchemy import (
    String, Integer, Text, TIMESTAMP, Boolean, JSON, ForeignKey, UniqueConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import JSONB

from sailsync.infrastructure.db.session import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="HELPER")
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    birth_date: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class BoatModel(Base):
    __tablename__ = "boats"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    boat_type: Mapped[str] = mapped_column(String(20), nullable=False, default="SAILING")


class ActivityModel(Base):
    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    default_duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_general: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class AssignmentModel(Base):
    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    date: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    boat_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    instructor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    helper_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    activity_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="CONFIRMED")
    instructor_status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    helper_status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class AvailabilityModel(Base):
    """One row per (user, day); last write wins via upsert in the store"""
    __tablename__ = "availabilities"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_availabilities_user_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="UNKNOWN")


class GeneralEventModel(Base):
    __tablename__ = "general_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    date: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    activity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    responses: Mapped[list["GeneralEventResponseModel"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="GeneralEventResponseModel.position",
    )


class GeneralEventResponseModel(Base):
    __tablename__ = "general_event_responses"

    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("general_events.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")

    event: Mapped[GeneralEventModel] = relationship(back_populates="responses")


class MaintenanceRecordModel(Base):
    __tablename__ = "maintenance_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    boat_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="TODO")
    expiration_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    recurrence_interval: Mapped[int | None] = mapped_column(Integer, nullable=True)
    recurrence_unit: Mapped[str | None] = mapped_column(String(10), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class NotificationModel(Base):
    __tablename__ = "user_notifications"
    __table_args__ = (
        Index("ix_user_notifications_user_read", "user_id", "read"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    data_json: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)


class EventLog(Base):
    """
    Event log - outbox of domain events

    Rows are immutable; the notification dispatcher reads them in id order.
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONType, nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class ProjectorCheckpoint(Base):
    """
    Last event_log id processed by a named consumer
    """
    __tablename__ = "projector_checkpoints"

    projector_name: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_event_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
