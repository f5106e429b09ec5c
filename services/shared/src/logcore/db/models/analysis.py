"""Analysis models: AnalysisSessionRow, AnalysisQueueEntry, QueueMessageRow, ActorStateRow."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from logcore.db.base import Base, enum_values, utc_now
from logcore.db.enums import MessageStatus, QueueKind, SessionStatus, TrackingStatus


class AnalysisSessionRow(Base):
    """Queryable mirror of a session actor's state."""

    __tablename__ = "analysis_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    service_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    search_term: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[SessionStatus] = mapped_column(
        SQLEnum(SessionStatus, values_callable=enum_values),
        nullable=False,
        default=SessionStatus.PENDING,
    )

    error_count: Mapped[int | None] = mapped_column(Integer)
    warning_count: Mapped[int | None] = mapped_column(Integer)
    info_count: Mapped[int | None] = mapped_column(Integer)

    summary: Mapped[str | None] = mapped_column(Text)
    patterns_json: Mapped[str | None] = mapped_column(Text)
    recommendations_json: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    __table_args__ = (
        Index("ix_analysis_sessions_service", "service_name"),
        Index("ix_analysis_sessions_status", "status"),
        Index("ix_analysis_sessions_created", "created_at"),
    )


class AnalysisQueueEntry(Base):
    """Tracking row mirroring one analysis message's processing lifecycle."""

    __tablename__ = "analysis_queue"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    kind: Mapped[QueueKind] = mapped_column(SQLEnum(QueueKind, values_callable=enum_values), nullable=False)
    service_name: Mapped[str | None] = mapped_column(String(255))
    start_time: Mapped[int | None] = mapped_column(BigInteger)
    end_time: Mapped[int | None] = mapped_column(BigInteger)
    search_term: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[TrackingStatus] = mapped_column(
        SQLEnum(TrackingStatus, values_callable=enum_values),
        nullable=False,
        default=TrackingStatus.QUEUED,
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    started_at: Mapped[datetime | None] = mapped_column(DateTime)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    __table_args__ = (
        Index("ix_analysis_queue_status", "status"),
        Index("ix_analysis_queue_kind", "kind"),
    )


class QueueMessageRow(Base):
    """A message stored by the database-backed queue broker."""

    __tablename__ = "queue_messages"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    queue_name: Mapped[str] = mapped_column(String(100), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[MessageStatus] = mapped_column(
        SQLEnum(MessageStatus, values_callable=enum_values),
        nullable=False,
        default=MessageStatus.PENDING,
    )
    deliveries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    visible_at: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch millis
    last_error: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (Index("ix_queue_messages_visible", "queue_name", "status", "visible_at"),)


class ActorStateRow(Base):
    """Durable per-actor key/value storage."""

    __tablename__ = "actor_state"

    actor_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)
