"""Log record model (the metadata copy)."""

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from logcore.db.base import Base, enum_values
from logcore.db.enums import LogLevel, LogSource


class LogRecord(Base):
    """Queryable, truncated copy of every ingested log event."""

    __tablename__ = "logs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    service_name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[LogLevel] = mapped_column(SQLEnum(LogLevel, values_callable=enum_values), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch millis
    metadata_json: Mapped[str | None] = mapped_column(Text)
    source: Mapped[LogSource] = mapped_column(
        SQLEnum(LogSource, values_callable=enum_values),
        nullable=False,
        default=LogSource.HTTP,
    )
    archive_key: Mapped[str | None] = mapped_column(String(1000))

    __table_args__ = (
        Index("ix_logs_service_time", "service_name", "timestamp"),
        Index("ix_logs_level_time", "level", "timestamp"),
        Index("ix_logs_timestamp", "timestamp"),
    )
