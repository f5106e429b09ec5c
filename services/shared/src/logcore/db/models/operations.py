"""Operational models: JobTrackerRow, GlobalAnalysisRow."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Float, Index, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from logcore.db.base import Base, enum_values, utc_now
from logcore.db.enums import JobStatus


class JobTrackerRow(Base):
    """Last-run bookkeeping for a periodic job, one row per job name."""

    __tablename__ = "job_tracker"

    job_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    last_run_at: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch millis
    last_run_status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, values_callable=enum_values),
        nullable=False,
    )
    # End of the last window that was analyzed successfully
    last_success_at: Mapped[int | None] = mapped_column(BigInteger)
    run_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)


class GlobalAnalysisRow(Base):
    """Cross-service statistics and summary for one analysis window."""

    __tablename__ = "global_analyses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    analysis_period: Mapped[str] = mapped_column(String(32), nullable=False, default="daily")
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)

    total_logs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_warnings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unique_services: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # percent

    summary: Mapped[str] = mapped_column(Text, nullable=False)
    patterns_json: Mapped[str | None] = mapped_column(Text)
    anomalies_json: Mapped[str | None] = mapped_column(Text)
    recommendations_json: Mapped[str | None] = mapped_column(Text)

    analyzed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (Index("ix_global_analyses_end_time", "end_time"),)
