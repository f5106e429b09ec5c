"""Configuration models: ServiceConfig, DefaultConfigEntry."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from logcore.db.base import Base, enum_values, utc_now
from logcore.db.enums import RetentionPolicy


class ServiceConfig(Base):
    """Per-service retention and alerting overrides."""

    __tablename__ = "service_configs"

    service_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    ttl_days: Mapped[int] = mapped_column(Integer, nullable=False)
    retention_policy: Mapped[RetentionPolicy] = mapped_column(
        SQLEnum(RetentionPolicy, values_callable=enum_values),
        nullable=False,
        default=RetentionPolicy.STANDARD,
    )
    alert_on_errors: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_logs_per_day: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


class DefaultConfigEntry(Base):
    """Global defaults stored as string key/value pairs."""

    __tablename__ = "default_config"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(1000), nullable=False)
