"""SQLAlchemy ORM rows for progress, domains and the domain activity log."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow_str() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class Base(DeclarativeBase):
    pass


class PurchaseProgressRow(Base):
    __tablename__ = "purchase_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    step: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    domain_name: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    platform: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cancel_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=utcnow_str)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False, default=utcnow_str)

    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'completed', 'error', 'canceled')",
            name="ck_purchase_progress_status",
        ),
    )


class DomainRow(Base):
    __tablename__ = "domains"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain_name: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    registrar: Mapped[str] = mapped_column(Text, nullable=False, default="namecheap")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")
    platform: Mapped[str] = mapped_column(Text, nullable=False, default="")
    traffic_source: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    registered_at: Mapped[str] = mapped_column(Text, nullable=False, default=utcnow_str)
    expires_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    dns_configured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    nameservers_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    zone_id: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    whois_guard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    manually_deactivated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deactivated_at: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=utcnow_str)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False, default=utcnow_str)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'deactivated', 'expired')",
            name="ck_domains_status",
        ),
        UniqueConstraint("domain_name", "user_id", name="uq_domains_name_user"),
        Index("idx_domains_status", "status"),
    )


class DomainActivityRow(Base):
    __tablename__ = "domain_activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain_id: Mapped[int] = mapped_column(Integer, ForeignKey("domains.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    action: Mapped[str] = mapped_column(Text, nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=utcnow_str)

    __table_args__ = (Index("idx_domain_activity_domain", "domain_id"),)
