"""SQLAlchemy-backed progress store and domain store."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypedDict

import structlog
from sqlalchemy import select, text

from domainhub.db.engine import create_db_engine, create_session_factory
from domainhub.db.orm import (
    Base,
    DomainActivityRow,
    DomainRow,
    PurchaseProgressRow,
    utcnow_str,
)
from domainhub.models.domain import DomainRecord, DomainStatus
from domainhub.models.progress import (
    TERMINAL_STEPS,
    ProgressRecord,
    ProgressStatus,
    ProgressStep,
)

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session, sessionmaker

logger = structlog.get_logger()


class ActivityEntryDict(TypedDict):
    id: int
    domain_id: int
    user_id: str
    action: str
    old_value: str | None
    new_value: str | None
    created_at: str


def _dt_to_str(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _str_to_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class Database:
    """Keyed upserts for purchase progress, domain records and their activity log."""

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = str(db_path)
        self._engine: Engine = create_db_engine(self.db_path)
        self._session_factory: sessionmaker[Session] = create_session_factory(self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_schema(self) -> None:
        """Create all tables via ORM metadata."""
        Base.metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    def check_connection(self) -> bool:
        """Verify the database is reachable. Returns True or raises."""
        with self._session_factory() as session:
            session.execute(text("SELECT 1"))
        return True

    # --- Progress ---

    def upsert_progress(
        self,
        session_id: str,
        step: ProgressStep,
        status: ProgressStatus,
        message: str = "",
        domain_name: str | None = None,
        platform: str = "",
        force: bool = False,
    ) -> bool:
        """Write the session's current step. Returns False if the write was refused.

        Once a session has reached a terminal step every later write is
        refused, unless *force* is set for an out-of-band correction.
        """
        with self._session_factory() as session:
            row = session.scalars(
                select(PurchaseProgressRow).where(PurchaseProgressRow.session_id == session_id)
            ).first()
            if row is not None and row.step in TERMINAL_STEPS and not force:
                logger.debug(
                    "Progress write refused, session is terminal",
                    session_id=session_id,
                    current=row.step,
                    attempted=step.value,
                )
                return False
            if row is None:
                row = PurchaseProgressRow(session_id=session_id)
                session.add(row)
            row.step = step.value
            row.status = status.value
            row.message = message
            if domain_name is not None:
                row.domain_name = domain_name
            if platform:
                row.platform = platform
            row.updated_at = utcnow_str()
            session.commit()
            return True

    def get_progress(self, session_id: str) -> ProgressRecord | None:
        with self._session_factory() as session:
            row = session.scalars(
                select(PurchaseProgressRow).where(PurchaseProgressRow.session_id == session_id)
            ).first()
            if row is None:
                return None
            return ProgressRecord(
                session_id=row.session_id,
                step=ProgressStep(row.step),
                status=ProgressStatus(row.status),
                message=row.message,
                domain_name=row.domain_name,
                platform=row.platform,
                cancel_requested=row.cancel_requested,
                updated_at=datetime.fromisoformat(row.updated_at),
            )

    def request_cancel(self, session_id: str) -> bool:
        """Set the durable cancel marker. False if the session already finished."""
        with self._session_factory() as session:
            row = session.scalars(
                select(PurchaseProgressRow).where(PurchaseProgressRow.session_id == session_id)
            ).first()
            if row is not None and row.step in TERMINAL_STEPS:
                return False
            if row is None:
                row = PurchaseProgressRow(
                    session_id=session_id,
                    step=ProgressStep.GENERATING.value,
                    status=ProgressStatus.IN_PROGRESS.value,
                    message="Cancellation requested",
                )
                session.add(row)
            row.cancel_requested = True
            row.updated_at = utcnow_str()
            session.commit()
            return True

    def is_cancel_requested(self, session_id: str) -> bool:
        with self._session_factory() as session:
            flag = session.scalars(
                select(PurchaseProgressRow.cancel_requested).where(
                    PurchaseProgressRow.session_id == session_id
                )
            ).first()
            return bool(flag)

    # --- Domains ---

    def upsert_domain(self, record: DomainRecord) -> DomainRecord:
        """Insert or update by (domain_name, user_id). Returns the record with its id."""
        with self._session_factory() as session:
            row = session.scalars(
                select(DomainRow).where(
                    DomainRow.domain_name == record.domain_name,
                    DomainRow.user_id == record.user_id,
                )
            ).first()
            if row is None:
                row = DomainRow(domain_name=record.domain_name, user_id=record.user_id)
                session.add(row)
            row.registrar = record.registrar
            row.status = record.status.value
            row.platform = record.platform
            row.traffic_source = record.traffic_source
            row.registered_at = _dt_to_str(record.registered_at) or utcnow_str()
            row.expires_at = _dt_to_str(record.expires_at)
            row.dns_configured = record.dns_configured
            row.nameservers_json = json.dumps(record.nameservers)
            row.zone_id = record.zone_id
            row.auto_renew = record.auto_renew
            row.whois_guard = record.whois_guard
            row.manually_deactivated = record.manually_deactivated
            row.deactivated_at = _dt_to_str(record.deactivated_at)
            row.updated_at = utcnow_str()
            session.commit()
            return self._row_to_domain(row)

    def get_domain(self, domain_id: int) -> DomainRecord | None:
        with self._session_factory() as session:
            row = session.get(DomainRow, domain_id)
            return self._row_to_domain(row) if row is not None else None

    def get_domain_by_name(self, domain_name: str, user_id: str | None = None) -> DomainRecord | None:
        with self._session_factory() as session:
            stmt = select(DomainRow).where(DomainRow.domain_name == domain_name.lower())
            if user_id is not None:
                stmt = stmt.where(DomainRow.user_id == user_id)
            row = session.scalars(stmt.order_by(DomainRow.id)).first()
            return self._row_to_domain(row) if row is not None else None

    def list_domains(self, status: DomainStatus | None = None) -> list[DomainRecord]:
        with self._session_factory() as session:
            stmt = select(DomainRow).order_by(DomainRow.id)
            if status:
                stmt = stmt.where(DomainRow.status == status.value)
            return [self._row_to_domain(r) for r in session.scalars(stmt).all()]

    def mark_deactivated(self, domain_id: int) -> bool:
        """Retire a domain. False if no such domain exists."""
        now = utcnow_str()
        with self._session_factory() as session:
            row = session.get(DomainRow, domain_id)
            if row is None:
                return False
            row.status = DomainStatus.DEACTIVATED.value
            row.manually_deactivated = True
            row.deactivated_at = now
            row.updated_at = now
            session.commit()
            return True

    # --- Activity log ---

    def log_activity(
        self,
        domain_id: int,
        user_id: str,
        action: str,
        old_value: str | None = None,
        new_value: str | None = None,
    ) -> None:
        with self._session_factory() as session:
            session.add(
                DomainActivityRow(
                    domain_id=domain_id,
                    user_id=user_id,
                    action=action,
                    old_value=old_value,
                    new_value=new_value,
                )
            )
            session.commit()

    def get_activity(self, domain_id: int) -> list[ActivityEntryDict]:
        with self._session_factory() as session:
            stmt = (
                select(DomainActivityRow)
                .where(DomainActivityRow.domain_id == domain_id)
                .order_by(DomainActivityRow.id)
            )
            return [
                {
                    "id": r.id,
                    "domain_id": r.domain_id,
                    "user_id": r.user_id,
                    "action": r.action,
                    "old_value": r.old_value,
                    "new_value": r.new_value,
                    "created_at": r.created_at,
                }
                for r in session.scalars(stmt).all()
            ]

    @staticmethod
    def _row_to_domain(row: DomainRow) -> DomainRecord:
        return DomainRecord(
            id=row.id,
            domain_name=row.domain_name,
            user_id=row.user_id,
            registrar=row.registrar,
            status=DomainStatus(row.status),
            platform=row.platform,
            traffic_source=row.traffic_source,
            registered_at=datetime.fromisoformat(row.registered_at),
            expires_at=_str_to_dt(row.expires_at),
            dns_configured=row.dns_configured,
            nameservers=json.loads(row.nameservers_json),
            zone_id=row.zone_id,
            auto_renew=row.auto_renew,
            whois_guard=row.whois_guard,
            manually_deactivated=row.manually_deactivated,
            deactivated_at=_str_to_dt(row.deactivated_at),
        )
