"""Database package: engine, ORM models and the store facade."""

from domainhub.db.engine import create_db_engine, create_session_factory
from domainhub.db.facade import ActivityEntryDict, Database
from domainhub.db.orm import (
    Base,
    DomainActivityRow,
    DomainRow,
    PurchaseProgressRow,
)

__all__ = [
    "ActivityEntryDict",
    "Base",
    "Database",
    "DomainActivityRow",
    "DomainRow",
    "PurchaseProgressRow",
    "create_db_engine",
    "create_session_factory",
]
