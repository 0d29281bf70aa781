"""
SQLAlchemy-backed durable repository.

Every entity kind shares one ``records`` table keyed by (kind, key) with
a JSON payload. Each put runs in its own transaction.

Usage:
    store = SQLRecordStore("sqlite:///chatcommerce.db")
    sessions = store.repository("sessions")
    sessions.put("order_123", {...})
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from chatcommerce.errors import PersistenceError
from chatcommerce.storage.repository import Record

logger = logging.getLogger(__name__)

Base = declarative_base()


class RecordRow(Base):
    __tablename__ = "records"

    kind = Column(String(32), primary_key=True)
    key = Column(String(255), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False)


def _engine_kwargs(url: str) -> dict:
    # In-memory SQLite lives per connection; share one across threads.
    if url in ("sqlite://", "sqlite:///:memory:"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {}


class SQLRecordStore:
    """Owns the engine and session factory; hands out per-kind repositories."""

    def __init__(self, database_url: str) -> None:
        try:
            self.engine = create_engine(database_url, **_engine_kwargs(database_url))
            self.SessionLocal = sessionmaker(bind=self.engine)
            self.init_db()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not open database: {exc}") from exc
        logger.info("SQL record store ready (%s)", self.engine.url.get_backend_name())

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def repository(self, kind: str) -> "SQLRepository":
        return SQLRepository(self, kind)


class SQLRepository:
    """Repository over the rows of one kind in the records table."""

    def __init__(self, store: SQLRecordStore, kind: str) -> None:
        self.store = store
        self.kind = kind

    def get(self, key: str) -> Optional[Record]:
        try:
            with self.store.SessionLocal() as db:
                row = db.get(RecordRow, (self.kind, key))
                return json.loads(row.payload) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Read failed for {self.kind}/{key}: {exc}") from exc

    def put(self, key: str, record: Record) -> None:
        payload = json.dumps(record)
        now = datetime.now(timezone.utc)
        try:
            with self.store.SessionLocal() as db:
                row = db.get(RecordRow, (self.kind, key))
                if row is None:
                    db.add(RecordRow(kind=self.kind, key=key, payload=payload, updated_at=now))
                else:
                    row.payload = payload
                    row.updated_at = now
                db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Write failed for {self.kind}/{key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self.store.SessionLocal() as db:
                row = db.get(RecordRow, (self.kind, key))
                if row is not None:
                    db.delete(row)
                    db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Delete failed for {self.kind}/{key}: {exc}") from exc

    def values(self) -> list[Record]:
        try:
            with self.store.SessionLocal() as db:
                rows = db.scalars(
                    select(RecordRow).where(RecordRow.kind == self.kind).order_by(RecordRow.key)
                ).all()
                return [json.loads(row.payload) for row in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Scan failed for {self.kind}: {exc}") from exc
