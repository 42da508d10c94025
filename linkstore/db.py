"""
Durable tier backed by Postgres (or any SQLAlchemy URL, e.g. SQLite for tests).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, String, create_engine, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from linkstore.errors import DecodeCorruption, TierUnavailable
from linkstore.storage import Record

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def normalize_database_url(url: str) -> str:
    """
    Hosted Postgres providers hand out ``postgres://`` URLs; SQLAlchemy wants
    an explicit dialect and driver.
    """
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


def _connect_args(url: str, timeout_seconds: float) -> dict:
    if url.startswith("sqlite"):
        return {"timeout": timeout_seconds, "check_same_thread": False}
    if url.startswith("postgresql"):
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            # Bounds reads on a connection that was accepted but then stalls.
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }
    return {}


class DurableTier:
    """
    Authoritative tier shared by every process. Writes are upserts keyed by id.
    """

    name = "durable"

    def __init__(self, database_url: str, timeout_seconds: float = 5.0):
        if not database_url:
            raise ValueError("POSTGRES_URL is required for DurableTier")
        url = normalize_database_url(database_url)
        self.timeout_seconds = timeout_seconds
        self.engine = create_engine(
            url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
            connect_args=_connect_args(url, timeout_seconds),
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )

    def ensure_schema(self) -> None:
        """Create the links table if it does not exist yet."""
        Base.metadata.create_all(self.engine)

    def get(self, record_id: str) -> Optional[Record]:
        try:
            with self.Session() as session:
                row = session.get(LinkRow, record_id)
                if not row:
                    return None
                return Record(id=row.id, payload=row.data, created_at=row.created_at)
        except ValueError as exc:
            raise DecodeCorruption(self.name, record_id) from exc
        except SQLAlchemyError as exc:
            raise TierUnavailable(self.name, str(exc)) from exc

    def put(self, record_id: str, payload: Any) -> None:
        insert = _UPSERT_INSERTS.get(self.engine.dialect.name)
        if insert is None:
            raise TierUnavailable(
                self.name, f"upsert not supported on {self.engine.dialect.name}"
            )
        # Store a JSON null rather than SQL NULL for a null document.
        data = JSON.NULL if payload is None else payload
        stmt = insert(LinkRow).values(id=record_id, data=data)
        stmt = stmt.on_conflict_do_update(
            index_elements=[LinkRow.id],
            set_={"data": stmt.excluded.data},
        )
        try:
            with self.Session() as session:
                session.execute(stmt)
                session.commit()
        except SQLAlchemyError as exc:
            raise TierUnavailable(self.name, str(exc)) from exc

    def dispose(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class LinkRow(Base):
    __tablename__ = "links"

    id = Column(String, primary_key=True)
    data = Column(
        JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False
    )
    created_at = Column(DateTime, nullable=True, server_default=func.now())
