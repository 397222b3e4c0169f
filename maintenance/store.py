"""
maintenance/store.py -- SQLAlchemy-backed persistence for complexes and requisitions.

Uses SQLAlchemy Core (not ORM) so the dataclasses in maintenance/models.py
remain the authoritative domain representation. Swapping SQLite for PostgreSQL
is a connection string change.

Pattern: Repository + Data Mapper. MaintenanceStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = MaintenanceStore()
    complex_id = store.create_complex("Residencial Primavera")
    match = store.find_complex_by_name_substring("primavera")
    store.create_requisition(Requisition(user_id=1, complex_id=complex_id, ...))
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from core.config import get_database_settings
from maintenance.models import Complex, Requisition, RequisitionStatus

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_complexes = Table(
    "complexes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("created_at", String(32), nullable=False),
)

_requisitions = Table(
    "requisitions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("complex_id", Integer, nullable=False, index=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("location", String(255), nullable=False),
    Column("img_url", Text),
    Column("priority", String(50), nullable=False),
    Column("status", String(20), nullable=False, server_default=RequisitionStatus.PENDING.value),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MaintenanceStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_database_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Complexes
    # ------------------------------------------------------------------

    def create_complex(self, name: str) -> int:
        """Insert a complex and return its id. Raises IntegrityError on a duplicate name."""
        with self.engine.connect() as conn:
            result = conn.execute(_complexes.insert().values(name=name.strip(), created_at=_now_iso()))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_complex(self, complex_id: int) -> Optional[Complex]:
        with self.engine.connect() as conn:
            row = conn.execute(_complexes.select().where(_complexes.c.id == complex_id)).fetchone()
        return _row_to_complex(row) if row is not None else None

    def find_complex_by_name_substring(self, fragment: str) -> Optional[Complex]:
        """Return the first complex (lowest id) whose name contains fragment, case-insensitively.

        LIKE wildcards in fragment are escaped so "%" and "_" match literally.
        """
        escaped = fragment.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        if not escaped:
            return None
        with self.engine.connect() as conn:
            row = conn.execute(
                _complexes.select()
                .where(_complexes.c.name.ilike(f"%{escaped}%", escape="\\"))
                .order_by(_complexes.c.id)
                .limit(1)
            ).fetchone()
        return _row_to_complex(row) if row is not None else None

    def list_complex_names(self) -> list[str]:
        """Return all complex names ordered alphabetically."""
        with self.engine.connect() as conn:
            rows = conn.execute(_complexes.select().order_by(_complexes.c.name)).fetchall()
        return [r.name for r in rows]

    # ------------------------------------------------------------------
    # Requisitions
    # ------------------------------------------------------------------

    def create_requisition(self, requisition: Requisition) -> int:
        """Insert a requisition and return its id. Status is forced to PENDING."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _requisitions.insert().values(
                    user_id=requisition.user_id,
                    complex_id=requisition.complex_id,
                    title=requisition.title,
                    content=requisition.content,
                    location=requisition.location,
                    img_url=requisition.img_url or None,
                    priority=requisition.priority,
                    status=RequisitionStatus.PENDING.value,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_requisition(self, requisition_id: int) -> Optional[Requisition]:
        with self.engine.connect() as conn:
            row = conn.execute(_requisitions.select().where(_requisitions.c.id == requisition_id)).fetchone()
        return _row_to_requisition(row) if row is not None else None

    def list_requisitions_by_user(self, user_id: int) -> list[Requisition]:
        """Return a user's requisitions, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _requisitions.select().where(_requisitions.c.user_id == user_id).order_by(_requisitions.c.id.desc())
            ).fetchall()
        return [_row_to_requisition(r) for r in rows]

    def list_requisitions(self, complex_id: Optional[int] = None) -> list[Requisition]:
        """Return all requisitions, newest first, optionally limited to one complex."""
        query = _requisitions.select()
        if complex_id is not None:
            query = query.where(_requisitions.c.complex_id == complex_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_requisitions.c.id.desc())).fetchall()
        return [_row_to_requisition(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_complex(row) -> Complex:
    return Complex(id=row.id, name=row.name, created_at=row.created_at)


def _row_to_requisition(row) -> Requisition:
    return Requisition(
        id=row.id,
        user_id=row.user_id,
        complex_id=row.complex_id,
        title=row.title,
        content=row.content,
        location=row.location,
        img_url=row.img_url,
        priority=row.priority,
        status=RequisitionStatus(row.status),
        created_at=row.created_at,
    )
