"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as maintenance/store.py).
UserStore is the repository; _row_to_user / _row_to_token_pair are the mappers.
Route and token code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

One token pair per user:
  token_pairs.user_id is UNIQUE, and replace_token_pair() runs its delete and
  insert inside a single transaction (engine.begin()). Two concurrent logins
  for the same user cannot both commit a row: the loser fails on the UNIQUE
  constraint instead of leaving two live pairs behind.

  update_token_pair() is a conditional UPDATE keyed on the refresh token being
  replaced. If another rotation already swapped it out, rowcount is 0 and the
  caller treats the refresh token as stale.

Layer rule: no imports from api/ or maintenance/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from auth.models import Role, TokenPair, User
from core.config import get_database_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text),
    Column("name", String(255), nullable=False),
    Column("role", Integer, nullable=False, server_default=str(int(Role.NAO_VALIDADO))),
    Column("complex_id", Integer),  # complexes.id in maintenance/store.py
    Column("complement", String(255), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("is_active", Integer, nullable=False, server_default="1"),
)

_token_pairs = Table(
    "token_pairs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, unique=True),
    Column("access_token", Text, nullable=False, unique=True),
    Column("refresh_token", Text, nullable=False, unique=True),
    Column("expires_at", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
)

# Dialects whose insert() supports on_conflict_do_update.
_UPSERT_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and TokenPair entities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(username="ana", name="Ana", complex_id=1))
        user = store.get_by_username("ana")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_database_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def ping(self) -> None:
        """Round-trip a trivial query. Raises if the database is unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    hashed_password=user.hashed_password,
                    name=user.name,
                    role=int(user.role),
                    complex_id=user.complex_id,
                    complement=user.complement,
                    created_at=_now_iso(),
                    is_active=1 if user.is_active else 0,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self, complex_id: int | None = None, role: Role | None = None) -> list[User]:
        """Return users ordered by username, optionally filtered by complex and role."""
        query = _users.select()
        if complex_id is not None:
            query = query.where(_users.c.complex_id == complex_id)
        if role is not None:
            query = query.where(_users.c.role == int(role))
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: role, is_active, name, complement, hashed_password.
        role may be passed as a Role; is_active as bool.

        Returns True if a row was updated, False if user_id was not found.
        """
        if "role" in fields:
            fields["role"] = int(fields["role"])
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user and their token pair in one transaction.

        Returns True if the user was deleted, False if not found. Policy checks
        (who may delete whom) are the caller's responsibility.
        """
        with self.engine.begin() as conn:
            conn.execute(_token_pairs.delete().where(_token_pairs.c.user_id == user_id))
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Token pair queries
    # ------------------------------------------------------------------

    def find_token_pair_by_user(self, user_id: int) -> TokenPair | None:
        with self.engine.connect() as conn:
            row = conn.execute(_token_pairs.select().where(_token_pairs.c.user_id == user_id)).fetchone()
        return _row_to_token_pair(row) if row is not None else None

    def find_token_pair_by_access_token(self, access_token: str) -> TokenPair | None:
        """Exact-match lookup. O(1) via the UNIQUE index on access_token."""
        with self.engine.connect() as conn:
            row = conn.execute(_token_pairs.select().where(_token_pairs.c.access_token == access_token)).fetchone()
        return _row_to_token_pair(row) if row is not None else None

    def find_token_pair_by_refresh_token(self, refresh_token: str) -> TokenPair | None:
        """Exact-match lookup. O(1) via the UNIQUE index on refresh_token."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _token_pairs.select().where(_token_pairs.c.refresh_token == refresh_token)
            ).fetchone()
        return _row_to_token_pair(row) if row is not None else None

    def replace_token_pair(self, user_id: int, access_token: str, refresh_token: str, expires_at: str) -> None:
        """Make (access_token, refresh_token) the user's only pair in one statement.

        SQLite and PostgreSQL use INSERT .. ON CONFLICT (user_id) DO UPDATE, so
        two concurrent logins for the same user cannot both insert. Other
        dialects fall back to delete-then-insert inside one transaction.
        """
        values = {
            "user_id": user_id,
            "access_token": access_token,
            "refresh_token": refresh_token,
            "expires_at": expires_at,
            "created_at": _now_iso(),
        }
        dialect_insert = _UPSERT_INSERTS.get(self.engine.dialect.name)
        with self.engine.begin() as conn:
            if dialect_insert is None:
                conn.execute(_token_pairs.delete().where(_token_pairs.c.user_id == user_id))
                conn.execute(_token_pairs.insert().values(**values))
                return
            stmt = dialect_insert(_token_pairs).values(**values)
            conn.execute(
                stmt.on_conflict_do_update(
                    index_elements=[_token_pairs.c.user_id],
                    set_={
                        "access_token": stmt.excluded.access_token,
                        "refresh_token": stmt.excluded.refresh_token,
                        "expires_at": stmt.excluded.expires_at,
                        "created_at": stmt.excluded.created_at,
                    },
                )
            )

    def update_token_pair(
        self,
        user_id: int,
        current_refresh_token: str,
        access_token: str,
        refresh_token: str,
        expires_at: str,
    ) -> bool:
        """Overwrite the user's pair in place if current_refresh_token is still live.

        Returns False when the row was already rotated (or deleted) by someone
        else; no write happens in that case.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _token_pairs.update()
                .where((_token_pairs.c.user_id == user_id) & (_token_pairs.c.refresh_token == current_refresh_token))
                .values(access_token=access_token, refresh_token=refresh_token, expires_at=expires_at)
            )
        return result.rowcount > 0

    def delete_token_pair_by_user(self, user_id: int) -> bool:
        """Remove the user's pair. Returns True if a row was deleted."""
        with self.engine.begin() as conn:
            result = conn.execute(_token_pairs.delete().where(_token_pairs.c.user_id == user_id))
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        name=row.name,
        role=Role(row.role),
        complex_id=row.complex_id,
        complement=row.complement or "",
        created_at=row.created_at,
        is_active=bool(row.is_active),
    )


def _row_to_token_pair(row) -> TokenPair:
    return TokenPair(
        user_id=row.user_id,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )
