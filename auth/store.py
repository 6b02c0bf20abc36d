"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Session and route code never touches SQL
directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Refresh slot:
  Each account row has one refresh_token column -- the single refresh token
  currently considered valid. conditional_set_refresh_token() is the atomic
  compare-and-set that rotation depends on: one UPDATE whose WHERE clause
  matches both the id and the expected old value. rowcount == 0 means another
  writer moved the slot first. Never replace it with a read followed by an
  unconditional write.

Email collation:
  Callers pass normalized (trimmed, lower-cased) emails -- see
  auth.sessions.normalize_email. The UNIQUE constraint then gives
  case-insensitive uniqueness on every backend.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import Account, Role

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("name", String(255), nullable=False),
    Column("role", String(30), nullable=False, server_default=Role.USER.value),
    Column("refresh_token", Text),  # NULL = logged out
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities and their refresh-token slot.

    Usage:
        store = AccountStore("sqlite:///:memory:")
        account = store.create_account("a@x.com", hash_password("secret123"), "A")
        store.conditional_set_refresh_token(account.id, None, token)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Account queries
    # ------------------------------------------------------------------

    def create_account(self, email: str, password_hash: str, name: str, role: Role = Role.USER) -> Account:
        """Insert a new account and return it with its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Callers treat IntegrityError as a concurrent duplicate registration.
        """
        created_at = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.insert().values(
                    email=email,
                    password_hash=password_hash,
                    name=name,
                    role=role.value,
                    refresh_token=None,
                    created_at=created_at,
                )
            )
            conn.commit()
            account_id = result.inserted_primary_key[0]
        return Account(
            id=account_id,
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            current_refresh_token=None,
            created_at=created_at,
        )

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact (already normalized) email."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: int) -> Account | None:
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def count_accounts(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM accounts")).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Refresh slot
    # ------------------------------------------------------------------

    def conditional_set_refresh_token(self, account_id: int, expected: str | None, new: str | None) -> bool:
        """Atomically replace the refresh slot only if it still holds `expected`.

        expected=None matches a NULL (logged out) slot. Returns True if the
        row was updated, False if the account is missing or the slot changed.
        """
        slot = _accounts.c.refresh_token
        current_matches = slot.is_(None) if expected is None else slot == expected
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update().where((_accounts.c.id == account_id) & current_matches).values(refresh_token=new)
            )
            conn.commit()
        return result.rowcount > 0

    def set_refresh_token(self, account_id: int, token: str) -> bool:
        """Unconditionally write the refresh slot. Only for freshly minted tokens."""
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(refresh_token=token))
            conn.commit()
        return result.rowcount > 0

    def clear_refresh_token(self, account_id: int) -> bool:
        """Null the refresh slot (logout). Returns False if the account does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(refresh_token=None))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Admin / maintenance
    # ------------------------------------------------------------------

    def set_role(self, account_id: int, role: Role) -> bool:
        """Change an account's role. Used by seeding scripts and tests; no HTTP route."""
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(role=role.value))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        name=row.name,
        password_hash=row.password_hash,
        role=Role(row.role),
        current_refresh_token=row.refresh_token,
        created_at=row.created_at,
    )
