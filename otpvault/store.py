"""
otpvault - Store Module

SQLite persistence for encrypted TOTP secrets.

Database structure:
- otps: one row per (account, issuer), secret stored as an RSA-OAEP blob

The store never sees plaintext. It only knows four operations:
upsert by key, select all ordered, select one by key, delete by key.
"""

import os
import sqlite3
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import StoreError
from .logger import get_logger


log = get_logger(__name__)


# =============================================================================
# DATABASE SCHEMA
# =============================================================================

SCHEMA = """
CREATE TABLE IF NOT EXISTS otps (
    id INTEGER PRIMARY KEY,
    account TEXT NOT NULL,
    issuer TEXT NOT NULL,
    password BLOB NOT NULL          -- RSA-OAEP(secret, label=account||issuer)
);

CREATE UNIQUE INDEX IF NOT EXISTS otps_account_issuer ON otps(account, issuer);
"""

# Crash safety, and overwrite deleted ciphertext on disk
PRAGMAS = """
PRAGMA synchronous=FULL;
PRAGMA secure_delete=ON;
"""


@dataclass(frozen=True)
class VaultRecord:
    """One stored secret. ciphertext is opaque to everything but crypto."""
    account: str
    issuer: str
    ciphertext: bytes

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "VaultRecord":
        # Rows written by other tools may hold NULLs; decryption rejects them
        return cls(_text(row["account"]), _text(row["issuer"]), row["password"])


def _text(value) -> str:
    return "" if value is None else str(value)


# =============================================================================
# STORE CLASS
# =============================================================================

class SecretStore:
    """
    Encrypted secret table in a SQLite file.

    Usage:
        store = SecretStore("~/.ssh/auth.db")
        store.initialize()
        store.upsert("alice", "github", ciphertext)
        for record in store.records():
            ...
        store.close()
    """

    def __init__(self, db_path: str):
        """
        Open the database file (created on first use).

        Args:
            db_path: Path to SQLite database file (~ is expanded)
        """
        self.db_path = os.path.expanduser(db_path)
        try:
            # HTTP mode reads from request threads; writes stay serialized
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(PRAGMAS)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open database {self.db_path}: {e}") from e

    def __enter__(self) -> "SecretStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def initialize(self) -> None:
        """Create the table and unique index. Safe to run more than once."""
        try:
            self.conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"cannot initialize database: {e}") from e
        self._commit()
        log.debug("schema ready in %s", self.db_path)

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def upsert(self, account: str, issuer: str, ciphertext: bytes) -> None:
        """Insert, or replace the ciphertext of an existing (account, issuer)."""
        self._require_initialized()
        self._execute(
            """INSERT INTO otps (account, issuer, password) VALUES (?, ?, ?)
               ON CONFLICT(account, issuer) DO UPDATE SET password = excluded.password""",
            (account, issuer, ciphertext),
        )
        self._commit()

    def records(self) -> List[VaultRecord]:
        """All records, ordered by account then issuer."""
        self._require_initialized()
        rows = self._execute(
            "SELECT account, issuer, password FROM otps ORDER BY account ASC, issuer ASC"
        ).fetchall()
        return [VaultRecord.from_row(row) for row in rows]

    def keys(self) -> List[Tuple[str, str]]:
        """(account, issuer) of every record, same order as records()."""
        self._require_initialized()
        rows = self._execute(
            "SELECT account, issuer FROM otps ORDER BY account ASC, issuer ASC"
        ).fetchall()
        return [(_text(row["account"]), _text(row["issuer"])) for row in rows]

    def find(self, account: str, issuer: str) -> Optional[VaultRecord]:
        self._require_initialized()
        row = self._execute(
            "SELECT account, issuer, password FROM otps WHERE account = ? AND issuer = ?",
            (account, issuer),
        ).fetchone()
        if not row:
            return None
        return VaultRecord.from_row(row)

    def delete(self, account: str, issuer: str) -> None:
        """
        Delete the record for (account, issuer).

        A missing record is not an error.
        """
        if self.find(account, issuer) is None:
            log.debug("nothing to delete for %s/%s", issuer, account)
            return
        self._execute(
            "DELETE FROM otps WHERE account = ? AND issuer = ?", (account, issuer)
        )
        self._commit()

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if not self.conn:
            raise StoreError("database is closed")
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as e:
            self._rollback()
            raise StoreError(str(e)) from e

    def _commit(self) -> None:
        if not self.conn:
            raise StoreError("database is closed")
        try:
            self.conn.commit()
        except sqlite3.Error as e:
            self._rollback()
            raise StoreError(f"commit failed: {e}") from e

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as e:
            log.debug("rollback failed: %s", e)

    def _require_initialized(self) -> None:
        """Check that `init` has been run on this database."""
        row = self._execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'otps'"
        ).fetchone()
        if not row:
            raise StoreError("database is not initialized, run `otp init` first")
