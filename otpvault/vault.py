"""
otpvault - Vault Module

The record flow every front end (CLI, HTTP page) goes through:
- add:  validate -> encrypt under label(account, issuer) -> upsert
- read: fetch row -> decrypt with the recomputed label -> TOTP code
- rm:   delete by (account, issuer)

The key and the store are handed in by the caller; nothing here is global.
Bulk reads yield one result per record, so a single bad row never hides
the others.
"""

import time
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from qrcode.exceptions import DataOverflowError

from . import crypto, qr, totp
from .errors import (
    CodeGenerationError,
    DecryptionError,
    KeyLoadError,
    OTPVaultError,
    ValidationError,
)
from .logger import get_logger
from .store import SecretStore, VaultRecord


log = get_logger(__name__)


@dataclass(frozen=True)
class CodeResult:
    """Outcome of generating the code for one record."""
    account: str
    issuer: str
    timecode: Optional[totp.TimeCode] = None
    error: Optional[OTPVaultError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class QRResult:
    """Outcome of exporting one record as a QR image."""
    account: str
    issuer: str
    path: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# VAULT CLASS
# =============================================================================

class Vault:
    """
    TOTP secrets encrypted under the user's RSA key.

    Usage:
        key = crypto.load_private_key("~/.ssh/id_rsa")
        store = SecretStore("~/.ssh/auth.db")
        vault = Vault(store, key)

        vault.store_secret("alice", "github", "JBSWY3DPEHPK3PXP")
        for result in vault.codes():
            print(result.account, result.timecode.code)
    """

    def __init__(self, store: SecretStore, key: Optional[crypto.PrivateKey] = None):
        """
        Args:
            store: Open SecretStore
            key: Loaded private key; listing and removal work without one
        """
        self.store = store
        self.key = key

    def store_secret(self, account: str, issuer: str, raw_secret: str) -> None:
        """
        Encrypt and save a secret, replacing any previous one for the pair.

        Args:
            account: Account name (required)
            issuer: Issuer name (required)
            raw_secret: Base32 secret as given by the provider (required)

        Raises:
            ValidationError: a field is empty
            EncryptionError: secret too long for the key
            StoreError: database failure
        """
        if not raw_secret:
            raise ValidationError("secret key is missing")
        if not issuer:
            raise ValidationError("issuer is missing")
        if not account:
            raise ValidationError("account name is missing")

        self._require_key()
        ciphertext = crypto.encrypt_secret(self.key, raw_secret.encode("utf-8"), account, issuer)
        self.store.upsert(account, issuer, ciphertext)
        log.debug("stored secret for %s/%s", issuer, account)

    def current_code(
        self,
        account: str,
        issuer: str,
        ciphertext: bytes,
        now: Optional[totp.Timestamp] = None,
    ) -> totp.TimeCode:
        """
        Decrypt one record and derive its current code.

        Raises:
            DecryptionError: wrong key, wrong label or corrupt ciphertext
            CodeGenerationError: decrypted secret is not Base32
        """
        secret = self._secret(account, issuer, ciphertext)
        return totp.generate_code(secret, now)

    def codes(self, now: Optional[totp.Timestamp] = None) -> Iterator[CodeResult]:
        """
        Current code for every record, ordered by account then issuer.

        All records are evaluated at the same instant. Failures are
        reported in the result of the record they belong to.
        """
        if now is None:
            now = time.time()
        for record in self.store.records():
            yield self._code_result(record, now)

    def lookup(self, pattern: str, now: Optional[totp.Timestamp] = None) -> List[CodeResult]:
        """Codes whose account or issuer contains pattern."""
        return [
            r for r in self.codes(now)
            if pattern in r.account or pattern in r.issuer
        ]

    def entries(self) -> List[Tuple[str, str]]:
        """(account, issuer) of every record, without decrypting anything."""
        return self.store.keys()

    def remove_secret(self, account: str, issuer: str) -> None:
        """
        Delete the secret for (account, issuer). Missing records are ignored.

        Raises:
            ValidationError: a field is empty
        """
        if not issuer:
            raise ValidationError("issuer is missing")
        if not account:
            raise ValidationError("account name is missing")
        self.store.delete(account, issuer)

    def export_qr(self, output_dir: str = ".") -> Iterator[QRResult]:
        """Write an enrollment QR image for every record."""
        for record in self.store.records():
            try:
                secret = self._secret(record.account, record.issuer, record.ciphertext)
                totp.byte_secret(secret)
                path = qr.write_qr(record.issuer, record.account, secret, output_dir)
            except (DecryptionError, CodeGenerationError, DataOverflowError, OSError) as e:
                log.debug("qr export failed for %s/%s", record.issuer, record.account)
                yield QRResult(record.account, record.issuer, error=e)
                continue
            yield QRResult(record.account, record.issuer, path=path)

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _secret(self, account: str, issuer: str, ciphertext: bytes) -> str:
        """Decrypted, normalized shared secret. Never log the return value."""
        self._require_key()
        plaintext = crypto.decrypt_secret(self.key, ciphertext, account, issuer)
        try:
            decoded = plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise CodeGenerationError("shared secret is not valid base32") from None
        return totp.normalize_secret(decoded)

    def _code_result(self, record: VaultRecord, now: totp.Timestamp) -> CodeResult:
        try:
            timecode = self.current_code(record.account, record.issuer, record.ciphertext, now)
        except (DecryptionError, CodeGenerationError) as e:
            log.debug("cannot generate code for %s/%s: %s", record.issuer, record.account, e)
            return CodeResult(record.account, record.issuer, error=e)
        return CodeResult(record.account, record.issuer, timecode=timecode)

    def _require_key(self) -> None:
        """Check that a private key was loaded."""
        if self.key is None:
            raise KeyLoadError("no private key loaded")
