"""
otpvault - Cryptography Module

All public-key operations of the vault live here:
- Loading the user's RSA private key (usually ~/.ssh/id_rsa)
- Encrypting TOTP secrets with RSA-OAEP
- Binding every ciphertext to the (account, issuer) pair it belongs to

Security Architecture:
    1. PEM file -> RSA private key (PKCS#1, "RSA PRIVATE KEY")
    2. label = account ++ issuer
    3. secret -> RSA-OAEP(SHA-256, label) -> ciphertext stored in SQLite
    4. ciphertext + label -> RSA-OAEP decrypt -> secret

Why the label?
    - OAEP hashes the label into the padding
    - A row moved to another account/issuer no longer decrypts
    - Stored ciphertexts cannot be silently reattributed
"""

import os
import re
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .errors import DecryptionError, EncryptionError, KeyLoadError


# =============================================================================
# Configuration
# =============================================================================

PEM_KEY_TYPE = "RSA PRIVATE KEY"
HASH_SIZE = 32           # SHA-256 digest size, used by OAEP

_PEM_BEGIN = re.compile(rb"-----BEGIN ([A-Z0-9 ]+)-----")


# =============================================================================
# Key Provider
# =============================================================================

class PrivateKey:
    """
    RSA keypair used to protect the vault.

    Loaded once and then only read: the same instance can serve any number
    of encrypt/decrypt calls, from any number of threads.

    Usage:
        key = load_private_key("~/.ssh/id_rsa")
        ct = key.encrypt(b"JBSWY3DPEHPK3PXP", b"alicegithub")
        pt = key.decrypt(ct, b"alicegithub")
    """

    def __init__(self, private_key: rsa.RSAPrivateKey):
        self._private_key = private_key
        self._public_key = private_key.public_key()

    @classmethod
    def from_key(cls, private_key) -> "PrivateKey":
        """Wrap an already parsed key object."""
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KeyLoadError("mismatched key type: want an RSA private key")
        return cls(private_key)

    @property
    def key_size(self) -> int:
        """Modulus size in bits."""
        return self._private_key.key_size

    @property
    def max_payload_size(self) -> int:
        """Largest plaintext (in bytes) OAEP-SHA256 can carry with this key."""
        return (self.key_size + 7) // 8 - 2 * HASH_SIZE - 2

    def encrypt(self, plaintext: bytes, label: bytes) -> bytes:
        """
        Encrypt with the public half (RSA-OAEP, SHA-256).

        Raises:
            EncryptionError: plaintext too long for this key
        """
        if len(plaintext) > self.max_payload_size:
            raise EncryptionError(
                f"secret is too long: {len(plaintext)} bytes, "
                f"key allows at most {self.max_payload_size}"
            )
        try:
            return self._public_key.encrypt(plaintext, _oaep(label))
        except (ValueError, TypeError) as e:
            raise EncryptionError(f"encryption failed: {e}") from e

    def decrypt(self, ciphertext: bytes, label: bytes) -> bytes:
        """
        Decrypt with the private half.

        Corrupt bytes, a foreign key and a wrong label all end up here as
        the same DecryptionError, without the underlying cause attached.
        """
        if not isinstance(ciphertext, (bytes, bytearray, memoryview)):
            raise DecryptionError("decryption failed")
        try:
            return self._private_key.decrypt(bytes(ciphertext), _oaep(label))
        except ValueError:
            raise DecryptionError("decryption failed") from None


def load_private_key(path: str) -> PrivateKey:
    """
    Load a PEM encoded PKCS#1 RSA private key.

    Only the first PEM block is considered and it must be of type
    "RSA PRIVATE KEY". Passphrase protected keys are not supported.

    Args:
        path: Key file path (~ is expanded)

    Returns:
        PrivateKey ready for encrypt/decrypt

    Raises:
        KeyLoadError: unreadable file, not PEM, wrong type, or invalid key
    """
    try:
        with open(os.path.expanduser(path), "rb") as f:
            pem_data = f.read()
    except OSError as e:
        raise KeyLoadError(f"cannot read key file: {e}") from e

    block_type = _pem_block_type(pem_data)
    if block_type is None:
        raise KeyLoadError("key data is not PEM encoded")
    if block_type != PEM_KEY_TYPE:
        raise KeyLoadError(
            f"mismatched key type. got: {block_type!r} want: {PEM_KEY_TYPE!r}"
        )

    try:
        private_key = serialization.load_pem_private_key(pem_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError(f"invalid private key: {e}") from e

    return PrivateKey.from_key(private_key)


# =============================================================================
# Label-Bound Encryption
# =============================================================================

def crypt_label(account: str, issuer: str) -> bytes:
    """
    Build the OAEP label for a record.

    The two fields are concatenated without a separator, so ("ab", "c") and
    ("a", "bc") share a label. Existing databases depend on this exact
    format; changing it makes every stored secret undecryptable.
    """
    return account.encode("utf-8") + issuer.encode("utf-8")


def encrypt_secret(key: PrivateKey, secret: bytes, account: str, issuer: str) -> bytes:
    """
    Encrypt a TOTP secret for one (account, issuer) pair.

    Args:
        key: Loaded vault key
        secret: Shared secret as typed by the user
        account: Account name
        issuer: Issuer name

    Returns:
        Ciphertext, opaque bytes for the store
    """
    return key.encrypt(secret, crypt_label(account, issuer))


def decrypt_secret(key: PrivateKey, ciphertext: bytes, account: str, issuer: str) -> bytes:
    """
    Decrypt a stored TOTP secret.

    The label is recomputed from the row, so ciphertext copied to another
    (account, issuer) pair fails here.

    Raises:
        DecryptionError: for any failure, see PrivateKey.decrypt
    """
    return key.decrypt(ciphertext, crypt_label(account, issuer))


# =============================================================================
# Helpers
# =============================================================================

def _oaep(label: bytes) -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=label,
    )


def _pem_block_type(data: bytes) -> Optional[str]:
    """Type of the first PEM block in data, or None when there is none."""
    match = _PEM_BEGIN.search(data)
    if not match:
        return None
    return match.group(1).decode("ascii")
