"""
otpvault - Error Taxonomy

Every failure the vault reports is one of these. Low-level exceptions
(sqlite3, cryptography, base64, file I/O) are converted at the point where
they happen so callers only ever deal with OTPVaultError subclasses.
"""


class OTPVaultError(Exception):
    """Base class for all vault errors."""


class KeyLoadError(OTPVaultError):
    """Private key file is unreadable, not PEM, or not an RSA PKCS#1 key."""


class ValidationError(OTPVaultError):
    """A required field is missing."""


class EncryptionError(OTPVaultError):
    """Secret could not be encrypted (usually: too long for the key)."""


class DecryptionError(OTPVaultError):
    """
    Ciphertext could not be decrypted.

    Raised with the same message whether the bytes are corrupt, were made
    with another key, or were bound to another label.
    """


class CodeGenerationError(OTPVaultError):
    """Decrypted shared secret is not valid Base32."""


class StoreError(OTPVaultError):
    """The SQLite store failed or is not initialized."""
