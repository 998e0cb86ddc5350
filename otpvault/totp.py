"""
otpvault - Time-Based One-Time Codes

Turns a decrypted shared secret into the code an authenticator app shows.

Codes come from pyotp (RFC 4226 / RFC 6238, HMAC-SHA1, 6 digits, 30 second
steps); this module pins those parameters, normalizes pasted secrets and
maps bad input to CodeGenerationError.

Everything here is a pure function of (secret, now), so tests pin `now`.
"""

import binascii
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import pyotp

from .errors import CodeGenerationError


STEP_SECONDS = 30
DIGITS = 6

Timestamp = Union[datetime, int, float]


@dataclass(frozen=True)
class TimeCode:
    """A generated code and how long it stays valid."""
    code: str
    seconds_remaining: int


# =============================================================================
# Secret Decoding
# =============================================================================

def normalize_secret(secret: str) -> str:
    """Drop whitespace and upper-case, the way secrets are usually pasted."""
    return "".join(secret.split()).upper()


def byte_secret(secret: str) -> bytes:
    """
    Decode a Base32 secret into HMAC key bytes.

    pyotp adds the '=' padding most providers leave out.

    Raises:
        CodeGenerationError: empty or not valid Base32
    """
    if not secret:
        raise CodeGenerationError("shared secret is empty")
    try:
        return pyotp.TOTP(secret).byte_secret()
    except (binascii.Error, ValueError):
        raise CodeGenerationError("shared secret is not valid base32") from None


# =============================================================================
# Code Generation
# =============================================================================

def unix_time(now: Optional[Timestamp] = None) -> int:
    """Whole seconds since the epoch; None means the current time."""
    if now is None:
        return int(time.time())
    if isinstance(now, datetime):
        return int(now.timestamp())
    return int(now)


def time_step(now: Optional[Timestamp] = None) -> int:
    return unix_time(now) // STEP_SECONDS


def seconds_remaining(now: Optional[Timestamp] = None) -> int:
    """Seconds until the current step ends, 30 down to 1."""
    return STEP_SECONDS - unix_time(now) % STEP_SECONDS


def generate_code(secret: str, now: Optional[Timestamp] = None) -> TimeCode:
    """
    Current TOTP code for a shared secret.

    Args:
        secret: Base32 shared secret (whitespace and case are ignored)
        now: Moment to generate for, defaults to the current time

    Returns:
        TimeCode with the 6-digit code and its remaining validity

    Raises:
        CodeGenerationError: secret is not valid Base32, or now is before 1970
    """
    ts = unix_time(now)
    if ts < 0:
        raise CodeGenerationError("time is before the unix epoch")

    secret = normalize_secret(secret)
    byte_secret(secret)
    # counter passed directly: pyotp.at() round-trips through local time
    otp = pyotp.TOTP(secret, digits=DIGITS, interval=STEP_SECONDS)
    return TimeCode(
        code=otp.generate_otp(ts // STEP_SECONDS),
        seconds_remaining=seconds_remaining(ts),
    )
