"""
otpvault - Configuration

Settings come from environment variables, with defaults next to the SSH
key the vault is meant to be used with. CLI flags override them.

    OTP_DB          SQLite database      (~/.ssh/auth.db)
    OTP_PRIVKEY     RSA private key      (~/.ssh/id_rsa)
    OTP_HTTP_ADDR   `otp http` address   (:9999)
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_DB_PATH = os.path.join(os.path.expanduser("~"), ".ssh", "auth.db")
DEFAULT_PRIVATE_KEY_PATH = os.path.join(os.path.expanduser("~"), ".ssh", "id_rsa")
DEFAULT_HTTP_ADDR = ":9999"


@dataclass
class Settings:
    db_path: str = DEFAULT_DB_PATH
    private_key_path: str = DEFAULT_PRIVATE_KEY_PATH
    http_addr: str = DEFAULT_HTTP_ADDR
    log_level: Optional[str] = field(default=None)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get("OTP_DB") or DEFAULT_DB_PATH,
            private_key_path=env.get("OTP_PRIVKEY") or DEFAULT_PRIVATE_KEY_PATH,
            http_addr=env.get("OTP_HTTP_ADDR") or DEFAULT_HTTP_ADDR,
            log_level=env.get("OTP_LOG_LEVEL"),
        )


def parse_addr(addr: str) -> Tuple[str, int]:
    """
    Split "host:port" into its parts. An empty host means all interfaces.

    Raises:
        ValueError: no port, or port not a number
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {addr!r}, want [host]:port")
    return host or "0.0.0.0", int(port)
