"""
otpvault - Logging

One stderr handler on the package logger. The level comes from
OTP_LOG_LEVEL or the caller; unknown level names fall back to INFO.
"""

import logging
import os
import sys

ROOT_LOGGER = "otpvault"
LEVEL_ENV = "OTP_LOG_LEVEL"


def resolve_level(level):
    """Numeric level for a name or number, INFO when the name is unknown."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name=ROOT_LOGGER, level=None):
    """
    Logger for otpvault components.

    The handler lives on the package logger only; module loggers
    (otpvault.store, otpvault.cli, ...) propagate to it. Messages go to
    stderr unadorned so command output on stdout stays clean.
    Shared secrets must never be passed to these loggers.
    """
    root = logging.getLogger(ROOT_LOGGER)

    if not root.handlers:
        if level is None:
            level = os.environ.get(LEVEL_ENV, "INFO")
        root.setLevel(resolve_level(level))
        root.propagate = False

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt="%(message)s"))
        root.addHandler(handler)
    elif level is not None:
        root.setLevel(resolve_level(level))

    if name == ROOT_LOGGER:
        return root
    return logging.getLogger(name)
