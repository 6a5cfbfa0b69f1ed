"""
Configuration settings for the encryption engine and its CLI.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from e2ee.common.logging_utils import parse_log_level

_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:  # noqa: FBT001
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


class Config:
    """Central configuration class for all engine settings."""

    def __init__(self) -> None:
        # Key generation
        self.DEFAULT_KEY_SIZE: int = int(os.getenv("E2EE_KEY_SIZE", "2048"))
        self.PUBLIC_EXPONENT: int = 65537

        # Loading a server identity checks that both PEM texts belong together
        self.VERIFY_KEY_PAIR: bool = _env_flag("E2EE_VERIFY_KEY_PAIR", default=True)

        # File paths
        self.BASE_DIR: Path = Path(__file__).parent.parent
        self.KEYS_DIR: Path = Path(
            os.getenv("E2EE_KEYS_DIR", str(self.BASE_DIR / "files"))
        )
        self.PUBLIC_KEY_PATH: Path = self.KEYS_DIR / "public.pem"
        self.PRIVATE_KEY_PATH: Path = self.KEYS_DIR / "private.pem"
        self.PRIVATE_KEY_FILE_MODE: int = 0o600

        # Logging
        self.LOG_LEVEL: int = parse_log_level(
            os.getenv("E2EE_LOG_LEVEL", logging.getLevelName(logging.WARNING))
        )
