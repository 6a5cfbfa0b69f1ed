"""
Key generator workflow: create a server identity and store its PEM files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from e2ee.common.config import Config
from e2ee.common.exceptions import PersistenceError
from e2ee.common.models import KeySize

from .identity import ServerIdentity

if TYPE_CHECKING:
    from e2ee.common.interfaces import RandomSource

logger = logging.getLogger(__name__)


class KeyGenerator:
    """Generates a server key pair and saves it to disk."""

    def __init__(
        self,
        key_size: KeySize | int | str | None = None,
        private_key_path: Path | None = None,
        public_key_path: Path | None = None,
        config: Config | None = None,
        rng: RandomSource | None = None,
    ):
        self.config = config or Config()
        self.key_size = KeySize.parse(
            key_size if key_size is not None else self.config.DEFAULT_KEY_SIZE
        )
        self.private_key_path = Path(private_key_path or self.config.PRIVATE_KEY_PATH)
        self.public_key_path = Path(public_key_path or self.config.PUBLIC_KEY_PATH)
        self.rng = rng

    def generate_keys(self) -> ServerIdentity:
        """Generate a key pair, save both PEM files and return the identity."""
        logger.info("Generating %d-bit RSA server keys...", self.key_size.value)
        identity = ServerIdentity.generate(self.key_size, rng=self.rng, config=self.config)

        for path in (self.private_key_path, self.public_key_path):
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as err:
                msg = f"Failed to create key directory {path.parent}: {err.strerror or err}"
                raise PersistenceError(msg, str(path.parent)) from err

        identity.save_to_files(
            self.private_key_path,
            self.public_key_path,
            private_key_mode=self.config.PRIVATE_KEY_FILE_MODE,
        )
        logger.info("Keep the private key secure!")
        return identity
