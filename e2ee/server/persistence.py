"""
Key file persistence utilities.
"""

from __future__ import annotations

import logging
import os
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO

from e2ee.common.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_DEFAULT_FILE_MODE = 0o666


def _failure(action: str, path: Path, err: OSError) -> PersistenceError:
    return PersistenceError(f"Failed to {action} {path}: {err.strerror or err}", str(path))


class KeyFilePersistence:
    """Reads and writes the two PEM files of a server identity."""

    @staticmethod
    def read_pem(file_path: str | os.PathLike[str]) -> str:
        """Read a PEM file exactly as stored."""
        path = Path(file_path)
        try:
            return path.read_bytes().decode("utf-8")
        except OSError as err:
            raise _failure("read key file", path, err) from err
        except UnicodeDecodeError as err:
            msg = f"Key file {path} is not UTF-8 text"
            raise PersistenceError(msg, str(path)) from err

    @staticmethod
    def _open_for_write(path: Path, mode: int, *, enforce_mode: bool = False) -> BinaryIO:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        try:
            if enforce_mode and hasattr(os, "fchmod"):
                os.fchmod(fd, mode)
            return os.fdopen(fd, "wb")
        except OSError:
            os.close(fd)
            raise

    @staticmethod
    def write_pair(
        private_key_pem: str,
        public_key_pem: str,
        private_key_path: str | os.PathLike[str],
        public_key_path: str | os.PathLike[str],
        private_key_mode: int = 0o600,
    ) -> None:
        """Create (or truncate) both files, then write both PEM texts.

        Existing files are overwritten; an existing private key file is reset to
        ``private_key_mode``. Both files are opened before anything
        is written; there is no rollback if a later write fails.
        """
        private_path = Path(private_key_path)
        public_path = Path(public_key_path)
        targets = (
            (private_path, private_key_pem, private_key_mode, True, "private key file"),
            (public_path, public_key_pem, _DEFAULT_FILE_MODE, False, "public key file"),
        )
        with ExitStack() as stack:
            opened = []
            for path, pem, mode, enforce_mode, label in targets:
                try:
                    handle = stack.enter_context(
                        KeyFilePersistence._open_for_write(
                            path, mode, enforce_mode=enforce_mode
                        )
                    )
                    opened.append((path, pem, label, handle))
                except OSError as err:
                    raise _failure(f"create {label}", path, err) from err

            for path, pem, label, handle in opened:
                try:
                    handle.write(pem.encode("utf-8"))
                    handle.flush()
                except OSError as err:
                    raise _failure(f"write {label}", path, err) from err

        logger.info("Private key saved to %s", private_path)
        logger.info("Public key saved to %s", public_path)
