"""
Drive the C-compatible boundary the way a foreign caller would.

Every handle and every returned string is released explicitly.
"""

import ctypes
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from e2ee import ffi


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    server = ffi.e2ee_server_new(2048)
    if not server:
        logger.error("Failed to create server handle")
        sys.exit(1)

    try:
        encrypted = ffi.e2ee_server_encrypt(server, b"Hello, world!")
        logger.info("Encrypted: %s", ctypes.string_at(encrypted).decode())

        decrypted = ffi.e2ee_server_decrypt(server, ctypes.string_at(encrypted))
        logger.info("Decrypted: %s", ctypes.string_at(decrypted).decode())

        ffi.e2ee_free_string(decrypted)
        ffi.e2ee_free_string(encrypted)
    finally:
        ffi.e2ee_server_free(server)


if __name__ == "__main__":
    main()
