"""
Simple round trip with a freshly generated server identity.
"""

import logging
import sys
from pathlib import Path

# Add the project root to the path to import e2ee
sys.path.insert(0, str(Path(__file__).parent.parent))

from e2ee import KeySize, ServerIdentity


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    server = ServerIdentity.generate(KeySize.BIT2048)

    message = "This is a secret message.\nCan you handle line breaks ?\nSpecial characters @!#@$#%^$&^%% ?"
    encrypted = server.encrypt(message)
    logger.info("Encrypted message:\n%s", encrypted)

    decrypted = server.decrypt(encrypted)
    logger.info("Decrypted message:\n%s", decrypted)

    if decrypted != message:
        logger.error("Round trip mismatch")
        sys.exit(1)


if __name__ == "__main__":
    main()
