"""
Client encrypts with the server's public key; the server decrypts.

Keys are written to a temporary directory and read back, the way two
separate processes would share them.
"""

import argparse
import logging
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from e2ee import ClientIdentity, E2eeError, ServerIdentity
from e2ee.server.keygen import KeyGenerator


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("-m", "--message", default="Secret message")
    parser.add_argument("-s", "--size", default="bit2048")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    with tempfile.TemporaryDirectory() as keys_dir:
        generator = KeyGenerator(
            key_size=args.size,
            private_key_path=Path(keys_dir) / "private.pem",
            public_key_path=Path(keys_dir) / "public.pem",
        )
        generator.generate_keys()

        try:
            client = ClientIdentity(generator.public_key_path.read_text())
            encrypted = client.encrypt(args.message)
            logger.info("Encrypted message: %s", encrypted)

            server = ServerIdentity.load_from_files(
                generator.private_key_path, generator.public_key_path
            )
            logger.info("Decrypted message: %s", server.decrypt(encrypted))
        except E2eeError:
            logger.exception("Error")
            sys.exit(1)


if __name__ == "__main__":
    main()
