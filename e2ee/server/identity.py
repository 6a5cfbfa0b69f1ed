"""
Server-side identity: holds a key pair and can encrypt, decrypt and persist it.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from e2ee.client.identity import ClientIdentity
from e2ee.common.cipher import AsymmetricCipher, max_message_size
from e2ee.common.config import Config
from e2ee.common.exceptions import EncodingError, KeyFormatError
from e2ee.common.key_codec import KeyCodec
from e2ee.common.models import KeySize, PemKeyPair
from e2ee.common.transport import TextTransport

from .keypair import generate_private_key
from .persistence import KeyFilePersistence

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from e2ee.common.interfaces import RandomSource

logger = logging.getLogger(__name__)


class ServerIdentity:
    """Owner of an RSA key pair.

    Instances are immutable. Build one with ``generate`` or ``load_from_pem``;
    the PEM texts are cached so ``private_key_pem``/``public_key_pem`` return
    exactly what was generated or supplied.
    """

    __slots__ = (
        "_private_key",
        "_private_key_pem",
        "_public_key",
        "_public_key_pem",
        "_rng",
    )

    def __init__(
        self,
        private_key: rsa.RSAPrivateKey,
        public_key: rsa.RSAPublicKey,
        private_key_pem: str,
        public_key_pem: str,
        rng: RandomSource | None = None,
    ) -> None:
        self._private_key = private_key
        self._public_key = public_key
        self._private_key_pem = private_key_pem
        self._public_key_pem = public_key_pem
        self._rng = rng

    @classmethod
    def generate(
        cls,
        key_size: KeySize | int | str | None = None,
        rng: RandomSource | None = None,
        config: Config | None = None,
    ) -> ServerIdentity:
        """Generate a fresh key pair and encode both halves to PEM."""
        config = config or Config()
        size = KeySize.parse(key_size if key_size is not None else config.DEFAULT_KEY_SIZE)
        private_key = generate_private_key(size, rng=rng, public_exponent=config.PUBLIC_EXPONENT)
        public_key = private_key.public_key()
        return cls(
            private_key,
            public_key,
            KeyCodec.encode_private_key(private_key),
            KeyCodec.encode_public_key(public_key),
            rng=rng,
        )

    @classmethod
    def load_from_pem(
        cls,
        private_key_pem: str,
        public_key_pem: str,
        *,
        verify_pair: bool | None = None,
        rng: RandomSource | None = None,
    ) -> ServerIdentity:
        """Parse both PEM texts; they are kept verbatim.

        Raises ``KeyFormatError`` if either text is malformed, or if
        ``verify_pair`` is on and the public key is not the private key's
        public half. ``verify_pair`` defaults to ``Config.VERIFY_KEY_PAIR``.
        """
        public_key = KeyCodec.decode_public_key(public_key_pem)
        private_key = KeyCodec.decode_private_key(private_key_pem)
        if verify_pair is None:
            verify_pair = Config().VERIFY_KEY_PAIR
        if verify_pair and not KeyCodec.keys_match(private_key, public_key):
            msg = "Public key does not belong to the private key"
            raise KeyFormatError(msg)
        return cls(private_key, public_key, private_key_pem, public_key_pem, rng=rng)

    @classmethod
    def from_pem_pair(cls, pair: PemKeyPair, **kwargs) -> ServerIdentity:
        return cls.load_from_pem(pair.private_key_pem, pair.public_key_pem, **kwargs)

    @classmethod
    def load_from_files(
        cls,
        private_key_path: str | os.PathLike[str],
        public_key_path: str | os.PathLike[str],
        **kwargs,
    ) -> ServerIdentity:
        """Read both PEM files and parse them as in ``load_from_pem``."""
        private_key_pem = KeyFilePersistence.read_pem(private_key_path)
        public_key_pem = KeyFilePersistence.read_pem(public_key_path)
        return cls.load_from_pem(private_key_pem, public_key_pem, **kwargs)

    @property
    def private_key(self) -> rsa.RSAPrivateKey:
        return self._private_key

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._public_key

    @property
    def private_key_pem(self) -> str:
        return self._private_key_pem

    @property
    def public_key_pem(self) -> str:
        return self._public_key_pem

    @property
    def key_size(self) -> int:
        return self._public_key.key_size

    @property
    def max_message_size(self) -> int:
        return max_message_size(self._public_key)

    def get_private_key_pem(self) -> str:
        return self._private_key_pem

    def get_public_key_pem(self) -> str:
        return self._public_key_pem

    def to_pem_pair(self) -> PemKeyPair:
        return PemKeyPair(
            private_key_pem=self._private_key_pem,
            public_key_pem=self._public_key_pem,
        )

    def client(self) -> ClientIdentity:
        """A public-key-only identity for the same key."""
        return ClientIdentity(self._public_key_pem, rng=self._rng)

    def encrypt(self, message: str) -> str:
        """Encrypt ``message`` with the held public key."""
        ciphertext = AsymmetricCipher.encrypt(
            self._public_key, message.encode("utf-8"), rng=self._rng
        )
        return TextTransport.to_text(ciphertext)

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt unpadded base64 ciphertext back into the message."""
        data = TextTransport.from_text(ciphertext)
        plaintext = AsymmetricCipher.decrypt(self._private_key, data)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            msg = "Decrypted message is not valid UTF-8"
            raise EncodingError(msg) from err

    def save_to_files(
        self,
        private_key_path: str | os.PathLike[str],
        public_key_path: str | os.PathLike[str],
        private_key_mode: int | None = None,
    ) -> None:
        """Write both cached PEM texts, overwriting existing files."""
        if private_key_mode is None:
            private_key_mode = Config().PRIVATE_KEY_FILE_MODE
        KeyFilePersistence.write_pair(
            self._private_key_pem,
            self._public_key_pem,
            private_key_path,
            public_key_path,
            private_key_mode=private_key_mode,
        )

    def __repr__(self) -> str:
        return f"ServerIdentity(key_size={self.key_size})"
