"""
Client-side identity: encrypts messages with a server's public key.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from e2ee.common.cipher import AsymmetricCipher, max_message_size
from e2ee.common.key_codec import KeyCodec
from e2ee.common.transport import TextTransport

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from e2ee.common.interfaces import RandomSource

logger = logging.getLogger(__name__)


class ClientIdentity:
    """Holds only a public key; can encrypt but never decrypt.

    The PEM text given at construction is kept verbatim and returned by
    ``public_key_pem``.
    """

    __slots__ = ("_public_key", "_public_key_pem", "_rng")

    def __init__(self, public_key_pem: str, rng: RandomSource | None = None) -> None:
        self._public_key: rsa.RSAPublicKey = KeyCodec.decode_public_key(public_key_pem)
        self._public_key_pem = public_key_pem
        self._rng = rng
        logger.debug("Client identity created (%d-bit key)", self._public_key.key_size)

    @classmethod
    def from_pem(cls, public_key_pem: str, rng: RandomSource | None = None) -> ClientIdentity:
        return cls(public_key_pem, rng=rng)

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._public_key

    @property
    def public_key_pem(self) -> str:
        return self._public_key_pem

    @property
    def key_size(self) -> int:
        return self._public_key.key_size

    @property
    def max_message_size(self) -> int:
        """Largest UTF-8 encoded message this key can encrypt."""
        return max_message_size(self._public_key)

    def get_public_key_pem(self) -> str:
        return self._public_key_pem

    def encrypt(self, message: str) -> str:
        """Encrypt ``message`` and return unpadded base64 ciphertext."""
        ciphertext = AsymmetricCipher.encrypt(
            self._public_key, message.encode("utf-8"), rng=self._rng
        )
        return TextTransport.to_text(ciphertext)

    def __repr__(self) -> str:
        return f"ClientIdentity(key_size={self.key_size})"
