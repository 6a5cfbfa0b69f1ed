"""
RSA-OAEP encryption and decryption over raw bytes.

OAEP uses SHA-256 as both the label hash and the MGF1 hash, with an empty
label. With the system random source the ``cryptography`` backend does the
whole job; an injected source is honoured by building the OAEP encoding
(RFC 8017, section 7.1.1) here and applying the raw public-key operation.
Decryption always goes through the backend.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from e2ee.common.entropy import is_system_source
from e2ee.common.exceptions import CryptoError

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from e2ee.common.interfaces import RandomSource

logger = logging.getLogger(__name__)

HASH_SIZE = hashlib.sha256().digest_size
_EMPTY_LABEL_HASH = hashlib.sha256(b"").digest()
DECRYPTION_FAILED = "Decryption failed"


def oaep_padding() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def modulus_bytes(key: rsa.RSAPublicKey | rsa.RSAPrivateKey) -> int:
    return (key.key_size + 7) // 8


def max_message_size(key: rsa.RSAPublicKey | rsa.RSAPrivateKey) -> int:
    """Largest plaintext, in bytes, that fits one OAEP block for ``key``."""
    return modulus_bytes(key) - 2 * HASH_SIZE - 2


def mgf1(seed: bytes, length: int) -> bytes:
    """MGF1 mask generation with SHA-256."""
    output = bytearray()
    counter = 0
    while len(output) < length:
        output += hashlib.sha256(seed + counter.to_bytes(4, "big")).digest()
        counter += 1
    return bytes(output[:length])


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right, strict=True))


def oaep_encode(message: bytes, k: int, seed: bytes) -> bytes:
    """Build the ``k``-byte encoded message ``00 || maskedSeed || maskedDB``."""
    if len(seed) != HASH_SIZE:
        msg = f"OAEP seed must be {HASH_SIZE} bytes"
        raise ValueError(msg)
    padding_len = k - len(message) - 2 * HASH_SIZE - 2
    if padding_len < 0:
        msg = "Message too long for OAEP block"
        raise ValueError(msg)
    data_block = _EMPTY_LABEL_HASH + b"\x00" * padding_len + b"\x01" + message
    masked_db = _xor(data_block, mgf1(seed, k - HASH_SIZE - 1))
    masked_seed = _xor(seed, mgf1(masked_db, HASH_SIZE))
    return b"\x00" + masked_seed + masked_db


class AsymmetricCipher:
    """RSA-OAEP (SHA-256) primitive operations."""

    @staticmethod
    def encrypt(
        public_key: rsa.RSAPublicKey,
        plaintext: bytes,
        rng: RandomSource | None = None,
    ) -> bytes:
        """Encrypt one block; the output differs on every call."""
        limit = max_message_size(public_key)
        if len(plaintext) > limit:
            msg = (
                f"Message too long: {len(plaintext)} bytes, "
                f"limit for a {public_key.key_size}-bit key is {limit} bytes"
            )
            raise CryptoError(msg)

        if is_system_source(rng):
            try:
                return public_key.encrypt(plaintext, oaep_padding())
            except ValueError as err:
                msg = f"Encryption failed: {err}"
                raise CryptoError(msg) from err

        k = modulus_bytes(public_key)
        numbers = public_key.public_numbers()
        try:
            encoded = oaep_encode(plaintext, k, rng.read(HASH_SIZE))
        except ValueError as err:
            msg = f"Encryption failed: {err}"
            raise CryptoError(msg) from err
        value = pow(int.from_bytes(encoded, "big"), numbers.e, numbers.n)
        return value.to_bytes(k, "big")

    @staticmethod
    def decrypt(private_key: rsa.RSAPrivateKey, ciphertext: bytes) -> bytes:
        """Decrypt one block.

        Every failure (wrong length, wrong key, bad padding) raises the same
        ``CryptoError`` message.
        """
        if len(ciphertext) != modulus_bytes(private_key):
            logger.debug(
                "Ciphertext is %d bytes, expected %d",
                len(ciphertext),
                modulus_bytes(private_key),
            )
            raise CryptoError(DECRYPTION_FAILED)
        try:
            return private_key.decrypt(ciphertext, oaep_padding())
        except ValueError as err:
            raise CryptoError(DECRYPTION_FAILED) from err
