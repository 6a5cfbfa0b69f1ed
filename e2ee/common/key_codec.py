"""
PEM encoding and decoding of RSA key material.

Public keys travel as SPKI (``BEGIN PUBLIC KEY``), private keys as
unencrypted PKCS#8 (``BEGIN PRIVATE KEY``).
"""

from __future__ import annotations

import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from e2ee.common.exceptions import KeyFormatError
from e2ee.common.models import PRIVATE_KEY_HEADER, PUBLIC_KEY_HEADER

logger = logging.getLogger(__name__)


class KeyCodec:
    """Converts RSA keys to and from their PEM text."""

    @staticmethod
    def decode_public_key(pem: str) -> rsa.RSAPublicKey:
        """Parse an SPKI PEM public key."""
        if PUBLIC_KEY_HEADER not in pem:
            msg = "Public key is not an SPKI PEM block"
            raise KeyFormatError(msg)
        try:
            key = serialization.load_pem_public_key(pem.encode("utf-8"))
        except (ValueError, UnsupportedAlgorithm) as err:
            msg = f"Invalid public key PEM: {err}"
            raise KeyFormatError(msg) from err
        if not isinstance(key, rsa.RSAPublicKey):
            msg = f"Public key is not an RSA key ({type(key).__name__})"
            raise KeyFormatError(msg)
        return key

    @staticmethod
    def decode_private_key(pem: str) -> rsa.RSAPrivateKey:
        """Parse an unencrypted PKCS#8 PEM private key."""
        if PRIVATE_KEY_HEADER not in pem:
            msg = "Private key is not a PKCS#8 PEM block"
            raise KeyFormatError(msg)
        try:
            key = serialization.load_pem_private_key(
                pem.encode("utf-8"), password=None
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as err:
            msg = f"Invalid private key PEM: {err}"
            raise KeyFormatError(msg) from err
        if not isinstance(key, rsa.RSAPrivateKey):
            msg = f"Private key is not an RSA key ({type(key).__name__})"
            raise KeyFormatError(msg)
        return key

    @staticmethod
    def encode_public_key(key: rsa.RSAPublicKey) -> str:
        return key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")

    @staticmethod
    def encode_private_key(key: rsa.RSAPrivateKey) -> str:
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")

    @staticmethod
    def keys_match(private_key: rsa.RSAPrivateKey, public_key: rsa.RSAPublicKey) -> bool:
        """Whether ``public_key`` is the public half of ``private_key``."""
        derived = private_key.public_key().public_numbers()
        supplied = public_key.public_numbers()
        matched = derived.n == supplied.n and derived.e == supplied.e
        if not matched:
            logger.debug("Public key modulus does not match the private key")
        return matched
