"""
Custom exceptions for the encryption engine.
"""

from __future__ import annotations


class E2eeError(Exception):
    """Base class for every error raised by the engine."""


class KeyFormatError(E2eeError):
    """Key text is not a valid SPKI/PKCS#8 PEM RSA key."""


class KeyGenerationError(E2eeError):
    """Generating a fresh RSA key pair failed."""


class CryptoError(E2eeError):
    """RSA-OAEP encryption or decryption failed."""


class EncodingError(E2eeError):
    """Invalid base64 ciphertext text or invalid UTF-8 plaintext."""


class PersistenceError(E2eeError):
    """Key files could not be created, written or read."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class BoundaryViolation(RuntimeError):
    """A foreign-boundary handle or string was used after release."""
