"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """Source of random bytes for key generation and OAEP seeds."""

    def read(self, size: int) -> bytes: ...


@runtime_checkable
class MessageEncryptor(Protocol):
    """Anything that can turn a text message into ciphertext text."""

    @property
    def public_key_pem(self) -> str: ...

    @property
    def max_message_size(self) -> int: ...

    def encrypt(self, message: str) -> str: ...


@runtime_checkable
class MessageDecryptor(Protocol):
    """Anything that can turn ciphertext text back into the message."""

    @property
    def private_key_pem(self) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...
