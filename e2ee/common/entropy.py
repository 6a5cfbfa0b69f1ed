"""
Random byte providers.

The engine never reaches for a hidden global generator: key generation and
encryption take a ``RandomSource``. ``SystemRandomSource`` is the default;
``SeededRandomSource`` exists so tests can reproduce keys and ciphertexts.
"""

from __future__ import annotations

import hashlib
import os
import threading


class SystemRandomSource:
    """Operating-system CSPRNG (``os.urandom``)."""

    def read(self, size: int) -> bytes:
        return os.urandom(size)

    def __repr__(self) -> str:
        return "SystemRandomSource()"


SYSTEM_RANDOM = SystemRandomSource()


class SeededRandomSource:
    """Deterministic SHA-256 counter-mode byte stream.

    Not a CSPRNG for production use: the whole stream is derived from the
    seed. Only meant for reproducible tests.
    """

    def __init__(self, seed: bytes | str | int) -> None:
        if isinstance(seed, int):
            seed = seed.to_bytes(max(1, (seed.bit_length() + 7) // 8), "big")
        elif isinstance(seed, str):
            seed = seed.encode("utf-8")
        self._seed = hashlib.sha256(seed).digest()
        self._counter = 0
        self._buffer = b""
        self._lock = threading.Lock()

    def read(self, size: int) -> bytes:
        with self._lock:
            while len(self._buffer) < size:
                block = hashlib.sha256(
                    self._seed + self._counter.to_bytes(8, "big")
                ).digest()
                self._buffer += block
                self._counter += 1
            out, self._buffer = self._buffer[:size], self._buffer[size:]
        return out

    def __repr__(self) -> str:
        return f"SeededRandomSource(counter={self._counter})"


def is_system_source(rng: object | None) -> bool:
    """True when ``rng`` means "use the operating system generator"."""
    return rng is None or isinstance(rng, SystemRandomSource)


def random_int_below(rng, upper: int) -> int:
    """Uniform integer in ``[0, upper)`` drawn from ``rng`` by rejection."""
    if upper <= 0:
        msg = "upper bound must be positive"
        raise ValueError(msg)
    bits = upper.bit_length()
    nbytes = (bits + 7) // 8
    excess = nbytes * 8 - bits
    while True:
        candidate = int.from_bytes(rng.read(nbytes), "big") >> excess
        if candidate < upper:
            return candidate
