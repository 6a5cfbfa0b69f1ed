"""
RSA key-pair generation.

With the operating-system random source the ``cryptography`` backend
generates the key. Any other ``RandomSource`` drives a Miller-Rabin prime
search here, so a seeded source yields the same key every time.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives.asymmetric import rsa

from e2ee.common.entropy import is_system_source, random_int_below
from e2ee.common.exceptions import KeyGenerationError
from e2ee.common.models import KeySize

if TYPE_CHECKING:
    from e2ee.common.interfaces import RandomSource

logger = logging.getLogger(__name__)

MILLER_RABIN_ROUNDS = 40
# Candidates tried per prime before giving up; primes near 2**1024 are ~1 in 710
MAX_PRIME_CANDIDATES_PER_BIT = 20

_SMALL_PRIMES = [
    p for p in range(3, 2000) if all(p % d for d in range(2, int(p**0.5) + 1))
]


def is_probable_prime(n: int, rng: RandomSource, rounds: int = MILLER_RABIN_ROUNDS) -> bool:
    """Miller-Rabin test with witnesses drawn from ``rng``."""
    if n < 2:  # noqa: PLR2004
        return False
    if n % 2 == 0:
        return n == 2  # noqa: PLR2004
    for p in _SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False
    r, d = 0, n - 1
    while d % 2 == 0:
        r += 1
        d //= 2
    for _ in range(rounds):
        a = 2 + random_int_below(rng, n - 3)
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def generate_prime(bits: int, rng: RandomSource, public_exponent: int) -> int:
    """Random ``bits``-bit prime ``p`` with ``gcd(e, p - 1) == 1``."""
    nbytes = (bits + 7) // 8
    top_bits = (1 << (bits - 1)) | (1 << (bits - 2))
    mask = (1 << bits) - 1
    for _ in range(bits * MAX_PRIME_CANDIDATES_PER_BIT):
        candidate = (int.from_bytes(rng.read(nbytes), "big") & mask) | top_bits | 1
        if math.gcd(public_exponent, candidate - 1) != 1:
            continue
        if is_probable_prime(candidate, rng):
            return candidate
    msg = f"Prime search exhausted for a {bits}-bit prime"
    raise KeyGenerationError(msg)


def _private_key_from_primes(p: int, q: int, public_exponent: int) -> rsa.RSAPrivateKey:
    phi = (p - 1) * (q - 1)
    d = pow(public_exponent, -1, phi)
    numbers = rsa.RSAPrivateNumbers(
        p=p,
        q=q,
        d=d,
        dmp1=rsa.rsa_crt_dmp1(d, p),
        dmq1=rsa.rsa_crt_dmq1(d, q),
        iqmp=rsa.rsa_crt_iqmp(p, q),
        public_numbers=rsa.RSAPublicNumbers(e=public_exponent, n=p * q),
    )
    return numbers.private_key()


def generate_private_key(
    key_size: KeySize | int,
    rng: RandomSource | None = None,
    public_exponent: int = 65537,
) -> rsa.RSAPrivateKey:
    """Generate a fresh RSA private key of ``key_size`` bits."""
    try:
        key_size = KeySize.parse(key_size)
    except ValueError as err:
        raise KeyGenerationError(str(err)) from err

    logger.info("Generating %d-bit RSA key pair", key_size.value)
    if is_system_source(rng):
        try:
            return rsa.generate_private_key(
                public_exponent=public_exponent, key_size=key_size.value
            )
        except (ValueError, TypeError) as err:
            msg = f"RSA key generation failed: {err}"
            raise KeyGenerationError(msg) from err

    half = key_size.value // 2
    p = generate_prime(half, rng, public_exponent)
    q = generate_prime(half, rng, public_exponent)
    while q == p:
        q = generate_prime(half, rng, public_exponent)
    if p < q:
        p, q = q, p
    try:
        return _private_key_from_primes(p, q, public_exponent)
    except ValueError as err:
        msg = f"RSA key generation failed: {err}"
        raise KeyGenerationError(msg) from err
