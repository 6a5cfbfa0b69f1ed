# RSA-OAEP end-to-end encryption

from e2ee.client.identity import ClientIdentity
from e2ee.common.exceptions import (
    CryptoError,
    E2eeError,
    EncodingError,
    KeyFormatError,
    KeyGenerationError,
    PersistenceError,
)
from e2ee.common.models import KeySize, PemKeyPair
from e2ee.server.identity import ServerIdentity

__all__ = [
    "ClientIdentity",
    "CryptoError",
    "E2eeError",
    "EncodingError",
    "KeyFormatError",
    "KeyGenerationError",
    "KeySize",
    "PemKeyPair",
    "PersistenceError",
    "ServerIdentity",
]
