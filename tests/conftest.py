from __future__ import annotations

import pytest

from e2ee.common.entropy import SeededRandomSource
from e2ee.common.models import KeySize
from e2ee.server.identity import ServerIdentity

_identities: dict[KeySize, ServerIdentity] = {}


def get_identity(key_size: KeySize) -> ServerIdentity:
    """Generate each key size once per test session."""
    if key_size not in _identities:
        _identities[key_size] = ServerIdentity.generate(key_size)
    return _identities[key_size]


@pytest.fixture(scope="session")
def server_1024() -> ServerIdentity:
    return get_identity(KeySize.BIT1024)


@pytest.fixture(scope="session")
def server_2048() -> ServerIdentity:
    return get_identity(KeySize.BIT2048)


@pytest.fixture(scope="session")
def seeded_server() -> ServerIdentity:
    """A 1024-bit identity built from a seeded prime search."""
    return ServerIdentity.generate(KeySize.BIT1024, rng=SeededRandomSource(b"fixture"))


@pytest.fixture(params=list(KeySize), ids=lambda size: size.cli_name)
def server_any_size(request: pytest.FixtureRequest) -> ServerIdentity:
    return get_identity(request.param)
