# Client side
from e2ee.client.identity import ClientIdentity

__all__ = ["ClientIdentity"]
