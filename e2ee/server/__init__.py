# Server side
from e2ee.server.identity import ServerIdentity
from e2ee.server.keygen import KeyGenerator

__all__ = ["KeyGenerator", "ServerIdentity"]
