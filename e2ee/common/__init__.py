# Common utilities
from e2ee.common.cipher import AsymmetricCipher as AsymmetricCipher
from e2ee.common.key_codec import KeyCodec as KeyCodec
from e2ee.common.logging_utils import setup_logger as setup_logger
from e2ee.common.transport import TextTransport as TextTransport

__all__ = ["AsymmetricCipher", "KeyCodec", "TextTransport", "setup_logger"]
