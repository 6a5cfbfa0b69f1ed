"""
Text transport for ciphertext: standard base64 alphabet without padding.
"""

from __future__ import annotations

import base64
import binascii
import re

from e2ee.common.exceptions import EncodingError

_ALPHABET = re.compile(r"[A-Za-z0-9+/]*")


class TextTransport:
    """Converts binary ciphertext to single-line text and back."""

    @staticmethod
    def to_text(data: bytes) -> str:
        return base64.b64encode(data).decode("ascii").rstrip("=")

    @staticmethod
    def from_text(text: str) -> bytes:
        """Decode unpadded base64, rejecting anything a strict decoder would."""
        if not _ALPHABET.fullmatch(text):
            msg = "Ciphertext contains characters outside the base64 alphabet"
            raise EncodingError(msg)
        if len(text) % 4 == 1:
            msg = f"Invalid base64 length: {len(text)}"
            raise EncodingError(msg)
        padded = text + "=" * (-len(text) % 4)
        try:
            data = base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError) as err:
            msg = f"Invalid base64 ciphertext: {err}"
            raise EncodingError(msg) from err
        # Unused trailing bits must be zero
        if TextTransport.to_text(data) != text:
            msg = "Invalid base64 ciphertext: non-canonical trailing bits"
            raise EncodingError(msg)
        return data
