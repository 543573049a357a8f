"""Building outgoing packets and rendering received data for the session logs."""

from __future__ import annotations

import enum

_HEX_DIGITS = frozenset("0123456789ABCDEF")


class PayloadError(ValueError):
    """Raised when a message cannot be turned into a packet."""


class LineEnding(enum.Enum):
    """Terminator appended to a text message before it is sent."""

    NONE = b""
    NULL = b"\x00"
    LF = b"\n"
    CRLF = b"\r\n"

    @property
    def suffix(self) -> bytes:
        return self.value


def parse_hex(text: str) -> bytes:
    """Turn a string of hexadecimal digit pairs into bytes.

    Case is ignored. Raises PayloadError when the length is odd or a
    non-hexadecimal symbol is present.
    """
    digits = text.upper()
    if len(digits) % 2:
        raise PayloadError(
            "Message length must be even (1 byte = 2 hexadecimal symbols)"
        )
    if not _HEX_DIGITS.issuperset(digits):
        raise PayloadError(
            "Detected non hexadecimal symbols in the message. They will not be sent."
        )
    return bytes.fromhex(digits)


def build_packet(
    text: str, hex_mode: bool = False, ending: LineEnding = LineEnding.NONE
) -> bytes:
    """Build the bytes to send for a typed message.

    In hex mode the text is decoded as hexadecimal and the line ending is
    ignored; otherwise it is encoded as UTF-8 followed by the ending.
    """
    if hex_mode:
        return parse_hex(text)
    return text.encode("utf-8") + LineEnding(ending).suffix


def format_received(data: bytes, hex_mode: bool = False) -> str:
    """Render received bytes for a log line.

    Hex mode gives lower-case hexadecimal; otherwise the bytes are decoded
    as UTF-8 up to the first NUL byte.
    """
    if hex_mode:
        return bytes(data).hex()
    text_part = bytes(data).split(b"\x00", 1)[0]
    return text_part.decode("utf-8", errors="replace")