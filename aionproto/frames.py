"""Frame header layout and serialization."""

import struct
from dataclasses import dataclass

from .constants import HEADER_SIZE, MAX_FRAME_BYTES, RESERVED_SIZE, HeaderOffset
from .errors import FrameTooLarge, TruncatedInput

_PREFIX = struct.Struct("<H H")  # length, opcode

# ----------------------------------------------------------------------------
# Frame structures
# ----------------------------------------------------------------------------


@dataclass
class FrameHeader:
    """Fixed 7-byte frame header.

    ``length`` counts the whole frame, header included. The trailing reserved
    bytes are carried through untouched.
    """

    length: int = HEADER_SIZE
    opcode: int = 0
    reserved: bytes = b"\x00" * RESERVED_SIZE

    def to_bytes(self) -> bytes:
        """Serialize the header."""
        if self.length > MAX_FRAME_BYTES:
            raise FrameTooLarge(self.length, MAX_FRAME_BYTES)
        reserved = bytes(self.reserved[:RESERVED_SIZE]).ljust(RESERVED_SIZE, b"\x00")
        return _PREFIX.pack(self.length, self.opcode) + reserved

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> "FrameHeader":
        """Parse a header from the start of ``data``.

        Raises:
            TruncatedInput: If ``data`` is shorter than a header
        """
        if len(data) < HEADER_SIZE:
            raise TruncatedInput(0, HEADER_SIZE, len(data))
        length, opcode = _PREFIX.unpack_from(data, HeaderOffset.LENGTH)
        return cls(
            length=length,
            opcode=opcode,
            reserved=bytes(data[HeaderOffset.RESERVED : HeaderOffset.RESERVED + RESERVED_SIZE]),
        )


# ----------------------------------------------------------------------------
# Frame serialization
# ----------------------------------------------------------------------------


def pack_header_into(buffer: bytearray, opcode: int) -> bytearray:
    """Fill in length and opcode of a frame whose body starts at ``HEADER_SIZE``.

    Args:
        buffer: Complete frame with the header bytes reserved
        opcode: Packet opcode

    Returns:
        The same buffer

    Raises:
        FrameTooLarge: If the frame does not fit the 16-bit length field
    """
    if len(buffer) > MAX_FRAME_BYTES:
        raise FrameTooLarge(len(buffer), MAX_FRAME_BYTES)
    _PREFIX.pack_into(buffer, HeaderOffset.LENGTH, len(buffer), opcode)
    return buffer


def peek_opcode(data: bytes | bytearray | memoryview) -> int | None:
    """Opcode of a frame, or ``None`` if ``data`` is too short to carry one."""
    if len(data) < HeaderOffset.OPCODE + 2:
        return None
    return int.from_bytes(data[HeaderOffset.OPCODE : HeaderOffset.OPCODE + 2], "little")
