"""Primitive wire types.

Every primitive type is a :class:`TypePlugin` that knows how to read a value
from a :class:`ReadCursor`, write one into a :class:`WriteCursor` and measure
the bytes a value occupies. Plugins are stateless; a :class:`TypeSet` groups
them for one protocol revision and is shared by every codec compiled for it.
"""

import itertools
import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .errors import CompilationError, TruncatedInput, TypeValidationError

FLOAT32_MAX = 3.4028234663852886e38
# Halfway between FLT_MAX and the next power of two; anything at or above rounds to infinity
FLOAT32_OVERFLOW = 2.0**128 - 2.0**103

# ----------------------------------------------------------------------------
# Cursors
# ----------------------------------------------------------------------------


@dataclass
class ReadCursor:
    """Position inside a buffer being decoded."""

    buffer: bytes | bytearray | memoryview
    pos: int = 0

    def take(self, n: int) -> int:
        """Reserve ``n`` bytes and return their start offset.

        Raises:
            TruncatedInput: If fewer than ``n`` bytes remain
        """
        start = self.pos
        available = len(self.buffer) - start
        if available < n:
            raise TruncatedInput(start, n, max(available, 0))
        self.pos = start + n
        return start


@dataclass
class WriteCursor:
    """Position inside a preallocated output buffer."""

    buffer: bytearray
    pos: int = 0

    def put(self, data: bytes) -> None:
        """Copy ``data`` at the cursor and advance past it."""
        end = self.pos + len(data)
        self.buffer[self.pos : end] = data
        self.pos = end


# ----------------------------------------------------------------------------
# Plugins
# ----------------------------------------------------------------------------


class TypePlugin(ABC):
    """Read/write/measure logic for one primitive wire type."""

    fixed_length: int | None = None

    @abstractmethod
    def read(self, cursor: ReadCursor) -> Any:
        """Decode one value at the cursor."""
        pass

    @abstractmethod
    def write(self, cursor: WriteCursor, value: Any, field: str = "") -> None:
        """Encode one value at the cursor."""
        pass

    def length(self, value: Any, field: str = "") -> int:
        """Byte length of ``value`` once encoded."""
        return self.fixed_length  # type: ignore[return-value]


class BoolType(TypePlugin):
    """One byte, nonzero reads as ``True``."""

    fixed_length = 1

    def read(self, cursor: ReadCursor) -> bool:
        return cursor.buffer[cursor.take(1)] != 0

    def write(self, cursor: WriteCursor, value: Any, field: str = "") -> None:
        cursor.buffer[cursor.pos] = 1 if value else 0
        cursor.pos += 1


class StandardType(TypePlugin):
    """Fixed-width little-endian number backed by a :mod:`struct` format."""

    def __init__(self, fmt: str, integer: bool = True):
        self._struct = struct.Struct("<" + fmt)
        self.fixed_length = self._struct.size
        self.integer = integer
        if integer:
            bits = self._struct.size * 8
            signed = fmt.islower()
            self.min_value = -(1 << (bits - 1)) if signed else 0
            self.max_value = (1 << (bits - 1)) - 1 if signed else (1 << bits) - 1

    def read(self, cursor: ReadCursor) -> int | float:
        return self._struct.unpack_from(cursor.buffer, cursor.take(self._struct.size))[0]

    def write(self, cursor: WriteCursor, value: Any, field: str = "") -> None:
        self.check(value, field)
        self._struct.pack_into(cursor.buffer, cursor.pos, value)
        cursor.pos += self._struct.size

    def check(self, value: Any, field: str = "") -> None:
        """Validate ``value`` against the kind and range of this type.

        Raises:
            TypeValidationError: If the value cannot be encoded
        """
        if isinstance(value, bool):
            raise TypeValidationError(f"expected a number, got {value!r}", field)
        if self.integer:
            if not isinstance(value, int):
                raise TypeValidationError(f"expected an integer, got {type(value).__name__}", field)
            if not self.min_value <= value <= self.max_value:
                raise TypeValidationError(
                    f"{value} out of range [{self.min_value}, {self.max_value}]", field
                )
        else:
            if not isinstance(value, (int, float)):
                raise TypeValidationError(f"expected a number, got {type(value).__name__}", field)
            try:
                number = float(value)
            except OverflowError:
                raise TypeValidationError(f"{value} does not fit a float", field) from None
            if self._struct.size == 4 and math.isfinite(number) and abs(number) >= FLOAT32_OVERFLOW:
                raise TypeValidationError(f"{value} does not fit a 32-bit float", field)

    def length(self, value: Any, field: str = "") -> int:
        self.check(value, field)
        return self._struct.size


class StringType(TypePlugin):
    """UTF-16LE text terminated by one zero code unit."""

    def read(self, cursor: ReadCursor) -> str:
        buf = cursor.buffer
        start = pos = cursor.pos
        # Find string terminator
        while True:
            if len(buf) - pos < 2:
                raise TruncatedInput(pos, 2, len(buf) - pos)
            if buf[pos] == 0 and buf[pos + 1] == 0:
                break
            pos += 2
        cursor.pos = pos + 2
        if pos == start:
            return ""
        return bytes(buf[start:pos]).decode("utf-16-le", "surrogatepass")

    def write(self, cursor: WriteCursor, value: Any, field: str = "") -> None:
        value = self.coerce(value, field)
        cursor.put(value.encode("utf-16-le", "surrogatepass") + b"\x00\x00")

    def length(self, value: Any, field: str = "") -> int:
        return len(self.coerce(value, field).encode("utf-16-le", "surrogatepass")) + 2

    @staticmethod
    def coerce(value: Any, field: str = "") -> str:
        """Accept ``str`` or ``None``; ``None`` becomes the empty string."""
        if value is not None and not isinstance(value, str):
            raise TypeValidationError("must be a string or None", field)
        return bind_default(value, "")


# ----------------------------------------------------------------------------
# Compilation support
# ----------------------------------------------------------------------------


def bind_default(value: Any, default: Any) -> Any:
    """Return ``value``, or ``default`` when it is ``None``."""
    return default if value is None else value


class TypeSet:
    """Primitive type table for one game version."""

    def __init__(self, game_version: float = 0.0):
        self.game_version = game_version
        self._counter = itertools.count()
        self._types: dict[str, TypePlugin] = {
            "bool": BoolType(),
            "byte": StandardType("B"),
            "int16": StandardType("h"),
            "uint16": StandardType("H"),
            "int32": StandardType("i"),
            "uint32": StandardType("I"),
            "int64": StandardType("q"),
            "uint64": StandardType("Q"),
            "float": StandardType("f", integer=False),
            "double": StandardType("d", integer=False),
            "string": StringType(),
        }

    def register(self, name: str, plugin: TypePlugin) -> None:
        """Add or replace a primitive type."""
        self._types[name] = plugin

    def get(self, name: str) -> TypePlugin:
        """Get a plugin by type name.

        Raises:
            CompilationError: If the type is unknown
        """
        if name not in self._types:
            raise CompilationError(f"Unknown type: {name}")
        return self._types[name]

    def names(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def local(self, hint: str = "tmp") -> str:
        """Allocate a fresh, uniquely named working binding."""
        return f"_{hint}{next(self._counter)}"
