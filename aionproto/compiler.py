"""Definition compiler.

Turns a :class:`~aionproto.definitions.PacketDef` into a :class:`CompiledCodec`
by resolving every field against a :class:`~aionproto.primitives.TypeSet` once, up
front. The resulting step tree is interpreted on each decode/encode/measure
call, so type errors in a definition surface when it is compiled and value
errors surface when a value is encoded.

Composite layouts:

- ``object``: the member fields inline, no bytes of its own
- ``array``: ``uint16`` little-endian element count, then each element's members
"""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from .definitions import COMPOSITE_TYPES, FieldDef, PacketDef, parse_definition
from .errors import CompilationError, TypeValidationError
from .primitives import ReadCursor, StandardType, TypePlugin, TypeSet, WriteCursor, bind_default

ARRAY_COUNT = StandardType("H")

# ----------------------------------------------------------------------------
# Steps
# ----------------------------------------------------------------------------


class _Primitive:
    __slots__ = ("name", "type_name", "plugin")

    def __init__(self, name: str, type_name: str, plugin: TypePlugin):
        self.name = name
        self.type_name = type_name
        self.plugin = plugin

    def read(self, cursor: ReadCursor, out: dict[str, Any]) -> None:
        out[self.name] = self.plugin.read(cursor)

    def write(self, cursor: WriteCursor, value: Any, path: str) -> None:
        self.plugin.write(cursor, value, path)

    def length(self, value: Any, path: str) -> int:
        return self.plugin.length(value, path)

    def layout(self, path: str) -> list[tuple[str, str]]:
        return [(path, self.type_name)]


class _Struct:
    """Ordered member fields; used for packets, objects and array elements."""

    __slots__ = ("members",)

    def __init__(self, members: list):
        self.members = members

    def read(self, cursor: ReadCursor) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for member in self.members:
            member.read(cursor, out)
        return out

    def write(self, cursor: WriteCursor, value: Any, path: str) -> None:
        value = _mapping(value, path)
        for member in self.members:
            member.write(cursor, value.get(member.name), _join(path, member.name))

    def length(self, value: Any, path: str) -> int:
        value = _mapping(value, path)
        return sum(member.length(value.get(member.name), _join(path, member.name)) for member in self.members)

    def layout(self, path: str) -> list[tuple[str, str]]:
        rows: list[tuple[str, str]] = []
        for member in self.members:
            rows.extend(member.layout(_join(path, member.name)))
        return rows


class _Object:
    __slots__ = ("name", "struct")

    def __init__(self, name: str, struct: _Struct):
        self.name = name
        self.struct = struct

    def read(self, cursor: ReadCursor, out: dict[str, Any]) -> None:
        out[self.name] = self.struct.read(cursor)

    def write(self, cursor: WriteCursor, value: Any, path: str) -> None:
        self.struct.write(cursor, value, path)

    def length(self, value: Any, path: str) -> int:
        return self.struct.length(value, path)

    def layout(self, path: str) -> list[tuple[str, str]]:
        return self.struct.layout(path)


class _Array:
    __slots__ = ("name", "count_binding", "element")

    def __init__(self, name: str, count_binding: str, element: _Struct):
        self.name = name
        self.count_binding = count_binding
        self.element = element

    def read(self, cursor: ReadCursor, out: dict[str, Any]) -> None:
        count = ARRAY_COUNT.read(cursor)
        out[self.name] = [self.element.read(cursor) for _ in range(count)]

    def write(self, cursor: WriteCursor, value: Any, path: str) -> None:
        items = self._items(value, path)
        ARRAY_COUNT.write(cursor, len(items), path)
        for i, item in enumerate(items):
            self.element.write(cursor, item, f"{path}[{i}]")

    def length(self, value: Any, path: str) -> int:
        items = self._items(value, path)
        return ARRAY_COUNT.fixed_length + sum(
            self.element.length(item, f"{path}[{i}]") for i, item in enumerate(items)
        )

    def layout(self, path: str) -> list[tuple[str, str]]:
        return [(_join(path, self.count_binding), "uint16")] + self.element.layout(f"{path}[]")

    @staticmethod
    def _items(value: Any, path: str) -> Sequence:
        value = bind_default(value, ())
        if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
            raise TypeValidationError(f"expected a sequence, got {type(value).__name__}", path)
        if len(value) > ARRAY_COUNT.max_value:
            raise TypeValidationError(f"{len(value)} elements exceed the array limit", path)
        return value


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _mapping(value: Any, path: str) -> Mapping:
    value = bind_default(value, {})
    if not isinstance(value, Mapping):
        raise TypeValidationError(f"expected a mapping, got {type(value).__name__}", path or None)
    return value


# ----------------------------------------------------------------------------
# Codec
# ----------------------------------------------------------------------------


class CompiledCodec:
    """Decode/encode/measure routines for one packet version."""

    def __init__(self, root: _Struct, name: str | None = None, version: int | None = None):
        self._root = root
        self.name = name
        self.version = version

    def decode(self, buffer: bytes | bytearray | memoryview, offset: int = 0) -> dict[str, Any]:
        """Decode a packet body starting at ``offset``.

        Raises:
            TruncatedInput: If the buffer ends before the body does
        """
        return self.decode_from(buffer, offset)[0]

    def decode_from(self, buffer: bytes | bytearray | memoryview, offset: int = 0) -> tuple[dict[str, Any], int]:
        """Decode a packet body and also return the offset just past it."""
        cursor = ReadCursor(buffer, offset)
        value = self._root.read(cursor)
        return value, cursor.pos

    def encode(self, value: Mapping[str, Any] | None, offset: int = 0) -> bytearray:
        """Encode a packet body after ``offset`` zero bytes.

        Args:
            value: Field values; missing keys count as ``None``
            offset: Bytes to leave free at the start, e.g. for a header

        Returns:
            Buffer of ``offset + measure(value)`` bytes

        Raises:
            TypeValidationError: If a field value has the wrong kind
        """
        buffer = bytearray(offset + self.measure(value))
        cursor = WriteCursor(buffer, offset)
        self._root.write(cursor, value, "")
        return buffer

    def measure(self, value: Mapping[str, Any] | None) -> int:
        """Exact byte length of the encoded body."""
        return self._root.length(value, "")

    def layout(self) -> list[tuple[str, str]]:
        """Flattened ``(field path, wire type)`` list in wire order."""
        return self._root.layout("")

    def __repr__(self) -> str:
        return f"CompiledCodec({self.name!r}, {self.version!r})"


# ----------------------------------------------------------------------------
# Compilation
# ----------------------------------------------------------------------------


def compile_definition(
    definition: PacketDef | Mapping[str, Any],
    types: TypeSet,
    name: str | None = None,
    version: int | None = None,
) -> CompiledCodec:
    """Compile a packet layout into a codec.

    Args:
        definition: Parsed layout, or a mapping shaped like one
        types: Primitive types to resolve field types against
        name: Packet name, kept on the codec for diagnostics
        version: Packet version, kept on the codec for diagnostics

    Returns:
        Compiled codec

    Raises:
        CompilationError: If the layout is malformed or names an unknown type
    """
    if not isinstance(definition, PacketDef):
        try:
            definition = PacketDef.model_validate(definition)
        except ValidationError as e:
            raise CompilationError(f"malformed definition: {e}") from e

    return CompiledCodec(_compile_struct(definition.fields, types, ""), name, version)


def compile_text(text: str, types: TypeSet) -> CompiledCodec:
    """Parse definition text and compile it."""
    return compile_definition(parse_definition(text), types)


def _compile_struct(fields: Sequence[FieldDef], types: TypeSet, path: str) -> _Struct:
    members = []
    seen: set[str] = set()
    for field in fields:
        if not field.name:
            raise CompilationError(f"{path or 'packet'}: field with empty name")
        if field.name in seen:
            raise CompilationError(f"{_join(path, field.name)}: duplicate field")
        seen.add(field.name)
        members.append(_compile_field(field, types, _join(path, field.name)))
    return _Struct(members)


def _compile_field(field: FieldDef, types: TypeSet, path: str):
    if field.type in COMPOSITE_TYPES:
        if not field.fields:
            raise CompilationError(f"{path}: {field.type} has no fields")
        if field.type == "object":
            return _Object(field.name, _compile_struct(field.fields, types, path))
        return _Array(field.name, types.local("count"), _compile_struct(field.fields, types, f"{path}[]"))

    if field.fields:
        raise CompilationError(f"{path}: primitive type {field.type} cannot have fields")
    try:
        plugin = types.get(field.type)
    except CompilationError as e:
        raise CompilationError(f"{path}: {e}") from None
    return _Primitive(field.name, field.type, plugin)
