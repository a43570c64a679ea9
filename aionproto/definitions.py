"""Packet definitions: field-layout AST, definition grammar and the definition table.

A definition file describes one version of one packet, one field per line::

    # S_CHAT.3.def
    uint32 senderId
    string message
    array  targets
    - int32  id
    - string name

Leading dashes give the nesting depth below an ``array`` or ``object`` field.
Files are named ``<PACKET_NAME>.<version>.def``.
"""

import logging
from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFINITION_FILE_RE
from .errors import DefinitionSyntaxError, ResourceNotFound, UnknownPacket

COMPOSITE_TYPES = frozenset({"array", "object"})

# ----------------------------------------------------------------------------
# AST
# ----------------------------------------------------------------------------


class FieldDef(BaseModel):
    """One field of a packet layout."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    fields: tuple["FieldDef", ...] | None = Field(default=None, description="Members of array/object fields")


FieldDef.model_rebuild()


class PacketDef(BaseModel):
    """Field layout of one packet version."""

    model_config = ConfigDict(frozen=True)

    fields: tuple[FieldDef, ...] = ()


# ----------------------------------------------------------------------------
# Grammar
# ----------------------------------------------------------------------------


def parse_definition(text: str) -> PacketDef:
    """Parse definition text into a :class:`PacketDef`.

    Args:
        text: Contents of a ``.def`` file

    Returns:
        Parsed layout

    Raises:
        DefinitionSyntaxError: If a line is malformed or nesting is inconsistent
    """
    # Each stack entry is the member list of one open structure
    stack: list[list[dict]] = [[]]
    parents: list[dict] = []

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue

        depth = len(line) - len(line.lstrip("-"))
        parts = line[depth:].split()
        if len(parts) != 2:
            raise DefinitionSyntaxError(f"expected '<type> <name>', got {raw.strip()!r}", lineno)
        type_name, name = parts

        if depth > len(parents):
            raise DefinitionSyntaxError(f"field {name!r} is nested too deep", lineno)
        while len(parents) > depth:
            _close(stack, parents, lineno)

        node = {"name": name, "type": type_name}
        stack[-1].append(node)
        if type_name in COMPOSITE_TYPES:
            parents.append(node)
            stack.append([])

    while parents:
        _close(stack, parents, None)

    return PacketDef(fields=tuple(_build(node) for node in stack[0]))


def _close(stack: list[list[dict]], parents: list[dict], lineno: int | None) -> None:
    members = stack.pop()
    parent = parents.pop()
    if not members:
        raise DefinitionSyntaxError(f"{parent['type']} {parent['name']!r} has no fields", lineno)
    parent["fields"] = members


def _build(node: dict) -> FieldDef:
    members = node.get("fields")
    return FieldDef(
        name=node["name"],
        type=node["type"],
        fields=tuple(_build(member) for member in members) if members is not None else None,
    )


# ----------------------------------------------------------------------------
# Definition table
# ----------------------------------------------------------------------------


class DefinitionTable:
    """Packet name -> version -> :class:`PacketDef`.

    Build it once, then hand the same table to every registry that needs it.
    """

    def __init__(self) -> None:
        self._defs: dict[str, dict[int, PacketDef]] = {}
        self._frozen = False

    @classmethod
    def load(cls, directory: str | Path) -> "DefinitionTable":
        """Load every ``<name>.<version>.def`` file in a directory.

        Files that fail to parse are logged and skipped.

        Raises:
            ResourceNotFound: If the directory does not exist
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise ResourceNotFound(f"definition directory {directory} not found")

        table = cls()
        skipped = 0
        for path in sorted(directory.iterdir()):
            match = DEFINITION_FILE_RE.fullmatch(path.name)
            if not match:
                continue

            name, version = match.group(1), int(match.group(2))
            try:
                table.add(name, version, parse_definition(path.read_text(encoding="utf-8")))
            except (OSError, UnicodeDecodeError, DefinitionSyntaxError) as e:
                logging.error("Error loading %s.%d: %s", name, version, e)
                skipped += 1

        logging.info("Loaded %d packet definitions from %s (%d skipped)", table.count(), directory, skipped)
        table.freeze()
        return table

    def add(self, name: str, version: int, definition: PacketDef | str) -> None:
        """Add one definition; text is parsed with :func:`parse_definition`."""
        if self._frozen:
            raise RuntimeError("definition table is read-only")
        if isinstance(definition, str):
            definition = parse_definition(definition)
        self._defs.setdefault(name, {})[version] = definition

    def freeze(self) -> None:
        """Make the table read-only."""
        self._frozen = True

    def get(self, name: str, version: int) -> PacketDef:
        """Get one definition.

        Raises:
            UnknownPacket: If the packet or the version is not defined
        """
        versions = self._defs.get(name)
        if versions is None:
            raise UnknownPacket(f"no definitions for packet {name}")
        if version not in versions:
            raise UnknownPacket(f"no definition for {name} version {version}")
        return versions[version]

    def versions(self, name: str) -> list[int]:
        """Sorted versions defined for a packet (empty if unknown)."""
        return sorted(self._defs.get(name, ()))

    def latest(self, name: str) -> int:
        """Highest version defined for a packet.

        Raises:
            UnknownPacket: If the packet has no definitions
        """
        versions = self._defs.get(name)
        if not versions:
            raise UnknownPacket(f"no definitions for packet {name}")
        return max(versions)

    def names(self) -> list[str]:
        return sorted(self._defs)

    def count(self) -> int:
        """Number of (name, version) definitions."""
        return sum(len(versions) for versions in self._defs.values())

    def __contains__(self, name: object) -> bool:
        return name in self._defs

    def __len__(self) -> int:
        return len(self._defs)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
