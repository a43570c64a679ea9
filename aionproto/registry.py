"""Versioned packet registry.

A :class:`PacketRegistry` serves one protocol revision. It resolves packets by
name or opcode, compiles their definitions on first use and frames encoded
bodies with the 7-byte wire header.
"""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .compiler import CompiledCodec, compile_definition, compile_text
from .config import DataSettings
from .constants import HEADER_SIZE, LATEST_ALIASES, MAX_OPCODE, MAX_VERSION
from .definitions import DefinitionTable
from .enums import EnumMap, load_enum
from .errors import ResourceNotFound, RevisionNotFound, UnknownPacket, annotate
from .frames import FrameHeader, pack_header_into, peek_opcode
from .revision import Revision
from .primitives import TypeSet

# ----------------------------------------------------------------------------
# Packet identity
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class Name:
    """Packet addressed by its symbolic name."""

    value: str


@dataclass(frozen=True)
class Opcode:
    """Packet addressed by its 16-bit opcode."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"opcode must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value <= MAX_OPCODE:
            raise ValueError(f"opcode {self.value} out of range")


PacketIdentity = Name | Opcode
Version = int | str


def as_identity(identity: PacketIdentity | str | int) -> PacketIdentity:
    """Turn a bare name or opcode into a :data:`PacketIdentity`."""
    if isinstance(identity, (Name, Opcode)):
        return identity
    if isinstance(identity, str):
        return Name(identity)
    if isinstance(identity, int) and not isinstance(identity, bool):
        return Opcode(identity)
    raise TypeError(f"packet identity must be a name or an opcode, got {type(identity).__name__}")


# ----------------------------------------------------------------------------
# Registry
# ----------------------------------------------------------------------------


class PacketRegistry:
    """Compiled packet codecs for one protocol revision."""

    def __init__(
        self,
        identifier: str | int,
        definitions: DefinitionTable,
        settings: DataSettings | None = None,
        *,
        revisions: Mapping[str, str] | None = None,
        packet_enum: EnumMap | None = None,
        sysmsg_enum: EnumMap | None = None,
    ):
        """Initialize registry.

        Args:
            identifier: Protocol identifier, a key of the revision table
            definitions: Packet definitions shared between registries
            settings: Data locations used for anything not passed explicitly
            revisions: Revision table (identifier -> revision string)
            packet_enum: Opcode map for this identifier
            sysmsg_enum: System message map for this revision

        Raises:
            RevisionNotFound: If the identifier has no revision entry
            InvalidRevision: If the revision string is malformed
            ResourceNotFound: If an enum map cannot be loaded or holds opcodes above 0xFFFF
        """
        self.identifier = str(identifier)
        self.definitions = definitions

        if revisions is None:
            revisions = _require(settings, "revision table").load_revisions()
        revision = revisions.get(self.identifier)
        if revision is None:
            raise RevisionNotFound(self.identifier)
        self.revision = Revision.parse(revision)

        if packet_enum is None:
            path = _require(settings, "opcode map").protocol_map(self.identifier)
            packet_enum = load_enum(path, MAX_OPCODE)
        elif any(code > MAX_OPCODE for code in packet_enum.codes()):
            raise ResourceNotFound(f"opcode map for {self.identifier} has codes above {MAX_OPCODE:#x}")
        if sysmsg_enum is None:
            path = _require(settings, "sysmsg map").sysmsg_map(self.revision.sysmsg_map_version)
            sysmsg_enum = load_enum(path)
        self.packet_enum = packet_enum
        self.sysmsg_enum = sysmsg_enum

        self.types = TypeSet(self.revision.game_version)

        self._by_name: dict[tuple[str, int], CompiledCodec] = {}
        self._by_id: dict[int, CompiledCodec] = {}
        self._lock = threading.Lock()
        self.compile_count = 0

        logging.info("Protocol %s uses revision %s", self.identifier, self.revision)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def name_of(self, identity: PacketIdentity | str | int) -> str:
        """Symbolic name of a packet.

        Raises:
            UnknownPacket: If an opcode is not mapped
        """
        identity = as_identity(identity)
        if isinstance(identity, Name):
            return identity.value
        name = self.packet_enum.name_of(identity.value)
        if name is None:
            raise UnknownPacket(f"opcode {identity.value} is not mapped")
        return name

    def opcode_of(self, identity: PacketIdentity | str | int) -> int | None:
        """Opcode of a packet, or ``None`` for an unmapped name."""
        identity = as_identity(identity)
        if isinstance(identity, Opcode):
            return identity.value
        return self.packet_enum.code_of(identity.value)

    def resolve_version(self, name: str, version: Version) -> int:
        """Resolve a version number or the ``"latest"`` wildcard.

        Raises:
            UnknownPacket: If the version is invalid or the packet has no definitions
        """
        if isinstance(version, str) and version in LATEST_ALIASES:
            return self.definitions.latest(name)
        if isinstance(version, bool) or not isinstance(version, int) or not 0 <= version <= MAX_VERSION:
            raise UnknownPacket(f"invalid version {version!r} for {name}")
        return version

    def codec(self, identity: PacketIdentity | str | int, version: Version) -> CompiledCodec:
        """Get the compiled codec for a packet, compiling it on first use."""
        identity = as_identity(identity)
        name = self.name_of(identity)
        return self._codec(name, self.opcode_of(identity), self.resolve_version(name, version))

    def _codec(self, name: str, code: int | None, version: int) -> CompiledCodec:
        id_key = None if code is None else code | version << 16

        compiled = self._by_name.get((name, version)) if id_key is None else self._by_id.get(id_key)
        if compiled is not None:
            return compiled

        with self._lock:
            compiled = self._by_name.get((name, version))
            if compiled is None:
                compiled = compile_definition(self.definitions.get(name, version), self.types, name, version)
                self.compile_count += 1
                self._by_name[(name, version)] = compiled
                logging.debug("Compiled %s.%d", name, version)

            # Both indices point at the same codec
            if id_key is not None:
                self._by_id[id_key] = compiled
        return compiled

    def compile_text(self, text: str) -> CompiledCodec:
        """Compile definition text against this revision's types, bypassing the cache."""
        return compile_text(text, self.types)

    # ------------------------------------------------------------------
    # Packet I/O
    # ------------------------------------------------------------------

    def read(self, identity: PacketIdentity | str | int, version: Version, buffer: bytes | bytearray | memoryview) -> Any:
        """Decode a framed packet.

        Args:
            identity: Packet name or opcode
            version: Definition version or ``"latest"``
            buffer: Complete frame, header included

        Returns:
            Decoded field values

        Raises:
            UnknownPacket: If the packet or version is not defined
            TruncatedInput: If the frame is shorter than the packet
        """
        identity = as_identity(identity)
        try:
            codec = self.codec(identity, version)
            FrameHeader.from_bytes(buffer)
            return codec.decode(buffer, HEADER_SIZE)
        except Exception as e:
            opcode = peek_opcode(buffer)
            name = self.packet_enum.name_of(opcode) if opcode is not None else None
            annotate(e, f"Error parsing {name or self._describe(identity)}", name)
            raise

    def write(self, identity: PacketIdentity | str | int, version: Version, value: Any) -> bytes:
        """Encode a packet into a complete frame.

        Unmapped packets are framed with opcode 0.

        Returns:
            Header followed by the encoded body

        Raises:
            UnknownPacket: If the packet or version is not defined
            TypeValidationError: If a field value has the wrong kind
            FrameTooLarge: If the frame exceeds the 16-bit length field
        """
        identity = as_identity(identity)
        try:
            codec = self.codec(identity, version)
            buffer = codec.encode(value, HEADER_SIZE)
            return bytes(pack_header_into(buffer, self.opcode_of(identity) or 0))
        except Exception as e:
            annotate(e, f"Error writing {self._describe(identity)}", self._name_or_none(identity))
            raise

    def length(self, identity: PacketIdentity | str | int, version: Version, value: Any) -> int:
        """Length of the frame :meth:`write` would produce, header included."""
        identity = as_identity(identity)
        try:
            return HEADER_SIZE + self.codec(identity, version).measure(value)
        except Exception as e:
            annotate(e, f"Error writing {self._describe(identity)}", self._name_or_none(identity))
            raise

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def cache_info(self) -> dict[str, int]:
        """Cache sizes and number of compilations so far."""
        with self._lock:
            return {
                "by_name": len(self._by_name),
                "by_opcode": len(self._by_id),
                "compiled": self.compile_count,
            }

    def _name_or_none(self, identity: PacketIdentity) -> str | None:
        if isinstance(identity, Name):
            return identity.value
        return self.packet_enum.name_of(identity.value)

    def _describe(self, identity: PacketIdentity) -> str:
        return self._name_or_none(identity) or f"opcode {identity.value}"


def _require(settings: DataSettings | None, what: str) -> DataSettings:
    if settings is None:
        raise ValueError(f"no {what} given and no data settings to load it from")
    return settings
