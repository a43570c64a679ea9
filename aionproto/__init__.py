# Copyright 2025 Maida.AI
# SPDX-License-Identifier: Apache-2.0
r"""aionproto - versioned packet codec for the Aion client/server protocol.

Packet layouts are described by small per-version definition files. This
package compiles them into codecs and serves them through a registry bound to
one protocol revision:

- Primitive wire types (bool, fixed-width numbers, null-terminated UTF-16 strings)
- Definition compiler producing decode/encode/measure routines
- Revision parsing (``(region-)major(.minor)(/sysmsg)``)
- Registry resolving packets by name or opcode, caching compiled codecs
- 7-byte frame header: u16 length, u16 opcode, 3 reserved bytes
"""

__version__ = "0.1.0"

# Import public API from modules
from .compiler import (
    CompiledCodec,
    compile_definition,
    compile_text,
)
from .config import DataSettings
from .constants import (
    HEADER_SIZE,
    LATEST,
    MAX_FRAME_BYTES,
    HeaderOffset,
)
from .definitions import (
    DefinitionTable,
    FieldDef,
    PacketDef,
    parse_definition,
)
from .enums import (
    EnumMap,
    load_enum,
    parse_enum,
)
from .errors import (
    CompilationError,
    DefinitionSyntaxError,
    FrameTooLarge,
    InvalidRevision,
    ProtocolError,
    ResourceNotFound,
    RevisionNotFound,
    TruncatedInput,
    TypeValidationError,
    UnknownPacket,
)
from .frames import (
    FrameHeader,
    pack_header_into,
    peek_opcode,
)
from .registry import (
    Name,
    Opcode,
    PacketIdentity,
    PacketRegistry,
    as_identity,
)
from .revision import (
    Revision,
    parse_revision,
)
from .primitives import (
    ReadCursor,
    TypePlugin,
    TypeSet,
    WriteCursor,
)

# Public API exports
__all__ = [
    # Core classes
    "PacketRegistry",
    "Name",
    "Opcode",
    "PacketIdentity",
    "CompiledCodec",
    "DefinitionTable",
    "FieldDef",
    "PacketDef",
    "EnumMap",
    "Revision",
    "TypePlugin",
    "TypeSet",
    "ReadCursor",
    "WriteCursor",
    "FrameHeader",
    "DataSettings",
    # Constants
    "HEADER_SIZE",
    "LATEST",
    "MAX_FRAME_BYTES",
    "HeaderOffset",
    # Functions
    "as_identity",
    "compile_definition",
    "compile_text",
    "parse_definition",
    "parse_enum",
    "load_enum",
    "parse_revision",
    "pack_header_into",
    "peek_opcode",
    # Errors
    "ProtocolError",
    "RevisionNotFound",
    "InvalidRevision",
    "ResourceNotFound",
    "UnknownPacket",
    "TypeValidationError",
    "TruncatedInput",
    "CompilationError",
    "DefinitionSyntaxError",
    "FrameTooLarge",
]
