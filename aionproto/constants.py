"""Wire constants and resource naming for the Aion packet protocol."""

import re
from enum import IntEnum

# ----------------------------------------------------------------------------
# Frame header
# ----------------------------------------------------------------------------

HEADER_SIZE = 7  # u16 length + u16 opcode + 3 reserved bytes
RESERVED_SIZE = 3
MAX_FRAME_BYTES = 0xFFFF  # length field is 16 bits wide and counts the header


class HeaderOffset(IntEnum):
    """Byte offsets of the header fields."""

    LENGTH = 0
    OPCODE = 2
    RESERVED = 4


MAX_OPCODE = 0xFFFF
MAX_VERSION = 0xFFFF  # packed next to the opcode in the id cache key

# ----------------------------------------------------------------------------
# Version wildcard
# ----------------------------------------------------------------------------

LATEST = "latest"
LATEST_ALIASES = frozenset({LATEST, "*"})  # "*" is the legacy spelling

# ----------------------------------------------------------------------------
# Data resources
# ----------------------------------------------------------------------------

DEFINITION_FILE_RE = re.compile(r"(.+?)\.([0-9]+)\.def")  # used with fullmatch
REVISION_RE = re.compile(r"((.+?)-)?([0-9]+)(\.([0-9]+))?(/([0-9]+))?")  # used with fullmatch

PROTOCOL_MAP_TEMPLATE = "protocol.{identifier}.map"
SYSMSG_MAP_TEMPLATE = "sysmsg.{version}.map"

DEFINITIONS_DIRNAME = "protocol"
MAPS_DIRNAME = "map"
REVISIONS_FILENAME = "revisions.json"
