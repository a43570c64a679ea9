"""Exception hierarchy for the packet codec and registry."""


class ProtocolError(Exception):
    """Base class for every error raised by aionproto."""

    packet: str | None = None


# ----------------------------------------------------------------------------
# Construction-time errors
# ----------------------------------------------------------------------------


class RevisionNotFound(ProtocolError, LookupError):
    """The version identifier has no entry in the revision table."""

    def __init__(self, identifier: str):
        super().__init__(f"Entry for protocol {identifier} not found in revision table")
        self.identifier = identifier


class InvalidRevision(ProtocolError, ValueError):
    """A revision string does not match the revision grammar."""

    def __init__(self, revision: str):
        super().__init__(f'Invalid revision "{revision}"')
        self.revision = revision


class ResourceNotFound(ProtocolError, FileNotFoundError):
    """An enum map or definition directory is missing or unreadable."""


# ----------------------------------------------------------------------------
# Resolution and compilation errors
# ----------------------------------------------------------------------------


class UnknownPacket(ProtocolError, LookupError):
    """A packet name, opcode or version is not known."""


class CompilationError(ProtocolError):
    """A definition cannot be turned into a codec."""


class DefinitionSyntaxError(ProtocolError, ValueError):
    """Definition text does not follow the definition grammar."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


# ----------------------------------------------------------------------------
# Per-call errors
# ----------------------------------------------------------------------------


class TypeValidationError(ProtocolError, TypeError):
    """A field received a value its wire type cannot encode."""

    def __init__(self, message: str, field: str | None = None):
        if field:
            message = f"{field}: {message}"
        super().__init__(message)
        self.field = field


class TruncatedInput(ProtocolError):
    """The buffer ended before the structure being decoded."""

    def __init__(self, offset: int, needed: int, available: int):
        super().__init__(f"truncated input at offset {offset}: needed {needed} byte(s), {available} available")
        self.offset = offset
        self.needed = needed
        self.available = available


class FrameTooLarge(ProtocolError, ValueError):
    """An encoded frame does not fit the 16-bit length field."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"frame of {size} bytes exceeds the {limit} byte limit")
        self.size = size
        self.limit = limit


def annotate(exc: BaseException, prefix: str, packet: str | None) -> None:
    """Prefix an exception's message in place, keeping its type and traceback.

    Args:
        exc: The exception about to be re-raised
        prefix: Text such as ``"Error parsing S_CHAT"``
        packet: Resolved packet name, stored on library errors
    """
    if exc.args and isinstance(exc.args[0], str):
        exc.args = (f"{prefix}: {exc.args[0]}",) + exc.args[1:]
    else:
        exc.args = (f"{prefix}: {exc}",) if str(exc) else (prefix,)
    if isinstance(exc, ProtocolError):
        exc.packet = packet
