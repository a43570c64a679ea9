"""Bidirectional code <-> name maps for opcodes and system messages."""

from collections.abc import Iterable, Mapping
from pathlib import Path

from .errors import ResourceNotFound


class EnumMap:
    """Two-way mapping between numeric codes and symbolic names.

    Args:
        entries: Initial ``name -> code`` entries
        max_code: Largest code accepted; ``None`` means unbounded
    """

    def __init__(self, entries: Mapping[str, int] | Iterable[tuple[str, int]] = (), max_code: int | None = None):
        self.max_code = max_code
        self._code: dict[int, str] = {}
        self._name: dict[str, int] = {}
        items = entries.items() if isinstance(entries, Mapping) else entries
        for name, code in items:
            self.add(name, code)

    def add(self, name: str, code: int) -> None:
        """Map ``name`` to ``code``, replacing any earlier entry for either.

        Raises:
            ValueError: If the code is not a non-negative int within ``max_code``
        """
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError(f"code for {name} must be an int, got {type(code).__name__}")
        if code < 0 or (self.max_code is not None and code > self.max_code):
            raise ValueError(f"code {code} for {name} out of range")

        # Drop stale reverse entries so both directions stay in step
        old_code = self._name.pop(name, None)
        if old_code is not None:
            del self._code[old_code]
        old_name = self._code.pop(code, None)
        if old_name is not None:
            del self._name[old_name]

        self._name[name] = code
        self._code[code] = name

    def code_of(self, name: str) -> int | None:
        """Code for a name, or ``None`` if unmapped."""
        return self._name.get(name)

    def name_of(self, code: int) -> str | None:
        """Name for a code, or ``None`` if unmapped."""
        return self._code.get(code)

    def names(self) -> list[str]:
        return list(self._name)

    def codes(self) -> list[int]:
        return list(self._code)

    def __contains__(self, name: object) -> bool:
        return name in self._name

    def __len__(self) -> int:
        return len(self._name)


def parse_enum(text: str, source: str = "<string>", max_code: int | None = None) -> EnumMap:
    """Parse map text: one ``NAME = CODE`` or ``NAME CODE`` entry per line.

    Codes may be decimal or ``0x`` hexadecimal; ``#`` starts a comment.

    Raises:
        ResourceNotFound: If a line cannot be parsed or its code is out of range
    """
    enum = EnumMap(max_code=max_code)
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue

        parts = line.replace("=", " ").split()
        try:
            name, code = parts
            enum.add(name, int(code, 16) if code.lower().startswith("0x") else int(code))
        except ValueError as e:
            raise ResourceNotFound(f"{source}:{lineno}: malformed map entry {raw.strip()!r} ({e})") from None
    return enum


def load_enum(path: str | Path, max_code: int | None = None) -> EnumMap:
    """Load a map file from disk.

    Raises:
        ResourceNotFound: If the file is missing or malformed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        raise ResourceNotFound(f"{path.name} not found") from None
    return parse_enum(text, path.name, max_code)
