"""Tests for the definition grammar and the definition table."""

import logging

import pytest

from aionproto import (
    DefinitionSyntaxError,
    DefinitionTable,
    FieldDef,
    PacketDef,
    ResourceNotFound,
    UnknownPacket,
    parse_definition,
)


def test_parse_flat() -> None:
    definition = parse_definition("uint32 id   # the id\n\nstring name\n")
    assert definition == PacketDef(
        fields=(
            FieldDef(name="id", type="uint32"),
            FieldDef(name="name", type="string"),
        )
    )


def test_parse_nested() -> None:
    """Dashes nest fields under array and object fields."""
    definition = parse_definition(
        """
        array items
        - uint32 id
        - object stats
        -- int16 atk
        - string label
        byte tail
        """
    )

    items, tail = definition.fields
    assert items.type == "array"
    assert [f.name for f in items.fields] == ["id", "stats", "label"]
    assert items.fields[1].fields == (FieldDef(name="atk", type="int16"),)
    assert tail == FieldDef(name="tail", type="byte")


def test_parse_empty() -> None:
    assert parse_definition("# nothing here\n") == PacketDef()


@pytest.mark.parametrize(
    "text,line",
    [
        ("int32\n", 1),
        ("int32 a b\n", 1),
        ("int32 a\n- int32 b\n", 2),
        ("array a\n-- int32 b\n", 2),
        ("array a\nint32 b\n", 2),
        ("int32 a\nobject b\n", None),
    ],
)
def test_parse_errors(text: str, line) -> None:
    with pytest.raises(DefinitionSyntaxError) as excinfo:
        parse_definition(text)
    assert excinfo.value.line == line


def test_table_add_and_get() -> None:
    table = DefinitionTable()
    table.add("C_PING", 1, "uint32 nonce")
    table.add("C_PING", 3, PacketDef(fields=(FieldDef(name="nonce", type="uint64"),)))

    assert "C_PING" in table
    assert len(table) == 1
    assert table.count() == 2
    assert table.versions("C_PING") == [1, 3]
    assert table.latest("C_PING") == 3
    assert table.get("C_PING", 1).fields[0].type == "uint32"
    assert list(table) == ["C_PING"]


def test_table_unknown() -> None:
    table = DefinitionTable()
    table.add("C_PING", 1, "uint32 nonce")

    with pytest.raises(UnknownPacket, match="C_PONG"):
        table.get("C_PONG", 1)
    with pytest.raises(UnknownPacket, match="version 2"):
        table.get("C_PING", 2)
    with pytest.raises(UnknownPacket):
        table.latest("C_PONG")
    assert table.versions("C_PONG") == []


def test_table_frozen() -> None:
    table = DefinitionTable()
    table.freeze()
    with pytest.raises(RuntimeError):
        table.add("C_PING", 1, "uint32 nonce")


def test_load_directory(definitions: DefinitionTable) -> None:
    """Valid files are loaded; the table is read-only afterwards."""
    assert definitions.names() == ["C_SAY", "S_EMPTY", "S_PARTY", "S_STATUS", "S_UNMAPPED"]
    assert definitions.versions("C_SAY") == [1, 2, 10]
    assert definitions.get("S_EMPTY", 1) == PacketDef()

    with pytest.raises(RuntimeError):
        definitions.add("C_NEW", 1, "byte x")


def test_load_skips_broken_files(settings, caplog: pytest.LogCaptureFixture) -> None:
    """A file that fails to parse is logged and skipped."""
    with caplog.at_level(logging.INFO):
        table = DefinitionTable.load(settings.definitions_dir)

    assert "S_BROKEN" not in table
    assert any(r.levelno == logging.ERROR and "S_BROKEN.1" in r.getMessage() for r in caplog.records)
    assert any("1 skipped" in r.getMessage() for r in caplog.records)


def test_load_missing_directory(tmp_path) -> None:
    with pytest.raises(ResourceNotFound):
        DefinitionTable.load(tmp_path / "nope")


def test_load_requires_ascii_versions(tmp_path) -> None:
    """Only ASCII-digit version suffixes name definition files."""
    (tmp_path / "S_X.1.def").write_text("byte a\n", encoding="utf-8")
    (tmp_path / "S_X.١.def").write_text("byte a\n", encoding="utf-8")
    (tmp_path / "S_X.2.def.bak").write_text("byte a\n", encoding="utf-8")

    table = DefinitionTable.load(tmp_path)
    assert table.versions("S_X") == [1]
