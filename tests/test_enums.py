"""Tests for opcode and system message maps."""

import pytest

from aionproto import EnumMap, ResourceNotFound, load_enum, parse_enum


def test_parse_formats() -> None:
    """Both ``NAME = CODE`` and ``NAME CODE``, decimal and hex."""
    enum = parse_enum("# comment\nC_SAY = 0x0102\nS_STATUS 500\n\nS_ZERO=0007  # padded\n")

    assert enum.code_of("C_SAY") == 0x0102
    assert enum.code_of("S_STATUS") == 500
    assert enum.code_of("S_ZERO") == 7
    assert enum.name_of(500) == "S_STATUS"
    assert len(enum) == 3
    assert "C_SAY" in enum


def test_unmapped_returns_none() -> None:
    enum = EnumMap({"A": 1})
    assert enum.code_of("B") is None
    assert enum.name_of(2) is None


def test_malformed_line() -> None:
    with pytest.raises(ResourceNotFound, match="x.map:2"):
        parse_enum("A 1\nB\n", "x.map")
    with pytest.raises(ResourceNotFound):
        parse_enum("A one\n")


def test_load_file(data_root) -> None:
    enum = load_enum(data_root / "map" / "sysmsg.3.map")
    assert enum.names() == ["SM_WELCOME", "SM_BYE"]


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(ResourceNotFound, match="sysmsg.9.map not found"):
        load_enum(tmp_path / "sysmsg.9.map")


def test_code_range() -> None:
    """Negative codes are always rejected; max_code bounds the rest."""
    with pytest.raises(ValueError):
        EnumMap({"A": -1})
    with pytest.raises(ValueError, match="out of range"):
        EnumMap({"A": 0x10001}, max_code=0xFFFF)
    with pytest.raises(ValueError):
        EnumMap({"A": "1"})

    assert EnumMap({"A": 0xFFFF}, max_code=0xFFFF).code_of("A") == 0xFFFF
    assert EnumMap({"SM_BIG": 1300000}).code_of("SM_BIG") == 1300000


def test_parse_code_range() -> None:
    with pytest.raises(ResourceNotFound, match="op.map:2"):
        parse_enum("S_A = 1\nS_B = 0x10001\n", "op.map", max_code=0xFFFF)
    with pytest.raises(ResourceNotFound, match="op.map:1"):
        parse_enum("S_A = -1\n", "op.map")


def test_load_file_code_range(tmp_path) -> None:
    path = tmp_path / "protocol.1.map"
    path.write_text("S_A 70000\n", encoding="utf-8")

    assert load_enum(path).code_of("S_A") == 70000
    with pytest.raises(ResourceNotFound):
        load_enum(path, 0xFFFF)


def test_readd_replaces_both_directions() -> None:
    """Re-mapping a name or a code leaves no stale reverse entry."""
    enum = parse_enum("A = 1\nA = 2\n")
    assert enum.code_of("A") == 2
    assert enum.name_of(1) is None
    assert enum.name_of(2) == "A"

    enum.add("B", 2)
    assert enum.name_of(2) == "B"
    assert enum.code_of("A") is None
    assert enum.codes() == [2]
    assert len(enum) == 1
