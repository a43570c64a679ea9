"""Shared fixtures: a small on-disk protocol data tree."""

import json

import pytest

from aionproto import DataSettings, DefinitionTable, PacketRegistry

DEFINITIONS = {
    "C_SAY.1.def": "byte channel\nstring message\n",
    "C_SAY.2.def": "byte channel\nstring message\nbool whisper\n",
    "C_SAY.10.def": "byte channel\nstring message\nbool whisper\nuint32 target\n",
    "S_STATUS.1.def": """
        # Everything the primitive set supports
        bool    alive
        byte    level
        int16   dx
        uint16  hp
        int32   x
        uint32  money
        int64   exp
        uint64  guid
        float   speed
        double  ratio
        string  title
    """,
    "S_PARTY.1.def": """
        uint32 leader
        array  members
        - uint32 id
        - string name
        - object pos
        -- float x
        -- float y
    """,
    "S_UNMAPPED.1.def": "uint32 value\n",
    "S_EMPTY.1.def": "",
    "S_BROKEN.1.def": "int32\n",
    "README.txt": "not a definition",
}

PROTOCOL_MAP = """
# opcode map for protocol 312
C_SAY = 0x0102
S_STATUS = 500
S_PARTY 501
S_EMPTY 502
S_NODEF 503
"""

SYSMSG_MAP = "SM_WELCOME = 1\nSM_BYE = 2\n"

REVISIONS = {
    "312": "EU-3.5/3",
    "100": "1.2",
    "bad": "abc",
    "nomap": "7",
}


@pytest.fixture
def data_root(tmp_path):
    """Data directory with revisions, maps and definitions."""
    (tmp_path / "revisions.json").write_text(json.dumps(REVISIONS), encoding="utf-8")

    maps = tmp_path / "map"
    maps.mkdir()
    (maps / "protocol.312.map").write_text(PROTOCOL_MAP, encoding="utf-8")
    (maps / "protocol.100.map").write_text("C_SAY 7\n", encoding="utf-8")
    (maps / "sysmsg.3.map").write_text(SYSMSG_MAP, encoding="utf-8")

    protocol = tmp_path / "protocol"
    protocol.mkdir()
    for filename, text in DEFINITIONS.items():
        (protocol / filename).write_text(text, encoding="utf-8")

    return tmp_path


@pytest.fixture
def settings(data_root):
    return DataSettings(root=data_root)


@pytest.fixture
def definitions(settings):
    return DefinitionTable.load(settings.definitions_dir)


@pytest.fixture
def registry(definitions, settings):
    return PacketRegistry("312", definitions, settings)
