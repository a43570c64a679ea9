"""Tests for revision parsing."""

import pytest
from pydantic import ValidationError

from aionproto import InvalidRevision, Revision, parse_revision


def test_major_minor() -> None:
    """Major and minor patch versions without region."""
    revision = parse_revision("1.2")

    assert revision.region is None
    assert revision.major_patch_version == 1
    assert revision.minor_patch_version == 2
    assert revision.game_version == pytest.approx(1.02)
    assert revision.sysmsg_version is None
    assert revision.sysmsg_map_version == 1


def test_region_and_sysmsg() -> None:
    """Region prefix and system message version."""
    revision = parse_revision("EU-4/9")

    assert revision.region == "EU"
    assert revision.major_patch_version == 4
    assert revision.minor_patch_version == 0
    assert revision.game_version == 4.0
    assert revision.sysmsg_version == 9
    assert revision.sysmsg_map_version == 9


def test_full_form() -> None:
    revision = Revision.parse("NA-5.12/3")
    assert (revision.region, revision.major_patch_version, revision.minor_patch_version) == ("NA", 5, 12)
    assert revision.game_version == pytest.approx(5.12)
    assert str(revision) == "NA-5.12/3"


@pytest.mark.parametrize(
    "text",
    ["abc", "", "1.", "1.2.3", "EU-", "-3", "1/", "v1.2", "1.2\n", "EU-4/9\n", "\u0661.\u0662", "EU-\u0664"],
)
def test_invalid(text: str) -> None:
    """Strings outside the grammar raise InvalidRevision."""
    with pytest.raises(InvalidRevision) as excinfo:
        parse_revision(text)
    assert excinfo.value.revision == text


def test_invalid_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_revision("abc")


def test_revision_is_immutable() -> None:
    revision = parse_revision("3")
    with pytest.raises(ValidationError):
        revision.major_patch_version = 4
