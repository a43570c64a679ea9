"""Locations of the protocol data files."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from .constants import (
    DEFINITIONS_DIRNAME,
    MAPS_DIRNAME,
    PROTOCOL_MAP_TEMPLATE,
    REVISIONS_FILENAME,
    SYSMSG_MAP_TEMPLATE,
)
from .errors import ResourceNotFound


class DataSettings(BaseModel):
    """Paths of the revision table, enum maps and definition files.

    Only ``root`` is required; the other paths default to the standard layout::

        <root>/revisions.json
        <root>/map/protocol.<identifier>.map
        <root>/map/sysmsg.<version>.map
        <root>/protocol/<NAME>.<version>.def
    """

    root: Path = Field(..., description="Data root directory")
    definitions_dir: Path | None = Field(default=None, description="Definition files")
    map_dir: Path | None = Field(default=None, description="Opcode and sysmsg maps")
    revisions_file: Path | None = Field(default=None, description="Identifier -> revision JSON table")

    @model_validator(mode="after")
    def _fill_defaults(self) -> "DataSettings":
        if self.definitions_dir is None:
            self.definitions_dir = self.root / DEFINITIONS_DIRNAME
        if self.map_dir is None:
            self.map_dir = self.root / MAPS_DIRNAME
        if self.revisions_file is None:
            self.revisions_file = self.root / REVISIONS_FILENAME
        return self

    def load_revisions(self) -> dict[str, str]:
        """Load the revision table.

        Raises:
            ResourceNotFound: If the file is missing or is not a JSON object
        """
        try:
            data = json.loads(self.revisions_file.read_text(encoding="utf-8"))
        except OSError:
            raise ResourceNotFound(f"{self.revisions_file} not found") from None
        except json.JSONDecodeError as e:
            raise ResourceNotFound(f"{self.revisions_file} is not valid JSON: {e}") from None

        if not isinstance(data, dict):
            raise ResourceNotFound(f"{self.revisions_file} must contain a JSON object")
        return {str(key): str(value) for key, value in data.items()}

    def protocol_map(self, identifier: str) -> Path:
        """Path of the opcode map for a protocol identifier."""
        return self.map_dir / PROTOCOL_MAP_TEMPLATE.format(identifier=identifier)

    def sysmsg_map(self, version: int) -> Path:
        """Path of the system message map for a version."""
        return self.map_dir / SYSMSG_MAP_TEMPLATE.format(version=version)
