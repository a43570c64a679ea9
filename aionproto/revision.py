"""Protocol revision descriptors."""

from pydantic import BaseModel, ConfigDict, Field

from .constants import REVISION_RE
from .errors import InvalidRevision


class Revision(BaseModel):
    """Normalized protocol revision: ``(region-)major(.minor)(/sysmsg)``."""

    model_config = ConfigDict(frozen=True)

    region: str | None = Field(default=None, description="Regional client prefix, e.g. EU")
    major_patch_version: int = Field(..., ge=0)
    minor_patch_version: int = Field(default=0, ge=0)
    sysmsg_version: int | None = Field(default=None, ge=0, description="System message map version")

    @property
    def game_version(self) -> float:
        """Game version as ``major + minor / 100``."""
        return self.major_patch_version + self.minor_patch_version / 100

    @property
    def sysmsg_map_version(self) -> int:
        """Version of the system message map, falling back to the major patch."""
        if self.sysmsg_version is None:
            return self.major_patch_version
        return self.sysmsg_version

    @classmethod
    def parse(cls, text: str) -> "Revision":
        """Parse a revision string.

        Args:
            text: Revision such as ``"1.2"`` or ``"EU-4/9"``

        Returns:
            Parsed revision

        Raises:
            InvalidRevision: If the text does not match the revision grammar
        """
        match = REVISION_RE.fullmatch(text) if isinstance(text, str) else None
        if not match:
            raise InvalidRevision(str(text))

        return cls(
            region=match.group(2),
            major_patch_version=int(match.group(3)),
            minor_patch_version=int(match.group(5) or 0),
            sysmsg_version=int(match.group(7)) if match.group(7) else None,
        )

    def __str__(self) -> str:
        text = str(self.major_patch_version)
        if self.region:
            text = f"{self.region}-{text}"
        if self.minor_patch_version:
            text += f".{self.minor_patch_version}"
        if self.sysmsg_version is not None:
            text += f"/{self.sysmsg_version}"
        return text


def parse_revision(text: str) -> Revision:
    """Parse a revision string into a :class:`Revision`."""
    return Revision.parse(text)
