"""Catalog entity models: archived builds and promoted releases.

A ``Build`` is one archived artifact.  Its storage key is derived from its
identity fields by the key scheme and is never set directly.  A
``Release`` is a snapshot of a Build promoted onto a distribution track.

JSON field names follow the ``kart.json`` manifest format (``namePattern``,
``releaseDate``); Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from string import Formatter
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from kart.core.keys import compute_key

DEFAULT_ARCH = "all"
DEFAULT_EXT = "tar.gz"

# Placeholders a name pattern may reference
NAME_PATTERN_FIELDS = frozenset({"project", "channel", "version", "number", "arch", "ext"})


def check_name_pattern(value: str) -> str:
    """Reject patterns that ``Release.file_name`` could not render."""
    try:
        fields = [field for _, field, _, _ in Formatter().parse(value) if field is not None]
    except ValueError as exc:
        raise ValueError(f"Malformed name pattern {value!r}: {exc}") from exc
    for field in fields:
        if field not in NAME_PATTERN_FIELDS:
            allowed = ", ".join(sorted(NAME_PATTERN_FIELDS))
            raise ValueError(
                f"Unknown placeholder {{{field}}} in name pattern {value!r} "
                f"(allowed: {allowed})"
            )
    return value


def _check_segment(value: str, field: str, forbidden: str = "/") -> str:
    if not value:
        raise ValueError(f"{field} must not be empty")
    for char in forbidden:
        if char in value:
            raise ValueError(f"{field} must not contain {char!r}: {value!r}")
    return value


class Build(BaseModel):
    """One archived build artifact.

    Identity is ``(project, channel, version, number, arch, ext)``; the
    validators keep every identity field parseable back out of the key.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    project: str
    channel: str
    version: str
    number: int = Field(ge=1)
    arch: str = DEFAULT_ARCH
    ext: str = DEFAULT_EXT
    metadata: dict[str, str] = Field(default_factory=dict)
    name_pattern: str | None = Field(default=None, alias="namePattern")

    @field_validator("project", "channel", "version", "ext")
    @classmethod
    def _no_separator(cls, value: str, info: ValidationInfo) -> str:
        return _check_segment(value, info.field_name)

    @field_validator("name_pattern")
    @classmethod
    def _renderable_pattern(cls, value: str | None) -> str | None:
        return None if value is None else check_name_pattern(value)

    @field_validator("arch", mode="before")
    @classmethod
    def _default_arch(cls, value: Any) -> Any:
        return DEFAULT_ARCH if value is None else value

    @field_validator("arch")
    @classmethod
    def _arch_segment(cls, value: str) -> str:
        # "." separates arch from ext in the key
        return _check_segment(value, "arch", forbidden="/.")

    @property
    def key(self) -> str:
        """Storage key of this entity, computed by the key scheme."""
        return compute_key(self)

    def to_json(self) -> str:
        """Serialize using the manifest field names."""
        return self.model_dump_json(by_alias=True)


class Release(Build):
    """A Build promoted onto a track.

    ``channel`` holds the target track.  ``release_date`` is stamped when the
    promotion copy completes.
    """

    release_date: datetime | None = Field(default=None, alias="releaseDate")

    @classmethod
    def from_build(
        cls,
        build: Build,
        *,
        track: str,
        name_pattern: str | None = None,
    ) -> Release:
        """Structural copy of *build* with the channel replaced by *track*."""
        fields = build.model_dump()
        fields.pop("release_date", None)
        fields.update(channel=track, name_pattern=name_pattern)
        return cls(**fields)

    @classmethod
    def from_json(cls, data: str | bytes) -> Release:
        return cls.model_validate_json(data)

    def stamped(self, now: datetime | None = None) -> Release:
        """Return a copy with ``release_date`` set (UTC now by default)."""
        return self.model_copy(
            update={"release_date": now or datetime.now(timezone.utc)}
        )

    @property
    def file_name(self) -> str:
        """Render ``name_pattern`` into a display/file name.

        Placeholders: ``{project}``, ``{channel}``, ``{version}``,
        ``{number}``, ``{arch}``, ``{ext}``.  Without a pattern the last
        segment of the storage key is used.
        """
        if not self.name_pattern:
            return self.key.rsplit("/", 1)[-1]
        return self.name_pattern.format(
            project=self.project,
            channel=self.channel,
            version=self.version,
            number=self.number,
            arch=self.arch,
            ext=self.ext,
        )
