"""Options for filtered, sorted, limited catalog listings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kart.models.builds import Build

# Field names a listing may sort by (every Build field).
SORTABLE_FIELDS: frozenset[str] = frozenset(Build.model_fields)


class SortSpec(BaseModel):
    """Lexicographic sort over ``key`` fields; ``order=-1`` reverses."""

    model_config = ConfigDict(frozen=True)

    key: list[str] = Field(min_length=1)
    order: Literal[1, -1] = 1

    @field_validator("key")
    @classmethod
    def _known_fields(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in SORTABLE_FIELDS]
        if unknown:
            raise ValueError(f"Cannot sort by unknown field(s): {', '.join(unknown)}")
        return value


class ListOptions(BaseModel):
    """Filter, sort and limit for ``Catalog.list``.

    ``filter`` is a strict AND of exact field equality.  A filter key that is
    not a Build field matches nothing.
    """

    model_config = ConfigDict(frozen=True)

    filter: dict[str, Any] = Field(default_factory=dict)
    sort: SortSpec | None = None
    limit: int | None = Field(default=None, ge=0)
