"""Deterministic storage-key scheme for catalog entries and manifests.

Entry layout: ``<project>/<channel>/<version>/<number>_<arch>.<ext>``
Manifest layout: ``<project>/<track>/kart.json``

The number is written as a raw decimal.  Entry keys are injective because
the model validators forbid ``/`` in every segment and ``.`` in ``arch``,
so ``parse_key`` can always recover the identity from a key.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Protocol

MANIFEST_FILENAME = "kart.json"

_ENTRY_NAME = re.compile(r"^(?P<number>[1-9][0-9]*)_(?P<arch>[^./]+)\.(?P<ext>[^/]+)$")


class KeyedEntity(Protocol):
    project: str
    channel: str
    version: str
    number: int
    arch: str
    ext: str


class BuildKey(NamedTuple):
    """Identity fields recovered from an entry key."""

    project: str
    channel: str
    version: str
    number: int
    arch: str
    ext: str


def compute_key(entity: KeyedEntity) -> str:
    """Return the storage key for a Build or Release."""
    return (
        f"{entity.project}/{entity.channel}/{entity.version}/"
        f"{entity.number}_{entity.arch}.{entity.ext}"
    )


def parse_key(key: str) -> BuildKey | None:
    """Inverse of ``compute_key``.

    Returns ``None`` for keys that are not catalog entries (manifests,
    foreign objects sharing the prefix).
    """
    parts = key.split("/")
    if len(parts) != 4 or not all(parts):
        return None
    project, channel, version, name = parts
    match = _ENTRY_NAME.match(name)
    if match is None:
        return None
    return BuildKey(
        project=project,
        channel=channel,
        version=version,
        number=int(match.group("number")),
        arch=match.group("arch"),
        ext=match.group("ext"),
    )


def channel_prefix(project: str, channel: str) -> str:
    """Listing prefix covering every entry of a (project, channel)."""
    return f"{project}/{channel}/"


def manifest_key(project: str, track: str) -> str:
    """Key of the release manifest for a project's resolved deploy track."""
    return f"{channel_prefix(project, track)}{MANIFEST_FILENAME}"
