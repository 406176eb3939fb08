"""kart: build-artifact archive and release-promotion catalog.

Stores versioned build archives in an object store, lists them with
filters and sorting, and promotes a chosen build onto a release track by
server-side copy plus a per-track ``kart.json`` manifest.
"""

__version__ = "0.5.0"
__description__ = "Build-artifact archive and release-promotion catalog"

from kart.core.catalog import Catalog
from kart.core.manifest import ReleaseManifest
from kart.core.promotion import PromotionEngine
from kart.models.builds import Build, Release
from kart.models.projects import ProjectConfig

__all__ = [
    "Build",
    "Catalog",
    "ProjectConfig",
    "PromotionEngine",
    "Release",
    "ReleaseManifest",
    "__version__",
]
