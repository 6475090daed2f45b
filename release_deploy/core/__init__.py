"""Core functionality for release-deploy"""

from .path_resolver import PathResolver, normalize_dir
from .release_store import ReleaseStore
from .permissions import PermissionApplier
from .shared_linker import SharedLinker
from .pruner import Pruner
from .source_fetcher import SourceFetcher, RefSelection, RefKind
from .materializer import ReleaseMaterializer
from .live_promoter import LivePromoter
from .directory_structure import DirectoryStructure
from .cleanup import ReleaseCleaner

__all__ = [
    "PathResolver",
    "normalize_dir",
    "ReleaseStore",
    "PermissionApplier",
    "SharedLinker",
    "Pruner",
    "SourceFetcher",
    "RefSelection",
    "RefKind",
    "ReleaseMaterializer",
    "LivePromoter",
    "DirectoryStructure",
    "ReleaseCleaner",
]
