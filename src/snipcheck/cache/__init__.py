"""Build cache layout and fingerprint scanning."""

from .layout import (
    cache_root_from_out_dir,
    deps_dir,
    fallback_project_roots,
    fingerprint_dir,
)
from .scan import derive_fingerprint, iter_fingerprints, scan_fingerprints

__all__ = [
    "cache_root_from_out_dir",
    "deps_dir",
    "derive_fingerprint",
    "fallback_project_roots",
    "fingerprint_dir",
    "iter_fingerprints",
    "scan_fingerprints",
]
