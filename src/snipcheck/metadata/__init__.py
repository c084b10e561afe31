"""Build metadata queries: locked dependencies and editions."""

from .edition import DEFAULT_EDITION, detect_edition, edition_flag, read_edition
from .lockfile import locked_dependencies, parse_package_id, read_locked_dependencies
from .query import CargoMetadata, CargoPackage, ResolveNode, parse_metadata, query_metadata

__all__ = [
    "DEFAULT_EDITION",
    "CargoMetadata",
    "CargoPackage",
    "ResolveNode",
    "detect_edition",
    "edition_flag",
    "locked_dependencies",
    "parse_metadata",
    "parse_package_id",
    "query_metadata",
    "read_edition",
    "read_locked_dependencies",
]
