"""Rust edition detection."""

from __future__ import annotations

from pathlib import Path

from snipcheck.errors import DialectDetectionError, MetadataError
from snipcheck.metadata.query import CargoMetadata, query_metadata

DEFAULT_EDITION = "2015"


def detect_edition(metadata: CargoMetadata) -> str:
    """Return the newest edition declared by any package in *metadata*."""
    editions = [package.edition for package in metadata.packages]
    if not editions:
        raise DialectDetectionError(
            "No packages found to read an edition from.",
            hint="Check that cargo metadata lists the project packages.",
        )
    invalid = sorted({edition for edition in editions if not edition.isdigit()})
    if invalid:
        raise DialectDetectionError(
            "Unrecognized edition in package metadata.",
            context={"editions": ", ".join(invalid)},
        )
    return max(editions, key=int)


def read_edition(root_dir: str | Path, *, cargo: str = "cargo") -> str:
    try:
        metadata = query_metadata(root_dir, cargo=cargo)
    except MetadataError as exc:
        raise DialectDetectionError(
            "Failed to read package editions.",
            hint=exc.hint,
            context={"root_dir": str(root_dir), **exc.context},
        ) from exc
    return detect_edition(metadata)


def edition_flag(edition: str) -> str | None:
    if edition == DEFAULT_EDITION:
        return None
    return f"--edition={edition}"
