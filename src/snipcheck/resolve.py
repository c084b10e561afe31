"""Cross-reference locked dependencies with artifacts found in the build cache."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import reduce
from pathlib import Path

from snipcheck.cache.layout import fallback_project_roots, fingerprint_dir
from snipcheck.cache.scan import iter_fingerprints
from snipcheck.config import ToolchainConfig
from snipcheck.errors import FingerprintError, MetadataError
from snipcheck.metadata.lockfile import read_locked_dependencies
from snipcheck.models import ArtifactFingerprint, LockedDependency, Resolution
from snipcheck.observability import StructuredLogger

Selection = Mapping[str, ArtifactFingerprint]


def choose(
    existing: ArtifactFingerprint | None,
    candidate: ArtifactFingerprint,
    locked_version: str,
) -> ArtifactFingerprint | None:
    """Pick between the current best artifact for a name and a new candidate.

    An empty slot takes any candidate whose version is unknown or matches the
    lock. A filled slot only moves to an exact version match that was built
    more recently.
    """
    if existing is None:
        if candidate.version is None or candidate.version == locked_version:
            return candidate
        return None
    if (
        candidate.version is not None
        and candidate.version == locked_version
        and candidate.last_modified > existing.last_modified
    ):
        return candidate
    return existing


def select_fingerprints(
    locked: Iterable[LockedDependency],
    fingerprints: Iterable[ArtifactFingerprint],
) -> Selection:
    locked_versions = {dep.name: dep.version_spec for dep in locked}

    def step(best: Selection, candidate: ArtifactFingerprint) -> Selection:
        name = candidate.library_name
        if name not in locked_versions:
            return best
        chosen = choose(best.get(name), candidate, locked_versions[name])
        if chosen is None or chosen is best.get(name):
            return best
        return {**best, name: chosen}

    return reduce(step, fingerprints, {})


def resolve_selection(
    locked: Iterable[LockedDependency],
    fingerprints: Iterable[ArtifactFingerprint],
) -> Resolution:
    locked = tuple(locked)
    selection = select_fingerprints(locked, fingerprints)
    # Metadata can outlive the artifact it points at.
    present = [dep for dep in selection.values() if dep.artifact_path.exists()]
    present.sort(key=lambda dep: dep.library_name)
    resolved_names = {dep.library_name for dep in present}
    unresolved = tuple(sorted({dep.name for dep in locked} - resolved_names))
    return Resolution(locked=locked, dependencies=tuple(present), unresolved=unresolved)


def read_locked_with_fallback(
    root_dir: str | Path,
    cache_root: str | Path,
    *,
    cargo: str = "cargo",
) -> tuple[LockedDependency, ...]:
    """Read locked dependencies, retrying from directories above *cache_root*.

    Build scripts may run with a manifest directory that has no lock file of
    its own, such as a nested workspace member.
    """
    try:
        return read_locked_dependencies(root_dir, cargo=cargo)
    except MetadataError as first_error:
        for candidate in fallback_project_roots(cache_root):
            if Path(candidate) == Path(root_dir):
                continue
            try:
                return read_locked_dependencies(candidate, cargo=cargo)
            except MetadataError:
                continue
        raise first_error


def resolve_dependencies(
    root_dir: str | Path,
    cache_root: str | Path,
    *,
    config: ToolchainConfig | None = None,
    logger: StructuredLogger | None = None,
) -> Resolution:
    """Locate the compiled artifact for every locked dependency of *root_dir*."""
    config = config or ToolchainConfig.from_env()
    locked = read_locked_with_fallback(root_dir, cache_root, cargo=config.cargo)

    skipped: list[Path] = []

    def on_skip(path: Path, _: FingerprintError) -> None:
        skipped.append(path)

    fingerprints = iter_fingerprints(
        fingerprint_dir(cache_root),
        extensions=config.artifact_extensions,
        on_skip=on_skip,
    )
    resolution = resolve_selection(locked, fingerprints)

    if logger is not None:
        logger.log(
            operation="resolve",
            phase="scan",
            message="Scanned build cache fingerprints.",
            extra={"skipped": len(skipped), "cache_root": str(cache_root)},
        )
        for dep in resolution.dependencies:
            logger.log(
                operation="resolve",
                phase="select",
                dependency=dep.library_name,
                message=f"Using {dep.artifact_path}.",
            )
        if locked and not resolution.dependencies:
            logger.log(
                operation="resolve",
                phase="select",
                level="warning",
                message="No locked dependency has a compiled artifact in the build cache.",
                extra={"locked": len(locked), "skipped": len(skipped)},
            )
    return resolution
