"""Locked dependency reader built on ``cargo metadata``."""

from __future__ import annotations

from pathlib import Path

from snipcheck.errors import MetadataError
from snipcheck.metadata.query import CargoMetadata, query_metadata
from snipcheck.models import LockedDependency


def parse_package_id(package_id: str) -> tuple[str, str] | None:
    """Split a package id into ``(name, version)``.

    Understands the legacy ``"name version (source)"`` form as well as the
    package-id spec form ``source#name@version`` / ``source#version``.
    """
    parts = package_id.split()
    if len(parts) >= 2:
        return parts[0], parts[1]

    source, sep, fragment = package_id.rpartition("#")
    if not sep or not fragment:
        return None
    if "@" in fragment:
        name, _, version = fragment.rpartition("@")
        if name and version:
            return name, version
        return None
    # Path and git sources name the package after the last URL segment.
    url = source.split("?", 1)[0].rstrip("/")
    name = url.rsplit("/", 1)[-1]
    if not name or ":" in name:
        return None
    return name, fragment


def locked_dependencies(metadata: CargoMetadata) -> tuple[LockedDependency, ...]:
    """Direct dependencies of every workspace member, plus the members."""
    if metadata.resolve is None:
        raise MetadataError(
            "Missing dependency metadata.",
            hint="Build the project once so cargo records a resolved dependency graph.",
        )

    members = set(metadata.workspace_members)
    package_ids = [
        dep for node in metadata.resolve if node.id in members for dep in node.dependencies
    ]
    package_ids.extend(metadata.workspace_members)

    found: dict[str, LockedDependency] = {}
    for package_id in package_ids:
        package = metadata.package(package_id)
        if package is not None:
            pair: tuple[str, str] | None = (package.name, package.version)
        else:
            pair = parse_package_id(package_id)
        if pair is None:
            continue
        locked = LockedDependency.from_manifest(*pair)
        found.setdefault(locked.name, locked)
    return tuple(found.values())


def read_locked_dependencies(
    root_dir: str | Path,
    *,
    cargo: str = "cargo",
) -> tuple[LockedDependency, ...]:
    return locked_dependencies(query_metadata(root_dir, cargo=cargo))
