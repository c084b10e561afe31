"""Typed access to ``cargo metadata`` output."""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from snipcheck.errors import MetadataError

METADATA_FORMAT_VERSION = "1"


@dataclass(frozen=True, slots=True)
class CargoPackage:
    id: str
    name: str
    version: str
    edition: str


@dataclass(frozen=True, slots=True)
class ResolveNode:
    id: str
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CargoMetadata:
    packages: tuple[CargoPackage, ...]
    workspace_members: tuple[str, ...]
    resolve: tuple[ResolveNode, ...] | None = None

    def package(self, package_id: str) -> CargoPackage | None:
        for package in self.packages:
            if package.id == package_id:
                return package
        return None


def manifest_path(root_dir: str | Path) -> Path:
    return Path(root_dir) / "Cargo.toml"


def query_metadata(root_dir: str | Path, *, cargo: str = "cargo") -> CargoMetadata:
    """Run ``cargo metadata`` for the manifest under *root_dir* and parse it."""
    manifest = manifest_path(root_dir)
    command = [
        cargo,
        "metadata",
        "--format-version",
        METADATA_FORMAT_VERSION,
        "--manifest-path",
        str(manifest),
    ]
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise MetadataError(
            "Unable to run cargo metadata.",
            hint="Ensure cargo is installed or set CARGO to its path.",
            context={"command": " ".join(command), "error": str(exc)},
        ) from exc

    if completed.returncode != 0:
        raise MetadataError(
            "cargo metadata failed.",
            hint="Check that the manifest exists and parses.",
            context={
                "manifest": str(manifest),
                "returncode": str(completed.returncode),
                "stderr": completed.stderr[:2000] if completed.stderr else "",
                "command": " ".join(command),
            },
        )
    return parse_metadata(completed.stdout, source=str(manifest))


def parse_metadata(raw: str, *, source: str = "") -> CargoMetadata:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MetadataError(
            "Invalid cargo metadata JSON.",
            hint=str(exc),
            context={"manifest": source},
        ) from exc

    if not isinstance(payload, dict):
        raise MetadataError("Invalid cargo metadata payload type.", context={"manifest": source})

    packages_raw = payload.get("packages")
    if not isinstance(packages_raw, list):
        raise MetadataError(
            "Invalid cargo metadata `packages` value.",
            context={"manifest": source},
        )
    packages = tuple(_parse_package(item) for item in packages_raw)
    workspace_members = tuple(_required_str_list(payload, "workspace_members"))

    resolve_raw = payload.get("resolve")
    resolve: tuple[ResolveNode, ...] | None = None
    if isinstance(resolve_raw, dict):
        nodes_raw = resolve_raw.get("nodes")
        if not isinstance(nodes_raw, list):
            raise MetadataError("Invalid cargo metadata resolve `nodes` value.")
        resolve = tuple(_parse_node(item) for item in nodes_raw)
    elif resolve_raw is not None:
        raise MetadataError("Invalid cargo metadata `resolve` value.")

    return CargoMetadata(
        packages=packages,
        workspace_members=workspace_members,
        resolve=resolve,
    )


def _parse_package(item: Any) -> CargoPackage:
    if not isinstance(item, dict):
        raise MetadataError("Invalid package entry in cargo metadata.")
    # Manifests without an `edition` key are built as 2015.
    edition = item.get("edition", "2015")
    if not isinstance(edition, str):
        raise MetadataError("Invalid package `edition` value.")
    return CargoPackage(
        id=_required_str(item, "id"),
        name=_required_str(item, "name"),
        version=_required_str(item, "version"),
        edition=edition,
    )


def _parse_node(item: Any) -> ResolveNode:
    if not isinstance(item, dict):
        raise MetadataError("Invalid resolve node in cargo metadata.")
    return ResolveNode(
        id=_required_str(item, "id"),
        dependencies=tuple(_required_str_list(item, "dependencies")),
    )


def _required_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise MetadataError(f"Invalid cargo metadata `{key}` value.")
    return value


def _required_str_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MetadataError(f"Invalid cargo metadata `{key}` value.")
    return list(value)
