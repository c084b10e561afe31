"""Core typed dataclasses for locked dependencies, fingerprints and results."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import cbor2

from snipcheck.observability import StructuredLogger

CompileMode = Literal["check", "run"]


def normalize_crate_name(name: str) -> str:
    """Map a manifest package name onto the name used by compiled artifacts."""
    return name.replace("-", "_")


@dataclass(frozen=True, slots=True)
class LockedDependency:
    name: str
    version_spec: str

    @classmethod
    def from_manifest(cls, name: str, version_spec: str) -> LockedDependency:
        return cls(name=normalize_crate_name(name), version_spec=version_spec)


@dataclass(frozen=True, slots=True)
class ArtifactFingerprint:
    """A compiled library located through a build-cache fingerprint file.

    ``version`` stays ``None`` when the cache path alone cannot tell which
    version was built, which is the case for everything the scanner finds.
    """

    library_name: str
    artifact_path: Path
    last_modified: float
    version: str | None = None


# A fingerprint that survived resolution.
ResolvedDependency = ArtifactFingerprint


@dataclass(frozen=True, slots=True)
class Resolution:
    locked: tuple[LockedDependency, ...]
    dependencies: tuple[ResolvedDependency, ...]
    unresolved: tuple[str, ...] = ()
    schema_version: int = 1

    def names(self) -> tuple[str, ...]:
        return tuple(dep.library_name for dep in self.dependencies)

    def get(self, name: str) -> ResolvedDependency | None:
        for dep in self.dependencies:
            if dep.library_name == name:
                return dep
        return None

    def extern_args(self) -> tuple[str, ...]:
        """Render ``name=path`` bindings for rustc's ``--extern`` flag."""
        return tuple(f"{dep.library_name}={dep.artifact_path}" for dep in self.dependencies)

    def to_json(self, path: str | Path | None = None) -> str:
        payload = self._payload()
        encoded = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        payload = self._payload()
        encoded = cbor2.dumps(payload, canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "locked": {dep.name: dep.version_spec for dep in self.locked},
            "dependencies": {
                dep.library_name: {
                    "artifact_path": str(dep.artifact_path),
                    "version": dep.version,
                }
                for dep in self.dependencies
            },
            "unresolved": sorted(self.unresolved),
        }


@dataclass(frozen=True, slots=True)
class CommandOutput:
    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(slots=True)
class SnippetResult:
    mode: CompileMode
    edition: str
    resolution: Resolution
    compile: CommandOutput
    run: CommandOutput | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)


__all__ = [
    "ArtifactFingerprint",
    "CommandOutput",
    "CompileMode",
    "LockedDependency",
    "Resolution",
    "ResolvedDependency",
    "SnippetResult",
    "normalize_crate_name",
]
