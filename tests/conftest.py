"""Shared test fixtures."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

REGISTRY = "registry+https://github.com/rust-lang/crates.io-index"

MakeUnit = Callable[..., Path]


class FakeRunResult:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def metadata_payload(
    *,
    members: dict[str, str],
    deps: dict[str, str] | None = None,
    editions: dict[str, str] | None = None,
    with_resolve: bool = True,
) -> dict[str, Any]:
    """Build a minimal ``cargo metadata`` document.

    Every member depends on every entry of *deps*. *editions* overrides the
    default ``2021`` edition per package name.
    """
    deps = deps or {}
    editions = editions or {}
    member_ids = {name: f"path+file:///work/{name}#{version}" for name, version in members.items()}
    dep_ids = {name: f"{REGISTRY}#{name}@{version}" for name, version in deps.items()}

    packages = [
        {
            "id": package_id,
            "name": name,
            "version": (members | deps)[name],
            "edition": editions.get(name, "2021"),
        }
        for name, package_id in (member_ids | dep_ids).items()
    ]
    payload: dict[str, Any] = {
        "packages": packages,
        "workspace_members": list(member_ids.values()),
        "resolve": None,
    }
    if with_resolve:
        nodes = [
            {"id": package_id, "dependencies": list(dep_ids.values())}
            for package_id in member_ids.values()
        ]
        nodes.extend({"id": package_id, "dependencies": []} for package_id in dep_ids.values())
        payload["resolve"] = {"nodes": nodes, "root": None}
    return payload


@pytest.fixture
def cargo_metadata() -> Callable[..., dict[str, Any]]:
    return metadata_payload


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """A ``target/debug`` directory under a fake project root."""
    root = tmp_path / "project" / "target" / "debug"
    (root / ".fingerprint").mkdir(parents=True)
    (root / "deps").mkdir(parents=True)
    return root


@pytest.fixture
def make_unit(cache_root: Path) -> MakeUnit:
    """Create a fingerprint directory and, optionally, its compiled artifact."""

    def _make(
        unit_dir: str,
        *,
        fingerprint_file: str = "lib.json",
        ext: str | None = "rlib",
        mtime: float | None = None,
    ) -> Path:
        fingerprint = cache_root / ".fingerprint" / unit_dir / fingerprint_file
        fingerprint.parent.mkdir(parents=True, exist_ok=True)
        fingerprint.write_text("{}", encoding="utf-8")
        if mtime is not None:
            os.utime(fingerprint, (mtime, mtime))
        if ext is not None:
            name, _, content_hash = unit_dir.rpartition("-")
            artifact = cache_root / "deps" / f"lib{name.replace('-', '_')}-{content_hash}.{ext}"
            artifact.write_bytes(b"artifact")
        return fingerprint

    return _make


@pytest.fixture
def fake_cargo(monkeypatch: pytest.MonkeyPatch) -> Callable[[dict[str, Any]], list[list[str]]]:
    """Answer ``cargo metadata`` with a canned payload; run everything else for real."""
    real_run = subprocess.run

    def _install(payload: dict[str, Any]) -> list[list[str]]:
        calls: list[list[str]] = []

        def _run(argv: list[str], *args: Any, **kwargs: Any) -> Any:
            if len(argv) > 1 and argv[1] == "metadata":
                calls.append(list(argv))
                return FakeRunResult(stdout=json.dumps(payload))
            return real_run(argv, *args, **kwargs)

        monkeypatch.setattr("snipcheck.metadata.query.subprocess.run", _run)
        return calls

    return _install
