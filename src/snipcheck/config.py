"""Toolchain configuration for snippet compilation."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ARTIFACT_EXTENSIONS = ("rlib", "so", "dylib", "dll")


@dataclass(frozen=True, slots=True)
class ToolchainConfig:
    rustc: str = "rustc"
    cargo: str = "cargo"
    temp_prefix: str = "snipcheck-"
    temp_root: Path | None = None
    artifact_extensions: tuple[str, ...] = DEFAULT_ARTIFACT_EXTENSIONS
    verbose: bool = True
    extra_rustc_args: tuple[str, ...] = ()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ToolchainConfig:
        """Pick up ``RUSTC`` and ``CARGO`` overrides set by the calling build."""
        env = os.environ if environ is None else environ
        return cls(
            rustc=env.get("RUSTC") or "rustc",
            cargo=env.get("CARGO") or "cargo",
        )
