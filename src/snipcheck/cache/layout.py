"""Path contract between snipcheck and cargo's target directory.

Cargo does not publish an index of what it built, so artifacts are found
purely by position. Every derivation that depends on the directory layout
lives here, one function each::

    <project>/target/<profile>/                   cache root
    <project>/target/<profile>/build/<unit>/out   OUT_DIR of a build script
    <cache root>/.fingerprint/<name>-<hash>/*.json
    <cache root>/deps/lib<name>-<hash>.<ext>
"""

from __future__ import annotations

from pathlib import Path

from snipcheck.errors import FingerprintError

FINGERPRINT_DIRNAME = ".fingerprint"
DEPS_DIRNAME = "deps"
FINGERPRINT_SUFFIX = ".json"
HASH_SEPARATOR = "-"

# OUT_DIR sits at <cache root>/build/<unit>/out.
OUT_DIR_DEPTH = 3
# A fingerprint file sits at <cache root>/.fingerprint/<unit>/<file>.
FINGERPRINT_FILE_DEPTH = 3
FALLBACK_ROOT_SEARCH_DEPTH = 3


def cache_root_from_out_dir(out_dir: str | Path) -> Path:
    path = Path(out_dir)
    parents = path.parents
    if len(parents) < OUT_DIR_DEPTH:
        return Path(path.anchor or ".")
    return parents[OUT_DIR_DEPTH - 1]


def fingerprint_dir(cache_root: str | Path) -> Path:
    return Path(cache_root) / FINGERPRINT_DIRNAME


def deps_dir(cache_root: str | Path) -> Path:
    return Path(cache_root) / DEPS_DIRNAME


def split_unit_name(unit_dir_name: str) -> tuple[str, str]:
    """Split ``my-crate-0a1b2c`` into ``("my_crate", "0a1b2c")``."""
    segments = unit_dir_name.split(HASH_SEPARATOR)
    if len(segments) < 2 or not all(segments):
        raise FingerprintError(
            "Fingerprint directory does not look like <name>-<hash>.",
            context={"directory": unit_dir_name},
        )
    return "_".join(segments[:-1]), segments[-1]


def artifact_stem(fingerprint_file: str | Path, library_name: str, content_hash: str) -> Path:
    """Extension-less artifact path for a fingerprint file's unit."""
    path = Path(fingerprint_file)
    parents = path.parents
    # parents[-1] is the anchor or ".", which cannot be a cache root.
    if len(parents) <= FINGERPRINT_FILE_DEPTH:
        raise FingerprintError(
            "Fingerprint path is too shallow to locate an artifact.",
            context={"path": str(path)},
        )
    cache_root = parents[FINGERPRINT_FILE_DEPTH - 1]
    return deps_dir(cache_root) / f"lib{library_name}{HASH_SEPARATOR}{content_hash}"


def fallback_project_roots(cache_root: str | Path) -> tuple[Path, ...]:
    """Candidate project roots above *cache_root*, most likely first.

    ``target/<profile>`` puts the project two levels up and
    ``target/<triple>/<profile>`` three levels up. Directories holding a
    ``Cargo.toml`` are tried before the rest.
    """
    ancestors = list(Path(cache_root).parents)[1:FALLBACK_ROOT_SEARCH_DEPTH]
    with_manifest = [path for path in ancestors if (path / "Cargo.toml").is_file()]
    without_manifest = [path for path in ancestors if path not in with_manifest]
    return tuple(with_manifest + without_manifest)
