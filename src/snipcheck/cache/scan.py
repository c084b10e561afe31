"""Best-effort discovery of compiled artifacts through cargo fingerprints."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

from snipcheck.cache.layout import FINGERPRINT_SUFFIX, artifact_stem, split_unit_name
from snipcheck.config import DEFAULT_ARTIFACT_EXTENSIONS
from snipcheck.errors import FingerprintError
from snipcheck.models import ArtifactFingerprint

SkipHandler = Callable[[Path, FingerprintError], None]


def guess_extension(stem: Path, extensions: tuple[str, ...]) -> Path:
    """Return the first ``stem.<ext>`` that exists, in *extensions* order."""
    for ext in extensions:
        candidate = stem.with_name(f"{stem.name}.{ext}")
        try:
            found = candidate.exists()
        except OSError as exc:
            raise FingerprintError(
                "Unable to probe artifact path.",
                context={"path": str(candidate), "error": str(exc)},
            ) from exc
        if found:
            return candidate
    raise FingerprintError(
        "No compiled artifact found for fingerprint.",
        context={"stem": str(stem), "extensions": ", ".join(extensions)},
    )


def derive_fingerprint(
    path: str | Path,
    *,
    extensions: tuple[str, ...] = DEFAULT_ARTIFACT_EXTENSIONS,
) -> ArtifactFingerprint:
    """Build an :class:`ArtifactFingerprint` from one fingerprint metadata file.

    Raises :class:`FingerprintError` when the file is not fingerprint metadata
    or its artifact cannot be found.
    """
    path = Path(path)
    if path.suffix != FINGERPRINT_SUFFIX:
        raise FingerprintError(
            "Not a fingerprint metadata file.",
            context={"path": str(path)},
        )

    library_name, content_hash = split_unit_name(path.parent.name)
    artifact = guess_extension(artifact_stem(path, library_name, content_hash), extensions)

    try:
        mtime = path.stat().st_mtime
    except OSError as exc:
        raise FingerprintError(
            "Fingerprint file disappeared during scan.",
            context={"path": str(path)},
        ) from exc

    return ArtifactFingerprint(
        library_name=library_name,
        artifact_path=artifact,
        last_modified=mtime,
    )


def iter_fingerprints(
    root: str | Path,
    *,
    extensions: tuple[str, ...] = DEFAULT_ARTIFACT_EXTENSIONS,
    on_skip: SkipHandler | None = None,
) -> Iterator[ArtifactFingerprint]:
    """Yield fingerprints for every usable file under *root*, in path order.

    Files that do not lead to an artifact are skipped; *on_skip* sees each one.
    A missing *root* yields nothing.
    """
    root = Path(root)
    if not root.is_dir():
        return
    for path in sorted(root.rglob("*")):
        try:
            if not _is_file(path):
                continue
            fingerprint = derive_fingerprint(path, extensions=extensions)
        except FingerprintError as exc:
            if on_skip is not None:
                on_skip(path, exc)
            continue
        yield fingerprint


def scan_fingerprints(
    root: str | Path,
    *,
    extensions: tuple[str, ...] = DEFAULT_ARTIFACT_EXTENSIONS,
    on_skip: SkipHandler | None = None,
) -> tuple[ArtifactFingerprint, ...]:
    return tuple(iter_fingerprints(root, extensions=extensions, on_skip=on_skip))


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError as exc:
        raise FingerprintError(
            "Unreadable cache entry.",
            context={"path": str(path), "error": str(exc)},
        ) from exc
