"""Compile and run documentation snippets against a project's built dependencies.

Both entry points follow the same sequence::

    write snippet -> resolve dependencies -> compile -> (run) -> clean up

Each call works in its own temporary directory, which is removed on every
exit path. Any failure raises a :class:`~snipcheck.errors.SnipcheckError`
subclass; nothing is retried.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from snipcheck.cache.layout import cache_root_from_out_dir
from snipcheck.config import ToolchainConfig
from snipcheck.errors import SnipcheckError
from snipcheck.metadata.edition import read_edition
from snipcheck.models import CommandOutput, CompileMode, SnippetResult
from snipcheck.observability import StructuredLogger
from snipcheck.resolve import resolve_dependencies
from snipcheck.toolchain import build_rustc_command, run_command

SOURCE_FILENAME = "test.rs"
BINARY_FILENAME = "out.exe"


def check_snippet(
    root_dir: str | Path,
    out_dir: str | Path,
    target_triple: str,
    text: str,
    *,
    config: ToolchainConfig | None = None,
    logger: StructuredLogger | None = None,
) -> SnippetResult:
    """Type-check *text* without producing a binary."""
    return _process_snippet(
        root_dir,
        out_dir,
        target_triple,
        text,
        mode="check",
        config=config,
        logger=logger,
    )


def run_snippet(
    root_dir: str | Path,
    out_dir: str | Path,
    target_triple: str,
    text: str,
    *,
    config: ToolchainConfig | None = None,
    logger: StructuredLogger | None = None,
) -> SnippetResult:
    """Compile *text* into a binary and execute it."""
    return _process_snippet(
        root_dir,
        out_dir,
        target_triple,
        text,
        mode="run",
        config=config,
        logger=logger,
    )


def _process_snippet(
    root_dir: str | Path,
    out_dir: str | Path,
    target_triple: str,
    text: str,
    *,
    mode: CompileMode,
    config: ToolchainConfig | None,
    logger: StructuredLogger | None,
) -> SnippetResult:
    config = config or ToolchainConfig.from_env()
    logger = logger if logger is not None else StructuredLogger()
    temp_root = None
    if config.temp_root is not None:
        config.temp_root.mkdir(parents=True, exist_ok=True)
        temp_root = str(config.temp_root)

    try:
        with tempfile.TemporaryDirectory(prefix=config.temp_prefix, dir=temp_root) as tmp:
            workdir = Path(tmp)
            source = workdir / SOURCE_FILENAME
            binary = workdir / BINARY_FILENAME
            source.write_bytes(text.encode("utf-8"))
            _log(logger, mode, "snippet_written", f"Wrote snippet to {source}.")

            cache_root = cache_root_from_out_dir(out_dir)
            edition = read_edition(root_dir, cargo=config.cargo)
            resolution = resolve_dependencies(root_dir, cache_root, config=config, logger=logger)
            _log(
                logger,
                mode,
                "dependencies_resolved",
                f"Resolved {len(resolution.dependencies)} dependencies.",
                extra={"edition": edition, "unresolved": list(resolution.unresolved)},
            )

            command = build_rustc_command(
                source=source,
                output=binary,
                cache_root=cache_root,
                target_triple=target_triple,
                edition=edition,
                resolution=resolution,
                mode=mode,
                config=config,
            )
            compiled = run_command(command, operation="compile")
            _log(logger, mode, "compiled", "Snippet compiled.")

            executed: CommandOutput | None = None
            if mode == "run":
                executed = run_command([str(binary)], cwd=workdir, operation="run")
                _log(logger, mode, "executed", "Snippet ran successfully.")
            else:
                _log(logger, mode, "check_complete", "Snippet type-checked.")
    except SnipcheckError as exc:
        _log(logger, mode, "failed", str(exc), level="error", extra=exc.to_dict())
        raise
    finally:
        _log(logger, mode, "cleaned", "Removed snippet workspace.")

    return SnippetResult(
        mode=mode,
        edition=edition,
        resolution=resolution,
        compile=compiled,
        run=executed,
        logger=logger,
    )


def _log(
    logger: StructuredLogger,
    mode: CompileMode,
    phase: str,
    message: str,
    *,
    level: str = "info",
    extra: dict[str, object] | None = None,
) -> None:
    logger.log(
        operation="snippet",
        phase=phase,
        mode=mode,
        message=message,
        level=level,
        extra=extra,
    )
