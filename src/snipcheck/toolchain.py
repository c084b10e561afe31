"""rustc command construction and process execution."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from snipcheck.cache.layout import deps_dir
from snipcheck.config import ToolchainConfig
from snipcheck.errors import ToolchainExecutionError
from snipcheck.metadata.edition import edition_flag
from snipcheck.models import CommandOutput, CompileMode, Resolution


def build_rustc_command(
    *,
    source: Path,
    output: Path,
    cache_root: Path,
    target_triple: str,
    edition: str,
    resolution: Resolution,
    mode: CompileMode,
    config: ToolchainConfig,
) -> tuple[str, ...]:
    command: list[str] = [config.rustc, str(source)]
    if config.verbose:
        command.append("--verbose")
    command.append("--crate-type=bin")

    # rustc wants the edition ahead of the search paths.
    flag = edition_flag(edition)
    if flag is not None:
        command.append(flag)

    command.extend([
        "-L",
        str(cache_root),
        "-L",
        str(deps_dir(cache_root)),
        "--target",
        target_triple,
    ])
    for binding in resolution.extern_args():
        command.extend(["--extern", binding])
    command.extend(config.extra_rustc_args)

    if mode == "run":
        command.extend(["-o", str(output)])
    else:
        command.append(f"--emit=dep-info={output}.d,metadata={output}.m")
    return tuple(command)


def run_command(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    operation: str,
) -> CommandOutput:
    """Run *command*, echo its output, and raise if it exits non-zero."""
    argv = [str(part) for part in command]
    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise ToolchainExecutionError(
            "Failed to start process.",
            command=argv,
            hint="Check that the executable exists; set RUSTC to override the compiler.",
            context={"operation": operation, "error": str(exc)},
        ) from exc

    stdout = completed.stdout or ""
    stderr = completed.stderr or ""
    sys.stdout.write(stdout)
    sys.stderr.write(stderr)

    if completed.returncode != 0:
        raise ToolchainExecutionError(
            "Command failed.",
            command=argv,
            returncode=completed.returncode,
            stdout=stdout,
            stderr=stderr,
            context={
                "operation": operation,
                "stderr": stderr[:2000],
            },
        )
    return CommandOutput(
        command=tuple(argv),
        returncode=completed.returncode,
        stdout=stdout,
        stderr=stderr,
    )
