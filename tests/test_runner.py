import os
import stat
from pathlib import Path

import pytest

from snipcheck import StructuredLogger, ToolchainConfig, check_snippet, run_snippet
from snipcheck.errors import DialectDetectionError, ToolchainExecutionError
from snipcheck.models import ArtifactFingerprint, LockedDependency, Resolution
from snipcheck.toolchain import build_rustc_command, run_command

posix_only = pytest.mark.skipif(os.name != "posix", reason="Fake rustc is a POSIX shell script.")

TRIPLE = "x86_64-unknown-linux-gnu"

# Stands in for rustc: rejects `= ;`, echoes its argv, and for `-o` writes a
# program that prints a marker and its working directory.
FAKE_RUSTC = """#!/bin/sh
src="$1"
out=""
prev=""
for arg in "$@"; do
  if [ "$prev" = "-o" ]; then out="$arg"; fi
  prev="$arg"
done
if grep -q '= ;' "$src"; then
  echo "error: expected expression, found \\`;\\`" >&2
  exit 1
fi
echo "fake-rustc $*"
if [ -n "$out" ]; then
  printf '#!/bin/sh\\necho snippet-ran\\npwd\\n' > "$out"
  chmod +x "$out"
fi
"""

GOOD_SNIPPET = 'extern crate serde;\nfn main() { println!("hi"); }\n'
BAD_SNIPPET = "fn main() { let x = ; }\n"


def test_check_command_emits_metadata_only() -> None:
    command = build_rustc_command(
        source=Path("/tmp/s/test.rs"),
        output=Path("/tmp/s/out.exe"),
        cache_root=Path("/work/target/debug"),
        target_triple=TRIPLE,
        edition="2021",
        resolution=_resolution(),
        mode="check",
        config=ToolchainConfig(rustc="rustc"),
    )

    assert command == (
        "rustc",
        "/tmp/s/test.rs",
        "--verbose",
        "--crate-type=bin",
        "--edition=2021",
        "-L",
        "/work/target/debug",
        "-L",
        "/work/target/debug/deps",
        "--target",
        TRIPLE,
        "--extern",
        "serde=/work/target/debug/deps/libserde-abc.rlib",
        "--emit=dep-info=/tmp/s/out.exe.d,metadata=/tmp/s/out.exe.m",
    )


def test_run_command_links_binary_and_skips_default_edition() -> None:
    command = build_rustc_command(
        source=Path("/tmp/s/test.rs"),
        output=Path("/tmp/s/out.exe"),
        cache_root=Path("/work/target/debug"),
        target_triple=TRIPLE,
        edition="2015",
        resolution=_resolution(),
        mode="run",
        config=ToolchainConfig(rustc="/opt/rustc", verbose=False, extra_rustc_args=("-Dwarnings",)),
    )

    assert command[0] == "/opt/rustc"
    assert "--verbose" not in command
    assert not any(part.startswith("--edition") for part in command)
    assert command[-3:] == ("-Dwarnings", "-o", "/tmp/s/out.exe")


def test_config_reads_toolchain_overrides_from_env() -> None:
    config = ToolchainConfig.from_env({"RUSTC": "/opt/rustc", "CARGO": "/opt/cargo"})

    assert config.rustc == "/opt/rustc"
    assert config.cargo == "/opt/cargo"
    assert ToolchainConfig.from_env({}).rustc == "rustc"


@posix_only
def test_run_command_relays_output(capsys: pytest.CaptureFixture[str]) -> None:
    output = run_command(["sh", "-c", "echo to-out; echo to-err >&2"], operation="test")

    captured = capsys.readouterr()
    assert captured.out == "to-out\n"
    assert captured.err == "to-err\n"
    assert output.ok
    assert output.command == ("sh", "-c", "echo to-out; echo to-err >&2")


@posix_only
def test_run_command_failure_carries_command_and_output(
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(ToolchainExecutionError) as excinfo:
        run_command(["sh", "-c", "echo partial; echo broken >&2; exit 3"], operation="test")

    error = excinfo.value
    assert error.returncode == 3
    assert error.stdout == "partial\n"
    assert error.stderr == "broken\n"
    assert "exit 3" in error.context["command"]
    assert capsys.readouterr().err == "broken\n"


def test_run_command_reports_unstartable_process(tmp_path: Path) -> None:
    with pytest.raises(ToolchainExecutionError) as excinfo:
        run_command([str(tmp_path / "missing-rustc")], operation="compile")

    assert excinfo.value.returncode is None
    assert "RUSTC" in (excinfo.value.hint or "")


@posix_only
def test_check_snippet_compiles_against_resolved_artifacts(
    tmp_path: Path,
    cache_root: Path,
    make_unit,
    fake_cargo,
    cargo_metadata,
) -> None:
    make_unit("serde-abc123", fingerprint_file="lib-serde.json")
    fake_cargo(cargo_metadata(members={"app": "0.1.0"}, deps={"serde": "1.0.0"}))
    config = _config(tmp_path)

    result = check_snippet(
        tmp_path / "project",
        _out_dir(cache_root),
        TRIPLE,
        GOOD_SNIPPET,
        config=config,
    )

    assert result.mode == "check"
    assert result.run is None
    assert result.edition == "2021"
    assert f"serde={cache_root / 'deps' / 'libserde-abc123.rlib'}" in result.compile.stdout
    assert "--emit=dep-info=" in result.compile.stdout
    assert "--edition=2021" in result.compile.stdout
    assert result.logger.phases() == [
        "snippet_written",
        "scan",
        "select",
        "dependencies_resolved",
        "compiled",
        "check_complete",
        "cleaned",
    ]
    assert list(config.temp_root.iterdir()) == []


@posix_only
def test_check_snippet_with_syntax_error_fails_and_cleans_up(
    tmp_path: Path,
    cache_root: Path,
    make_unit,
    fake_cargo,
    cargo_metadata,
    capsys: pytest.CaptureFixture[str],
) -> None:
    make_unit("serde-abc123")
    fake_cargo(cargo_metadata(members={"app": "0.1.0"}, deps={"serde": "1.0.0"}))
    config = _config(tmp_path)
    logger = StructuredLogger()

    with pytest.raises(ToolchainExecutionError) as excinfo:
        check_snippet(
            tmp_path / "project",
            _out_dir(cache_root),
            TRIPLE,
            BAD_SNIPPET,
            config=config,
            logger=logger,
        )

    assert excinfo.value.code == "E_TOOLCHAIN"
    assert excinfo.value.command[0] == config.rustc
    assert "expected expression" in excinfo.value.stderr
    assert "expected expression" in capsys.readouterr().err
    assert list(config.temp_root.iterdir()) == []
    assert logger.phases()[-2:] == ["failed", "cleaned"]


@posix_only
def test_run_snippet_executes_binary_in_workspace(
    tmp_path: Path,
    cache_root: Path,
    make_unit,
    fake_cargo,
    cargo_metadata,
    capsys: pytest.CaptureFixture[str],
) -> None:
    make_unit("serde-abc123")
    fake_cargo(cargo_metadata(members={"app": "0.1.0"}, deps={"serde": "1.0.0"}))
    config = _config(tmp_path)

    result = run_snippet(
        tmp_path / "project",
        _out_dir(cache_root),
        TRIPLE,
        GOOD_SNIPPET,
        config=config,
    )

    assert result.run is not None
    lines = result.run.stdout.splitlines()
    assert lines[0] == "snippet-ran"
    assert Path(lines[1]).name.startswith(config.temp_prefix)
    assert "snippet-ran" in capsys.readouterr().out
    assert "executed" in result.logger.phases()
    assert list(config.temp_root.iterdir()) == []


@posix_only
def test_failing_snippet_program_is_fatal(
    tmp_path: Path,
    cache_root: Path,
    fake_cargo,
    cargo_metadata,
) -> None:
    fake_cargo(cargo_metadata(members={"app": "0.1.0"}))
    rustc = tmp_path / "bin" / "rustc"
    _write_script(
        rustc,
        '#!/bin/sh\nfor a in "$@"; do out="$a"; done\n'
        "printf '#!/bin/sh\\necho panicked >&2\\nexit 101\\n' > \"$out\"\n"
        'chmod +x "$out"\n',
    )
    config = ToolchainConfig(rustc=str(rustc), temp_root=tmp_path / "tmp")

    with pytest.raises(ToolchainExecutionError) as excinfo:
        run_snippet(tmp_path / "project", _out_dir(cache_root), TRIPLE, GOOD_SNIPPET, config=config)

    assert excinfo.value.returncode == 101
    assert excinfo.value.context["operation"] == "run"
    assert list(config.temp_root.iterdir()) == []


def test_edition_failure_aborts_before_compiling(
    tmp_path: Path,
    cache_root: Path,
    fake_cargo,
    cargo_metadata,
) -> None:
    fake_cargo(cargo_metadata(members={"app": "0.1.0"}, editions={"app": "someday"}))
    config = ToolchainConfig(rustc=str(tmp_path / "never-called"), temp_root=tmp_path / "tmp")
    logger = StructuredLogger()

    with pytest.raises(DialectDetectionError):
        check_snippet(
            tmp_path / "project",
            _out_dir(cache_root),
            TRIPLE,
            GOOD_SNIPPET,
            config=config,
            logger=logger,
        )

    assert "compiled" not in logger.phases()
    assert list(config.temp_root.iterdir()) == []


def _config(tmp_path: Path) -> ToolchainConfig:
    rustc = tmp_path / "bin" / "rustc"
    _write_script(rustc, FAKE_RUSTC)
    return ToolchainConfig(rustc=str(rustc), temp_root=tmp_path / "tmp")


def _write_script(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _out_dir(cache_root: Path) -> Path:
    return cache_root / "build" / "app-0123abcd" / "out"


def _resolution() -> Resolution:
    return Resolution(
        locked=(LockedDependency(name="serde", version_spec="1.0.0"),),
        dependencies=(
            ArtifactFingerprint(
                library_name="serde",
                artifact_path=Path("/work/target/debug/deps/libserde-abc.rlib"),
                last_modified=1.0,
            ),
        ),
    )
