"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the snippet pipeline."""

    METADATA = "E_METADATA"
    FINGERPRINT = "E_FINGERPRINT"
    DIALECT = "E_DIALECT"
    TOOLCHAIN = "E_TOOLCHAIN"


class SnipcheckError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class MetadataError(SnipcheckError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.METADATA, hint=hint, context=context)


class FingerprintError(SnipcheckError):
    """A single fingerprint file did not lead to a usable artifact."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.FINGERPRINT, hint=hint, context=context)


class DialectDetectionError(SnipcheckError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.DIALECT, hint=hint, context=context)


class ToolchainExecutionError(SnipcheckError):
    """A compiler or snippet process could not be spawned or exited non-zero.

    The full command line and captured streams are kept as attributes so
    callers can report them without re-parsing the message.
    """

    command: tuple[str, ...]
    returncode: int | None
    stdout: str
    stderr: str

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str],
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = {"command": " ".join(command)}
        if returncode is not None:
            merged["returncode"] = str(returncode)
        merged.update(context or {})
        super().__init__(message, code=ErrorCode.TOOLCHAIN, hint=hint, context=merged)
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


__all__ = [
    "DialectDetectionError",
    "ErrorCode",
    "FingerprintError",
    "MetadataError",
    "SnipcheckError",
    "ToolchainExecutionError",
]
