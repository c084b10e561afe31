"""Public package entrypoint for snipcheck."""

from .config import ToolchainConfig
from .errors import (
    DialectDetectionError,
    ErrorCode,
    FingerprintError,
    MetadataError,
    SnipcheckError,
    ToolchainExecutionError,
)
from .models import (
    ArtifactFingerprint,
    CommandOutput,
    LockedDependency,
    Resolution,
    ResolvedDependency,
    SnippetResult,
)
from .observability import StructuredLogger
from .resolve import resolve_dependencies, resolve_selection
from .runner import check_snippet, run_snippet

__all__ = [
    "ArtifactFingerprint",
    "CommandOutput",
    "DialectDetectionError",
    "ErrorCode",
    "FingerprintError",
    "LockedDependency",
    "MetadataError",
    "Resolution",
    "ResolvedDependency",
    "SnipcheckError",
    "SnippetResult",
    "StructuredLogger",
    "ToolchainConfig",
    "ToolchainExecutionError",
    "check_snippet",
    "resolve_dependencies",
    "resolve_selection",
    "run_snippet",
]
