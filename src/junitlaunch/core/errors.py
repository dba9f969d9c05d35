"""junit-launch error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Specification
- 4xxx: Discovery
- 5xxx: Artifacts
- 6xxx: Launch
- 9xxx: Internal

Nothing at this layer is retried, so ``retryable`` stays False everywhere.
Errors with ``severity == "warning"`` are collected on the launch plan instead
of being raised.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Literal

Severity = Literal["warning", "fatal"]


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Specification (3xxx)
    SPEC_MISSING_FIELD = 3001
    SPEC_INVALID_VALUE = 3002
    SPEC_UNRESOLVED = 3003
    SPEC_PARSE_ERROR = 3004

    # Discovery (4xxx)
    NO_TESTS_FOUND = 4001
    SCOPE_EMPTY = 4002
    DISCOVERY_CANCELLED = 4003

    # Artifacts (5xxx)
    ARTIFACT_MISSING = 5001

    # Launch (6xxx)
    LAUNCH_FAILED = 6001
    REPORT_UNREADABLE = 6002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class LaunchError(Exception):
    """Base error with structured context for CLI and log output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    severity: Severity = "fatal"

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'NO_TESTS_FOUND')."""
        return self.code.name

    @property
    def is_warning(self) -> bool:
        return self.severity == "warning"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "severity": self.severity,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(LaunchError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class SpecificationInvalid(LaunchError):
    """A run specification cannot be launched as written."""

    @classmethod
    def missing(cls, field: str, message: str | None = None) -> "SpecificationInvalid":
        return cls(
            code=ErrorCode.SPEC_MISSING_FIELD,
            message=message or f"Required field '{field}' is not specified",
            details={"field": field},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "SpecificationInvalid":
        return cls(
            code=ErrorCode.SPEC_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def unresolved(cls, what: str, name: str) -> "SpecificationInvalid":
        return cls(
            code=ErrorCode.SPEC_UNRESOLVED,
            message=f"{what.capitalize()} '{name}' is not found",
            details={"kind": what, "name": name},
        )

    @classmethod
    def not_a_test(cls, class_name: str) -> "SpecificationInvalid":
        return cls(
            code=ErrorCode.SPEC_INVALID_VALUE,
            message=f"Class {class_name} not a test",
            details={"class": class_name},
            severity="warning",
        )

    @classmethod
    def method_not_found(cls, class_name: str, method: str) -> "SpecificationInvalid":
        return cls(
            code=ErrorCode.SPEC_UNRESOLVED,
            message=f"Test method '{method}' doesn't exist",
            details={"class": class_name, "method": method},
            severity="warning",
        )

    @classmethod
    def parse_error(cls, source: str, reason: str) -> "SpecificationInvalid":
        return cls(
            code=ErrorCode.SPEC_PARSE_ERROR,
            message=f"Failed to read specification from {source}: {reason}",
            details={"source": source, "reason": reason},
        )


class NoTestsFound(LaunchError):
    """Enumeration produced zero leaves."""

    @classmethod
    def for_kind(cls, kind: str) -> "NoTestsFound":
        return cls(
            code=ErrorCode.NO_TESTS_FOUND,
            message=f"No tests found for {kind} configuration",
            details={"kind": kind},
            severity="warning",
        )


class ScopeEmpty(LaunchError):
    """A directory-style scope resolved to no files."""

    @classmethod
    def directory(cls, path: str) -> "ScopeEmpty":
        return cls(
            code=ErrorCode.SCOPE_EMPTY,
            message=f"Directory '{path}' contains no source files",
            details={"path": path},
            severity="warning",
        )


class LaunchCancelled(LaunchError):
    """The enclosing run was cancelled while enumeration was in flight."""

    @classmethod
    def during(cls, stage: str) -> "LaunchCancelled":
        return cls(
            code=ErrorCode.DISCOVERY_CANCELLED,
            message=f"Launch cancelled during {stage}",
            details={"stage": stage},
        )


class ArtifactMissing(LaunchError):
    """A required Platform jar could not be materialised."""

    @classmethod
    def not_resolved(
        cls, group: str, artifact: str, version: str, reason: str
    ) -> "ArtifactMissing":
        coordinates = f"{group}:{artifact}:{version}"
        return cls(
            code=ErrorCode.ARTIFACT_MISSING,
            message=f"Failed to resolve {coordinates}: {reason}",
            details={"coordinates": coordinates, "reason": reason},
        )


class LaunchFailed(LaunchError):
    """The runner process could not be spawned."""

    @classmethod
    def spawn_failed(cls, command: list[str], reason: str) -> "LaunchFailed":
        return cls(
            code=ErrorCode.LAUNCH_FAILED,
            message=f"Failed to start test runner: {reason}",
            details={"command": command, "reason": reason},
        )


class ReportUnreadable(LaunchError):
    """A test result report could not be read."""

    @classmethod
    def parse_error(cls, source: str, reason: str) -> "ReportUnreadable":
        return cls(
            code=ErrorCode.REPORT_UNREADABLE,
            message=f"Failed to read test report {source}: {reason}",
            details={"source": source, "reason": reason},
        )


class InternalError(LaunchError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
