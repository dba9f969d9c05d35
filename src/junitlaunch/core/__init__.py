"""Core module exports."""

from junitlaunch.core.errors import (
    ArtifactMissing,
    ConfigError,
    ErrorCode,
    InternalError,
    LaunchCancelled,
    LaunchError,
    LaunchFailed,
    NoTestsFound,
    ReportUnreadable,
    ScopeEmpty,
    SpecificationInvalid,
)
from junitlaunch.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    run_scope,
    set_run_id,
)
from junitlaunch.core.progress import spinner, status

__all__ = [
    # Errors
    "ArtifactMissing",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "LaunchCancelled",
    "LaunchError",
    "LaunchFailed",
    "NoTestsFound",
    "ReportUnreadable",
    "ScopeEmpty",
    "SpecificationInvalid",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_scope",
    "set_run_id",
    # Progress
    "spinner",
    "status",
]
