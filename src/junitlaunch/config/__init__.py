"""Config module exports."""

from junitlaunch.config.loader import load_config
from junitlaunch.config.models import (
    ArtifactsConfig,
    JLaunchConfig,
    LaunchConfig,
    LoggingConfig,
)

__all__ = [
    "load_config",
    "JLaunchConfig",
    "LaunchConfig",
    "ArtifactsConfig",
    "LoggingConfig",
]
