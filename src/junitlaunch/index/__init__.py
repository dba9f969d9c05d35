"""Source model access for the launch core."""

from junitlaunch.index.memory import InMemorySourceIndex, InMemoryTestDiscovery
from junitlaunch.index.models import (
    Framework,
    JavaClass,
    JavaMethod,
    JavaModule,
    JavaPackage,
    Library,
    Scope,
    SourceDirectory,
)
from junitlaunch.index.project import load_project, parse_project
from junitlaunch.index.protocols import CancellationToken, SourceIndex, TestDiscovery

__all__ = [
    "CancellationToken",
    "Framework",
    "InMemorySourceIndex",
    "InMemoryTestDiscovery",
    "JavaClass",
    "JavaMethod",
    "JavaModule",
    "JavaPackage",
    "Library",
    "Scope",
    "SourceDirectory",
    "SourceIndex",
    "TestDiscovery",
    "load_project",
    "parse_project",
]
