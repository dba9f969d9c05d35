"""Test launch core: specification to child runner."""

from junitlaunch.launch.models import (
    Engine,
    ForkMode,
    RepeatMode,
    ScopeKind,
    Specification,
    TestKind,
)
from junitlaunch.launch.ops import LaunchOps, LaunchPlan, LaunchResult
from junitlaunch.launch.specification import (
    load_specification,
    parse_specification,
    save_specification,
)

__all__ = [
    "LaunchOps",
    "LaunchPlan",
    "LaunchResult",
    "Specification",
    "TestKind",
    "ScopeKind",
    "ForkMode",
    "RepeatMode",
    "Engine",
    "load_specification",
    "parse_specification",
    "save_specification",
]
