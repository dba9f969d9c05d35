"""Fork Planner.

Splits enumerated leaves into the batches handed to child processes. Runs
without a module that sweep a scope fork per module: one batch per owning
module, ordered by module name (case-insensitive), leaves sorted inside each
batch. Everything else is a single batch.
"""

from __future__ import annotations

from junitlaunch.core.logging import get_logger
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.models import (
    Batch,
    Engine,
    EnumerationResult,
    ForkPlan,
    Specification,
    TestKind,
)
from junitlaunch.launch.scopes import test_search_scope
from junitlaunch.launch.specification import normalize_fork_mode

log = get_logger("launch.forking")


def forks_per_module(spec: Specification) -> bool:
    return spec.module_hint is None and spec.kind.spans_scope


def _module_key(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def package_modules(spec: Specification, index: SourceIndex) -> list[str]:
    """Modules owning a test directory of ``spec.package_name``."""
    if spec.package_name is None:
        return []
    scope = test_search_scope(spec, index)
    modules: set[str] = set()
    with index.read_lease():
        package = index.find_package(spec.package_name)
        if package is None:
            return []
        for directory in index.package_directories(package, scope):
            owner = index.find_directory(directory)
            if owner is not None:
                modules.add(owner.module)
    return sorted(modules, key=_module_key)


def plan_batches(
    result: EnumerationResult,
    spec: Specification,
    engine: Engine | None,
    index: SourceIndex,
) -> ForkPlan:
    """Group ``result.leaves`` into child batches.

    A JUnit 5 package run that forks per module and found no classes still
    gets one empty batch per module holding the package, so each child can
    discover by package name.
    """
    spec = normalize_fork_mode(spec)

    if not forks_per_module(spec):
        batch = Batch(name=spec.module_hint or "", leaves=sorted(result.leaves))
        return ForkPlan(batches=[batch], fork_mode=spec.fork_mode, per_module=False)

    per_module: dict[str, list[str]] = {}
    if not result.leaves and spec.kind is TestKind.PACKAGE and engine is Engine.JUNIT5:
        for module in package_modules(spec, index):
            per_module[module] = []

    for leaf in result.leaves:
        module = result.modules.get(leaf) or ""
        per_module.setdefault(module, []).append(leaf)

    batches = [
        Batch(name=name, leaves=sorted(per_module[name]))
        for name in sorted(per_module, key=_module_key)
    ]
    if not batches:
        batches = [Batch(name="", leaves=[])]
    log.debug(
        "fork_plan",
        batches=len(batches),
        fork_mode=spec.fork_mode.value,
        modules=[b.name for b in batches],
    )
    return ForkPlan(batches=batches, fork_mode=spec.fork_mode, per_module=True)
