"""Rerun Planner.

Builds the Specification that re-executes failed tests. When every failure
keeps its unique id the rerun is a UNIQUE_ID run; otherwise each failure
becomes a ``FQN,method(...)`` leaf (or a bare class leaf when the method is
lost) delivered as a PATTERN run.

The rerun narrows to a module only when every resolved failure lives in it;
otherwise the base module is kept.

A unique id is kept when:

- the failure has no location the index can resolve,
- the id points at the same class and method as the location,
- the id names a parameterized or dynamic invocation of that method, or
- the location is not a recognised test method.
"""

from __future__ import annotations

from dataclasses import dataclass

from junitlaunch.core.logging import get_logger
from junitlaunch.index.models import JavaClass, JavaMethod, Scope
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.models import (
    Specification,
    TestKind,
    method_leaf,
    unique_id_leaf,
)
from junitlaunch.launch.reports import FailureReport
from junitlaunch.launch.scopes import junit_scope

log = get_logger("launch.rerun")


@dataclass
class _Resolved:
    report: FailureReport
    cls: JavaClass | None
    method: JavaMethod | None


def _resolve(report: FailureReport, index: SourceIndex, scope: Scope) -> _Resolved:
    if report.class_name is None:
        return _Resolved(report, None, None)
    with index.read_lease():
        cls = index.find_class(report.class_name, scope)
        if cls is None or not report.method_name:
            return _Resolved(report, cls, None)
        candidates = index.find_methods(cls, report.method_name, include_inherited=True)
    method = None
    if report.parameter_types is not None:
        method = next(
            (m for m in candidates if m.parameter_types == report.parameter_types), None
        )
    if method is None and candidates:
        method = candidates[0]
    return _Resolved(report, cls, method)


def effective_node_id(resolved: _Resolved, index: SourceIndex) -> str | None:
    """The report's unique id if the rerun should address the test by id."""
    report = resolved.report
    target = report.target
    if report.node_id is None or target is None:
        return None
    if resolved.cls is None:
        return report.node_id
    if resolved.method is None:
        with index.read_lease():
            is_test = index.is_test_class(resolved.cls)
        return None if is_test else report.node_id

    if target.is_invocation and target.method_name == resolved.method.name:
        return report.node_id
    if (
        target.class_name == resolved.cls.binary_name
        and target.method_name == resolved.method.name
    ):
        return report.node_id
    with index.read_lease():
        is_test = index.is_test_method(resolved.method)
    return None if is_test else report.node_id


def failure_leaf(resolved: _Resolved) -> str | None:
    """``FQN,method(...)`` leaf; parameterized names keep their invocation suffix."""
    cls = resolved.cls
    class_name = cls.binary_name if cls is not None else resolved.report.class_name
    if class_name is None:
        return None
    if resolved.method is None:
        return class_name
    presentation = resolved.method.presentation
    name = resolved.report.name
    if presentation in name:
        presentation = name[name.index(presentation) :]
    return method_leaf(class_name, presentation)


def _common_module(resolved: list[_Resolved], index: SourceIndex) -> str | None:
    """The one module owning every resolved failure, if there is exactly one."""
    with index.read_lease():
        modules = {index.module_for_class(r.cls) for r in resolved if r.cls is not None}
    if len(modules) != 1:
        return None
    return modules.pop()


def plan_rerun(
    base: Specification, reports: list[FailureReport], index: SourceIndex
) -> Specification | None:
    """Specification re-running ``reports``; None when nothing is addressable."""
    scope = junit_scope(base, index)
    resolved = [_resolve(report, index, scope) for report in reports]
    if not resolved:
        return None

    module = _common_module(resolved, index) or base.module_hint

    carried = {
        "module_hint": module,
        "search_scope": base.search_scope,
        "fork_mode": base.fork_mode,
        "repeat_mode": base.repeat_mode,
        "repeat_count": base.repeat_count,
    }
    node_ids = [effective_node_id(r, index) for r in resolved]
    if all(node_ids):
        unique_ids = tuple(dict.fromkeys(nid for nid in node_ids if nid))
        log.info("rerun_planned", kind=TestKind.UNIQUE_ID.value, tests=len(unique_ids))
        return Specification(kind=TestKind.UNIQUE_ID, unique_ids=unique_ids, **carried)

    leaves: list[str] = []
    for r, node_id in zip(resolved, node_ids):
        leaf = unique_id_leaf(node_id) if node_id else failure_leaf(r)
        if leaf is None:
            log.warning("rerun_test_unresolved", name=r.report.name)
            continue
        leaves.append(leaf)
    if not leaves:
        return None
    log.info("rerun_planned", kind=TestKind.PATTERN.value, tests=len(leaves))
    return Specification(kind=TestKind.PATTERN, patterns=tuple(leaves), **carried)
