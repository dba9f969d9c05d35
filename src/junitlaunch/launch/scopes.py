"""Search scopes derived from a Specification."""

from __future__ import annotations

from junitlaunch.index.models import Scope
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.models import ScopeKind, Specification


def module_closure(index: SourceIndex, module: str) -> frozenset[str]:
    """A module plus everything it transitively depends on."""
    with index.read_lease():
        return frozenset({module, *index.module_dependencies(module)})


def source_scope(spec: Specification, index: SourceIndex) -> Scope:
    """Project sources selected by ``search_scope``; no module means the whole project."""
    if spec.module_hint is None or spec.search_scope is ScopeKind.WHOLE_PROJECT:
        return Scope.project()
    if spec.search_scope is ScopeKind.SINGLE_MODULE:
        return Scope.project(frozenset({spec.module_hint}))
    return Scope.project(module_closure(index, spec.module_hint))


def junit_scope(spec: Specification, index: SourceIndex) -> Scope:
    """Where framework classes are looked up: module runtime scope, or everything."""
    if spec.module_hint is None:
        return Scope.everything()
    return Scope.module_runtime(module_closure(index, spec.module_hint))


def test_search_scope(spec: Specification, index: SourceIndex) -> Scope:
    """Project test sources intersected with the source scope."""
    return Scope.project_tests().intersect(source_scope(spec, index))
