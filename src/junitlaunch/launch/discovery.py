"""Candidate Enumerator.

Expands a validated Specification into the ordered leaf identifiers the child
runner executes. Scope-spanning kinds (package, directory, category, pattern)
sweep the project with five searches whose results are unioned:

1. Inheritors of ``junit.framework.TestCase``.
2. Classes declaring a JUnit 3 ``suite()`` method.
3. Classes with ``@org.junit.Test`` members, plus their inheritors.
4. Classes with ``@RunWith``, plus their inheritors.
5. Classes with Jupiter test methods, plus their inheritors.

Searches 3 to 5 look in the wider JUnit scope so abstract bases living in
other modules still lead to their in-scope inheritors; a processed set keeps
each annotated class from being expanded twice.

Every index query runs under a read lease, one per yielded item for streaming
searches. Cancellation is checked before each item.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from junitlaunch.config.constants import (
    JUPITER_TEST_ANNOTATIONS,
    RUN_WITH_ANNOTATION,
    SUITE_METHOD_NAME,
    TEST_ANNOTATION,
    UNIQUE_ID_PREFIX,
)
from junitlaunch.core.errors import (
    InternalError,
    LaunchCancelled,
    NoTestsFound,
    ScopeEmpty,
)
from junitlaunch.core.logging import get_logger
from junitlaunch.index.models import JavaClass, Scope
from junitlaunch.index.protocols import CancellationToken, SourceIndex, TestDiscovery
from junitlaunch.launch.filters import TestClassFilter
from junitlaunch.launch.models import (
    EnumerationResult,
    Specification,
    TestKind,
    method_leaf,
    split_leaf,
    unique_id_leaf,
)
from junitlaunch.launch.scopes import junit_scope, test_search_scope

log = get_logger("launch.discovery")


@dataclass
class SweepResult:
    classes: set[JavaClass] = field(default_factory=set)
    found_junit4: bool = False


class CandidateEnumerator:
    """Turns a Specification into leaves using a SourceIndex."""

    def __init__(
        self,
        index: SourceIndex,
        discovery: TestDiscovery | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        self.index = index
        self.discovery = discovery
        self.cancel = cancel or CancellationToken()

    # =========================================================================
    # Lease and cancellation helpers
    # =========================================================================

    def _check_cancelled(self) -> None:
        if self.cancel.is_cancelled:
            raise LaunchCancelled.during("enumeration")

    def _stream(self, items: Iterator[JavaClass]) -> Iterator[JavaClass]:
        """Pull one item per lease, stopping at cancellation."""
        while True:
            self._check_cancelled()
            with self.index.read_lease():
                item = next(items, None)
            if item is None:
                return
            yield item

    # =========================================================================
    # Enumeration driver
    # =========================================================================

    def find_all_test_classes(
        self, test_filter: TestClassFilter, annotation_scope: Scope
    ) -> SweepResult:
        """Run the five searches over ``test_filter.scope``."""
        result = SweepResult()
        scope = Scope.project().intersect(test_filter.scope)

        if test_filter.base is not None:
            inheritors = self.index.subclasses(
                test_filter.base, scope, include_anonymous=False, recurse=True
            )
            for cls in self._stream(inheritors):
                if test_filter.is_accepted(cls):
                    result.classes.add(cls)

        with self.index.read_lease():
            suite_methods = self.index.methods_by_short_name(SUITE_METHOD_NAME, scope)
        for method in suite_methods:
            self._check_cancelled()
            with self.index.read_lease():
                owner = self.index.containing_class(method)
            if owner is None or owner.is_anonymous or owner.is_abstract:
                continue
            if owner.is_inner_non_static:
                continue
            if method.is_suite_method and test_filter.is_accepted(owner):
                result.classes.add(owner)

        processed: set[JavaClass] = set()
        for annotation in (TEST_ANNOTATION, RUN_WITH_ANNOTATION):
            self._add_annotated_and_inheritors(
                annotation, scope, annotation_scope, test_filter, processed, result
            )

        for annotation in sorted(JUPITER_TEST_ANNOTATIONS):
            self._add_jupiter_classes(annotation, scope, annotation_scope, test_filter, result)
        return result

    def _add_jupiter_classes(
        self,
        annotation: str,
        scope: Scope,
        annotation_scope: Scope,
        test_filter: TestClassFilter,
        result: SweepResult,
    ) -> None:
        """Jupiter test classes and their inheritors; not JUnit 4 evidence."""
        candidates = self.index.classes_with_annotated_members(annotation, annotation_scope)
        for annotated in self._stream(candidates):
            with self.index.read_lease():
                in_scope = self.index.in_scope(annotated, scope)
            if in_scope and test_filter.is_accepted(annotated):
                result.classes.add(annotated)
            inheritors = self.index.subclasses(
                annotated, scope, include_anonymous=False, recurse=True
            )
            for cls in self._stream(inheritors):
                if test_filter.is_accepted(cls):
                    result.classes.add(cls)

    def _add_annotated_and_inheritors(
        self,
        annotation: str,
        scope: Scope,
        annotation_scope: Scope,
        test_filter: TestClassFilter,
        processed: set[JavaClass],
        result: SweepResult,
    ) -> None:
        candidates = self.index.classes_with_annotated_members(annotation, annotation_scope)
        for annotated in self._stream(candidates):
            if annotated in processed:
                continue
            processed.add(annotated)
            with self.index.read_lease():
                in_scope = self.index.in_scope(annotated, scope)
            if in_scope and test_filter.is_accepted(annotated):
                if annotated in result.classes:
                    continue
                result.classes.add(annotated)
                result.found_junit4 = True

            inheritors = self.index.subclasses(
                annotated, scope, include_anonymous=False, recurse=True
            )
            for cls in self._stream(inheritors):
                if test_filter.is_accepted(cls):
                    result.classes.add(cls)
                    processed.add(cls)
                    result.found_junit4 = True

    # =========================================================================
    # Per-kind strategies
    # =========================================================================

    def enumerate(self, spec: Specification) -> EnumerationResult:
        """Ordered, de-duplicated leaves for ``spec``.

        Raises:
            LaunchCancelled: If the run is cancelled mid-enumeration.
        """
        match spec.kind:
            case TestKind.CLASS:
                result = self._single(spec, spec.main_class_name or "")
            case TestKind.METHOD:
                leaf = method_leaf(spec.main_class_name or "", spec.method_presentation or "")
                result = self._single(spec, leaf)
            case TestKind.PACKAGE:
                package = spec.package_name or ""
                scope = test_search_scope(spec, self.index).with_package(package)
                result = self._sweep(spec, scope)
                result.package_name = package
            case TestKind.DIRECTORY:
                result = self._directory(spec)
            case TestKind.CATEGORY:
                result = self._sweep(spec, test_search_scope(spec, self.index))
            case TestKind.PATTERN:
                result = self._pattern(spec)
            case TestKind.UNIQUE_ID:
                leaves = [unique_id_leaf(uid) for uid in spec.unique_ids]
                result = EnumerationResult(
                    leaves=leaves, modules=dict.fromkeys(leaves, spec.module_hint)
                )
            case TestKind.BY_SOURCE_POSITION | TestKind.BY_SOURCE_CHANGES:
                result = self._discovered(spec)

        result.leaves = sorted(set(result.leaves))
        if not result.leaves:
            warning = NoTestsFound.for_kind(spec.kind.value)
            log.warning("no_tests_found", kind=spec.kind.value)
            result.warnings.append(warning)
        log.info(
            "enumeration_done",
            kind=spec.kind.value,
            leaves=len(result.leaves),
            found_junit4=result.found_junit4,
        )
        return result

    def _module_of(self, class_name: str) -> str | None:
        with self.index.read_lease():
            cls = self.index.find_class(class_name, Scope.everything())
            return self.index.module_for_class(cls) if cls is not None else None

    def _single(self, spec: Specification, leaf: str) -> EnumerationResult:
        module = spec.module_hint or self._module_of(spec.main_class_name or "")
        return EnumerationResult(leaves=[leaf], modules={leaf: module})

    def _collect(self, sweep: SweepResult, result: EnumerationResult) -> None:
        for cls in sweep.classes:
            leaf = cls.binary_name
            if leaf is None:
                continue
            result.leaves.append(leaf)
            with self.index.read_lease():
                result.modules[leaf] = self.index.module_for_class(cls)
        result.found_junit4 = result.found_junit4 or sweep.found_junit4

    def _sweep(
        self, spec: Specification, scope: Scope, pattern: str | None = None
    ) -> EnumerationResult:
        test_filter = TestClassFilter.create(
            self.index, scope, junit_scope(spec, self.index), pattern
        )
        sweep = self.find_all_test_classes(test_filter, junit_scope(spec, self.index))
        result = EnumerationResult(leaves=[])
        self._collect(sweep, result)
        return result

    def _directory(self, spec: Specification) -> EnumerationResult:
        directory = (spec.directory_path or "").rstrip("/")
        scope = test_search_scope(spec, self.index).with_directory(directory)
        with self.index.read_lease():
            empty = self.index.count_classes(scope) == 0
        if empty:
            log.warning("scope_empty", directory=directory)
            result = EnumerationResult(leaves=[])
            result.warnings.append(ScopeEmpty.directory(directory))
            return result
        return self._sweep(spec, scope)

    def _pattern(self, spec: Specification) -> EnumerationResult:
        scope = test_search_scope(spec, self.index)
        # Literal leaves name their class exactly; only wildcards are scoped
        literal_scope = Scope.project_tests()
        result = EnumerationResult(leaves=[])
        needs_sweep = False
        for entry in spec.patterns:
            if entry.startswith(UNIQUE_ID_PREFIX):
                result.leaves.append(entry)
                result.modules[entry] = spec.module_hint
                continue
            entry = entry.strip()
            class_name, _ = split_leaf(entry)
            with self.index.read_lease():
                cls = self.index.find_class(class_name, literal_scope)
                is_test = cls is not None and self.index.is_test_class(cls)
            if cls is None or "*" in entry:
                needs_sweep = True
                continue
            if is_test:
                result.leaves.append(entry)
                with self.index.read_lease():
                    result.modules[entry] = self.index.module_for_class(cls)

        if needs_sweep:
            pattern = spec.pattern_presentation
            log.debug("pattern_sweep", pattern=pattern)
            swept = self._sweep(spec, scope, pattern)
            result.leaves.extend(swept.leaves)
            result.modules.update(swept.modules)
            result.found_junit4 = swept.found_junit4
        return result

    def _discovered(self, spec: Specification) -> EnumerationResult:
        if self.discovery is None:
            raise InternalError.unexpected(
                "no test discovery oracle configured", kind=spec.kind.value
            )
        if spec.kind is TestKind.BY_SOURCE_POSITION:
            found = self.discovery.tests_at_position(spec.source_position or "", spec.module_hint)
        else:
            found = self.discovery.tests_for_changes(spec.change_list_name, spec.module_hint)
        result = EnumerationResult(leaves=sorted(found))
        for leaf in result.leaves:
            class_name, _ = split_leaf(leaf)
            result.modules[leaf] = spec.module_hint or self._module_of(class_name)
        return result

