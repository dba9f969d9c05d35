"""Test class acceptance."""

from __future__ import annotations

import re
from collections.abc import Callable

from junitlaunch.config.constants import PATTERN_SEPARATOR, TEST_CASE_CLASS
from junitlaunch.core.logging import get_logger
from junitlaunch.index.models import JavaClass, Scope
from junitlaunch.index.protocols import SourceIndex

log = get_logger("launch.filters")


def class_name_predicate(pattern: str) -> Callable[[str], bool]:
    """Full-match predicate over ``||``-separated regexes; invalid parts are skipped."""
    compiled: list[re.Pattern[str]] = []
    for part in pattern.split(PATTERN_SEPARATOR):
        try:
            compiled.append(re.compile(part.strip()))
        except re.error as e:
            log.debug("pattern_skipped", pattern=part, reason=str(e))

    def matches(qualified_name: str) -> bool:
        return any(p.fullmatch(qualified_name) for p in compiled)

    return matches


class TestClassFilter:
    """Accepts classes the child runner can execute as tests.

    A class is accepted when it has a qualified name, is either a public
    instantiable ``TestCase`` subclass or a test class under some framework,
    and is backed by a compiled, non-resource source file. ``scope`` is where
    the enumeration driver searches; acceptance itself does not check it.
    """

    __test__ = False  # keep pytest from collecting this class

    def __init__(
        self,
        index: SourceIndex,
        scope: Scope,
        base: JavaClass | None,
        name_predicate: Callable[[str], bool] | None = None,
    ) -> None:
        self.index = index
        self.scope = scope
        self.base = base
        self._name_predicate = name_predicate

    @classmethod
    def create(
        cls,
        index: SourceIndex,
        scope: Scope,
        junit_scope: Scope,
        pattern: str | None = None,
    ) -> TestClassFilter:
        """Filter over ``scope`` with ``TestCase`` resolved in ``junit_scope``."""
        with index.read_lease():
            base = index.find_class(TEST_CASE_CLASS, junit_scope)
        predicate = class_name_predicate(pattern) if pattern else None
        return cls(index, scope, base, predicate)

    def _is_test_case(self, cls: JavaClass) -> bool:
        if self.base is None or self.base.qualified_name is None:
            return False
        return (
            cls.is_public
            and cls.is_instantiable
            and not cls.is_inner_non_static
            and self.index.inherits(cls, self.base.qualified_name)
        )

    def is_accepted(self, cls: JavaClass) -> bool:
        with self.index.read_lease():
            if cls.qualified_name is None:
                return False
            if not (self._is_test_case(cls) or self.index.is_test_class(cls)):
                return False
            if cls.file_path is None:
                return False
            if cls.excluded_from_compilation or cls.resource_only:
                return False
        if self._name_predicate is not None:
            return self._name_predicate(cls.qualified_name)
        return True
