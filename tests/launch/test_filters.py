"""Tests for test class acceptance."""

from __future__ import annotations

import pytest

from junitlaunch.index.memory import InMemorySourceIndex
from junitlaunch.index.models import JavaClass, Scope
from junitlaunch.launch.filters import TestClassFilter, class_name_predicate

from conftest import JUNIT4_TEST, ProjectFactory, module_data


def _cls(index: InMemorySourceIndex, name: str) -> JavaClass:
    cls = index.find_class(name, Scope.everything())
    assert cls is not None
    return cls


class TestClassNamePredicate:
    def test_alternation_full_match(self) -> None:
        matches = class_name_predicate("com.y.Foo*Test||com.y.Literal")
        assert matches("com.y.FooTest")
        assert matches("com.y.FoooTest")
        assert matches("com.y.Literal")
        assert not matches("com.y.BarTest")
        assert not matches("com.y.LiteralTest")

    def test_invalid_parts_are_skipped(self) -> None:
        matches = class_name_predicate("com.(x||com.y.A")
        assert matches("com.y.A")
        assert not matches("com.(x")


class TestTestClassFilter:
    @pytest.fixture
    def test_filter(self, index: InMemorySourceIndex) -> TestClassFilter:
        return TestClassFilter.create(index, Scope.project_tests(), Scope.everything())

    def test_base_resolved_in_junit_scope(self, test_filter: TestClassFilter) -> None:
        assert test_filter.base is not None
        assert test_filter.base.qualified_name == "junit.framework.TestCase"

    def test_base_absent_without_junit3(self, index: InMemorySourceIndex) -> None:
        test_filter = TestClassFilter.create(
            index, Scope.project_tests(), Scope.project(frozenset({"app"}))
        )
        assert test_filter.base is None

    @pytest.mark.parametrize(
        "name", ["com.x.A", "com.x.C", "com.y.Literal", "com.y.Outer$Inner", "com.z.AllTests"]
    )
    def test_accepts_test_classes(
        self, index: InMemorySourceIndex, test_filter: TestClassFilter, name: str
    ) -> None:
        assert test_filter.is_accepted(_cls(index, name))

    @pytest.mark.parametrize("name", ["com.x.Helper", "com.y.AbstractBase"])
    def test_rejects_non_tests(
        self, index: InMemorySourceIndex, test_filter: TestClassFilter, name: str
    ) -> None:
        assert not test_filter.is_accepted(_cls(index, name))

    def test_rejects_library_classes(
        self, index: InMemorySourceIndex, test_filter: TestClassFilter
    ) -> None:
        assert not test_filter.is_accepted(_cls(index, "junit.framework.TestCase"))

    def test_name_predicate_applies_to_qualified_name(self, index: InMemorySourceIndex) -> None:
        test_filter = TestClassFilter.create(
            index, Scope.project_tests(), Scope.everything(), "com.y.Foo.*"
        )
        assert test_filter.is_accepted(_cls(index, "com.y.FooTest"))
        assert not test_filter.is_accepted(_cls(index, "com.y.Literal"))

    def test_rejects_excluded_and_resource_classes(self, project_factory: ProjectFactory) -> None:
        index, _ = project_factory(
            module_data(
                "app",
                [
                    {
                        "name": "com.e.Excluded",
                        "excluded": True,
                        "methods": [{"name": "t", "annotations": [JUNIT4_TEST]}],
                    },
                    {"name": "com.e.Kept", "methods": [{"name": "t", "annotations": [JUNIT4_TEST]}]},
                ],
            )
        )
        test_filter = TestClassFilter.create(index, Scope.project_tests(), Scope.everything())
        assert not test_filter.is_accepted(_cls(index, "com.e.Excluded"))
        assert test_filter.is_accepted(_cls(index, "com.e.Kept"))
