"""Source model records.

The launch core never parses Java. It sees a project through these records,
handed out by a SourceIndex implementation (see protocols.py).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import StrEnum

from junitlaunch.config.constants import SUITE_METHOD_NAME

# =============================================================================
# Frameworks
# =============================================================================


class Framework(StrEnum):
    """Test framework families a class or method can be recognized under."""

    JUNIT3 = "junit3"
    JUNIT4 = "junit4"
    JUNIT5 = "junit5"


# =============================================================================
# Classes and Methods
# =============================================================================


@dataclass(frozen=True)
class JavaMethod:
    """A method declaration."""

    name: str
    containing_class: str  # qualified name of the declaring class
    parameter_types: tuple[str, ...] = ()  # erased
    annotations: frozenset[str] = frozenset()
    is_static: bool = False
    is_public: bool = True
    is_abstract: bool = False

    @property
    def presentation(self) -> str:
        """``name(T1,T2)`` as the runner expects it."""
        return f"{self.name}({','.join(self.parameter_types)})"

    @property
    def is_suite_method(self) -> bool:
        """A JUnit 3 ``public static suite()`` with no parameters."""
        return (
            self.name == SUITE_METHOD_NAME
            and self.is_static
            and self.is_public
            and not self.parameter_types
        )


@dataclass(frozen=True)
class JavaClass:
    """A class, interface or annotation type.

    ``qualified_name`` is None for anonymous and local classes. Nested classes
    use dotted qualified names (``com.x.Outer.Inner``); ``binary_name`` gives
    the runtime form (``com.x.Outer$Inner``).
    """

    qualified_name: str | None
    name: str
    package: str = ""
    module: str | None = None
    library: str | None = None  # archive path for binary classes
    superclass: str | None = None
    interfaces: tuple[str, ...] = ()
    annotations: frozenset[str] = frozenset()
    methods: tuple[JavaMethod, ...] = ()
    outer_class: str | None = None
    file_path: str | None = None
    is_public: bool = True
    is_abstract: bool = False
    is_interface: bool = False
    is_annotation: bool = False
    is_static: bool = False
    is_anonymous: bool = False
    has_public_constructor: bool = True
    excluded_from_compilation: bool = False
    resource_only: bool = False

    @property
    def binary_name(self) -> str | None:
        if self.qualified_name is None:
            return None
        if not self.package:
            return self.qualified_name.replace(".", "$")
        local = self.qualified_name[len(self.package) + 1 :]
        return f"{self.package}.{local.replace('.', '$')}"

    @property
    def is_inner_non_static(self) -> bool:
        return self.outer_class is not None and not self.is_static

    @property
    def is_instantiable(self) -> bool:
        return (
            not self.is_abstract
            and not self.is_interface
            and not self.is_annotation
            and self.has_public_constructor
        )

    def declared_methods(self, name: str) -> list[JavaMethod]:
        return [m for m in self.methods if m.name == name]


# =============================================================================
# Project Structure
# =============================================================================


@dataclass(frozen=True)
class JavaPackage:
    qualified_name: str


@dataclass(frozen=True)
class SourceDirectory:
    """A content root holding sources for one module."""

    path: str
    module: str
    is_test: bool = False
    resource_only: bool = False


@dataclass(frozen=True)
class JavaModule:
    name: str
    dependencies: tuple[str, ...] = ()
    libraries: tuple[str, ...] = ()
    classpath: tuple[str, ...] = ()


@dataclass(frozen=True)
class Library:
    """A binary archive on some module's classpath."""

    path: str
    packages: frozenset[str] = frozenset()
    manifest: dict[str, str] = field(default_factory=dict, hash=False)


# =============================================================================
# Scopes
# =============================================================================


@dataclass(frozen=True)
class Scope:
    """A search scope.

    ``modules`` of None means every module. Library classes are visible only
    when ``include_libraries`` is set and the archive is attached to a module
    in scope. ``directory`` and ``package`` restrict recursively.
    """

    modules: frozenset[str] | None = None
    include_libraries: bool = True
    tests_only: bool = False
    directory: str | None = None
    package: str | None = None

    @classmethod
    def everything(cls) -> Scope:
        return cls()

    @classmethod
    def project(cls, modules: frozenset[str] | None = None) -> Scope:
        return cls(modules=modules, include_libraries=False)

    @classmethod
    def project_tests(cls, modules: frozenset[str] | None = None) -> Scope:
        return cls(modules=modules, include_libraries=False, tests_only=True)

    @classmethod
    def module_runtime(cls, modules: frozenset[str]) -> Scope:
        return cls(modules=modules, include_libraries=True)

    def with_directory(self, directory: str) -> Scope:
        return replace(self, directory=directory)

    def with_package(self, package: str) -> Scope:
        return replace(self, package=package)

    def intersect(self, other: Scope) -> Scope:
        if self.modules is None:
            modules = other.modules
        elif other.modules is None:
            modules = self.modules
        else:
            modules = self.modules & other.modules
        directory, dir_disjoint = _narrower(self.directory, other.directory, is_under)
        package, pkg_disjoint = _narrower(self.package, other.package, in_package)
        if dir_disjoint or pkg_disjoint:
            modules = frozenset()
        return Scope(
            modules=modules,
            include_libraries=self.include_libraries and other.include_libraries,
            tests_only=self.tests_only or other.tests_only,
            directory=directory,
            package=package,
        )

    @property
    def is_empty(self) -> bool:
        return self.modules is not None and not self.modules


def _narrower(
    a: str | None, b: str | None, contains: Callable[[str, str], bool]
) -> tuple[str | None, bool]:
    """Pick the nested one of two prefixes; flag disjoint prefixes."""
    if a is None:
        return b, False
    if b is None:
        return a, False
    if contains(a, b):
        return a, False
    if contains(b, a):
        return b, False
    return None, True


def is_under(path: str, root: str) -> bool:
    """True when ``path`` equals ``root`` or lies below it."""
    root = root.rstrip("/")
    return path == root or path.startswith(root + "/")


def in_package(package: str, prefix: str) -> bool:
    """True when ``package`` equals ``prefix`` or is one of its subpackages."""
    return not prefix or package == prefix or package.startswith(prefix + ".")
