"""Ports to the source model and to test discovery.

Every SourceIndex query may block and must run under a read lease
(``with index.read_lease(): ...``). Leases nest. Streaming searches are lazy
iterators; callers take a fresh lease per yielded item and must not hold on
to items past the lease that produced them.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

from junitlaunch.index.models import (
    Framework,
    JavaClass,
    JavaMethod,
    JavaModule,
    JavaPackage,
    Scope,
    SourceDirectory,
)

# =============================================================================
# Cancellation
# =============================================================================


class CancellationToken:
    """Cooperative cancellation flag shared between a run and its searches."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


# =============================================================================
# Source Index Port
# =============================================================================


@runtime_checkable
class SourceIndex(Protocol):
    """Read-only queries against the project's source model."""

    def read_lease(self) -> AbstractContextManager[None]:
        """Scoped read permission on the source model."""
        ...

    def in_scope(self, cls: JavaClass, scope: Scope) -> bool:
        """Whether the file (or archive) backing ``cls`` belongs to ``scope``."""
        ...

    def find_class(self, fqn: str, scope: Scope) -> JavaClass | None:
        """Resolve a class by qualified or binary (``$``) name."""
        ...

    def find_package(self, fqn: str) -> JavaPackage | None: ...

    def package_directories(self, package: JavaPackage, scope: Scope) -> list[str]:
        """On-disk directories (or archive entries) backing ``package`` in scope."""
        ...

    def subclasses(
        self,
        cls: JavaClass,
        scope: Scope,
        *,
        include_anonymous: bool,
        recurse: bool,
    ) -> Iterator[JavaClass]: ...

    def classes_with_annotated_members(
        self, annotation_fqn: str, scope: Scope
    ) -> Iterator[JavaClass]:
        """Classes annotated with, or declaring a method annotated with, the annotation."""
        ...

    def methods_by_short_name(self, name: str, scope: Scope) -> list[JavaMethod]: ...

    def read_manifest_attribute(self, cls: JavaClass, attr: str) -> str | None:
        """Read a manifest attribute of the archive holding ``cls``."""
        ...

    def is_test_class(self, cls: JavaClass, framework: Framework | None = None) -> bool:
        """Framework-specific test class rules; None means any framework."""
        ...

    def is_test_method(self, method: JavaMethod) -> bool: ...

    def inherits(self, cls: JavaClass, fqn: str) -> bool:
        """Strict, transitive subtype check."""
        ...

    def containing_class(self, method: JavaMethod) -> JavaClass | None: ...

    def find_methods(
        self, cls: JavaClass, name: str, *, include_inherited: bool
    ) -> list[JavaMethod]: ...

    def find_module(self, name: str) -> JavaModule | None: ...

    def module_dependencies(self, name: str) -> list[str]:
        """Transitive module dependencies, excluding ``name`` itself."""
        ...

    def module_for_class(self, cls: JavaClass) -> str | None: ...

    def find_directory(self, path: str) -> SourceDirectory | None:
        """Source root owning ``path``, if any."""
        ...

    def count_classes(self, scope: Scope) -> int:
        """Number of project classes in ``scope`` (used to detect empty scopes)."""
        ...

    def module_classpath(self, module: str | None) -> list[str]:
        """Runtime classpath of a module, or of the whole project for None."""
        ...


# =============================================================================
# Test Discovery Oracle
# =============================================================================


@runtime_checkable
class TestDiscovery(Protocol):
    """Maps editor selections to tests. Returns ``FQN`` or ``FQN,method()`` strings."""

    def tests_at_position(self, position: str, module: str | None) -> set[str]: ...

    def tests_for_changes(self, change_list: str | None, module: str | None) -> set[str]: ...
