"""In-memory Source Index and Test Discovery.

Holds a fully materialised project model (see project.py for the YAML form)
and answers SourceIndex queries against it. Framework recognition follows the
usual JUnit rules:

- JUnit 5: a method carrying a Jupiter test annotation, or any annotation
  meta-annotated with ``@Testable``; ``@Nested`` inner classes count toward
  their outer class.
- JUnit 4: ``@RunWith`` anywhere in the hierarchy, or an ``@org.junit.Test``
  method (own or inherited) on a public concrete class.
- JUnit 3: a public concrete ``TestCase`` subclass, or a class with a
  ``public static suite()`` method.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from junitlaunch.config.constants import (
    JUPITER_TEST_ANNOTATIONS,
    NESTED_ANNOTATION,
    RUN_WITH_ANNOTATION,
    SUITE_METHOD_NAME,
    TEST_ANNOTATION,
    TEST_CASE_CLASS,
    TESTABLE_ANNOTATION,
)
from junitlaunch.index.jars import read_jar_manifest
from junitlaunch.index.models import (
    Framework,
    JavaClass,
    JavaMethod,
    JavaModule,
    JavaPackage,
    Library,
    Scope,
    SourceDirectory,
    in_package,
    is_under,
)


def _sort_key(cls: JavaClass) -> tuple[str, str, str]:
    return (cls.binary_name or "", cls.file_path or "", cls.superclass or "")


class InMemorySourceIndex:
    """SourceIndex over a static set of records."""

    def __init__(
        self,
        *,
        modules: Iterable[JavaModule] = (),
        source_dirs: Iterable[SourceDirectory] = (),
        classes: Iterable[JavaClass] = (),
        libraries: Iterable[Library] = (),
    ) -> None:
        self._modules = {m.name: m for m in modules}
        self._source_dirs = sorted(source_dirs, key=lambda d: d.path)
        self._libraries = {lib.path: lib for lib in libraries}
        self._classes = sorted(classes, key=_sort_key)
        self._by_name = {c.qualified_name: c for c in self._classes if c.qualified_name}

        self._children: dict[str, list[JavaClass]] = {}
        for cls in self._classes:
            for parent in (cls.superclass, *cls.interfaces):
                if parent:
                    self._children.setdefault(parent, []).append(cls)

        self._lock = threading.RLock()
        self.leases_taken = 0

    # =========================================================================
    # Leases
    # =========================================================================

    @contextmanager
    def read_lease(self) -> Iterator[None]:
        with self._lock:
            self.leases_taken += 1
            yield

    # =========================================================================
    # Scope membership
    # =========================================================================

    def _source_dir_for(self, path: str | None) -> SourceDirectory | None:
        if path is None:
            return None
        best: SourceDirectory | None = None
        for source_dir in self._source_dirs:
            if is_under(path, source_dir.path) and (
                best is None or len(source_dir.path) > len(best.path)
            ):
                best = source_dir
        return best

    def _library_visible(self, library: str, scope: Scope) -> bool:
        if not scope.include_libraries or scope.tests_only or scope.directory is not None:
            return False
        if scope.modules is None:
            return True
        return any(
            library in self._modules[name].libraries
            for name in scope.modules
            if name in self._modules
        )

    def in_scope(self, cls: JavaClass, scope: Scope) -> bool:
        if scope.is_empty:
            return False
        if scope.package is not None and not in_package(cls.package, scope.package):
            return False
        if cls.library is not None:
            return self._library_visible(cls.library, scope)
        if scope.modules is not None and cls.module not in scope.modules:
            return False
        if scope.directory is not None and (
            cls.file_path is None or not is_under(cls.file_path, scope.directory)
        ):
            return False
        if scope.tests_only:
            source_dir = self._source_dir_for(cls.file_path)
            if source_dir is None or not source_dir.is_test:
                return False
        return True

    # =========================================================================
    # Lookups
    # =========================================================================

    def find_class(self, fqn: str, scope: Scope) -> JavaClass | None:
        cls = self._by_name.get(fqn) or self._by_name.get(fqn.replace("$", "."))
        if cls is None or not self.in_scope(cls, scope):
            return None
        return cls

    def find_package(self, fqn: str) -> JavaPackage | None:
        if any(in_package(c.package, fqn) for c in self._classes):
            return JavaPackage(fqn)
        for library in self._libraries.values():
            if any(in_package(p, fqn) for p in library.packages):
                return JavaPackage(fqn)
        return None

    def package_directories(self, package: JavaPackage, scope: Scope) -> list[str]:
        relative = package.qualified_name.replace(".", "/")
        found: list[str] = []
        for cls in self._classes:
            if not in_package(cls.package, package.qualified_name):
                continue
            if not self.in_scope(cls, scope):
                continue
            if cls.library is not None:
                path = f"{cls.library}!/{relative}"
            else:
                source_dir = self._source_dir_for(cls.file_path)
                if source_dir is None:
                    continue
                path = f"{source_dir.path}/{relative}" if relative else source_dir.path
            if path not in found:
                found.append(path)
        for library in self._libraries.values():
            if any(in_package(p, package.qualified_name) for p in library.packages):
                path = f"{library.path}!/{relative}"
                if path not in found and self._library_visible(library.path, scope):
                    found.append(path)
        return sorted(found)

    def subclasses(
        self,
        cls: JavaClass,
        scope: Scope,
        *,
        include_anonymous: bool,
        recurse: bool,
    ) -> Iterator[JavaClass]:
        if cls.qualified_name is None:
            return
        seen: set[int] = set()
        queue = deque(self._children.get(cls.qualified_name, ()))
        while queue:
            child = queue.popleft()
            if id(child) in seen:
                continue
            seen.add(id(child))
            if recurse and child.qualified_name:
                queue.extend(self._children.get(child.qualified_name, ()))
            if child.is_anonymous and not include_anonymous:
                continue
            if self.in_scope(child, scope):
                yield child

    def classes_with_annotated_members(
        self, annotation_fqn: str, scope: Scope
    ) -> Iterator[JavaClass]:
        for cls in self._classes:
            annotated = annotation_fqn in cls.annotations or any(
                annotation_fqn in m.annotations for m in cls.methods
            )
            if annotated and self.in_scope(cls, scope):
                yield cls

    def methods_by_short_name(self, name: str, scope: Scope) -> list[JavaMethod]:
        return [
            method
            for cls in self._classes
            if self.in_scope(cls, scope)
            for method in cls.declared_methods(name)
        ]

    def read_manifest_attribute(self, cls: JavaClass, attr: str) -> str | None:
        if cls.library is None:
            return None
        library = self._libraries.get(cls.library)
        if library is None:
            return None
        if attr in library.manifest:
            return library.manifest[attr]
        return read_jar_manifest(Path(library.path)).get(attr)

    def containing_class(self, method: JavaMethod) -> JavaClass | None:
        return self._by_name.get(method.containing_class)

    def find_methods(
        self, cls: JavaClass, name: str, *, include_inherited: bool
    ) -> list[JavaMethod]:
        methods = cls.declared_methods(name)
        if include_inherited:
            for parent in self._supertypes(cls):
                methods.extend(parent.declared_methods(name))
        return methods

    # =========================================================================
    # Project structure
    # =========================================================================

    def find_module(self, name: str) -> JavaModule | None:
        return self._modules.get(name)

    def module_dependencies(self, name: str) -> list[str]:
        result: list[str] = []
        module = self._modules.get(name)
        if module is None:
            return result
        queue = deque(module.dependencies)
        while queue:
            dep = queue.popleft()
            if dep == name or dep in result:
                continue
            result.append(dep)
            if dep in self._modules:
                queue.extend(self._modules[dep].dependencies)
        return result

    def module_for_class(self, cls: JavaClass) -> str | None:
        return cls.module

    def find_directory(self, path: str) -> SourceDirectory | None:
        return self._source_dir_for(path.rstrip("/"))

    def count_classes(self, scope: Scope) -> int:
        return sum(1 for c in self._classes if c.library is None and self.in_scope(c, scope))

    def module_classpath(self, module: str | None) -> list[str]:
        if module is None:
            names = sorted(self._modules)
        else:
            names = [module, *self.module_dependencies(module)]
        entries: list[str] = []
        for name in names:
            mod = self._modules.get(name)
            if mod is None:
                continue
            for entry in (*mod.classpath, *mod.libraries):
                if entry not in entries:
                    entries.append(entry)
        return entries

    # =========================================================================
    # Framework recognition
    # =========================================================================

    def _supertypes(self, cls: JavaClass) -> Iterator[JavaClass]:
        seen: set[str] = set()
        queue = deque([cls.superclass, *cls.interfaces])
        while queue:
            name = queue.popleft()
            if not name or name in seen:
                continue
            seen.add(name)
            parent = self._by_name.get(name)
            if parent is None:
                continue
            yield parent
            queue.extend([parent.superclass, *parent.interfaces])

    def inherits(self, cls: JavaClass, fqn: str) -> bool:
        """Strict subtype check through the resolved hierarchy."""
        seen: set[str] = set()
        queue = deque([cls.superclass, *cls.interfaces])
        while queue:
            name = queue.popleft()
            if not name or name in seen:
                continue
            if name == fqn:
                return True
            seen.add(name)
            parent = self._by_name.get(name)
            if parent is not None:
                queue.extend([parent.superclass, *parent.interfaces])
        return False

    def _is_meta_annotated(self, annotation: str, meta: str, seen: set[str] | None = None) -> bool:
        if annotation == meta:
            return True
        seen = seen if seen is not None else set()
        if annotation in seen:
            return False
        seen.add(annotation)
        declaration = self._by_name.get(annotation)
        if declaration is None:
            return False
        return any(self._is_meta_annotated(a, meta, seen) for a in declaration.annotations)

    def _is_jupiter_annotation(self, annotation: str) -> bool:
        return annotation in JUPITER_TEST_ANNOTATIONS or self._is_meta_annotated(
            annotation, TESTABLE_ANNOTATION
        )

    def _all_methods(self, cls: JavaClass) -> Iterator[JavaMethod]:
        yield from cls.methods
        for parent in self._supertypes(cls):
            yield from parent.methods

    def _nested_classes(self, cls: JavaClass) -> list[JavaClass]:
        return [c for c in self._classes if c.outer_class == cls.qualified_name]

    def _is_junit5_test_class(self, cls: JavaClass) -> bool:
        if cls.qualified_name is None or cls.is_annotation or cls.is_interface:
            return False
        if cls.is_abstract:
            return False
        if cls.is_inner_non_static and NESTED_ANNOTATION not in cls.annotations:
            return False
        if any(self._is_jupiter_annotation(a) for a in cls.annotations):
            return True
        if any(
            self._is_jupiter_annotation(a) for m in self._all_methods(cls) for a in m.annotations
        ):
            return True
        return any(
            NESTED_ANNOTATION in inner.annotations and self._is_junit5_test_class(inner)
            for inner in self._nested_classes(cls)
        )

    def _is_junit4_test_class(self, cls: JavaClass) -> bool:
        if cls.qualified_name is None or cls.is_annotation or cls.is_interface:
            return False
        if RUN_WITH_ANNOTATION in cls.annotations or any(
            RUN_WITH_ANNOTATION in parent.annotations for parent in self._supertypes(cls)
        ):
            return True
        if cls.is_abstract or not cls.is_public or cls.is_inner_non_static:
            return False
        return any(TEST_ANNOTATION in m.annotations for m in self._all_methods(cls))

    def _is_junit3_test_class(self, cls: JavaClass) -> bool:
        if cls.qualified_name is None or cls.is_abstract or not cls.is_public:
            return False
        if cls.is_inner_non_static or cls.is_interface:
            return False
        if any(m.is_suite_method for m in cls.declared_methods(SUITE_METHOD_NAME)):
            return True
        return cls.has_public_constructor and self.inherits(cls, TEST_CASE_CLASS)

    def is_test_class(self, cls: JavaClass, framework: Framework | None = None) -> bool:
        if framework is Framework.JUNIT5:
            return self._is_junit5_test_class(cls)
        if framework is Framework.JUNIT4:
            return self._is_junit4_test_class(cls)
        if framework is Framework.JUNIT3:
            return self._is_junit3_test_class(cls)
        return (
            self._is_junit5_test_class(cls)
            or self._is_junit4_test_class(cls)
            or self._is_junit3_test_class(cls)
        )

    def is_test_method(self, method: JavaMethod) -> bool:
        if any(self._is_jupiter_annotation(a) for a in method.annotations):
            return True
        if TEST_ANNOTATION in method.annotations:
            return True
        if not method.name.startswith("test") or method.parameter_types:
            return False
        if method.is_static or not method.is_public:
            return False
        owner = self.containing_class(method)
        return owner is not None and self.inherits(owner, TEST_CASE_CLASS)


class InMemoryTestDiscovery:
    """TestDiscovery backed by fixed position and change-list answers."""

    def __init__(
        self,
        *,
        positions: dict[str, set[str]] | None = None,
        changes: dict[str, set[str]] | None = None,
    ) -> None:
        self._positions = positions or {}
        self._changes = changes or {}

    def tests_at_position(self, position: str, module: str | None) -> set[str]:  # noqa: ARG002
        return set(self._positions.get(position, ()))

    def tests_for_changes(
        self,
        change_list: str | None,
        module: str | None,  # noqa: ARG002
    ) -> set[str]:
        if change_list is None:
            return {leaf for leaves in self._changes.values() for leaf in leaves}
        return set(self._changes.get(change_list, ()))
