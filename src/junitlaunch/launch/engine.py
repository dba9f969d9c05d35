"""Engine selection.

Decides which engine family the child runner should drive:

1. METHOD and CLASS runs resolve their class in the JUnit scope (module
   runtime scope, or everything without a module).
2. A resolved class that is a JUnit 5 test class wins outright, even when it
   also carries JUnit 4 markers such as ``@RunWith``.
3. Otherwise a CLASS run or a JUnit 4 test class gets JUnit 4; a METHOD run
   gets JUnit 4 only if some same-named method up the hierarchy is
   ``@org.junit.Test``, and JUnit 3 otherwise.
4. Without a resolvable class the scope decides: a Platform TestEngine that
   is neither Jupiter nor Vintage, or any visible Jupiter API, means JUnit 5.
   Anything else yields None.
"""

from __future__ import annotations

from junitlaunch.config.constants import (
    JUPITER_API_PACKAGE,
    JUPITER_ENGINE_CLASS,
    JUPITER_VERSION_PROBE,
    TEST_ANNOTATION,
    TEST_ENGINE_CLASS,
    VINTAGE_ENGINE_CLASS,
)
from junitlaunch.core.logging import get_logger
from junitlaunch.index.models import Framework, Scope
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.models import Engine, Specification, TestKind
from junitlaunch.launch.scopes import junit_scope

log = get_logger("launch.engine")

_BUILTIN_ENGINES = frozenset({JUPITER_ENGINE_CLASS, VINTAGE_ENGINE_CLASS})


def select_engine(spec: Specification, index: SourceIndex) -> Engine | None:
    """Pick the engine for ``spec``; None leaves the choice to the runner."""
    scope = junit_scope(spec, index)
    engine = _select(spec, index, scope)
    log.debug("engine_selected", kind=spec.kind.value, engine=engine.value if engine else None)
    return engine


def _select(spec: Specification, index: SourceIndex, scope: Scope) -> Engine | None:
    if spec.kind in (TestKind.METHOD, TestKind.CLASS) and spec.main_class_name:
        with index.read_lease():
            cls = index.find_class(spec.main_class_name, scope)
        if cls is not None:
            with index.read_lease():
                if index.is_test_class(cls, Framework.JUNIT5):
                    return Engine.JUNIT5
                if spec.kind is TestKind.CLASS or index.is_test_class(cls, Framework.JUNIT4):
                    return Engine.JUNIT4
                methods = index.find_methods(cls, spec.method_name or "", include_inherited=True)
            if any(TEST_ANNOTATION in m.annotations for m in methods):
                return Engine.JUNIT4
            return Engine.JUNIT3

    if is_junit5_visible(index, scope) or has_custom_engine(index, scope):
        return Engine.JUNIT5
    return None


def is_junit5_visible(index: SourceIndex, scope: Scope) -> bool:
    """Any Jupiter API class or package directory visible in ``scope``."""
    with index.read_lease():
        if index.find_class(JUPITER_VERSION_PROBE, scope) is not None:
            return True
        package = index.find_package(JUPITER_API_PACKAGE)
        return package is not None and bool(index.package_directories(package, scope))


def has_custom_engine(index: SourceIndex, scope: Scope) -> bool:
    """A TestEngine implementation other than Jupiter or Vintage is on the classpath."""
    with index.read_lease():
        engine_api = index.find_class(TEST_ENGINE_CLASS, scope)
    if engine_api is None:
        return False
    for impl in index.subclasses(engine_api, scope, include_anonymous=False, recurse=True):
        with index.read_lease():
            if impl.is_abstract or impl.is_interface:
                continue
            name = impl.qualified_name
        if name and name not in _BUILTIN_ENGINES:
            log.debug("custom_engine_found", engine=name)
            return True
    return False
