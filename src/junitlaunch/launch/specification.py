"""Specification validation and persistence.

Validation checks the fields a kind consults, resolves the names it carries
against the source index and returns a normalised copy. Fatal problems raise
SpecificationInvalid; softer findings (a named class that is not a test, a
method with no matching signature) come back as warnings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from junitlaunch.core.errors import LaunchError, SpecificationInvalid
from junitlaunch.core.logging import get_logger
from junitlaunch.index.models import JavaClass, Scope
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.models import (
    ForkMode,
    RepeatMode,
    Specification,
    TestKind,
    split_leaf,
)
from junitlaunch.launch.scopes import junit_scope

log = get_logger("launch.specification")

# Constant names some stored configurations use instead of the values.
_KIND_NAMES = {
    "TEST_METHOD": TestKind.METHOD,
    "TEST_CLASS": TestKind.CLASS,
    "TEST_PACKAGE": TestKind.PACKAGE,
    "TEST_DIRECTORY": TestKind.DIRECTORY,
    "TEST_CATEGORY": TestKind.CATEGORY,
    "TEST_PATTERN": TestKind.PATTERN,
    "TEST_UNIQUE_ID": TestKind.UNIQUE_ID,
    "BY_SOURCE_POSITION": TestKind.BY_SOURCE_POSITION,
    "BY_SOURCE_CHANGES": TestKind.BY_SOURCE_CHANGES,
}


@dataclass
class Validation:
    specification: Specification
    warnings: list[LaunchError] = field(default_factory=list)


# =============================================================================
# Normalisation
# =============================================================================


def normalize_fork_mode(spec: Specification) -> Specification:
    """Per-class forking cannot span repetitions; such runs fork per repetition."""
    # Silent: only a debug event records the downgrade.
    if spec.fork_mode is ForkMode.CLASS and spec.repeat_mode is not RepeatMode.ONCE:
        log.debug("fork_mode_downgraded", from_mode="class", to_mode="repeat")
        return spec.model_copy(update={"fork_mode": ForkMode.REPEAT})
    return spec


# =============================================================================
# Validation
# =============================================================================


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_specification(spec: Specification, index: SourceIndex) -> Validation:
    """Validate and normalise a specification.

    Raises:
        SpecificationInvalid: When a required field is missing or a named
            module, class, package or directory cannot be resolved.
    """
    warnings: list[LaunchError] = []

    if spec.module_hint is not None:
        with index.read_lease():
            if index.find_module(spec.module_hint) is None:
                raise SpecificationInvalid.unresolved("module", spec.module_hint)

    if spec.repeat_mode is RepeatMode.N and spec.repeat_count <= 0:
        raise SpecificationInvalid.invalid_value(
            "repeat_count", spec.repeat_count, "must be positive when repeating N times"
        )

    match spec.kind:
        case TestKind.CLASS:
            if not _blank(spec.method_name):
                raise SpecificationInvalid.invalid_value(
                    "method_name", spec.method_name, "a class run cannot name a method"
                )
            cls = _require_class(spec, index)
            with index.read_lease():
                if not index.is_test_class(cls):
                    warnings.append(SpecificationInvalid.not_a_test(spec.main_class_name or ""))

        case TestKind.METHOD:
            cls = _require_class(spec, index)
            if _blank(spec.method_name):
                raise SpecificationInvalid.missing("method_name", "Method name not specified")
            assert spec.method_name is not None
            with index.read_lease():
                methods = index.find_methods(cls, spec.method_name, include_inherited=True)
                found = any(
                    m.presentation == spec.method_presentation
                    or (spec.method_signature is None and m.name == spec.method_name)
                    for m in methods
                )
            if not found:
                warnings.append(
                    SpecificationInvalid.method_not_found(
                        spec.main_class_name or "", spec.method_name
                    )
                )

        case TestKind.PACKAGE:
            if spec.package_name is None:
                raise SpecificationInvalid.missing("package_name", "Package is not specified")
            if spec.package_name:
                with index.read_lease():
                    if index.find_package(spec.package_name) is None:
                        raise SpecificationInvalid.unresolved("package", spec.package_name)

        case TestKind.DIRECTORY:
            if _blank(spec.directory_path):
                raise SpecificationInvalid.missing("directory_path", "Directory is not specified")
            assert spec.directory_path is not None
            with index.read_lease():
                source_dir = index.find_directory(spec.directory_path)
            if source_dir is None:
                raise SpecificationInvalid.unresolved("directory", spec.directory_path)
            if spec.module_hint is None:
                spec = spec.model_copy(update={"module_hint": source_dir.module})

        case TestKind.CATEGORY:
            if _blank(spec.category_class):
                raise SpecificationInvalid.missing("category_class", "Category is not specified")
            assert spec.category_class is not None
            if spec.module_hint is not None:
                with index.read_lease():
                    category = index.find_class(spec.category_class, junit_scope(spec, index))
                if category is None:
                    raise SpecificationInvalid.unresolved("category", spec.category_class)

        case TestKind.PATTERN:
            if not spec.patterns:
                raise SpecificationInvalid.missing("patterns", "No pattern selected")
            for pattern in spec.patterns:
                class_name, _ = split_leaf(pattern.strip())
                with index.read_lease():
                    cls = index.find_class(class_name, Scope.everything())
                    if cls is not None and not index.is_test_class(cls):
                        warnings.append(SpecificationInvalid.not_a_test(class_name))

        case TestKind.UNIQUE_ID:
            if not spec.unique_ids:
                raise SpecificationInvalid.missing("unique_ids", "No unique id specified")

        case TestKind.BY_SOURCE_POSITION:
            if _blank(spec.source_position):
                raise SpecificationInvalid.missing(
                    "source_position", "Source position is not specified"
                )

        case TestKind.BY_SOURCE_CHANGES:
            pass

    for warning in warnings:
        log.warning("specification_warning", message=warning.message)
    return Validation(normalize_fork_mode(spec), warnings)


def _require_class(spec: Specification, index: SourceIndex) -> JavaClass:
    if _blank(spec.main_class_name):
        raise SpecificationInvalid.missing("main_class_name", "No test class specified")
    assert spec.main_class_name is not None
    with index.read_lease():
        cls = index.find_class(spec.main_class_name, junit_scope(spec, index))
    if cls is None:
        raise SpecificationInvalid.unresolved("class", spec.main_class_name)
    return cls


# =============================================================================
# Action names
# =============================================================================


def _short_class_name(name: str) -> str:
    return name.rpartition(".")[2]


def suggest_action_name(spec: Specification) -> str | None:
    """Short human label for a run; None when the kind has no natural one."""
    match spec.kind:
        case TestKind.CLASS:
            name = spec.main_class_name or ""
            return name if name.endswith(".") else _short_class_name(name)
        case TestKind.METHOD:
            return f"{spec.method_name}()"
        case TestKind.PACKAGE:
            return f"Tests in '{spec.package_name}'" if spec.package_name else "All Tests"
        case TestKind.DIRECTORY:
            directory = (spec.directory_path or "").rstrip("/")
            return f"Tests in '{directory.rpartition('/')[2]}'" if directory else "All Tests"
        case TestKind.CATEGORY:
            return f"Tests of {spec.category_class}"
        case TestKind.UNIQUE_ID:
            return _short_class_name(spec.unique_ids[0] if spec.unique_ids else "<empty>")
        case _:
            return None


# =============================================================================
# Persisted format
# =============================================================================


def dump_specification(spec: Specification) -> dict[str, Any]:
    """Persisted mapping, keyed by the stored attribute names."""
    return spec.model_dump(mode="json", by_alias=True)


def parse_specification(data: Any, source: str = "<memory>") -> Specification:
    """Read a persisted mapping. Unknown keys are ignored.

    Raises:
        SpecificationInvalid: If the mapping does not describe a specification.
    """
    if not isinstance(data, dict):
        raise SpecificationInvalid.parse_error(source, "expected a mapping")
    kind = data.get("TEST_OBJECT")
    if isinstance(kind, str) and kind in _KIND_NAMES:
        data = {**data, "TEST_OBJECT": _KIND_NAMES[kind].value}
    try:
        return Specification.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        where = ".".join(str(loc) for loc in err["loc"])
        raise SpecificationInvalid.parse_error(source, f"{where}: {err['msg']}") from e


def load_specification(path: Path) -> Specification:
    if not path.exists():
        raise SpecificationInvalid.parse_error(str(path), "file not found")
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SpecificationInvalid.parse_error(str(path), str(e)) from e
    return parse_specification(data, str(path))


def save_specification(spec: Specification, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        yaml.safe_dump(dump_specification(spec), f, sort_keys=False, allow_unicode=True)
