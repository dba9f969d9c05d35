"""Launch core models.

The Specification is the persisted description of a requested run. Its
field aliases are the persisted keys, so ``model_dump(by_alias=True)`` yields
the stored form and ``model_validate`` reads it back, ignoring unknown keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from junitlaunch.config.constants import (
    JUNIT3_ARG,
    JUNIT4_ARG,
    JUNIT5_ARG,
    PATTERN_SEPARATOR,
    UNIQUE_ID_PREFIX,
)
from junitlaunch.core.errors import LaunchError

# =============================================================================
# Enums
# =============================================================================


class TestKind(StrEnum):
    """Run kind; values are the persisted ``TEST_OBJECT`` discriminators."""

    __test__ = False

    METHOD = "method"
    CLASS = "class"
    PACKAGE = "package"
    DIRECTORY = "directory"
    CATEGORY = "category"
    PATTERN = "pattern"
    UNIQUE_ID = "uniqueId"
    BY_SOURCE_POSITION = "source location"
    BY_SOURCE_CHANGES = "changes"

    @property
    def spans_scope(self) -> bool:
        """Kinds that sweep a search scope rather than naming their leaves."""
        return self in _SCOPE_SPANNING


_SCOPE_SPANNING = frozenset(
    {TestKind.PACKAGE, TestKind.DIRECTORY, TestKind.CATEGORY, TestKind.PATTERN}
)


class ScopeKind(StrEnum):
    WHOLE_PROJECT = "WHOLE_PROJECT"
    SINGLE_MODULE = "SINGLE_MODULE"
    MODULE_WITH_DEPENDENCIES = "MODULE_WITH_DEPENDENCIES"


class ForkMode(StrEnum):
    NONE = "none"
    METHOD = "method"
    CLASS = "class"
    REPEAT = "repeat"


class RepeatMode(StrEnum):
    ONCE = "ONCE"
    N = "N"
    UNTIL_FAILURE = "UNTIL_FAILURE"
    UNLIMITED = "UNLIMITED"
    UNTIL_COUNT = "UNTIL_COUNT"


class Engine(StrEnum):
    """Engine family the child runner is told to use."""

    JUNIT3 = "junit3"
    JUNIT4 = "junit4"
    JUNIT5 = "junit5"

    @property
    def runner_flag(self) -> str:
        return _RUNNER_FLAGS[self]


_RUNNER_FLAGS = {
    Engine.JUNIT3: JUNIT3_ARG,
    Engine.JUNIT4: JUNIT4_ARG,
    Engine.JUNIT5: JUNIT5_ARG,
}


# =============================================================================
# Specification
# =============================================================================


class Specification(BaseModel):
    """A run request. Immutable; derive variants with ``model_copy(update=...)``."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        use_enum_values=False,
    )

    kind: TestKind = Field(alias="TEST_OBJECT")
    module_hint: str | None = Field(default=None, alias="MODULE")
    search_scope: ScopeKind = Field(
        default=ScopeKind.MODULE_WITH_DEPENDENCIES, alias="TEST_SEARCH_SCOPE"
    )
    main_class_name: str | None = Field(default=None, alias="MAIN_CLASS_NAME")
    method_name: str | None = Field(default=None, alias="METHOD_NAME")
    method_signature: str | None = Field(default=None, alias="METHOD_SIGNATURE")
    package_name: str | None = Field(default=None, alias="PACKAGE_NAME")
    directory_path: str | None = Field(default=None, alias="DIR_NAME")
    category_class: str | None = Field(default=None, alias="CATEGORY")
    patterns: tuple[str, ...] = Field(default=(), alias="PATTERNS")
    unique_ids: tuple[str, ...] = Field(default=(), alias="UNIQUE_IDS")
    change_list_name: str | None = Field(default=None, alias="CHANGE_LIST")
    source_position: str | None = Field(default=None, alias="SOURCE_POSITION")
    fork_mode: ForkMode = Field(default=ForkMode.NONE, alias="FORK_MODE")
    repeat_mode: RepeatMode = Field(default=RepeatMode.ONCE, alias="REPEAT_MODE")
    repeat_count: int = Field(default=1, alias="REPEAT_COUNT")

    @field_validator("patterns")
    @classmethod
    def dedupe_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(v))

    @property
    def method_presentation(self) -> str | None:
        """Signature form of the target method; bare name gets ``()``."""
        if self.method_signature:
            return self.method_signature
        if self.method_name:
            return f"{self.method_name}()"
        return None

    @property
    def pattern_presentation(self) -> str:
        """All pattern entries as one ``||`` alternation source."""
        return PATTERN_SEPARATOR.join(self.patterns)


# =============================================================================
# Leaves
# =============================================================================


def method_leaf(class_name: str, presentation: str) -> str:
    return f"{class_name},{presentation}"


def unique_id_leaf(unique_id: str) -> str:
    return UNIQUE_ID_PREFIX + unique_id


def split_leaf(leaf: str) -> tuple[str, str | None]:
    """``"com.x.A,foo()"`` -> ``("com.x.A", "foo()")``; class leaves give None."""
    class_name, sep, method = leaf.partition(",")
    return class_name, (method if sep else None)


# =============================================================================
# Plan records
# =============================================================================


@dataclass
class EnumerationResult:
    """Ordered leaves plus what the sweep learned on the way."""

    leaves: list[str]
    modules: dict[str, str | None] = field(default_factory=dict)  # leaf -> owning module
    package_name: str = ""
    found_junit4: bool = False
    warnings: list[LaunchError] = field(default_factory=list)


@dataclass
class Batch:
    """Leaves handed to one child process."""

    name: str  # owning module, "" when unsharded
    leaves: list[str]


@dataclass
class ForkPlan:
    batches: list[Batch]
    fork_mode: ForkMode
    per_module: bool

    @property
    def is_indexed(self) -> bool:
        """Multi-batch plans travel only through an index file."""
        return len(self.batches) > 1

    @property
    def leaves(self) -> list[str]:
        return [leaf for batch in self.batches for leaf in batch.leaves]
