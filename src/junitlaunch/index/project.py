"""YAML project model.

Describes a Java project (modules, source roots, classes, libraries) in a form
the in-memory index can load. Used by the CLI and as the test fixture format.

Example::

    modules:
      - name: app
        dependencies: [core]
        libraries: [/libs/junit-4.13.jar]
        classpath: [/out/app/test, /out/app/main]
        source_roots:
          - path: /src/app/test
            test: true
            classes:
              - name: com.x.ATest
                extends: junit.framework.TestCase
                methods:
                  - name: testFoo
    libraries:
      - path: /libs/junit-4.13.jar
        manifest: {Implementation-Version: "4.13"}
        classes:
          - name: junit.framework.TestCase
    discovery:
      positions: {"/src/app/test/com/x/ATest.java:12": ["com.x.ATest,testFoo()"]}
      changes: {default: ["com.x.ATest"]}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from junitlaunch.core.errors import ConfigError
from junitlaunch.index.memory import InMemorySourceIndex, InMemoryTestDiscovery
from junitlaunch.index.models import (
    JavaClass,
    JavaMethod,
    JavaModule,
    Library,
    SourceDirectory,
)

# =============================================================================
# Schema
# =============================================================================


class MethodModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    parameters: list[str] = Field(default_factory=list)
    annotations: list[str] = Field(default_factory=list)
    static: bool = False
    public: bool = True
    abstract: bool = False


class ClassModel(BaseModel):
    """A class; ``name`` is qualified for top-level classes, simple for nested."""

    model_config = ConfigDict(extra="forbid")

    name: str = ""
    extends: str | None = None
    implements: list[str] = Field(default_factory=list)
    annotations: list[str] = Field(default_factory=list)
    methods: list[MethodModel] = Field(default_factory=list)
    nested: list[ClassModel] = Field(default_factory=list)
    public: bool = True
    abstract: bool = False
    interface: bool = False
    annotation: bool = False
    static: bool = False
    anonymous: bool = False
    public_constructor: bool = True
    excluded: bool = False


class SourceRootModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    test: bool = False
    resources: bool = False
    classes: list[ClassModel] = Field(default_factory=list)


class ModuleModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    dependencies: list[str] = Field(default_factory=list)
    libraries: list[str] = Field(default_factory=list)
    classpath: list[str] = Field(default_factory=list)
    source_roots: list[SourceRootModel] = Field(default_factory=list)


class LibraryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    manifest: dict[str, str] = Field(default_factory=dict)
    packages: list[str] = Field(default_factory=list)
    classes: list[ClassModel] = Field(default_factory=list)


class DiscoveryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    positions: dict[str, list[str]] = Field(default_factory=dict)
    changes: dict[str, list[str]] = Field(default_factory=dict)


class ProjectModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    modules: list[ModuleModel] = Field(default_factory=list)
    libraries: list[LibraryModel] = Field(default_factory=list)
    discovery: DiscoveryModel = Field(default_factory=DiscoveryModel)


# =============================================================================
# Materialisation
# =============================================================================


def _split_name(qualified: str) -> tuple[str, str]:
    package, _, simple = qualified.rpartition(".")
    return package, simple


def _flatten(
    model: ClassModel,
    *,
    qualified: str | None,
    package: str,
    module: str | None,
    library: str | None,
    file_path: str | None,
    outer: str | None,
    resource_only: bool,
    counter: list[int],
) -> list[JavaClass]:
    owner = qualified or f"{outer}$anonymous{counter[0]}"
    methods = tuple(
        JavaMethod(
            name=m.name,
            containing_class=owner,
            parameter_types=tuple(m.parameters),
            annotations=frozenset(m.annotations),
            is_static=m.static,
            is_public=m.public,
            is_abstract=m.abstract,
        )
        for m in model.methods
    )
    simple = _split_name(qualified)[1] if qualified else ""
    cls = JavaClass(
        qualified_name=qualified,
        name=simple,
        package=package,
        module=module,
        library=library,
        superclass=model.extends,
        interfaces=tuple(model.implements),
        annotations=frozenset(model.annotations),
        methods=methods,
        outer_class=outer,
        file_path=file_path,
        is_public=model.public,
        is_abstract=model.abstract,
        is_interface=model.interface,
        is_annotation=model.annotation,
        is_static=model.static or outer is None,
        is_anonymous=qualified is None,
        has_public_constructor=model.public_constructor,
        excluded_from_compilation=model.excluded,
        resource_only=resource_only,
    )
    result = [cls]
    for inner in model.nested:
        if inner.anonymous:
            counter[0] += 1
            inner_name = None
        else:
            inner_name = f"{qualified}.{inner.name}"
        result.extend(
            _flatten(
                inner,
                qualified=inner_name,
                package=package,
                module=module,
                library=library,
                file_path=file_path,
                outer=qualified,
                resource_only=resource_only,
                counter=counter,
            )
        )
    return result


def build_project(
    project: ProjectModel,
) -> tuple[InMemorySourceIndex, InMemoryTestDiscovery]:
    """Materialise a validated project model into an index and discovery oracle."""
    modules: list[JavaModule] = []
    source_dirs: list[SourceDirectory] = []
    classes: list[JavaClass] = []
    libraries: list[Library] = []
    counter = [0]

    for mod in project.modules:
        modules.append(
            JavaModule(
                name=mod.name,
                dependencies=tuple(mod.dependencies),
                libraries=tuple(mod.libraries),
                classpath=tuple(mod.classpath),
            )
        )
        for root in mod.source_roots:
            root_path = root.path.rstrip("/")
            source_dirs.append(
                SourceDirectory(
                    path=root_path,
                    module=mod.name,
                    is_test=root.test,
                    resource_only=root.resources,
                )
            )
            for model in root.classes:
                package, simple = _split_name(model.name)
                relative = package.replace(".", "/")
                parent = f"{root_path}/{relative}" if relative else root_path
                classes.extend(
                    _flatten(
                        model,
                        qualified=model.name,
                        package=package,
                        module=mod.name,
                        library=None,
                        file_path=f"{parent}/{simple}.java",
                        outer=None,
                        resource_only=root.resources,
                        counter=counter,
                    )
                )

    for lib in project.libraries:
        packages = set(lib.packages)
        for model in lib.classes:
            package, _ = _split_name(model.name)
            packages.add(package)
            classes.extend(
                _flatten(
                    model,
                    qualified=model.name,
                    package=package,
                    module=None,
                    library=lib.path,
                    file_path=None,
                    outer=None,
                    resource_only=False,
                    counter=counter,
                )
            )
        libraries.append(
            Library(path=lib.path, packages=frozenset(packages), manifest=dict(lib.manifest))
        )

    index = InMemorySourceIndex(
        modules=modules, source_dirs=source_dirs, classes=classes, libraries=libraries
    )
    discovery = InMemoryTestDiscovery(
        positions={k: set(v) for k, v in project.discovery.positions.items()},
        changes={k: set(v) for k, v in project.discovery.changes.items()},
    )
    return index, discovery


def parse_project(
    data: dict[str, Any], source: str = "<memory>"
) -> tuple[InMemorySourceIndex, InMemoryTestDiscovery]:
    try:
        project = ProjectModel.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        where = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.parse_error(source, f"{where}: {err['msg']}") from e
    return build_project(project)


def load_project(path: Path) -> tuple[InMemorySourceIndex, InMemoryTestDiscovery]:
    """Load a YAML project model from disk.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or does not
            match the schema.
    """
    if not path.exists():
        raise ConfigError.file_not_found(str(path))
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return parse_project(data, str(path))
