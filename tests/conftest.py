"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides project models built from small YAML-shaped dicts.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local junitlaunch package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of junitlaunch modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("junitlaunch"):
        del sys.modules[module_name]

from junitlaunch.core.errors import ArtifactMissing  # noqa: E402
from junitlaunch.core.logging import clear_run_id  # noqa: E402
from junitlaunch.index.memory import InMemorySourceIndex, InMemoryTestDiscovery  # noqa: E402
from junitlaunch.index.project import parse_project  # noqa: E402

JUNIT4_JAR = "/libs/junit-4.13.jar"
JUPITER_JAR = "/libs/junit-jupiter-api-5.9.2.jar"
COMMONS_JAR = "/libs/junit-platform-commons-1.9.2.jar"
ALL_JARS = [JUNIT4_JAR, JUPITER_JAR, COMMONS_JAR]

JUPITER_TEST = "org.junit.jupiter.api.Test"
JUNIT4_TEST = "org.junit.Test"
TEST_CASE = "junit.framework.TestCase"

Project = tuple[InMemorySourceIndex, InMemoryTestDiscovery]
ProjectFactory = Callable[..., Project]


class RecordingProvider:
    """Artifact provider that hands out fake paths and remembers requests."""

    def __init__(self, missing: set[str] | None = None) -> None:
        self.requests: list[tuple[str, str, str]] = []
        self.missing = missing or set()

    async def resolve(self, group: str, artifact: str, version: str) -> Path:
        self.requests.append((group, artifact, version))
        if artifact in self.missing:
            raise ArtifactMissing.not_resolved(group, artifact, version, "offline")
        return Path(f"/repo/{artifact}-{version}.jar")


def junit_libraries() -> list[dict[str, Any]]:
    """The JUnit 4, Jupiter API and Platform commons archives."""
    return [
        {
            "path": JUNIT4_JAR,
            "manifest": {"Implementation-Version": "4.13"},
            "classes": [
                {"name": TEST_CASE},
                {"name": JUNIT4_TEST, "annotation": True},
                {"name": "org.junit.runner.RunWith", "annotation": True},
            ],
        },
        {
            "path": JUPITER_JAR,
            "manifest": {"Implementation-Version": "5.9.2"},
            "classes": [
                {"name": JUPITER_TEST, "annotation": True},
                {"name": "org.junit.jupiter.api.Nested", "annotation": True},
            ],
        },
        {
            "path": COMMONS_JAR,
            "manifest": {"Implementation-Version": "1.9.2"},
            "classes": [{"name": "org.junit.platform.commons.JUnitException"}],
        },
    ]


def module_data(
    name: str,
    test_classes: list[dict[str, Any]],
    *,
    libraries: list[str] | None = None,
    dependencies: list[str] | None = None,
    main_classes: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """One module with a test root and a main root under ``/src/<name>``."""
    return {
        "name": name,
        "dependencies": dependencies or [],
        "libraries": ALL_JARS if libraries is None else libraries,
        "classpath": [f"/out/{name}/test", f"/out/{name}/main"],
        "source_roots": [
            {"path": f"/src/{name}/test", "test": True, "classes": test_classes},
            {"path": f"/src/{name}/main", "classes": main_classes or []},
        ],
    }


def sample_project_data() -> dict[str, Any]:
    """A two-module project exercising every sweep search."""
    app_tests = [
        {"name": "com.x.A", "extends": TEST_CASE, "methods": [{"name": "testOne"}]},
        {"name": "com.x.B", "extends": TEST_CASE, "methods": [{"name": "testTwo"}]},
        {"name": "com.x.C", "methods": [{"name": "m", "annotations": [JUPITER_TEST]}]},
        {"name": "com.x.Helper", "methods": [{"name": "help"}]},
        {
            "name": "com.y.Outer",
            "nested": [
                {
                    "name": "Inner",
                    "annotations": ["org.junit.jupiter.api.Nested"],
                    "methods": [{"name": "inner", "annotations": [JUPITER_TEST]}],
                }
            ],
        },
        {"name": "com.y.Literal", "methods": [{"name": "bar", "annotations": [JUNIT4_TEST]}]},
        {"name": "com.y.FooTest", "methods": [{"name": "works", "annotations": [JUNIT4_TEST]}]},
        {"name": "com.y.FoooTest", "methods": [{"name": "works", "annotations": [JUNIT4_TEST]}]},
        {"name": "com.y.BarTest", "methods": [{"name": "works", "annotations": [JUNIT4_TEST]}]},
        {
            "name": "com.y.AbstractBase",
            "abstract": True,
            "methods": [{"name": "inherited", "annotations": [JUNIT4_TEST]}],
        },
        {"name": "com.y.Concrete", "extends": "com.y.AbstractBase"},
        {"name": "com.z.AllTests", "methods": [{"name": "suite", "static": True}]},
        {
            "name": "com.z.Params",
            "methods": [
                {"name": "check", "parameters": ["int"], "annotations": [JUPITER_TEST]},
                {"name": "check", "parameters": ["java.lang.String"], "annotations": [JUPITER_TEST]},
            ],
        },
    ]
    core_tests = [
        {"name": "com.core.CoreTest", "methods": [{"name": "works", "annotations": [JUNIT4_TEST]}]},
    ]
    return {
        "modules": [
            module_data(
                "app",
                app_tests,
                dependencies=["core"],
                main_classes=[{"name": "com.x.Service"}],
            ),
            module_data("core", core_tests, libraries=[JUNIT4_JAR]),
        ],
        "libraries": junit_libraries(),
        "discovery": {
            "positions": {"/src/app/test/com/x/A.java:12": ["com.x.A,testOne()"]},
            "changes": {"default": ["com.x.B", "com.core.CoreTest"]},
        },
    }


@pytest.fixture(autouse=True)
def _reset_run_id() -> None:
    """Every test starts without a launch correlation id."""
    clear_run_id()


@pytest.fixture
def project_factory() -> ProjectFactory:
    """Build an index from modules given as ``module_data`` dicts."""

    def build(*modules: dict[str, Any], discovery: dict[str, Any] | None = None) -> Project:
        data: dict[str, Any] = {"modules": list(modules), "libraries": junit_libraries()}
        if discovery is not None:
            data["discovery"] = discovery
        return parse_project(data)

    return build


@pytest.fixture
def sample_data() -> dict[str, Any]:
    return sample_project_data()


@pytest.fixture
def sample_project(sample_data: dict[str, Any]) -> Project:
    return parse_project(sample_data)


@pytest.fixture
def index(sample_project: Project) -> InMemorySourceIndex:
    return sample_project[0]


@pytest.fixture
def discovery(sample_project: Project) -> InMemoryTestDiscovery:
    return sample_project[1]
