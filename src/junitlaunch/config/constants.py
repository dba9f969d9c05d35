"""Protocol constants.

Values the child runner and the JUnit artifacts dictate. None of these are
user-configurable; for configurable values see models.py.
"""

# =============================================================================
# Runner Protocol
# =============================================================================

JUNIT_STARTER_CLASS = "com.intellij.rt.execution.junit.JUnitStarter"
"""Default runner main class."""

IDE_VERSION_ARG = "-ideVersion5"
"""Protocol sentinel, always the first program argument."""

JUNIT3_ARG = "-junit3"
JUNIT4_ARG = "-junit4"
JUNIT5_ARG = "-junit5"

MANIFEST_PREFIX = "@"
LISTENERS_PREFIX = "@@"
FORK_PREFIX = "@@@"
DEBUG_SOCKET_ARG = "-debugSocket"

UNIQUE_ID_PREFIX = "\u001b"
"""ESC marks a leaf as an opaque engine unique id."""

PATTERN_SEPARATOR = "||"
"""Joins pattern entries into a single alternation source."""

# =============================================================================
# Framework Names
# =============================================================================

TEST_CASE_CLASS = "junit.framework.TestCase"
TEST_ANNOTATION = "org.junit.Test"
RUN_WITH_ANNOTATION = "org.junit.runner.RunWith"
SUITE_METHOD_NAME = "suite"

JUPITER_TEST_ANNOTATIONS = frozenset(
    {
        "org.junit.jupiter.api.Test",
        "org.junit.jupiter.api.TestFactory",
        "org.junit.jupiter.api.RepeatedTest",
        "org.junit.jupiter.api.TestTemplate",
        "org.junit.jupiter.params.ParameterizedTest",
    }
)
NESTED_ANNOTATION = "org.junit.jupiter.api.Nested"
TESTABLE_ANNOTATION = "org.junit.platform.commons.annotation.Testable"

# =============================================================================
# Platform Packages and Probes
# =============================================================================

PLATFORM_LAUNCHER_PACKAGE = "org.junit.platform.launcher"
PLATFORM_ENGINE_PACKAGE = "org.junit.platform.engine"
JUPITER_ENGINE_PACKAGE = "org.junit.jupiter.engine"
JUPITER_API_PACKAGE = "org.junit.jupiter.api"
VINTAGE_PACKAGE = "org.junit.vintage"
JUNIT3_PACKAGE = "junit.framework"

TEST_ENGINE_CLASS = "org.junit.platform.engine.TestEngine"
JUPITER_ENGINE_CLASS = "org.junit.jupiter.engine.JupiterTestEngine"
VINTAGE_ENGINE_CLASS = "org.junit.vintage.engine.VintageTestEngine"
PLATFORM_VERSION_PROBE = "org.junit.platform.commons.JUnitException"
JUPITER_VERSION_PROBE = "org.junit.jupiter.api.Test"

PLATFORM_GROUP = "org.junit.platform"
JUPITER_GROUP = "org.junit.jupiter"
VINTAGE_GROUP = "org.junit.vintage"

DEFAULT_PLATFORM_VERSION = "1.0.0"
DEFAULT_JUPITER_VERSION = "5.0.0"
VINTAGE_VERSION_PREFIX = "4.12."

IMPLEMENTATION_VERSION = "Implementation-Version"
"""Manifest attribute carrying an artifact version."""

# =============================================================================
# Artifact Repositories
# =============================================================================

MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2"
