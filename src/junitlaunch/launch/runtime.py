"""Platform Runtime Augmenter.

JUnit 5 runs need the Platform launcher and engine on the child classpath.
Whatever the project does not already provide is requested from the artifact
provider, versioned after the Platform commons jar the project does have.
"""

from __future__ import annotations

from pathlib import Path

from junitlaunch.config.constants import (
    DEFAULT_JUPITER_VERSION,
    DEFAULT_PLATFORM_VERSION,
    IMPLEMENTATION_VERSION,
    JUNIT3_PACKAGE,
    JUPITER_API_PACKAGE,
    JUPITER_ENGINE_PACKAGE,
    JUPITER_GROUP,
    JUPITER_VERSION_PROBE,
    PLATFORM_ENGINE_PACKAGE,
    PLATFORM_GROUP,
    PLATFORM_LAUNCHER_PACKAGE,
    PLATFORM_VERSION_PROBE,
    VINTAGE_GROUP,
    VINTAGE_PACKAGE,
    VINTAGE_VERSION_PREFIX,
)
from junitlaunch.core.logging import get_logger
from junitlaunch.index.models import Scope
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.artifacts import ArtifactProvider

log = get_logger("launch.runtime")


def has_package_with_directories(index: SourceIndex, package: str, scope: Scope) -> bool:
    with index.read_lease():
        found = index.find_package(package)
        return found is not None and bool(index.package_directories(found, scope))


def artifact_version(index: SourceIndex, probe_class: str, scope: Scope) -> str | None:
    """``Implementation-Version`` of the archive holding ``probe_class``."""
    with index.read_lease():
        cls = index.find_class(probe_class, scope)
        if cls is None:
            return None
        return index.read_manifest_attribute(cls, IMPLEMENTATION_VERSION)


def vintage_version(launcher_version: str) -> str:
    """Vintage engine version paired with a Platform version (``1.9.2`` -> ``4.12.2``)."""
    return VINTAGE_VERSION_PREFIX + launcher_version.rpartition(".")[2]


async def augment_platform_runtime(
    index: SourceIndex, scope: Scope, provider: ArtifactProvider
) -> list[Path]:
    """Jars to append to a JUnit 5 child classpath.

    Raises:
        ArtifactMissing: If a required jar cannot be provided.
    """
    launcher_version = (
        artifact_version(index, PLATFORM_VERSION_PROBE, scope) or DEFAULT_PLATFORM_VERSION
    )
    jars: list[Path] = []

    if not has_package_with_directories(index, PLATFORM_LAUNCHER_PACKAGE, scope):
        jars.append(
            await provider.resolve(PLATFORM_GROUP, "junit-platform-launcher", launcher_version)
        )

    engine_api_present = has_package_with_directories(index, PLATFORM_ENGINE_PACKAGE, scope)
    if not engine_api_present:
        jars.append(
            await provider.resolve(PLATFORM_GROUP, "junit-platform-engine", launcher_version)
        )

        # Standard engines only when the project brings no engine API at all.
        if not has_package_with_directories(
            index, JUPITER_ENGINE_PACKAGE, scope
        ) and has_package_with_directories(index, JUPITER_API_PACKAGE, scope):
            version = (
                artifact_version(index, JUPITER_VERSION_PROBE, scope) or DEFAULT_JUPITER_VERSION
            )
            jars.append(await provider.resolve(JUPITER_GROUP, "junit-jupiter-engine", version))

        if not has_package_with_directories(
            index, VINTAGE_PACKAGE, scope
        ) and has_package_with_directories(index, JUNIT3_PACKAGE, scope):
            jars.append(
                await provider.resolve(
                    VINTAGE_GROUP, "junit-vintage-engine", vintage_version(launcher_version)
                )
            )

    log.debug(
        "platform_runtime_augmented",
        launcher_version=launcher_version,
        jars=[str(j) for j in jars],
    )
    return jars
