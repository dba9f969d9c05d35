"""Artifact Provider port and Maven-layout implementations.

Platform jars are looked up by Maven coordinates. The local provider reads a
Maven repository on disk; the remote provider fills that repository from a
remote one over HTTP when a jar is missing.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from junitlaunch.config.models import ArtifactsConfig
from junitlaunch.core.errors import ArtifactMissing
from junitlaunch.core.logging import get_logger

log = get_logger("launch.artifacts")


@dataclass(frozen=True)
class Coordinates:
    group: str
    artifact: str
    version: str

    @property
    def relative_path(self) -> str:
        """``org/junit/platform/junit-platform-launcher/1.9.0/junit-platform-launcher-1.9.0.jar``"""
        group_path = self.group.replace(".", "/")
        return f"{group_path}/{self.artifact}/{self.version}/{self.artifact}-{self.version}.jar"

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


class ArtifactProvider(Protocol):
    """Materialises an artifact onto a local path."""

    async def resolve(self, group: str, artifact: str, version: str) -> Path:
        """Return the local jar path.

        Raises:
            ArtifactMissing: If the artifact cannot be provided.
        """
        ...


class MavenLocalRepositoryProvider:
    """Resolves jars already present in a local Maven repository."""

    def __init__(self, repository: Path) -> None:
        self.repository = repository

    def local_path(self, coords: Coordinates) -> Path:
        return self.repository / coords.relative_path

    async def resolve(self, group: str, artifact: str, version: str) -> Path:
        coords = Coordinates(group, artifact, version)
        path = self.local_path(coords)
        if path.is_file():
            log.debug("artifact_resolved", coordinates=str(coords), path=str(path))
            return path
        raise ArtifactMissing.not_resolved(
            group, artifact, version, f"not found in local repository {self.repository}"
        )


class MavenRemoteProvider(MavenLocalRepositoryProvider):
    """Local repository first, then a download from ``base_url`` into it."""

    def __init__(
        self,
        repository: Path,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(repository)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def resolve(self, group: str, artifact: str, version: str) -> Path:
        coords = Coordinates(group, artifact, version)
        path = self.local_path(coords)
        if path.is_file():
            return path

        url = f"{self.base_url}/{coords.relative_path}"
        log.info("artifact_download", coordinates=str(coords), url=url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, follow_redirects=True)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ArtifactMissing.not_resolved(
                group, artifact, version, f"HTTP {e.response.status_code} from {url}"
            ) from e
        except httpx.RequestError as e:
            raise ArtifactMissing.not_resolved(group, artifact, version, str(e)) from e

        partial = path.with_name(path.name + ".part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(response.content)
            partial.replace(path)
        except OSError as e:
            if partial.exists():
                partial.unlink()
            log.error(
                "artifact_write_failed", coordinates=str(coords), path=str(path), error=str(e)
            )
            raise ArtifactMissing.not_resolved(
                group, artifact, version, f"cannot write {path}: {e}"
            ) from e
        log.debug("artifact_resolved", coordinates=str(coords), path=str(path))
        return path


def create_provider(config: ArtifactsConfig) -> ArtifactProvider:
    repository = Path(config.maven_repository)
    if config.offline:
        return MavenLocalRepositoryProvider(repository)
    return MavenRemoteProvider(
        repository, config.remote_url, timeout=config.download_timeout_sec
    )
