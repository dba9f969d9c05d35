"""Work Packager.

Writes the files the child runner reads and assembles its program arguments.

Manifest layout (UTF-8, ``\\n`` line endings)::

    <package-name>
    <category-fqn-or-empty>
    <pattern-or-empty>
    <leaf-1>
    <leaf-2>
    ...

The three header lines are always present. A multi-batch run is described by
an index file holding two lines per batch: the batch name, then the path of
its manifest.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from junitlaunch.config.constants import (
    DEBUG_SOCKET_ARG,
    FORK_PREFIX,
    IDE_VERSION_ARG,
    JUNIT4_ARG,
    LISTENERS_PREFIX,
    MANIFEST_PREFIX,
)
from junitlaunch.config.models import LaunchConfig
from junitlaunch.core.logging import get_logger
from junitlaunch.index.protocols import SourceIndex
from junitlaunch.launch.models import (
    Engine,
    EnumerationResult,
    ForkMode,
    ForkPlan,
    RepeatMode,
    Specification,
    TestKind,
)

log = get_logger("launch.manifest")

# =============================================================================
# Scratch Files
# =============================================================================


class ScratchFiles:
    """Temp files owned by one launch, deleted together on cleanup."""

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = directory
        self.paths: list[Path] = []

    def create(self, prefix: str, content: str) -> Path:
        if self.directory is not None:
            self.directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=".txt", dir=self.directory)
        path = Path(name)
        self.paths.append(path)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        return path

    def cleanup(self) -> None:
        for path in self.paths:
            path.unlink(missing_ok=True)
        if self.paths:
            log.debug("scratch_cleaned", files=len(self.paths))
        self.paths.clear()


# =============================================================================
# Manifest and Index Files
# =============================================================================


@dataclass(frozen=True)
class ManifestHeader:
    package: str = ""
    category: str = ""
    pattern: str = ""


@dataclass
class Manifest:
    header: ManifestHeader
    leaves: list[str] = field(default_factory=list)


def manifest_header(spec: Specification, result: EnumerationResult) -> ManifestHeader:
    """Category is only sent for category runs, the pattern only for pattern runs."""
    return ManifestHeader(
        package=result.package_name,
        category=(spec.category_class or "") if spec.kind is TestKind.CATEGORY else "",
        pattern=spec.pattern_presentation if spec.kind is TestKind.PATTERN else "",
    )


def render_manifest(header: ManifestHeader, leaves: Iterable[str]) -> str:
    lines = [header.package, header.category, header.pattern, *leaves]
    return "".join(line + "\n" for line in lines)


def write_manifest(scratch: ScratchFiles, header: ManifestHeader, leaves: list[str]) -> Path:
    return scratch.create("junit_manifest_", render_manifest(header, leaves))


def write_index(scratch: ScratchFiles, entries: list[tuple[str, Path]]) -> Path:
    content = "".join(f"{name}\n{path}\n" for name, path in entries)
    return scratch.create("junit_index_", content)


def write_listeners(scratch: ScratchFiles, listeners: list[str]) -> Path | None:
    if not listeners:
        return None
    return scratch.create("junit_listeners_", "".join(f"{name}\n" for name in listeners))


def parse_manifest(text: str) -> Manifest:
    """Read a manifest back the way the child runner does."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    lines += [""] * (3 - len(lines))
    header = ManifestHeader(package=lines[0], category=lines[1], pattern=lines[2])
    return Manifest(header=header, leaves=lines[3:])


def read_manifest(path: Path) -> Manifest:
    return parse_manifest(path.read_text(encoding="utf-8"))


def read_index(path: Path) -> list[tuple[str, Path]]:
    lines = path.read_text(encoding="utf-8").split("\n")
    return [(lines[i], Path(lines[i + 1])) for i in range(0, len(lines) - 1, 2)]


# =============================================================================
# Program Arguments and Classpath
# =============================================================================


def repeat_token(spec: Specification) -> str | None:
    """``N<count>`` for explicit counts, the mode literal otherwise, None for ONCE."""
    if spec.repeat_mode is RepeatMode.ONCE:
        return None
    if spec.repeat_mode is RepeatMode.N and spec.repeat_count > 0:
        return f"N{spec.repeat_count}"
    return spec.repeat_mode.value


def engine_flag(engine: Engine | None, found_junit4: bool) -> str | None:
    if engine is not None:
        return engine.runner_flag
    return JUNIT4_ARG if found_junit4 else None


@dataclass
class PackagedWork:
    """Files written for one launch and the program arguments pointing at them."""

    program_args: list[str]
    manifests: list[Path]
    index_file: Path | None = None
    listeners_file: Path | None = None


def package_work(
    plan: ForkPlan,
    spec: Specification,
    result: EnumerationResult,
    engine: Engine | None,
    scratch: ScratchFiles,
    *,
    listeners: list[str] | None = None,
    debug_port: int | None = None,
) -> PackagedWork:
    """Write manifests for ``plan`` and build the runner's program arguments."""
    header = manifest_header(spec, result)
    manifests = [write_manifest(scratch, header, batch.leaves) for batch in plan.batches]
    listeners_file = write_listeners(scratch, listeners or [])

    index_file: Path | None = None
    if plan.is_indexed or plan.fork_mode is not ForkMode.NONE:
        entries = [(batch.name, path) for batch, path in zip(plan.batches, manifests)]
        index_file = write_index(scratch, entries)

    args = [IDE_VERSION_ARG]
    if listeners_file is not None:
        args.append(f"{LISTENERS_PREFIX}{listeners_file}")
    flag = engine_flag(engine, result.found_junit4)
    if flag is not None:
        args.append(flag)
    if not plan.is_indexed:
        args.append(f"{MANIFEST_PREFIX}{manifests[0]}")
    if index_file is not None:
        args.append(f"{FORK_PREFIX}{plan.fork_mode.value},{index_file}")
        if debug_port is not None:
            args.append(f"{DEBUG_SOCKET_ARG}{debug_port}")
    elif debug_port is not None:
        log.debug("debug_port_ignored", port=debug_port, reason="run is not forked")
    token = repeat_token(spec)
    if token is not None:
        args.append(token)

    log.debug(
        "work_packaged",
        manifests=len(manifests),
        indexed=index_file is not None,
        engine_flag=flag,
    )
    return PackagedWork(
        program_args=args,
        manifests=manifests,
        index_file=index_file,
        listeners_file=listeners_file,
    )


def build_classpath(
    index: SourceIndex,
    module: str | None,
    config: LaunchConfig,
    extra: Iterable[Path] = (),
) -> list[str]:
    """Module classpath, then the runner jar, the JUnit 5 adapter and any extra jars."""
    with index.read_lease():
        entries = list(index.module_classpath(module))
    entries += [jar for jar in (config.runner_jar, config.junit5_adapter_jar) if jar]
    entries += [str(p) for p in extra]
    return list(dict.fromkeys(entries))
