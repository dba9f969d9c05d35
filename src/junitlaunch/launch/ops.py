"""Launch operations.

``LaunchOps`` drives one run from Specification to child process:

1. validate and normalise the Specification
2. select the engine
3. enumerate leaves and plan batches
4. add missing JUnit Platform jars for JUnit 5 runs
5. write manifests, build arguments and classpath
6. spawn the child runner

Steps 1-3 are synchronous index work; artifact resolution and the child
process are awaited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from junitlaunch.config.models import JLaunchConfig
from junitlaunch.core.errors import LaunchError
from junitlaunch.core.logging import get_logger, run_scope
from junitlaunch.index.protocols import CancellationToken, SourceIndex, TestDiscovery
from junitlaunch.launch.artifacts import ArtifactProvider, create_provider
from junitlaunch.launch.discovery import CandidateEnumerator
from junitlaunch.launch.engine import select_engine
from junitlaunch.launch.forking import plan_batches
from junitlaunch.launch.manifest import (
    PackagedWork,
    ScratchFiles,
    build_classpath,
    package_work,
)
from junitlaunch.launch.models import (
    Engine,
    EnumerationResult,
    ForkPlan,
    Specification,
)
from junitlaunch.launch.reports import FailureReport
from junitlaunch.launch.rerun import plan_rerun
from junitlaunch.launch.runner import (
    RunnerCommand,
    RunnerLauncher,
    RunOutcome,
    SubprocessRunnerLauncher,
)
from junitlaunch.launch.runtime import augment_platform_runtime
from junitlaunch.launch.scopes import junit_scope
from junitlaunch.launch.specification import validate_specification

log = get_logger("launch.ops")


# =============================================================================
# Results
# =============================================================================


@dataclass
class LaunchPlan:
    """Everything decided before any file is written."""

    specification: Specification
    engine: Engine | None
    enumeration: EnumerationResult
    fork_plan: ForkPlan
    runtime_jars: list[Path] = field(default_factory=list)
    warnings: list[LaunchError] = field(default_factory=list)

    @property
    def leaves(self) -> list[str]:
        return self.fork_plan.leaves


@dataclass
class LaunchResult:
    plan: LaunchPlan
    work: PackagedWork
    command: RunnerCommand
    outcome: RunOutcome
    run_id: str


# =============================================================================
# LaunchOps
# =============================================================================


class LaunchOps:
    """Plans and launches JUnit runs against a source index."""

    def __init__(
        self,
        index: SourceIndex,
        config: JLaunchConfig | None = None,
        *,
        discovery: TestDiscovery | None = None,
        provider: ArtifactProvider | None = None,
        launcher: RunnerLauncher | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        self._index = index
        self._config = config or JLaunchConfig()
        self._discovery = discovery
        self._provider = provider or create_provider(self._config.artifacts)
        self._launcher = launcher or SubprocessRunnerLauncher()
        self._cancel = cancel or CancellationToken()

    def cancel(self) -> None:
        self._cancel.cancel()

    def plan(self, spec: Specification) -> LaunchPlan:
        """Validate, select the engine, enumerate and split into batches.

        Raises:
            SpecificationInvalid: If the specification cannot be launched.
            LaunchCancelled: If cancelled during enumeration.
        """
        validation = validate_specification(spec, self._index)
        spec = validation.specification
        engine = select_engine(spec, self._index)
        enumerator = CandidateEnumerator(self._index, self._discovery, self._cancel)
        enumeration = enumerator.enumerate(spec)
        fork_plan = plan_batches(enumeration, spec, engine, self._index)
        log.info(
            "launch_planned",
            kind=spec.kind.value,
            engine=engine.value if engine else None,
            leaves=len(enumeration.leaves),
            batches=len(fork_plan.batches),
        )
        return LaunchPlan(
            specification=spec,
            engine=engine,
            enumeration=enumeration,
            fork_plan=fork_plan,
            warnings=[*validation.warnings, *enumeration.warnings],
        )

    async def prepare(self, spec: Specification) -> LaunchPlan:
        """``plan`` plus the Platform jars a JUnit 5 run is missing.

        Raises:
            ArtifactMissing: If a required jar cannot be resolved.
        """
        plan = self.plan(spec)
        if plan.engine is Engine.JUNIT5:
            scope = junit_scope(plan.specification, self._index)
            plan.runtime_jars = await augment_platform_runtime(
                self._index, scope, self._provider
            )
        return plan

    def package(
        self, plan: LaunchPlan, scratch: ScratchFiles, *, debug_port: int | None = None
    ) -> tuple[PackagedWork, RunnerCommand]:
        """Write the plan's files and build the child command line."""
        launch = self._config.launch
        work = package_work(
            plan.fork_plan,
            plan.specification,
            plan.enumeration,
            plan.engine,
            scratch,
            listeners=launch.listeners,
            debug_port=debug_port,
        )
        classpath = build_classpath(
            self._index, plan.specification.module_hint, launch, plan.runtime_jars
        )
        command = RunnerCommand(
            java_executable=launch.java_executable,
            main_class=launch.main_class,
            classpath=classpath,
            program_args=work.program_args,
            jvm_args=list(launch.jvm_args),
        )
        return work, command

    async def launch(
        self, spec: Specification, *, debug_port: int | None = None
    ) -> LaunchResult:
        """Run ``spec`` in a child runner and wait for it.

        Scratch files are removed when the child terminates, or right away
        if packaging or spawning fails.

        Raises:
            SpecificationInvalid: If the specification cannot be launched.
            ArtifactMissing: If a required Platform jar is unavailable.
            LaunchFailed: If the child process cannot be started.
        """
        scratch_dir = self._config.launch.scratch_dir
        scratch = ScratchFiles(Path(scratch_dir) if scratch_dir else None)
        with run_scope() as run_id:
            try:
                plan = await self.prepare(spec)
                work, command = self.package(plan, scratch, debug_port=debug_port)
                process = await self._launcher.spawn(command)
            except BaseException:
                scratch.cleanup()
                raise

            process.on_terminate(scratch.cleanup)
            outcome = await process.wait(timeout=self._config.launch.timeout_sec)
        return LaunchResult(
            plan=plan, work=work, command=command, outcome=outcome, run_id=run_id
        )

    def rerun(self, spec: Specification, reports: list[FailureReport]) -> Specification | None:
        """Specification re-running the failures in ``reports``."""
        return plan_rerun(spec, reports, self._index)
