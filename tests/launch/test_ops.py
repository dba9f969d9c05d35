"""Tests for LaunchOps."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from junitlaunch.config.models import JLaunchConfig, LaunchConfig
from junitlaunch.core.errors import LaunchCancelled, LaunchFailed, SpecificationInvalid
from junitlaunch.core.logging import get_run_id, set_run_id
from junitlaunch.index.memory import InMemorySourceIndex, InMemoryTestDiscovery
from junitlaunch.launch.manifest import read_manifest
from junitlaunch.launch.models import Engine, Specification, TestKind
from junitlaunch.launch.ops import LaunchOps
from junitlaunch.launch.reports import FailureReport
from junitlaunch.launch.runner import RunnerCommand, RunOutcome

from conftest import RecordingProvider


class FakeProcess:
    def __init__(self, outcome: RunOutcome) -> None:
        self.outcome = outcome
        self.cleanups: list[Callable[[], None]] = []
        self.run_id_seen: str | None = None

    def on_terminate(self, callback: Callable[[], None]) -> None:
        self.cleanups.append(callback)

    async def wait(self, timeout: float | None = None) -> RunOutcome:
        self.run_id_seen = get_run_id()
        for cleanup in self.cleanups:
            cleanup()
        return self.outcome


class FakeLauncher:
    """Records commands and the manifests they point at."""

    def __init__(self, outcome: RunOutcome | None = None, fail: bool = False) -> None:
        self.outcome = outcome or RunOutcome(exit_code=0)
        self.fail = fail
        self.commands: list[RunnerCommand] = []
        self.manifests: list[list[str]] = []
        self.process: FakeProcess | None = None

    async def spawn(self, command: RunnerCommand) -> FakeProcess:
        self.commands.append(command)
        for arg in command.program_args:
            if arg.startswith("@") and not arg.startswith("@@"):
                self.manifests.append(read_manifest(Path(arg[1:])).leaves)
        if self.fail:
            raise LaunchFailed.spawn_failed(command.to_argv(), "no java")
        self.process = FakeProcess(self.outcome)
        return self.process


@pytest.fixture
def config(tmp_path: Path) -> JLaunchConfig:
    return JLaunchConfig(
        launch=LaunchConfig(
            java_executable="/jdk/bin/java",
            runner_jar="/opt/runner.jar",
            scratch_dir=str(tmp_path),
            jvm_args=["-ea"],
            timeout_sec=60,
        )
    )


def _ops(
    index: InMemorySourceIndex,
    config: JLaunchConfig,
    launcher: FakeLauncher | None = None,
    provider: RecordingProvider | None = None,
    discovery: InMemoryTestDiscovery | None = None,
) -> LaunchOps:
    return LaunchOps(
        index,
        config,
        discovery=discovery,
        provider=provider or RecordingProvider(),
        launcher=launcher or FakeLauncher(),
    )


class TestPlan:
    def test_class_run(self, index: InMemorySourceIndex, config: JLaunchConfig) -> None:
        plan = _ops(index, config).plan(
            Specification(kind=TestKind.CLASS, main_class_name="com.x.C")
        )
        assert plan.engine is Engine.JUNIT5
        assert plan.leaves == ["com.x.C"]
        assert plan.warnings == []

    def test_invalid_specification(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        with pytest.raises(SpecificationInvalid):
            _ops(index, config).plan(Specification(kind=TestKind.PACKAGE))

    def test_non_test_class_warns(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        plan = _ops(index, config).plan(
            Specification(kind=TestKind.CLASS, main_class_name="com.x.Helper")
        )
        assert [w.message for w in plan.warnings] == ["Class com.x.Helper not a test"]

    def test_source_changes_use_discovery(
        self,
        index: InMemorySourceIndex,
        discovery: InMemoryTestDiscovery,
        config: JLaunchConfig,
    ) -> None:
        plan = _ops(index, config, discovery=discovery).plan(
            Specification(kind=TestKind.BY_SOURCE_CHANGES, change_list_name="default")
        )
        assert plan.leaves == ["com.core.CoreTest", "com.x.B"]

    def test_cancelled(self, index: InMemorySourceIndex, config: JLaunchConfig) -> None:
        ops = _ops(index, config)
        ops.cancel()
        with pytest.raises(LaunchCancelled):
            ops.plan(Specification(kind=TestKind.PACKAGE, package_name=""))


class TestPrepare:
    @pytest.mark.asyncio
    async def test_junit5_run_resolves_platform(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        provider = RecordingProvider()
        plan = await _ops(index, config, provider=provider).prepare(
            Specification(kind=TestKind.CLASS, main_class_name="com.x.C")
        )
        assert provider.requests[0] == ("org.junit.platform", "junit-platform-launcher", "1.9.2")
        assert plan.runtime_jars[0] == Path("/repo/junit-platform-launcher-1.9.2.jar")

    @pytest.mark.asyncio
    async def test_other_engines_skip_resolution(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        provider = RecordingProvider()
        plan = await _ops(index, config, provider=provider).prepare(
            Specification(kind=TestKind.CLASS, main_class_name="com.y.Literal")
        )
        assert plan.engine is not Engine.JUNIT5
        assert provider.requests == []
        assert plan.runtime_jars == []


class TestLaunch:
    @pytest.mark.asyncio
    async def test_spawns_runner_and_cleans_scratch(
        self, index: InMemorySourceIndex, config: JLaunchConfig, tmp_path: Path
    ) -> None:
        launcher = FakeLauncher(RunOutcome(exit_code=1, stdout="1 failed"))
        result = await _ops(index, config, launcher).launch(
            Specification(kind=TestKind.METHOD, main_class_name="com.y.Literal", method_name="bar")
        )

        command = launcher.commands[0]
        assert command.java_executable == "/jdk/bin/java"
        assert command.jvm_args == ["-ea"]
        assert "/opt/runner.jar" in command.classpath
        assert command.program_args[0] == "-ideVersion5"
        assert launcher.manifests == [["com.y.Literal,bar()"]]
        assert result.outcome.exit_code == 1
        assert not result.outcome.succeeded
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_run_id_is_scoped_to_the_launch(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        launcher = FakeLauncher()
        result = await _ops(index, config, launcher).launch(
            Specification(kind=TestKind.CLASS, main_class_name="com.x.C")
        )
        assert launcher.process is not None
        assert launcher.process.run_id_seen == result.run_id
        assert get_run_id() is None

    @pytest.mark.asyncio
    async def test_existing_run_id_is_reused(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        set_run_id("outer")
        result = await _ops(index, config).launch(
            Specification(kind=TestKind.CLASS, main_class_name="com.x.C")
        )
        assert result.run_id == "outer"
        assert get_run_id() == "outer"

    @pytest.mark.asyncio
    async def test_spawn_failure_removes_scratch(
        self, index: InMemorySourceIndex, config: JLaunchConfig, tmp_path: Path
    ) -> None:
        launcher = FakeLauncher(fail=True)
        with pytest.raises(LaunchFailed):
            await _ops(index, config, launcher).launch(
                Specification(kind=TestKind.CLASS, main_class_name="com.x.C")
            )
        assert launcher.manifests == [["com.x.C"]]
        assert list(tmp_path.iterdir()) == []
        assert get_run_id() is None

    @pytest.mark.asyncio
    async def test_debug_port_with_fork(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        launcher = FakeLauncher()
        await _ops(index, config, launcher).launch(
            Specification(kind=TestKind.PACKAGE, package_name=""), debug_port=5005
        )
        args = launcher.commands[0].program_args
        assert any(arg.startswith("@@@none,") for arg in args)
        assert args[-1] == "-debugSocket5005"
        assert len(launcher.manifests) == 0


class TestRerun:
    def test_delegates_to_planner(
        self, index: InMemorySourceIndex, config: JLaunchConfig
    ) -> None:
        report = FailureReport(
            name="bar", display_name="bar", class_name="com.y.Literal", method_name="bar"
        )
        spec = _ops(index, config).rerun(
            Specification(kind=TestKind.PACKAGE, package_name="com.y"), [report]
        )
        assert spec is not None
        assert spec.patterns == ("com.y.Literal,bar()",)
