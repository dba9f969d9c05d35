"""Runner Launch Port.

Starts the child JVM that executes the packaged work. Background tasks
attached to a process run alongside it and are awaited when the process is
waited on; cleanup callbacks (scratch file removal) run once it terminates,
whatever the outcome.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from junitlaunch.core.errors import LaunchFailed
from junitlaunch.core.logging import get_logger

log = get_logger("launch.runner")


@dataclass
class RunnerCommand:
    java_executable: str
    main_class: str
    classpath: list[str]
    program_args: list[str]
    jvm_args: list[str] = field(default_factory=list)
    working_directory: Path | None = None

    def to_argv(self) -> list[str]:
        return [
            self.java_executable,
            *self.jvm_args,
            "-classpath",
            os.pathsep.join(self.classpath),
            self.main_class,
            *self.program_args,
        ]


@dataclass
class RunOutcome:
    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.exit_code == 0


class RunnerProcess:
    """A spawned child runner."""

    def __init__(self, process: asyncio.subprocess.Process, command: RunnerCommand) -> None:
        self.process = process
        self.command = command
        self._tasks: list[Awaitable[object]] = []
        self._cleanups: list[Callable[[], None]] = []

    @property
    def pid(self) -> int:
        return self.process.pid

    def attach_background_task(self, task: Awaitable[object]) -> None:
        self._tasks.append(task)

    def on_terminate(self, callback: Callable[[], None]) -> None:
        self._cleanups.append(callback)

    async def wait(self, timeout: float | None = None) -> RunOutcome:
        """Wait for the child and its background tasks.

        On timeout the child is killed and the outcome is marked ``timed_out``.
        """
        background = [asyncio.ensure_future(task) for task in self._tasks]
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                self.process.communicate(), timeout=timeout
            )
            await asyncio.gather(*background)
            outcome = RunOutcome(
                exit_code=self.process.returncode,
                stdout=stdout_bytes.decode(errors="replace"),
                stderr=stderr_bytes.decode(errors="replace"),
            )
        except TimeoutError:
            for task in background:
                task.cancel()
            with contextlib.suppress(ProcessLookupError):
                self.process.kill()
            await self.process.wait()
            for task_result in await asyncio.gather(*background, return_exceptions=True):
                if isinstance(task_result, Exception):
                    log.warning("background_task_failed", pid=self.pid, error=str(task_result))
            log.warning("runner_timeout", pid=self.pid, timeout_sec=timeout)
            outcome = RunOutcome(exit_code=self.process.returncode, timed_out=True)
        finally:
            for cleanup in self._cleanups:
                cleanup()
            self._cleanups.clear()

        log.info("runner_finished", pid=self.pid, exit_code=outcome.exit_code)
        return outcome


@runtime_checkable
class RunnerLauncher(Protocol):
    async def spawn(self, command: RunnerCommand) -> RunnerProcess: ...


class SubprocessRunnerLauncher:
    """Spawns the child runner with asyncio subprocess pipes."""

    async def spawn(self, command: RunnerCommand) -> RunnerProcess:
        argv = command.to_argv()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=command.working_directory,
            )
        except OSError as e:
            log.error("runner_spawn_failed", executable=command.java_executable, error=str(e))
            raise LaunchFailed.spawn_failed(argv, str(e)) from e
        log.info("runner_started", pid=process.pid, main_class=command.main_class)
        return RunnerProcess(process, command)
