"""jlaunch run command - launch the child runner."""

import asyncio
from pathlib import Path

import click

from junitlaunch.cli.plan import print_plan
from junitlaunch.cli.utils import (
    launch_errors,
    load_cli_config,
    load_inputs,
    project_option,
    report_warnings,
    root_option,
)
from junitlaunch.core.progress import spinner, status
from junitlaunch.launch.ops import LaunchOps


@click.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@project_option
@root_option
@click.option(
    "--debug-port",
    type=int,
    default=None,
    help="Debug socket port for forked children; ignored when the run is not forked",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    spec_path: Path,
    project_path: Path,
    root: Path | None,
    debug_port: int | None,
) -> None:
    """Run the tests SPEC_PATH selects and exit with the runner's status."""
    with launch_errors():
        config = load_cli_config(ctx, root)
        spec, index, discovery = load_inputs(spec_path, project_path)
        ops = LaunchOps(index, config, discovery=discovery)
        with spinner("Running tests"):
            result = asyncio.run(ops.launch(spec, debug_port=debug_port))

    report_warnings(result.plan.warnings)
    if ctx.obj and ctx.obj.get("verbose"):
        print_plan(result.plan)
        status(" ".join(result.command.to_argv()), style="none")

    outcome = result.outcome
    if outcome.stdout:
        click.echo(outcome.stdout, nl=False)
    if outcome.stderr:
        click.echo(outcome.stderr, nl=False, err=True)

    if outcome.timed_out:
        status(f"Runner timed out after {config.launch.timeout_sec}s", style="error")
        ctx.exit(1)
    if not outcome.succeeded:
        status(f"Runner exited with code {outcome.exit_code}", style="error")
        ctx.exit(outcome.exit_code or 1)
    status("Runner finished", style="success")
