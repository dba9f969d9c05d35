"""jlaunch rerun command - build a specification for failed tests."""

from pathlib import Path

import click
import yaml

from junitlaunch.cli.utils import launch_errors, load_inputs, project_option
from junitlaunch.core.progress import pluralize, status
from junitlaunch.launch.ops import LaunchOps
from junitlaunch.launch.reports import load_reports
from junitlaunch.launch.specification import dump_specification, save_specification


@click.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@project_option
@click.option(
    "--report",
    "report_paths",
    multiple=True,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JUnit XML report of the previous run (repeatable)",
)
@click.option(
    "--output",
    "output_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the rerun specification (default: stdout)",
)
def rerun_command(
    spec_path: Path,
    project_path: Path,
    report_paths: tuple[Path, ...],
    output_path: Path | None,
) -> None:
    """Write a specification that reruns the failures in the given reports."""
    with launch_errors():
        spec, index, discovery = load_inputs(spec_path, project_path)
        reports = load_reports(list(report_paths))
        rerun = LaunchOps(index, discovery=discovery).rerun(spec, reports)

    if rerun is None:
        status("No failed tests to rerun", style="warning")
        return

    count = len(rerun.unique_ids or rerun.patterns)
    status(f"Rerunning {pluralize(count, 'failed test')}", style="success")
    if output_path is None:
        click.echo(yaml.safe_dump(dump_specification(rerun), sort_keys=False), nl=False)
    else:
        save_specification(rerun, output_path)
        status(f"Wrote {output_path}")
