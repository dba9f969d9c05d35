"""jlaunch validate command - check a run specification."""

from pathlib import Path

import click

from junitlaunch.cli.utils import launch_errors, report_warnings
from junitlaunch.core.progress import status
from junitlaunch.index.project import load_project
from junitlaunch.launch.specification import (
    load_specification,
    suggest_action_name,
    validate_specification,
)


@click.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--project",
    "project_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Project model to resolve classes, packages and modules against",
)
def validate_command(spec_path: Path, project_path: Path | None) -> None:
    """Check that SPEC_PATH describes a launchable run.

    Without --project only the stored format is checked.
    """
    with launch_errors():
        spec = load_specification(spec_path)
        name = suggest_action_name(spec) or spec.kind.value
        if project_path is None:
            status(f"{name}: well-formed {spec.kind.value} specification", style="success")
            return

        index, _ = load_project(project_path)
        validation = validate_specification(spec, index)

    report_warnings(validation.warnings)
    status(f"{name}: valid {spec.kind.value} specification", style="success")
