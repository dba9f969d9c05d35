"""CLI utilities."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from junitlaunch.config.loader import load_config
from junitlaunch.config.models import JLaunchConfig
from junitlaunch.core.errors import LaunchError
from junitlaunch.core.logging import configure_logging
from junitlaunch.core.progress import status
from junitlaunch.index.memory import InMemorySourceIndex, InMemoryTestDiscovery
from junitlaunch.index.project import load_project
from junitlaunch.launch.models import Specification
from junitlaunch.launch.specification import load_specification


@contextmanager
def launch_errors() -> Iterator[None]:
    """Turn LaunchError into a click failure with the error's message.

    Raises:
        click.ClickException: For any LaunchError raised in the block
    """
    try:
        yield
    except LaunchError as e:
        raise click.ClickException(str(e)) from e


def report_warnings(warnings: list[LaunchError]) -> None:
    for warning in warnings:
        status(warning.message, style="warning")


def load_cli_config(ctx: click.Context, root: Path | None) -> JLaunchConfig:
    """Load config for ``root`` and re-apply logging from it.

    The ``-v`` flag keeps DEBUG regardless of the configured level.
    """
    config = load_config(root)
    if ctx.obj and ctx.obj.get("verbose"):
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)
    return config


def load_inputs(
    spec_path: Path, project_path: Path
) -> tuple[Specification, InMemorySourceIndex, InMemoryTestDiscovery]:
    """Read a specification and the project model it runs against."""
    spec = load_specification(spec_path)
    index, discovery = load_project(project_path)
    return spec, index, discovery


project_option = click.option(
    "--project",
    "project_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML project model (modules, source roots, classes, libraries)",
)

root_option = click.option(
    "--root",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root holding .jlaunch/config.yaml (default: current directory)",
)
