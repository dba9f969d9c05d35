"""junit-launch CLI - jlaunch command."""

import click

from junitlaunch.cli.plan import plan_command
from junitlaunch.cli.rerun import rerun_command
from junitlaunch.cli.run import run_command
from junitlaunch.cli.validate import validate_command
from junitlaunch.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="jlaunch")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """junit-launch - plan and launch JUnit runs."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(validate_command, name="validate")
cli.add_command(plan_command, name="plan")
cli.add_command(run_command, name="run")
cli.add_command(rerun_command, name="rerun")


if __name__ == "__main__":
    cli()
