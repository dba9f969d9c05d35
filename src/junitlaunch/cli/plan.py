"""jlaunch plan command - show what a run would execute."""

import json
from pathlib import Path

import click
from rich.markup import escape

from junitlaunch.cli.utils import (
    launch_errors,
    load_cli_config,
    load_inputs,
    project_option,
    report_warnings,
    root_option,
)
from junitlaunch.core.progress import get_console, leaf_label, pluralize, status
from junitlaunch.launch.ops import LaunchOps, LaunchPlan


def plan_to_dict(plan: LaunchPlan) -> dict[str, object]:
    return {
        "kind": plan.specification.kind.value,
        "engine": plan.engine.value if plan.engine else None,
        "fork_mode": plan.fork_plan.fork_mode.value,
        "batches": [{"name": b.name, "leaves": b.leaves} for b in plan.fork_plan.batches],
        "warnings": [w.to_dict() for w in plan.warnings],
    }


def print_plan(plan: LaunchPlan) -> None:
    console = get_console()
    engine = plan.engine.value if plan.engine else "runner default"
    status(f"Engine: {engine}")
    status(
        f"{pluralize(len(plan.leaves), 'test')} in "
        f"{pluralize(len(plan.fork_plan.batches), 'batch', 'batches')}"
    )
    for batch in plan.fork_plan.batches:
        if plan.fork_plan.per_module:
            console.print(f"  [bold]{escape(batch.name or '(no module)')}[/bold]", highlight=False)
        for leaf in batch.leaves:
            console.print(f"    {escape(leaf_label(leaf))}", highlight=False)


@click.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@project_option
@root_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def plan_command(
    ctx: click.Context,
    spec_path: Path,
    project_path: Path,
    root: Path | None,
    as_json: bool,
) -> None:
    """Enumerate the tests SPEC_PATH selects, without launching anything."""
    with launch_errors():
        config = load_cli_config(ctx, root)
        spec, index, discovery = load_inputs(spec_path, project_path)
        plan = LaunchOps(index, config, discovery=discovery).plan(spec)

    if as_json:
        click.echo(json.dumps(plan_to_dict(plan), indent=2))
        return
    report_warnings(plan.warnings)
    print_plan(plan)
