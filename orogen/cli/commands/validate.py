"""Validate command: check a specification without generating anything."""

from pathlib import Path

import typer

from ...errors import OrogenError
from ...project import Project
from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output, build_config, report_validation


@app.command("validate")
def validate_command(
    spec_file: Path = typer.Argument(..., help="Project specification file (YAML)"),
    target: str | None = typer.Option(None, "--target", "-t", help="Target platform"),
    pkg_config_path: list[Path] = typer.Option(
        [], "--pkg-config-path", "-P", help="Extra package search directory (repeatable)"
    ),
):
    """Load a specification and check the generation preconditions.

    Exit codes: 0 = valid, 1 = specification error, 3 = file not found,
    4 = configuration error, 5 = internal error
    """
    out = Output(console=console, json_mode=get_json_mode())
    config = build_config(target=target, pkg_config_path=pkg_config_path)

    try:
        project = Project.load(spec_file, config=config)
    except (OrogenError, FileNotFoundError) as exc:
        out.exception(exc)
        raise typer.Exit(out.finish())

    result = project.validate()
    report_validation(out, result)
    out.set_data("valid", result.valid)
    if result.valid:
        out.success(
            f"{project.name} is valid ({len(project.self_tasks)} tasks, "
            f"{len(project.deployers)} deployments)"
        )
        raise typer.Exit(out.finish())
    out.error(
        f"{len(result.errors)} error(s) found",
        exit_code=ExitCode.SPECIFICATION_ERROR,
    )
    raise typer.Exit(out.finish())
