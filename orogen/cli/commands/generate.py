"""Generate command: run the generation pipeline over a specification."""

import logging
from pathlib import Path

import typer

from ...errors import OrogenError
from ...project import Project
from ..app import app, console, get_json_mode
from ..utils import Output, build_config, setup_logging

logger = logging.getLogger(__name__)


@app.command("generate")
def generate_command(
    spec_file: Path = typer.Argument(..., help="Project specification file (YAML)"),
    target: str | None = typer.Option(
        None, "--target", "-t", help="Target platform (defaults to $OROCOS_TARGET, then gnulinux)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output directory (defaults to the specification's directory)"
    ),
    extended_states: bool = typer.Option(
        False, "--extended-states", help="Enable extended state support on every task"
    ),
    transport: list[str] = typer.Option(
        [], "--transport", help="Enable a transport (repeatable)"
    ),
    pkg_config_path: list[Path] = typer.Option(
        [], "--pkg-config-path", "-P", help="Extra package search directory (repeatable)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show generation stages"),
    debug: bool = typer.Option(False, "--debug", help="Show debug logging"),
):
    """Generate the code and build files of an oroGen project.

    Example:
        orogen generate cam.orogen.yaml --transport corba
    """
    setup_logging(console, verbose=verbose, debug=debug)
    out = Output(console=console, json_mode=get_json_mode())

    config = build_config(
        target=target,
        output=output,
        extended_states=True if extended_states else None,
        transports=transport,
        pkg_config_path=pkg_config_path,
        command_line=_command_line(target, extended_states, transport),
    )

    try:
        project = Project.load(spec_file, config=config)
        result = project.generate()
    except (OrogenError, FileNotFoundError) as exc:
        logger.debug("generation failed", exc_info=True)
        out.exception(exc)
        raise typer.Exit(out.finish())

    out.success(
        f"Generated {project.name} for {result.target}",
        **result.to_dict(),
    )
    out.table(
        "Packages",
        ["Package"],
        [[pkg] for pkg in result.package_ids],
        data_key="packages",
    )
    if result.build_dependencies:
        out.table(
            "Task library dependencies",
            ["Variable", "Package", "Relations"],
            [
                [dep.var_name, dep.pkg_name, ", ".join(dep.relations("core"))]
                for dep in result.build_dependencies
            ],
            data_key="dependency_table",
        )
    out.text(
        f"[dim]{len(result.written_files)} files written, {len(result.removed_files)} stale files removed[/dim]"
    )
    raise typer.Exit(out.finish())


def _command_line(target: str | None, extended_states: bool, transports: list[str]) -> list[str]:
    """Options recorded in the specification snapshot."""
    options = [f"--transport={t}" for t in transports]
    if target:
        options.append(f"--target={target}")
    if extended_states:
        options.append("--extended-states")
    return options
