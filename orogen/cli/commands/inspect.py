"""Inspect command: show the resolved model of a project."""

from pathlib import Path

import typer

from ...errors import OrogenError
from ...project import Project
from ..app import app, console, get_json_mode
from ..utils import Output, build_config


@app.command("inspect")
def inspect_command(
    spec_file: Path = typer.Argument(..., help="Project specification file (YAML)"),
    target: str | None = typer.Option(None, "--target", "-t", help="Target platform"),
    pkg_config_path: list[Path] = typer.Option(
        [], "--pkg-config-path", "-P", help="Extra package search directory (repeatable)"
    ),
):
    """Show tasks, typekits, libraries and deployments of a project."""
    out = Output(console=console, json_mode=get_json_mode())
    config = build_config(target=target, pkg_config_path=pkg_config_path)

    try:
        project = Project.load(spec_file, config=config)
        dependencies = project.tasklib_dependencies()
    except (OrogenError, FileNotFoundError) as exc:
        out.exception(exc)
        raise typer.Exit(out.finish())

    summary = project.summary()
    out.set_data("project", summary)
    out.text(f"[bold]{project.name}[/bold] {project.version} (target {project.target})")
    out.blank()

    out.table(
        "Tasks",
        ["Name", "Superclass", "Ports", "Properties", "Operations"],
        [
            [
                task.name,
                task.superclass.name if task.superclass else "",
                str(len(task.ports)),
                str(len(task.properties)),
                str(len(task.operations)),
            ]
            for task in project.self_tasks
        ],
    )
    out.table(
        "Typekits",
        ["Name", "Types", "Virtual"],
        [
            [tk.name, str(len(tk.registry)), "yes" if tk.virtual else "no"]
            for tk in project.used_typekits
        ],
    )
    typekit = project.typekit()
    if typekit is not None:
        out.table(
            "Own typekit",
            ["Type", "Exported"],
            [
                [name, "yes" if exported else "no"]
                for name, exported in sorted(typekit.typelist_entries().items())
            ],
            data_key="own_typekit",
        )
    out.table(
        "Task libraries",
        ["Name", "Tasks"],
        [[lib.name, str(len(lib.self_tasks))] for lib in project.used_task_libraries],
    )
    out.table(
        "Deployments",
        ["Name", "Tasks", "Installed"],
        [
            [d.name, ", ".join(t.name for t in d.task_activities), "yes" if d.install else "no"]
            for d in project.deployers
        ],
    )
    out.table(
        "Build dependencies",
        ["Variable", "Package", "Relations"],
        [[dep.var_name, dep.pkg_name, ", ".join(dep.relations("core"))] for dep in dependencies],
    )
    raise typer.Exit(out.finish())
