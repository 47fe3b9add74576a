"""The generation pipeline.

generate() runs a fixed sequence of stages over the resolved project. Each
stage either fails (aborting the run, files already written stay) or emits
files through the emitter. The feedback stage renders the task state
enumerations and loads them into the project's own typekit before the
typekit stage runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from ..core.models import BuildDependency
from ..errors import SpecificationError
from ..typesystem import TypeRegistry
from ..utils import validate_project_name
from .build_system import generate_build_system
from .emitter import Emitter
from .renderer import Renderer

logger = logging.getLogger(__name__)


# =============================================================================
# Context and result
# =============================================================================


@dataclass
class GenerationContext:
    """State shared by the stages of one run."""

    project: Any
    target: str
    renderer: Renderer
    emitter: Emitter
    package_ids: list[str] = field(default_factory=list)
    state_header: Path | None = None
    removed_files: list[Path] = field(default_factory=list)
    _tasklib_dependencies: list[BuildDependency] | None = None

    def tasklib_dependencies(self) -> list[BuildDependency]:
        """Task library dependencies, computed once the typekit is final."""
        if self._tasklib_dependencies is None:
            self._tasklib_dependencies = self.project.tasklib_dependencies()
        return self._tasklib_dependencies


@dataclass
class GenerationResult:
    target: str
    package_ids: list[str]
    build_dependencies: list[BuildDependency]
    written_files: list[Path]
    removed_files: list[Path]
    stages: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "package_ids": self.package_ids,
            "build_dependencies": [
                {
                    "var_name": dep.var_name,
                    "pkg_name": dep.pkg_name,
                    "contexts": [list(pair) for pair in sorted(dep.contexts)],
                }
                for dep in self.build_dependencies
            ],
            "written_files": [str(p) for p in self.written_files],
            "removed_files": [str(p) for p in self.removed_files],
            "stages": self.stages,
        }


@dataclass(frozen=True)
class GenerationStage:
    name: str
    description: str
    run: Callable[[GenerationContext], None]


# =============================================================================
# Stages
# =============================================================================


def check_preconditions(ctx: GenerationContext) -> None:
    project = ctx.project
    validate_project_name(project.name)
    if not project.deffile:
        raise SpecificationError("there is no specification file for this project, cannot generate")
    if not Path(project.deffile).is_file():
        logger.warning("%s does not exist, assuming that we are generating a stub project", project.deffile)


def write_spec_snapshot(ctx: GenerationContext) -> None:
    """Install-side copy of the specification, with the run's options folded in."""
    project = ctx.project
    basename = Path(project.deffile).name
    if Path(project.deffile).is_file():
        text = yaml.safe_dump(project.to_spec(), default_flow_style=False, sort_keys=False)
        ctx.emitter.save_automatic(basename, text)
    # Touched in any case for up-to-date checks
    ctx.emitter.touch_automatic(basename)


def remove_install_symlinks(ctx: GenerationContext) -> None:
    """Remove the symlink-based fake install directory of older generations."""
    fake_install_dir = ctx.emitter.automatic_dir / ctx.project.name
    if not fake_install_dir.is_symlink():
        return
    fake_install_dir.unlink()
    tasks_dir = ctx.emitter.automatic_dir / "tasks"
    if tasks_dir.is_dir():
        for path in tasks_dir.iterdir():
            if path.is_symlink():
                path.unlink()
    logger.info("Removed symlinked install directory %s", fake_install_dir)


def feed_back_state_types(ctx: GenerationContext) -> None:
    """Generate the state enumerations and load them into the project's typekit."""
    project = ctx.project
    tasks = [t for t in project.self_tasks if t.extended_state_support_enabled]
    if not tasks:
        return
    text = ctx.renderer.render("tasks/TaskStates.hpp", project=project, tasks=tasks)
    header = ctx.emitter.save_automatic(f"{project.name}TaskStates.hpp", text)
    state_types = TypeRegistry(t.state_type() for t in tasks)
    project.typekit(create=True).load(str(header), state_types)
    ctx.state_header = header
    logger.info("Loaded %d state enumerations from %s", len(state_types), header.name)


def generate_typekit(ctx: GenerationContext) -> None:
    typekit = ctx.project.typekit()
    if typekit is None:
        return
    typekit.generate(ctx)
    ctx.package_ids.append(f"{ctx.project.name}-typekit-{ctx.target}")


def write_project_package(ctx: GenerationContext) -> None:
    project = ctx.project
    pc = ctx.renderer.render("project.pc", project=project, target=ctx.target)
    ctx.emitter.save_automatic(f"orogen-project-{project.name}.pc.in", pc)
    ctx.package_ids.append(f"orogen-project-{project.name}")


def generate_task_library(ctx: GenerationContext) -> None:
    project = ctx.project
    if not project.self_tasks:
        return
    for task in project.self_tasks:
        task.generate(ctx)
    bindings = dict(
        project=project,
        target=ctx.target,
        dependencies=ctx.tasklib_dependencies(),
        used_task_libraries=project.tasklib_used_task_libraries(),
    )
    deployer = ctx.renderer.render("tasks/DeployerComponent.cpp", **bindings)
    ctx.emitter.save_automatic("tasks", "DeployerComponent.cpp", deployer)
    pc = ctx.renderer.render("tasks/tasks.pc", **bindings)
    ctx.emitter.save_automatic("tasks", f"{project.name}-tasks.pc.in", pc)
    ctx.package_ids.append(f"{project.name}-tasks-{ctx.target}")


def write_ancillary_files(ctx: GenerationContext) -> None:
    project = ctx.project
    ctx.emitter.save_user(".gitignore", ctx.renderer.render("gitignore", project=project))
    ctx.emitter.save_user("Doxyfile.in", ctx.renderer.render("Doxyfile.in", project=project))


def generate_deployments(ctx: GenerationContext) -> None:
    for deployment in ctx.project.deployers:
        deployment.generate(ctx)
        if deployment.install:
            ctx.package_ids.append(f"orogen-{deployment.name}")


def cleanup_automatic_area(ctx: GenerationContext) -> None:
    ctx.removed_files.extend(ctx.emitter.cleanup_automatic())


STAGES: tuple[GenerationStage, ...] = (
    GenerationStage("preconditions", "Checking project name and specification file", check_preconditions),
    GenerationStage("spec_snapshot", "Saving the specification snapshot", write_spec_snapshot),
    GenerationStage("install_symlinks", "Removing obsolete install symlinks", remove_install_symlinks),
    GenerationStage("state_feedback", "Loading task state enumerations", feed_back_state_types),
    GenerationStage("typekit", "Generating the typekit", generate_typekit),
    GenerationStage("project_package", "Writing project package metadata", write_project_package),
    GenerationStage("task_library", "Generating the task library", generate_task_library),
    GenerationStage("ancillary", "Writing ancillary files", write_ancillary_files),
    GenerationStage("deployments", "Generating deployments", generate_deployments),
    GenerationStage("build_system", "Generating the build system", generate_build_system),
    GenerationStage("cleanup", "Cleaning up the automatic area", cleanup_automatic_area),
)


# =============================================================================
# Pipeline
# =============================================================================


class GenerationPipeline:
    """Runs STAGES in order over one project.

    The project's target must already be frozen (Project.generate does it).
    """

    def __init__(self, project, renderer: Renderer | None = None, emitter: Emitter | None = None):
        self.project = project
        config = project.config
        if emitter is None:
            base_dir = config.output_dir or project.base_dir or Path.cwd()
            emitter = Emitter(base_dir, automatic_area=config.automatic_area)
        self.renderer = renderer or Renderer()
        self.emitter = emitter
        self.stages = list(STAGES)

    def run(self) -> GenerationResult:
        ctx = GenerationContext(
            project=self.project,
            target=self.project.target,
            renderer=self.renderer,
            emitter=self.emitter,
        )
        completed: list[str] = []
        total = len(self.stages)
        for index, stage in enumerate(self.stages, start=1):
            logger.info("[%d/%d] %s", index, total, stage.description)
            stage.run(ctx)
            completed.append(stage.name)

        return GenerationResult(
            target=ctx.target,
            package_ids=list(ctx.package_ids),
            build_dependencies=ctx.tasklib_dependencies(),
            written_files=list(self.emitter.written),
            removed_files=list(ctx.removed_files),
            stages=completed,
        )
