"""Deployment models: executables instantiating task contexts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..core.models import BuildDependency, core_dependency
from ..errors import SpecificationError
from ..utils import verify_valid_identifier
from .tasks import TaskContext

if TYPE_CHECKING:
    from ..generation.pipeline import GenerationContext

logger = logging.getLogger(__name__)


class DeployedTask:
    """One task instance in a deployment."""

    def __init__(self, deployment: "StaticDeployment", name: str, model: TaskContext):
        self.deployment = deployment
        self.name = name
        self.model = model
        self.period: float | None = None
        self.priority: int | None = None

    def __repr__(self) -> str:
        return f"<DeployedTask {self.name}:{self.model.name}>"

    def periodic(self, period: float) -> "DeployedTask":
        if period <= 0:
            raise SpecificationError(f"period of {self.name} must be positive, got {period}")
        self.period = float(period)
        return self

    def to_spec(self) -> dict:
        spec: dict[str, Any] = {"name": self.name, "model": self.model.name}
        if self.period is not None:
            spec["period"] = self.period
        if self.priority is not None:
            spec["priority"] = self.priority
        return spec


class StaticDeployment:
    def __init__(self, project, name: str):
        self.project = project
        self.name = verify_valid_identifier(name)
        self.task_activities: list[DeployedTask] = []
        self.transports: set[str] = set()
        self.install = True

    def __repr__(self) -> str:
        return f"<StaticDeployment {self.name}>"

    def do_not_install(self) -> None:
        self.install = False

    def enable_transport(self, name: str) -> None:
        self.transports.add(name)

    def task(self, name: str, model: str | TaskContext) -> DeployedTask:
        """Instantiate a task of the given model."""
        verify_valid_identifier(name)
        if any(t.name == name for t in self.task_activities):
            raise SpecificationError(f"deployment {self.name} already has a task called '{name}'")
        task_model = self.project.find_task_context(model)
        deployed = DeployedTask(self, name, task_model)
        self.task_activities.append(deployed)
        return deployed

    def find_task(self, name: str) -> DeployedTask | None:
        return next((t for t in self.task_activities if t.name == name), None)

    def used_task_libraries(self) -> list:
        """Imported projects whose task library holds one of the deployed models."""
        found: dict[str, Any] = {}
        for task in self.task_activities:
            owner = task.model.project
            if owner.kind == "imported" and owner.orogen_project:
                found.setdefault(owner.name, owner)
        return sorted(found.values(), key=lambda p: p.name)

    def used_typekits(self) -> list:
        found: dict[str, Any] = {}
        for task in self.task_activities:
            for tk in task.model.used_typekits():
                found.setdefault(tk.name, tk)
        return sorted(found.values(), key=lambda tk: tk.name)

    def dependencies(self) -> list[BuildDependency]:
        target = self.project.target
        deps = [core_dependency("OrocosRTT", f"orocos-rtt-{target}")]
        if any(t.model.project is self.project for t in self.task_activities):
            name = self.project.name
            deps.append(core_dependency(f"{name}_TASKLIB", f"{name}-tasks-{target}"))
        for lib in self.used_task_libraries():
            deps.append(core_dependency(f"{lib.name}_TASKLIB", f"{lib.name}-tasks-{target}"))
        for tk in self.used_typekits():
            if tk.virtual:
                continue
            deps.append(core_dependency(f"{tk.name}_TYPEKIT", f"{tk.name}-typekit-{target}"))
            for transport in sorted(self.transports):
                deps.append(
                    core_dependency(
                        f"{tk.name}_TRANSPORT_{transport.upper()}",
                        f"{tk.name}-transport-{transport}-{target}",
                    )
                )
        return deps

    def to_spec(self) -> dict:
        spec: dict[str, Any] = {"name": self.name}
        if self.task_activities:
            spec["tasks"] = [t.to_spec() for t in self.task_activities]
        if not self.install:
            spec["install"] = False
        return spec

    def generate(self, ctx: "GenerationContext") -> None:
        bindings = dict(
            project=self.project,
            deployment=self,
            target=ctx.target,
            dependencies=self.dependencies(),
        )
        main = ctx.renderer.render("deployment/main.cpp", **bindings)
        ctx.emitter.save_automatic(f"main-{self.name}.cpp", main)
        pc = ctx.renderer.render("deployment/deployment.pc", **bindings)
        ctx.emitter.save_automatic(f"orogen-{self.name}.pc.in", pc)
