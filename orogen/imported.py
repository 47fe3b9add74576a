"""Imported projects: installed oroGen projects loaded from their description.

An ImportedProject answers the same questions as a local Project (tasks,
typekits, libraries, deployments) but generates nothing and owns no typekit.
Package lookups are delegated to the main project, so the caches are shared
by the whole import tree.
"""

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path

from .dsl import apply_document, load_spec_file, parse_spec_text
from .errors import ConfigError, SpecificationError
from .locator import PackageInfo
from .model import ProjectQueries, StaticDeployment, TaskContext
from .typesystem import ImportedTypekit, TypeRegistry, load_base_typekit
from .utils import validate_version

logger = logging.getLogger(__name__)

STANDARD_TASK_DESCRIPTIONS = ("rtt.orogen.yaml", "ocl.orogen.yaml")


class ImportedProject(ProjectQueries):
    """An installed oroGen project.

    Args:
        main: the project doing the import; None for the standard task
            descriptions shipped with oroGen
        pkg: package the description was found through
        name: name the project was requested as
    """

    kind = "imported"

    def __init__(
        self,
        main=None,
        pkg: PackageInfo | None = None,
        name: str | None = None,
        seed_standard_tasks: bool = True,
    ):
        self.main = main
        self.pkg = pkg
        self.name = name
        self._version = "0.0"
        self.orogen_project = True
        self.deffile: str | None = None
        self.extended_states: bool | None = None
        self.tasks: dict[str, TaskContext] = {}
        if seed_standard_tasks:
            self.tasks.update((t.name, t) for t in standard_tasks())
        self.self_tasks: list[TaskContext] = []
        self.registry = TypeRegistry.with_standard_types()
        self.opaque_registry = TypeRegistry()
        self.opaques = []
        self.used_typekits: list[ImportedTypekit] = []
        self.used_libraries: list[PackageInfo] = []
        self.typekit_libraries: list[PackageInfo] = []
        self.used_task_libraries: list[ImportedProject] = []
        self.deployers: list[StaticDeployment] = []
        self.enabled_transports: set[str] = set()
        self.using_typekit(load_base_typekit())

    def __repr__(self) -> str:
        return f"<ImportedProject {self.name}>"

    @classmethod
    def from_description(cls, main, pkg: PackageInfo | None, name: str, description: str | None):
        """Build the project described by the file at description.

        A package without a readable description gives an empty project.
        """
        project = cls(main, pkg, name)
        if description and Path(description).is_file():
            project.deffile = str(Path(description).resolve())
            apply_document(project, load_spec_file(description))
        else:
            logger.warning(
                "%s has no readable oroGen description (%s), assuming an empty project",
                name,
                description,
            )
        if project.name is None:
            project.name = name
        return project

    @property
    def version(self) -> str:
        return self._version

    @version.setter
    def version(self, value) -> None:
        self._version = validate_version(value)

    @property
    def include_dirs(self) -> list[str]:
        return self.pkg.include_dirs if self.pkg else []

    @property
    def target(self) -> str:
        return self.main.target if self.main else "gnulinux"

    def typekit(self, create: bool = False):
        return None

    # -- lookups, delegated to the main project --------------------------------

    def _require_main(self, what: str):
        if self.main is None:
            raise ConfigError(f"{self.name}: cannot resolve {what} outside of a project")
        return self.main

    def has_typekit(self, name: str) -> bool:
        return self.main is not None and self.main.has_typekit(name)

    def has_task_library(self, name: str) -> bool:
        return self.main is not None and self.main.has_task_library(name)

    def has_library(self, name: str) -> bool:
        return self.main is not None and self.main.has_library(name)

    # -- declarations ---------------------------------------------------------

    def using_library(self, name: str, typekit: bool = True) -> None:
        pkg = self._require_main(f"library {name}").find_library(name)
        if any(p.name == pkg.name for p in self.used_libraries):
            return
        self.used_libraries.append(pkg)
        if typekit:
            self.typekit_libraries.append(pkg)

    def using_typekit(self, typekit: str | ImportedTypekit) -> ImportedTypekit:
        name = typekit if isinstance(typekit, str) else typekit.name
        existing = next((tk for tk in self.used_typekits if tk.name == name), None)
        if existing is not None:
            return existing
        if isinstance(typekit, str):
            typekit = self._require_main(f"typekit {name}").load_typekit(name)
        registry = self.registry.merged(typekit.registry)
        opaque_registry = self.opaque_registry.merged(typekit.opaque_registry)
        self.registry, self.opaque_registry = registry, opaque_registry
        self.used_typekits.append(typekit)
        self.opaques.extend(typekit.opaques)
        return typekit

    def using_task_library(self, name: str) -> "ImportedProject":
        existing = next((lib for lib in self.used_task_libraries if lib.name == name), None)
        if existing is not None:
            return existing
        tasklib = self._require_main(f"task library {name}").load_task_library(name, importer=self.name)
        for task in tasklib.self_tasks:
            self.tasks[task.name] = task
        self.used_task_libraries.append(tasklib)
        if self.has_typekit(tasklib.name):
            self.using_typekit(tasklib.name)
        for tk in tasklib.used_typekits:
            self.using_typekit(tk)
        return tasklib

    def import_types_from(self, name: str, types: TypeRegistry | None = None) -> None:
        """Typekits are imported; headers are covered by the project's installed typekit."""
        if self.has_typekit(name):
            self.using_typekit(name)
        elif self.name and self.has_typekit(self.name):
            self.using_typekit(self.name)
        elif types is not None:
            self.registry = self.registry.merged(types)

    def task_context(self, name: str, configure=None) -> TaskContext:
        full_name = f"{self.name}::{name}" if self.name else name
        if full_name in self.tasks:
            raise SpecificationError(f"{self.name}: there is already a {name} task")
        task = TaskContext(self, full_name, superclass=self.default_task_superclass())
        if configure is not None:
            configure(task)
        self.tasks[task.name] = task
        self.self_tasks.append(task)
        return task

    def deployment(self, name: str, configure=None) -> StaticDeployment:
        deployment = StaticDeployment(self, name)
        for transport in sorted(self.enabled_transports):
            deployment.enable_transport(transport)
        if configure is not None:
            configure(deployment)
        self.deployers.append(deployment)
        return deployment

    def simple_deployment(self, name: str, task_model: str):
        deployed = []
        self.deployment(name, configure=lambda d: deployed.append(d.task(name, task_model)))
        return deployed[0]

    def static_deployment(self, configure=None) -> StaticDeployment:
        deployment = self.deployment(f"test_{self.name}", configure=configure)
        deployment.do_not_install()
        return deployment

    def type_export_policy(self, policy: str) -> None:
        """Installed projects generate nothing, so export settings are ignored."""

    def export_types(self, *names: str) -> None:
        """Installed projects generate nothing, so export settings are ignored."""

    def enable_transport(self, *names: str) -> None:
        self.enabled_transports.update(names)
        for deployment in self.deployers:
            for name in names:
                deployment.enable_transport(name)


# =============================================================================
# Standard tasks
# =============================================================================


@lru_cache(maxsize=None)
def standard_tasks() -> tuple[TaskContext, ...]:
    """Task models always available: the runtime's and the OCL components."""
    result: list[TaskContext] = []
    data = resources.files("orogen") / "data"
    for filename in STANDARD_TASK_DESCRIPTIONS:
        project = ImportedProject(seed_standard_tasks=False)
        project.orogen_project = False
        project.tasks.update((t.name, t) for t in result)
        apply_document(project, parse_spec_text((data / filename).read_text(), source=filename))
        result.extend(project.self_tasks)
    return tuple(result)
