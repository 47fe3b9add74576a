"""The Project aggregate: one oroGen project being composed and generated.

A Project is built empty (standard tasks and the runtime's base typekit
pre-loaded), populated by applying a specification's declarations, then
consumed once by generate().

Resolution of installed projects and typekits goes through the package
locator and is memoized per name for the life of the Project. Imported
projects resolve their own dependencies through the same caches.

Usage:
    config = GenerationConfig.load()
    project = Project.load("cam.orogen.yaml", config=config)
    result = project.generate()
"""

import logging
from pathlib import Path
from typing import Callable

import networkx as nx

from .config import GenerationConfig
from .core.models import (
    BuildDependency,
    ValidationResult,
    core_dependency,
    dedupe_build_dependencies,
)
from .dsl import apply_document, load_spec_file
from .errors import (
    CircularImportError,
    ConfigError,
    DuplicateTaskError,
    InternalError,
    OrogenError,
    PackageNotFoundError,
    SpecificationError,
)
from .imported import ImportedProject, standard_tasks
from .locator import PackageInfo, PackageLocator, PkgConfigLocator
from .model import DeployedTask, ProjectQueries, StaticDeployment, TaskContext
from .typesystem import (
    HeaderImporter,
    ImportedTypekit,
    NullHeaderImporter,
    TypeRegistry,
    Typekit,
    load_base_typekit,
)
from .utils import (
    describe_cycle,
    is_valid_project_name,
    project_node,
    reachable,
    typekit_node,
    node_name,
    validate_version,
    verify_valid_identifier,
)

logger = logging.getLogger(__name__)

UNNAMED = "<unnamed>"


class Project(ProjectQueries):
    """A local oroGen project.

    Args:
        config: settings of this run; a default GenerationConfig if omitted
        locator: resolves package names; a PkgConfigLocator built from config
            if omitted
        header_importer: extracts types from headers given to
            import_types_from without inline definitions
    """

    kind = "local"

    def __init__(
        self,
        config: GenerationConfig | None = None,
        locator: PackageLocator | None = None,
        header_importer: HeaderImporter | None = None,
    ):
        self.config = config or GenerationConfig()
        self.locator = locator or PkgConfigLocator.from_config(self.config)
        self.header_importer = header_importer or NullHeaderImporter()

        self._name: str | None = None
        self._version = "0.0"
        self._deffile: str | None = None
        self._target: str | None = None
        self.extended_states: bool | None = None
        self.orogen_project = True

        self.tasks: dict[str, TaskContext] = {t.name: t for t in standard_tasks()}
        self.self_tasks: list[TaskContext] = []
        self.used_typekits: list[ImportedTypekit] = []
        self.used_libraries: list[PackageInfo] = []
        self.typekit_libraries: list[PackageInfo] = []
        self.used_task_libraries: list[ImportedProject] = []
        self.deployers: list[StaticDeployment] = []
        self.enabled_transports: set[str] = set()
        self._typekit: Typekit | None = None

        # Memoization, never repopulated for a given name
        self._known_projects: dict[str, tuple[PackageInfo, str | None]] = {}
        self._known_typekits: dict[str, tuple[PackageInfo, str, str] | None] = {}
        self.loaded_orogen_projects: dict[str, ImportedProject] = {}
        self.loaded_typekits: dict[str, ImportedTypekit] = {}

        # Names whose resolution is in progress
        self._resolving: set[str] = set()
        self.dependency_graph = nx.DiGraph()

        self.registry = TypeRegistry.with_standard_types()
        self.opaque_registry = TypeRegistry()
        self.opaques = []
        self.using_typekit(load_base_typekit())

        if self.config.extended_states:
            self.extended_states = True
        for transport in self.config.transports:
            self.enable_transport(transport)

    def __repr__(self) -> str:
        return f"<Project {self._name or UNNAMED}>"

    @classmethod
    def load(
        cls,
        path: Path | str,
        config: GenerationConfig | None = None,
        locator: PackageLocator | None = None,
        header_importer: HeaderImporter | None = None,
    ) -> "Project":
        """Create a project from a specification file."""
        project = cls(config=config, locator=locator, header_importer=header_importer)
        project.deffile = str(Path(path).resolve())
        apply_document(project, load_spec_file(path))
        return project

    # =========================================================================
    # Attributes
    # =========================================================================

    @property
    def name(self) -> str | None:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        # Validated by generate(), so a provisional name may be set first
        if not isinstance(value, str):
            raise SpecificationError(f"name should be a string, got {value!r}")
        self._name = value
        if self._typekit is not None and not self._typekit.name:
            self._typekit.name = value

    @property
    def version(self) -> str:
        return self._version

    @version.setter
    def version(self, value) -> None:
        self._version = validate_version(value)
        if self._typekit is not None:
            self._typekit.version = self._version

    @property
    def deffile(self) -> str | None:
        """Absolute path of the specification file."""
        return self._deffile

    @deffile.setter
    def deffile(self, path: str | None) -> None:
        self._deffile = str(Path(path).resolve()) if path else None
        if self._typekit is not None:
            self._typekit.base_dir = self.base_dir

    definition_path = deffile

    @property
    def base_dir(self) -> Path | None:
        return Path(self._deffile).parent if self._deffile else None

    @property
    def target(self) -> str:
        """Target platform; frozen for the duration of generate()."""
        if self._target is not None:
            return self._target
        return self.config.resolve_target()

    def is_linux(self) -> bool:
        return self.target == "gnulinux"

    def is_xenomai(self) -> bool:
        return self.target == "xenomai"

    @property
    def extended_states_enabled(self) -> bool:
        if self.extended_states is None:
            return self.config.extended_states
        return self.extended_states

    def extended_state_support(self) -> bool:
        return any(t.extended_state_support_enabled for t in self.self_tasks)

    @property
    def _node(self) -> str:
        return project_node(self._name or UNNAMED)

    # =========================================================================
    # Package lookups
    # =========================================================================

    def find_library(self, name: str) -> PackageInfo:
        try:
            return self.locator.locate(name)
        except PackageNotFoundError as exc:
            raise ConfigError(f"no library named '{name}' is available") from exc

    def has_library(self, name: str) -> bool:
        return self.locator.has(name)

    def orogen_project_description(self, name: str) -> tuple[PackageInfo, str | None]:
        """Return (package, description path) of the oroGen project name.

        Tried as orogen-project-<name>, then as <name>-tasks-<target>.
        """
        if name in self._known_projects:
            logger.debug("Project description cache hit: %s", name)
            return self._known_projects[name]
        try:
            try:
                pkg = self.locator.locate(f"orogen-project-{name}")
            except PackageNotFoundError:
                pkg = self.locator.locate(f"{name}-tasks-{self.target}")
        except PackageNotFoundError as exc:
            raise ConfigError(f"no task library named '{name}' is available") from exc
        logger.info("Found oroGen project %s (%s)", name, pkg.path)
        self._known_projects[name] = (pkg, pkg.deffile)
        return self._known_projects[name]

    def orogen_typekit_description(self, name: str) -> tuple[PackageInfo, str, str]:
        """Return (package, registry text, typelist text) of the typekit name."""
        if name in self._known_typekits:
            cached = self._known_typekits[name]
            if cached is None:
                raise ConfigError(f"no typekit named '{name}' is available")
            return cached
        try:
            pkg = self.locator.locate(f"{name}-typekit-{self.target}")
        except PackageNotFoundError as exc:
            self._known_typekits[name] = None
            raise ConfigError(f"no typekit named '{name}' is available") from exc

        if not pkg.type_registry:
            raise InternalError(f"typekit package {pkg.name} does not define type_registry")
        registry_path = Path(pkg.type_registry)
        typelist_path = registry_path.parent / f"{name}.typelist"
        try:
            registry_text = registry_path.read_text()
            typelist_text = typelist_path.read_text() if typelist_path.is_file() else ""
        except OSError as exc:
            raise InternalError(f"cannot read the registry of typekit {name}: {exc}") from exc
        logger.info("Found typekit %s (%s)", name, registry_path)
        self._known_typekits[name] = (pkg, registry_text, typelist_text)
        return self._known_typekits[name]

    def has_typekit(self, name: str) -> bool:
        try:
            self.orogen_typekit_description(name)
        except ConfigError:
            return False
        except InternalError as exc:
            logger.warning("Ignoring typekit %s: %s", name, exc)
            return False
        return True

    def has_task_library(self, name: str) -> bool:
        try:
            self.orogen_project_description(name)
        except ConfigError:
            return False
        except InternalError as exc:
            logger.warning("Ignoring task library %s: %s", name, exc)
            return False
        return True

    # =========================================================================
    # Resolution
    # =========================================================================

    def load_typekit(self, name: str) -> ImportedTypekit:
        if name in self.loaded_typekits:
            return self.loaded_typekits[name]
        pkg, registry_text, typelist_text = self.orogen_typekit_description(name)
        typekit = ImportedTypekit.from_raw_data(name, pkg, registry_text, typelist_text)
        self.loaded_typekits[name] = typekit
        return typekit

    def load_orogen_project(self, name: str, importer: str | None = None) -> ImportedProject:
        """Resolve the installed oroGen project name.

        Raises:
            ConfigError: if no such project is installed
            CircularImportError: if name is already being resolved
            InternalError: if its package description is broken
        """
        source = project_node(importer) if importer else self._node
        if name in self.loaded_orogen_projects:
            self.dependency_graph.add_edge(source, project_node(name))
            return self.loaded_orogen_projects[name]

        if name in self._resolving:
            self.dependency_graph.add_edge(source, project_node(name))
            raise CircularImportError(describe_cycle(self.dependency_graph, project_node(name)))

        pkg, description = self.orogen_project_description(name)
        self._resolving.add(name)
        try:
            self.dependency_graph.add_edge(source, project_node(name))
            project = ImportedProject.from_description(self, pkg, name, description)
        finally:
            self._resolving.discard(name)
        self.loaded_orogen_projects[name] = project
        return project

    def load_task_library(self, name: str, importer: str | None = None) -> ImportedProject:
        tasklib = self.load_orogen_project(name, importer=importer)
        if not tasklib.self_tasks:
            raise ConfigError(f"{name} is an oroGen project, but it defines no task library")
        return tasklib

    def load_orogen_deployment(self, name: str) -> StaticDeployment:
        try:
            pkg = self.locator.locate(f"orogen-{name}")
        except PackageNotFoundError as exc:
            raise ConfigError(f"there is no deployment called '{name}'") from exc
        if not pkg.project_name:
            raise InternalError(f"deployment package {pkg.name} does not name its project")
        tasklib = self.load_orogen_project(pkg.project_name)
        deployment = next((d for d in tasklib.deployers if d.name == name), None)
        if deployment is None:
            candidates = ", ".join(d.name for d in tasklib.deployers) or "none"
            raise InternalError(
                f"cannot find the deployment called {name} in {tasklib.name}. "
                f"Candidates were {candidates}"
            )
        return deployment

    def transitive_dependencies(self, name: str | None = None) -> list[str]:
        """Names of all projects and typekits reachable from name (default: self)."""
        start = project_node(name) if name else self._node
        return sorted(node_name(n) for n in reachable(self.dependency_graph, start))

    # =========================================================================
    # Declarations
    # =========================================================================

    def using_library(self, name: str, typekit: bool = True) -> "Project":
        """Build-depend on the library name, linking it into the typekit unless typekit=False."""
        pkg = self.find_library(name)
        if any(p.name == pkg.name for p in self.used_libraries):
            return self
        self.used_libraries.append(pkg)
        if typekit:
            self.typekit_libraries.append(pkg)
        if self._typekit is not None:
            self._typekit.using_library(pkg, typekit)
        return self

    def using_typekit(self, typekit: str | ImportedTypekit) -> ImportedTypekit:
        """Import an installed typekit, by name or handle. Idempotent per name."""
        name = typekit if isinstance(typekit, str) else typekit.name
        existing = next((tk for tk in self.used_typekits if tk.name == name), None)
        if existing is not None:
            return existing
        if isinstance(typekit, str):
            typekit = self.load_typekit(typekit)

        # All merges are computed before anything is mutated
        registry = self.registry.merged(typekit.registry)
        opaque_registry = self.opaque_registry.merged(typekit.opaque_registry)
        if self._typekit is not None:
            self._typekit.using_typekit(typekit)
        self.registry = registry
        self.opaque_registry = opaque_registry
        self.used_typekits.append(typekit)
        self.opaques.extend(typekit.opaques)
        self.dependency_graph.add_edge(self._node, typekit_node(typekit.name))
        logger.debug("Using typekit %s (%d types)", typekit.name, len(typekit.registry))
        return typekit

    def using_task_library(self, name: str) -> ImportedProject:
        """Use the task contexts defined by the installed project name."""
        existing = next((lib for lib in self.used_task_libraries if lib.name == name), None)
        if existing is not None:
            return existing

        tasklib = self.load_task_library(name)
        for task in tasklib.self_tasks:
            self.tasks[task.name] = task
        self.used_task_libraries.append(tasklib)
        if self._typekit is not None:
            self._typekit.include_dirs.update(tasklib.include_dirs)

        if self.has_typekit(tasklib.name):
            self.using_typekit(tasklib.name)
        for tk in tasklib.used_typekits:
            self.using_typekit(tk)
        logger.info("Using task library %s (%d tasks)", name, len(tasklib.self_tasks))
        return tasklib

    def import_types_from(self, name: str, types: TypeRegistry | None = None) -> None:
        """Import the typekit name, or define the types of header name in our own typekit."""
        if self.has_typekit(name):
            self.using_typekit(name)
        else:
            self.typekit(create=True).load(name, types)

    def register_types(self, types: TypeRegistry) -> None:
        """Merge types defined by our own typekit into the project registry."""
        self.registry = self.registry.merged(types)

    def typekit(self, create: bool = False) -> Typekit | None:
        """The project's own typekit, created on demand when create is true."""
        if create and self._typekit is None:
            typekit = Typekit(self, name=self._name, version=self._version)
            typekit.base_dir = self.base_dir
            for transport in sorted(self.enabled_transports):
                typekit.enable_plugin(transport)
            for tasklib in self.used_task_libraries:
                typekit.include_dirs.update(tasklib.include_dirs)
            for pkg in self.used_libraries:
                typekit.using_library(pkg, any(p.name == pkg.name for p in self.typekit_libraries))
            for tk in self.used_typekits:
                typekit.using_typekit(tk)
            self._typekit = typekit
        return self._typekit

    def type_export_policy(self, policy: str) -> None:
        if self._typekit is None:
            raise ConfigError(
                "using type_export_policy here makes no sense since no new types are defined in this project"
            )
        self._typekit.type_export_policy(policy)

    def export_types(self, *names: str) -> None:
        if self._typekit is None:
            raise ConfigError(
                "using export_types here makes no sense since no new types are defined in this project"
            )
        self._typekit.export_types(*names)

    def enable_transport(self, *names: str) -> None:
        for name in names:
            if self._typekit is not None:
                self._typekit.enable_plugin(name)
            for deployment in self.deployers:
                deployment.enable_transport(name)
        self.enabled_transports.update(names)

    def task_context(self, name: str, configure: Callable[[TaskContext], None] | None = None) -> TaskContext:
        """Define the task context <project>::<name>.

        Raises:
            SpecificationError: for an invalid name or a name equal to the project's
            DuplicateTaskError: if a task or a type namespace is already called name
        """
        if name == self._name:
            raise SpecificationError("a task cannot have the same name as the project")
        verify_valid_identifier(name)
        if self._typekit is not None:
            self._typekit.perform_pending_loads()
        return self.external_task_context(name, configure)

    def external_task_context(self, name: str, configure: Callable[[TaskContext], None] | None = None) -> TaskContext:
        if self.has_task_context(name):
            raise DuplicateTaskError(f"there is already a {name} task")
        if self.has_namespace(name):
            raise DuplicateTaskError(
                f"there is already a namespace called {name}, this is not supported by orogen"
            )
        task = TaskContext(self, f"{self._name}::{name}", superclass=self.default_task_superclass())
        if configure is not None:
            configure(task)
        if self.extended_states_enabled:
            task.extended_state_support()
        self.tasks[task.name] = task
        self.self_tasks.append(task)
        return task

    def deployment(self, name: str, configure: Callable[[StaticDeployment], None] | None = None) -> StaticDeployment:
        """Define a deployment, i.e. an executable instantiating tasks."""
        if self._typekit is not None:
            self._typekit.perform_pending_loads()
        if self.has_deployment(name):
            raise SpecificationError(
                f"there is already a deployment named '{name}' in this oroGen project"
            )
        deployment = StaticDeployment(self, name)
        for transport in sorted(self.enabled_transports):
            deployment.enable_transport(transport)
        if configure is not None:
            configure(deployment)
        self.deployers.append(deployment)
        return deployment

    def simple_deployment(self, name: str, task_model: str | TaskContext) -> DeployedTask:
        """Deployment called name with one task of task_model, also called name."""
        deployed: list[DeployedTask] = []
        self.deployment(name, configure=lambda d: deployed.append(d.task(name, task_model)))
        return deployed[0]

    def static_deployment(self, configure: Callable[[StaticDeployment], None] | None = None) -> StaticDeployment:
        logger.warning("static_deployment is deprecated, use deployment(name) instead")
        logger.warning(
            "static_deployment now generates a deployment called test_%s that is *not* part of the installation",
            self._name,
        )
        deployment = self.deployment(f"test_{self._name}", configure=configure)
        deployment.do_not_install()
        return deployment

    # =========================================================================
    # Build dependencies
    # =========================================================================

    def tasklib_used_task_libraries(self) -> list[ImportedProject]:
        """Task libraries our own task library depends on, sorted by name."""
        found: dict[str, ImportedProject] = {}
        for task in self.self_tasks:
            for lib in task.used_task_libraries():
                found.setdefault(lib.name, lib)
        return [found[name] for name in sorted(found)]

    def tasklib_dependencies(self) -> list[BuildDependency]:
        """Build dependencies of the generated task library, sorted by variable name."""
        target = self.target
        typekit_names = {
            tk.name
            for task in self.self_tasks
            for tk in task.used_typekits()
            if not tk.virtual
        }
        deps = [
            core_dependency(f"{name}_TYPEKIT", f"{name}-typekit-{target}")
            for name in typekit_names
        ]
        deps.extend(core_dependency(pkg.name, pkg.name) for pkg in self.used_libraries)
        deps.extend(
            core_dependency(f"{lib.name}_TASKLIB", f"{lib.name}-tasks-{target}")
            for lib in self.tasklib_used_task_libraries()
        )

        if self._typekit is not None:
            # Typekit link requirements stay internal to the typekit library
            known = {dep.var_name for dep in deps}
            for dep in self._typekit.dependencies():
                if dep.has_context("core") and dep.var_name not in known:
                    deps.append(
                        BuildDependency(var_name=dep.var_name, pkg_name=dep.pkg_name).in_context(
                            "core", "include"
                        )
                    )
        return dedupe_build_dependencies(deps)

    compute_task_library_dependencies = tasklib_dependencies

    # =========================================================================
    # Validation, inspection and generation
    # =========================================================================

    def validate(self) -> ValidationResult:
        """Check generation preconditions without writing anything."""
        result = ValidationResult()
        if not self._name:
            result.add_error("name", "project", "you must set a name for this project")
        elif not is_valid_project_name(self._name):
            result.add_error(
                "name",
                "project",
                f"invalid name '{self._name}'",
                suggestion="names must be all lowercase, can contain alphanumeric "
                "characters and underscores and start with a letter",
            )
        if not self._deffile:
            result.add_error("deffile", "project", "there is no specification file for this project")
        elif not Path(self._deffile).is_file():
            result.add_warning("deffile", "project", f"{self._deffile} does not exist, generating a stub project")

        if self._typekit is not None:
            try:
                self._typekit.perform_pending_loads()
                self._typekit.interface_types()
            except OrogenError as exc:
                result.add_error("typekit", self._typekit.name or UNNAMED, str(exc))
        elif self.enabled_transports:
            result.add_warning(
                "transport",
                "project",
                f"transports {', '.join(sorted(self.enabled_transports))} are enabled but this project defines no typekit",
            )
        if not self.self_tasks and self._typekit is None and not self.deployers:
            result.add_warning("content", "project", "this project defines no tasks, typekit or deployments")
        for deployment in self.deployers:
            if not deployment.task_activities:
                result.add_warning("deployment", deployment.name, "deployment instantiates no task")
        return result

    def to_spec(self) -> dict:
        """Normalized specification document describing this project."""
        declarations: list[dict] = []
        for pkg in self.used_libraries:
            linked = any(p.name == pkg.name for p in self.typekit_libraries)
            declarations.append(
                {"using_library": pkg.name if linked else {"name": pkg.name, "typekit": False}}
            )
        for lib in self.used_task_libraries:
            declarations.append({"using_task_library": lib.name})
        for tk in self.used_typekits:
            if tk.pkg is not None:
                declarations.append({"using_typekit": tk.name})
        if self._typekit is not None:
            for header, types in self._typekit.loads.items():
                declarations.append(
                    {"import_types_from": {"name": header, **types.to_dict()}}
                )
            for header, types in self._typekit.pending_loads:
                entry: dict = {"name": header}
                if types is not None:
                    entry.update(types.to_dict())
                declarations.append({"import_types_from": entry})
            typekit_decl: dict = {"export_policy": self._typekit.export_policy}
            if self._typekit.selected_types:
                typekit_decl["export_types"] = sorted(self._typekit.selected_types)
            declarations.append({"typekit": typekit_decl})
        if self.enabled_transports:
            declarations.append({"enable_transport": sorted(self.enabled_transports)})
        for task in self.self_tasks:
            declarations.append({"task_context": task.to_spec()})
        for deployment in self.deployers:
            declarations.append({"deployment": deployment.to_spec()})

        document: dict = {"name": self._name, "version": self._version}
        if self.extended_states is not None:
            document["extended_states"] = self.extended_states
        document["declarations"] = declarations
        if self.config.command_line_options:
            document["command_line_options"] = list(self.config.command_line_options)
        return document

    def summary(self) -> dict:
        return {
            "name": self._name,
            "version": self._version,
            "target": self.target,
            "tasks": [t.name for t in self.self_tasks],
            "imported_tasks": sorted(n for n in self.tasks if not any(n == t.name for t in self.self_tasks)),
            "typekit": self._typekit.name if self._typekit else None,
            "used_typekits": [tk.name for tk in self.used_typekits],
            "used_libraries": [p.name for p in self.used_libraries],
            "used_task_libraries": [lib.name for lib in self.used_task_libraries],
            "deployments": [d.name for d in self.deployers],
            "enabled_transports": sorted(self.enabled_transports),
        }

    def generate(self, renderer=None, emitter=None):
        """Run the generation pipeline. Returns a GenerationResult."""
        from .generation import GenerationPipeline

        self._target = self.config.resolve_target()
        try:
            return GenerationPipeline(self, renderer=renderer, emitter=emitter).run()
        finally:
            self._target = None
