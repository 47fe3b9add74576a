"""Apply a YAML specification to a project.

Declarations are applied one at a time, in file order, against the target
project (local or imported). Each one mutates the project immediately, so
later declarations observe everything declared before them.
"""

import logging
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import BaseModel, ValidationError

from ..errors import SpecificationError
from ..typesystem import TypeRegistry
from . import statements as st

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Any], None]


# =============================================================================
# Statement handlers
# =============================================================================


def _using_library(project, stmt: st.UsingLibrary) -> None:
    project.using_library(stmt.name, typekit=stmt.typekit)


def _using_typekit(project, stmt: st.UsingTypekit) -> None:
    project.using_typekit(stmt.name)


def _using_task_library(project, stmt: st.UsingTaskLibrary) -> None:
    project.using_task_library(stmt.name)


def _import_types_from(project, stmt: st.ImportTypesFrom) -> None:
    types = None
    if stmt.types is not None:
        try:
            types = TypeRegistry.from_dict({"types": stmt.types})
        except SpecificationError as exc:
            raise SpecificationError(f"import_types_from {stmt.name}: {exc}") from exc
    project.import_types_from(stmt.name, types=types)


def _task_context(project, stmt: st.TaskContextDecl) -> None:
    def configure(task) -> None:
        if stmt.superclass:
            task.superclass = project.find_task_context(stmt.superclass)
        task.doc = stmt.doc
        for port in stmt.input_ports:
            task.input_port(port.name, port.type, doc=port.doc)
        for port in stmt.output_ports:
            task.output_port(port.name, port.type, doc=port.doc)
        for prop in stmt.properties:
            task.property(prop.name, prop.type, default=prop.default, doc=prop.doc)
        for op in stmt.operations:
            task.operation(
                op.name,
                return_type=op.return_type,
                arguments=[(arg.name, arg.type) for arg in op.arguments],
                doc=op.doc,
            )
        if stmt.runtime_states:
            task.runtime_states(*stmt.runtime_states)
        if stmt.error_states:
            task.error_states(*stmt.error_states)
        if stmt.fatal_states:
            task.fatal_states(*stmt.fatal_states)
        if stmt.extended_state_support:
            task.extended_state_support()

    project.task_context(stmt.name, configure=configure)


def _deploy_tasks(deployment, tasks: list[st.DeployedTaskDecl]) -> None:
    for decl in tasks:
        deployed = deployment.task(decl.name, decl.model)
        if decl.period is not None:
            deployed.periodic(decl.period)
        deployed.priority = decl.priority


def _deployment(project, stmt: st.DeploymentDecl) -> None:
    def configure(deployment) -> None:
        _deploy_tasks(deployment, stmt.tasks)
        if not stmt.install:
            deployment.do_not_install()

    project.deployment(stmt.name, configure=configure)


def _simple_deployment(project, stmt: st.SimpleDeploymentDecl) -> None:
    deployed = project.simple_deployment(stmt.name, stmt.model)
    if stmt.period is not None:
        deployed.periodic(stmt.period)


def _static_deployment(project, stmt: st.StaticDeploymentDecl) -> None:
    project.static_deployment(configure=lambda d: _deploy_tasks(d, stmt.tasks))


def _typekit(project, stmt: st.TypekitDecl) -> None:
    project.typekit(create=True)
    if stmt.export_policy:
        project.type_export_policy(stmt.export_policy)
    if stmt.export_types:
        project.export_types(*stmt.export_types)


def _type_export_policy(project, stmt: st.TypeExportPolicy) -> None:
    project.type_export_policy(stmt.policy)


def _export_types(project, stmt: st.ExportTypes) -> None:
    project.export_types(*stmt.names)


def _enable_transport(project, stmt: st.EnableTransport) -> None:
    project.enable_transport(*stmt.names)


def _set_name(project, stmt: st.SetName) -> None:
    project.name = stmt.name


def _set_version(project, stmt: st.SetVersion) -> None:
    project.version = stmt.version


def _extended_states(project, stmt: st.ExtendedStates) -> None:
    project.extended_states = stmt.enabled


def _conditional(project, stmt: st.Conditional) -> None:
    try:
        predicate, argument = stmt.predicate()
    except ValueError as exc:
        raise SpecificationError(str(exc)) from exc
    holds = getattr(project, predicate)(argument)
    logger.debug("%s(%s) is %s", predicate, argument, holds)
    apply_declarations(project, stmt.then if holds else stmt.otherwise)


STATEMENTS: dict[str, tuple[type[BaseModel], Handler]] = {
    "using_library": (st.UsingLibrary, _using_library),
    "using_typekit": (st.UsingTypekit, _using_typekit),
    "using_task_library": (st.UsingTaskLibrary, _using_task_library),
    "import_types_from": (st.ImportTypesFrom, _import_types_from),
    "task_context": (st.TaskContextDecl, _task_context),
    "deployment": (st.DeploymentDecl, _deployment),
    "simple_deployment": (st.SimpleDeploymentDecl, _simple_deployment),
    "static_deployment": (st.StaticDeploymentDecl, _static_deployment),
    "typekit": (st.TypekitDecl, _typekit),
    "type_export_policy": (st.TypeExportPolicy, _type_export_policy),
    "export_types": (st.ExportTypes, _export_types),
    "enable_transport": (st.EnableTransport, _enable_transport),
    "name": (st.SetName, _set_name),
    "version": (st.SetVersion, _set_version),
    "extended_states": (st.ExtendedStates, _extended_states),
    "if": (st.Conditional, _conditional),
}


# =============================================================================
# Parsing
# =============================================================================


def parse_statement(entry: Any, index: int) -> tuple[str, BaseModel]:
    """Validate one declaration entry into (keyword, statement model)."""
    if not isinstance(entry, dict) or len(entry) != 1:
        raise SpecificationError(
            f"declaration #{index}: expected a mapping with a single statement, got {entry!r}"
        )
    keyword, arguments = next(iter(entry.items()))
    if keyword not in STATEMENTS:
        raise SpecificationError(
            f"declaration #{index}: unknown statement '{keyword}'. "
            f"Known statements: {', '.join(sorted(STATEMENTS))}"
        )
    model, _ = STATEMENTS[keyword]
    if arguments is None:
        arguments = {}
    elif not isinstance(arguments, dict):
        shorthand = getattr(model, "shorthand", None)
        if shorthand is None:
            raise SpecificationError(
                f"declaration #{index} ({keyword}): expected a mapping of arguments"
            )
        arguments = {shorthand: arguments}
    try:
        return keyword, model.model_validate(arguments)
    except ValidationError as exc:
        raise SpecificationError(f"declaration #{index} ({keyword}): {exc}") from exc


def apply_declarations(project, declarations: list[Any]) -> None:
    """Apply declarations to project, in order."""
    for index, entry in enumerate(declarations, start=1):
        keyword, statement = parse_statement(entry, index)
        _, handler = STATEMENTS[keyword]
        logger.debug("Applying %s to %s", keyword, project)
        handler(project, statement)


def apply_document(project, document: dict | None) -> None:
    """Apply a whole specification document.

    The top-level name, version and extended_states keys are applied before
    the declarations list. command_line_options, recorded in generated
    snapshots, is informational.
    """
    document = document or {}
    if not isinstance(document, dict):
        raise SpecificationError(
            f"a specification must be a mapping, got {type(document).__name__}"
        )
    unknown = set(document) - {
        "name", "version", "extended_states", "declarations", "command_line_options"
    }
    if unknown:
        raise SpecificationError(f"unknown top-level keys: {', '.join(sorted(unknown))}")

    preamble = [{key: document[key]} for key in ("name", "version", "extended_states") if key in document]
    declarations = document.get("declarations") or []
    if not isinstance(declarations, list):
        raise SpecificationError("'declarations' must be a list")
    apply_declarations(project, preamble + declarations)


def parse_spec_text(text: str, source: str = "<string>") -> dict:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecificationError(f"{source}: invalid YAML: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise SpecificationError(f"{source}: a specification must be a mapping")
    return document


def load_spec_file(path: Path | str) -> dict:
    """Read a specification file.

    Raises:
        FileNotFoundError: if path does not exist
        SpecificationError: if it is not a valid YAML mapping
    """
    path = Path(path)
    return parse_spec_text(path.read_text(), source=str(path))
