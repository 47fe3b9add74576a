"""Task context models.

A TaskContext is a named task interface (ports, properties, operations and
runtime states) declared in a project's namespace. It is owned by exactly one
project, local or imported; every type in its interface is resolved through
that project when declared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..errors import SpecificationError
from ..typesystem import TypeDefinition
from ..utils import verify_valid_identifier

if TYPE_CHECKING:
    from ..generation.pipeline import GenerationContext

logger = logging.getLogger(__name__)

StateKind = Literal["runtime", "error", "fatal"]

# Runtime states every task has, in enumeration order
STANDARD_STATES: tuple[str, ...] = (
    "INIT",
    "PRE_OPERATIONAL",
    "FATAL_ERROR",
    "EXCEPTION",
    "STOPPED",
    "RUNNING",
    "RUNTIME_ERROR",
)


# =============================================================================
# Interface elements
# =============================================================================


class Port(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    direction: Literal["input", "output"]
    doc: str = ""


class Property(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    default: Any = None
    doc: str = ""


class Argument(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    doc: str = ""


class Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    return_type: str | None = None
    arguments: tuple[Argument, ...] = ()
    doc: str = ""


class State(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: StateKind = Field(default="runtime")


# =============================================================================
# Task context
# =============================================================================


class TaskContext:
    """A task context model.

    name is the fully qualified "<project>::<Local>" name.
    """

    def __init__(self, project, name: str, superclass: "TaskContext | None" = None):
        self.project = project
        self.name = name
        self.superclass = superclass
        self.doc = ""
        self.ports: dict[str, Port] = {}
        self.properties: dict[str, Property] = {}
        self.operations: dict[str, Operation] = {}
        self.states: list[State] = []
        self.extended_state_support_enabled = False

    def __repr__(self) -> str:
        return f"<TaskContext {self.name}>"

    @property
    def basename(self) -> str:
        return self.name.rsplit("::", 1)[-1]

    @property
    def namespace(self) -> str:
        return self.name.rsplit("::", 1)[0] if "::" in self.name else ""

    @property
    def state_type_name(self) -> str:
        """Name of the generated runtime state enumeration."""
        return f"/{self.namespace}/{self.basename}_STATES"

    # -- declarations ---------------------------------------------------------

    def _check_new_member(self, name: str) -> str:
        verify_valid_identifier(name)
        if name in self.ports or name in self.properties or name in self.operations:
            raise SpecificationError(f"{self.name} already has an interface element called '{name}'")
        return name

    def _interface_type(self, typename: str) -> str:
        return self.project.find_interface_type(typename).name

    def input_port(self, name: str, typename: str, doc: str = "") -> Port:
        self._check_new_member(name)
        port = Port(name=name, type=self._interface_type(typename), direction="input", doc=doc)
        self.ports[name] = port
        return port

    def output_port(self, name: str, typename: str, doc: str = "") -> Port:
        self._check_new_member(name)
        port = Port(name=name, type=self._interface_type(typename), direction="output", doc=doc)
        self.ports[name] = port
        return port

    def property(self, name: str, typename: str, default: Any = None, doc: str = "") -> Property:
        self._check_new_member(name)
        prop = Property(name=name, type=self._interface_type(typename), default=default, doc=doc)
        self.properties[name] = prop
        return prop

    def operation(
        self,
        name: str,
        return_type: str | None = None,
        arguments: list[tuple[str, str]] | None = None,
        doc: str = "",
    ) -> Operation:
        self._check_new_member(name)
        args = tuple(
            Argument(name=verify_valid_identifier(arg_name), type=self._interface_type(arg_type))
            for arg_name, arg_type in (arguments or [])
        )
        ret = self._interface_type(return_type) if return_type else None
        op = Operation(name=name, return_type=ret, arguments=args, doc=doc)
        self.operations[name] = op
        return op

    def _add_states(self, kind: StateKind, names: tuple[str, ...]) -> None:
        known = set(STANDARD_STATES) | {s.name for s in self.all_states()}
        for state in names:
            verify_valid_identifier(state)
            if state in known:
                raise SpecificationError(f"state {state} is already defined on {self.name}")
            self.states.append(State(name=state, kind=kind))
            known.add(state)
        self.extended_state_support()

    def runtime_states(self, *names: str) -> None:
        self._add_states("runtime", names)

    def error_states(self, *names: str) -> None:
        self._add_states("error", names)

    def fatal_states(self, *names: str) -> None:
        self._add_states("fatal", names)

    def extended_state_support(self) -> None:
        """Export the runtime state on a 'state' output port."""
        if self.extended_state_support_enabled:
            return
        self.extended_state_support_enabled = True
        if "state" not in self.ports:
            self.ports["state"] = Port(name="state", type="/int32_t", direction="output")

    # -- queries --------------------------------------------------------------

    def all_states(self) -> list[State]:
        """States of this task, superclass states first."""
        inherited = self.superclass.all_states() if self.superclass else []
        return inherited + self.states

    def state_enumeration(self) -> dict[str, int]:
        """Values of the generated <Task>_STATES enumeration."""
        names = list(STANDARD_STATES) + [s.name for s in self.all_states()]
        return {f"{self.basename}_{state}": index for index, state in enumerate(names)}

    def state_type(self) -> TypeDefinition:
        return TypeDefinition(name=self.state_type_name, kind="enum", values=self.state_enumeration())

    def interface_type_names(self) -> list[str]:
        names: list[str] = []
        for port in self.ports.values():
            names.append(port.type)
        for prop in self.properties.values():
            names.append(prop.type)
        for op in self.operations.values():
            if op.return_type:
                names.append(op.return_type)
            names.extend(arg.type for arg in op.arguments)
        return list(dict.fromkeys(names))

    def interface_types(self) -> list[TypeDefinition]:
        """Types used in this task's own interface (superclass excluded)."""
        result = []
        for typename in self.interface_type_names():
            definition = self.project.registry.get(typename)
            if definition is not None:
                result.append(definition)
        return result

    def used_typekits(self) -> list:
        """Imported typekits defining a type of this task's interface, superclass included."""
        found: dict[str, Any] = {}
        if self.superclass:
            for tk in self.superclass.used_typekits():
                found.setdefault(tk.name, tk)
        for typename in self.interface_type_names():
            tk = self.project.imported_typekit_for(typename)
            if tk is not None:
                found.setdefault(tk.name, tk)
        return list(found.values())

    def used_task_libraries(self) -> list:
        """Imported oroGen projects defining one of this task's ancestors."""
        found: dict[str, Any] = {}
        ancestor = self.superclass
        while ancestor is not None:
            owner = ancestor.project
            if owner.kind == "imported" and owner.orogen_project:
                found.setdefault(owner.name, owner)
            ancestor = ancestor.superclass
        return list(found.values())

    def implements(self, name: str) -> bool:
        """True if this task is name or derives from it."""
        task: TaskContext | None = self
        while task is not None:
            if task.name == name:
                return True
            task = task.superclass
        return False

    # -- serialization and generation -----------------------------------------

    def to_spec(self) -> dict:
        spec: dict[str, Any] = {"name": self.basename}
        if self.superclass is not None and self.superclass.name != "RTT::TaskContext":
            spec["superclass"] = self.superclass.name
        if self.doc:
            spec["doc"] = self.doc
        ports = [p for p in self.ports.values() if p.name != "state" or not self.extended_state_support_enabled]
        inputs = [{"name": p.name, "type": p.type} for p in ports if p.direction == "input"]
        outputs = [{"name": p.name, "type": p.type} for p in ports if p.direction == "output"]
        if inputs:
            spec["input_ports"] = inputs
        if outputs:
            spec["output_ports"] = outputs
        if self.properties:
            spec["properties"] = [
                p.model_dump(exclude_defaults=True) for p in self.properties.values()
            ]
        if self.operations:
            spec["operations"] = [
                {
                    "name": op.name,
                    **({"return_type": op.return_type} if op.return_type else {}),
                    **(
                        {"arguments": [{"name": a.name, "type": a.type} for a in op.arguments]}
                        if op.arguments
                        else {}
                    ),
                }
                for op in self.operations.values()
            ]
        for kind in ("runtime", "error", "fatal"):
            names = [s.name for s in self.states if s.kind == kind]
            if names:
                spec[f"{kind}_states"] = names
        if self.extended_state_support_enabled:
            spec["extended_state_support"] = True
        return spec

    def generate(self, ctx: "GenerationContext") -> None:
        bindings = dict(project=self.project, task=self, target=ctx.target)
        base_hpp = ctx.renderer.render("tasks/TaskBase.hpp", **bindings)
        ctx.emitter.save_automatic("tasks", f"{self.basename}Base.hpp", base_hpp)
        base_cpp = ctx.renderer.render("tasks/TaskBase.cpp", **bindings)
        ctx.emitter.save_automatic("tasks", f"{self.basename}Base.cpp", base_cpp)
        hpp = ctx.renderer.render("tasks/Task.hpp", **bindings)
        ctx.emitter.save_user("tasks", f"{self.basename}.hpp", hpp)
        cpp = ctx.renderer.render("tasks/Task.cpp", **bindings)
        ctx.emitter.save_user("tasks", f"{self.basename}.cpp", cpp)
