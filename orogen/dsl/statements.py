"""Statement models of the YAML specification format.

Every entry of a specification's ``declarations`` list is a single-key
mapping ``{statement: arguments}``. Arguments are validated by the model
registered for the statement. Statements whose model defines a ``shorthand``
field also accept a scalar: ``- using_library: opencv`` is
``- using_library: {name: opencv}``.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Statement(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    shorthand: ClassVar[str | None] = "name"


# =============================================================================
# Dependencies
# =============================================================================


class UsingLibrary(Statement):
    name: str
    typekit: bool = Field(default=True, description="Also link the library into the typekit")


class UsingTypekit(Statement):
    name: str


class UsingTaskLibrary(Statement):
    name: str


class ImportTypesFrom(Statement):
    name: str = Field(description="Typekit name, or header defining new types")
    types: list[dict[str, Any]] | None = Field(
        default=None, description="Definitions of the types the header contains"
    )


# =============================================================================
# Task contexts
# =============================================================================


class PortDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: str
    doc: str = ""


class PropertyDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: str
    default: Any = None
    doc: str = ""


class ArgumentDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    type: str


class OperationDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    return_type: str | None = None
    arguments: list[ArgumentDecl] = Field(default_factory=list)
    doc: str = ""


class TaskContextDecl(Statement):
    name: str
    superclass: str | None = None
    doc: str = ""
    input_ports: list[PortDecl] = Field(default_factory=list)
    output_ports: list[PortDecl] = Field(default_factory=list)
    properties: list[PropertyDecl] = Field(default_factory=list)
    operations: list[OperationDecl] = Field(default_factory=list)
    runtime_states: list[str] = Field(default_factory=list)
    error_states: list[str] = Field(default_factory=list)
    fatal_states: list[str] = Field(default_factory=list)
    extended_state_support: bool = False


# =============================================================================
# Deployments
# =============================================================================


class DeployedTaskDecl(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    model: str
    period: float | None = None
    priority: int | None = None


class DeploymentDecl(Statement):
    name: str
    tasks: list[DeployedTaskDecl] = Field(default_factory=list)
    install: bool = True


class SimpleDeploymentDecl(Statement):
    shorthand: ClassVar[str | None] = None

    name: str
    model: str
    period: float | None = None


class StaticDeploymentDecl(Statement):
    shorthand: ClassVar[str | None] = None

    tasks: list[DeployedTaskDecl] = Field(default_factory=list)


# =============================================================================
# Project settings
# =============================================================================


class TypekitDecl(Statement):
    shorthand: ClassVar[str | None] = None

    export_policy: str | None = None
    export_types: list[str] = Field(default_factory=list)


class TypeExportPolicy(Statement):
    shorthand: ClassVar[str | None] = "policy"

    policy: str


class ExportTypes(Statement):
    shorthand: ClassVar[str | None] = "names"

    names: list[str]

    @field_validator("names", mode="before")
    @classmethod
    def single_name(cls, v: Any) -> Any:
        return [v] if isinstance(v, str) else v


class EnableTransport(Statement):
    shorthand: ClassVar[str | None] = "names"

    names: list[str]

    @field_validator("names", mode="before")
    @classmethod
    def single_name(cls, v: Any) -> Any:
        return [v] if isinstance(v, str) else v


class SetName(Statement):
    name: str


class SetVersion(Statement):
    shorthand: ClassVar[str | None] = "version"

    version: str

    @field_validator("version", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, float)) else v


class ExtendedStates(Statement):
    shorthand: ClassVar[str | None] = "enabled"

    enabled: bool = True


class Conditional(Statement):
    """Apply ``then`` or ``else`` depending on what is installed.

    Exactly one of has_typekit, has_task_library, has_library is given.
    """

    shorthand: ClassVar[str | None] = None

    has_typekit: str | None = None
    has_task_library: str | None = None
    has_library: str | None = None
    then: list[dict[str, Any]] = Field(default_factory=list)
    otherwise: list[dict[str, Any]] = Field(default_factory=list, alias="else")

    @field_validator("otherwise", "then", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def predicate(self) -> tuple[str, str]:
        given = [
            (key, value)
            for key, value in (
                ("has_typekit", self.has_typekit),
                ("has_task_library", self.has_task_library),
                ("has_library", self.has_library),
            )
            if value is not None
        ]
        if len(given) != 1:
            raise ValueError("'if' needs exactly one of has_typekit, has_task_library, has_library")
        return given[0]
