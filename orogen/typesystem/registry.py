"""Type registry: an additive database of type definitions.

Type names are normalized to the "/ns/Name" form: "base::Time" and
"/base/Time" denote the same type. Registries only grow; adding a type whose
name is already registered is accepted when the definitions are structurally
equal and rejected with TypeConflictError otherwise.

Registry files are YAML documents:

    types:
      - {name: /base/Time, kind: compound, fields: [{name: microseconds, type: /int64_t}]}
      - {name: /base/Mode, kind: enum, values: {IDLE: 0, RUNNING: 1}}
"""

import re
from pathlib import Path
from typing import Iterable, Iterator, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import SpecificationError, TypeConflictError


TypeKind = Literal[
    "numeric", "enum", "compound", "array", "container", "opaque", "alias"
]

_CONTAINER_PATTERN = re.compile(r"^/std/vector<(?P<element>.+)>$")

STANDARD_NUMERIC_TYPES: dict[str, int] = {
    "/bool": 1,
    "/char": 1,
    "/int8_t": 1,
    "/uint8_t": 1,
    "/int16_t": 2,
    "/uint16_t": 2,
    "/int32_t": 4,
    "/uint32_t": 4,
    "/int64_t": 8,
    "/uint64_t": 8,
    "/float": 4,
    "/double": 8,
}

# C++ spellings accepted in specifications
_CXX_ALIASES = {
    "/int": "/int32_t",
    "/unsigned int": "/uint32_t",
    "/short": "/int16_t",
    "/unsigned short": "/uint16_t",
    "/long long": "/int64_t",
    "/unsigned long long": "/uint64_t",
    "/unsigned char": "/uint8_t",
    "/signed char": "/int8_t",
}


def normalize_typename(name: str) -> str:
    """Convert a C++ or typelib spelling to the canonical "/ns/Name" form."""
    text = name.strip().replace("::", "/")
    # Normalize template arguments recursively: /std/vector<base/Time>
    match = re.match(r"^(?P<base>[^<]+)<(?P<args>.+)>$", text)
    if match:
        base = normalize_typename(match.group("base"))
        args = ",".join(normalize_typename(a) for a in match.group("args").split(","))
        return f"{base}<{args}>"
    if not text.startswith("/"):
        text = "/" + text
    return _CXX_ALIASES.get(text, text)


def cxx_typename(name: str) -> str:
    """Convert a normalized name back to its C++ spelling."""
    text = normalize_typename(name)
    return re.sub(r"(^|<|,)/", r"\1", text).replace("/", "::")


def namespace_of(name: str) -> str:
    """"/base/samples/Frame" -> "/base/samples/"."""
    normalized = normalize_typename(name)
    base = normalized.split("<", 1)[0]
    return base.rsplit("/", 1)[0] + "/"


class FieldDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return normalize_typename(v)


class TypeDefinition(BaseModel):
    """Structural description of one type.

    Two definitions are the same type iff they compare equal.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: TypeKind
    size: int | None = None
    fields: tuple[FieldDefinition, ...] = ()
    values: dict[str, int] = Field(default_factory=dict)
    element: str | None = None
    length: int | None = None
    intermediate: str | None = Field(
        default=None, description="For opaques: the type used to marshal it"
    )

    @field_validator("name", "element", "intermediate")
    @classmethod
    def normalize_names(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_typename(v)

    def __hash__(self) -> int:
        return hash((self.name, self.kind))

    @property
    def is_static_array(self) -> bool:
        return self.kind == "array"

    @property
    def is_opaque(self) -> bool:
        return self.kind == "opaque"

    @property
    def namespace(self) -> str:
        return namespace_of(self.name)

    @property
    def cxx_name(self) -> str:
        return cxx_typename(self.name)

    def dependencies(self) -> set[str]:
        """Names of the types this definition refers to."""
        deps = {f.type for f in self.fields}
        if self.element:
            deps.add(self.element)
        if self.intermediate:
            deps.add(self.intermediate)
        return deps


class TypeRegistry:
    """Additive, name-indexed collection of TypeDefinition."""

    def __init__(self, types: Iterable[TypeDefinition] = ()):
        self._types: dict[str, TypeDefinition] = {}
        for t in types:
            self.add(t)

    # -- queries --------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_typename(name) in self._types

    def __iter__(self) -> Iterator[TypeDefinition]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"<TypeRegistry {len(self._types)} types>"

    def get(self, name: str) -> TypeDefinition | None:
        return self._types.get(normalize_typename(name))

    def names(self) -> list[str]:
        return sorted(self._types)

    def each(self, namespace: str = "/") -> Iterator[TypeDefinition]:
        """Types whose name lies under namespace (recursively)."""
        prefix = namespace if namespace.endswith("/") else namespace + "/"
        if not prefix.startswith("/"):
            prefix = "/" + prefix
        for name in sorted(self._types):
            if name.startswith(prefix):
                yield self._types[name]

    def has_namespace(self, name: str) -> bool:
        """True if at least one type is defined under namespace name."""
        return next(self.each(name), None) is not None

    def build(self, name: str) -> TypeDefinition:
        """Return the type called name, deriving std::vector containers on demand.

        Raises:
            SpecificationError: if the type is unknown and cannot be derived
        """
        normalized = normalize_typename(name)
        existing = self._types.get(normalized)
        if existing is not None:
            return existing

        match = _CONTAINER_PATTERN.match(normalized)
        if match:
            element = self.build(match.group("element"))
            container = TypeDefinition(
                name=normalized, kind="container", element=element.name
            )
            self.add(container)
            return container

        raise SpecificationError(f"unknown type {cxx_typename(normalized)}")

    def derivable(self, name: str) -> bool:
        """True if build(name) would succeed without raising."""
        normalized = normalize_typename(name)
        if normalized in self._types:
            return True
        match = _CONTAINER_PATTERN.match(normalized)
        return bool(match) and self.derivable(match.group("element"))

    # -- mutation -------------------------------------------------------------

    def add(self, definition: TypeDefinition) -> TypeDefinition:
        existing = self._types.get(definition.name)
        if existing is not None:
            if existing != definition:
                raise TypeConflictError(
                    definition.name,
                    f"type definition mismatch for {definition.cxx_name}: "
                    f"{existing.kind} already registered, got a different {definition.kind}",
                )
            return existing
        self._types[definition.name] = definition
        return definition

    def merged(self, other: "TypeRegistry") -> "TypeRegistry":
        """Return a new registry holding both type sets.

        Raises:
            TypeConflictError: if other redefines one of our types differently
        """
        result = TypeRegistry(self._types.values())
        for definition in other:
            result.add(definition)
        return result

    def merge(self, other: "TypeRegistry") -> "TypeRegistry":
        """In-place merge. Leaves self untouched when a conflict is found."""
        combined = self.merged(other)
        self._types = combined._types
        return self

    def copy(self) -> "TypeRegistry":
        return TypeRegistry(self._types.values())

    # -- serialization --------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "types": [
                t.model_dump(mode="json", exclude_defaults=True)
                for t in (self._types[name] for name in sorted(self._types))
            ]
        }

    def to_yaml(self, path: Path | str | None = None) -> str:
        text = yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        if path is not None:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        return text

    @classmethod
    def from_dict(cls, data: dict | None) -> "TypeRegistry":
        """Build a registry from a {"types": [...]} mapping.

        Raises:
            SpecificationError: if data is not a mapping or a definition is invalid
        """
        data = data or {}
        if not isinstance(data, dict):
            raise SpecificationError(
                f"a type registry must be a mapping, got {type(data).__name__}"
            )
        entries = data.get("types") or []
        if not isinstance(entries, list):
            raise SpecificationError("'types' must be a list of type definitions")
        definitions = []
        for entry in entries:
            label = entry.get("name", "<unnamed>") if isinstance(entry, dict) else repr(entry)
            try:
                definitions.append(TypeDefinition.model_validate(entry))
            except ValidationError as exc:
                raise SpecificationError(f"invalid definition of type {label}: {exc}") from exc
        return cls(definitions)

    @classmethod
    def from_yaml_text(cls, text: str) -> "TypeRegistry":
        return cls.from_dict(yaml.safe_load(text))

    @classmethod
    def from_yaml(cls, path: Path | str) -> "TypeRegistry":
        with open(path) as f:
            return cls.from_dict(yaml.safe_load(f))

    @classmethod
    def with_standard_types(cls) -> "TypeRegistry":
        """Registry pre-filled with the C++ numeric types and std::string."""
        registry = cls(
            TypeDefinition(name=name, kind="numeric", size=size)
            for name, size in STANDARD_NUMERIC_TYPES.items()
        )
        registry.add(TypeDefinition(name="/std/string", kind="container", element="/char"))
        return registry
