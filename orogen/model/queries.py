"""Lookups shared by local and imported projects.

Both project variants hold the same aggregate state (tasks, registry,
used_typekits, deployers); this mixin answers the read-only questions asked
about it.
"""

import logging

from ..errors import ConfigError, SpecificationError
from ..typesystem import TypeDefinition, normalize_typename
from .tasks import TaskContext

logger = logging.getLogger(__name__)

DEFAULT_TASK_SUPERCLASS = "RTT::TaskContext"


class ProjectQueries:
    """Read-only queries over a project's aggregate state."""

    # -- tasks ----------------------------------------------------------------

    def find_task_context(self, obj: str | TaskContext) -> TaskContext:
        """Return the task model called obj.

        Tasks defined in this project can be referred to by their local name;
        imported tasks need their full "<project>::<Task>" name.

        Raises:
            SpecificationError: if no such task exists
        """
        if isinstance(obj, TaskContext):
            return obj
        task = self.tasks.get(obj) or self.tasks.get(f"{self.name}::{obj}")
        if task is None:
            raise SpecificationError(f"cannot find a task context model named {obj}")
        return task

    def has_task_context(self, name: str) -> bool:
        return name in self.tasks or f"{self.name}::{name}" in self.tasks

    def has_namespace(self, name: str) -> bool:
        """True if the type registry defines types in namespace name."""
        return self.registry.has_namespace(name)

    def default_task_superclass(self) -> TaskContext | None:
        return self.tasks.get(DEFAULT_TASK_SUPERCLASS)

    def has_deployment(self, name: str) -> bool:
        return any(d.name == name for d in self.deployers)

    # -- types ----------------------------------------------------------------

    def imported_typekit_for(self, typename: str):
        """The used typekit defining typename, or None."""
        return next((tk for tk in self.used_typekits if tk.includes(typename)), None)

    def is_imported_type(self, typename: str) -> bool:
        return self.imported_typekit_for(typename) is not None

    def find_type(self, typename: str) -> TypeDefinition:
        """Resolve typename, deriving std::vector containers when needed.

        A derived container whose element type is known is defined by this
        project's own typekit, created on demand.
        """
        normalized = normalize_typename(typename)
        existing = self.registry.get(normalized)
        if existing is not None:
            return existing
        if not self.registry.derivable(normalized):
            raise SpecificationError(f"unknown type {typename}")
        typekit = self.typekit(create=True)
        if typekit is None:
            return self.registry.build(normalized)
        return typekit.find_type(normalized)

    def find_interface_type(self, typename: str) -> TypeDefinition:
        """Resolve a type that must be usable in a task interface.

        Raises:
            SpecificationError: for static arrays or unknown types
            ConfigError: if the defining typekit does not export the type
        """
        definition = self.find_type(typename)
        if definition.is_static_array:
            raise SpecificationError(
                f"{definition.cxx_name}: static arrays are not valid interface types. "
                "Use an array in a structure or a std::vector"
            )
        tk = self.imported_typekit_for(definition.name)
        if tk is not None:
            logger.debug("%s is exported by %s", definition.name, tk.name)
            if not tk.interface_type(definition.name):
                raise ConfigError(
                    f"{definition.cxx_name}, defined in the {tk.name} typekit, is not exported by it"
                )
        return definition
