"""Error hierarchy for oroGen.

Three families, matching who has to act on them:
- SpecificationError: the specification file is wrong (edit the project file)
- ConfigError: the environment is missing something (install a package,
  fix PKG_CONFIG_PATH)
- InternalError: an installed description contradicts itself
"""


class OrogenError(Exception):
    """Base class for all oroGen errors."""

    pass


class SpecificationError(OrogenError, ValueError):
    """Raised when the specification itself is malformed."""

    pass


class ConfigError(OrogenError):
    """Raised when a dependency or setting outside the specification is missing."""

    pass


class InternalError(OrogenError):
    """Raised when an external description is inconsistent."""

    pass


class DuplicateTaskError(SpecificationError):
    """Raised when a task name collides with an existing task or namespace."""

    pass


class TypeConflictError(SpecificationError):
    """Raised when two registries define the same type differently."""

    def __init__(self, typename: str, message: str | None = None):
        self.typename = typename
        super().__init__(
            message or f"conflicting definitions for type {typename}"
        )


class InvalidNameError(SpecificationError, ConfigError):
    """Raised at generation time when the project name is not a valid identifier."""

    pass


class PackageNotFoundError(ConfigError):
    """Raised by a package locator when no package matches a name."""

    def __init__(self, package_name: str):
        self.package_name = package_name
        super().__init__(f"cannot find package '{package_name}'")


class CircularImportError(ConfigError):
    """Raised when resolving a project re-enters a resolution in progress."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(
            "circular import detected: " + " -> ".join(cycle)
        )
