"""Package locator interface and package metadata model."""

import shlex
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field


class PackageInfo(BaseModel):
    """Metadata of one installed package, as described by its .pc file."""

    name: str = Field(description="Name the package was located by")
    path: Path | None = Field(default=None, description="The .pc file")
    version: str = ""
    description: str = ""
    requires: list[str] = Field(default_factory=list)
    cflags: str = ""
    libs: str = ""
    variables: dict[str, str] = Field(default_factory=dict)

    def variable(self, name: str) -> str | None:
        return self.variables.get(name)

    def _flags(self, text: str, prefix: str) -> list[str]:
        return [
            token[len(prefix):]
            for token in shlex.split(text)
            if token.startswith(prefix) and len(token) > len(prefix)
        ]

    @property
    def include_dirs(self) -> list[str]:
        return self._flags(self.cflags, "-I")

    @property
    def library_dirs(self) -> list[str]:
        return self._flags(self.libs, "-L")

    @property
    def libraries(self) -> list[str]:
        return self._flags(self.libs, "-l")

    @property
    def deffile(self) -> str | None:
        """Path to the oroGen description of the project this package belongs to."""
        return self.variables.get("deffile")

    @property
    def type_registry(self) -> str | None:
        """Path to the registry file of a typekit package."""
        return self.variables.get("type_registry")

    @property
    def project_name(self) -> str | None:
        """For deployment packages: the project that declares the deployment."""
        return self.variables.get("project_name")


class PackageLocator(Protocol):
    """Resolves logical package names to package metadata."""

    def locate(self, name: str) -> PackageInfo:
        """Return the package called name.

        Raises:
            PackageNotFoundError: if no such package is installed
        """
        ...

    def has(self, name: str) -> bool:
        """True if locate(name) would succeed."""
        ...
