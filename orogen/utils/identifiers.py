"""Name validation for projects, tasks and types."""

import re

from ..errors import InvalidNameError, SpecificationError

PROJECT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]+$")
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
VERSION_PATTERN = re.compile(r"^\d")


def is_valid_project_name(name: object) -> bool:
    """True if name is lowercase alphanumeric/underscore and starts with a letter."""
    return isinstance(name, str) and bool(PROJECT_NAME_PATTERN.match(name))


def validate_project_name(name: object) -> str:
    """Return name, or raise InvalidNameError if it cannot name a project."""
    if not name:
        raise InvalidNameError("you must set a name for this project")
    if not is_valid_project_name(name):
        raise InvalidNameError(
            f"invalid name '{name}': names must be all lowercase, can contain "
            "alphanumeric characters and underscores and start with a letter"
        )
    return name  # type: ignore[return-value]


def verify_valid_identifier(name: object) -> str:
    """Return name if it is a valid C++ identifier."""
    if not isinstance(name, str):
        raise SpecificationError(f"expected a string as identifier, got {name!r}")
    if not IDENTIFIER_PATTERN.match(name):
        raise SpecificationError(
            f"'{name}' is not a valid identifier: use letters, digits and underscores"
        )
    return name


def validate_version(version: object) -> str:
    """Version strings must start with a number."""
    text = str(version)
    if not VERSION_PATTERN.match(text):
        raise SpecificationError(
            f"version strings must start with a number (had: {text})"
        )
    return text
