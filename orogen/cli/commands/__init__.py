"""CLI commands for oroGen."""

from . import (
    generate,
    inspect,
    validate,
    config_cmd,
)

__all__ = [
    "generate",
    "inspect",
    "validate",
    "config_cmd",
]
