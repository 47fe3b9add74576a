"""Value models for oroGen.

- build.py: BuildDependency and its deduplication
- validation.py: Severity, ValidationIssue, ValidationResult
"""

from .build import (
    BuildDependency,
    core_dependency,
    dedupe_build_dependencies,
)
from .validation import (
    Severity,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "BuildDependency",
    "core_dependency",
    "dedupe_build_dependencies",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
]
