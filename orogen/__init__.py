"""oroGen: component project composition and code generation.

Usage:
    >>> from orogen import Project, GenerationConfig
    >>> project = Project.load("cam.orogen.yaml", config=GenerationConfig())
    >>> result = project.generate()
    >>> result.package_ids
    ['orogen-project-cam', 'cam-tasks-gnulinux']
"""

__version__ = "0.3.0"

from .config import GenerationConfig
from .errors import (
    OrogenError,
    SpecificationError,
    ConfigError,
    InternalError,
)
from .project import Project

__all__ = [
    "__version__",
    "GenerationConfig",
    "OrogenError",
    "SpecificationError",
    "ConfigError",
    "InternalError",
    "Project",
]
