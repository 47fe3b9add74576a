"""Code and build file generation."""

from .emitter import Emitter
from .pipeline import (
    STAGES,
    GenerationContext,
    GenerationPipeline,
    GenerationResult,
    GenerationStage,
)
from .renderer import Renderer

__all__ = [
    "Emitter",
    "STAGES",
    "GenerationContext",
    "GenerationPipeline",
    "GenerationResult",
    "GenerationStage",
    "Renderer",
]
