"""Jinja2 rendering of the generation templates.

Templates ship in orogen/templates as "<template_id>.j2". Directories given
to Renderer are searched first, so a project can override any template.
"""

import logging
import posixpath
from pathlib import Path
from typing import Any, Iterable

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
)

from ..errors import InternalError
from ..typesystem import cxx_typename

logger = logging.getLogger(__name__)


def _cmake_var(name: str) -> str:
    """Build dependency variable as a CMake identifier."""
    return "".join(c if c.isalnum() or c == "_" else "_" for c in name)


def _create_jinja_environment(template_dirs: Iterable[Path | str]) -> Environment:
    loaders = []
    dirs = [str(d) for d in template_dirs]
    if dirs:
        loaders.append(FileSystemLoader(dirs))
    loaders.append(PackageLoader("orogen", "templates"))
    env = Environment(
        loader=ChoiceLoader(loaders),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["cxx"] = cxx_typename
    env.filters["cmake_var"] = _cmake_var
    env.filters["basename"] = posixpath.basename
    return env


class Renderer:
    def __init__(self, template_dirs: Iterable[Path | str] = ()):
        self.env = _create_jinja_environment(template_dirs)

    def render(self, template_id: str, **bindings: Any) -> str:
        """Render template_id with bindings.

        Raises:
            InternalError: if the template is missing or fails to render
        """
        try:
            template = self.env.get_template(f"{template_id}.j2")
            return template.render(**bindings)
        except TemplateNotFound as exc:
            raise InternalError(f"no template called {template_id}") from exc
        except TemplateError as exc:
            raise InternalError(f"cannot render {template_id}: {exc}") from exc
