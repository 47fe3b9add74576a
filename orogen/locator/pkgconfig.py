"""pkg-config based package locator.

Reads ``<name>.pc`` files from a search path (configured directories first,
then PKG_CONFIG_PATH). Only the subset of the .pc format oroGen relies on is
supported: ``var=value`` definitions with ``${var}`` expansion, and the
Name / Description / Version / Requires / Cflags / Libs fields.
"""

import logging
import os
import re
from pathlib import Path
from typing import Iterable

from ..errors import InternalError, PackageNotFoundError
from .base import PackageInfo

logger = logging.getLogger(__name__)

SYSTEM_PKG_CONFIG_DIRS = (
    "/usr/local/lib/pkgconfig",
    "/usr/local/share/pkgconfig",
    "/usr/lib/pkgconfig",
    "/usr/share/pkgconfig",
)

_VARIABLE_LINE = re.compile(r"^(?P<key>[A-Za-z0-9_.]+)\s*=\s*(?P<value>.*)$")
_FIELD_LINE = re.compile(r"^(?P<key>[A-Za-z0-9_.]+)\s*:\s*(?P<value>.*)$")
_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z0-9_.]+)\}")


class PkgConfigParseError(InternalError):
    """Raised when a .pc file references an undefined variable."""

    pass


def _expand(value: str, variables: dict[str, str], path: Path | None) -> str:
    def replace(match: re.Match) -> str:
        name = match.group("name")
        if name not in variables:
            raise PkgConfigParseError(f"{path}: undefined variable ${{{name}}}")
        return variables[name]

    return _REFERENCE.sub(replace, value)


def parse_pc_text(name: str, text: str, path: Path | None = None) -> PackageInfo:
    """Parse the content of a .pc file."""
    variables: dict[str, str] = {}
    fields: dict[str, str] = {}
    if path is not None:
        variables["pcfiledir"] = str(path.parent)

    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        # "key=value" wins over "Key: value" when both could match
        if (match := _VARIABLE_LINE.match(line)) and ":" not in line.split("=", 1)[0]:
            variables[match.group("key")] = _expand(
                match.group("value").strip(), variables, path
            )
        elif match := _FIELD_LINE.match(line):
            fields[match.group("key").lower()] = _expand(
                match.group("value").strip(), variables, path
            )

    requires = [
        token.strip()
        for token in re.split(r"[,\s]+", fields.get("requires", ""))
        if token.strip() and not re.match(r"^[<>=!]", token) and not token[0].isdigit()
    ]
    return PackageInfo(
        name=name,
        path=path,
        version=fields.get("version", ""),
        description=fields.get("description", ""),
        requires=requires,
        cflags=fields.get("cflags", ""),
        libs=fields.get("libs", ""),
        variables=variables,
    )


class PkgConfigLocator:
    """Locate packages by reading .pc files.

    Args:
        search_path: directories searched first, in order
        use_environment: also search PKG_CONFIG_PATH
        use_system_paths: also search the usual system pkgconfig directories
    """

    def __init__(
        self,
        search_path: Iterable[str | Path] = (),
        use_environment: bool = True,
        use_system_paths: bool = False,
    ):
        self.search_path = [Path(p) for p in search_path]
        self.use_environment = use_environment
        self.use_system_paths = use_system_paths

    @classmethod
    def from_config(cls, config) -> "PkgConfigLocator":
        return cls(search_path=config.pkg_config_path, use_environment=True)

    def directories(self) -> list[Path]:
        dirs = list(self.search_path)
        if self.use_environment:
            env = os.environ.get("PKG_CONFIG_PATH", "")
            dirs.extend(Path(p) for p in env.split(os.pathsep) if p)
        if self.use_system_paths:
            dirs.extend(Path(p) for p in SYSTEM_PKG_CONFIG_DIRS)
        return dirs

    def find_pc_file(self, name: str) -> Path | None:
        for directory in self.directories():
            candidate = directory / f"{name}.pc"
            if candidate.is_file():
                return candidate
        return None

    def locate(self, name: str) -> PackageInfo:
        path = self.find_pc_file(name)
        if path is None:
            logger.debug("pkg-config: %s not found", name)
            raise PackageNotFoundError(name)
        logger.debug("pkg-config: %s -> %s", name, path)
        return parse_pc_text(name, path.read_text(), path)

    def has(self, name: str) -> bool:
        return self.find_pc_file(name) is not None
