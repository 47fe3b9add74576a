"""Package locators: resolve a logical package name to installed metadata."""

from .base import PackageInfo, PackageLocator
from .pkgconfig import PkgConfigLocator, PkgConfigParseError, parse_pc_text

__all__ = [
    "PackageInfo",
    "PackageLocator",
    "PkgConfigLocator",
    "PkgConfigParseError",
    "parse_pc_text",
]
