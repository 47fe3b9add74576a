"""File emission with automatic / user ownership.

- automatic files live in the automatic area (<base>/.orogen by default),
  are rewritten whenever their content changes, and any file of the area not
  saved during the current run is removed by cleanup_automatic().
- user files live in <base> and are written only if absent. The freshly
  rendered version is always saved under <base>/templates so it can be
  diffed against the user's copy.
"""

import logging
import os
from pathlib import Path

from ..config import AUTOMATIC_AREA_NAME

logger = logging.getLogger(__name__)

TEMPLATES_AREA_NAME = "templates"


class Emitter:
    def __init__(self, base_dir: Path | str, automatic_area: str = AUTOMATIC_AREA_NAME):
        self.base_dir = Path(base_dir)
        self.automatic_dir = self.base_dir / automatic_area
        self.templates_dir = self.base_dir / TEMPLATES_AREA_NAME
        self.generated: set[Path] = set()
        self.written: list[Path] = []

    def _write(self, path: Path, content: str) -> bool:
        """Write content unless the file already holds it. True if written."""
        if path.is_file() and path.read_text() == content:
            logger.debug("%s unchanged", path)
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        self.written.append(path)
        logger.debug("wrote %s", path)
        return True

    def save_automatic(self, *args: str) -> Path:
        """save_automatic(*path_parts, content): save into the automatic area."""
        *parts, content = args
        path = self.automatic_dir.joinpath(*parts)
        self._write(path, content)
        self.generated.add(path)
        return path

    def touch_automatic(self, *parts: str) -> Path:
        """Create or touch an automatic file without changing its content."""
        path = self.automatic_dir.joinpath(*parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
        self.generated.add(path)
        return path

    def save_user(self, *args: str) -> Path:
        """save_user(*path_parts, content): save a user-owned file if it does not exist."""
        *parts, content = args
        self._write(self.templates_dir.joinpath(*parts), content)
        path = self.base_dir.joinpath(*parts)
        if path.exists():
            logger.debug("%s is owned by the user, not overwriting", path)
        else:
            self._write(path, content)
        return path

    def cleanup_automatic(self) -> list[Path]:
        """Remove files of the automatic area not saved during this run."""
        removed: list[Path] = []
        if not self.automatic_dir.is_dir():
            return removed
        for root, dirs, files in os.walk(self.automatic_dir, topdown=False):
            root_path = Path(root)
            for filename in files:
                path = root_path / filename
                if path not in self.generated:
                    path.unlink()
                    removed.append(path)
                    logger.info("removed stale file %s", path)
            for dirname in dirs:
                directory = root_path / dirname
                if directory.is_dir() and not directory.is_symlink() and not any(directory.iterdir()):
                    directory.rmdir()
        return removed
