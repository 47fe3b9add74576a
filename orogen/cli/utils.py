"""CLI helpers: exit codes, human or --json output, logging and config layering."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, PrivateAttr, ConfigDict
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import GenerationConfig
from ..core.models import ValidationResult
from ..errors import ConfigError, InternalError, OrogenError, SpecificationError


class ExitCode:
    """Standardized exit codes for CLI commands.

        0 = Success
        1 = Specification error (fix the specification file)
        3 = File not found
        4 = Configuration error (install a package, fix the search path)
        5 = Internal error (an installed description is inconsistent)
    """

    SUCCESS = 0
    SPECIFICATION_ERROR = 1
    FILE_NOT_FOUND = 3
    CONFIG_ERROR = 4
    INTERNAL_ERROR = 5


def exit_code_for(exc: BaseException) -> int:
    """Map an exception to the exit code reporting it."""
    if isinstance(exc, FileNotFoundError):
        return ExitCode.FILE_NOT_FOUND
    # InvalidNameError is both; the fix lives in the specification
    if isinstance(exc, SpecificationError):
        return ExitCode.SPECIFICATION_ERROR
    if isinstance(exc, ConfigError):
        return ExitCode.CONFIG_ERROR
    if isinstance(exc, InternalError):
        return ExitCode.INTERNAL_ERROR
    return ExitCode.SPECIFICATION_ERROR


def error_category(exc: BaseException) -> str:
    if isinstance(exc, FileNotFoundError):
        return "file"
    if isinstance(exc, SpecificationError):
        return "specification"
    if isinstance(exc, ConfigError):
        return "configuration"
    if isinstance(exc, OrogenError):
        return "internal"
    return "unknown"


class Output(BaseModel):
    """Dual-mode output handler for CLI commands.

    In human mode: Uses Rich for pretty terminal output with colors and formatting.
    In JSON mode: Collects structured data and outputs JSON at the end.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    console: Console
    json_mode: bool = False

    _data: dict[str, Any] = PrivateAttr()
    _exit_code: int = PrivateAttr(default=ExitCode.SUCCESS)

    def model_post_init(self, __context: Any) -> None:
        # Ensure _data is a fresh dict for each instance
        self._data = {
            "status": "success",
            "warnings": [],
            "errors": [],
        }

    def success(self, message: str, **data: Any) -> None:
        """Output a success message with optional data."""
        if self.json_mode:
            self._data.update(data)
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(
        self,
        message: str,
        *,
        location: str | None = None,
        category: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Output a warning message."""
        if self.json_mode:
            warning_obj: dict[str, Any] = {"message": message}
            if location:
                warning_obj["location"] = location
            if category:
                warning_obj["category"] = category
            if suggestion:
                warning_obj["suggestion"] = suggestion
            self._data["warnings"].append(warning_obj)
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
            if suggestion:
                self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def error(
        self,
        message: str,
        *,
        location: str | None = None,
        category: str | None = None,
        suggestion: str | None = None,
        exit_code: int = ExitCode.SPECIFICATION_ERROR,
    ) -> None:
        """Output an error message and set exit code."""
        self._exit_code = exit_code
        self._data["status"] = "error"

        if self.json_mode:
            error_obj: dict[str, Any] = {"message": message}
            if location:
                error_obj["location"] = location
            if category:
                error_obj["category"] = category
            if suggestion:
                error_obj["suggestion"] = suggestion
            self._data["errors"].append(error_obj)
        else:
            self.console.print(f"[red]✗[/red] {message}")
            if suggestion:
                self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def exception(self, exc: BaseException) -> None:
        """Report an exception raised by the engine."""
        self.error(str(exc), category=error_category(exc), exit_code=exit_code_for(exc))

    def text(self, message: str) -> None:
        """Output plain text (human mode only)."""
        if not self.json_mode:
            self.console.print(message)

    def blank(self) -> None:
        """Output a blank line (human mode only)."""
        if not self.json_mode:
            self.console.print()

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[str]],
        *,
        data_key: str | None = None,
    ) -> None:
        """Output a formatted table.

        Args:
            title: Table title
            columns: Column headers
            rows: Table rows (list of lists)
            data_key: Key to use in JSON output (defaults to snake_case of title)
        """
        key = data_key or title.lower().replace(" ", "_")

        if self.json_mode:
            self._data[key] = [dict(zip(columns, row)) for row in rows]
        else:
            table = Table(title=title, show_header=True, header_style="bold")
            for col in columns:
                table.add_column(col)
            for row in rows:
                table.add_row(*row)
            self.console.print(table)

    def set_data(self, key: str, value: Any) -> None:
        """Set arbitrary data in JSON output."""
        self._data[key] = value

    def finish(self) -> int:
        """Finalize output and return exit code.

        In JSON mode, prints the accumulated data as JSON to stdout.
        """
        if self.json_mode:
            self._data["exit_code"] = self._exit_code
            print(json.dumps(self._data, indent=2, default=str))

        return self._exit_code


def report_validation(out: Output, result: ValidationResult) -> None:
    """Print every issue of a validation result."""
    for issue in result.errors:
        out.error(
            f"{issue.location}: {issue.message}",
            location=issue.location,
            category=issue.category,
            suggestion=issue.suggestion,
        )
    for issue in result.warnings:
        out.warning(
            f"{issue.location}: {issue.message}",
            location=issue.location,
            category=issue.category,
            suggestion=issue.suggestion,
        )


def setup_logging(console: Console, verbose: bool = False, debug: bool = False) -> None:
    """Configure logging for a CLI run."""
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
        force=True,
    )
    logging.getLogger("orogen").setLevel(level)


def build_config(
    target: str | None = None,
    output: Path | None = None,
    extended_states: bool | None = None,
    transports: list[str] | None = None,
    pkg_config_path: list[Path] | None = None,
    command_line: list[str] | None = None,
) -> GenerationConfig:
    """Layer command line options over the file and environment configuration."""
    config = GenerationConfig.load()
    if target:
        config.target = target
    if output is not None:
        config.output_dir = str(output)
    if extended_states is not None:
        config.extended_states = extended_states
    for transport in transports or []:
        if transport not in config.transports:
            config.transports.append(transport)
    for path in pkg_config_path or []:
        config.pkg_config_path.append(str(path))
    if command_line:
        config.command_line_options = list(command_line)
    return config
