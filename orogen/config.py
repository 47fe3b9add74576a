"""Configuration management for oroGen.

A GenerationConfig is built once per run and handed to every Project created
during that run. There is no process-wide instance.

Config resolution order (highest priority first):
1. Programmatic (GenerationConfig constructed in code)
2. Environment variables (OROGEN_EXTENDED_STATES, OROGEN_TRANSPORTS, ...)
3. Config file (~/.config/orogen/config.json)
4. Hardcoded defaults

The target platform is resolved separately by resolve_target(): explicit
override, then OROCOS_TARGET, then "gnulinux".
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Mapping


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "orogen"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_TARGET = "gnulinux"
TARGET_ENV_VAR = "OROCOS_TARGET"
AUTOMATIC_AREA_NAME = ".orogen"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


# =============================================================================
# Main config class
# =============================================================================


@dataclass
class GenerationConfig:
    """Settings for one oroGen run.

    Examples:
        # Package use, nothing read from disk
        config = GenerationConfig(target="xenomai")

        # CLI use, file + env layering
        config = GenerationConfig.load()
        config.transports.append("corba")
    """

    target: str | None = None
    extended_states: bool = False
    transports: list[str] = field(default_factory=list)
    automatic_area: str = AUTOMATIC_AREA_NAME
    output_dir: str | None = None
    pkg_config_path: list[str] = field(default_factory=list)
    command_line_options: list[str] = field(default_factory=list)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "GenerationConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()
        path = config_file or CONFIG_FILE

        # Layer 1: config file
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", path, exc)

        # Layer 2: env var overrides
        if val := os.environ.get("OROGEN_EXTENDED_STATES"):
            try:
                config.extended_states = _parse_bool(val)
            except ValueError:
                logger.warning("Invalid OROGEN_EXTENDED_STATES=%r, ignoring", val)
        if val := os.environ.get("OROGEN_TRANSPORTS"):
            config.transports = [t.strip() for t in val.split(",") if t.strip()]
        if val := os.environ.get("OROGEN_AUTOMATIC_AREA"):
            config.automatic_area = val
        if val := os.environ.get("OROGEN_PKG_CONFIG_PATH"):
            config.pkg_config_path = [p for p in val.split(os.pathsep) if p]

        return config

    def save(self, config_file: Path | None = None) -> None:
        """Save config to ~/.config/orogen/config.json.

        The target override and command line echo are per-run values and are
        not persisted.
        """
        path = config_file or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()
        data.pop("target", None)
        data.pop("command_line_options", None)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for display."""
        return asdict(self)

    def resolve_target(self, environ: Mapping[str, str] | None = None) -> str:
        """Resolve the target platform.

        Order: explicit override, non-empty OROCOS_TARGET, "gnulinux".
        """
        if self.target:
            return str(self.target)
        env = os.environ if environ is None else environ
        user_target = env.get(TARGET_ENV_VAR)
        if user_target:
            return user_target
        return DEFAULT_TARGET


# =============================================================================
# Config dict application
# =============================================================================


def _apply_dict(config: GenerationConfig, data: dict) -> None:
    """Apply a dict of values onto a GenerationConfig."""
    if not isinstance(data, dict):
        logger.warning("Ignoring config file content of type %s", type(data).__name__)
        return
    if "extended_states" in data:
        config.extended_states = bool(data["extended_states"])
    if isinstance(data.get("transports"), list):
        config.transports = [str(t) for t in data["transports"]]
    if isinstance(data.get("automatic_area"), str):
        config.automatic_area = data["automatic_area"]
    if isinstance(data.get("output_dir"), str):
        config.output_dir = data["output_dir"]
    if isinstance(data.get("pkg_config_path"), list):
        config.pkg_config_path = [str(p) for p in data["pkg_config_path"]]
