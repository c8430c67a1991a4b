"""Configuration management for dirsweep."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

KNOWN_TEXT_MATCH_MODES: frozenset[str] = frozenset({"suffix", "exact"})

DEFAULT_KNOWN_TEXT_FILES: tuple[str, ...] = ("Makefile", "Dockerfile", "LICENSE", "README")


class ConfigurationError(ValueError):
    """Raised when the run cannot start: bad root, bad output target or bad config value."""


def parse_bool(value: Any, default: bool) -> bool:
    """Parse a YAML-ish boolean, falling back to ``default`` for None."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in {"true", "yes", "on", "1"}


def normalize_names(values: Any, what: str = "Name list") -> list[str]:
    """Normalize a list of names: strip whitespace, drop empties.

    Accepts a list or a comma-separated string.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    if not isinstance(values, (list, tuple)):
        raise ConfigurationError(f"{what} must be a list, got {type(values).__name__}")
    return [name for name in (str(value).strip() for value in values) if name]


def normalize_extensions(values: Any) -> list[str]:
    """Normalize an extension list: strip whitespace and a leading dot, drop empties."""
    extensions = (name.removeprefix(".") for name in normalize_names(values, "Extension list"))
    return [ext for ext in extensions if ext]


def require_directory(root: Path) -> Path:
    """Validate a scan root before any traversal begins.

    Raises:
        ConfigurationError: If the path is missing or not a directory.

    """
    if not root.exists():
        raise ConfigurationError(f"Path {root} does not exist")
    if not root.is_dir():
        raise ConfigurationError(f"{root} is not a directory")
    return root


@dataclass
class SweepConfig:
    """Configuration for the cleanup and combine commands."""

    # Measure candidate directory sizes before reporting / deleting
    measure_sizes: bool = True

    # Default extension filters for combine (command line overrides these)
    include_extensions: list[str] = field(default_factory=list)
    exclude_extensions: list[str] = field(default_factory=list)

    # Extensionless files that still count as text
    known_text_files: list[str] = field(default_factory=lambda: list(DEFAULT_KNOWN_TEXT_FILES))
    known_text_match: str = "suffix"

    # Logging
    log_file: Path | None = None
    log_level: str = "WARNING"

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        return Path.home() / ".config/dirsweep/config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> SweepConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> SweepConfig:
        """Create config from dictionary."""
        config = cls()

        clean = data.get("clean") or {}
        if "measure_sizes" in clean:
            config.measure_sizes = parse_bool(clean["measure_sizes"], config.measure_sizes)

        combine = data.get("combine") or {}
        if "include" in combine:
            config.include_extensions = normalize_extensions(combine["include"])
        if "exclude" in combine:
            config.exclude_extensions = normalize_extensions(combine["exclude"])
        if "known_text_files" in combine:
            config.known_text_files = normalize_names(combine["known_text_files"], "known_text_files")
        if "known_text_match" in combine:
            mode = str(combine["known_text_match"]).lower()
            if mode not in KNOWN_TEXT_MATCH_MODES:
                raise ConfigurationError(
                    f"known_text_match must be one of {sorted(KNOWN_TEXT_MATCH_MODES)}, got {mode!r}"
                )
            config.known_text_match = mode

        # Logging
        if "logging" in data:
            logging_cfg = data["logging"] or {}
            if logging_cfg.get("file"):
                config.log_file = Path(os.path.expanduser(logging_cfg["file"]))
            if "level" in logging_cfg:
                level = str(logging_cfg["level"]).upper()
                if not isinstance(logging.getLevelName(level), int):
                    raise ConfigurationError(f"Unknown log level: {logging_cfg['level']}")
                config.log_level = level

        return config

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "clean": {
                "measure_sizes": self.measure_sizes,
            },
            "combine": {
                "include": list(self.include_extensions),
                "exclude": list(self.exclude_extensions),
                "known_text_files": list(self.known_text_files),
                "known_text_match": self.known_text_match,
            },
            "logging": {
                "file": str(self.log_file) if self.log_file else None,
                "level": self.log_level,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
