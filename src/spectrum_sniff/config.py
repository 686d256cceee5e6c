"""Configuration loading and management for Spectrum Sniff.

Configuration sources are merged in priority order:
    1. Defaults (defined in SniffConfig)
    2. Global config (~/.spectrum-sniff.toml)
    3. Project config (./spectrum-sniff.toml)
    4. Explicit config file
    5. Environment variables (SNIFF_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(watch_directory="/data/spectra", verbose=True)
    >>> config.verbosity
    'verbose'
    >>> config.file_filter
    '*.spe'
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

DEFAULT_STATE_DIR = str(Path.home() / ".spectrum-sniff")

LEDGER_FILENAME = "sniff.db"
REPORT_OUTPUT_FILENAME = "last_report.rpt"
LOCK_FILENAME = "sniff.pid"


@dataclass(frozen=True)
class SniffConfig:
    """Configuration for the ingestion service.

    Attributes:
        Watching:
            watch_directory: Directory tree receiving spectrum files
            file_filter: Glob matched against file names (e.g. ``*.spe``)
            recursive: Also watch subdirectories
            include_modified: Queue files whose content changed in place

        Report tool:
            report_executable: External program turning a spectrum into a report
            report_template: Template passed to the report program
            generator_timeout_seconds: Kill the tool after this long (None = wait forever)

        Scheduling:
            tick_interval_seconds: How often the event queue is drained
            watch_debounce_ms: Filesystem notification debounce

        State:
            state_dir: Holds the ledger database, last report and lock file

        Output control:
            verbosity: Logging verbosity level
            log_file: Optional plain-text log file
    """

    # Watching
    watch_directory: str = "."
    file_filter: str = "*.spe"
    recursive: bool = True
    include_modified: bool = False

    # Report tool
    report_executable: str = "report"
    report_template: str = "report_template.tpl"
    generator_timeout_seconds: Optional[float] = None

    # Scheduling
    tick_interval_seconds: float = 0.5
    watch_debounce_ms: int = 200

    # State
    state_dir: str = DEFAULT_STATE_DIR

    # Output control
    verbosity: Verbosity = "normal"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.watch_directory:
            raise InvalidConfigError("watch_directory", self.watch_directory, "must not be empty")
        if not self.file_filter:
            raise InvalidConfigError("file_filter", self.file_filter, "must not be empty")
        if self.tick_interval_seconds <= 0:
            raise InvalidConfigError(
                "tick_interval_seconds", self.tick_interval_seconds, "must be positive"
            )
        if self.watch_debounce_ms < 0:
            raise InvalidConfigError(
                "watch_debounce_ms", self.watch_debounce_ms, "must be non-negative"
            )
        if self.generator_timeout_seconds is not None and self.generator_timeout_seconds <= 0:
            raise InvalidConfigError(
                "generator_timeout_seconds", self.generator_timeout_seconds, "must be positive"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError(
                "verbosity", self.verbosity, "expected quiet, normal or verbose"
            )

    @property
    def ledger_path(self) -> Path:
        """SQLite database holding the checksum ledger and stored reports."""
        return Path(self.state_dir) / LEDGER_FILENAME

    @property
    def report_output_path(self) -> Path:
        """Fixed file the report tool writes to."""
        return Path(self.state_dir) / REPORT_OUTPUT_FILENAME

    @property
    def lock_path(self) -> Path:
        return Path(self.state_dir) / LOCK_FILENAME


def load_config(config_file: Optional[Path] = None, **overrides) -> SniffConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset CLI options do not mask file values

    Returns:
        Validated SniffConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".spectrum-sniff.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "spectrum-sniff.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    # Paths from TOML or CLI may arrive as Path objects or with ~
    for key in ("watch_directory", "report_executable", "report_template", "state_dir", "log_file"):
        if merged.get(key) is not None:
            merged[key] = os.path.expanduser(str(merged[key]))

    try:
        return SniffConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SNIFF_* environment variables.

    Every SniffConfig field can be set as ``SNIFF_<FIELD_NAME>``, e.g.
    ``SNIFF_WATCH_DIRECTORY`` or ``SNIFF_RECURSIVE=false``.
    """
    type_hints = get_type_hints(SniffConfig)

    result: dict[str, Any] = {}

    for field_name in SniffConfig.__dataclass_fields__:
        env_key = f"SNIFF_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Accepts either top-level keys or a ``[sniff]`` table.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")

    section = data.get("sniff")
    if isinstance(section, dict):
        return section
    return data
