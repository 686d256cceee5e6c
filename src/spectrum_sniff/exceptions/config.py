"""Configuration and startup exceptions: settings, tools, instance guard."""

from pathlib import Path
from typing import Any

from .base import SpectrumSniffError


class ConfigurationError(SpectrumSniffError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class MissingToolError(ConfigurationError):
    """Raised at startup when the report executable or template is absent."""

    def __init__(self, path: Path, role: str):
        super().__init__(f"Cannot find {role}: {path}", details={"path": str(path), "role": role})
        self.path = path
        self.role = role


class InstanceAlreadyRunningError(SpectrumSniffError):
    """Raised when another live process holds the instance lock."""

    def __init__(self, pid: int, lock_path: Path):
        super().__init__(
            f"Spectrum Sniff is already running (PID {pid})",
            details={"pid": str(pid), "lock_path": str(lock_path)},
        )
        self.pid = pid
        self.lock_path = lock_path
