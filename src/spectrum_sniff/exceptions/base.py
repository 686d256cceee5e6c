"""Root of the Spectrum Sniff error hierarchy."""

from typing import Dict, Optional


class SpectrumSniffError(Exception):
    """Base for every error the pipeline raises on purpose.

    ``details`` carries the structured context (paths, field names, exit
    codes) and is appended to the message as ``key=value`` pairs so a single
    log line identifies the spectrum or setting at fault.
    """

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"
