"""Run the external report tool on a spectrum file.

The tool is a black box: it reads a spectrum and a template and writes a
report file. Every invocation writes to the same output path, which is why
the coordinator only ever runs one at a time.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional, Union

from ..exceptions import MissingToolError, ReportGenerationError
from ..logging_config import get_logger

logger = get_logger(__name__)


class ReportGenerator:
    """Blocking, single-shot wrapper around the report executable."""

    def __init__(
        self,
        executable: Union[str, Path],
        template: Union[str, Path],
        output_path: Union[str, Path],
        timeout: Optional[float] = None,
    ) -> None:
        self.executable = Path(executable)
        self.template = Path(template)
        self.output_path = Path(output_path)
        self.timeout = timeout

    def check(self) -> None:
        """Verify the executable and template exist.

        Raises:
            MissingToolError: If either is missing
        """
        if not self.executable.is_file():
            raise MissingToolError(self.executable, "report executable")
        if not self.template.is_file():
            raise MissingToolError(self.template, "report template")

    def build_command(self, spectrum_path: Union[str, Path]) -> list[str]:
        return [
            str(self.executable),
            str(spectrum_path),
            f"/TEMPLATE={self.template}",
            "/SECTION=",
            "/NEWFILE",
            f"/OUTFILE={self.output_path}",
        ]

    def generate(self, spectrum_path: Union[str, Path]) -> Path:
        """Produce the report for ``spectrum_path`` and return its path.

        Raises:
            ReportGenerationError: If the tool cannot start, times out,
                exits nonzero or leaves no output file
        """
        spectrum = Path(spectrum_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        # A stale report must never be mistaken for this run's output
        try:
            self.output_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ReportGenerationError(spectrum, f"cannot remove previous report: {e}")

        cmd = self.build_command(spectrum)
        logger.debug("Running report tool: %s", cmd)
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.output_path.parent),
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ReportGenerationError(spectrum, f"timed out after {self.timeout}s")
        except OSError as e:
            raise ReportGenerationError(spectrum, f"cannot start report tool: {e}")

        if result.returncode != 0:
            # The tool writes in whatever codepage the lab machine uses
            stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
            raise ReportGenerationError(
                spectrum,
                stderr or "report tool exited with an error",
                returncode=result.returncode,
            )

        if not self.output_path.is_file():
            raise ReportGenerationError(spectrum, f"no report written to {self.output_path}")

        return self.output_path
