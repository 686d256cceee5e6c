"""Shared test fixtures for Spectrum Sniff."""

from pathlib import Path

import pytest

from spectrum_sniff.exceptions import ReportGenerationError
from spectrum_sniff.reports.generator import ReportGenerator


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


SAMPLE_REPORT = """\
                 GAMMA SPECTRUM ANALYSIS
  Laboratory:::NRPA Osteras
  Operator:::jdoe
  Sample Title:::Soil 2017-114
  Sample Identification:::S-114
  Sample Type:::Soil
  Sample Geometry:::Marinelli 1L
  Sample Location Type:::Field
  Sample Location:::Hardangervidda
  Sample Community/County:::Ulvik/Hordaland
  Sample Coordinates:::60.5612  7.1234  1180
  Sample Comment:::Dried at 105 C
  Sample Size/Error:::0.845 0.002 kg
  Sample Taken On:::2017-05-12 10:15:00
  Acquisition Started:::12.05.2017 14:30:12
  Live Time:::3600.0
  Real Time:::3612.5
  Dead Time:::0.35
  Nuclide Library Used:::NRPA_STD.NLB

  Nuclide   Energy   Yield   Eff   Activity   Uncertainty
+++INTR+++
  K-40      1460.81  10.67   0.92  512.3      24.1
  Cs-137    661.66   85.10   0.99  43.7       2.2
---INTR---

+++MDA+++
  K-40      1460.81  10.67   0.92  8.1   1.0  Y
  Cs-137    661.66   85.10   0.99  0.42  0.01 Y
---MDA---
"""


@pytest.fixture
def sample_report_text():
    """A complete report as the report tool would write it."""
    return SAMPLE_REPORT


class StubGenerator:
    """Stands in for the external report tool.

    Writes a canned report for each spectrum. The report text can be
    overridden per spectrum file name, and selected names can be made to
    fail like a nonzero tool exit.
    """

    def __init__(self, output_path: Path, default_report: str = SAMPLE_REPORT) -> None:
        self.output_path = Path(output_path)
        self.default_report = default_report
        self.reports: dict[str, str] = {}
        self.failing: set[str] = set()
        self.calls: list[Path] = []

    def check(self) -> None:
        pass

    def generate(self, spectrum_path) -> Path:
        spectrum = Path(spectrum_path)
        self.calls.append(spectrum)
        if spectrum.name in self.failing:
            raise ReportGenerationError(spectrum, "exit status 3", returncode=3)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(self.reports.get(spectrum.name, self.default_report))
        return self.output_path


class MemoryStore:
    """Report store that keeps everything in a list."""

    def __init__(self) -> None:
        self.reports = []

    def store(self, report) -> None:
        self.reports.append(report)


@pytest.fixture
def stub_generator(tmp_path):
    return StubGenerator(tmp_path / "state" / "last_report.rpt")


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def watch_dir(tmp_path):
    path = tmp_path / "spectra"
    path.mkdir()
    return path


TOOL_SCRIPT = """\
#!/bin/sh
for arg in "$@"; do
    case "$arg" in
        /OUTFILE=*) out="${{arg#/OUTFILE=}}" ;;
    esac
done
touch ran_here
{write_report}cat '{stdout}'
cat '{stderr}' >&2
exit {exit_code}
"""


@pytest.fixture
def make_report_tool(tmp_path):
    """Build a ReportGenerator backed by a real shell script.

    The script copies ``report_text`` to its ``/OUTFILE=`` argument (unless
    it is None), echoes the given raw bytes on stdout and stderr and exits
    with ``exit_code``.
    """

    def factory(report_text=SAMPLE_REPORT, exit_code=0, stdout=b"", stderr=b""):
        tool_dir = tmp_path / "tool"
        tool_dir.mkdir(exist_ok=True)
        (tool_dir / "stdout.bin").write_bytes(stdout)
        (tool_dir / "stderr.bin").write_bytes(stderr)
        write_report = ""
        if report_text is not None:
            (tool_dir / "report.txt").write_text(report_text)
            write_report = f"cat '{tool_dir / 'report.txt'}' > \"$out\"\n"

        exe = tool_dir / "report"
        exe.write_text(
            TOOL_SCRIPT.format(
                write_report=write_report,
                stdout=tool_dir / "stdout.bin",
                stderr=tool_dir / "stderr.bin",
                exit_code=exit_code,
            )
        )
        exe.chmod(0o755)
        template = tool_dir / "report_template.tpl"
        template.write_text("Laboratory:::$LAB\n")
        return ReportGenerator(exe, template, tmp_path / "state" / "last_report.rpt")

    return factory
