#!/usr/bin/env python3
"""
Example: Basic usage of Spectrum Sniff as a Python library
"""

from spectrum_sniff import parse_report_file
from spectrum_sniff.config import load_config
from spectrum_sniff.service import SniffService

# Parse a report the report tool already produced
report = parse_report_file("/path/to/last_report.rpt")

print(f"{report.sample_identification} ({report.sample_type}), live time {report.livetime:g} s")
for result in report.results:
    print(f"  {result.nuclide_name:8} {result.activity:10.4g} ± {result.activity_uncertainty:.2g}"
          f"  MDA {result.mda:.2g}")

# Import everything in a directory once, without watching
config = load_config(watch_directory="/path/to/spectra")
stats = SniffService(config).scan()
print(f"Scan complete: {stats.imported} imported, {stats.duplicate} already imported")
