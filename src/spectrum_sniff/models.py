"""Domain records: file events, spectrum reports and per-nuclide results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class EventKind(Enum):
    """What the watcher saw happen to a file."""

    CREATED = "created"
    CHANGED = "changed"
    RENAMED = "renamed"


@dataclass(frozen=True)
class FileEvent:
    """A pending notification about a spectrum file.

    Carries no identity beyond the path; duplicates are expected.
    """

    full_path: str
    kind: EventKind = EventKind.CREATED


@dataclass
class SpectrumResult:
    """Activity, uncertainty and MDA for one nuclide."""

    nuclide_name: str
    activity: float
    activity_uncertainty: float
    mda: float = 0.0


@dataclass
class SpectrumReport:
    """Everything recovered from one generated report.

    Fields absent from the report keep their defaults: empty strings,
    zero for numbers and ``None`` for timestamps.
    """

    # ── Sample metadata ───────────────────────────────────────────
    laboratory: str = ""
    operator: str = ""
    sample_title: str = ""
    sample_identification: str = ""
    sample_type: str = ""
    sample_component: str = ""
    sample_geometry: str = ""
    sample_location_type: str = ""
    sample_location: str = ""
    sample_community_county: str = ""
    sample_latitude: float = 0.0
    sample_longitude: float = 0.0
    sample_altitude: float = 0.0
    comment: str = ""
    sample_size: float = 0.0
    sample_error: float = 0.0
    sample_unit: str = ""
    nuclide_library: str = ""

    # ── Timing ────────────────────────────────────────────────────
    sample_time: Optional[datetime] = None
    acquisition_time: Optional[datetime] = None
    livetime: float = 0.0
    realtime: float = 0.0
    deadtime: float = 0.0

    # ── Results ───────────────────────────────────────────────────
    results: list[SpectrumResult] = field(default_factory=list)

    def find_result(self, nuclide_name: str) -> Optional[SpectrumResult]:
        """Return the result for ``nuclide_name`` (exact match) or ``None``."""
        for result in self.results:
            if result.nuclide_name == nuclide_name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("sample_time", "acquisition_time"):
            value = data[key]
            data[key] = value.isoformat() if value is not None else None
        return data
