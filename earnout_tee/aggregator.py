"""KPI Aggregator: folds normalized entries into a single KPI result."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping

from .documents import DocumentKind
from .errors import ValidationError
from .normalizer import NormalizedEntry
from .util import INT64_MAX, INT64_MIN, to_display_number


@dataclass(frozen=True)
class KPIResult:
    """
    Immutable outcome of one compute invocation.

    ``kpi`` and the ``breakdown`` subtotals are integer minor units.
    """
    kpi: int
    entries_processed: int
    breakdown: Mapping[DocumentKind, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Render for JSON responses, converting minor units to currency units."""
        return {
            "kpi": to_display_number(self.kpi),
            "kpi_minor_units": self.kpi,
            "entries_processed": self.entries_processed,
            "breakdown": {
                kind.value: to_display_number(subtotal)
                for kind, subtotal in sorted(self.breakdown.items(), key=lambda kv: kv[0].value)
            },
        }


def aggregate(entries: Iterable[NormalizedEntry], initial_kpi: int = 0) -> KPIResult:
    """
    Sum entry contributions onto ``initial_kpi``.

    Integer addition makes the final value independent of entry order, so
    only the final sum is range-checked.

    Raises:
        ValidationError: if the KPI does not fit in a signed 64-bit integer
    """
    running = initial_kpi
    count = 0
    breakdown: Dict[DocumentKind, int] = {}
    for entry in entries:
        running += entry.contribution
        breakdown[entry.kind] = breakdown.get(entry.kind, 0) + entry.contribution
        count += 1
    if running < INT64_MIN or running > INT64_MAX:
        raise ValidationError(f"KPI out of range: {running} minor units does not fit in int64")
    return KPIResult(kpi=running, entries_processed=count, breakdown=MappingProxyType(breakdown))
