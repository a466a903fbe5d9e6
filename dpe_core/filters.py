from __future__ import annotations

import math
import re
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import pandas as pd

from dpe_core.models import NA, DpeResult


THERMAL_SIEVE_GRADES = frozenset({"F", "G"})
GRADE_ORDER: Tuple[str, ...] = ("A", "B", "C", "D", "E", "F", "G", NA)

_YEAR_RE = re.compile(r"\d{4}")


@dataclass(frozen=True)
class DpeFilters:
    year_min: Optional[int] = None
    year_max: Optional[int] = None

    @property
    def has_bounds(self) -> bool:
        return self.year_min is not None or self.year_max is not None


def _as_bound(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return int(out)


def normalize_filters(raw: Optional[Dict[str, Any]]) -> DpeFilters:
    """Build DpeFilters from UI/API input; blank or invalid bounds are left open."""
    raw = raw or {}
    return DpeFilters(
        year_min=_as_bound(raw.get("year_min")),
        year_max=_as_bound(raw.get("year_max")),
    )


def parse_year(value: object) -> Optional[int]:
    """Construction year as int: plain numbers, or the first 4-digit run of a string. 0 is unknown."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value or None
    if isinstance(value, float):
        return (int(value) or None) if value.is_integer() else None
    match = _YEAR_RE.search(str(value))
    return (int(match.group(0)) or None) if match else None


def year_in_range(year: Optional[int], filters: DpeFilters) -> bool:
    if year is None:
        # an unknown year never satisfies a bound
        return not filters.has_bounds
    if filters.year_min is not None and year < filters.year_min:
        return False
    if filters.year_max is not None and year > filters.year_max:
        return False
    return True


def filter_by_year(records: Iterable[DpeResult], filters: DpeFilters) -> Tuple[DpeResult, ...]:
    return tuple(r for r in records if year_in_range(parse_year(r.annee_construction), filters))


def count_thermal_sieves(records: Iterable[DpeResult]) -> int:
    return sum(1 for r in records if r.etiquette_dpe in THERMAL_SIEVE_GRADES)


def grade_distribution(records: Iterable[DpeResult], field: str = "etiquette_dpe") -> Dict[str, int]:
    counts = {grade: 0 for grade in GRADE_ORDER}
    for r in records:
        grade = getattr(r, field)
        counts[grade if grade in counts else NA] += 1
    return counts


FRAME_COLUMNS: Tuple[str, ...] = tuple(f.name for f in fields(DpeResult))


def records_to_frame(records: Sequence[DpeResult]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame(columns=list(FRAME_COLUMNS))
    return pd.DataFrame([r.to_dict() for r in records], columns=list(FRAME_COLUMNS))
