from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from dpe_core.charts import grade_distribution_chart, map_chart, to_vega_spec
from dpe_core.filters import DpeFilters, grade_distribution, records_to_frame
from dpe_core.models import DpeResult, FetchStatus, MapFocus


TABLE_ROW_LIMIT = 500


def _clean(value: Any) -> Any:
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


def _rows(records: Sequence[DpeResult], limit: int = TABLE_ROW_LIMIT) -> List[Dict[str, Any]]:
    rows = []
    for r in records[:limit]:
        row = {k: _clean(v) for k, v in r.to_dict().items()}
        row["has_position"] = r.has_position
        rows.append(row)
    return rows


def _mean(frame: pd.DataFrame, col: str) -> Optional[float]:
    if frame.empty or col not in frame.columns:
        return None
    s = pd.to_numeric(frame[col], errors="coerce")
    s = s[s > 0]
    return float(s.mean()) if not s.empty else None


def compute_overview(filters: DpeFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: Sequence[DpeResult] = ctx.get("records", ()) or ()
    filtered: Sequence[DpeResult] = ctx.get("filtered", ()) or ()
    sieves = int(ctx.get("thermal_sieves", 0) or 0)
    status = ctx.get("status", FetchStatus.IDLE)
    focus: Optional[MapFocus] = ctx.get("focus")

    frame = records_to_frame(filtered)
    dpe_dist = grade_distribution(filtered, "etiquette_dpe")
    ges_dist = grade_distribution(filtered, "etiquette_ges")

    charts: Dict[str, Any] = {}
    if filtered:
        charts = {
            "dpe_distribution": to_vega_spec(grade_distribution_chart(dpe_dist, "Étiquette DPE")),
            "ges_distribution": to_vega_spec(grade_distribution_chart(ges_dist, "Étiquette GES")),
            "map": to_vega_spec(map_chart(frame, focus)),
        }

    return {
        "filters": asdict(filters),
        "commune": ctx.get("commune", ""),
        "status": status.value if isinstance(status, FetchStatus) else str(status),
        "view": ctx.get("view", "table"),
        "focus": asdict(focus) if focus is not None else None,
        "kpis": {
            "total_available": int(ctx.get("total", 0) or 0),
            "loaded": len(records),
            "displayed": len(filtered),
            "thermal_sieves": sieves,
            "thermal_sieve_pct": (sieves / len(filtered)) if filtered else None,
            "mean_conso": _mean(frame, "conso_5_usages_m2_an"),
        },
        "grade_distribution": {"dpe": dpe_dist, "ges": ges_dist},
        "charts": charts,
        "rows": _rows(filtered),
    }
