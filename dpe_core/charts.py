from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from dpe_core.models import NA, MapFocus

alt.data_transformers.disable_max_rows()

GRADE_COLORS: Dict[str, str] = {
    "A": "#10b981",
    "B": "#84cc16",
    "C": "#facc15",
    "D": "#fb923c",
    "E": "#ea580c",
    "F": "#dc2626",
    "G": "#7f1d1d",
    NA: "#cbd5e1",
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def grade_distribution_chart(distribution: Dict[str, int], title: str = "Étiquette DPE") -> alt.Chart:
    df = pd.DataFrame({"grade": list(distribution.keys()), "count": list(distribution.values())})
    domain = list(GRADE_COLORS.keys())
    return (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=3, cornerRadiusTopRight=3)
        .encode(
            x=alt.X("grade:N", title=title, sort=domain, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("count:Q", title="Logements", axis=alt.Axis(format="d", gridDash=[4, 4])),
            color=alt.Color("grade:N", scale=alt.Scale(domain=domain, range=list(GRADE_COLORS.values())), legend=None),
            tooltip=["grade", alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=220)
    )


def map_chart(frame: pd.DataFrame, focus: Optional[MapFocus] = None, zoom_scale: float = 400000.0) -> alt.Chart:
    """Point map of the records with a position; centred on `focus` when given."""
    cols = ["n_dpe", "latitude", "longitude", "adresse_brut", "etiquette_dpe", "annee_construction"]
    pts = frame[[c for c in cols if c in frame.columns]].copy() if not frame.empty else pd.DataFrame(columns=cols)
    pts["latitude"] = pd.to_numeric(pts["latitude"], errors="coerce")
    pts["longitude"] = pd.to_numeric(pts["longitude"], errors="coerce")
    pts = pts.dropna(subset=["latitude", "longitude"])
    pts = pts[(pts["latitude"] != 0) & (pts["longitude"] != 0)]
    pts["annee_construction"] = pts["annee_construction"].astype(str)
    pts["focused"] = pts["n_dpe"] == (focus.n_dpe if focus else None)

    domain = list(GRADE_COLORS.keys())
    base = alt.Chart(pts).mark_circle(opacity=0.85, stroke="#0f172a").encode(
        longitude="longitude:Q",
        latitude="latitude:Q",
        color=alt.Color("etiquette_dpe:N", title="DPE", scale=alt.Scale(domain=domain, range=list(GRADE_COLORS.values()))),
        size=alt.condition("datum.focused", alt.value(260), alt.value(40)),
        strokeWidth=alt.condition("datum.focused", alt.value(2), alt.value(0)),
        tooltip=["adresse_brut", "etiquette_dpe", "annee_construction", "n_dpe"],
    )
    chart = base.properties(height=520)
    if focus is not None:
        chart = chart.project(type="mercator", center=[focus.longitude, focus.latitude], scale=zoom_scale)
    else:
        chart = chart.project(type="mercator")
    return chart
