import json

from dpe_core.filters import DpeFilters, filter_by_year
from dpe_core.metrics_overview import TABLE_ROW_LIMIT, compute_overview
from dpe_core.models import NA, DpeResult, FetchStatus, MapFocus


def ctx_for(records, filters, **extra):
    filtered = filter_by_year(records, filters)
    ctx = {
        "commune": "Villerupt",
        "status": FetchStatus.SUCCESS,
        "total": 10,
        "records": records,
        "filtered": filtered,
        "thermal_sieves": sum(1 for r in filtered if r.etiquette_dpe in {"F", "G"}),
    }
    ctx.update(extra)
    return ctx


RECORDS = (
    DpeResult("v1", annee_construction=1990, etiquette_dpe="G", conso_5_usages_m2_an=450.0, latitude=49.46, longitude=5.93),
    DpeResult("v2", annee_construction=2005, etiquette_dpe="F", conso_5_usages_m2_an=350.0),
    DpeResult("v3", annee_construction=2008, etiquette_dpe="C", conso_5_usages_m2_an=0.0),
    DpeResult("v4", annee_construction=NA, etiquette_dpe="G"),
)


def test_kpis():
    payload = compute_overview(DpeFilters(2000, 2010), ctx_for(RECORDS, DpeFilters(2000, 2010)))
    assert payload["filters"] == {"year_min": 2000, "year_max": 2010}
    assert payload["status"] == "success"
    kpis = payload["kpis"]
    assert kpis["total_available"] == 10
    assert kpis["loaded"] == 4
    assert kpis["displayed"] == 2
    assert kpis["thermal_sieves"] == 1
    assert kpis["thermal_sieve_pct"] == 0.5
    # zero consumptions are "not filled in" and left out of the mean
    assert kpis["mean_conso"] == 350.0
    assert payload["grade_distribution"]["dpe"]["F"] == 1


def test_rows_are_json_safe():
    payload = compute_overview(DpeFilters(), ctx_for(RECORDS, DpeFilters()))
    rows = payload["rows"]
    assert [r["n_dpe"] for r in rows] == ["v1", "v2", "v3", "v4"]
    assert rows[0]["has_position"] is True
    assert rows[1]["latitude"] is None and rows[1]["has_position"] is False
    json.dumps(payload["rows"])


def test_charts_with_focus():
    focus = MapFocus(49.46, 5.93, "v1")
    payload = compute_overview(DpeFilters(), ctx_for(RECORDS, DpeFilters(), focus=focus, view="map"))
    assert set(payload["charts"]) == {"dpe_distribution", "ges_distribution", "map"}
    assert payload["charts"]["map"]["projection"]["center"] == [5.93, 49.46]
    assert payload["focus"] == {"latitude": 49.46, "longitude": 5.93, "n_dpe": "v1"}
    assert payload["view"] == "map"


def test_empty_context():
    payload = compute_overview(DpeFilters(), {})
    assert payload["kpis"]["displayed"] == 0
    assert payload["kpis"]["thermal_sieve_pct"] is None
    assert payload["charts"] == {}
    assert payload["rows"] == []
    assert payload["status"] == "idle"


def test_row_limit():
    records = tuple(DpeResult(f"r{i}", annee_construction=2000) for i in range(TABLE_ROW_LIMIT + 20))
    payload = compute_overview(DpeFilters(), ctx_for(records, DpeFilters()))
    assert len(payload["rows"]) == TABLE_ROW_LIMIT
    assert payload["kpis"]["displayed"] == TABLE_ROW_LIMIT + 20
