import pytest

from dpe_core.filters import (
    GRADE_ORDER,
    DpeFilters,
    count_thermal_sieves,
    filter_by_year,
    grade_distribution,
    normalize_filters,
    parse_year,
    records_to_frame,
)
from dpe_core.models import NA, DpeResult


def rec(n_dpe, year=NA, grade="D", ges="C"):
    return DpeResult(n_dpe=n_dpe, annee_construction=year, etiquette_dpe=grade, etiquette_ges=ges)


class TestParseYear:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (1990, 1990),
            (2005.0, 2005),
            ("2008", 2008),
            ("constructed in 2008", 2008),
            ("1948-1974", 1948),
            ("avant 1948", 1948),
        ],
    )
    def test_extracts_year(self, value, expected):
        assert parse_year(value) == expected

    @pytest.mark.parametrize("value", [None, "", "N/A", "ancien", "19", True, 1975.5, 0, 0.0, "0000"])
    def test_no_year(self, value):
        assert parse_year(value) is None


class TestNormalizeFilters:
    def test_ui_strings(self):
        assert normalize_filters({"year_min": "2000", "year_max": " 2010 "}) == DpeFilters(2000, 2010)

    def test_blank_and_garbage_mean_open(self):
        f = normalize_filters({"year_min": "", "year_max": "abc"})
        assert f == DpeFilters(None, None)
        assert not f.has_bounds

    def test_missing_input(self):
        assert normalize_filters(None) == DpeFilters()

    def test_single_bound(self):
        assert normalize_filters({"year_max": 1975}).has_bounds


class TestFilterByYear:
    @pytest.fixture
    def records(self):
        return (rec("a", 1990), rec("b", 2005), rec("c", "constructed in 2008"), rec("d", NA))

    def test_bounded_range(self, records):
        out = filter_by_year(records, DpeFilters(2000, 2010))
        assert [r.n_dpe for r in out] == ["b", "c"]

    def test_bounds_are_inclusive(self, records):
        out = filter_by_year(records, DpeFilters(1990, 2005))
        assert [r.n_dpe for r in out] == ["a", "b"]

    def test_no_bounds_keeps_unknown_years(self, records):
        assert filter_by_year(records, DpeFilters()) == records

    def test_unknown_year_excluded_with_any_bound(self, records):
        assert "d" not in {r.n_dpe for r in filter_by_year(records, DpeFilters(year_min=1800))}
        assert "d" not in {r.n_dpe for r in filter_by_year(records, DpeFilters(year_max=2100))}

    def test_zero_year_counts_as_unknown(self):
        assert filter_by_year((rec("z", 0),), DpeFilters(year_max=2010)) == ()

    def test_open_lower_bound(self, records):
        out = filter_by_year(records, DpeFilters(year_max=2005))
        assert [r.n_dpe for r in out] == ["a", "b"]

    @pytest.mark.parametrize("bounds", [DpeFilters(), DpeFilters(2000, 2010), DpeFilters(year_min=2006), DpeFilters(year_max=1995)])
    def test_idempotent(self, records, bounds):
        once = filter_by_year(records, bounds)
        assert filter_by_year(once, bounds) == once


class TestAggregates:
    def test_thermal_sieves_follow_the_filter(self):
        records = (
            rec("a", 1990, "G"),
            rec("b", 2005, "F"),
            rec("c", 2008, "E"),
            rec("d", NA, "G"),
            rec("e", 2009, "f"),
        )
        assert count_thermal_sieves(filter_by_year(records, DpeFilters())) == 3
        assert count_thermal_sieves(filter_by_year(records, DpeFilters(2000, 2010))) == 1

    def test_grade_distribution(self):
        records = (rec("a", grade="A"), rec("b", grade="G"), rec("c", grade="G"), rec("d", grade=NA, ges="B"))
        dist = grade_distribution(records)
        assert list(dist) == list(GRADE_ORDER)
        assert dist["G"] == 2 and dist["A"] == 1 and dist[NA] == 1
        assert sum(dist.values()) == 4
        assert grade_distribution(records, "etiquette_ges")["C"] == 3


def test_records_to_frame_columns():
    frame = records_to_frame([rec("a", 1990), rec("b", "avant 1948")])
    assert list(frame["n_dpe"]) == ["a", "b"]
    assert "latitude" in frame.columns and "type_chauffage" in frame.columns
    assert records_to_frame([]).empty
