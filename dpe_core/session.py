from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from dpe_core.export import export_filename, to_csv_bytes
from dpe_core.fetch import AdemeClient
from dpe_core.filters import DpeFilters, count_thermal_sieves, filter_by_year, normalize_filters
from dpe_core.models import DpeResult, FetchStatus, MapFocus


logger = logging.getLogger(__name__)

VIEWS = ("table", "map")

FocusHandler = Callable[[MapFocus], None]


class DashboardSession:
    """In-memory state of one dashboard: selected commune, its records and the current view.

    Records are replaced wholesale on every load. Filtered records and the
    thermal-sieve count are recomputed only when the records or the year bounds
    change.
    """

    def __init__(self, fetcher: AdemeClient, *, commune: str = "", on_focus: Optional[FocusHandler] = None):
        self.fetcher = fetcher
        self.commune = commune
        self.on_focus = on_focus
        self.records: Tuple[DpeResult, ...] = ()
        self.total = 0
        self.status = FetchStatus.IDLE
        self.filters = DpeFilters()
        self.view = "table"
        self.focus: Optional[MapFocus] = None
        self._generation = 0
        self._cache_key: Optional[Tuple[int, DpeFilters]] = None
        self._filtered: Tuple[DpeResult, ...] = ()
        self._sieves = 0

    # ----- data -----
    def select_commune(self, commune: str) -> None:
        if commune == self.commune and self.status is not FetchStatus.IDLE:
            return
        self.commune = commune
        self.focus = None
        self.load()

    def load(self) -> None:
        """Fetch the current commune. Calling it again is the retry."""
        self.status = FetchStatus.LOADING
        outcome = self.fetcher.fetch_dpe_by_commune(self.commune)
        self.records = outcome.results
        self.total = outcome.total
        self._generation += 1
        error = getattr(self.fetcher, "last_error", None)
        self.status = FetchStatus.ERROR if error else FetchStatus.SUCCESS
        if error:
            logger.info("Load of %s ended in error state: %s", self.commune, error)
        else:
            logger.info("Loaded %d records for %s", len(self.records), self.commune)

    # ----- filtering -----
    def set_year_bounds(self, year_min: object = None, year_max: object = None) -> None:
        self.filters = normalize_filters({"year_min": year_min, "year_max": year_max})

    def _refresh(self) -> None:
        key = (self._generation, self.filters)
        if key == self._cache_key:
            return
        self._filtered = filter_by_year(self.records, self.filters)
        self._sieves = count_thermal_sieves(self._filtered)
        self._cache_key = key

    @property
    def filtered(self) -> Tuple[DpeResult, ...]:
        self._refresh()
        return self._filtered

    @property
    def thermal_sieve_count(self) -> int:
        self._refresh()
        return self._sieves

    # ----- view -----
    def set_view(self, view: str) -> None:
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view!r}")
        self.view = view

    def focus_point(self, latitude: float, longitude: float, n_dpe: str) -> None:
        """Switch to the map and ask it to centre on one record."""
        self.view = "map"
        self.focus = MapFocus(latitude=float(latitude), longitude=float(longitude), n_dpe=str(n_dpe))
        if self.on_focus is not None:
            self.on_focus(self.focus)

    def context(self) -> Dict[str, object]:
        return {
            "commune": self.commune,
            "status": self.status,
            "total": self.total,
            "records": self.records,
            "filtered": self.filtered,
            "thermal_sieves": self.thermal_sieve_count,
            "view": self.view,
            "focus": self.focus,
        }

    # ----- export -----
    @property
    def export_name(self) -> str:
        return export_filename(self.commune)

    def export_csv(self) -> bytes:
        return to_csv_bytes(self.filtered)
