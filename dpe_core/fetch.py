"""
ADEME DPE client.

Fetches the DPE lines of one commune from the data-fair API and normalizes them.
The client is fail-soft: every network, HTTP or payload failure is logged,
recorded in ``last_error`` and turned into an empty FetchOutcome.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

import httpx

from dpe_core.config import MOSELLE_COMMUNES, Settings, load_settings
from dpe_core.exceptions import UpstreamPayloadError
from dpe_core.models import FetchOutcome
from dpe_core.normalize import IdFactory, normalize_records, random_dpe_id


logger = logging.getLogger(__name__)

SORT_ORDER = "-date_etablissement_dpe"


def department_for_commune(commune: str, moselle: Iterable[str] = MOSELLE_COMMUNES) -> str:
    """Guess the department code used to narrow the postal-code match."""
    name = (commune or "").lower()
    return "57" if any(c in name for c in moselle) else "54"


def build_query(commune: str, moselle: Iterable[str] = MOSELLE_COMMUNES) -> str:
    dep = department_for_commune(commune, moselle)
    return f'nom_commune_ban:"{commune}" AND code_postal_ban:{dep}*'


def build_params(commune: str, size: int, moselle: Iterable[str] = MOSELLE_COMMUNES) -> Dict[str, str]:
    return {"size": str(size), "sort": SORT_ORDER, "qs": build_query(commune, moselle)}


def _as_total(value: Any) -> int:
    try:
        return max(0, int(value))
    except Exception:
        return 0


class AdemeClient:
    """Synchronous client for the ADEME data-fair ``lines`` endpoint."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.Client] = None,
        id_factory: IdFactory = random_dpe_id,
    ):
        self.settings = settings or load_settings()
        self.id_factory = id_factory
        self.last_error: Optional[str] = None
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers={"Accept": "application/json"},
                timeout=self.settings.timeout_seconds,
            )
        return self._client

    def lines_url(self, dataset_id: Optional[str] = None) -> str:
        base = self.settings.api_base.rstrip("/")
        return f"{base}/datasets/{dataset_id or self.settings.dataset_id}/lines"

    def _get_json(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        response = self._get_client().get(url, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise UpstreamPayloadError(url, f"expected a JSON object, got {type(data).__name__}")
        results = data.get("results")
        if results is not None and not isinstance(results, list):
            raise UpstreamPayloadError(url, "'results' is not a list")
        return data

    def fetch_dpe_by_commune(
        self,
        commune: str,
        size: Optional[int] = None,
        dataset_id: Optional[str] = None,
    ) -> FetchOutcome:
        """Fetch and normalize the DPE records of ``commune``. Never raises."""
        self.last_error = None
        url = self.lines_url(dataset_id)
        params = build_params(commune, size or self.settings.page_size, self.settings.moselle_communes)

        try:
            data = self._get_json(url, params)
            results = normalize_records(data.get("results"), commune=commune, id_factory=self.id_factory)
            total = _as_total(data.get("total"))
        except httpx.HTTPStatusError as exc:
            logger.warning("ADEME API error %s for %s", exc.response.status_code, commune)
            self.last_error = f"HTTP {exc.response.status_code}"
            return FetchOutcome.empty()
        except Exception as exc:
            logger.exception("DPE fetch failed for %s", commune)
            self.last_error = f"{type(exc).__name__}: {exc}"
            return FetchOutcome.empty()

        logger.info("Fetched %d/%d DPE records for %s", len(results), total, commune)
        return FetchOutcome(total=total, results=tuple(results))

    def close(self) -> None:
        # injected clients belong to the caller
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "AdemeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def fetch_dpe_by_commune(
    commune: str,
    size: int = 1000,
    dataset_id: str = "dpe03existant",
) -> FetchOutcome:
    with AdemeClient() as client:
        return client.fetch_dpe_by_commune(commune, size=size, dataset_id=dataset_id)
