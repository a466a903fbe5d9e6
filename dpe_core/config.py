from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

API_BASE_DEFAULT = "https://data.ademe.fr/data-fair/api/v1"
DATASET_ID_DEFAULT = "dpe03existant"
PAGE_SIZE_DEFAULT = 1000
TIMEOUT_SECONDS_DEFAULT = 30.0

# Prospection zone (Pays-Haut). The first entry is the default selection.
COMMUNES: Tuple[str, ...] = (
    "Villerupt",
    "Audun-le-Tiche",
    "Aumetz",
    "Ottange",
    "Russange",
    "Redange",
    "Thil",
    "Crusnes",
    "Errouville",
    "Serrouville",
    "Bréhain-la-Ville",
    "Hussigny-Godbrange",
    "Tiercelet",
    "Villers-la-Montagne",
    "Morfontaine",
    "Longwy",
    "Mont-Saint-Martin",
    "Herserange",
    "Longlaville",
    "Réhon",
    "Mexy",
    "Lexy",
    "Cosnes-et-Romain",
    "Haucourt-Moulaine",
    "Saulnes",
    "Gorcy",
    "Cons-la-Grandville",
    "Longuyon",
    "Piennes",
    "Joudreville",
    "Audun-le-Roman",
    "Trieux",
    "Tucquegnieux",
    "Landres",
    "Mercy-le-Bas",
    "Fillières",
    "Joppécourt",
    "Mainville",
    "Sancy",
    "Xivry-Circourt",
)

# Communes of the list that sit in Moselle (57); everything else is queried as 54.
MOSELLE_COMMUNES: Tuple[str, ...] = ("audun-le-tiche", "aumetz", "ottange", "russange", "redange")


@dataclass(frozen=True)
class Settings:
    api_base: str = API_BASE_DEFAULT
    dataset_id: str = DATASET_ID_DEFAULT
    page_size: int = PAGE_SIZE_DEFAULT
    timeout_seconds: float = TIMEOUT_SECONDS_DEFAULT
    communes: Tuple[str, ...] = field(default=COMMUNES)
    moselle_communes: Tuple[str, ...] = field(default=MOSELLE_COMMUNES)

    @property
    def default_commune(self) -> str:
        return self.communes[0] if self.communes else ""


def _env_number(environ: Mapping[str, str], key: str, cast, default):
    raw = (environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except Exception:
        logger.warning("Ignoring invalid %s=%r, using %r", key, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %r", key, raw, default)
        return default
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from DPE_HUB_* environment variables."""
    env = os.environ if environ is None else environ
    settings = Settings()
    api_base = (env.get("DPE_HUB_API_BASE") or "").strip().rstrip("/")
    dataset_id = (env.get("DPE_HUB_DATASET_ID") or "").strip()
    return replace(
        settings,
        api_base=api_base or settings.api_base,
        dataset_id=dataset_id or settings.dataset_id,
        page_size=_env_number(env, "DPE_HUB_PAGE_SIZE", int, settings.page_size),
        timeout_seconds=_env_number(env, "DPE_HUB_TIMEOUT", float, settings.timeout_seconds),
    )
