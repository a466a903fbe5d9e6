from __future__ import annotations

import math
import random
import string
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from dpe_core.models import NA, DpeResult


IdFactory = Callable[[], str]

# Ordered candidate keys per canonical field. The ADEME dataset went through three
# generations (v1 lowercase legacy names, v2 capitalised labels, v3 snake_case), so
# each field is looked up under every name it has had.
FIELD_CANDIDATES: Dict[str, Tuple[str, ...]] = {
    "n_dpe": ("n_dpe", "N_DPE", "numero_dpe"),
    "date_etablissement_dpe": ("date_etablissement_dpe", "Date_établissement_DPE"),
    "etiquette_dpe": ("etiquette_dpe", "Etiquette_DPE", "classe_consommation_energie"),
    "etiquette_ges": ("etiquette_ges", "Etiquette_GES", "classe_estimation_ges"),
    "conso_5_usages_m2_an": ("conso_kwhe_m2_an", "consommation_energie"),
    "emission_ges_5_usages_m2_an": ("emission_ges_kg_co2_m2_an", "estimation_ges"),
    "adresse_brut": ("adresse_ban", "Adresse_brut", "adresse_brute"),
    "commune_brut": ("nom_commune_ban", "Commune_brut", "nom_commune"),
    "code_postal": ("code_postal_ban", "Code_postal_(BAN)", "code_postal_brut"),
    "annee_construction": ("annee_construction", "Année_construction"),
    "surface_habitable": ("surface_habitable_logement", "surface_thermique"),
    "cout_total_5_usages": ("cout_total_5_usages", "Coût_total_5_usages"),
    "type_batiment": ("type_batiment", "type_logement"),
    "type_chauffage": ("type_generateur_chauffage_principal", "type_installation_chauffage"),
    "latitude": ("latitude", "lat_ban"),
    "longitude": ("longitude", "lon_ban"),
}

GRADES = "ABCDEFG"
DEFAULT_ADDRESS = "Adresse non renseignée"
DEFAULT_BUILDING_TYPE = "Bâtiment"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def random_dpe_id(rng: Optional[random.Random] = None) -> str:
    """Fallback identifier: 5 or 6 base-36 characters. Not unique, not stable."""
    rng = rng or random
    length = rng.choice((5, 6))
    return "".join(rng.choice(_ID_ALPHABET) for _ in range(length))


def first_present(raw: Mapping[str, Any], keys: Sequence[str]) -> Optional[Any]:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def to_text(value: Any, default: str = "") -> str:
    if _is_blank(value):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce an API value to float; anything unusable becomes `default`."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            out = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        s = value.strip().replace("\u00a0", "").replace(" ", "").replace(",", ".")
        try:
            out = float(s)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(out) or math.isinf(out):
        return default
    return out


def normalize_grade(value: Any) -> str:
    if _is_blank(value):
        return NA
    s = str(value).strip().upper()
    if s == NA:
        return NA
    letter = s[0]
    return letter if letter in GRADES else NA


def normalize_year(value: Any) -> Union[str, int]:
    if _is_blank(value) or isinstance(value, bool):
        return NA
    if isinstance(value, int):
        return value if value else NA
    if isinstance(value, float):
        if not value:
            return NA
        return int(value) if value.is_integer() else str(value)
    return str(value).strip()


def normalize_record(
    raw: Any,
    *,
    commune: str = "",
    id_factory: IdFactory = random_dpe_id,
) -> DpeResult:
    """Map one raw API line to a DpeResult. Never raises; defaults absorb bad input."""
    item: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

    def get(name: str) -> Optional[Any]:
        return first_present(item, FIELD_CANDIDATES[name])

    dpe_id = to_text(get("n_dpe")) or id_factory()
    heating = to_text(get("type_chauffage"))

    return DpeResult(
        n_dpe=dpe_id,
        date_etablissement_dpe=to_text(get("date_etablissement_dpe")),
        etiquette_dpe=normalize_grade(get("etiquette_dpe")),
        etiquette_ges=normalize_grade(get("etiquette_ges")),
        conso_5_usages_m2_an=to_number(get("conso_5_usages_m2_an")),
        emission_ges_5_usages_m2_an=to_number(get("emission_ges_5_usages_m2_an")),
        adresse_brut=to_text(get("adresse_brut"), DEFAULT_ADDRESS),
        commune_brut=to_text(get("commune_brut"), commune),
        code_postal=to_text(get("code_postal")),
        annee_construction=normalize_year(get("annee_construction")),
        surface_habitable=to_number(get("surface_habitable")),
        cout_total_5_usages=to_number(get("cout_total_5_usages")),
        type_batiment=to_text(get("type_batiment"), DEFAULT_BUILDING_TYPE),
        type_chauffage=heating or None,
        latitude=to_number(get("latitude"), math.nan),
        longitude=to_number(get("longitude"), math.nan),
    )


def normalize_records(
    items: Optional[Iterable[Any]],
    *,
    commune: str = "",
    id_factory: IdFactory = random_dpe_id,
) -> List[DpeResult]:
    return [normalize_record(item, commune=commune, id_factory=id_factory) for item in (items or [])]
