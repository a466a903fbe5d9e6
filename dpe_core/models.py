from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union


NA = "N/A"


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class DpeResult:
    """One DPE record in the canonical schema, whatever dataset generation it came from."""

    n_dpe: str
    date_etablissement_dpe: str = ""
    etiquette_dpe: str = NA
    etiquette_ges: str = NA
    conso_5_usages_m2_an: float = 0.0
    emission_ges_5_usages_m2_an: float = 0.0
    adresse_brut: str = "Adresse non renseignée"
    commune_brut: str = ""
    code_postal: str = ""
    annee_construction: Union[str, int] = NA
    surface_habitable: float = 0.0
    cout_total_5_usages: float = 0.0
    type_batiment: str = "Bâtiment"
    type_chauffage: Optional[str] = None
    latitude: float = math.nan
    longitude: float = math.nan

    @property
    def has_position(self) -> bool:
        # 0/0 is what the API returns for records that were never geocoded
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return bool(self.latitude) and bool(self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FetchOutcome:
    total: int = 0
    results: Tuple[DpeResult, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "FetchOutcome":
        return cls(total=0, results=())


@dataclass(frozen=True)
class MapFocus:
    latitude: float
    longitude: float
    n_dpe: str
