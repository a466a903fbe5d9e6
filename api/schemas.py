from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel


class DpeFiltersModel(BaseModel):
    commune: Optional[str] = None
    # strings are accepted as typed in the UI; blanks mean "no bound"
    year_min: Optional[Union[int, str]] = None
    year_max: Optional[Union[int, str]] = None


class MapFocusModel(BaseModel):
    latitude: float
    longitude: float
    n_dpe: str


class MetaCommunesResponse(BaseModel):
    communes: List[str]
    default: str
