"""Shared fixtures: raw ADEME lines from each dataset generation and fake HTTP transports."""

import itertools
import json

import httpx
import pytest

from dpe_core.config import Settings
from dpe_core.fetch import AdemeClient


V3_LINE = {
    "n_dpe": "2354E0123456X",
    "date_etablissement_dpe": "2023-05-12",
    "etiquette_dpe": "f",
    "etiquette_ges": "D",
    "conso_kwhe_m2_an": 352.4,
    "emission_ges_kg_co2_m2_an": "41",
    "adresse_ban": "12 Rue de la Gare 54190 Villerupt",
    "nom_commune_ban": "Villerupt",
    "code_postal_ban": "54190",
    "annee_construction": 1958,
    "surface_habitable_logement": 84.5,
    "cout_total_5_usages": 2410.7,
    "type_batiment": "maison",
    "type_generateur_chauffage_principal": "Chaudière gaz standard",
    "latitude": 49.4685,
    "longitude": 5.9290,
}

V2_LINE = {
    "N_DPE": "2157V1000001Z",
    "Date_établissement_DPE": "2022-01-03",
    "Etiquette_DPE": "G",
    "Etiquette_GES": "G",
    "Adresse_brut": "3 rue Jeanne d'Arc",
    "Commune_brut": "Aumetz",
    "Code_postal_(BAN)": 57710,
    "Année_construction": "avant 1948",
    "Coût_total_5_usages": "3120,5",
    "type_logement": "appartement",
    "lat_ban": "49.4189",
    "lon_ban": "5.9441",
}

V1_LINE = {
    "numero_dpe": "1454V2003456A",
    "classe_consommation_energie": "c",
    "classe_estimation_ges": "b",
    "consommation_energie": "145",
    "estimation_ges": 12,
    "adresse_brute": "8 avenue Albert Lebrun",
    "nom_commune": "Longwy",
    "code_postal_brut": "54400",
    "surface_thermique": "62",
    "type_installation_chauffage": "individuel",
}


@pytest.fixture
def v3_line():
    return dict(V3_LINE)


@pytest.fixture
def v2_line():
    return dict(V2_LINE)


@pytest.fixture
def v1_line():
    return dict(V1_LINE)


@pytest.fixture
def id_factory():
    """Deterministic ids: gen0001, gen0002, ..."""
    counter = itertools.count(1)
    return lambda: f"gen{next(counter):04d}"


@pytest.fixture
def settings():
    return Settings(api_base="https://ademe.test/api/v1", dataset_id="dpe-test", page_size=50)


@pytest.fixture
def make_client(settings, id_factory):
    """Return a factory building an AdemeClient over an httpx.MockTransport handler."""

    def _make_client(handler):
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return AdemeClient(settings, client=http, id_factory=id_factory)

    return _make_client


@pytest.fixture
def ok_handler():
    """Handler answering every request with the three sample lines; requests are recorded."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = {"total": 3, "results": [V3_LINE, V2_LINE, V1_LINE]}
        return httpx.Response(200, content=json.dumps(body).encode("utf-8"), headers={"content-type": "application/json"})

    handler.seen = seen
    return handler
