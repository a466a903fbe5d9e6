from __future__ import annotations

import csv
import math
import re
from typing import Dict, Sequence

from dpe_core.filters import records_to_frame
from dpe_core.models import DpeResult


EXPORT_COLUMNS: Dict[str, str] = {
    "n_dpe": "ID_DPE",
    "date_etablissement_dpe": "Date",
    "commune_brut": "Commune",
    "code_postal": "CP",
    "adresse_brut": "Adresse",
    "etiquette_dpe": "DPE",
    "etiquette_ges": "GES",
    "conso_5_usages_m2_an": "Conso",
    "surface_habitable": "Surface",
    "annee_construction": "Annee",
}

DELIMITER = ";"
LINE_TERMINATOR = "\r\n"
BOM = "\ufeff"


def format_csv_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        return str(int(value)) if value.is_integer() else str(value)
    return str(value)


def to_csv_text(records: Sequence[DpeResult]) -> str:
    """Semicolon CSV, every cell quoted, CRLF between rows, no trailing newline."""
    header = DELIMITER.join(EXPORT_COLUMNS.values())
    if not records:
        return header
    df = records_to_frame(records)[list(EXPORT_COLUMNS.keys())]
    df = df.astype(object).apply(lambda col: col.map(format_csv_value))
    body = df.to_csv(
        index=False,
        header=False,
        sep=DELIMITER,
        quoting=csv.QUOTE_ALL,
        lineterminator=LINE_TERMINATOR,
    )
    return header + LINE_TERMINATOR + body[: -len(LINE_TERMINATOR)]


def to_csv_bytes(records: Sequence[DpeResult]) -> bytes:
    return (BOM + to_csv_text(records)).encode("utf-8")


def export_filename(commune: str) -> str:
    safe = re.sub(r'[\\/:*?"<>|\r\n]+', "_", (commune or "").strip()) or "DPE"
    return f"Export_{safe}.csv"
