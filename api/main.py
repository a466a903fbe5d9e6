from __future__ import annotations

import logging
import math
import re
from typing import Optional
from urllib.parse import quote

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DpeFiltersModel, MapFocusModel, MetaCommunesResponse
from dpe_core.config import load_settings
from dpe_core.fetch import AdemeClient
from dpe_core.metrics_overview import compute_overview
from dpe_core.models import FetchStatus
from dpe_core.session import DashboardSession


app = FastAPI(title="DPE Hub API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

settings = load_settings()
_session: Optional[DashboardSession] = None


def get_session() -> DashboardSession:
    global _session
    if _session is None:
        _session = DashboardSession(AdemeClient(settings), commune=settings.default_commune)
    return _session


def set_session(session: Optional[DashboardSession]) -> None:
    global _session
    _session = session


def _apply_filters(model: DpeFiltersModel, *, reload: bool = False) -> DashboardSession:
    session = get_session()
    commune = (model.commune or "").strip() or session.commune or settings.default_commune
    if reload and commune == session.commune:
        session.load()
    else:
        session.select_commune(commune)
    session.set_year_bounds(model.year_min, model.year_max)
    return session


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/communes")
def meta_communes():
    try:
        payload = MetaCommunesResponse(communes=list(settings.communes), default=settings.default_commune)
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_communes failed")
        return _error(exc)


@app.post("/overview")
def overview(filters: DpeFiltersModel):
    try:
        session = _apply_filters(filters)
        return _json(compute_overview(session.filters, session.context()))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/reload")
def reload(filters: DpeFiltersModel):
    try:
        session = _apply_filters(filters, reload=True)
        return _json(compute_overview(session.filters, session.context()))
    except Exception as exc:
        logger.exception("reload failed")
        return _error(exc)


@app.post("/focus")
def focus(point: MapFocusModel):
    try:
        get_session().focus_point(point.latitude, point.longitude, point.n_dpe)
        return Response(status_code=204)
    except Exception as exc:
        logger.exception("focus failed")
        return _error(exc)


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 name (RFC 6266)."""
    fallback = re.sub(r"[^\x20-\x7e]", "_", filename).replace('"', "_").replace("\\", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@app.post("/export")
def export_csv(filters: DpeFiltersModel):
    try:
        session = _apply_filters(filters)
        if session.status is FetchStatus.ERROR:
            logger.warning("Exporting %s while in error state", session.commune)
        return Response(
            content=session.export_csv(),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": _content_disposition(session.export_name)},
        )
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
