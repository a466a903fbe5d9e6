import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager

from dpe_core.charts import grade_distribution_chart, map_chart
from dpe_core.config import load_settings
from dpe_core.fetch import AdemeClient
from dpe_core.filters import grade_distribution, records_to_frame
from dpe_core.metrics_overview import TABLE_ROW_LIMIT
from dpe_core.models import FetchStatus
from dpe_core.session import VIEWS, DashboardSession

alt.data_transformers.disable_max_rows()
VIEW_LABELS = {"table": "Liste", "map": "Carte"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .kpi-label {font-size: 0.7rem;font-weight: 800;text-transform: uppercase;letter-spacing: .1em;color: #94a3b8;}
        .kpi-value {font-size: 1.9rem;font-weight: 900;color: #1e293b;}
        .kpi-sieve .kpi-value {color: #e11d48;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def kpi_tile(label: str, value: str, css: str = ""):
    st.markdown(
        f"<div class='card {css}'><div class='kpi-label'>{label}</div><div class='kpi-value'>{value}</div></div>",
        unsafe_allow_html=True,
    )


def get_session() -> DashboardSession:
    if "dpe_session" not in st.session_state:
        settings = load_settings()
        st.session_state["dpe_settings"] = settings
        st.session_state["dpe_session"] = DashboardSession(AdemeClient(settings), commune=settings.default_commune)
    return st.session_state["dpe_session"]


# ---------- UI setup ----------
st.set_page_config(page_title="DPE Hub · Prospection", layout="wide")
inject_base_styles()
st.title("DPE Hub · Prospection")

session = get_session()
settings = st.session_state["dpe_settings"]

with st.sidebar:
    st.markdown("### Zone de prospection")
    communes = list(settings.communes)
    commune = st.selectbox(
        "Commune",
        options=communes,
        index=communes.index(session.commune) if session.commune in communes else 0,
    )
    st.markdown("### Année de construction")
    c_min, c_max = st.columns(2)
    year_min = c_min.text_input("Min", value="", placeholder="Min")
    year_max = c_max.text_input("Max", value="", placeholder="Max")
    view_choice = st.radio(
        "Vue",
        options=list(VIEWS),
        format_func=lambda v: VIEW_LABELS[v],
        index=VIEWS.index(session.view),
        horizontal=True,
    )

if session.status is FetchStatus.IDLE or commune != session.commune:
    with st.spinner("Chargement des données..."):
        session.select_commune(commune)
session.set_year_bounds(year_min, year_max)
if view_choice != session.view:
    session.set_view(view_choice)

filtered = session.filtered

top = st.columns([2, 1, 1, 1])
with top[0]:
    st.markdown(
        f"<div class='app-top-bar'><div class='breadcrumb'>Registre de prospection</div>"
        f"<div class='page-title'>{session.commune}</div></div>",
        unsafe_allow_html=True,
    )
with top[1]:
    kpi_tile("Total affiché", f"{len(filtered):,}".replace(",", " "))
with top[2]:
    kpi_tile("Passoires thermiques (F/G)", str(session.thermal_sieve_count), "kpi-sieve")
with top[3]:
    st.download_button(
        "Exporter CSV",
        data=session.export_csv(),
        file_name=session.export_name,
        mime="text/csv",
        disabled=not filtered,
    )


def render_error_panel():
    st.error(f"Erreur API ADEME : impossible de récupérer les données pour {session.commune}.")
    if st.button("Réessayer"):
        with st.spinner("Chargement des données..."):
            session.load()
        st.rerun()


def render_table(frame: pd.DataFrame):
    if frame.empty:
        st.info("Aucune donnée trouvée")
        return
    shown = frame.head(TABLE_ROW_LIMIT).copy()
    st.dataframe(
        shown[["adresse_brut", "code_postal", "commune_brut", "surface_habitable", "annee_construction", "etiquette_dpe", "etiquette_ges", "n_dpe"]]
        .assign(annee_construction=lambda d: d["annee_construction"].astype(str))
        .rename(
            columns={
                "adresse_brut": "Adresse",
                "code_postal": "CP",
                "commune_brut": "Commune",
                "surface_habitable": "Surface (m²)",
                "annee_construction": "Année",
                "etiquette_dpe": "DPE",
                "etiquette_ges": "GES",
                "n_dpe": "N° DPE",
            }
        ),
        hide_index=True,
        width="stretch",
    )
    if len(frame) > TABLE_ROW_LIMIT:
        st.caption(f"{TABLE_ROW_LIMIT} premières lignes affichées sur {len(frame)}.")

    located = [r for r in filtered[:TABLE_ROW_LIMIT] if r.has_position]
    if located:
        c1, c2 = st.columns([4, 1])
        target = c1.selectbox(
            "Localiser un logement",
            options=located,
            format_func=lambda r: f"{r.adresse_brut} · {r.etiquette_dpe} · {r.n_dpe}",
        )
        if c2.button("Voir sur la carte"):
            session.focus_point(target.latitude, target.longitude, target.n_dpe)
            st.rerun()


def render_map(frame: pd.DataFrame):
    if session.focus is not None:
        st.caption(f"Logement ciblé : {session.focus.n_dpe}")
    st.altair_chart(map_chart(frame, session.focus), width="stretch")


if session.status is FetchStatus.ERROR:
    render_error_panel()
else:
    frame = records_to_frame(filtered)
    left, right = st.columns([1, 2])
    with left:
        with card("Répartition DPE"):
            st.altair_chart(grade_distribution_chart(grade_distribution(filtered)), width="stretch")
        with card("Répartition GES"):
            st.altair_chart(
                grade_distribution_chart(grade_distribution(filtered, "etiquette_ges"), "Étiquette GES"),
                width="stretch",
            )
    with right:
        if session.view == "map":
            render_map(frame)
        else:
            render_table(frame)

st.caption(f"Source : ADEME, jeu de données {settings.dataset_id} ({session.total} DPE disponibles).")
