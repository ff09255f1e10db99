"""
Restoration Planning Tool - Main Application

Streamlit page for choosing where to restore land in a country: pick the
restorable land, rank it by forest proximity, opportunity cost and carbon
potential, then draw a project area to see its outcomes.
"""

import logging
import time

import streamlit as st
from streamlit_folium import st_folium

from core.debounce import Debouncer
from core.errors import RestorationToolError
from core.map_view import build_map, drawing_count, drawing_signature, drawn_shape, legend_entries
from core.models import ProjectParameters
from core.scoring import FACTOR_PROFILES, PriorityFactor
from core.session import (
    ClearDrawings,
    DrawShape,
    Reset,
    RunAnalysis,
    SelectCountry,
    SessionState,
    SetCriterion,
    SetProjectParameter,
    SetWeight,
    ShowAvailableArea,
    ShowFactorLayer,
    StartDrawing,
    apply_action,
)
from core.settings import Settings
from loaders.datasets import DataRepository, get_data_repository

settings = Settings.from_env()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# PAGE CONFIG
# ═══════════════════════════════════════════════════════════════════════════
st.set_page_config(
    page_title="Restoration Planning Tool",
    page_icon="🌳",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    #MainMenu, footer, .stDeployButton {visibility: hidden; display: none;}
    .block-container { padding: 1rem 2rem; }
</style>
""", unsafe_allow_html=True)

CRITERIA_LABELS = {
    "grassland": "Grassland",
    "cropland": "Cropland",
    "reforestation": "Reforestation",
    "afforestation": "Afforestation",
}
PARAMETER_LABELS = {
    "project_length": "Project length (years)",
    "cost_per_ha_yr": "Cost per hectare per year",
    "return_per_ha_yr": "Return per hectare per year",
}


@st.cache_resource
def get_repository() -> DataRepository:
    return get_data_repository(settings)


repo = get_repository()

# Session-scoped state
if "tool" not in st.session_state:
    st.session_state.tool = SessionState()
    st.session_state.debouncer = Debouncer(settings.debounce_seconds)
    st.session_state.last_drawing = None
    st.session_state.map_version = 0
    st.session_state.error = None
    st.session_state.country_select = None
    st.session_state.draw_mode = None
    for _name in CRITERIA_LABELS:
        st.session_state[f"criterion_{_name}"] = False
    for _factor in PriorityFactor:
        st.session_state[f"weight_{_factor.value}"] = 0


def dispatch(action) -> bool:
    """Apply one action. On failure the state is untouched and the error is shown."""
    try:
        st.session_state.tool = apply_action(st.session_state.tool, action, repo)
        st.session_state.error = None
        return True
    except (RestorationToolError, ValueError) as e:
        log.warning(f"{type(action).__name__} failed: {e}")
        st.session_state.error = str(e)
        return False


# ═══════════════════════════════════════════════════════════════════════════
# WIDGET CALLBACKS
# ═══════════════════════════════════════════════════════════════════════════
def on_country():
    name = st.session_state.country_select
    if name and dispatch(SelectCountry(name)):
        st.session_state.last_drawing = None
        st.session_state.map_version += 1


def on_criterion(name: str):
    dispatch(SetCriterion(name, st.session_state[f"criterion_{name}"]))


def on_weight(factor: PriorityFactor):
    dispatch(SetWeight(factor, st.session_state[f"weight_{factor.value}"]))


def on_parameter(name: str):
    dispatch(SetProjectParameter(name, st.session_state[f"param_{name}"]))


def on_draw_mode():
    if dispatch(StartDrawing(st.session_state.draw_mode)):
        _clear_map_drawings()


def on_clear_drawings():
    if dispatch(ClearDrawings()):
        _clear_map_drawings()


def on_reset():
    dispatch(Reset())
    st.session_state.country_select = None
    st.session_state.draw_mode = None
    for name in CRITERIA_LABELS:
        st.session_state[f"criterion_{name}"] = False
    for factor in PriorityFactor:
        st.session_state[f"weight_{factor.value}"] = 0
    _clear_map_drawings()


def _clear_map_drawings():
    st.session_state.debouncer.cancel()
    st.session_state.last_drawing = None
    st.session_state.map_version += 1


# ═══════════════════════════════════════════════════════════════════════════
# SIDEBAR
# ═══════════════════════════════════════════════════════════════════════════
st.sidebar.title("🌳 Restoration Planning")
st.sidebar.markdown("---")

try:
    country_names = repo.country_names()
except RestorationToolError as e:
    st.error(f"Could not load country list: {e}")
    st.stop()

st.sidebar.selectbox(
    "Country",
    options=country_names,
    placeholder="Select a country",
    key="country_select",
    on_change=on_country,
)

st.sidebar.subheader("Restoration Criteria")
st.sidebar.caption("Current land cover")
for name in ("grassland", "cropland"):
    st.sidebar.checkbox(CRITERIA_LABELS[name], key=f"criterion_{name}", on_change=on_criterion, args=(name,))
st.sidebar.caption("Restoration type")
for name in ("reforestation", "afforestation"):
    st.sidebar.checkbox(CRITERIA_LABELS[name], key=f"criterion_{name}", on_change=on_criterion, args=(name,))
st.sidebar.button("Display Available Area", on_click=dispatch, args=(ShowAvailableArea(),),
                  width="stretch")

st.sidebar.markdown("---")
st.sidebar.subheader("Restoration Priorities")
for factor in PriorityFactor:
    profile = FACTOR_PROFILES[factor]
    st.sidebar.slider(profile.name, min_value=0, max_value=5,
                      key=f"weight_{factor.value}", on_change=on_weight, args=(factor,),
                      help=profile.description)
    st.sidebar.button(f"Display Layer: {profile.name}", key=f"show_{factor.value}",
                      on_click=dispatch, args=(ShowFactorLayer(factor),))

col_run, col_reset = st.sidebar.columns(2)
col_run.button("Run Analysis", on_click=dispatch, args=(RunAnalysis(),), type="primary")
col_reset.button("Reset", on_click=on_reset)

# ═══════════════════════════════════════════════════════════════════════════
# MAIN PAGE
# ═══════════════════════════════════════════════════════════════════════════
st.title("🌳 Restoration Planning Tool")
if st.session_state.error:
    st.error(st.session_state.error)

state: SessionState = st.session_state.tool
col_map, col_results = st.columns([3, 1])

with col_map:
    col_shape, col_clear = st.columns([3, 1])
    col_shape.radio("Draw project area", options=["rectangle", "polygon"],
                    horizontal=True, key="draw_mode", on_change=on_draw_mode)
    col_clear.button("Clear All Drawings", on_click=on_clear_drawings)

    fmap = build_map(
        state.layers,
        country_geometry=state.workspace.country.geometry if state.workspace else None,
        aoi=state.aoi,
        draw_mode=state.draw_mode,
    )
    map_data = st_folium(
        fmap,
        key=f"restoration_map_{st.session_state.map_version}",
        height=620,
        use_container_width=True,
        returned_objects=["last_active_drawing", "all_drawings"],
    )

    for name, low, high, palette in legend_entries(state.layers):
        swatches = "".join(
            f'<span style="background:{color};display:inline-block;width:18px;height:12px"></span>'
            for color in palette
        )
        st.markdown(f"**{name}** &nbsp; {low} {swatches} {high}", unsafe_allow_html=True)

# ═══════════════════════════════════════════════════════════════════════════
# DRAW EVENTS (debounced)
# ═══════════════════════════════════════════════════════════════════════════
debouncer: Debouncer = st.session_state.debouncer
signature = drawing_signature(map_data)
if signature != st.session_state.last_drawing:
    st.session_state.last_drawing = signature
    if signature is None:
        # Shape deleted from the map
        debouncer.cancel()
        dispatch(ClearDrawings())
        st.rerun()
    debouncer.submit(drawn_shape(map_data))
    if drawing_count(map_data) > 1:
        # Only the newest shape stays; the map redraws it as the project area
        st.session_state.last_drawing = None
        st.session_state.map_version += 1

if debouncer.pending:
    # A newer draw event reruns the script and cuts this wait short.
    time.sleep(debouncer.remaining())
    if debouncer.dispatch(lambda geometry: dispatch(DrawShape(geometry))) is not None:
        st.rerun()

# ═══════════════════════════════════════════════════════════════════════════
# PROJECT DETAILS AND RESULTS
# ═══════════════════════════════════════════════════════════════════════════
with col_results:
    st.subheader("Project Details")
    defaults = ProjectParameters()
    for name, label in PARAMETER_LABELS.items():
        st.text_input(label, value=f"{getattr(defaults, name):g}", key=f"param_{name}",
                      on_change=on_parameter, args=(name,))

    st.subheader("Project Statistics")
    if state.statistics is None:
        st.caption("Draw a project area to see its statistics.")
    for label, value in (state.statistics.to_display().items() if state.statistics else []):
        st.metric(label, value)
