# 1_Climate Dashboard.py

import logging
from typing import Dict, List, Optional
import folium
import plotly.graph_objects as go
import streamlit as st
from streamlit_folium import st_folium
from climate_api.boundaries import find_boundary, load_boundaries
from climate_api.config import load_settings
from climate_api.datasets import get_dataset_cache
from climate_api.geocoding import NominatimGeocoder
from climate_api.narrative import NarrativeClient, build_climate_prompt
from climate_core.dashboard import PRECIPITATION, TEMPERATURE, Dashboard

st.set_page_config(page_title="Climate Risk Explorer", layout="wide")

settings = load_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

CHART_COLORS = {TEMPERATURE: "#EB5C56", PRECIPITATION: "#2980B9"}
CHART_TITLES = {TEMPERATURE: "Temperature", PRECIPITATION: "Precipitation"}


# failures are not cached, the next action retries
@st.cache_resource(show_spinner=False)
def get_boundaries() -> List[Dict]:
    return load_boundaries(settings.boundaries_url, timeout=settings.http_timeout)


def new_view() -> dict:
    return {
        "charts": {},
        "messages": {},
        "marker": None,
        "bounds": None,
        "center": (20.0, 0.0),
        "zoom": 2,
        "region": None,
        "narrative": None,
    }


class StreamlitSurface:
    """Collects dashboard updates in session state; the page draws them."""

    def reset(self):
        st.session_state["view"] = new_view()

    @property
    def view(self) -> dict:
        return st.session_state.setdefault("view", new_view())

    def update_series(self, chart, labels, values, series_label):
        self.view["charts"][chart] = {"labels": list(labels), "values": list(values), "label": series_label}

    def set_marker(self, lat, lon, popup_metrics, risk_color):
        self.view["marker"] = {"lat": lat, "lon": lon, "metrics": popup_metrics, "color": risk_color}

    def fit_bounds(self, bounding_box):
        self.view["bounds"] = bounding_box

    def set_view(self, lat, lon, zoom):
        self.view["bounds"] = None
        self.view["center"] = (lat, lon)
        self.view["zoom"] = zoom

    def highlight_region(self, polygon):
        self.view["region"] = polygon

    def show_message(self, panel, message, level="info"):
        self.view["messages"][panel] = (level, message)

    def show_narrative(self, text):
        self.view["narrative"] = text


def get_dashboard() -> Dashboard:
    if "dashboard" not in st.session_state:
        narrator = NarrativeClient.from_settings(settings)
        st.session_state["dashboard"] = Dashboard(
            geocoder=NominatimGeocoder(settings.nominatim_url, settings.user_agent, settings.http_timeout),
            datasets=get_dataset_cache(settings),
            surface=StreamlitSurface(),
            boundaries=get_boundaries,
            find_boundary=find_boundary,
            narrator=narrator,
            build_prompt=build_climate_prompt,
            default_zoom=settings.default_zoom,
        )
    return st.session_state["dashboard"]


def show_panel_message(view: dict, panel: str):
    msg = view["messages"].get(panel)
    if not msg:
        return
    level, text = msg
    {"error": st.error, "warning": st.warning}.get(level, st.info)(text)


def render_map(view: dict) -> Optional[dict]:
    m = folium.Map(
        location=view["center"],
        zoom_start=view["zoom"],
        tiles="CartoDB positron",
        control_scale=True,
    )
    bounds = view["bounds"]
    if bounds:
        south, north, west, east = bounds
        m.fit_bounds([[south, west], [north, east]])

    marker = view["marker"]
    color = marker["color"] if marker else "#3388ff"
    if view["region"] is not None:
        folium.GeoJson(
            view["region"],
            style_function=lambda _f, c=color: {"color": c, "weight": 2, "fillColor": c, "fillOpacity": 0.15},
        ).add_to(m)
    elif bounds:
        folium.Rectangle([[south, west], [north, east]], color=color, weight=2, fill=False).add_to(m)

    if marker:
        lines = [f"<b>{k}</b>: {v}" for k, v in marker["metrics"].items() if v]
        folium.CircleMarker(
            [marker["lat"], marker["lon"]],
            radius=9,
            color=marker["color"],
            fill=True,
            fill_opacity=0.9,
            popup=folium.Popup("<br>".join(lines), max_width=320),
            tooltip=marker["metrics"].get("Country", ""),
        ).add_to(m)

    return st_folium(m, width="100%", height=480, key="main_map_canvas", returned_objects=["last_clicked"])


def render_chart(view: dict, metric: str):
    chart = view["charts"].get(metric)
    st.subheader(CHART_TITLES[metric])
    show_panel_message(view, metric)
    if not chart or not chart["labels"]:
        st.caption("Insufficient data.")
        return
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=chart["labels"],
            y=chart["values"],
            mode="lines",
            name=chart["label"],
            line=dict(width=2, color=CHART_COLORS[metric]),
            connectgaps=False,
        )
    )
    fig.update_layout(
        title=chart["label"],
        xaxis_title="Year",
        hovermode="x unified",
        height=360,
        margin=dict(l=10, r=10, t=50, b=10),
    )
    st.plotly_chart(fig, use_container_width=True)


st.title("Climate Risk Explorer")
st.write("Search a place or click the map to see historical temperature and precipitation trends for its country.")

dashboard = get_dashboard()
surface = dashboard.surface

if "view" not in st.session_state:
    surface.reset()
# global averages until a place is picked; each dataset shows up once it has loaded
if st.session_state["view"]["marker"] is None:
    shown = dashboard.show_global()
    pending = [m for m in (TEMPERATURE, PRECIPITATION) if m not in shown and m not in st.session_state["view"]["messages"]]
    if pending:
        st.info("Climate datasets are still loading. Global averages will appear shortly.")

with st.form("search_form", clear_on_submit=False):
    c1, c2 = st.columns([5, 1])
    with c1:
        query = st.text_input("Search location", placeholder="e.g. Lisbon, Kenya, Mekong Delta", label_visibility="collapsed")
    with c2:
        submitted = st.form_submit_button("Search", type="primary", use_container_width=True)

if submitted:
    if not query.strip():
        st.warning("Please enter a location to search.")
    else:
        surface.reset()
        with st.spinner(f"Looking up {query.strip()}..."):
            dashboard.search(query.strip())

view = st.session_state["view"]
show_panel_message(view, "search")

map_col, risk_col = st.columns([3, 2])
with map_col:
    map_data = render_map(view)

clicked = (map_data or {}).get("last_clicked")
if clicked and clicked != st.session_state.get("_prev_click"):
    st.session_state["_prev_click"] = clicked
    surface.reset()
    with st.spinner("Looking up the clicked point..."):
        dashboard.map_click(float(clicked["lat"]), float(clicked["lng"]))
    st.rerun()

with risk_col:
    st.subheader("Climate risk")
    marker = view["marker"]
    if marker:
        metrics = marker["metrics"]
        st.markdown(f"**{metrics.get('Location') or metrics.get('Country')}**")
        m1, m2 = st.columns(2)
        m1.metric("Primary risk", metrics["Primary risk"])
        m2.metric("Magnitude", metrics["Magnitude"])
        m3, m4 = st.columns(2)
        m3.metric("Temperature anomaly (°C)", metrics["Temperature anomaly (°C)"])
        m4.metric("Precipitation change (%)", metrics["Precipitation change (%)"])
        st.caption("Anomaly: mean of the last 5 years vs. the first 30 years on record.")
    else:
        st.caption("Pick a location to see its risk assessment.")

    st.subheader("AI analysis")
    show_panel_message(view, "narrative")
    if view["narrative"]:
        st.markdown(view["narrative"])

st.markdown("---")
t_col, p_col = st.columns(2)
with t_col:
    render_chart(view, TEMPERATURE)
with p_col:
    render_chart(view, PRECIPITATION)

st.page_link("pages/2_Comparison_Tool.py", label="→ Compare two countries")
