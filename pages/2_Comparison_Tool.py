# pages/2_Comparison_Tool.py

import logging
import pandas as pd
import plotly.graph_objects as go
import streamlit as st
from climate_api.config import load_settings
from climate_api.datasets import get_dataset_cache
from climate_core.aggregate import collapse_to_years
from climate_core.countries import suggest_countries
from climate_core.dashboard import PRECIPITATION, SERIES_LABELS, TEMPERATURE
from climate_core.errors import CollaboratorUnavailable
from climate_core.risk import assess_risk
from climate_core.series import country_names, series_for_country

logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Compare Countries — Climate Risk Explorer",
    layout="wide",
)

st.title("Compare climate trends between two countries")
st.caption("Type two country names as they appear in the climate datasets.")
st.markdown("---")


def load_frames():
    cache = get_dataset_cache(load_settings())
    frames = {}
    for metric in (TEMPERATURE, PRECIPITATION):
        try:
            frames[metric] = cache.get(metric, timeout=60)
        except CollaboratorUnavailable as e:
            logger.warning("Comparison: %s", e)
            st.error(f"{metric.title()} data could not be loaded.")
            st.stop()
    return frames


def country_series(frames, name: str):
    return {m: collapse_to_years(series_for_country(df, name)) for m, df in frames.items()}


def standardize(series, label: str) -> pd.DataFrame:
    df = series.to_frame().rename(columns={"value": label})
    return df.dropna(subset=[label])


colA, colB = st.columns(2)
with colA:
    locA = st.text_input("Country A", placeholder="e.g. Portugal")
with colB:
    locB = st.text_input("Country B", placeholder="e.g. Kenya")

if not locA or not locB:
    st.stop()

with st.spinner("Loading climate datasets..."):
    frames = load_frames()

known = set(country_names(frames[TEMPERATURE])) | set(country_names(frames[PRECIPITATION]))
seriesA = country_series(frames, locA)
seriesB = country_series(frames, locB)

for name, series in ((locA, seriesA), (locB, seriesB)):
    if all(s.is_empty for s in series.values()):
        hints = [nm for nm, _ in suggest_countries(name, known)]
        msg = f"Could not find: {name}"
        if hints:
            msg += f" (did you mean {', '.join(hints)}?)"
        st.error(msg)
        st.stop()

st.success(f"Comparing **{locA.strip()}** and **{locB.strip()}**")
st.markdown("---")

metric = st.selectbox("Variable", [TEMPERATURE, PRECIPITATION], format_func=lambda m: SERIES_LABELS[m])

dfA = standardize(seriesA[metric], locA.strip())
dfB = standardize(seriesB[metric], locB.strip())
combined = dfA.merge(dfB, on="year", how="outer").sort_values("year")

if combined.empty:
    st.warning("No overlapping records for this variable.")
    st.stop()

ymin = int(combined["year"].min())
ymax = int(combined["year"].max())
if ymin < ymax:
    yr_range = st.slider("Year range", min_value=ymin, max_value=ymax, value=(ymin, ymax))
    df_plot = combined[(combined["year"] >= yr_range[0]) & (combined["year"] <= yr_range[1])]
else:
    df_plot = combined

chart_type = st.radio("Chart type", ["Line", "Scatter"], horizontal=True)
mode = "lines" if chart_type == "Line" else "markers"

fig = go.Figure()
for col in df_plot.columns:
    if col != "year":
        fig.add_trace(go.Scatter(x=df_plot["year"], y=df_plot[col], mode=mode, name=col, line=dict(width=3)))

fig.update_layout(
    title=SERIES_LABELS[metric],
    xaxis_title="Year",
    yaxis_title=SERIES_LABELS[metric],
    height=540,
)
st.plotly_chart(fig, use_container_width=True)

st.subheader("Risk assessment")
rows = []
for name, series in ((locA, seriesA), (locB, seriesB)):
    ra = assess_risk(series[TEMPERATURE], series[PRECIPITATION])
    rows.append({"Country": name.strip(), **ra.as_metrics()})
st.dataframe(pd.DataFrame(rows), use_container_width=True)

st.markdown("---")
st.subheader("Raw comparison data")
st.dataframe(combined, use_container_width=True)
st.download_button(
    label="Download CSV",
    data=combined.to_csv(index=False),
    file_name=f"comparison_{metric}.csv",
    mime="text/csv",
)

st.page_link("1_Climate Dashboard.py", label="← Back to Dashboard")
st.page_link("pages/3_About.py", label="→ About")
