# pages/3_About.py

import streamlit as st
from climate_core.risk import BASELINE_POINTS, MIN_POINTS, RECENT_POINTS

st.set_page_config(
    page_title="About – Climate Risk Explorer",
    layout="wide",
)

st.title("About the Climate Risk Explorer")
st.markdown("---")

# INTRO

st.markdown("""
## Overview

The **Climate Risk Explorer** lets you pick a place, either by searching for it or by clicking the map,
and shows the **historical temperature and precipitation record** of the country it lies in,
together with a simple **climate risk classification** and an optional AI-written summary.

It combines four independent sources:

- **OpenStreetMap Nominatim** → place search and reverse lookup
- **Country climate datasets** → yearly temperature and precipitation per country
- **Country boundaries (GeoJSON)** → highlighting the selected country
- **OpenRouter** (optional) → narrative summary of the risk metrics
""")

st.markdown("---")

# APP PAGES

st.markdown("""
## Application Structure

### **1. Climate Dashboard**
- Type a city, region or country, or click anywhere on the map.
- The place is resolved to a country and its boundary is highlighted
  (the search bounding box is drawn when no boundary matches).
- Temperature and precipitation charts show the country's yearly series.
- Before a place is picked, or when a search finds nothing, the charts show the **global average**.

---

### **2. Comparison Tool**
- Compare two countries on the same variable.
- Both series are plotted together and each gets its own risk assessment.

---
""")

# METHODS

st.markdown(f"""
## Methodology Summary

### **1. Country matching**
Place names come from three sources that spell countries differently.
Every lookup goes through one normalized key: parenthetical qualifiers removed,
accents folded, whitespace trimmed, lower case (*"Congo (Kinshasa)"* → *congo*).

### **2. Yearly series**
Monthly records are averaged into calendar years. Years without any valid record
are kept as gaps, never filled with zero.

### **3. Risk assessment**
- **Baseline**: mean of the first {BASELINE_POINTS} yearly values.
- **Recent**: mean of the last {RECENT_POINTS} yearly values.
- **Temperature anomaly** = recent − baseline (°C).
- **Precipitation change** = (recent − baseline) / baseline × 100 (%).

| Temperature anomaly | Score |   | Precipitation change | Score |
|---|---|---|---|---|
| ≥ 1.5 °C | 3 | | < −10 % | 3 |
| ≥ 1.0 °C | 2 | | \\|change\\| ≥ 15 % | 2.5 |
| > 0 °C | 1 | | \\|change\\| ≥ 5 % | 2 |
| otherwise | 0 | | \\|change\\| > 0 % | 1 |

The higher score decides the primary risk (warming, drought or flood).
Equal non-zero scores give *Both Significant*, two zero scores give *Monitor*.
Score 3 is **High**, 2 or 2.5 **Medium**, 1 **Low**.
Countries with fewer than {MIN_POINTS} years on record are shown as *Insufficient Data*.
""")

st.markdown("---")

# LIMITATIONS

st.markdown("""
## Important Limitations

1. **Country-level only**
   A clicked point or searched city is assessed with the national record of its country.

2. **Country from address text**
   When the geocoder returns no structured country field, the last part of the address is used.
   This fails for addresses ending in a postal code.

3. **Ties favour temperature**
   When both scores are equal, the magnitude is taken from the temperature score only.

4. **Near-zero precipitation baselines**
   Percent change is left undefined for arid records with a zero baseline.

5. **AI summaries are indicative**
   The narrative is generated text and can be wrong; rely on the charts and metrics.
""")

st.page_link("1_Climate Dashboard.py", label="← Back to App")
