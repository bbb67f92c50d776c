import os
from datetime import date, datetime, time, timedelta

import altair as alt
import pandas as pd
import requests
import streamlit as st

st.set_page_config(page_title="Crypto Stats (dev)", layout="wide")

st.title("📈 Crypto Stats — Development UI (Streamlit)")

# -------------------- BACKEND CONFIG -------------------- #
DEFAULT_BACKEND = os.getenv(
    "BACKEND_URL", "http://backend:8000"
)  # docker service by default
backend_url = st.sidebar.text_input("Backend base URL", value=DEFAULT_BACKEND)


def _error_detail(resp: requests.Response) -> str:
    try:
        return resp.json().get("detail", resp.text)
    except ValueError:
        return resp.text


# -------------------- CURRENCY REGISTRY -------------------- #
st.sidebar.markdown("---")
st.sidebar.markdown("### Currencies")

new_symbol = st.sidebar.text_input("New currency symbol", value="")
if st.sidebar.button("Register currency") and new_symbol:
    resp = requests.post(
        f"{backend_url}/currencies", json={"symbol": new_symbol.strip()}, timeout=5
    )
    if resp.status_code == 201:
        st.sidebar.success(f"✅ Currency {new_symbol} registered")
    else:
        st.sidebar.error(f"❌ {_error_detail(resp)}")

symbols = []
try:
    resp = requests.get(f"{backend_url}/currencies", timeout=5)
    resp.raise_for_status()
    symbols = [c["symbol"] for c in resp.json()]
    st.sidebar.write(", ".join(symbols) if symbols else "No currencies registered yet")
except Exception as e:
    st.sidebar.error(f"⚠️ Could not fetch currencies: {e}")

# -------------------- CSV UPLOAD -------------------- #
st.sidebar.markdown("---")
st.sidebar.markdown("### Upload prices")

uploaded = st.sidebar.file_uploader("Prices CSV (timestamp,symbol,price)", type=["csv"])
if uploaded is not None and st.sidebar.button("Upload CSV"):
    resp = requests.post(
        f"{backend_url}/currencies/stats",
        files={"file": (uploaded.name, uploaded.getvalue(), "text/csv")},
        timeout=60,
    )
    if resp.status_code == 201:
        st.sidebar.success("✅ Prices uploaded")
    else:
        st.sidebar.error(f"❌ {_error_detail(resp)}")

# -------------------- PERIOD -------------------- #
st.markdown("---")
today = date.today()
period = st.date_input(
    "Period", value=(today - timedelta(days=30), today + timedelta(days=1))
)
# a half-picked range has a single date
start_day = period[0]
end_day = period[1] if len(period) > 1 else start_day + timedelta(days=1)
params = {
    "startDateTime": datetime.combine(start_day, time.min).isoformat(),
    "endDateTime": datetime.combine(end_day, time.min).isoformat(),
}

col1, col2 = st.columns([3, 2])

# -------------------- NORMALIZED RANKING -------------------- #
with col1:
    st.subheader("Normalized Price Ranking")
    st.info("Normalized price = (max price − min price) / min price over the period.")
    try:
        resp = requests.get(f"{backend_url}/currencies/stats", params=params, timeout=10)
        resp.raise_for_status()
        data = resp.json()
        if data:
            df = pd.DataFrame(data)
            df["normalizedPrice"] = df["normalizedPrice"].astype(float)
            chart = (
                alt.Chart(df)
                .mark_bar()
                .encode(
                    x=alt.X("symbol:N", sort="-y"),
                    y=alt.Y("normalizedPrice:Q", title="Normalized price"),
                    tooltip=["symbol:N", "normalizedPrice:Q"],
                )
            )
            st.altair_chart(chart, use_container_width=True)
            st.dataframe(df)
        else:
            st.info("No prices in this period — upload a CSV to populate the DB.")
    except Exception as e:
        st.error(f"❌ {e}")

# -------------------- CURRENCY STATS -------------------- #
with col2:
    st.subheader("Currency Stats")
    if symbols:
        s = st.selectbox("Currency", symbols)
        resp = requests.get(
            f"{backend_url}/currencies/stats/{s}", params=params, timeout=10
        )
        if resp.status_code == 200:
            st.json(resp.json())
        else:
            st.warning(_error_detail(resp))

    st.subheader("Highest Normalized Price of the Day")
    day = st.date_input("Day", value=today, key="highest_day")
    resp = requests.get(
        f"{backend_url}/currencies/stats/highest",
        params={"day": day.isoformat()},
        timeout=10,
    )
    if resp.status_code == 200:
        st.json(resp.json())
    else:
        st.warning(_error_detail(resp))

# -------------------- FOOTER -------------------- #
st.markdown("---")
st.caption("⚠️ Dev UI — add authentication and a production-grade frontend for real deployment.")
