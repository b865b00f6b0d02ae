"""
Truck Yard Logistics — Interactive Dashboard

Run with:  streamlit run app.py
"""

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from truckyard_dashboard.config import CHART_TYPE_OPTIONS, CSV_URL, EFFICIENCY_MODES
from truckyard_dashboard.dashboard import compute_dashboard_views
from truckyard_dashboard.insights import summarise_events
from truckyard_dashboard.kpis import efficiency_series
from truckyard_dashboard.refresh import FeedRefresher, RefreshScheduler
from truckyard_dashboard.settings import (
    DashboardSettings,
    FilterCriteria,
    default_filter,
    default_monitor_date,
    load_settings,
    save_settings,
    sync_benchmark_to_average,
)
from truckyard_dashboard.transforms import list_materials

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Truck Yard Dashboard",
    page_icon="🚚",
    layout="wide",
    initial_sidebar_state="expanded",
)

PRIMARY = "#4f46e5"
SECONDARY = "#f59e0b"


# ---------------------------------------------------------------------------
# Feed + timer (shared across reruns)
# ---------------------------------------------------------------------------
@st.cache_resource
def get_refresher() -> FeedRefresher:
    refresher = FeedRefresher(CSV_URL)
    refresher.refresh()
    return refresher


@st.cache_resource
def get_scheduler(_refresher: FeedRefresher, _interval: int) -> RefreshScheduler:
    return RefreshScheduler(_interval, _refresher.refresh, is_busy=lambda: _refresher.in_flight)


# Replays chart animations by re-tagging the snapshot
@st.cache_resource
def get_animator(_refresher: FeedRefresher, _period: int) -> RefreshScheduler:
    return RefreshScheduler(_period, _refresher.bump_version)


if "settings" not in st.session_state:
    st.session_state["settings"] = load_settings()
settings: DashboardSettings = st.session_state["settings"]

refresher = get_refresher()
scheduler = get_scheduler(refresher, settings.refresh_rate_seconds)
animator = get_animator(refresher, settings.animation_period_seconds)


# ---------------------------------------------------------------------------
# Sidebar — filters
# ---------------------------------------------------------------------------
st.sidebar.title("Truck Yard")
st.sidebar.markdown("Logistics Dashboard")

default = default_filter()
start = st.sidebar.date_input("From shift day", pd.Timestamp(default.start_date))
end = st.sidebar.date_input("To shift day", pd.Timestamp(default.end_date))
snapshot = refresher.snapshot
material = st.sidebar.selectbox(
    "Material", [""] + list_materials(snapshot.events),
    format_func=lambda m: m or "All materials",
)
monitor_day = st.sidebar.date_input("Monitor shift day", pd.Timestamp(default_monitor_date()))

criteria = FilterCriteria(str(start), str(end), material)

st.sidebar.divider()
if st.sidebar.button("Refresh now"):
    refresher.refresh()
    st.rerun()
if st.sidebar.button("Resume timer" if scheduler.paused else "Pause timer"):
    scheduler.toggle_pause()
    st.rerun()


@st.fragment(run_every=1)
def countdown() -> None:
    before = refresher.snapshot.version
    scheduler.tick(1.0)
    if settings.animation_enabled:
        animator.tick(1.0)
    state = "paused" if scheduler.suspended else f"{int(scheduler.remaining)}s"
    st.caption(f"Next refresh: {state} · snapshot v{refresher.snapshot.version}")
    if refresher.snapshot.version != before:
        st.rerun()


views = compute_dashboard_views(
    snapshot.events, criteria, settings, str(monitor_day), snapshot.version
)


# ---------------------------------------------------------------------------
# Helper: chart by display mode
# ---------------------------------------------------------------------------
def render_chart(kind: str, x, y, name: str, y2=None, name2: str = "", benchmark=None):
    fig = go.Figure()
    if kind == "radar":
        fig.add_trace(go.Scatterpolar(r=list(y), theta=list(x), fill="toself", name=name,
                                      line_color=PRIMARY))
    elif kind == "bar" or kind == "composed":
        fig.add_trace(go.Bar(x=x, y=y, name=name, marker_color=PRIMARY, text=y,
                             textposition="outside"))
    elif kind == "area":
        fig.add_trace(go.Scatter(x=x, y=y, name=name, fill="tozeroy", line_color=PRIMARY))
    else:
        shape = "hv" if kind == "stepAfter" else "spline"
        fig.add_trace(go.Scatter(x=x, y=y, name=name, line_shape=shape,
                                 mode="lines+markers", line_color=PRIMARY))

    if kind == "composed" and y2 is not None:
        fig.add_trace(go.Scatter(x=x, y=y2, name=name2, yaxis="y2", mode="lines+markers",
                                 line_color=SECONDARY))
        fig.update_layout(yaxis2=dict(overlaying="y", side="right", range=[0, 100]))
    if benchmark is not None and kind != "radar":
        fig.add_hline(y=benchmark, line_dash="dash", line_color=settings.warn_color)

    if settings.animation_enabled:
        fig.update_layout(transition=dict(duration=800, easing="cubic-in-out"))
    fig.update_layout(height=360, plot_bgcolor="rgba(0,0,0,0)",
                      margin=dict(l=10, r=10, t=10, b=40))
    st.plotly_chart(fig, use_container_width=True)


summary = views.range_summary

# ===========================================================================
# Monitor
# ===========================================================================
st.title("Truck Yard Logistics")
countdown()

st.subheader(f"Shift monitor — {monitor_day}  ·  avg on-time {views.monitor_avg_rate}%")
if views.monitor.empty:
    st.info("No entry records for the selected date.")
else:
    monitor = views.monitor[
        ["truck_id", "material_name", "arrival_text", "departure_text",
         "duration_minutes", "on_time_rate", "is_alert", "is_complete"]
    ]

    def highlight(row):
        color = f"background-color: {settings.warn_color}22" if row["is_alert"] else ""
        return [color] * len(row)

    st.dataframe(monitor.style.apply(highlight, axis=1), use_container_width=True, hide_index=True)

st.divider()

# ===========================================================================
# Range charts
# ===========================================================================
rollups = views.daily_rollups
col1, col2 = st.columns(2)

with col1:
    st.subheader("Material pareto")
    render_chart(settings.chart_types["pareto"], views.pareto["material_name"],
                 views.pareto["tonnage"], "t", views.pareto["cumulative_percentage"], "cum %")
    c = st.columns(4)
    c[0].metric("Top-10", f"{views.pareto_total}t")
    c[1].metric("Range total", f"{summary['total_tons']}t")
    c[2].metric("Ratio", f"{views.pareto_share}%")
    c[3].metric("Days", summary["days"])

    st.subheader("Entry frequency")
    render_chart(settings.chart_types["frequency"], rollups["date"], rollups["event_count"], "trucks")
    c = st.columns(3)
    c[0].metric("Avg trucks/day", summary["avg_counts_per_day"])
    c[1].metric("Total trucks", summary["total_counts"])
    c[2].metric("Work time/day", f"{summary['avg_total_minutes_per_day']}m")

with col2:
    st.subheader("Daily tonnage")
    render_chart(settings.chart_types["tonnage"], rollups["date"], rollups["tonnage"], "t")
    c = st.columns(3)
    c[0].metric("Range total", f"{summary['total_tons']}t")
    c[1].metric("Avg per day", f"{summary['avg_tons_per_day']}t")
    c[2].metric("Total trucks", summary["total_counts"])

    st.subheader("Processing efficiency")
    mode = st.radio("Mode", EFFICIENCY_MODES, horizontal=True,
                    format_func=lambda m: "Avg per truck" if m == "avg" else "Total per day")
    eff = efficiency_series(rollups, mode)
    render_chart(settings.chart_types["efficiency"], eff["date"], eff["minutes"], "min",
                 benchmark=settings.benchmark_minutes if mode == "avg" else settings.target_hours * 60)
    st.metric("Avg processing time", f"{summary['avg_minutes_per_event']}m")

st.subheader("Hourly arrival flow")
render_chart(settings.chart_types["flow"], views.hourly_flow["label"], views.hourly_flow["count"], "arrivals")
st.caption(f"AM: {views.am_span}   PM: {views.pm_span}")

st.divider()

# ===========================================================================
# Settings + AI insights
# ===========================================================================
with st.expander("Settings"):
    refresh_rate = st.number_input("Refresh rate (s)", min_value=1, value=int(settings.refresh_rate_seconds))
    benchmark = st.number_input("Benchmark (min)", min_value=0.0, value=float(settings.benchmark_minutes))
    threshold = st.number_input("Warn threshold (%)", min_value=0.0, max_value=100.0,
                                value=min(100.0, max(0.0, float(settings.warn_threshold_percent))))
    target_hours = st.number_input("Target hours", min_value=0.0, value=float(settings.target_hours))
    animation_enabled = st.checkbox("Replay chart animations", value=settings.animation_enabled)
    animation_period = st.number_input("Animation period (s)", min_value=1,
                                       value=int(settings.animation_period_seconds))
    chart_types = {
        chart: st.selectbox(chart, CHART_TYPE_OPTIONS, index=CHART_TYPE_OPTIONS.index(kind))
        for chart, kind in settings.chart_types.items()
    }
    left, right = st.columns(2)
    if left.button("Save"):
        new = DashboardSettings.from_dict({
            **settings.to_dict(),
            "refresh_rate_seconds": int(refresh_rate),
            "benchmark_minutes": benchmark,
            "warn_threshold_percent": threshold,
            "target_hours": target_hours,
            "animation_enabled": animation_enabled,
            "animation_period_seconds": int(animation_period),
            "chart_types": chart_types,
        })
        save_settings(new)
        st.session_state["settings"] = new
        scheduler.set_interval(new.refresh_rate_seconds)
        animator.set_interval(new.animation_period_seconds)
        refresher.bump_version()
        st.rerun()
    if right.button("Use range average as benchmark"):
        if summary["total_counts"] == 0:
            st.warning("No trucks in the selected range.")
        else:
            st.session_state["settings"] = sync_benchmark_to_average(settings, summary)
            st.rerun()

with st.expander("AI insights"):
    language = st.selectbox("Language", ["English", "Traditional Chinese", "Hindi"])
    if st.button("Analyze"):
        with st.spinner("Analyzing..."):
            st.markdown(summarise_events(snapshot.events, language))
