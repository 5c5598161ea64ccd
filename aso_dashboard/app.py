# aso_dashboard/app.py
#
# ASO Observatory – Live monitoring dashboard
#
# Streamlit UI that:
#   - Pulls the live state, history, alerts and log stream from the API
#   - Shows the risk coefficient, the handover cue and a telemetry trend
#   - Lets the operator acknowledge alerts
#   - Requests, renders and dismisses narrative safety reports
#   - Auto-refreshes so updates appear live without manual reloads

import os
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
import requests
import streamlit as st
from streamlit_autorefresh import st_autorefresh

from aso_emulator.history import history_frame
from aso_emulator.reports import REPORT_RANGES

# -------------------------------------------------
# Config
# -------------------------------------------------

API_URL = os.getenv("API_URL", "http://127.0.0.1:8000").rstrip("/")
PAGE_TITLE = "ASO Observatory"

REFRESH_SECONDS = int(os.getenv("REFRESH_SECONDS", "2"))
REPORT_TIMEOUT_SECONDS = 60

SEVERITY_RENDER = {
    "CRITICAL": st.error,
    "WARNING": st.warning,
    "INFO": st.info,
}

NOTICE_RENDER = {
    "error": st.error,
    "warning": st.warning,
    "success": st.success,
}

# -------------------------------------------------
# Session state
# -------------------------------------------------

if "notice" not in st.session_state:
    # (level, message) left by an action, shown once after the rerun it triggers
    st.session_state["notice"] = None


def flash(level: str, message: str) -> None:
    st.session_state["notice"] = (level, message)


def render_notice() -> None:
    notice = st.session_state.get("notice")
    if not notice:
        return
    st.session_state["notice"] = None
    level, message = notice
    NOTICE_RENDER.get(level, st.info)(message)


# -------------------------------------------------
# Data access
# -------------------------------------------------


def _get(path: str, **params):
    resp = requests.get(f"{API_URL}{path}", params=params or None, timeout=5)
    resp.raise_for_status()
    return resp.json()


def fetch_state() -> Dict:
    return _get("/state")


def fetch_history() -> pd.DataFrame:
    data: List[Dict] = _get("/history")
    return history_frame(data)


def fetch_alerts() -> List[Dict]:
    return _get("/alerts")


def fetch_logs() -> List[Dict]:
    return _get("/logs")


def fetch_report() -> Dict:
    return _get("/report")


def acknowledge(alert_id: str) -> None:
    try:
        resp = requests.post(f"{API_URL}/alerts/{alert_id}/ack", timeout=5)
        if not resp.ok:
            flash("warning", f"Acknowledge call returned {resp.status_code}.")
    except requests.RequestException as exc:
        flash("error", f"Failed to acknowledge alert: {exc}")


def request_report(range_label: str) -> None:
    """
    Ask the API for a new report.

    The caller reruns the script right away, so the outcome is flashed and
    rendered under the header on the next pass.
    """
    try:
        resp = requests.post(
            f"{API_URL}/report",
            json={"range_label": range_label},
            timeout=REPORT_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        flash("error", f"Error generating report: {exc}")
        return

    if resp.ok:
        flash("success", f"Generated {range_label.lower()} safety report.")
        return
    try:
        detail = resp.json().get("detail", resp.status_code)
    except ValueError:
        detail = resp.status_code
    flash("error", f"Error generating report. Ensure API key is configured. ({detail})")


def dismiss_report() -> None:
    try:
        requests.delete(f"{API_URL}/report", timeout=5)
    except requests.RequestException as exc:
        flash("error", f"Failed to dismiss report: {exc}")


# -------------------------------------------------
# UI helpers
# -------------------------------------------------


def render_header(state: Dict) -> None:
    st.title(PAGE_TITLE)
    st.caption("Alignment Systems v4.2.1 – live latent-space risk monitoring.")
    pulse = "LIVE" if state.get("heartbeat_active") else "STALE"
    st.caption(f"Heartbeat: **{pulse}** · last sample {state['ts']}")


def render_risk_panel(state: Dict) -> None:
    st.markdown("### Risk coefficient")
    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("Latent uncertainty", f"{state['uncertainty']:.3f}", state["risk_level"])
    with c2:
        st.metric("Throughput", f"{state['throughput']:.1f}%")
    with c3:
        st.metric("Alignment score", f"{state['alignment_score']:.3f}")

    st.progress(float(np.clip(state["uncertainty"], 0.0, 1.0)))

    if state["responsibility_mode"] == "MANUAL":
        st.error("CRITICAL HANDOVER ACTIVE – operator has command responsibility.")
    else:
        st.info("OPTIMAL_AUTONOMY_MODE – system operating within safety envelope.")


def render_alerts(alerts: List[Dict]) -> None:
    st.markdown("### Alerts")
    if not alerts:
        st.caption("No active alerts.")
        return
    for alert in alerts:
        col_msg, col_ack = st.columns([6, 1])
        ts = datetime.fromtimestamp(alert["timestamp"] / 1000.0).strftime("%H:%M:%S")
        with col_msg:
            render = SEVERITY_RENDER.get(alert["severity"], st.info)
            render(f"{alert['message']}  ·  {ts}")
        with col_ack:
            if alert["acknowledged"]:
                st.caption("ACK")
            elif st.button("Ack", key=f"ack-{alert['id']}"):
                acknowledge(alert["id"])
                st.rerun()


def render_telemetry(history: pd.DataFrame) -> None:
    st.markdown("### System telemetry")
    if history.empty:
        st.info("Waiting for the first heartbeat...")
        return
    trend_col1, trend_col2 = st.columns(2)
    with trend_col1:
        st.line_chart(history.set_index("timestamp")[["uncertainty"]], height=240)
    with trend_col2:
        st.line_chart(history.set_index("timestamp")[["throughput"]], height=240)


def render_logs(logs: List[Dict]) -> None:
    st.markdown("### Live system log")
    if not logs:
        st.caption("Log stream is empty.")
        return
    df = pd.DataFrame(logs)[["time", "type", "severity", "message"]]
    st.dataframe(df, hide_index=True, height=400)


def render_report_center(status: Dict) -> None:
    st.markdown("### Analytics & reporting")
    busy = bool(status.get("busy"))
    if busy:
        st.caption("GENERATING...")

    cols = st.columns(len(REPORT_RANGES))
    for col, range_label in zip(cols, REPORT_RANGES):
        with col:
            if st.button(range_label, disabled=busy, key=f"range-{range_label}"):
                request_report(range_label)
                st.rerun()

    report: Optional[Dict] = status.get("report")
    if not report:
        return

    generated = datetime.fromtimestamp(report["generated_at"] / 1000.0).strftime("%H:%M:%S")
    st.markdown("#### ASO safety intelligence report")
    st.caption(f"REF: {report['reference']} | RANGE: {report['range_label']} | TIMESTAMP: {generated}")

    text_col, viz_col = st.columns(2)
    with text_col:
        st.code(report["narrative_text"], language=None)
    with viz_col:
        window = history_frame(report["sample_window"])
        if len(window) >= 2:
            st.line_chart(window.set_index("timestamp")[["uncertainty"]], height=180)
        stats = report["stats"]
        m1, m2, m3 = st.columns(3)
        with m1:
            st.metric("Peak drift", f"{stats['peak_drift']:.4f}")
        with m2:
            st.metric("Safety variance", f"{stats['safety_variance']:.4f}")
        with m3:
            st.metric("Avg throughput", f"{stats['avg_throughput']:.1f}%")
        st.caption(f"Data extrapolated from {stats['sample_count']} heartbeat pulses.")

    if st.button("Dismiss report"):
        dismiss_report()
        st.rerun()


# -------------------------------------------------
# Main layout
# -------------------------------------------------


def main() -> None:
    st.set_page_config(page_title=PAGE_TITLE, layout="wide")

    # Auto-refresh for live background updates
    st_autorefresh(interval=REFRESH_SECONDS * 1000, key="data_refresh")

    try:
        state = fetch_state()
        history = fetch_history()
        alerts = fetch_alerts()
        logs = fetch_logs()
        report_status = fetch_report()
    except requests.RequestException as exc:
        st.error(f"Error fetching observatory data from API: {exc}")
        return

    render_header(state)
    render_notice()
    render_alerts(alerts)
    st.markdown("---")

    main_col, side_col = st.columns([2, 1])
    with main_col:
        render_risk_panel(state)
        render_telemetry(history)
    with side_col:
        render_logs(logs)

    st.markdown("---")
    render_report_center(report_status)

    st.caption(
        f"Dashboard refreshes every {REFRESH_SECONDS} seconds; history holds the "
        f"last {len(history)} heartbeats."
    )


if __name__ == "__main__":
    main()
