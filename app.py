import json

import pandas as pd
import streamlit as st

from alerts import build_alert_sink
from config import configure_logging, get_settings
from decision_engine import get_rule_definitions
from ingest import IngestionError
from kpi_definitions import get_all_required_fields, get_kpi_definitions
from llm_client import build_narrator, get_usage
from pipeline import PipelineResult, run_pipeline


def init_session_state():
    # The latest result lives in the session; each upload swaps in a new one.
    defaults = {
        "result": None,
        "dataset_name": "",
        "ingest_error": None,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


def _daily_frame(result: PipelineResult) -> pd.DataFrame:
    report = result.report
    anomaly_days = {a.day for a in report.anomalies}
    df = pd.DataFrame(
        [
            {"day": p.day, "revenue": p.total, "anomaly": p.day in anomaly_days}
            for p in report.daily_revenue
        ]
    )
    if not df.empty:
        df["day"] = pd.to_datetime(df["day"])
    return df


def _ranked_frame(entries, label: str) -> pd.DataFrame:
    return pd.DataFrame([{label: e.key, "Revenue": round(e.value, 2)} for e in entries])


def _render_result(result: PipelineResult) -> None:
    report = result.report
    period = "n/a"
    if report.period_start and report.period_end:
        period = f"{report.period_start.isoformat()} → {report.period_end.isoformat()}"
    st.subheader(f"KPIs ({period})")

    cols = st.columns(6)
    cols[0].metric("Revenue", f"${report.total_revenue:,.2f}")
    cols[1].metric("Orders", f"{report.orders:,}")
    cols[2].metric("AOV", f"${report.avg_order_value:,.2f}")
    cols[3].metric("Unique customers", f"{report.unique_customers:,}")
    cols[4].metric("Retention", f"{report.retention_rate * 100:.1f}%")
    cols[5].metric("Forecast 7d", f"${report.forecast_next_7_days_total:,.2f}")

    st.subheader("Daily revenue")
    daily = _daily_frame(result)
    if daily.empty:
        st.info("No data.")
    else:
        st.line_chart(daily.set_index("day")["revenue"])
        if report.anomalies:
            st.caption(f"Anomalies: {len(report.anomalies)}")
            st.dataframe(daily[daily["anomaly"]], width="stretch")

    col_c, col_p = st.columns(2)
    with col_c:
        st.markdown("**Top customers**")
        st.dataframe(_ranked_frame(report.top_customers, "Customer"), width="stretch")
    with col_p:
        st.markdown("**Top products**")
        st.dataframe(_ranked_frame(report.top_products, "Product"), width="stretch")

    st.subheader("Risks & actions")
    if report.overdue_count:
        st.warning(f"{report.overdue_count} overdue/unpaid invoices totaling ${report.overdue_total:,.2f}.")
    for s in report.suggestions:
        st.markdown(f"- {s}")
    if report.exec_summary:
        st.markdown("**Executive summary (AI)**")
        st.caption(report.exec_summary)
        st.caption(f"Requests: {get_usage().request_count}")

    dl_md, dl_json = st.columns(2)
    with dl_md:
        st.download_button(
            "Download report (markdown)",
            data=result.markdown,
            file_name="report.md",
            mime="text/markdown",
            key="dl_markdown",
        )
    with dl_json:
        st.download_button(
            "Download report (JSON)",
            data=json.dumps(result.to_structured(), indent=2, ensure_ascii=False),
            file_name="report.json",
            mime="application/json",
            key="dl_json",
        )

    with st.expander("Report (markdown)", expanded=False):
        st.markdown(result.markdown)


def main():
    st.set_page_config(page_title="BizPulse", layout="wide", initial_sidebar_state="expanded")
    settings = get_settings()
    configure_logging(settings)
    init_session_state()

    with st.sidebar:
        st.markdown("### Settings")
        enable_summary = st.checkbox(
            "AI executive summary",
            value=bool(settings.openai_api_key),
            disabled=not settings.openai_api_key,
            key="enable_summary",
        )
        enable_alerts = st.checkbox(
            "Slack alerts",
            value=bool(settings.slack_webhook),
            disabled=not settings.slack_webhook,
            key="enable_alerts",
        )
        with st.expander("KPI definitions", expanded=False):
            for name, defn in get_kpi_definitions().items():
                st.markdown(f"**{name}**")
                st.caption(defn.get("formula", ""))
        with st.expander("Rule definitions", expanded=False):
            for rule_id, defn in get_rule_definitions().items():
                st.caption(f"**{rule_id}**: {defn.get('condition', '')}")

    st.title("BizPulse")
    st.caption(f"Columns: {', '.join(get_all_required_fields())} (flexible order)")

    uploaded = st.file_uploader("Upload CSV", type=["csv"], key="file_uploader")
    if uploaded and st.button("Analyze", type="primary"):
        narrator = build_narrator(settings) if enable_summary else None
        alert_sink = build_alert_sink(settings) if enable_alerts else None
        with st.spinner("Computing KPIs..."):
            try:
                result = run_pipeline(uploaded.getvalue(), narrator=narrator, alert_sink=alert_sink)
            except IngestionError as exc:
                st.session_state.ingest_error = f"parse: {exc}"
            else:
                st.session_state.result = result
                st.session_state.dataset_name = uploaded.name or "uploaded.csv"
                st.session_state.ingest_error = None
        st.rerun()

    if st.session_state.ingest_error:
        st.error(st.session_state.ingest_error)

    result = st.session_state.result
    if result is None:
        st.info("Upload a CSV to analyze.")
        return

    st.caption(f"Dataset: **{st.session_state.dataset_name}**")
    _render_result(result)


if __name__ == "__main__":
    main()
