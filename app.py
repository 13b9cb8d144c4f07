from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import pandas as pd
import streamlit as st

from analysis import CandidateReport, analyze_candidate, report_to_dict, summarize_dataset
from cutoffs import compute_cutoff_table
from errors import ConfigurationError, DataLoadError, NotFoundError
from export import DEFAULT_DISCLAIMERS, build_json_summary, build_pdf_report
from loader import load_results_csv
from models import CutoffTable, Dataset, QuotaConfig
from quota import QuotaFinding, quota_config_from_dict, review_quota
from ranking import RankingContext, build_context
from settings import EngineSettings, load_settings
from ui import (
    inject_css,
    render_ahead_table,
    render_cutoff_table,
    render_disclaimers,
    render_probability_card,
    render_special_statuses,
    render_summary,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Cut-off Estimator", layout="wide")
inject_css()


@dataclass(frozen=True, eq=False)
class LoadedData:
    dataset: Dataset
    context: RankingContext
    quota: QuotaConfig
    findings: list[QuotaFinding]
    cutoffs: CutoffTable


@st.cache_resource(show_spinner="Ranking candidates and computing cut-offs...")
def prepare(results_text: str, quota_text: str, settings: EngineSettings) -> LoadedData:
    dataset = load_results_csv(results_text)
    try:
        payload = json.loads(quota_text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Vacancy configuration is not valid JSON: {exc}") from exc
    quota, findings = review_quota(
        quota_config_from_dict(payload),
        tolerance=settings.quota_tolerance,
        auto_correct=settings.auto_correct_quota,
    )
    context = build_context(dataset)
    cutoffs = compute_cutoff_table(context, quota, settings.dv_multiplier)
    return LoadedData(dataset, context, quota, findings, cutoffs)


def read_inputs(settings: EngineSettings) -> tuple[str, str]:
    st.sidebar.header("Data")
    results_upload = st.sidebar.file_uploader("Results table (CSV)", type=["csv"])
    quota_upload = st.sidebar.file_uploader("Vacancy configuration (JSON)", type=["json"])

    if results_upload is not None:
        results_text = results_upload.getvalue().decode("utf-8-sig")
    else:
        try:
            results_text = settings.results_path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as exc:
            raise DataLoadError(f"Results file not found: {settings.results_path}") from exc
        st.sidebar.caption(f"Using {settings.results_path.name}")

    if quota_upload is not None:
        quota_text = quota_upload.getvalue().decode("utf-8")
    else:
        try:
            quota_text = settings.vacancies_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Vacancy configuration not found: {settings.vacancies_path}") from exc
        st.sidebar.caption(f"Using {settings.vacancies_path.name}")
    return results_text, quota_text


def render_data_checks(data: LoadedData, settings: EngineSettings) -> None:
    if data.findings:
        with st.sidebar.expander(f"Quota review ({len(data.findings)})"):
            if settings.auto_correct_quota:
                st.caption("Deviations beyond tolerance were corrected before computing cut-offs.")
            for finding in data.findings:
                st.write(f"- {finding}")
    if data.dataset.issues:
        with st.sidebar.expander(f"Data quality ({len(data.dataset.issues)})"):
            st.dataframe(
                pd.DataFrame(
                    [
                        {"Row": issue.row, "RollNo": issue.roll_no, "Field": issue.field, "Issue": issue.message}
                        for issue in data.dataset.issues
                    ]
                ),
                use_container_width=True,
                hide_index=True,
            )


def render_report(report: CandidateReport) -> None:
    candidate = report.candidate
    st.markdown(f"### Roll number {candidate.roll_no}")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Marks", f"{candidate.marks:.2f}")
        st.caption(f"{candidate.gender.label.title()} | {candidate.raw_category or candidate.category.value}")
    with c2:
        st.metric("Overall rank", f"{report.overall_rank:,}" if report.overall_rank else "Not ranked")
        st.caption(
            f"{report.overall_ahead['total']:,} ahead "
            f"({report.overall_ahead['male']:,} male, {report.overall_ahead['female']:,} female)"
        )
    with c3:
        st.metric("Category rank", f"{report.category_rank:,}" if report.category_rank else "Not ranked")
        st.caption(
            f"{report.category_ahead['total']:,} ahead "
            f"({report.category_ahead['male']:,} male, {report.category_ahead['female']:,} female)"
        )
    with c4:
        flags = [name for name, held in (("PH", candidate.is_ph), ("Ex-Serviceman", candidate.is_ex_serviceman)) if held]
        st.metric("Horizontal", ", ".join(flags) or "None")

    left, right = st.columns(2)
    with left:
        render_probability_card("Final selection", report.selection)
    with right:
        render_probability_card("Document verification", report.document_verification)

    render_special_statuses(report.special_statuses)

    st.markdown("### Candidates Ahead by Category")
    render_ahead_table(report.ahead_by_category)

    st.markdown("### Estimated Cut-offs")
    render_cutoff_table(report.cutoffs, highlight=candidate.category)

    st.markdown("### Export")
    payload = report_to_dict(report)
    e1, e2 = st.columns(2)
    with e1:
        st.download_button(
            label="Download PDF Report",
            data=build_pdf_report(payload, DEFAULT_DISCLAIMERS),
            file_name=f"cutoff_report_{candidate.roll_no}.pdf",
            mime="application/pdf",
            use_container_width=True,
        )
    with e2:
        st.download_button(
            label="Download JSON Summary",
            data=build_json_summary(payload),
            file_name=f"cutoff_report_{candidate.roll_no}.json",
            mime="application/json",
            use_container_width=True,
        )


def render_search(data: LoadedData, settings: EngineSettings) -> None:
    with st.form("search"):
        roll_no = st.text_input("Roll number", placeholder="Enter your roll number")
        submitted = st.form_submit_button("Analyse")
    if not submitted:
        return
    if not roll_no.strip():
        st.warning("Enter a roll number to search.")
        return
    try:
        report = analyze_candidate(data.context, data.quota, roll_no, settings, data.cutoffs)
    except NotFoundError:
        st.error("No matching record found. Please check the roll number and try again.")
        return
    except ConfigurationError as exc:
        st.error(f"Insufficient vacancy configuration: {exc}")
        return
    render_report(report)


def main() -> None:
    st.title("Cut-off & Selection Chance Estimator")
    st.caption("Estimated cut-offs under General, category, women's and horizontal reservations.")
    try:
        settings = load_settings()
        results_text, quota_text = read_inputs(settings)
        data = prepare(results_text, quota_text, settings)
    except (ConfigurationError, DataLoadError) as exc:
        logger.error("Could not load inputs: %s", exc)
        st.error(str(exc))
        st.stop()

    render_data_checks(data, settings)

    overview, cutoffs, search = st.tabs(["Overview", "Cut-offs", "Candidate search"])
    with overview:
        render_summary(summarize_dataset(data.context, data.quota))
    with cutoffs:
        render_cutoff_table(data.cutoffs)
    with search:
        render_search(data, settings)
    render_disclaimers(DEFAULT_DISCLAIMERS)


if __name__ == "__main__":
    main()
