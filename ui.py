from __future__ import annotations

from html import escape
from typing import Any

import pandas as pd
import streamlit as st

from models import Band, Category, CutoffTable, EvaluationResult, SpecialStatus

BAND_COLOURS = {
    Band.HIGH: "#2E7D32",
    Band.MEDIUM: "#F59E0B",
    Band.LOW: "#E65100",
    Band.FLOOR: "#B71C1C",
    Band.NONE: "#607D8B",
}

STATUS_TITLES = {
    "merit_over_category": "Merit Over Category",
    "women_quota": "Women's Reservation",
    "ph_quota": "PH Reservation",
    "ex_servicemen_quota": "Ex-Servicemen Reservation",
}


def inject_css() -> None:
    st.markdown(
        """
        <style>
            .cutoff-meter {
                margin-top: 0.4rem;
                margin-bottom: 0.45rem;
            }
            .cutoff-meter-head {
                display: flex;
                justify-content: space-between;
                align-items: center;
                font-size: 0.88rem;
                color: #45627e;
                margin-bottom: 0.2rem;
            }
            .cutoff-meter-track {
                width: 100%;
                height: 11px;
                border-radius: 999px;
                background: #dbe5f2;
                overflow: hidden;
                border: 1px solid #c4d4e9;
            }
            .cutoff-meter-fill {
                height: 100%;
            }
            .cutoff-card {
                border: 1px solid #dbe5f2;
                border-radius: 12px;
                padding: 0.8rem 1rem;
                margin-bottom: 0.6rem;
            }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_meter(label: str, pct: float, value_text: str | None = None, colour: str = "#0D47A1") -> None:
    pct = max(0.0, min(1.0, pct))
    pct_text = value_text or f"{int(round(pct * 100))}%"
    st.markdown(
        f"""
        <div class="cutoff-meter">
            <div class="cutoff-meter-head">
                <span>{escape(label)}</span>
                <span>{escape(pct_text)}</span>
            </div>
            <div class="cutoff-meter-track">
                <div class="cutoff-meter-fill" style="width: {pct * 100:.1f}%; background: {colour};"></div>
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def render_probability_card(title: str, result: EvaluationResult) -> None:
    with st.container(border=True):
        st.markdown(f"**{title}**")
        render_meter("Estimated chance", result.probability / 100, f"{result.probability}%", BAND_COLOURS[result.band])
        st.write(result.narrative)
        if result.rank:
            cutoff = "N/A" if result.cutoff is None else f"{result.cutoff:.2f}"
            st.caption(f"Rank {result.rank:,} against {result.vacancies:,} estimated seats | cut-off {cutoff}")


def render_special_statuses(statuses: tuple[SpecialStatus, ...]) -> None:
    if not statuses:
        return
    st.markdown("### Special Status")
    for status in statuses:
        title = STATUS_TITLES.get(status.kind, status.kind)
        body = status.message
        details = " | ".join(f"{name.replace('_', ' ')}: {value}" for name, value in status.numbers.items())
        if status.eligible:
            st.success(f"**{title}:** {body}\n\n{details}")
        else:
            st.warning(f"**{title}:** {body}\n\n{details}")


def render_cutoff_table(cutoffs: CutoffTable, highlight: Category | None = None) -> None:
    frame = pd.DataFrame(cutoffs.as_rows()).set_index("Category")
    if highlight is not None:
        styled = frame.style.apply(
            lambda row: ["font-weight: bold" if row.name == highlight.value else "" for _ in row], axis=1
        )
        st.dataframe(styled, use_container_width=True)
    else:
        st.dataframe(frame, use_container_width=True)


def render_ahead_table(ahead: dict[Category, dict[str, int]]) -> None:
    frame = pd.DataFrame(
        [{"Category": category.value, "Male": counts["male"], "Female": counts["female"]} for category, counts in ahead.items()]
    ).set_index("Category")
    st.dataframe(frame, use_container_width=True)


def render_summary(summary: dict[str, Any]) -> None:
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Candidates", f"{summary['total_candidates']:,}")
    with c2:
        st.metric("Ranked", f"{summary['ranked_candidates']:,}")
    with c3:
        st.metric("Vacancies", f"{summary['total_vacancies']:,}")
    with c4:
        average = summary.get("average_marks")
        st.metric("Average marks", "N/A" if average is None else f"{average:.2f}")

    left, right = st.columns(2)
    with left:
        st.caption("Candidates by marks range")
        st.bar_chart(pd.Series(summary["marks_histogram"], name="Candidates"))
    with right:
        st.caption("Candidates by category and gender")
        by_category = pd.DataFrame(summary["by_category"]).T[["male", "female"]]
        st.bar_chart(by_category)


def render_disclaimers(disclaimers: list[str]) -> None:
    for text in disclaimers:
        st.caption(text)
