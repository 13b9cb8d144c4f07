from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd

from cutoffs import compute_cutoff_table
from evaluator import SELECTION, document_verification_profile, evaluate
from models import (
    CandidateRecord,
    Category,
    CutoffTable,
    EvaluationResult,
    Gender,
    HorizontalQuota,
    QuotaConfig,
    SpecialStatus,
)
from ranking import NOT_RANKED, RankedPool, RankingContext
from settings import EngineSettings

logger = logging.getLogger(__name__)

MARKS_BINS = list(range(80, 180, 10))
OTHER_RANGE = "Other"


@dataclass(frozen=True)
class CandidateReport:
    candidate: CandidateRecord
    overall_rank: int
    category_rank: int
    overall_ahead: dict[str, int]
    category_ahead: dict[str, int]
    ahead_by_category: dict[Category, dict[str, int]]
    selection: EvaluationResult
    document_verification: EvaluationResult
    special_statuses: tuple[SpecialStatus, ...]
    cutoffs: CutoffTable


def _ahead_split(pool: RankedPool, roll_no: str) -> dict[str, int]:
    ahead = pool.records_ahead(roll_no)
    male = sum(1 for record in ahead if record.gender is Gender.MALE)
    return {"total": len(ahead), "male": male, "female": len(ahead) - male}


def ahead_by_category(context: RankingContext, marks: float) -> dict[Category, dict[str, int]]:
    """Candidates with strictly higher marks, grouped by category and gender."""
    counts = {category: {"male": 0, "female": 0} for category in Category}
    for record in context.records:
        if record.marks > marks:
            counts[record.category][record.gender.label] += 1
    return counts


def merit_over_category_status(
    candidate: CandidateRecord, context: RankingContext, quota: QuotaConfig, cutoffs: CutoffTable
) -> SpecialStatus:
    general_cutoff = cutoffs.general_cutoff(candidate.gender)
    general_rank = context.gender_pool(candidate.gender).find_rank(candidate.roll_no)
    vacancies = quota.gender_vacancies(Category.GENERAL, candidate.gender)
    eligible = candidate.is_ranked and general_cutoff is not None and candidate.marks >= general_cutoff
    if eligible:
        message = (
            f"Your marks ({candidate.marks:.2f}) meet the estimated General {candidate.gender.label} cut-off "
            f"({general_cutoff:.2f}). You may be selected against a General seat, leaving your reserved seat "
            f"to the next candidate in your category."
        )
    else:
        message = "Your marks are below the estimated General cut-off, so you compete within your own category."
    return SpecialStatus(
        "merit_over_category",
        eligible,
        message,
        {"general_cutoff": general_cutoff, "general_rank": general_rank, "general_vacancies": vacancies},
    )


def women_quota_status(candidate: CandidateRecord, context: RankingContext, quota: QuotaConfig) -> SpecialStatus:
    rank = context.category_gender_pool(candidate.category, Gender.FEMALE).find_rank(candidate.roll_no)
    vacancies = quota.gender_vacancies(candidate.category, Gender.FEMALE)
    eligible = rank != NOT_RANKED and rank <= vacancies
    if eligible:
        message = "You are eligible for selection under women's reservation."
    else:
        message = "You may not be eligible under women's reservation based on your rank."
    return SpecialStatus(
        "women_quota",
        eligible,
        message,
        {"category_women_rank": rank, "women_vacancies": vacancies},
    )


def horizontal_status(
    candidate: CandidateRecord, context: RankingContext, quota: QuotaConfig, horizontal: HorizontalQuota
) -> SpecialStatus:
    overall_rank = context.horizontal_pool(horizontal).find_rank(candidate.roll_no)
    category_rank = context.horizontal_pool(horizontal, candidate.category).find_rank(candidate.roll_no)
    vacancies = quota.horizontal_vacancies(candidate.category, horizontal)
    eligible = category_rank != NOT_RANKED and category_rank <= vacancies
    if eligible:
        message = f"You are eligible for selection under {horizontal.value} reservation."
    else:
        message = f"You may not be eligible under {horizontal.value} reservation based on your rank."
    kind = "ph_quota" if horizontal is HorizontalQuota.PH else "ex_servicemen_quota"
    return SpecialStatus(
        kind,
        eligible,
        message,
        {"overall_rank": overall_rank, "category_rank": category_rank, "category_vacancies": vacancies},
    )


def special_statuses(
    candidate: CandidateRecord, context: RankingContext, quota: QuotaConfig, cutoffs: CutoffTable
) -> tuple[SpecialStatus, ...]:
    statuses: list[SpecialStatus] = []
    if candidate.category is not Category.GENERAL:
        statuses.append(merit_over_category_status(candidate, context, quota, cutoffs))
    if candidate.gender is Gender.FEMALE:
        statuses.append(women_quota_status(candidate, context, quota))
    for horizontal in HorizontalQuota:
        if candidate.holds(horizontal):
            statuses.append(horizontal_status(candidate, context, quota, horizontal))
    return tuple(statuses)


def analyze_candidate(
    context: RankingContext,
    quota: QuotaConfig,
    roll_no: str,
    settings: EngineSettings | None = None,
    cutoffs: CutoffTable | None = None,
) -> CandidateReport:
    """Everything shown for one searched roll number.

    Raises NotFoundError for an unknown roll number and ConfigurationError for
    an unusable quota configuration. A precomputed cut-off table may be passed
    in to avoid recomputing it per query.
    """
    settings = settings or EngineSettings()
    candidate = context.lookup(roll_no)
    quota.validate()
    if cutoffs is None:
        cutoffs = compute_cutoff_table(context, quota, settings.dv_multiplier)

    category_pool = context.category_pool(candidate.category)
    dv_profile = document_verification_profile(settings)

    report = CandidateReport(
        candidate=candidate,
        overall_rank=context.population.find_rank(candidate.roll_no),
        category_rank=category_pool.find_rank(candidate.roll_no),
        overall_ahead=_ahead_split(context.population, candidate.roll_no),
        category_ahead=_ahead_split(category_pool, candidate.roll_no),
        ahead_by_category=ahead_by_category(context, candidate.marks),
        selection=evaluate(candidate, context, quota, SELECTION, settings),
        document_verification=evaluate(candidate, context, quota, dv_profile, settings),
        special_statuses=special_statuses(candidate, context, quota, cutoffs),
        cutoffs=cutoffs,
    )
    logger.info(
        "Analysed %s: selection %s%%, document verification %s%%",
        candidate.roll_no,
        report.selection.probability,
        report.document_verification.probability,
    )
    return report


def report_to_dict(report: CandidateReport) -> dict[str, Any]:
    candidate = report.candidate
    return {
        "candidate": {
            "roll_no": candidate.roll_no,
            "gender": candidate.gender.value,
            "category": candidate.category.value,
            "raw_category": candidate.raw_category,
            "marks": candidate.marks,
            "is_ph": candidate.is_ph,
            "is_ex_serviceman": candidate.is_ex_serviceman,
        },
        "overall_rank": report.overall_rank,
        "category_rank": report.category_rank,
        "overall_ahead": dict(report.overall_ahead),
        "category_ahead": dict(report.category_ahead),
        "ahead_by_category": {category.value: dict(counts) for category, counts in report.ahead_by_category.items()},
        "selection": report.selection.to_dict(),
        "document_verification": report.document_verification.to_dict(),
        "special_statuses": [
            {"kind": status.kind, "eligible": status.eligible, "message": status.message, "numbers": dict(status.numbers)}
            for status in report.special_statuses
        ],
        "cutoffs": report.cutoffs.to_dict(),
    }


def _marks_range(marks: float) -> str:
    for low in MARKS_BINS[:-1]:
        if low <= marks < low + 10:
            return f"{low}-{low + 10}"
    return OTHER_RANGE


def summarize_dataset(context: RankingContext, quota: QuotaConfig) -> dict[str, Any]:
    """Headline figures and chart data for the loaded results."""
    frame = pd.DataFrame(
        [
            {"category": r.category.value, "gender": r.gender.label, "marks": r.marks, "ranked": r.is_ranked}
            for r in context.records
        ],
        columns=["category", "gender", "marks", "ranked"],
    )
    ranked = frame[frame["ranked"].astype(bool)]

    by_category = {}
    for category in Category:
        subset = frame[frame["category"] == category.value]
        by_category[category.value] = {
            "total": int(len(subset)),
            "male": int((subset["gender"] == "male").sum()),
            "female": int((subset["gender"] == "female").sum()),
        }

    labels = [f"{low}-{low + 10}" for low in MARKS_BINS[:-1]] + [OTHER_RANGE]
    histogram = {label: 0 for label in labels}
    if not ranked.empty:
        counts = ranked["marks"].map(_marks_range).value_counts()
        for label, count in counts.items():
            histogram[label] = int(count)

    return {
        "total_candidates": int(len(frame)),
        "ranked_candidates": int(len(ranked)),
        "total_vacancies": quota.total_vacancies,
        "average_marks": round(float(ranked["marks"].mean()), 2) if not ranked.empty else None,
        "highest_marks": float(ranked["marks"].max()) if not ranked.empty else None,
        "lowest_marks": float(ranked["marks"].min()) if not ranked.empty else None,
        "by_category": by_category,
        "marks_histogram": histogram,
    }
