import json

import pytest

from analysis import analyze_candidate, report_to_dict, summarize_dataset
from builders import candidate, context_of, make_quota
from errors import NotFoundError
from loader import load_results_file
from models import Category, ReasonCode
from quota import load_quota_file
from ranking import build_context
from settings import ROOT


def sample():
    context = build_context(load_results_file(ROOT / "data" / "results.sample.csv"))
    quota = load_quota_file(ROOT / "data" / "vacancies.sample.json")
    return context, quota


def test_report_for_reserved_candidate_above_general_cutoff() -> None:
    context, quota = sample()
    report = analyze_candidate(context, quota, "240003")

    assert report.overall_rank == 3
    assert report.category_rank == 1
    assert report.overall_ahead == {"total": 2, "male": 1, "female": 1}
    assert report.category_ahead == {"total": 0, "male": 0, "female": 0}
    assert report.ahead_by_category[Category.GENERAL] == {"male": 1, "female": 1}
    assert report.ahead_by_category[Category.SEBC] == {"male": 0, "female": 0}
    assert report.selection.reason_code is ReasonCode.MERIT_OVER_CATEGORY
    assert report.selection.probability == 95

    [status] = report.special_statuses
    assert status.kind == "merit_over_category"
    assert status.eligible is True
    assert status.numbers["general_cutoff"] == 147.25
    assert report.cutoffs[Category.GENERAL].final_cutoff == 147.25


def test_report_for_woman_includes_women_quota_status() -> None:
    context, quota = sample()
    report = analyze_candidate(context, quota, "240005")

    kinds = {status.kind: status for status in report.special_statuses}
    assert set(kinds) == {"merit_over_category", "women_quota"}
    assert kinds["women_quota"].eligible is True
    assert kinds["women_quota"].numbers == {"category_women_rank": 1, "women_vacancies": 1}


def test_horizontal_status_numbers() -> None:
    context = context_of(
        candidate("P1", 90, ph=True),
        candidate("P2", 80, category=Category.SC, ph=True),
        candidate("P3", 70, category=Category.SC, ph=True),
        candidate("N1", 60, category=Category.SC),
    )
    quota = make_quota({Category.GENERAL: (2, 0), Category.SC: (2, 0)}, ph=2)
    report = analyze_candidate(context, quota, "P3")

    statuses = {status.kind: status for status in report.special_statuses}
    assert set(statuses) == {"merit_over_category", "ph_quota"}
    assert statuses["merit_over_category"].eligible is False
    status = statuses["ph_quota"]
    assert status.numbers == {"overall_rank": 3, "category_rank": 2, "category_vacancies": 1}
    assert status.eligible is False


def test_unranked_candidate_report() -> None:
    context, quota = sample()
    report = analyze_candidate(context, quota, "240039")
    assert report.overall_rank == 0
    assert report.overall_ahead["total"] == 38
    assert report.selection.reason_code is ReasonCode.EXCLUDED_FROM_RANKING
    assert report.document_verification.probability == 0


def test_unknown_roll_number_raises_not_found() -> None:
    context, quota = sample()
    with pytest.raises(NotFoundError):
        analyze_candidate(context, quota, "999999")


def test_report_to_dict_is_json_serialisable() -> None:
    context, quota = sample()
    payload = report_to_dict(analyze_candidate(context, quota, "240005"))
    decoded = json.loads(json.dumps(payload))
    assert decoded["candidate"]["category"] == "SC"
    assert decoded["selection"]["reason_code"] == "merit_over_category"
    assert decoded["cutoffs"]["ST"]["final_cutoff"] is not None
    assert decoded["ahead_by_category"]["General"] == {"male": 2, "female": 1}
    assert decoded["ahead_by_category"]["SEBC"] == {"male": 1, "female": 0}


def test_summarize_dataset() -> None:
    context, quota = sample()
    summary = summarize_dataset(context, quota)

    assert summary["total_candidates"] == 40
    assert summary["ranked_candidates"] == 38
    assert summary["total_vacancies"] == 20
    assert summary["highest_marks"] == 162.5
    assert summary["lowest_marks"] == 98.0
    assert summary["by_category"]["General"] == {"total": 14, "male": 9, "female": 5}
    assert summary["by_category"]["EWS"]["total"] == 4
    assert summary["marks_histogram"]["160-170"] == 1
    assert summary["marks_histogram"]["150-160"] == 4
    assert summary["marks_histogram"]["Other"] == 0
    assert sum(summary["marks_histogram"].values()) == 38


def test_summarize_empty_dataset() -> None:
    summary = summarize_dataset(context_of(), make_quota({Category.GENERAL: (1, 0)}))
    assert summary["total_candidates"] == 0
    assert summary["average_marks"] is None
    assert set(summary["marks_histogram"].values()) == {0}
