from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analysis import analyze_candidate
from cutoffs import compute_cutoff_table
from errors import ConfigurationError, DataLoadError, NotFoundError
from loader import load_results_file
from models import CUTOFF_COLUMNS, CutoffTable
from quota import load_quota_file, review_quota
from ranking import build_context
from settings import load_settings


def print_cutoffs(cutoffs: CutoffTable) -> None:
    rows = cutoffs.as_rows()
    header = ["Category"] + list(CUTOFF_COLUMNS.values())
    widths = [max(len(column), *(len(row[column]) for row in rows)) for column in header]
    print("  ".join(column.ljust(width) for column, width in zip(header, widths)))
    for row in rows:
        print("  ".join(row[column].ljust(width) for column, width in zip(header, widths)))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print estimated cut-offs and candidate chances.")
    parser.add_argument("roll_numbers", nargs="*", help="roll numbers to analyse")
    parser.add_argument("--results", type=Path, help="results CSV (defaults to CUTOFF_RESULTS_PATH)")
    parser.add_argument("--vacancies", type=Path, help="vacancy JSON (defaults to CUTOFF_VACANCIES_PATH)")
    parser.add_argument("--top", type=int, default=0, help="also analyse the N highest-ranked candidates")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    try:
        settings = load_settings()
        dataset = load_results_file(args.results or settings.results_path)
        quota, _ = review_quota(
            load_quota_file(args.vacancies or settings.vacancies_path),
            tolerance=settings.quota_tolerance,
            auto_correct=settings.auto_correct_quota,
        )
        context = build_context(dataset)
        cutoffs = compute_cutoff_table(context, quota, settings.dv_multiplier)
    except (ConfigurationError, DataLoadError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"{len(dataset)} candidates, {len(context.population)} ranked, {quota.total_vacancies} vacancies\n")
    print_cutoffs(cutoffs)

    roll_numbers = list(args.roll_numbers) + [record.roll_no for record in context.population[: max(0, args.top)]]
    status = 0
    for roll_no in roll_numbers:
        print(f"\n=== {roll_no} ===")
        try:
            report = analyze_candidate(context, quota, roll_no, settings, cutoffs)
        except NotFoundError as exc:
            print(exc)
            status = 1
            continue
        candidate = report.candidate
        print(
            f"{candidate.category.value} {candidate.gender.label}, marks {candidate.marks:.2f}, "
            f"rank {report.overall_rank} overall / {report.category_rank} in category"
        )
        for result in (report.selection, report.document_verification):
            print(f"{result.profile}: {result.probability}% ({result.reason_code.value})")
        for special in report.special_statuses:
            print(f"{special.kind}: {'eligible' if special.eligible else 'not eligible'}")
    return status


if __name__ == "__main__":
    sys.exit(main())
