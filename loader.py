from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from errors import DataLoadError, DataQualityWarning
from models import CandidateRecord, Category, Dataset, Gender

logger = logging.getLogger(__name__)

ROLL_COLUMN = "RollNo"
GENDER_COLUMN = "Gender"
CATEGORY_COLUMN = "Caste Category"
MARKS_COLUMN = "Obtain Marks"
PH_COLUMN = "PH"
EX_SERVICEMAN_COLUMN = "Ex-Serviceman"

REQUIRED_COLUMNS = {ROLL_COLUMN, CATEGORY_COLUMN, MARKS_COLUMN}

CATEGORY_CODES = {
    "general": Category.GENERAL,
    "general(ews)": Category.EWS,
    "sebc": Category.SEBC,
    "sc": Category.SC,
    "st": Category.ST,
}

GENDER_CODES = {"m": Gender.MALE, "male": Gender.MALE, "f": Gender.FEMALE, "female": Gender.FEMALE}


def validate_columns(columns: Iterable[str]) -> tuple[bool, list[str]]:
    missing = sorted(REQUIRED_COLUMNS - {str(c).strip() for c in columns})
    return len(missing) == 0, missing


def normalize_category(raw: str) -> Category | None:
    """Map a caste-category string onto a Category; None when the text is unrecognised."""
    text = (raw or "").strip().lower()
    if "general(ews)" in text:
        return Category.EWS
    if "general" in text:
        return Category.GENERAL
    return CATEGORY_CODES.get(text)


def normalize_gender(raw: str) -> Gender | None:
    return GENDER_CODES.get((raw or "").strip().lower())


def parse_flag(raw: str) -> bool:
    return (raw or "").strip().lower() == "yes"


def parse_marks(raw: Any) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _cell(row: Mapping[str, Any], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def records_from_rows(rows: Iterable[Mapping[str, Any]]) -> Dataset:
    records: list[CandidateRecord] = []
    issues: list[DataQualityWarning] = []
    seen: set[str] = set()

    def note(row_no: int | None, roll_no: str | None, column: str, message: str) -> None:
        issue = DataQualityWarning(row_no, roll_no, column, message)
        issues.append(issue)
        logger.warning("Data quality: %s", issue)

    for row_no, row in enumerate(rows, start=1):
        roll_no = _cell(row, ROLL_COLUMN)
        raw_category = _cell(row, CATEGORY_COLUMN)
        if not roll_no or not raw_category:
            note(row_no, roll_no or None, ROLL_COLUMN if not roll_no else CATEGORY_COLUMN, "incomplete row skipped")
            continue
        if roll_no in seen:
            note(row_no, roll_no, ROLL_COLUMN, "duplicate roll number; first occurrence kept")
            continue
        seen.add(roll_no)

        category = normalize_category(raw_category)
        if category is None:
            note(row_no, roll_no, CATEGORY_COLUMN, f"unmapped category {raw_category!r}; treated as General")
            category = Category.GENERAL

        raw_gender = _cell(row, GENDER_COLUMN)
        gender = normalize_gender(raw_gender)
        if gender is None:
            note(row_no, roll_no, GENDER_COLUMN, f"unknown gender {raw_gender!r}; treated as M")
            gender = Gender.MALE

        marks = parse_marks(row.get(MARKS_COLUMN))
        if marks is None:
            note(row_no, roll_no, MARKS_COLUMN, f"invalid marks {_cell(row, MARKS_COLUMN)!r}; excluded from ranking")
            marks = 0.0
        elif marks < 0:
            note(row_no, roll_no, MARKS_COLUMN, f"negative marks {marks}; excluded from ranking")
            marks = 0.0
        elif marks == 0:
            note(row_no, roll_no, MARKS_COLUMN, "zero marks; excluded from ranking")

        records.append(
            CandidateRecord(
                roll_no=roll_no,
                gender=gender,
                category=category,
                marks=marks,
                is_ph=parse_flag(_cell(row, PH_COLUMN)),
                is_ex_serviceman=parse_flag(_cell(row, EX_SERVICEMAN_COLUMN)),
                raw_category=raw_category,
                source_index=len(records),
            )
        )

    dataset = Dataset(records=tuple(records), issues=tuple(issues))
    ranked = sum(1 for record in records if record.is_ranked)
    logger.info("Loaded %s candidate records (%s ranked, %s data-quality issues)", len(records), ranked, len(issues))
    return dataset


def load_results_frame(frame: pd.DataFrame) -> Dataset:
    frame = frame.rename(columns=lambda c: str(c).strip())
    valid, missing = validate_columns(frame.columns)
    if not valid:
        raise DataLoadError(f"Missing required columns: {missing}")
    frame = frame.fillna("")
    return records_from_rows(frame.to_dict(orient="records"))


def load_results_csv(csv_text: str) -> Dataset:
    if not csv_text.strip():
        raise DataLoadError("Results table is empty")
    try:
        frame = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.ParserError as exc:
        raise DataLoadError(f"Results table could not be parsed: {exc}") from exc
    return load_results_frame(frame)


def load_results_file(path: str | Path) -> Dataset:
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise DataLoadError(f"Results file not found: {path}") from exc
    return load_results_csv(text)
