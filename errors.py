from __future__ import annotations

from dataclasses import dataclass


class EstimatorError(Exception):
    """Base class for errors surfaced to callers of the estimator."""


class ConfigurationError(EstimatorError, ValueError):
    """Quota configuration or engine settings are missing or inconsistent."""


class NotFoundError(EstimatorError, LookupError):
    def __init__(self, roll_no: str):
        self.roll_no = roll_no
        super().__init__(f"No record found for roll number {roll_no!r}")


class DataLoadError(EstimatorError, ValueError):
    """The results table cannot be read at all (e.g. required columns absent)."""


@dataclass(frozen=True)
class DataQualityWarning:
    """Non-fatal problem found while loading; recorded on the dataset and logged."""

    row: int | None
    roll_no: str | None
    field: str
    message: str

    def __str__(self) -> str:
        where = f"row {self.row}" if self.row is not None else "dataset"
        who = f" ({self.roll_no})" if self.roll_no else ""
        return f"{where}{who}: {self.field}: {self.message}"
