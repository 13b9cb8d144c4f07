from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from errors import ConfigurationError, DataQualityWarning


class Category(str, enum.Enum):
    GENERAL = "General"
    EWS = "EWS"
    SEBC = "SEBC"
    SC = "SC"
    ST = "ST"


RESERVED_CATEGORIES = (Category.EWS, Category.SEBC, Category.SC, Category.ST)


class Gender(str, enum.Enum):
    MALE = "M"
    FEMALE = "F"

    @property
    def label(self) -> str:
        return "male" if self is Gender.MALE else "female"


class HorizontalQuota(str, enum.Enum):
    PH = "PH"
    EX_SERVICEMEN = "Ex-Servicemen"


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; seat counts round .5 upwards.
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class CandidateRecord:
    roll_no: str
    gender: Gender
    category: Category
    marks: float
    is_ph: bool = False
    is_ex_serviceman: bool = False
    raw_category: str = ""
    source_index: int = 0

    @property
    def is_ranked(self) -> bool:
        return self.marks > 0

    def holds(self, quota: HorizontalQuota) -> bool:
        if quota is HorizontalQuota.PH:
            return self.is_ph
        return self.is_ex_serviceman


@dataclass(frozen=True)
class Dataset:
    records: tuple[CandidateRecord, ...]
    issues: tuple[DataQualityWarning, ...] = ()

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class CategoryQuota:
    total: int
    women: int

    @property
    def men(self) -> int:
        return self.total - self.women


@dataclass(frozen=True)
class QuotaConfig:
    total_vacancies: int
    per_category: Mapping[Category, CategoryQuota]
    ph_total: int
    ex_servicemen_total: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_category", MappingProxyType(dict(self.per_category)))

    def validate(self) -> None:
        if not isinstance(self.total_vacancies, int) or self.total_vacancies <= 0:
            raise ConfigurationError(f"total_vacancies must be a positive integer, got {self.total_vacancies!r}")
        for category in Category:
            quota = self.per_category.get(category)
            if quota is None:
                raise ConfigurationError(f"Vacancy configuration missing category {category.value}")
            for name in ("total", "women"):
                value = getattr(quota, name)
                if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                    raise ConfigurationError(f"{category.value}.{name} must be a non-negative integer, got {value!r}")
            if quota.women > quota.total:
                raise ConfigurationError(
                    f"{category.value}: women vacancies ({quota.women}) exceed category total ({quota.total})"
                )
        for name in ("ph_total", "ex_servicemen_total"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")

    def category_vacancies(self, category: Category) -> int:
        return self.per_category[category].total

    def gender_vacancies(self, category: Category, gender: Gender) -> int:
        quota = self.per_category[category]
        return quota.women if gender is Gender.FEMALE else quota.men

    def horizontal_total(self, quota: HorizontalQuota) -> int:
        return self.ph_total if quota is HorizontalQuota.PH else self.ex_servicemen_total

    def horizontal_vacancies(self, category: Category, quota: HorizontalQuota) -> int:
        """Horizontal seats carried by one category, proportional to its share of all vacancies."""
        share = self.category_vacancies(category) / self.total_vacancies
        return round_half_up(share * self.horizontal_total(quota))


@dataclass(frozen=True)
class CutoffEntry:
    final_cutoff: float | None = None
    dv_cutoff: float | None = None
    women_cutoff: float | None = None
    women_dv_cutoff: float | None = None
    ph_cutoff: float | None = None
    ex_servicemen_cutoff: float | None = None


CUTOFF_COLUMNS = {
    "final_cutoff": "Final",
    "dv_cutoff": "Document verification",
    "women_cutoff": "Women",
    "women_dv_cutoff": "Women (DV)",
    "ph_cutoff": "PH",
    "ex_servicemen_cutoff": "Ex-Servicemen",
}


def format_mark(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.2f}"


@dataclass(frozen=True)
class CutoffTable:
    entries: Mapping[Category, CutoffEntry]

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def __getitem__(self, category: Category) -> CutoffEntry:
        return self.entries[category]

    def general_cutoff(self, gender: Gender) -> float | None:
        entry = self.entries[Category.GENERAL]
        return entry.women_cutoff if gender is Gender.FEMALE else entry.final_cutoff

    def as_rows(self) -> list[dict[str, str]]:
        rows = []
        for category, entry in self.entries.items():
            row = {"Category": category.value}
            for attr, label in CUTOFF_COLUMNS.items():
                row[label] = format_mark(getattr(entry, attr))
            rows.append(row)
        return rows

    def to_dict(self) -> dict[str, dict[str, float | None]]:
        return {
            category.value: {attr: getattr(entry, attr) for attr in CUTOFF_COLUMNS}
            for category, entry in self.entries.items()
        }


class Band(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    FLOOR = "floor"
    NONE = "none"


class ReasonCode(str, enum.Enum):
    MERIT_OVER_CATEGORY = "merit_over_category"
    GENERAL_WITHIN_VACANCIES = "general_within_vacancies"
    GENERAL_NEAR_VACANCIES = "general_near_vacancies"
    GENERAL_BEYOND_VACANCIES = "general_beyond_vacancies"
    CATEGORY_WITHIN_VACANCIES = "category_within_vacancies"
    CATEGORY_NEAR_VACANCIES = "category_near_vacancies"
    CATEGORY_BEYOND_VACANCIES = "category_beyond_vacancies"
    PH_QUOTA = "ph_quota"
    EX_SERVICEMEN_QUOTA = "ex_servicemen_quota"
    BELOW_ALL_CUTOFFS = "below_all_cutoffs"
    EXCLUDED_FROM_RANKING = "excluded_from_ranking"


@dataclass(frozen=True)
class EvaluationResult:
    profile: str
    probability: int
    reason_code: ReasonCode
    band: Band
    narrative: str
    rank: int = 0
    vacancies: int = 0
    cutoff: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile,
            "probability": self.probability,
            "reason_code": self.reason_code.value,
            "band": self.band.value,
            "narrative": self.narrative,
            "rank": self.rank,
            "vacancies": self.vacancies,
            "cutoff": self.cutoff,
        }


@dataclass(frozen=True)
class SpecialStatus:
    kind: str
    eligible: bool
    message: str
    numbers: Mapping[str, Any] = field(default_factory=dict)
