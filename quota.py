from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from errors import ConfigurationError
from models import Category, CategoryQuota, QuotaConfig, round_half_up

logger = logging.getLogger(__name__)

# Statutory shares used only to review a supplied configuration.
EXPECTED_CATEGORY_SHARES = {
    Category.GENERAL: 0.41,
    Category.EWS: 0.10,
    Category.SEBC: 0.27,
    Category.SC: 0.07,
    Category.ST: 0.15,
}
WOMEN_SHARE = 0.33
HORIZONTAL_SHARE = 0.03

EX_SERVICEMEN_KEYS = ("ExServicemen_3percent", "ExServicemen")


@dataclass(frozen=True)
class QuotaFinding:
    subject: str
    expected: int
    actual: int
    corrected: bool = False

    @property
    def difference(self) -> int:
        return self.actual - self.expected

    def __str__(self) -> str:
        note = " (corrected)" if self.corrected else ""
        return f"{self.subject}: expected {self.expected}, configured {self.actual}{note}"


def _require(mapping: Any, key: str, where: str) -> Any:
    if not isinstance(mapping, dict) or key not in mapping or mapping[key] is None:
        raise ConfigurationError(f"Vacancy configuration missing {where}{key}")
    return mapping[key]


def _as_count(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{where} must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ConfigurationError(f"{where} must be an integer, got {value!r}")
    return value


def quota_config_from_dict(payload: dict[str, Any]) -> QuotaConfig:
    total = _as_count(_require(payload, "total_vacancies", ""), "total_vacancies")
    categories = _require(payload, "categories", "")

    per_category: dict[Category, CategoryQuota] = {}
    for category in Category:
        entry = _require(categories, category.value, "categories.")
        per_category[category] = CategoryQuota(
            total=_as_count(_require(entry, "total", f"categories.{category.value}."), f"{category.value}.total"),
            women=_as_count(_require(entry, "women", f"categories.{category.value}."), f"{category.value}.women"),
        )

    reserved = _require(payload, "reserved_quotas", "")
    ph = _require(_require(reserved, "PH", "reserved_quotas."), "total", "reserved_quotas.PH.")
    ex_key = next((key for key in EX_SERVICEMEN_KEYS if isinstance(reserved, dict) and key in reserved), EX_SERVICEMEN_KEYS[0])
    ex = _require(_require(reserved, ex_key, "reserved_quotas."), "total", f"reserved_quotas.{ex_key}.")

    config = QuotaConfig(
        total_vacancies=total,
        per_category=per_category,
        ph_total=_as_count(ph, "PH.total"),
        ex_servicemen_total=_as_count(ex, f"{ex_key}.total"),
    )
    config.validate()

    category_sum = sum(quota.total for quota in config.per_category.values())
    if category_sum != config.total_vacancies:
        logger.warning(
            "Category vacancies sum to %s but total_vacancies is %s; using configured figures as given",
            category_sum,
            config.total_vacancies,
        )
    return config


def load_quota_file(path: str | Path) -> QuotaConfig:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Vacancy configuration not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Vacancy configuration is not valid JSON: {exc}") from exc
    return quota_config_from_dict(payload)


def review_quota(
    config: QuotaConfig,
    tolerance: int = 2,
    auto_correct: bool = False,
) -> tuple[QuotaConfig, list[QuotaFinding]]:
    """Compare a configuration against the statutory reservation percentages.

    Category distribution deviations are only reported. Women's and horizontal
    deviations larger than ``tolerance`` seats are reported and, when
    ``auto_correct`` is set, replaced by the expected figure in the returned
    copy. The input configuration is never modified.
    """
    config.validate()
    total = config.total_vacancies
    findings: list[QuotaFinding] = []

    for category, share in EXPECTED_CATEGORY_SHARES.items():
        expected = round_half_up(total * share)
        actual = config.category_vacancies(category)
        if abs(expected - actual) > tolerance:
            findings.append(QuotaFinding(f"{category.value} vacancies", expected, actual))

    per_category = dict(config.per_category)
    for category, quota in config.per_category.items():
        expected = round_half_up(quota.total * WOMEN_SHARE)
        if abs(expected - quota.women) > tolerance:
            findings.append(QuotaFinding(f"{category.value} women vacancies", expected, quota.women, auto_correct))
            if auto_correct:
                per_category[category] = replace(quota, women=expected)

    expected_horizontal = round_half_up(total * HORIZONTAL_SHARE)
    ph_total = config.ph_total
    ex_total = config.ex_servicemen_total
    if abs(expected_horizontal - ph_total) > tolerance:
        findings.append(QuotaFinding("PH vacancies", expected_horizontal, ph_total, auto_correct))
        if auto_correct:
            ph_total = expected_horizontal
    if abs(expected_horizontal - ex_total) > tolerance:
        findings.append(QuotaFinding("Ex-Servicemen vacancies", expected_horizontal, ex_total, auto_correct))
        if auto_correct:
            ex_total = expected_horizontal

    for finding in findings:
        logger.warning("Quota review: %s", finding)

    if not auto_correct:
        return config, findings
    corrected = replace(config, per_category=per_category, ph_total=ph_total, ex_servicemen_total=ex_total)
    return corrected, findings
