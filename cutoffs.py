"""Probable cut-off marks per category under the reservation scheme.

The steps run in a fixed order because the reserved-category pools are
defined relative to the General cut-offs computed first:

1. General male cut-off over all male candidates.
2. General female cut-off over all female candidates.
3. Reserved categories per gender, after removing candidates who clear the
   General cut-off of their gender (merit over category).
4. Horizontal PH / ex-servicemen cut-offs per category.
5. A document-verification cut-off of zero falls back to the final cut-off.
"""
from __future__ import annotations

import logging
import math

from models import (
    RESERVED_CATEGORIES,
    Category,
    CutoffEntry,
    CutoffTable,
    Gender,
    HorizontalQuota,
    QuotaConfig,
)
from ranking import RankedPool, RankingContext, nth_mark

logger = logging.getLogger(__name__)

DEFAULT_DV_MULTIPLIER = 1.5


def dv_position(vacancies: int, multiplier: float) -> int:
    return math.floor(vacancies * multiplier)


def pool_cutoffs(pool: RankedPool, vacancies: int, dv_multiplier: float) -> tuple[float | None, float | None]:
    """Final and document-verification cut-offs for one pool."""
    if vacancies < 1:
        return None, None
    final = nth_mark(pool, vacancies)
    if final is None:
        return None, None
    dv = nth_mark(pool, dv_position(vacancies, dv_multiplier))
    if not dv:
        dv = final
    return final, dv


def merit_pool(pool: RankedPool, general_cutoff: float | None) -> RankedPool:
    """Candidates left to a reserved pool once General-merit qualifiers move out."""
    if general_cutoff is None:
        return pool
    return pool.filter(lambda record: record.marks < general_cutoff)


def general_cutoffs(
    context: RankingContext,
    quota: QuotaConfig,
    gender: Gender,
    dv_multiplier: float = DEFAULT_DV_MULTIPLIER,
) -> tuple[float | None, float | None]:
    vacancies = quota.gender_vacancies(Category.GENERAL, gender)
    return pool_cutoffs(context.gender_pool(gender), vacancies, dv_multiplier)


def reserved_cutoffs(
    context: RankingContext,
    quota: QuotaConfig,
    category: Category,
    gender: Gender,
    general_cutoff: float | None,
    dv_multiplier: float = DEFAULT_DV_MULTIPLIER,
) -> tuple[float | None, float | None]:
    vacancies = quota.gender_vacancies(category, gender)
    unfiltered = context.category_gender_pool(category, gender)
    remaining = merit_pool(unfiltered, general_cutoff)
    if remaining and vacancies >= 1:
        return pool_cutoffs(remaining, vacancies, dv_multiplier)
    # No seats to rank against, or everyone in the category cleared General merit.
    lowest = (remaining or unfiltered).lowest_mark
    return lowest, lowest


def horizontal_cutoff(
    context: RankingContext,
    quota: QuotaConfig,
    category: Category,
    horizontal: HorizontalQuota,
) -> float | None:
    vacancies = quota.horizontal_vacancies(category, horizontal)
    pool = context.horizontal_pool(horizontal, category)
    if vacancies < 1:
        return pool.lowest_mark
    return nth_mark(pool, vacancies)


def compute_cutoff_table(
    context: RankingContext,
    quota: QuotaConfig,
    dv_multiplier: float = DEFAULT_DV_MULTIPLIER,
) -> CutoffTable:
    quota.validate()
    values: dict[Category, dict[str, float | None]] = {category: {} for category in Category}

    male_final, male_dv = general_cutoffs(context, quota, Gender.MALE, dv_multiplier)
    female_final, female_dv = general_cutoffs(context, quota, Gender.FEMALE, dv_multiplier)
    values[Category.GENERAL].update(
        final_cutoff=male_final,
        dv_cutoff=male_dv,
        women_cutoff=female_final,
        women_dv_cutoff=female_dv,
    )

    for category in RESERVED_CATEGORIES:
        final, dv = reserved_cutoffs(context, quota, category, Gender.MALE, male_final, dv_multiplier)
        women, women_dv = reserved_cutoffs(context, quota, category, Gender.FEMALE, female_final, dv_multiplier)
        values[category].update(final_cutoff=final, dv_cutoff=dv, women_cutoff=women, women_dv_cutoff=women_dv)

    for category in Category:
        values[category]["ph_cutoff"] = horizontal_cutoff(context, quota, category, HorizontalQuota.PH)
        values[category]["ex_servicemen_cutoff"] = horizontal_cutoff(
            context, quota, category, HorizontalQuota.EX_SERVICEMEN
        )

    for category, row in values.items():
        if row.get("dv_cutoff") == 0:
            row["dv_cutoff"] = row.get("final_cutoff")
        if row.get("women_dv_cutoff") == 0:
            row["women_dv_cutoff"] = row.get("women_cutoff")

    table = CutoffTable({category: CutoffEntry(**row) for category, row in values.items()})
    logger.info("Cut-off table computed for %s ranked candidates", len(context.population))
    return table
