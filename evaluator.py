from __future__ import annotations

from dataclasses import dataclass, replace

from cutoffs import merit_pool
from models import (
    Band,
    CandidateRecord,
    Category,
    EvaluationResult,
    Gender,
    HorizontalQuota,
    QuotaConfig,
    ReasonCode,
    round_half_up,
)
from ranking import NOT_RANKED, RankingContext, nth_mark
from settings import EngineSettings


@dataclass(frozen=True)
class BandScores:
    high: int
    medium: int
    low: int


@dataclass(frozen=True)
class IntakeProfile:
    name: str
    label: str
    multiplier: float
    near_ratio: float
    merit_over_category: int
    general: BandScores
    reserved: BandScores
    horizontal: int
    floor: int

    def scale(self, vacancies: int) -> int:
        return round_half_up(vacancies * self.multiplier)


SELECTION = IntakeProfile(
    name="selection",
    label="selection",
    multiplier=1.0,
    near_ratio=1.2,
    merit_over_category=95,
    general=BandScores(high=90, medium=40, low=15),
    reserved=BandScores(high=85, medium=35, low=15),
    horizontal=80,
    floor=10,
)

DOCUMENT_VERIFICATION = IntakeProfile(
    name="document_verification",
    label="document verification",
    multiplier=1.5,
    near_ratio=1.1,
    merit_over_category=98,
    general=BandScores(high=95, medium=60, low=20),
    reserved=BandScores(high=90, medium=50, low=20),
    horizontal=85,
    floor=5,
)


def document_verification_profile(settings: EngineSettings) -> IntakeProfile:
    if settings.dv_multiplier == DOCUMENT_VERIFICATION.multiplier:
        return DOCUMENT_VERIFICATION
    return replace(DOCUMENT_VERIFICATION, multiplier=settings.dv_multiplier)


QUOTA_REASONS = {
    HorizontalQuota.PH: ReasonCode.PH_QUOTA,
    HorizontalQuota.EX_SERVICEMEN: ReasonCode.EX_SERVICEMEN_QUOTA,
}


def _plural(gender: Gender) -> str:
    return "males" if gender is Gender.MALE else "females"


def _banded(
    profile: IntakeProfile,
    scores: BandScores,
    rank: int,
    vacancies: int,
    codes: tuple[ReasonCode, ReasonCode, ReasonCode],
    group: str,
    cutoff: float | None,
) -> EvaluationResult:
    within, near, beyond = codes
    if rank <= vacancies:
        band, probability, code = Band.HIGH, scores.high, within
        narrative = (
            f"High chance of {profile.label}. Your rank ({rank:,}) among {group} "
            f"is within the estimated {profile.label} intake ({vacancies:,})."
        )
    elif rank <= vacancies * profile.near_ratio:
        band, probability, code = Band.MEDIUM, scores.medium, near
        narrative = (
            f"Some chance of {profile.label}. Your rank ({rank:,}) among {group} "
            f"is somewhat beyond the estimated {profile.label} intake ({vacancies:,})."
        )
    else:
        band, probability, code = Band.LOW, scores.low, beyond
        narrative = (
            f"Low chance of {profile.label}. Your rank ({rank:,}) among {group} "
            f"is well beyond the estimated {profile.label} intake ({vacancies:,})."
        )
    return EvaluationResult(profile.name, probability, code, band, narrative, rank, vacancies, cutoff)


def horizontal_seats(
    quota: QuotaConfig,
    category: Category,
    gender: Gender,
    horizontal: HorizontalQuota,
    profile: IntakeProfile,
    settings: EngineSettings,
) -> int:
    """Estimated horizontal seats for one category and gender under a profile.

    A category that carries no seats of the quota gets 0, so no upgrade is
    possible through it. Otherwise at least one seat is estimated.
    """
    base = quota.horizontal_vacancies(category, horizontal)
    if base < 1:
        return 0
    share = settings.gender_share(horizontal, gender)
    # Trim float noise so products such as 15 * 0.1 still round half up.
    return max(1, round_half_up(round(profile.scale(base) * share, 9)))


def _horizontal_upgrade(
    candidate: CandidateRecord,
    context: RankingContext,
    quota: QuotaConfig,
    profile: IntakeProfile,
    settings: EngineSettings,
    horizontal: HorizontalQuota,
    general_cutoff: float | None,
) -> EvaluationResult | None:
    pool = merit_pool(context.category_gender_pool(candidate.category, candidate.gender), general_cutoff)
    pool = pool.filter(lambda record: record.holds(horizontal))
    rank = pool.find_rank(candidate.roll_no)
    seats = horizontal_seats(quota, candidate.category, candidate.gender, horizontal, profile, settings)
    if rank == NOT_RANKED or rank > seats:
        return None
    narrative = (
        f"Good chance of {profile.label} through the {horizontal.value} reservation. Your rank among "
        f"{horizontal.value} candidates in your category and gender ({rank:,}) is within the estimated "
        f"{horizontal.value} seats ({seats:,})."
    )
    return EvaluationResult(
        profile.name, profile.horizontal, QUOTA_REASONS[horizontal], Band.HIGH, narrative, rank, seats, pool.lowest_mark
    )


def evaluate(
    candidate: CandidateRecord,
    context: RankingContext,
    quota: QuotaConfig,
    profile: IntakeProfile = SELECTION,
    settings: EngineSettings | None = None,
) -> EvaluationResult:
    quota.validate()
    settings = settings or EngineSettings()

    if not candidate.is_ranked:
        return EvaluationResult(
            profile.name,
            0,
            ReasonCode.EXCLUDED_FROM_RANKING,
            Band.NONE,
            "No valid marks on record, so this candidate is excluded from ranking and cut-offs.",
        )

    gender = candidate.gender
    general_pool = context.gender_pool(gender)
    general_vacancies = profile.scale(quota.gender_vacancies(Category.GENERAL, gender))
    general_cutoff = nth_mark(general_pool, general_vacancies) if general_vacancies >= 1 else None

    result: EvaluationResult | None = None
    if candidate.category is not Category.GENERAL and general_cutoff is not None and candidate.marks >= general_cutoff:
        general_rank = general_pool.find_rank(candidate.roll_no)
        if general_rank <= general_vacancies:
            narrative = (
                f"Very high chance of {profile.label} under the merit-over-category rule. Your marks "
                f"({candidate.marks:.2f}) are at or above the estimated General {gender.label} cut-off "
                f"({general_cutoff:.2f}), so you compete for a General seat."
            )
            return EvaluationResult(
                profile.name,
                profile.merit_over_category,
                ReasonCode.MERIT_OVER_CATEGORY,
                Band.HIGH,
                narrative,
                general_rank,
                general_vacancies,
                general_cutoff,
            )
    elif candidate.category is Category.GENERAL:
        result = _banded(
            profile,
            profile.general,
            general_pool.find_rank(candidate.roll_no),
            general_vacancies,
            (
                ReasonCode.GENERAL_WITHIN_VACANCIES,
                ReasonCode.GENERAL_NEAR_VACANCIES,
                ReasonCode.GENERAL_BEYOND_VACANCIES,
            ),
            f"General category {_plural(gender)}",
            general_cutoff,
        )
    else:
        pool = merit_pool(context.category_gender_pool(candidate.category, gender), general_cutoff)
        rank = pool.find_rank(candidate.roll_no)
        if rank != NOT_RANKED:
            result = _banded(
                profile,
                profile.reserved,
                rank,
                profile.scale(quota.gender_vacancies(candidate.category, gender)),
                (
                    ReasonCode.CATEGORY_WITHIN_VACANCIES,
                    ReasonCode.CATEGORY_NEAR_VACANCIES,
                    ReasonCode.CATEGORY_BEYOND_VACANCIES,
                ),
                f"{candidate.category.value} {_plural(gender)} after merit-over-category shifts",
                pool.lowest_mark,
            )

    for horizontal in HorizontalQuota:
        if not candidate.holds(horizontal):
            continue
        if result is not None and result.probability >= settings.confident_threshold:
            break
        upgraded = _horizontal_upgrade(candidate, context, quota, profile, settings, horizontal, general_cutoff)
        if upgraded is not None:
            result = upgraded

    if result is None:
        result = EvaluationResult(
            profile.name,
            profile.floor,
            ReasonCode.BELOW_ALL_CUTOFFS,
            Band.FLOOR,
            f"Very low chance of {profile.label}. Your marks ({candidate.marks:.2f}) appear to be below the "
            f"estimated cut-offs for your category and all applicable reservations.",
        )
    return result
