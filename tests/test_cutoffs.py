import pytest

from builders import candidate, context_of, make_quota
from cutoffs import compute_cutoff_table, dv_position
from errors import ConfigurationError
from models import Category, CategoryQuota, Gender, HorizontalQuota, QuotaConfig


def ten_general_males():
    return [candidate(f"G{idx}", 100 - idx * 5) for idx in range(10)]


def test_general_cutoff_is_mark_at_vacancy_position() -> None:
    context = context_of(*ten_general_males())
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (2, 0)}))

    general = table[Category.GENERAL]
    assert general.final_cutoff == 95
    assert general.dv_cutoff == 90
    assert general.dv_cutoff <= general.final_cutoff
    assert general.women_cutoff is None


def test_fewer_candidates_than_vacancies_uses_weakest_mark() -> None:
    context = context_of(candidate("A", 80), candidate("B", 70))
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (5, 0)}))
    assert table[Category.GENERAL].final_cutoff == 70
    assert table[Category.GENERAL].dv_cutoff == 70


def test_reserved_cutoff_excludes_merit_over_category_qualifiers() -> None:
    context = context_of(
        candidate("G1", 100),
        candidate("G2", 90),
        candidate("G3", 80),
        candidate("S1", 95, category=Category.SC),
        candidate("S2", 85, category=Category.SC),
        candidate("S3", 70, category=Category.SC),
        candidate("S4", 60, category=Category.SC),
    )
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (2, 0), Category.SC: (2, 0)}))

    assert table[Category.GENERAL].final_cutoff == 95
    assert table[Category.SC].final_cutoff == 70
    assert table[Category.SC].dv_cutoff == 60


def test_reserved_cutoff_degenerates_to_weakest_member_when_all_qualify_for_general() -> None:
    context = context_of(
        candidate("G1", 50),
        candidate("G2", 40),
        candidate("S1", 90, category=Category.SC),
        candidate("S2", 80, category=Category.SC),
    )
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (2, 0), Category.SC: (1, 0)}))
    assert table[Category.GENERAL].final_cutoff == 80
    assert table[Category.SC].final_cutoff == 80
    assert table[Category.SC].dv_cutoff == 80


def test_pools_without_computed_seats_fall_back_to_weakest_mark() -> None:
    context = context_of(
        candidate("S1", 60, category=Category.SC, ph=True),
        candidate("S2", 50, "F", Category.SC),
    )
    quota = make_quota({Category.GENERAL: (93, 30), Category.SC: (7, 0)}, ph=3)
    table = compute_cutoff_table(context, quota)
    sc = table[Category.SC]
    assert quota.horizontal_vacancies(Category.SC, HorizontalQuota.PH) == 0
    assert quota.gender_vacancies(Category.SC, Gender.FEMALE) == 0
    assert sc.ph_cutoff == 60
    assert sc.women_cutoff == 50
    assert sc.women_dv_cutoff == 50
    assert sc.ex_servicemen_cutoff is None


def test_women_cutoffs_use_female_pool() -> None:
    context = context_of(
        candidate("M1", 99),
        candidate("F1", 90, "F"),
        candidate("F2", 85, "F"),
        candidate("F3", 75, "F", Category.EWS),
        candidate("F4", 65, "F", Category.EWS),
    )
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (3, 2), Category.EWS: (2, 1)}))
    assert table[Category.GENERAL].women_cutoff == 85
    assert table[Category.GENERAL].women_dv_cutoff == 75
    assert table[Category.GENERAL].final_cutoff == 99
    assert table[Category.EWS].women_cutoff == 75
    assert table[Category.EWS].women_dv_cutoff == 75


def test_category_without_candidates_is_not_applicable() -> None:
    context = context_of(*ten_general_males())
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (2, 0), Category.ST: (1, 0)}))
    st = table[Category.ST]
    assert st.final_cutoff is None
    assert st.dv_cutoff is None
    assert table.as_rows()[-1]["Final"] == "N/A"


def test_zero_general_vacancies_filter_nobody_from_reserved_pools() -> None:
    context = context_of(candidate("G1", 90), candidate("S1", 95, category=Category.SC))
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (1, 1), Category.SC: (1, 0)}))
    assert table[Category.GENERAL].final_cutoff is None
    assert table[Category.SC].final_cutoff == 95


def test_horizontal_cutoffs_per_category() -> None:
    context = context_of(
        candidate("P1", 70, ph=True),
        candidate("P2", 60, "F", ph=True),
        candidate("P3", 50, ph=True),
        candidate("X1", 80, ex=True),
        candidate("N1", 99),
    )
    quota = make_quota({Category.GENERAL: (10, 3)}, ph=2, ex=1)
    table = compute_cutoff_table(context, quota)
    assert quota.horizontal_vacancies(Category.GENERAL, HorizontalQuota.PH) == 2
    assert table[Category.GENERAL].ph_cutoff == 60
    assert table[Category.GENERAL].ex_servicemen_cutoff == 80
    assert table[Category.SC].ph_cutoff is None


def test_dv_position_floors() -> None:
    assert dv_position(2, 1.5) == 3
    assert dv_position(3, 1.5) == 4
    assert dv_position(1, 1.5) == 1


def test_dv_cutoff_never_above_final_cutoff() -> None:
    context = context_of(*ten_general_males(), *[candidate(f"E{i}", 90 - i * 3, "F", Category.EWS) for i in range(8)])
    table = compute_cutoff_table(context, make_quota({Category.GENERAL: (3, 1), Category.EWS: (4, 2)}))
    for entry in table.entries.values():
        if entry.final_cutoff is not None:
            assert entry.dv_cutoff <= entry.final_cutoff
        if entry.women_cutoff is not None:
            assert entry.women_dv_cutoff <= entry.women_cutoff


def test_cutoff_table_is_idempotent() -> None:
    context = context_of(*ten_general_males(), candidate("S1", 77, "F", Category.SEBC, ph=True))
    quota = make_quota({Category.GENERAL: (4, 1), Category.SEBC: (2, 1)}, ph=1)
    assert compute_cutoff_table(context, quota).to_dict() == compute_cutoff_table(context, quota).to_dict()


def test_malformed_quota_raises_configuration_error() -> None:
    quota = QuotaConfig(
        total_vacancies=5,
        per_category={category: CategoryQuota(1, 2) for category in Category},
        ph_total=0,
        ex_servicemen_total=0,
    )
    with pytest.raises(ConfigurationError):
        compute_cutoff_table(context_of(candidate("A", 50)), quota)
