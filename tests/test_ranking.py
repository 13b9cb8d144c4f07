import pytest

from builders import candidate, context_of
from errors import NotFoundError
from models import Category, Gender, HorizontalQuota
from ranking import NOT_RANKED, RankedPool, find_rank, nth_mark, rank


def test_rank_orders_by_marks_and_keeps_input_order_for_ties() -> None:
    pool = rank([candidate("A", 50), candidate("B", 60), candidate("C", 50), candidate("D", 70)])
    assert [record.roll_no for record in pool] == ["D", "B", "A", "C"]
    assert pool.marks == [70, 60, 50, 50]


def test_rank_applies_predicate() -> None:
    records = [candidate("A", 50, "F"), candidate("B", 60), candidate("C", 55, "F")]
    pool = rank(records, lambda record: record.gender is Gender.FEMALE)
    assert [record.roll_no for record in pool] == ["C", "A"]


def test_find_rank_is_one_based_and_zero_when_absent() -> None:
    pool = rank([candidate("A", 50), candidate("B", 60)])
    assert find_rank(pool, "B") == 1
    assert find_rank(pool, "A") == 2
    assert find_rank(pool, "Z") == NOT_RANKED


def test_nth_mark_boundaries() -> None:
    pool = rank([candidate("A", 50), candidate("B", 60), candidate("C", 40)])
    assert nth_mark(pool, 2) == 50
    assert nth_mark(pool, 10) == 40
    assert nth_mark(pool, 0) is None
    assert nth_mark(RankedPool(), 1) is None


def test_filter_keeps_order_and_records_ahead() -> None:
    pool = rank([candidate("A", 50), candidate("B", 60, "F"), candidate("C", 40), candidate("D", 45, "F")])
    women = pool.filter(lambda record: record.gender is Gender.FEMALE)
    assert [record.roll_no for record in women] == ["B", "D"]
    assert [record.roll_no for record in pool.records_ahead("C")] == ["B", "A", "D"]
    assert pool.records_ahead("B") == ()


def test_build_context_excludes_zero_marks_from_pools() -> None:
    context = context_of(candidate("A", 50), candidate("B", 0), candidate("C", 70, "F"))
    assert [record.roll_no for record in context.population] == ["C", "A"]
    assert context.lookup("B").marks == 0
    assert context.population.find_rank("B") == NOT_RANKED


def test_lookup_strips_whitespace_and_raises_for_unknown_roll() -> None:
    context = context_of(candidate("1001", 50))
    assert context.lookup(" 1001 ").roll_no == "1001"
    with pytest.raises(NotFoundError):
        context.lookup("9999")


def test_group_pools() -> None:
    context = context_of(
        candidate("A", 90, "M", Category.SC, ph=True),
        candidate("B", 80, "F", Category.SC),
        candidate("C", 85, "M", Category.GENERAL, ph=True),
        candidate("D", 70, "M", Category.SC),
    )
    assert [r.roll_no for r in context.gender_pool(Gender.MALE)] == ["A", "C", "D"]
    assert [r.roll_no for r in context.category_pool(Category.SC)] == ["A", "B", "D"]
    assert [r.roll_no for r in context.category_gender_pool(Category.SC, Gender.MALE)] == ["A", "D"]
    assert [r.roll_no for r in context.horizontal_pool(HorizontalQuota.PH)] == ["A", "C"]
    assert [r.roll_no for r in context.horizontal_pool(HorizontalQuota.PH, Category.SC)] == ["A"]
    assert not context.category_pool(Category.ST)
