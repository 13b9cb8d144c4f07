from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

from errors import NotFoundError
from models import CandidateRecord, Category, Dataset, Gender, HorizontalQuota

logger = logging.getLogger(__name__)

NOT_RANKED = 0

Predicate = Callable[[CandidateRecord], bool]


class RankedPool:
    """Candidates ordered by marks, highest first; ties keep input order."""

    def __init__(self, records: Iterable[CandidateRecord] = ()):
        self._records = tuple(records)
        self._positions = {record.roll_no: idx for idx, record in enumerate(self._records)}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CandidateRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> CandidateRecord:
        return self._records[index]

    def __bool__(self) -> bool:
        return bool(self._records)

    def __repr__(self) -> str:
        return f"RankedPool(size={len(self._records)})"

    def find_rank(self, roll_no: str) -> int:
        position = self._positions.get(roll_no)
        return NOT_RANKED if position is None else position + 1

    def filter(self, predicate: Predicate) -> "RankedPool":
        # Filtering an already ranked sequence keeps it ranked.
        return RankedPool(record for record in self._records if predicate(record))

    def records_ahead(self, roll_no: str) -> tuple[CandidateRecord, ...]:
        rank = self.find_rank(roll_no)
        if rank == NOT_RANKED:
            return self._records
        return self._records[: rank - 1]

    @property
    def marks(self) -> list[float]:
        return [record.marks for record in self._records]

    @property
    def lowest_mark(self) -> float | None:
        return self._records[-1].marks if self._records else None


def rank(pool: Iterable[CandidateRecord], predicate: Predicate | None = None) -> RankedPool:
    selected = [record for record in pool if predicate is None or predicate(record)]
    # sorted() is stable, so equal marks stay in original input order.
    return RankedPool(sorted(selected, key=lambda record: -record.marks))


def find_rank(pool: RankedPool, roll_no: str) -> int:
    return pool.find_rank(roll_no)


def nth_mark(pool: RankedPool, position: int) -> float | None:
    """Mark of the candidate at 1-based ``position``.

    Returns None for an empty pool or a position below 1. When the pool holds
    fewer candidates than ``position`` the weakest available mark is used.
    """
    if not pool or position < 1:
        return None
    return pool[min(position, len(pool)) - 1].marks


@dataclass(frozen=True, eq=False)
class RankingContext:
    records: tuple[CandidateRecord, ...]
    population: RankedPool
    by_roll: Mapping[str, CandidateRecord]

    def lookup(self, roll_no: str) -> CandidateRecord:
        record = self.by_roll.get(str(roll_no).strip())
        if record is None:
            raise NotFoundError(str(roll_no).strip())
        return record

    def pool(self, predicate: Predicate) -> RankedPool:
        return self.population.filter(predicate)

    @cached_property
    def _gender_pools(self) -> dict[Gender, RankedPool]:
        return {gender: self.pool(lambda r, g=gender: r.gender is g) for gender in Gender}

    @cached_property
    def _category_pools(self) -> dict[Category, RankedPool]:
        return {category: self.pool(lambda r, c=category: r.category is c) for category in Category}

    @cached_property
    def _category_gender_pools(self) -> dict[tuple[Category, Gender], RankedPool]:
        return {
            (category, gender): pool.filter(lambda r, g=gender: r.gender is g)
            for category, pool in self._category_pools.items()
            for gender in Gender
        }

    def gender_pool(self, gender: Gender) -> RankedPool:
        return self._gender_pools[gender]

    def category_pool(self, category: Category) -> RankedPool:
        return self._category_pools[category]

    def category_gender_pool(self, category: Category, gender: Gender) -> RankedPool:
        return self._category_gender_pools[(category, gender)]

    def horizontal_pool(self, quota: HorizontalQuota, category: Category | None = None) -> RankedPool:
        source = self.population if category is None else self.category_pool(category)
        return source.filter(lambda r: r.holds(quota))


def build_context(dataset: Dataset) -> RankingContext:
    population = rank(dataset.records, lambda record: record.is_ranked)
    context = RankingContext(
        records=dataset.records,
        population=population,
        by_roll=MappingProxyType({record.roll_no: record for record in dataset.records}),
    )
    logger.info("Ranking context built: %s of %s candidates ranked", len(population), len(dataset.records))
    return context
