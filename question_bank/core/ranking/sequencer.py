"""Manual (dense 1..N) ranking."""

from typing import Callable, Hashable, Iterable, Sequence, TypeVar

T = TypeVar("T")


def resequence(ordered_ids: Sequence[Hashable]) -> dict[Hashable, int]:
    """Assign ranks 1..N in list order, overwriting any previous ranks."""
    ranks: dict[Hashable, int] = {}
    for index, item_id in enumerate(ordered_ids, start=1):
        if item_id in ranks:
            raise ValueError(f"Duplicate item id in ranking: {item_id}")
        ranks[item_id] = index
    return ranks


def initial_order(
    items: Iterable[T],
    rank_of: Callable[[T], int | None],
) -> list[T]:
    """Order items by their current manual rank, unranked items last.

    Ties (including all unranked items) keep their input order.
    """
    return sorted(
        items,
        key=lambda item: (rank_of(item) is None, rank_of(item) or 0),
    )
