"""Kanban board bookkeeping: column assignment plus dense in-column order."""

from dataclasses import dataclass
from typing import Hashable, Iterable, Mapping, Sequence

from question_bank.core.errors import KanbanMoveError


@dataclass(frozen=True)
class KanbanBoard:
    """Column layout of a board."""

    columns: tuple[str, ...]
    default_column: str

    def __post_init__(self) -> None:
        if self.default_column not in self.columns:
            raise ValueError(f"Default column {self.default_column!r} is not on the board")


QUESTION_BOARD = KanbanBoard(
    columns=("Now", "Next", "Future", "Parked", "Done"),
    default_column="Now",
)
RESPONSE_BOARD = KanbanBoard(
    columns=("Now", "Next", "Future", "Parked", "No Action"),
    default_column="No Action",
)


@dataclass(frozen=True)
class KanbanUpdate:
    """Target placement of one card after a move."""

    item_id: Hashable
    column: str
    order: int


def move(
    item_id: Hashable,
    source_column: str,
    dest_column: str,
    dest_index: int,
    columns: Mapping[str, Sequence[Hashable]],
) -> list[KanbanUpdate]:
    """
    Move a card and reindex the columns it touched.

    `dest_index` is clamped to [0, len(dest_column)] after removal from the
    source. The destination column is emitted first, then the source column
    when it differs. Untouched columns are never emitted.

    Args:
        item_id: Card being moved
        source_column: Column the card currently sits in
        dest_column: Column the card is dropped into
        dest_index: Drop position in the destination column
        columns: Current ordered contents of every column

    Returns:
        Dense 0..K-1 placements for every card in the touched columns
    """
    if source_column not in columns:
        raise KanbanMoveError(f"Unknown source column: {source_column}")
    if dest_column not in columns:
        raise KanbanMoveError(f"Unknown destination column: {dest_column}")

    source_items = list(columns[source_column])
    if item_id not in source_items:
        raise KanbanMoveError(f"Item {item_id} is not in column {source_column}")
    source_items.remove(item_id)

    if source_column == dest_column:
        dest_items = source_items
    else:
        dest_items = list(columns[dest_column])

    index = max(0, min(dest_index, len(dest_items)))
    dest_items.insert(index, item_id)

    updates = [
        KanbanUpdate(item_id=card, column=dest_column, order=order)
        for order, card in enumerate(dest_items)
    ]
    if source_column != dest_column:
        updates.extend(
            KanbanUpdate(item_id=card, column=source_column, order=order)
            for order, card in enumerate(source_items)
        )
    return updates


def group_by_status(
    placements: Iterable[tuple[Hashable, str | None, int | None]],
    board: KanbanBoard,
) -> dict[str, list[Hashable]]:
    """Build ordered column contents from stored (item_id, status, order) rows.

    Items without a status, or with a status the board does not know, land in
    the board's default column. Within a column items sort by stored order;
    missing orders count as 0 and ties keep input order.
    """
    grouped: dict[str, list[tuple[int, Hashable]]] = {column: [] for column in board.columns}
    for item_id, status, order in placements:
        column = status if status in grouped else board.default_column
        grouped[column].append((order or 0, item_id))

    return {
        column: [item_id for _, item_id in sorted(cards, key=lambda card: card[0])]
        for column, cards in grouped.items()
    }
