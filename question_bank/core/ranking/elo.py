"""Elo rating updates for pairwise question and response comparisons."""

import math
from dataclasses import dataclass
from typing import Hashable, Sequence
from uuid import UUID

DEFAULT_ELO = 1500.0
K_FACTOR = 32.0


@dataclass(frozen=True)
class PairwiseOutcome:
    """One strict win/loss derived from a ranking session.

    Not persisted: consumed immediately by the Elo update and discarded.
    """

    winner_id: Hashable
    loser_id: Hashable
    scope_id: UUID | None = None


def expected_score(rating: float, opponent_rating: float) -> float:
    """Probability that `rating` beats `opponent_rating`."""
    return 1 / (1 + 10 ** ((opponent_rating - rating) / 400))


def update(
    winner_score: float,
    loser_score: float,
    k_factor: float = K_FACTOR,
) -> tuple[float, float]:
    """
    Calculate new ratings after `winner` beat `loser`.

    Draws are not representable. The update is zero-sum: the winner gains
    exactly what the loser gives up.

    Args:
        winner_score: Current rating of the winning item
        loser_score: Current rating of the losing item
        k_factor: Maximum adjustment per comparison

    Returns:
        (new_winner_score, new_loser_score)
    """
    for value in (winner_score, loser_score, k_factor):
        if not math.isfinite(value):
            raise ValueError(f"Elo inputs must be finite, got {value!r}")

    expected_winner = expected_score(winner_score, loser_score)
    delta = k_factor * (1 - expected_winner)

    return winner_score + delta, loser_score - delta


def derive_outcomes(
    ordered_ids: Sequence[Hashable],
    scope_id: UUID | None = None,
) -> list[PairwiseOutcome]:
    """
    Expand a total order (best first) into every pairwise outcome.

    Pairs come out in nested-loop order: (0, 1), (0, 2), ..., (1, 2), ...
    Elo updates are path-dependent, so callers apply them in exactly this order.
    """
    outcomes = []
    for i in range(len(ordered_ids) - 1):
        for j in range(i + 1, len(ordered_ids)):
            outcomes.append(
                PairwiseOutcome(
                    winner_id=ordered_ids[i],
                    loser_id=ordered_ids[j],
                    scope_id=scope_id,
                )
            )
    return outcomes


def apply_outcomes(
    scores: dict[Hashable, float],
    outcomes: Sequence[PairwiseOutcome],
    k_factor: float = K_FACTOR,
    baseline: float = DEFAULT_ELO,
) -> dict[Hashable, float]:
    """Apply outcomes sequentially to an in-memory score table.

    Items missing from `scores` start at `baseline`. Returns a new dict.
    """
    updated = dict(scores)
    for outcome in outcomes:
        winner = updated.get(outcome.winner_id, baseline)
        loser = updated.get(outcome.loser_id, baseline)
        updated[outcome.winner_id], updated[outcome.loser_id] = update(
            winner, loser, k_factor
        )
    return updated
