"""Ranking session: present candidates, collect a total order, persist the result."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, Sequence
from uuid import UUID

from question_bank.core.errors import (
    CandidateFetchError,
    RankingWriteError,
    SessionStateError,
)
from question_bank.core.ranking import elo
from question_bank.core.ranking.sequencer import resequence

logger = logging.getLogger(__name__)


@dataclass
class RankableItem:
    """A question or response as presented in a ranking session."""

    id: UUID
    content: str
    scope_id: UUID | None = None
    category: str | None = None
    created_at: datetime | None = None
    manual_rank: int | None = None


class SessionState(str, Enum):
    """Lifecycle of a ranking session."""

    IDLE = "idle"
    LOADING = "loading"
    PRESENTING = "presenting"
    SUBMITTING = "submitting"
    COMPLETE = "complete"
    ERROR = "error"
    CLOSED = "closed"


class SessionMode(str, Enum):
    """How a submitted order is persisted."""

    ELO = "elo"
    MANUAL = "manual"


CandidateLoader = Callable[[], Awaitable[list[RankableItem]]]

_LOADABLE = (SessionState.IDLE, SessionState.COMPLETE, SessionState.ERROR)


class RankingSession:
    """
    One user's pass over a set of candidates.

    The permutation lives in memory only; nothing is persisted until
    `submit()`. Owned by a single caller, not shared between requests.

    Args:
        loader: Coroutine factory returning the candidates to present
        store: Rank store the result is written to
        mode: Elo (pairwise outcomes) or manual (dense resequence)
        scope_id: Organization id, or None for the global pool
        k_factor: Elo K factor (Elo mode only)
    """

    def __init__(
        self,
        loader: CandidateLoader,
        store: Any,
        mode: SessionMode = SessionMode.ELO,
        scope_id: UUID | None = None,
        k_factor: float = elo.K_FACTOR,
    ) -> None:
        self.loader = loader
        self.store = store
        self.mode = mode
        self.scope_id = scope_id
        self.k_factor = k_factor
        self.state = SessionState.IDLE
        self.error: Exception | None = None
        self._items: list[RankableItem] = []
        self._task: asyncio.Future | None = None

    @property
    def items(self) -> list[RankableItem]:
        """Candidates in their current order."""
        return list(self._items)

    @property
    def order(self) -> list[UUID]:
        return [item.id for item in self._items]

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(
                f"Session is {self.state.value}; expected one of: {allowed}"
            )

    async def _run(self, coro: Coroutine) -> Any:
        """Run one network-bound step as a cancellable task."""
        self._task = asyncio.ensure_future(coro)
        try:
            return await self._task
        except asyncio.CancelledError:
            self.state = SessionState.CLOSED
            raise
        finally:
            self._task = None

    async def load(self) -> list[RankableItem]:
        """Fetch a fresh candidate set and start presenting it."""
        self._require(*_LOADABLE)
        self.state = SessionState.LOADING
        self.error = None

        try:
            items = await self._run(self.loader())
        except asyncio.CancelledError:
            raise
        except CandidateFetchError as e:
            self._fail(e)
            raise
        except Exception as e:
            self._fail(e)
            raise CandidateFetchError(f"Could not load ranking candidates: {e}") from e

        self._items = list(items)
        self.state = SessionState.PRESENTING
        logger.debug(
            "Ranking session loaded %d candidates (mode=%s, scope=%s)",
            len(self._items),
            self.mode.value,
            self.scope_id,
        )
        return self.items

    def reorder(self, source_index: int, dest_index: int) -> list[RankableItem]:
        """Apply one drag-and-drop move to the in-memory permutation."""
        self._require(SessionState.PRESENTING)
        if not 0 <= source_index < len(self._items):
            raise IndexError(f"No candidate at position {source_index}")

        item = self._items.pop(source_index)
        dest_index = max(0, min(dest_index, len(self._items)))
        self._items.insert(dest_index, item)
        return self.items

    def set_order(self, ordered_ids: Sequence[UUID]) -> list[RankableItem]:
        """Replace the permutation with a full order of the loaded candidates."""
        self._require(SessionState.PRESENTING)
        by_id = {item.id: item for item in self._items}
        if len(ordered_ids) != len(by_id) or set(ordered_ids) != set(by_id):
            raise ValueError("Order must contain every loaded candidate exactly once")

        self._items = [by_id[item_id] for item_id in ordered_ids]
        return self.items

    async def submit(self) -> dict[UUID, float] | dict[UUID, int]:
        """
        Persist the current order.

        Elo mode applies every derived pairwise outcome in nested-loop order,
        one read-update-write per pair; earlier pairs stay applied if a later
        one fails. Manual mode writes the dense 1..N ranking in one upsert.

        Returns:
            New Elo scores (Elo mode) or manual ranks (manual mode)
        """
        self._require(SessionState.PRESENTING)
        self.state = SessionState.SUBMITTING

        try:
            if self.mode is SessionMode.ELO:
                result = await self._run(self._submit_elo())
            else:
                result = await self._run(self._submit_manual())
        except asyncio.CancelledError:
            raise
        except RankingWriteError as e:
            self._fail(e)
            raise
        except Exception as e:
            self._fail(e)
            raise RankingWriteError(f"Could not submit ranking: {e}") from e

        self.state = SessionState.COMPLETE
        logger.info(
            f"Ranking submitted: mode={self.mode.value} scope={self.scope_id} "
            f"items={len(self._items)}"
        )
        return result

    async def _submit_elo(self) -> dict[UUID, float]:
        final_scores: dict[UUID, float] = {}
        for outcome in elo.derive_outcomes(self.order, self.scope_id):
            scores = await self.store.get_elo_scores(
                self.scope_id, [outcome.winner_id, outcome.loser_id]
            )
            new_winner, new_loser = elo.update(
                scores[outcome.winner_id],
                scores[outcome.loser_id],
                self.k_factor,
            )
            new_scores = {outcome.winner_id: new_winner, outcome.loser_id: new_loser}
            await self.store.set_elo_scores(self.scope_id, new_scores)
            final_scores.update(new_scores)
        return final_scores

    async def _submit_manual(self) -> dict[UUID, int]:
        ranks = resequence(self.order)
        await self.store.set_manual_ranks(self.scope_id, ranks)
        for item in self._items:
            item.manual_rank = ranks[item.id]
        return ranks

    def _fail(self, error: Exception) -> None:
        logger.error(f"Ranking session failed while {self.state.value}: {error}")
        self.state = SessionState.ERROR
        self.error = error

    async def close(self) -> None:
        """Cancel any in-flight load or submit and end the session."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
        self.state = SessionState.CLOSED
