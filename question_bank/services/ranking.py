"""Request-scoped ranking sessions."""

from typing import Sequence
from uuid import UUID

from question_bank.config import get_settings
from question_bank.core.ranking.session import (
    CandidateLoader,
    RankableItem,
    RankingSession,
    SessionMode,
)
from question_bank.services.rank_store import RankStore

settings = get_settings()


def new_session(
    loader: CandidateLoader,
    store: RankStore,
    mode: SessionMode,
    scope_id: UUID | None = None,
) -> RankingSession:
    return RankingSession(
        loader,
        store,
        mode=mode,
        scope_id=scope_id,
        k_factor=settings.elo_k_factor,
    )


async def present(loader: CandidateLoader, store: RankStore, scope_id: UUID | None = None) -> list[RankableItem]:
    """Load candidates for display; nothing is written."""
    session = new_session(loader, store, SessionMode.ELO, scope_id)
    try:
        return await session.load()
    finally:
        await session.close()


async def submit_order(
    loader: CandidateLoader,
    store: RankStore,
    mode: SessionMode,
    ordered_ids: Sequence[UUID],
    scope_id: UUID | None = None,
) -> dict:
    """
    Run one session end to end for an order chosen by the client.

    The loader re-reads the candidates so the order is checked against the
    datastore rather than trusted.

    Raises:
        ValueError: If `ordered_ids` is not exactly the loaded candidate set
    """
    session = new_session(loader, store, mode, scope_id)
    await session.load()
    session.set_order(ordered_ids)
    return await session.submit()
