"""Kanban schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class KanbanCardRead(BaseModel):
    """A card on a kanban board."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    question_id: UUID | None = None
    category: str | None = None
    elo_score: float | None = None
    manual_rank: int | None = None


class KanbanBoardRead(BaseModel):
    """Board columns in display order, each with its ordered cards."""

    column_order: list[str]
    columns: dict[str, list[KanbanCardRead]]


class KanbanMoveRequest(BaseModel):
    """Drag-and-drop of one card."""

    item_id: UUID
    source_column: str
    dest_column: str
    dest_index: int


class ResponseKanbanMoveRequest(KanbanMoveRequest):
    """Response card move, optionally scoped to a single question's board."""

    question_id: UUID | None = None


class KanbanUpdateRead(BaseModel):
    """New placement of one card."""

    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    column: str
    order: int


class KanbanMoveResponse(BaseModel):
    """Placements rewritten by a move."""

    updates: list[KanbanUpdateRead]
