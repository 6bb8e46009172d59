"""Error taxonomy for ranking, submission and deduplication operations."""


class QuestionBankError(Exception):
    """Base class for errors scoped to a single user operation."""


class CandidateFetchError(QuestionBankError):
    """Raised when ranking candidates or ranking state cannot be read."""


class RankingWriteError(QuestionBankError):
    """Raised when a ranking update cannot be persisted."""


class EmbeddingProviderError(QuestionBankError):
    """Raised when the embedding provider fails or returns no vector."""


class KanbanMoveError(QuestionBankError, ValueError):
    """Raised when a kanban move references an unknown column or item."""


class VisibilityError(QuestionBankError, ValueError):
    """Raised when a private submission has no organization to belong to."""


class SessionStateError(QuestionBankError, RuntimeError):
    """Raised when a ranking session operation is invalid in its current state."""
