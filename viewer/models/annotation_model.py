"""Move annotation values produced while stepping through a game."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


ANALYZING_TEXT = "Analyzing..."


class AnnotationKind(Enum):
    """Verdict attached to a played move."""
    BOOK_MOVE = "book_move"
    GREAT_MOVE = "great_move"
    SUGGEST_MOVE = "suggest_move"


@dataclass(frozen=True)
class Annotation:
    """Verdict for the move that took the game to `ply`.

    Attributes:
        ply: Cursor after the move (1 = after the first move).
        played_move: The move as recorded in the game (SAN).
        kind: The verdict.
        suggestion: Engine's preferred move for SUGGEST_MOVE (SAN, or raw
                    coordinates if they could not be converted).
    """
    ply: int
    played_move: str
    kind: AnnotationKind
    suggestion: Optional[str] = None

    @property
    def tag(self) -> str:
        if self.kind is AnnotationKind.BOOK_MOVE:
            return "📚 Book move"
        if self.kind is AnnotationKind.GREAT_MOVE:
            return "✅ Great move"
        return f"↪️ Suggest {self.suggestion}"

    @property
    def text(self) -> str:
        return f"{self.ply}. {self.played_move} → {self.tag}"
