"""Book move service for exempting common opening moves from engine analysis."""

from typing import FrozenSet


# Common first moves of both sides, matched by SAN text only
BOOK_MOVES: FrozenSet[str] = frozenset({"e4", "d4", "Nf3", "c4", "e5", "c5", "Nc6", "d6"})

# Book moves are only recognized in the first 10 plies
BOOK_PLY_LIMIT = 10


class BookMoveService:
    """Service for detecting if a move counts as an opening book move.

    The check is purely syntactic: a move is a book move when its SAN text is
    in BOOK_MOVES and it is played before ply BOOK_PLY_LIMIT. Positions reached
    by transposition are not distinguished.
    """

    def __init__(self, book_moves: FrozenSet[str] = BOOK_MOVES, ply_limit: int = BOOK_PLY_LIMIT) -> None:
        self.book_moves = book_moves
        self.ply_limit = ply_limit

    def is_book_move(self, san: str, ply_index: int) -> bool:
        """Check if a move is a book move.

        Args:
            san: Move in SAN notation, as recorded in the game.
            ply_index: 0-based index of the move in the game.

        Returns:
            True if the move is a book move, False otherwise.
        """
        return ply_index < self.ply_limit and san in self.book_moves
