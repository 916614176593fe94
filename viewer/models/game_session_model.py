"""Game session model holding the loaded game and the navigation state."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from viewer.models.annotation_model import Annotation
from viewer.services.rules_service import GameHeaders, ParsedGame, STARTING_FEN


class NavigationState(Enum):
    """Where the cursor sits in the loaded game."""
    AT_START = "at_start"
    MID_GAME = "mid_game"
    AT_END = "at_end"


@dataclass(frozen=True)
class MoveListEntry:
    """One row of the rendered move list."""
    index: int
    number_label: str
    san: str
    is_active: bool
    annotation_tag: Optional[str]


class GameSessionModel(QObject):
    """Model representing the game being viewed.

    This model holds the move list, the cursor (number of moves played), the
    position at the cursor, per-move annotations and the PGN headers, and
    emits signals when that state changes. Views observe these signals to
    update the UI automatically.
    """

    game_loaded = pyqtSignal()  # Emitted when a new game replaces the previous one
    cursor_changed = pyqtSignal(int)  # Emitted when the cursor moves (0 = start position)
    annotation_changed = pyqtSignal(str)  # Emitted with the annotation text to show ("" = none)
    analyzing_changed = pyqtSignal(bool)  # Emitted when an engine query starts or ends
    engine_busy_changed = pyqtSignal(bool)  # Emitted when the engine starts or stops working on any query
    error_reported = pyqtSignal(str)  # Emitted with a user-visible error message

    def __init__(self) -> None:
        """Initialize the session with no game loaded."""
        super().__init__()
        self._moves: Tuple[str, ...] = ()
        self._headers = GameHeaders()
        self._starting_fen = STARTING_FEN
        self._cursor = 0
        self._position_fen = STARTING_FEN
        self._annotations: Dict[int, Annotation] = {}  # move index -> annotation
        self._annotation_text = ""
        self._is_analyzing = False
        self._engine_busy = False
        self._last_error = ""

    @property
    def moves(self) -> Tuple[str, ...]:
        return self._moves

    @property
    def total_plies(self) -> int:
        return len(self._moves)

    @property
    def has_game(self) -> bool:
        return bool(self._moves)

    @property
    def headers(self) -> GameHeaders:
        return self._headers

    @property
    def starting_fen(self) -> str:
        return self._starting_fen

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def position_fen(self) -> str:
        """FEN of the position at the cursor."""
        return self._position_fen

    @property
    def annotation_text(self) -> str:
        return self._annotation_text

    @property
    def is_analyzing(self) -> bool:
        return self._is_analyzing

    @property
    def engine_busy(self) -> bool:
        """True while a query is outstanding, including one abandoned by navigation."""
        return self._engine_busy

    @property
    def state(self) -> NavigationState:
        if self._cursor == 0:
            return NavigationState.AT_START
        if self._cursor >= len(self._moves):
            return NavigationState.AT_END
        return NavigationState.MID_GAME

    def can_go_back(self) -> bool:
        return self._cursor > 0

    def can_go_forward(self) -> bool:
        return self._cursor < len(self._moves)

    def can_request_next(self) -> bool:
        """Check if a forward step would be accepted (not at the end, engine idle)."""
        return self.can_go_forward() and not self._engine_busy

    def set_game(self, game: ParsedGame) -> None:
        """Replace the loaded game and return to the starting position.

        Args:
            game: Parsed game; moves, headers and starting position replace
                  the previous game entirely.
        """
        self._moves = tuple(game.moves)
        self._headers = game.headers
        self._starting_fen = game.starting_fen
        self._annotations = {}
        self._cursor = 0
        self._position_fen = game.starting_fen
        self._annotation_text = ""
        self._set_analyzing(False)
        self.game_loaded.emit()
        self.cursor_changed.emit(0)
        self.annotation_changed.emit("")

    def set_cursor(self, ply: int, position_fen: str) -> None:
        """Move the cursor.

        Args:
            ply: New cursor (0..total_plies).
            position_fen: Position after `ply` moves.
        """
        if ply < 0 or ply > len(self._moves):
            raise ValueError(f"Cursor {ply} out of range 0..{len(self._moves)}")
        self._cursor = ply
        self._position_fen = position_fen
        self.cursor_changed.emit(ply)

    def set_annotation_text(self, text: str) -> None:
        """Set the annotation text shown for the current step ("" clears it)."""
        if self._annotation_text != text:
            self._annotation_text = text
            self.annotation_changed.emit(text)

    def record_annotation(self, annotation: Annotation) -> None:
        """Cache an annotation for its move and show it as the current annotation."""
        self._annotations[annotation.ply - 1] = annotation
        self.set_annotation_text(annotation.text)

    def annotation_for(self, move_index: int) -> Optional[Annotation]:
        return self._annotations.get(move_index)

    def clear_annotations(self) -> None:
        """Drop every cached annotation and the current annotation text."""
        self._annotations = {}
        self.set_annotation_text("")

    def set_analyzing(self, analyzing: bool) -> None:
        self._set_analyzing(analyzing)

    def _set_analyzing(self, analyzing: bool) -> None:
        if self._is_analyzing != analyzing:
            self._is_analyzing = analyzing
            self.analyzing_changed.emit(analyzing)

    @property
    def last_error(self) -> str:
        return self._last_error

    def set_engine_busy(self, busy: bool) -> None:
        if self._engine_busy != busy:
            self._engine_busy = busy
            self.engine_busy_changed.emit(busy)

    def report_error(self, message: str) -> None:
        self._last_error = message
        self.error_reported.emit(message)

    def result_announcement(self) -> Optional[str]:
        """Get the result line shown once the last move has been played.

        Returns:
            "{White} wins", "{Black} wins", "Draw", the raw result text for
            other values, or None before the end or without a result.
        """
        if not self._moves or self._cursor != len(self._moves):
            return None
        result = self._headers.result
        if not result:
            return None
        if result == "1-0":
            return f"{self._headers.white} wins"
        if result == "0-1":
            return f"{self._headers.black} wins"
        if result == "1/2-1/2":
            return "Draw"
        return result

    def move_list_entries(self) -> List[MoveListEntry]:
        """Build the rows of the move list.

        Returns:
            One entry per move: "1." for White's moves, "1..." for Black's.
        """
        entries = []
        for index, san in enumerate(self._moves):
            number = index // 2 + 1
            annotation = self._annotations.get(index)
            entries.append(MoveListEntry(
                index=index,
                number_label=f"{number}{'.' if index % 2 == 0 else '...'}",
                san=san,
                is_active=self._cursor == index + 1,
                annotation_tag=annotation.tag if annotation else None,
            ))
        return entries
