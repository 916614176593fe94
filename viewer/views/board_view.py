"""Text rendering of the board position."""

from typing import Dict, Any

import chess
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import QLabel, QVBoxLayout, QWidget

from viewer.models.game_session_model import GameSessionModel


class BoardView(QWidget):
    """Board view showing the position at the cursor with Unicode pieces."""

    def __init__(self, config: Dict[str, Any], session_model: GameSessionModel) -> None:
        """Initialize the board view.

        Args:
            config: Configuration dictionary.
            session_model: Session model whose position is shown.
        """
        super().__init__()
        self.config = config
        self.session_model = session_model
        self._flipped = False

        layout = QVBoxLayout(self)
        board_config = config.get('ui', {}).get('board', {})
        self.board_label = QLabel()
        self.board_label.setFont(QFont(board_config.get('font_family', 'DejaVu Sans Mono'),
                                       board_config.get('font_size', 22)))
        self.board_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.board_label)

        self.session_model.cursor_changed.connect(self._refresh)
        self.session_model.game_loaded.connect(self._refresh)
        self._refresh()

    def set_flipped(self, flipped: bool) -> None:
        self._flipped = flipped
        self._refresh()

    def _refresh(self, *_args) -> None:
        board = chess.Board(self.session_model.position_fen)
        self.board_label.setText(board.unicode(borders=True, empty_square="·", orientation=not self._flipped))
