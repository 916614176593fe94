"""Game info view: event details, player names and the final result."""

from typing import Dict, Any

from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import QWidget, QVBoxLayout, QLabel

from viewer.models.game_session_model import GameSessionModel


class GameInfoView(QWidget):
    """Header view showing event details, both players and the result announcement."""

    def __init__(self, config: Dict[str, Any], session_model: GameSessionModel) -> None:
        """Initialize the game info view.

        Args:
            config: Configuration dictionary.
            session_model: Session model providing headers and cursor.
        """
        super().__init__()
        self.config = config
        self.session_model = session_model

        layout = QVBoxLayout(self)
        self.event_label = QLabel()
        self.event_label.setWordWrap(True)
        self.players_label = QLabel()
        self.players_label.setFont(QFont(self.font().family(), 14, QFont.Weight.DemiBold))
        self.result_label = QLabel()
        self.result_label.setFont(QFont(self.font().family(), 13, QFont.Weight.Bold))
        layout.addWidget(self.event_label)
        layout.addWidget(self.players_label)
        layout.addWidget(self.result_label)

        self.session_model.game_loaded.connect(self._refresh)
        self.session_model.cursor_changed.connect(self._refresh)
        self._refresh()

    def _refresh(self, *_args) -> None:
        headers = self.session_model.headers

        details = []
        if headers.site:
            details.append(headers.site)
        if headers.date:
            details.append(headers.date)
        if headers.round:
            details.append(f"Round {headers.round}")
        if headers.event or details:
            self.event_label.setText(" · ".join([headers.event or "Event", *details]))
            self.event_label.show()
        else:
            self.event_label.hide()

        self.players_label.setText(f"♔ {headers.white}  vs  ♚ {headers.black}")

        announcement = self.session_model.result_announcement()
        if announcement:
            self.result_label.setText(f"Result: {announcement}")
            self.result_label.show()
        else:
            self.result_label.hide()
