"""Move list view for the loaded game."""

from typing import Dict, Any

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QListWidget, QListWidgetItem

from viewer.controllers.navigation_controller import NavigationController
from viewer.models.game_session_model import GameSessionModel


class MovesListView(QListWidget):
    """Vertical list of moves; clicking a move jumps to the position after it."""

    def __init__(self, config: Dict[str, Any], session_model: GameSessionModel,
                 navigation_controller: NavigationController) -> None:
        """Initialize the moves list view.

        Args:
            config: Configuration dictionary.
            session_model: Session model providing the move list.
            navigation_controller: Controller receiving jump requests.
        """
        super().__init__()
        self.config = config
        self.session_model = session_model
        self.navigation_controller = navigation_controller

        self.itemClicked.connect(self._on_item_clicked)
        self.session_model.game_loaded.connect(self._refresh)
        self.session_model.cursor_changed.connect(self._refresh)
        self.session_model.annotation_changed.connect(self._refresh)

    def _refresh(self, *_args) -> None:
        entries = self.session_model.move_list_entries()
        # Rebuild only when the game changed; items must survive a click that moves the cursor
        if self.count() != len(entries):
            self.clear()
            for entry in entries:
                item = QListWidgetItem()
                item.setData(Qt.ItemDataRole.UserRole, entry.index)
                self.addItem(item)

        self.clearSelection()
        for entry in entries:
            item = self.item(entry.index)
            text = f"{entry.number_label} {entry.san}"
            if entry.annotation_tag:
                text = f"{text}    {entry.annotation_tag}"
            item.setText(text)
            if entry.is_active:
                self.setCurrentItem(item)
                self.scrollToItem(item)

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        self.navigation_controller.jump_to_move(item.data(Qt.ItemDataRole.UserRole) + 1)
