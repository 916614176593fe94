"""Top-level window orchestration."""

from pathlib import Path
from typing import Dict, Any

from PyQt6.QtGui import QAction, QKeySequence, QCloseEvent
from PyQt6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QApplication,
    QFileDialog,
    QLabel,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
)

from viewer.controllers.app_controller import AppController
from viewer.services.logging_service import LoggingService
from viewer.views.board_view import BoardView
from viewer.views.game_info_view import GameInfoView
from viewer.views.moves_list_view import MovesListView


class MainWindow(QMainWindow):
    """Main window: PGN input and controls on the left, board and annotation on the right."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize the main window.

        Args:
            config: Configuration dictionary loaded from ConfigLoader.
        """
        super().__init__()
        self.config = config
        self.controller = AppController(config)
        self.session_model = self.controller.get_session_model()
        self.navigation_controller = self.controller.get_navigation_controller()

        self._setup_window()
        self._setup_menu_bar()
        self._setup_ui()
        self._connect_signals()
        self._update_controls()

        LoggingService.get_instance().info("Application initialized: config loaded, services ready")

    def _setup_window(self) -> None:
        """Setup window properties."""
        self.setWindowTitle("PGN Viewer")
        window_config = self.config.get('ui', {}).get('window', {})
        self.setGeometry(window_config.get('x', 100), window_config.get('y', 100),
                         window_config.get('width', 1000), window_config.get('height', 700))

    def _setup_menu_bar(self) -> None:
        """Setup the File and Board menus."""
        file_menu = self.menuBar().addMenu("&File")

        open_action = QAction("&Open PGN...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._open_pgn_file)
        file_menu.addAction(open_action)

        save_action = QAction("&Download PGN...", self)
        save_action.setShortcut(QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self._download_pgn)
        file_menu.addAction(save_action)

        file_menu.addSeparator()
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        board_menu = self.menuBar().addMenu("&Board")
        self.flip_action = QAction("&Flip Board", self)
        self.flip_action.setCheckable(True)
        self.flip_action.toggled.connect(lambda checked: self.board_view.set_flipped(checked))
        board_menu.addAction(self.flip_action)

        copy_fen_action = QAction("&Copy FEN", self)
        copy_fen_action.setShortcut(QKeySequence("Ctrl+Shift+C"))
        copy_fen_action.triggered.connect(self._copy_fen)
        board_menu.addAction(copy_fen_action)

    def _setup_ui(self) -> None:
        """Build the widgets."""
        central = QWidget()
        main_layout = QHBoxLayout(central)

        left_layout = QVBoxLayout()
        self.pgn_input = QPlainTextEdit()
        self.pgn_input.setPlaceholderText("Paste your PGN here...")
        self.pgn_input.setMaximumHeight(160)
        left_layout.addWidget(self.pgn_input)

        self.load_button = QPushButton("Load Game")
        self.load_button.clicked.connect(self._load_from_input)
        left_layout.addWidget(self.load_button)

        nav_layout = QHBoxLayout()
        self.prev_button = QPushButton("← Prev")
        self.prev_button.setShortcut(QKeySequence("Left"))
        self.prev_button.clicked.connect(self.navigation_controller.navigate_to_previous_move)
        self.move_label = QLabel()
        self.next_button = QPushButton("Next →")
        self.next_button.setShortcut(QKeySequence("Right"))
        self.next_button.clicked.connect(self.navigation_controller.navigate_to_next_move)
        nav_layout.addWidget(self.prev_button)
        nav_layout.addWidget(self.move_label)
        nav_layout.addWidget(self.next_button)
        left_layout.addLayout(nav_layout)

        actions_layout = QHBoxLayout()
        self.reset_button = QPushButton("Reset Board")
        self.reset_button.clicked.connect(self.navigation_controller.reset)
        self.download_button = QPushButton("Download PGN")
        self.download_button.clicked.connect(self._download_pgn)
        self.copy_fen_button = QPushButton("Copy FEN")
        self.copy_fen_button.clicked.connect(self._copy_fen)
        actions_layout.addWidget(self.reset_button)
        actions_layout.addWidget(self.download_button)
        actions_layout.addWidget(self.copy_fen_button)
        left_layout.addLayout(actions_layout)

        self.moves_list_view = MovesListView(self.config, self.session_model, self.navigation_controller)
        left_layout.addWidget(self.moves_list_view, 1)

        right_layout = QVBoxLayout()
        self.game_info_view = GameInfoView(self.config, self.session_model)
        self.board_view = BoardView(self.config, self.session_model)
        self.annotation_label = QLabel()
        right_layout.addWidget(self.game_info_view)
        right_layout.addWidget(self.board_view, 1)
        right_layout.addWidget(self.annotation_label)

        main_layout.addLayout(left_layout, 1)
        main_layout.addLayout(right_layout, 2)
        self.setCentralWidget(central)

    def _connect_signals(self) -> None:
        self.session_model.game_loaded.connect(self._update_controls)
        self.session_model.cursor_changed.connect(self._update_controls)
        self.session_model.analyzing_changed.connect(self._update_controls)
        self.session_model.engine_busy_changed.connect(self._update_controls)
        self.session_model.annotation_changed.connect(self.annotation_label.setText)
        self.session_model.error_reported.connect(self._show_error)

    def _update_controls(self, *_args) -> None:
        """Enable or disable navigation buttons for the current state."""
        model = self.session_model
        self.prev_button.setEnabled(model.can_go_back())
        self.next_button.setEnabled(model.can_request_next() and not model.is_analyzing)
        self.reset_button.setEnabled(model.has_game)
        self.download_button.setEnabled(model.has_game)
        self.move_label.setText(f"Move {model.cursor} / {model.total_plies}")

    def _load_from_input(self) -> None:
        self.navigation_controller.load_game(self.pgn_input.toPlainText())

    def _open_pgn_file(self) -> None:
        """Read a .pgn file into the input box and load it."""
        file_path, _ = QFileDialog.getOpenFileName(self, "Open PGN", "", "PGN Files (*.pgn);;All Files (*)")
        if not file_path:
            return
        try:
            pgn_text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            LoggingService.get_instance().error(f"Failed to read PGN file: {file_path}", exc_info=e)
            self._show_error(f"Could not read {file_path}: {e}")
            return
        self.pgn_input.setPlainText(pgn_text)
        self.navigation_controller.load_game(pgn_text)

    def _download_pgn(self) -> None:
        """Save the move list as game.pgn (or a name chosen by the user)."""
        if not self.session_model.has_game:
            return
        file_path, _ = QFileDialog.getSaveFileName(self, "Download PGN", "game.pgn", "PGN Files (*.pgn)")
        if not file_path:
            return
        try:
            Path(file_path).write_text(self.navigation_controller.export_pgn_text(), encoding="utf-8")
        except OSError as e:
            LoggingService.get_instance().error(f"Failed to write PGN file: {file_path}", exc_info=e)
            self._show_error(f"Could not save {file_path}: {e}")
            return
        LoggingService.get_instance().info(f"PGN exported: {file_path}")

    def _copy_fen(self) -> None:
        fen = self.navigation_controller.get_position_fen()
        QApplication.clipboard().setText(fen)
        self.statusBar().showMessage(f"FEN copied to clipboard: {fen}", 5000)

    def _show_error(self, message: str) -> None:
        QMessageBox.warning(self, "PGN Viewer", message)

    def closeEvent(self, event: QCloseEvent) -> None:
        """Handle window close event.

        Args:
            event: Close event.
        """
        LoggingService.get_instance().info("Application closing: cleaning up")
        self.controller.shutdown()
        event.accept()
