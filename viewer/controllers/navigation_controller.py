"""Navigation controller for stepping through a game and annotating moves."""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from viewer.models.annotation_model import Annotation, AnnotationKind, ANALYZING_TEXT
from viewer.models.game_session_model import GameSessionModel
from viewer.services.book_move_service import BookMoveService
from viewer.services.engine_client import EngineClient, EngineQuery
from viewer.services.errors import (
    PgnParseError, IllegalMoveError, EngineBusyError, EngineUnavailableError,
)
from viewer.services.logging_service import LoggingService
from viewer.services.rules_service import RulesService


DEFAULT_ANALYSIS_DEPTH = 12


@dataclass(frozen=True)
class PendingStep:
    """A forward step waiting for the engine's verdict."""
    generation: int
    move_index: int
    played_move: str
    fen_before: str


class NavigationController:
    """Controller driving move-by-move traversal and annotation.

    Backward steps, jumps, resets and loads are synchronous. A forward step
    outside the opening book issues one engine query and completes when the
    engine client reports back. Every navigation action bumps a generation
    counter; engine results tagged with an older generation are discarded.
    """

    def __init__(self, config: Dict[str, Any], session_model: GameSessionModel,
                 engine_client: EngineClient, rules_service: Optional[RulesService] = None,
                 book_move_service: Optional[BookMoveService] = None) -> None:
        """Initialize the navigation controller.

        Args:
            config: Configuration dictionary.
            session_model: GameSessionModel to read and update.
            engine_client: Engine client used for move verdicts.
            rules_service: Rules adapter (defaults to RulesService()).
            book_move_service: Book move check (defaults to BookMoveService()).
        """
        self.config = config
        self.session_model = session_model
        self.engine_client = engine_client
        self.rules_service = rules_service or RulesService()
        self.book_move_service = book_move_service or BookMoveService()
        self.analysis_depth = config.get('engine', {}).get('depth', DEFAULT_ANALYSIS_DEPTH)

        self._generation = 0
        self._pending_step: Optional[PendingStep] = None

        self.engine_client.query_finished.connect(self._on_query_finished)
        self.engine_client.query_failed.connect(self._on_query_failed)

    def is_step_pending(self) -> bool:
        """Check if a forward step is waiting for the engine."""
        return self._pending_step is not None

    def _next_generation(self) -> int:
        self._generation += 1
        if self._pending_step is not None:
            LoggingService.get_instance().debug(
                f"Abandoning pending analysis of move {self._pending_step.move_index + 1}"
            )
            self._pending_step = None
            self.session_model.set_analyzing(False)
        return self._generation

    def _position_at(self, ply: int) -> str:
        model = self.session_model
        return self.rules_service.position_after_prefix(model.moves, ply, model.starting_fen)

    def load_game(self, pgn_text: str) -> bool:
        """Parse PGN text and make it the current game.

        Args:
            pgn_text: PGN text pasted or read from a file.

        Returns:
            True if the game was loaded, False if the text was rejected
            (the previous game is left untouched).
        """
        logging_service = LoggingService.get_instance()
        try:
            parsed = self.rules_service.parse_pgn(pgn_text)
        except PgnParseError as e:
            logging_service.warning(f"PGN rejected: {e}")
            self.session_model.report_error(str(e))
            return False

        self._next_generation()
        self.session_model.set_game(parsed)
        logging_service.info(
            f"Game loaded: {parsed.headers.white} vs {parsed.headers.black}, {len(parsed.moves)} plies"
        )
        return True

    def reset(self) -> None:
        """Return to the starting position, keeping the loaded game."""
        self._next_generation()
        model = self.session_model
        model.clear_annotations()
        model.set_cursor(0, model.starting_fen)

    def navigate_to_previous_move(self) -> bool:
        """Step one move back.

        Returns:
            True if the cursor moved, False at the starting position.
        """
        model = self.session_model
        if not model.can_go_back():
            return False

        self._next_generation()
        new_ply = model.cursor - 1
        model.set_cursor(new_ply, self._position_at(new_ply))
        model.set_annotation_text("")
        return True

    def jump_to_move(self, ply: int) -> bool:
        """Jump directly to a ply without analyzing skipped moves.

        Args:
            ply: Target cursor (0 = starting position).

        Returns:
            True if the cursor was set, False if ply is out of range.
        """
        model = self.session_model
        if ply < 0 or ply > model.total_plies:
            return False

        self._next_generation()
        model.set_cursor(ply, self._position_at(ply))
        model.set_annotation_text("")
        return True

    def navigate_to_next_move(self) -> bool:
        """Play the next move and annotate it.

        Book moves are annotated immediately. Any other move is sent to the
        engine and the step completes when the engine answers.

        Returns:
            True if the step completed or was started, False if already at the
            end or while a previous step is still being analyzed.
        """
        model = self.session_model
        if not model.can_go_forward() or self._pending_step is not None:
            return False
        if not model.can_request_next() or self.engine_client.is_busy():
            # A query abandoned by earlier navigation has not returned yet
            LoggingService.get_instance().debug("Next move refused: engine still busy")
            return False

        generation = self._next_generation()
        move_index = model.cursor
        played_move = model.moves[move_index]

        if self.book_move_service.is_book_move(played_move, move_index):
            self._complete_step(move_index, Annotation(move_index + 1, played_move, AnnotationKind.BOOK_MOVE))
            return True

        fen_before = model.position_fen
        self._pending_step = PendingStep(generation, move_index, played_move, fen_before)
        model.set_analyzing(True)
        model.set_annotation_text(ANALYZING_TEXT)
        model.set_engine_busy(True)
        try:
            self.engine_client.evaluate(fen_before, self.analysis_depth, generation)
        except EngineBusyError as e:
            LoggingService.get_instance().warning(str(e))
            self._pending_step = None
            model.set_analyzing(False)
            model.set_engine_busy(self.engine_client.is_busy())
            model.set_annotation_text("")
            return False
        return True

    def _on_query_finished(self, query: EngineQuery) -> None:
        self.session_model.set_engine_busy(self.engine_client.is_busy())
        step = self._claim_step(query)
        if step is None:
            return

        result = query.result()
        best_move = result.best_move if result else ""
        try:
            best_san = self.rules_service.apply_move(step.fen_before, best_move).san
        except IllegalMoveError as e:
            LoggingService.get_instance().warning(f"Engine move could not be converted: {e}")
            best_san = best_move

        if best_san == step.played_move:
            annotation = Annotation(step.move_index + 1, step.played_move, AnnotationKind.GREAT_MOVE)
        else:
            annotation = Annotation(step.move_index + 1, step.played_move, AnnotationKind.SUGGEST_MOVE, best_san)
        LoggingService.get_instance().debug(
            f"Move {step.move_index + 1} {step.played_move}: engine best {best_move} "
            f"(score={result.score if result else None}) -> {annotation.kind.value}"
        )
        self._complete_step(step.move_index, annotation)

    def _on_query_failed(self, query: EngineQuery) -> None:
        self.session_model.set_engine_busy(self.engine_client.is_busy())
        step = self._claim_step(query)
        if step is None:
            return

        error = query.error()
        LoggingService.get_instance().error(f"Analysis of move {step.move_index + 1} failed: {error}")
        # The step is aborted; the cursor never moved
        self.session_model.set_annotation_text("")
        if isinstance(error, EngineUnavailableError):
            self.session_model.report_error(f"Engine unavailable: {error}")
        else:
            self.session_model.report_error(f"Engine analysis failed: {error}")

    def _claim_step(self, query: EngineQuery) -> Optional[PendingStep]:
        """Match an engine answer to the pending step, discarding stale answers."""
        step = self._pending_step
        if step is None or query.generation != step.generation:
            LoggingService.get_instance().debug(
                f"Discarding stale engine result: generation={query.generation}, current={self._generation}"
            )
            return None
        self._pending_step = None
        self.session_model.set_analyzing(False)
        return step

    def _complete_step(self, move_index: int, annotation: Annotation) -> None:
        new_ply = move_index + 1
        self.session_model.set_cursor(new_ply, self._position_at(new_ply))
        self.session_model.record_annotation(annotation)

    def export_pgn_text(self) -> str:
        """Get the loaded moves as PGN movetext for saving (no headers or result)."""
        return self.rules_service.export_movetext(self.session_model.moves)

    def get_position_fen(self) -> str:
        """Get the FEN of the current position (for copying to the clipboard)."""
        return self.session_model.position_fen
