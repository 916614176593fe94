"""Unit tests for GameSessionModel."""

import unittest

from viewer.models.annotation_model import Annotation, AnnotationKind
from viewer.models.game_session_model import GameSessionModel, NavigationState
from viewer.services.rules_service import GameHeaders, ParsedGame, RulesService, STARTING_FEN


def _parsed_game(moves=("e4", "e5", "Nf3"), **headers):
    return ParsedGame(moves=tuple(moves), headers=GameHeaders(**headers))


class TestGameSessionModel(unittest.TestCase):
    """Test session state, signals and derived values."""

    def setUp(self):
        self.model = GameSessionModel()
        self.cursor_events = []
        self.annotation_events = []
        self.model.cursor_changed.connect(self.cursor_events.append)
        self.model.annotation_changed.connect(self.annotation_events.append)

    def _go_to(self, ply):
        self.model.set_cursor(ply, RulesService.position_after_prefix(self.model.moves, ply))

    def test_initial_state(self):
        self.assertFalse(self.model.has_game)
        self.assertEqual(self.model.cursor, 0)
        self.assertEqual(self.model.position_fen, STARTING_FEN)
        self.assertFalse(self.model.can_go_back())
        self.assertFalse(self.model.can_go_forward())
        self.assertIsNone(self.model.result_announcement())

    def test_set_game_resets_cursor_and_annotations(self):
        self.model.set_game(_parsed_game())
        self._go_to(2)
        self.model.record_annotation(Annotation(2, "e5", AnnotationKind.BOOK_MOVE))

        self.model.set_game(_parsed_game(("d4", "d5")))
        self.assertEqual(self.model.moves, ("d4", "d5"))
        self.assertEqual(self.model.cursor, 0)
        self.assertEqual(self.model.position_fen, STARTING_FEN)
        self.assertEqual(self.model.annotation_text, "")
        self.assertIsNone(self.model.annotation_for(1))
        self.assertEqual(self.cursor_events[-1], 0)

    def test_navigation_state(self):
        self.model.set_game(_parsed_game())
        self.assertEqual(self.model.state, NavigationState.AT_START)
        self._go_to(1)
        self.assertEqual(self.model.state, NavigationState.MID_GAME)
        self.assertTrue(self.model.can_go_back())
        self.assertTrue(self.model.can_go_forward())
        self._go_to(3)
        self.assertEqual(self.model.state, NavigationState.AT_END)
        self.assertFalse(self.model.can_go_forward())

    def test_set_cursor_out_of_range(self):
        self.model.set_game(_parsed_game())
        for ply in (-1, 4):
            with self.subTest(ply=ply):
                with self.assertRaises(ValueError):
                    self.model.set_cursor(ply, STARTING_FEN)
        self.assertEqual(self.model.cursor, 0)

    def test_record_annotation_sets_text(self):
        self.model.set_game(_parsed_game())
        annotation = Annotation(1, "e4", AnnotationKind.BOOK_MOVE)
        self.model.record_annotation(annotation)
        self.assertEqual(self.model.annotation_text, "1. e4 → 📚 Book move")
        self.assertEqual(self.model.annotation_for(0), annotation)
        self.assertEqual(self.annotation_events[-1], "1. e4 → 📚 Book move")

    def test_annotation_text_signal_only_on_change(self):
        self.model.set_annotation_text("Analyzing...")
        self.model.set_annotation_text("Analyzing...")
        self.assertEqual(self.annotation_events, ["Analyzing..."])

    def test_analyzing_signal(self):
        events = []
        self.model.analyzing_changed.connect(events.append)
        self.model.set_analyzing(True)
        self.model.set_analyzing(True)
        self.model.set_analyzing(False)
        self.assertEqual(events, [True, False])

    def test_engine_busy_blocks_next_request(self):
        events = []
        self.model.engine_busy_changed.connect(events.append)
        self.model.set_game(_parsed_game())
        self.assertTrue(self.model.can_request_next())

        self.model.set_engine_busy(True)
        self.model.set_engine_busy(True)
        self.assertTrue(self.model.can_go_forward())
        self.assertFalse(self.model.can_request_next())

        self.model.set_engine_busy(False)
        self.assertTrue(self.model.can_request_next())
        self._go_to(3)
        self.assertFalse(self.model.can_request_next())
        self.assertEqual(events, [True, False])

    def test_result_announcement_only_at_end(self):
        self.model.set_game(_parsed_game(white="Carlsen", black="Nepo", result="1-0"))
        self._go_to(2)
        self.assertIsNone(self.model.result_announcement())
        self._go_to(3)
        self.assertEqual(self.model.result_announcement(), "Carlsen wins")

    def test_result_announcement_values(self):
        cases = [
            ("1-0", "Carlsen wins"),
            ("0-1", "Nepo wins"),
            ("1/2-1/2", "Draw"),
            ("", None),
        ]
        for result, expected in cases:
            with self.subTest(result=result):
                self.model.set_game(_parsed_game(("e4",), white="Carlsen", black="Nepo", result=result))
                self._go_to(1)
                self.assertEqual(self.model.result_announcement(), expected)

    def test_result_announcement_default_names(self):
        self.model.set_game(_parsed_game(("e4",), result="0-1"))
        self._go_to(1)
        self.assertEqual(self.model.result_announcement(), "Black wins")

    def test_move_list_entries(self):
        self.model.set_game(_parsed_game())
        self._go_to(2)
        self.model.record_annotation(Annotation(2, "e5", AnnotationKind.GREAT_MOVE))

        entries = self.model.move_list_entries()
        self.assertEqual([e.number_label for e in entries], ["1.", "1...", "2."])
        self.assertEqual([e.san for e in entries], ["e4", "e5", "Nf3"])
        self.assertEqual([e.is_active for e in entries], [False, True, False])
        self.assertEqual([e.annotation_tag for e in entries], [None, "✅ Great move", None])

    def test_clear_annotations(self):
        self.model.set_game(_parsed_game())
        self.model.record_annotation(Annotation(1, "e4", AnnotationKind.BOOK_MOVE))
        self.model.clear_annotations()
        self.assertIsNone(self.model.annotation_for(0))
        self.assertEqual(self.model.annotation_text, "")

    def test_report_error(self):
        errors = []
        self.model.error_reported.connect(errors.append)
        self.model.report_error("Invalid PGN")
        self.assertEqual(errors, ["Invalid PGN"])
        self.assertEqual(self.model.last_error, "Invalid PGN")


if __name__ == '__main__':
    unittest.main()
