"""Unit tests for BookMoveService and move annotations."""

import unittest

from viewer.models.annotation_model import Annotation, AnnotationKind
from viewer.services.book_move_service import BookMoveService, BOOK_MOVES, BOOK_PLY_LIMIT


class TestBookMoveService(unittest.TestCase):
    """Test the opening book check."""

    def setUp(self):
        self.service = BookMoveService()

    def test_every_book_move_is_recognized_early(self):
        for san in BOOK_MOVES:
            with self.subTest(san=san):
                self.assertTrue(self.service.is_book_move(san, 0))

    def test_non_book_moves(self):
        for san in ("a3", "h4", "Nh3", "f5", "e5+", "E4"):
            with self.subTest(san=san):
                self.assertFalse(self.service.is_book_move(san, 0))

    def test_ply_limit_is_exclusive(self):
        self.assertTrue(self.service.is_book_move("Nf3", BOOK_PLY_LIMIT - 1))
        self.assertFalse(self.service.is_book_move("Nf3", BOOK_PLY_LIMIT))
        self.assertFalse(self.service.is_book_move("e4", 40))

    def test_custom_book(self):
        service = BookMoveService(frozenset({"b3"}), ply_limit=2)
        self.assertTrue(service.is_book_move("b3", 1))
        self.assertFalse(service.is_book_move("b3", 2))
        self.assertFalse(service.is_book_move("e4", 0))


class TestAnnotation(unittest.TestCase):
    """Test annotation tags and display text."""

    def test_book_move_text(self):
        annotation = Annotation(1, "e4", AnnotationKind.BOOK_MOVE)
        self.assertEqual(annotation.tag, "📚 Book move")
        self.assertEqual(annotation.text, "1. e4 → 📚 Book move")

    def test_great_move_text(self):
        annotation = Annotation(13, "Bb5", AnnotationKind.GREAT_MOVE)
        self.assertEqual(annotation.text, "13. Bb5 → ✅ Great move")

    def test_suggest_move_text(self):
        annotation = Annotation(12, "h6", AnnotationKind.SUGGEST_MOVE, "O-O")
        self.assertEqual(annotation.tag, "↪️ Suggest O-O")
        self.assertEqual(annotation.text, "12. h6 → ↪️ Suggest O-O")


if __name__ == '__main__':
    unittest.main()
