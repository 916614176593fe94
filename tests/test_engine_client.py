"""Unit tests for EngineQuery parsing and the EngineClient worker.

The client tests run the real worker thread against tests/fixtures/fake_uci_engine.py,
started with the current interpreter.
"""

import sys
import time
import unittest
from pathlib import Path

from PyQt6.QtCore import QCoreApplication

from viewer.services.engine_client import EngineClient, EngineQuery, EngineResult, MATE_SCORE
from viewer.services.errors import EngineBusyError, EngineUnavailableError
from viewer.services.rules_service import STARTING_FEN


FAKE_ENGINE = Path(__file__).parent / "fixtures" / "fake_uci_engine.py"


class TestEngineQuery(unittest.TestCase):
    """Test parsing of engine output lines."""

    def setUp(self):
        self.query = EngineQuery(STARTING_FEN, 12, generation=3)

    def test_centipawn_score(self):
        self.assertFalse(self.query.feed_line("info depth 10 seldepth 14 score cp 35 nodes 1000 pv e2e4 e7e5"))
        self.assertEqual(self.query.last_score, 0.35)

    def test_mate_scores(self):
        self.query.feed_line("info depth 12 score mate 3 pv d1h5")
        self.assertEqual(self.query.last_score, MATE_SCORE)
        self.query.feed_line("info depth 12 score mate -2 pv e1e2")
        self.assertEqual(self.query.last_score, -MATE_SCORE)

    def test_last_score_wins(self):
        self.query.feed_line("info depth 1 score cp 100")
        self.query.feed_line("info depth 2 score cp -40")
        self.query.feed_line("bestmove e2e4")
        self.assertEqual(self.query.result(), EngineResult(best_move="e2e4", score=-0.4))

    def test_bestmove_with_ponder(self):
        self.assertTrue(self.query.feed_line("bestmove g1f3 ponder d7d5"))
        self.assertTrue(self.query.done())
        self.assertEqual(self.query.result().best_move, "g1f3")
        self.assertIsNone(self.query.result().score)
        self.assertIsNone(self.query.error())

    def test_ignored_lines(self):
        for line in ("", "info string NNUE enabled", "info depth 3 score cp", "info depth 3 score cp abc", "readyok"):
            with self.subTest(line=line):
                self.assertFalse(self.query.feed_line(line))
        self.assertIsNone(self.query.last_score)
        self.assertFalse(self.query.done())

    def test_bestmove_without_move(self):
        self.query.feed_line("bestmove")
        self.assertEqual(self.query.result().best_move, "(none)")

    def test_fail(self):
        error = EngineUnavailableError("gone")
        self.query.fail(error)
        self.assertIs(self.query.error(), error)
        self.assertIsNone(self.query.result())

    def test_fail_after_result_is_ignored(self):
        self.query.feed_line("bestmove e2e4")
        self.query.fail(EngineUnavailableError("late"))
        self.assertEqual(self.query.result().best_move, "e2e4")


class TestEngineClient(unittest.TestCase):
    """Test the client against a fake engine process."""

    def make_client(self, *engine_args, query_timeout=10.0, init_timeout=5.0):
        client = EngineClient(Path(sys.executable), [str(FAKE_ENGINE), *engine_args],
                              init_timeout=init_timeout, query_timeout=query_timeout)
        self.addCleanup(client.close)
        return client

    @staticmethod
    def process_events_until(predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while not predicate() and time.monotonic() < deadline:
            QCoreApplication.processEvents()
            time.sleep(0.01)
        return predicate()

    def test_best_move_and_score(self):
        client = self.make_client("--bestmove", "g1f3", "--score", "cp -15")
        query = client.evaluate(STARTING_FEN, 12, generation=7)
        result = query.future.result(timeout=10)
        self.assertEqual(result, EngineResult(best_move="g1f3", score=-0.15))
        self.assertEqual(query.generation, 7)
        self.assertFalse(client.is_busy())

    def test_mate_score(self):
        client = self.make_client("--score", "mate 2")
        result = client.evaluate(STARTING_FEN, 12).future.result(timeout=10)
        self.assertEqual(result.score, MATE_SCORE)

    def test_finished_signal_delivered(self):
        client = self.make_client()
        finished = []
        client.query_finished.connect(finished.append)
        query = client.evaluate(STARTING_FEN, 12)
        self.assertTrue(self.process_events_until(lambda: finished))
        self.assertIs(finished[0], query)

    def test_sequential_queries_reuse_engine(self):
        client = self.make_client()
        first = client.evaluate(STARTING_FEN, 12)
        first.future.result(timeout=10)
        worker = client._worker
        second = client.evaluate(STARTING_FEN, 8)
        self.assertEqual(second.future.result(timeout=10).best_move, "e2e4")
        self.assertIs(client._worker, worker)

    def test_second_query_while_pending_is_rejected(self):
        client = self.make_client("--stall")
        client.evaluate(STARTING_FEN, 12)
        self.assertTrue(client.is_busy())
        with self.assertRaises(EngineBusyError):
            client.evaluate(STARTING_FEN, 12)

    def test_invalid_arguments(self):
        client = self.make_client()
        with self.assertRaises(ValueError):
            client.evaluate(STARTING_FEN, 0)
        with self.assertRaises(ValueError):
            client.evaluate("", 12)
        self.assertIsNone(client._worker)

    def test_timeout_reports_unavailable(self):
        client = self.make_client("--stall", query_timeout=0.5)
        query = client.evaluate(STARTING_FEN, 12)
        with self.assertRaises(EngineUnavailableError):
            query.future.result(timeout=10)
        self.assertFalse(client.is_busy())

    def test_failed_signal_delivered(self):
        client = self.make_client("--stall", query_timeout=0.5)
        failed = []
        client.query_failed.connect(failed.append)
        query = client.evaluate(STARTING_FEN, 12)
        self.assertTrue(self.process_events_until(lambda: failed, timeout=10))
        self.assertIs(failed[0], query)
        self.assertIsInstance(query.error(), EngineUnavailableError)

    def test_engine_restarts_after_failure(self):
        client = self.make_client("--stall", query_timeout=0.5)
        with self.assertRaises(EngineUnavailableError):
            client.evaluate(STARTING_FEN, 12).future.result(timeout=10)

        client.engine_args = [str(FAKE_ENGINE)]
        result = client.evaluate(STARTING_FEN, 12).future.result(timeout=10)
        self.assertEqual(result.best_move, "e2e4")

    def test_engine_exit_during_search(self):
        client = self.make_client("--exit-on-go")
        with self.assertRaises(EngineUnavailableError):
            client.evaluate(STARTING_FEN, 12).future.result(timeout=10)

    def test_handshake_timeout(self):
        client = self.make_client("--silent", init_timeout=0.5)
        with self.assertRaises(EngineUnavailableError):
            client.evaluate(STARTING_FEN, 12).future.result(timeout=10)

    def test_missing_engine_executable(self):
        client = EngineClient(Path("/nonexistent/uci-engine"), query_timeout=1.0)
        self.addCleanup(client.close)
        with self.assertRaises(EngineUnavailableError):
            client.evaluate(STARTING_FEN, 12).future.result(timeout=10)

    def test_close_fails_pending_query(self):
        client = self.make_client("--stall")
        query = client.evaluate(STARTING_FEN, 12)
        client.close()
        self.assertIsInstance(query.error(), EngineUnavailableError)
        with self.assertRaises(EngineUnavailableError):
            query.future.result(timeout=1)

    def test_close_is_idempotent(self):
        client = self.make_client()
        client.close()
        client.evaluate(STARTING_FEN, 12).future.result(timeout=10)
        client.close()
        client.close()
        self.assertIsNone(client._worker)


if __name__ == '__main__':
    unittest.main()
