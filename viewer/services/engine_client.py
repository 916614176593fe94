"""Engine client turning a UCI engine process into a request/response API.

One worker QThread owns the engine process for the whole session. Queries
are answered one at a time: `evaluate()` returns an EngineQuery whose future
resolves with the engine's best move and last reported score, and the client
emits `query_finished` / `query_failed` on the thread that owns it.
"""

import queue
import time
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from viewer.services.errors import EngineBusyError, EngineUnavailableError
from viewer.services.logging_service import LoggingService
from viewer.services.uci_communication_service import UCICommunicationService


# Score reported for any forced mate, from the side to move's point of view
MATE_SCORE = 999.0


@dataclass(frozen=True)
class EngineResult:
    """Best move in coordinate notation and the last score seen (pawn units)."""
    best_move: str
    score: Optional[float]


class EngineQuery:
    """A single in-flight request: position, depth and the pending result."""

    def __init__(self, fen: str, depth: int, generation: int = 0) -> None:
        """Initialize the query.

        Args:
            fen: Position to analyze.
            depth: Search depth.
            generation: Caller-defined tag returned with the result, used to
                        recognize results that arrive after the caller moved on.
        """
        self.fen = fen
        self.depth = depth
        self.generation = generation
        self.future: "Future[EngineResult]" = Future()
        self.last_score: Optional[float] = None

    def feed_line(self, line: str) -> bool:
        """Consume one line of engine output.

        Args:
            line: Engine output line.

        Returns:
            True if the line was the terminating bestmove line, False otherwise.
        """
        parts = line.split()
        if not parts:
            return False

        if parts[0] == "info" and "score" in parts:
            idx = parts.index("score")
            if idx + 2 < len(parts):
                score_type, raw_value = parts[idx + 1], parts[idx + 2]
                try:
                    value = int(raw_value)
                except ValueError:
                    return False
                if score_type == "cp":
                    self.last_score = value / 100
                elif score_type == "mate":
                    self.last_score = MATE_SCORE if value > 0 else -MATE_SCORE
            return False

        if parts[0] == "bestmove":
            best_move = parts[1] if len(parts) > 1 else "(none)"
            self.future.set_result(EngineResult(best_move=best_move, score=self.last_score))
            return True

        return False

    def fail(self, error: Exception) -> None:
        """Reject the query (no-op if it already resolved)."""
        if not self.future.done():
            self.future.set_exception(error)

    def done(self) -> bool:
        return self.future.done()

    def result(self) -> Optional[EngineResult]:
        """Get the result if the query resolved successfully, None otherwise."""
        if self.future.done() and self.future.exception() is None:
            return self.future.result()
        return None

    def error(self) -> Optional[BaseException]:
        """Get the failure if the query was rejected, None otherwise."""
        if self.future.done():
            return self.future.exception()
        return None


class EngineWorkerThread(QThread):
    """Thread owning the engine process and answering queries one at a time."""

    query_completed = pyqtSignal(object)  # EngineQuery
    query_failed = pyqtSignal(object)  # EngineQuery

    def __init__(self, engine_path: Path, engine_args: Sequence[str] = (),
                 init_timeout: float = 5.0, query_timeout: float = 30.0) -> None:
        """Initialize the worker.

        Args:
            engine_path: Path to UCI engine executable.
            engine_args: Extra command line arguments for the engine.
            init_timeout: Seconds to wait for the UCI handshake.
            query_timeout: Seconds to wait for bestmove before giving up on a query.
        """
        super().__init__()
        self.engine_path = engine_path
        self.engine_args = list(engine_args)
        self.init_timeout = init_timeout
        self.query_timeout = query_timeout
        self.uci: Optional[UCICommunicationService] = None
        self._requests: "queue.Queue[Optional[EngineQuery]]" = queue.Queue()
        self._shutdown_requested = False
        self._current: Optional[EngineQuery] = None
        # Set once the engine is unusable; later queries are rejected with it
        self._failure: Optional[EngineUnavailableError] = None

    @property
    def is_broken(self) -> bool:
        return self._failure is not None

    def submit(self, query: EngineQuery) -> None:
        self._requests.put(query)

    def request_shutdown(self) -> None:
        self._shutdown_requested = True
        self._requests.put(None)

    def run(self) -> None:
        """Start the engine, then answer queued queries until shutdown."""
        logging_service = LoggingService.get_instance()
        try:
            self.uci = UCICommunicationService(self.engine_path, self.engine_args, identifier="EngineClient")
            if not self.uci.spawn_process():
                self._mark_broken(f"Failed to start engine: {self.engine_path}")
            elif not self.uci.initialize_uci(timeout=self.init_timeout):
                self._mark_broken("Engine did not complete the UCI handshake")

            while True:
                query = self._requests.get()
                if query is None:
                    break
                if self._failure is not None:
                    self._reject(query, self._failure)
                else:
                    self._current = query
                    self._run_query(query)
                    self._current = None
        except Exception as e:
            logging_service.error("Unexpected error in engine worker thread", exc_info=e)
            failure = self._mark_broken(f"Engine worker failed: {e}")
            if self._current is not None and not self._current.done():
                self._reject(self._current, failure)
            self._drain(failure)
        finally:
            if self.uci:
                self.uci.cleanup()

    def _run_query(self, query: EngineQuery) -> None:
        """Send one query to the engine and read output until bestmove."""
        sent = (self.uci.new_game()
                and self.uci.set_position(query.fen)
                and self.uci.start_search(query.depth))
        if not sent:
            self._reject(query, self._mark_broken("Failed to send query to engine"))
            return

        deadline = time.monotonic() + self.query_timeout
        while True:
            if self._shutdown_requested:
                self._reject(query, EngineUnavailableError("Engine client closed"))
                return

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.uci.stop_search()
                self._reject(query, self._mark_broken(
                    f"Engine did not return a best move within {self.query_timeout}s"
                ))
                return

            line = self.uci.read_line(timeout=min(remaining, 0.25))
            if line is None:
                if not self.uci.is_engine_responsive():
                    self._reject(query, self._mark_broken("Engine process terminated unexpectedly"))
                    return
                continue

            if query.feed_line(line):
                self.query_completed.emit(query)
                return

    def _mark_broken(self, message: str) -> EngineUnavailableError:
        LoggingService.get_instance().error(message)
        self._failure = EngineUnavailableError(message)
        if self.uci:
            self.uci.cleanup()
        return self._failure

    def _reject(self, query: EngineQuery, error: Exception) -> None:
        query.fail(error)
        self.query_failed.emit(query)

    def _drain(self, error: Exception) -> None:
        while True:
            try:
                query = self._requests.get_nowait()
            except queue.Empty:
                return
            if query is not None:
                self._reject(query, error)


class EngineClient(QObject):
    """Request/response API over a single long-lived UCI engine.

    The client holds at most one pending query. Issuing a second query before
    the first resolves raises EngineBusyError; nothing is dropped silently.
    """

    query_finished = pyqtSignal(object)  # EngineQuery with a result
    query_failed = pyqtSignal(object)  # EngineQuery with an error

    def __init__(self, engine_path: Path, engine_args: Sequence[str] = (),
                 init_timeout: float = 5.0, query_timeout: float = 30.0) -> None:
        """Initialize the client. The engine is not started until first use.

        Args:
            engine_path: Path to UCI engine executable.
            engine_args: Extra command line arguments for the engine.
            init_timeout: Seconds to wait for the UCI handshake.
            query_timeout: Seconds to wait for a best move.
        """
        super().__init__()
        self.engine_path = engine_path
        self.engine_args = list(engine_args)
        self.init_timeout = init_timeout
        self.query_timeout = query_timeout
        self._worker: Optional[EngineWorkerThread] = None
        self._pending: Optional[EngineQuery] = None

    def open(self) -> None:
        """Start the engine worker if it is not running. Idempotent.

        A worker whose engine failed is replaced by a fresh one.
        """
        if self._worker is not None and not self._worker.is_broken:
            return
        if self._worker is not None:
            LoggingService.get_instance().info("Restarting engine after failure")
            self._stop_worker()

        self._worker = EngineWorkerThread(self.engine_path, self.engine_args,
                                          self.init_timeout, self.query_timeout)
        self._worker.query_completed.connect(self.query_finished)
        self._worker.query_failed.connect(self.query_failed)
        self._worker.start()

    def close(self) -> None:
        """Stop the worker and the engine process. Idempotent."""
        if self._worker is None:
            return
        self._stop_worker()
        if self._pending is not None:
            self._pending.fail(EngineUnavailableError("Engine client closed"))
            self._pending = None

    def _stop_worker(self) -> None:
        worker = self._worker
        self._worker = None
        worker.request_shutdown()
        if not worker.wait(5000):
            LoggingService.get_instance().warning("Engine worker did not stop within 5s")

    def is_busy(self) -> bool:
        """Check if a query is still pending."""
        return self._pending is not None and not self._pending.done()

    def evaluate(self, fen: str, depth: int, generation: int = 0) -> EngineQuery:
        """Ask the engine for the best move in a position.

        Args:
            fen: Position to analyze.
            depth: Search depth, must be positive.
            generation: Tag copied onto the returned query.

        Returns:
            The pending EngineQuery.

        Raises:
            ValueError: If depth is not positive or fen is empty.
            EngineBusyError: If a previous query has not resolved yet.
        """
        if depth <= 0:
            raise ValueError(f"Search depth must be positive, got {depth}")
        if not fen:
            raise ValueError("Position must not be empty")
        if self.is_busy():
            raise EngineBusyError("Engine is still analyzing the previous position")

        self.open()
        query = EngineQuery(fen, depth, generation)
        self._pending = query
        LoggingService.get_instance().debug(f"Engine query issued: depth={depth}, generation={generation}, fen={fen}")
        self._worker.submit(query)
        return query
