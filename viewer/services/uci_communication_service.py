"""UCI communication layer for the analysis engine process.

This module spawns the engine, performs the UCI handshake and exchanges
line-oriented commands and responses. Higher-level logic (parsing info
lines, resolving queries) lives in the engine client.
"""

import queue
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import Optional, List, Sequence
from enum import Enum

from viewer.services.logging_service import LoggingService


class UCICommand(Enum):
    """UCI protocol commands."""
    UCI = "uci"
    UCIOK = "uciok"
    ISREADY = "isready"
    READYOK = "readyok"
    UCINEWGAME = "ucinewgame"
    POSITION = "position"
    GO = "go"
    STOP = "stop"
    QUIT = "quit"


class UCICommunicationService:
    """Service for UCI protocol communication with a chess engine.

    This service handles the low-level UCI protocol communication, including:
    - Process spawning and management
    - UCI initialization
    - Command sending and response reading with timeouts
    - Debug logging of all UCI traffic

    Engine stdout is drained by a daemon reader thread into a queue, so
    read_line() can honour its timeout even when the engine is silent.
    """

    def __init__(self, engine_path: Path, engine_args: Optional[Sequence[str]] = None,
                 identifier: Optional[str] = None) -> None:
        """Initialize UCI communication.

        Args:
            engine_path: Path to UCI engine executable.
            engine_args: Optional extra command line arguments for the engine.
            identifier: Optional identifier used in log messages.
        """
        self.engine_path = engine_path
        self.engine_args = list(engine_args or [])
        self.identifier = identifier
        self.process: Optional[subprocess.Popen] = None
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self._reader_thread: Optional[threading.Thread] = None
        self._initialized = False
        self._crash_logged = False
        self._stdout_closed = False

    def _log_prefix(self) -> str:
        identifier_str = f"[{self.identifier}] " if self.identifier else ""
        pid_str = f"[PID:{self.process.pid}] " if self.process else ""
        return f"{identifier_str}{pid_str}"

    def spawn_process(self) -> bool:
        """Spawn the engine process and start the stdout reader thread.

        Returns:
            True if process spawned successfully, False otherwise.
        """
        logging_service = LoggingService.get_instance()
        popen_kwargs = {
            'stdin': subprocess.PIPE,
            'stdout': subprocess.PIPE,
            'stderr': subprocess.DEVNULL,
            'text': True,
            'encoding': 'utf-8',
            'errors': 'replace',
            'bufsize': 1,
        }
        if sys.platform == 'win32':
            popen_kwargs['creationflags'] = subprocess.CREATE_NO_WINDOW

        try:
            self.process = subprocess.Popen(
                [str(self.engine_path), *self.engine_args],
                **popen_kwargs
            )
        except OSError as e:
            logging_service.error(f"Failed to spawn engine process: path={self.engine_path}", exc_info=e)
            self.process = None
            return False

        self._lines = queue.Queue()
        self._crash_logged = False
        self._stdout_closed = False
        self._reader_thread = threading.Thread(
            target=self._read_stdout,
            args=(self.process, self._lines),
            name=f"uci-reader-{self.identifier or 'engine'}",
            daemon=True,
        )
        self._reader_thread.start()

        logging_service.info(f"Engine process spawned {self._log_prefix()}path={self.engine_path}")
        return True

    @staticmethod
    def _read_stdout(process: subprocess.Popen, lines: "queue.Queue[Optional[str]]") -> None:
        """Push every non-empty stdout line into the queue; None marks end of stream."""
        try:
            for raw_line in process.stdout:
                line = raw_line.strip()
                if line:
                    lines.put(line)
        except (OSError, ValueError):
            pass  # pipe closed during cleanup
        finally:
            lines.put(None)

    def initialize_uci(self, timeout: float = 5.0) -> bool:
        """Send 'uci' and wait for 'uciok', then confirm with 'isready'.

        Args:
            timeout: Maximum time to wait for each response in seconds.

        Returns:
            True if the engine completed the handshake, False otherwise.
        """
        if not self.process:
            return False

        if not self.send_command(UCICommand.UCI.value):
            return False
        if self.wait_for(UCICommand.UCIOK.value, timeout) is None:
            LoggingService.get_instance().error(
                f"UCI initialization timeout {self._log_prefix()}(no uciok within {timeout}s)"
            )
            return False

        if not self.confirm_ready(timeout=timeout):
            return False

        self._initialized = True
        LoggingService.get_instance().info(f"UCI initialized {self._log_prefix()}path={self.engine_path}")
        return True

    def send_command(self, command: str) -> bool:
        """Send a command to the engine.

        Args:
            command: UCI command string (without newline).

        Returns:
            True if command sent successfully, False otherwise.
        """
        if not self.is_process_alive():
            LoggingService.get_instance().warning(
                f"Cannot send command '{command}' {self._log_prefix()}: process not available"
            )
            return False

        try:
            LoggingService.get_instance().debug(f"[UCI SEND] {self._log_prefix()}{command}")
            self.process.stdin.write(f"{command}\n")
            self.process.stdin.flush()
            return True
        except (OSError, ValueError) as e:
            LoggingService.get_instance().error(f"Error sending command '{command}'", exc_info=e)
            return False

    def read_line(self, timeout: float) -> Optional[str]:
        """Read the next line from the engine.

        Args:
            timeout: Timeout in seconds. Returns None if no line arrives in time.

        Returns:
            Line string (stripped) or None on timeout or end of stream.
        """
        try:
            line = self._lines.get(timeout=timeout)
        except queue.Empty:
            return None
        if line is None:
            # Keep the end-of-stream marker for later readers
            self._stdout_closed = True
            self._lines.put(None)
            return None
        LoggingService.get_instance().debug(f"[UCI RECV] {self._log_prefix()}{line}")
        return line

    def wait_for(self, token: str, timeout: float) -> Optional[List[str]]:
        """Read lines until one equals `token`.

        Args:
            token: Expected response line (e.g. "uciok").
            timeout: Maximum total wait in seconds.

        Returns:
            Lines read before the token, or None on timeout or engine exit.
        """
        deadline = time.monotonic() + timeout
        collected: List[str] = []
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            line = self.read_line(timeout=remaining)
            if line is None:
                if not self.is_engine_responsive():
                    return None
                continue
            if line == token:
                return collected
            collected.append(line)

    def confirm_ready(self, timeout: float = 5.0) -> bool:
        """Send isready and wait for readyok.

        Args:
            timeout: Maximum time to wait for readyok in seconds.

        Returns:
            True if readyok received, False if timeout or error.
        """
        if not self.send_command(UCICommand.ISREADY.value):
            return False
        return self.wait_for(UCICommand.READYOK.value, timeout) is not None

    def new_game(self) -> bool:
        """Tell the engine the next search belongs to a new game."""
        return self.send_command(UCICommand.UCINEWGAME.value)

    def set_position(self, fen: str) -> bool:
        """Set the position on the engine board.

        Args:
            fen: FEN string of the position.

        Returns:
            True if position set successfully, False otherwise.
        """
        return self.send_command(f"{UCICommand.POSITION.value} fen {fen}")

    def start_search(self, depth: int) -> bool:
        """Start a fixed-depth search.

        Args:
            depth: Depth to search, must be positive.

        Returns:
            True if search started successfully, False otherwise.
        """
        if depth <= 0:
            raise ValueError(f"Search depth must be positive, got {depth}")
        return self.send_command(f"{UCICommand.GO.value} depth {depth}")

    def stop_search(self) -> bool:
        """Stop the current search."""
        return self.send_command(UCICommand.STOP.value)

    def is_process_alive(self) -> bool:
        """Check if engine process is alive.

        Returns:
            True if process is running, False otherwise.
        """
        if self.process is None:
            return False

        exit_code = self.process.poll()
        if exit_code is not None:
            if self._initialized and not self._crash_logged:
                self._crash_logged = True
                LoggingService.get_instance().error(
                    f"Engine process terminated unexpectedly {self._log_prefix()}exit code={exit_code}"
                )
            return False
        return True

    def is_engine_responsive(self) -> bool:
        """Check if the engine can still produce output (alive with stdout open)."""
        return not self._stdout_closed and self.is_process_alive()

    def cleanup(self) -> None:
        """Quit the engine and release the process.

        Safe to call multiple times - will only clean up once.
        """
        if self.process is None:
            return

        process = self.process
        process_pid = process.pid
        if process.poll() is None:
            self.send_command(UCICommand.QUIT.value)
            try:
                process.wait(timeout=2.0)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        for stream in (process.stdin, process.stdout):
            try:
                if stream:
                    stream.close()
            except OSError:
                pass

        self.process = None
        self._initialized = False
        LoggingService.get_instance().info(
            f"Engine process cleaned up [{self.identifier}] path={self.engine_path}, PID={process_pid}"
        )
