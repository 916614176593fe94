"""Logging service for centralized application logging."""

import logging
import logging.handlers
import queue
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from viewer.utils.path_resolver import resolve_data_file_path


LOGGER_NAME = 'PGNViewer'
LOG_FORMAT = '%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s'


class LoggingService:
    """Singleton front for the 'PGNViewer' logger.

    Records are put on an in-memory queue by the calling thread and written
    by a QueueListener thread, so the engine worker never waits on disk I/O.
    Console output goes to stderr; the rotating log file is enabled from
    config.json. Use get_instance() to obtain the shared instance.
    """

    _instance: Optional['LoggingService'] = None
    _lock = threading.Lock()

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self.config: Dict[str, Any] = config or {}
        self._logger = logging.getLogger(LOGGER_NAME)
        self._listener: Optional[logging.handlers.QueueListener] = None
        self._log_path: Optional[Path] = None
        self._initialized = False
        self._state_lock = threading.RLock()

    @classmethod
    def get_instance(cls, config: Optional[Dict[str, Any]] = None) -> 'LoggingService':
        """Get the shared instance, applying `config` if one is given.

        Args:
            config: Configuration dictionary. Passing it to an existing,
                    initialized instance restarts logging with the new settings.

        Returns:
            The LoggingService singleton.
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls(config)
                return cls._instance
        if config is not None:
            cls._instance.reconfigure(config)
        return cls._instance

    def reconfigure(self, config: Dict[str, Any]) -> None:
        with self._state_lock:
            was_initialized = self._initialized
            self.shutdown()
            self.config = config
            self._log_path = None
            if was_initialized:
                self.initialize()

    def initialize(self) -> None:
        """Attach the queue handler and start the listener thread. Idempotent."""
        with self._state_lock:
            if self._initialized:
                return

            self._logger.setLevel(logging.DEBUG)
            self._logger.propagate = False
            for handler in list(self._logger.handlers):
                self._logger.removeHandler(handler)

            handlers = self._build_handlers()
            if handlers:
                record_queue: "queue.Queue[logging.LogRecord]" = queue.Queue()
                self._logger.addHandler(logging.handlers.QueueHandler(record_queue))
                self._listener = logging.handlers.QueueListener(
                    record_queue, *handlers, respect_handler_level=True
                )
                self._listener.start()
            self._initialized = True

        if self._log_path is not None:
            self.debug(f"Logging to {self._log_path}")

    def _build_handlers(self) -> List[logging.Handler]:
        logging_config = self.config.get('logging', {})
        console_config = logging_config.get('console', {})
        file_config = logging_config.get('file', {})
        handlers: List[logging.Handler] = []

        if console_config.get('enabled', True):
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(self._parse_level(console_config.get('level', 'WARNING')))
            console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))
            handlers.append(console)

        if file_config.get('enabled', False):
            file_handler = self._build_file_handler(file_config)
            if file_handler is not None:
                handlers.append(file_handler)
        return handlers

    def _build_file_handler(self, file_config: Dict[str, Any]) -> Optional[logging.Handler]:
        """Create the rotating file handler; the file name gets today's date appended."""
        stem, dot, suffix = file_config.get('filename', 'pgnviewer.log').rpartition('.')
        if not dot:
            stem, suffix = suffix, 'log'
        dated_name = f"{stem}_{datetime.now():%Y-%m-%d}.{suffix}"
        try:
            path, _ = resolve_data_file_path(dated_name)
            handler = logging.handlers.RotatingFileHandler(
                str(path),
                maxBytes=int(file_config.get('max_size_mb', 10)) * 1024 * 1024,
                backupCount=int(file_config.get('backup_count', 5)),
                encoding='utf-8',
            )
        except OSError as e:
            # Console logging still works; report once on stderr
            print(f"Warning: file logging disabled: {e}", file=sys.stderr)
            return None

        handler.setLevel(self._parse_level(file_config.get('level', 'DEBUG')))
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        self._log_path = path
        return handler

    @staticmethod
    def _parse_level(name: str) -> int:
        level = logging.getLevelName(str(name).upper())
        return level if isinstance(level, int) else logging.INFO

    def _log(self, level: int, message: str, exc_info: Optional[BaseException] = None) -> None:
        if not self._initialized:
            self.initialize()
        if exc_info is not None:
            self._logger.log(level, message, exc_info=(type(exc_info), exc_info, exc_info.__traceback__))
        else:
            self._logger.log(level, message)

    def debug(self, message: str) -> None:
        self._log(logging.DEBUG, message)

    def info(self, message: str) -> None:
        self._log(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._log(logging.WARNING, message)

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        """Log an ERROR message, with the traceback of `exc_info` if given."""
        self._log(logging.ERROR, message, exc_info=exc_info)

    def shutdown(self) -> None:
        """Flush queued records, stop the listener and close the handlers."""
        with self._state_lock:
            if not self._initialized:
                return
            if self._listener is not None:
                self._listener.stop()
                for handler in self._listener.handlers:
                    handler.close()
                self._listener = None
            for handler in list(self._logger.handlers):
                self._logger.removeHandler(handler)
            self._initialized = False
