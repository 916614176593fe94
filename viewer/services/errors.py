"""Exception types raised by the viewer services."""


class ViewerError(Exception):
    """Base class for all errors raised by the viewer."""


class ConfigError(ViewerError):
    """Raised when config.json is missing, unreadable or invalid."""


class PgnParseError(ViewerError):
    """Raised when PGN text is malformed or contains no moves."""


class IllegalMoveError(ViewerError):
    """Raised when a move cannot be applied to a position."""

    def __init__(self, move_text: str, fen: str) -> None:
        super().__init__(f"Illegal or malformed move '{move_text}' in position {fen}")
        self.move_text = move_text
        self.fen = fen


class EngineBusyError(ViewerError):
    """Raised when a query is issued while another query is still pending."""


class EngineUnavailableError(ViewerError):
    """Raised when the engine cannot be started, crashes, or does not answer in time."""
