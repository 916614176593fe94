"""Fatal error reporting for the viewer process."""

import sys
import traceback
from typing import List, Optional

from viewer.services.errors import ConfigError
from viewer.services.logging_service import LoggingService


RULE = "=" * 80


class ErrorHandler:
    """Reports errors the viewer cannot recover from, then exits."""

    @staticmethod
    def format_fatal_report(error: BaseException, context: Optional[str] = None) -> str:
        """Build the text printed to stderr for a fatal error.

        Configuration problems get a short report without a traceback, since
        the fix is editing config.json rather than the code.

        Args:
            error: The exception that occurred.
            context: Where the error occurred, e.g. "Application execution".

        Returns:
            Multi-line report.
        """
        lines: List[str] = [RULE]
        if isinstance(error, ConfigError):
            lines += ["CONFIGURATION ERROR", RULE, str(error)]
        else:
            lines += ["FATAL ERROR", RULE]
            if context:
                lines += [f"Context: {context}", ""]
            lines += [
                f"Error Type: {type(error).__name__}",
                f"Error Message: {error}",
                "",
                "Traceback:",
                "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip(),
            ]
        lines += [RULE, "PGN Viewer will now terminate.", RULE]
        return "\n".join(lines)

    @staticmethod
    def handle_fatal_error(error: BaseException, context: Optional[str] = None) -> None:
        """Log the error, print the fatal report and exit with status 1."""
        logging_service = LoggingService.get_instance()
        logging_service.error(f"Fatal error ({context or 'unknown context'}): {error}", exc_info=error)
        logging_service.shutdown()

        print(ErrorHandler.format_fatal_report(error, context), file=sys.stderr)
        sys.exit(1)

    @staticmethod
    def setup_exception_handler() -> None:
        """Install a global exception handler for uncaught exceptions."""
        def exception_handler(exc_type, exc_value, exc_traceback):
            if issubclass(exc_type, KeyboardInterrupt):
                print("\nPGN Viewer interrupted by user.", file=sys.stderr)
                sys.exit(130)

            ErrorHandler.handle_fatal_error(exc_value if exc_value else exc_type(), "Uncaught exception")

        sys.excepthook = exception_handler
