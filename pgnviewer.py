"""Entry point for PGN Viewer."""

import sys

from PyQt6.QtWidgets import QApplication

from viewer.config.config_loader import ConfigLoader
from viewer.main_window import MainWindow
from viewer.services.error_handler import ErrorHandler
from viewer.services.logging_service import LoggingService


def main() -> None:
    """Run PGN Viewer."""
    # Setup global exception handler for uncaught exceptions
    ErrorHandler.setup_exception_handler()

    try:
        app = QApplication(sys.argv)
        app.setApplicationName("PGN Viewer")
        app.setOrganizationName("PGN Viewer")

        # Load configuration with strict validation
        config = ConfigLoader().load()
        logging_service = LoggingService.get_instance(config)
        logging_service.initialize()

        window = MainWindow(config)
        window.show()

        exit_code = app.exec()
        logging_service.shutdown()
        sys.exit(exit_code)
    except Exception as e:
        ErrorHandler.handle_fatal_error(e, "Application execution")


if __name__ == "__main__":
    main()
