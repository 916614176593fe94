"""Central application controller wiring models, services and controllers."""

from pathlib import Path
from typing import Dict, Any, Optional

from viewer.config.config_loader import ConfigLoader
from viewer.controllers.navigation_controller import NavigationController
from viewer.models.game_session_model import GameSessionModel
from viewer.services.engine_client import EngineClient
from viewer.services.errors import ConfigError
from viewer.services.logging_service import LoggingService


class AppController:
    """Central logic hub for the application.

    Owns the session model, the engine client and the navigation controller.
    The engine client is the single engine connection of the session; it is
    created here, handed to the navigation controller, and closed by shutdown().
    """

    def __init__(self, config: Dict[str, Any], engine_client: Optional[EngineClient] = None) -> None:
        """Initialize the application controller.

        Args:
            config: Configuration dictionary.
            engine_client: Optional engine client (created from config if None).
        """
        self.config = config
        self.session_model = GameSessionModel()
        self.engine_client = engine_client or self._create_engine_client(config)
        self.navigation_controller = NavigationController(config, self.session_model, self.engine_client)

    @staticmethod
    def _create_engine_client(config: Dict[str, Any]) -> EngineClient:
        engine_config = config.get('engine', {})
        try:
            engine_path = ConfigLoader.resolve_engine_path(engine_config)
        except ConfigError as e:
            # Book moves still work; the first engine query reports the problem
            LoggingService.get_instance().warning(str(e))
            engine_path = Path(engine_config.get('path', 'stockfish'))

        return EngineClient(
            engine_path,
            engine_args=engine_config.get('args', []),
            init_timeout=engine_config.get('init_timeout_seconds', 5),
            query_timeout=engine_config.get('query_timeout_seconds', 30),
        )

    def get_session_model(self) -> GameSessionModel:
        return self.session_model

    def get_navigation_controller(self) -> NavigationController:
        return self.navigation_controller

    def shutdown(self) -> None:
        """Close the engine connection."""
        self.engine_client.close()
        LoggingService.get_instance().info("Application shutdown: engine closed")
