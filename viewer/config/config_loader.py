"""Configuration loader with strict validation of config.json."""

import json
import shutil
from pathlib import Path
from typing import Dict, Any, Optional

from viewer.services.errors import ConfigError
from viewer.utils.path_resolver import get_app_resource_path


DEFAULT_CONFIG_PATH = "viewer/config/config.json"

# (section, key) -> accepted types
_REQUIRED_KEYS = {
    ('engine', 'path'): (str,),
    ('engine', 'depth'): (int,),
    ('engine', 'init_timeout_seconds'): (int, float),
    ('engine', 'query_timeout_seconds'): (int, float),
}


class ConfigLoader:
    """Loads config.json and validates the settings the viewer depends on.

    Validation is strict: a missing section or a value of the wrong type
    raises ConfigError at startup rather than failing later mid-game.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize the loader.

        Args:
            config_path: Path to the JSON file. Defaults to the bundled config.json.
        """
        self.config_path = config_path or get_app_resource_path(DEFAULT_CONFIG_PATH)

    def load(self) -> Dict[str, Any]:
        """Load and validate the configuration.

        Returns:
            Configuration dictionary.

        Raises:
            ConfigError: If the file is missing, is not valid JSON or fails validation.
        """
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {self.config_path}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.config_path}: {e}") from e

        self.validate(config)
        return config

    @staticmethod
    def validate(config: Dict[str, Any]) -> None:
        """Validate a configuration dictionary.

        Args:
            config: Configuration dictionary.

        Raises:
            ConfigError: If a required key is missing or has the wrong type.
        """
        if not isinstance(config, dict):
            raise ConfigError("Configuration root must be a JSON object")

        for (section, key), types in _REQUIRED_KEYS.items():
            section_dict = config.get(section)
            if not isinstance(section_dict, dict):
                raise ConfigError(f"Missing configuration section '{section}'")
            if key not in section_dict:
                raise ConfigError(f"Missing configuration key '{section}.{key}'")
            value = section_dict[key]
            # bool is an int subclass but never a valid depth or timeout
            if isinstance(value, bool) or not isinstance(value, types):
                raise ConfigError(f"Configuration key '{section}.{key}' has invalid value: {value!r}")

        engine_config = config['engine']
        if engine_config['depth'] <= 0:
            raise ConfigError("Configuration key 'engine.depth' must be positive")
        if engine_config['query_timeout_seconds'] <= 0 or engine_config['init_timeout_seconds'] <= 0:
            raise ConfigError("Engine timeouts must be positive")
        if not isinstance(engine_config.get('args', []), list):
            raise ConfigError("Configuration key 'engine.args' must be a list")

    @staticmethod
    def resolve_engine_path(engine_config: Dict[str, Any]) -> Path:
        """Resolve the configured engine executable.

        An existing file path is used as is; otherwise the value is looked up on PATH.

        Args:
            engine_config: The 'engine' configuration section.

        Returns:
            Path to the engine executable.

        Raises:
            ConfigError: If the executable cannot be found.
        """
        configured = engine_config.get('path', '')
        candidate = Path(configured).expanduser()
        if candidate.is_file():
            return candidate
        found = shutil.which(configured)
        if found:
            return Path(found)
        raise ConfigError(f"Engine executable not found: {configured}")
