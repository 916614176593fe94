"""Unit tests for ConfigLoader."""

import copy
import json
import os
import stat
import tempfile
import unittest
from pathlib import Path

from viewer.config.config_loader import ConfigLoader
from viewer.services.errors import ConfigError


VALID_CONFIG = {
    "engine": {
        "path": "stockfish",
        "args": [],
        "depth": 12,
        "init_timeout_seconds": 5,
        "query_timeout_seconds": 30.0,
    },
    "logging": {"console": {"enabled": True, "level": "INFO"}},
}


class TestConfigLoader(unittest.TestCase):
    """Test loading and validating config.json."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.config_path = Path(self.temp_dir.name) / "config.json"

    def _write(self, content):
        text = content if isinstance(content, str) else json.dumps(content)
        self.config_path.write_text(text, encoding="utf-8")

    def test_bundled_config_is_valid(self):
        config = ConfigLoader().load()
        self.assertEqual(config["engine"]["depth"], 12)

    def test_load_valid_file(self):
        self._write(VALID_CONFIG)
        self.assertEqual(ConfigLoader(self.config_path).load(), VALID_CONFIG)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            ConfigLoader(self.config_path).load()

    def test_invalid_json(self):
        self._write("{ not json")
        with self.assertRaises(ConfigError):
            ConfigLoader(self.config_path).load()

    def test_missing_keys(self):
        for key in ("path", "depth", "init_timeout_seconds", "query_timeout_seconds"):
            with self.subTest(key=key):
                config = copy.deepcopy(VALID_CONFIG)
                del config["engine"][key]
                with self.assertRaises(ConfigError):
                    ConfigLoader.validate(config)

    def test_missing_section(self):
        with self.assertRaises(ConfigError):
            ConfigLoader.validate({"logging": {}})
        with self.assertRaises(ConfigError):
            ConfigLoader.validate([])

    def test_invalid_values(self):
        cases = [
            ("depth", 0),
            ("depth", -3),
            ("depth", "12"),
            ("depth", True),
            ("depth", 12.5),
            ("query_timeout_seconds", 0),
            ("init_timeout_seconds", -1),
            ("path", 42),
            ("args", "--threads 2"),
        ]
        for key, value in cases:
            with self.subTest(key=key, value=value):
                config = copy.deepcopy(VALID_CONFIG)
                config["engine"][key] = value
                with self.assertRaises(ConfigError):
                    ConfigLoader.validate(config)

    def test_resolve_existing_file(self):
        engine_file = Path(self.temp_dir.name) / "engine"
        engine_file.write_text("", encoding="utf-8")
        self.assertEqual(ConfigLoader.resolve_engine_path({"path": str(engine_file)}), engine_file)

    def test_resolve_on_path(self):
        engine_file = Path(self.temp_dir.name) / "fake-uci-engine"
        engine_file.write_text("", encoding="utf-8")
        engine_file.chmod(engine_file.stat().st_mode | stat.S_IXUSR)
        old_path = os.environ.get("PATH", "")
        os.environ["PATH"] = self.temp_dir.name + os.pathsep + old_path
        self.addCleanup(os.environ.__setitem__, "PATH", old_path)

        resolved = ConfigLoader.resolve_engine_path({"path": "fake-uci-engine"})
        self.assertEqual(resolved.name, "fake-uci-engine")

    def test_resolve_missing_engine(self):
        with self.assertRaises(ConfigError):
            ConfigLoader.resolve_engine_path({"path": "no-such-engine-binary-xyz"})


if __name__ == '__main__':
    unittest.main()
