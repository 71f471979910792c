# SPDX-License-Identifier: MIT

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from tokstat_library.config import load_settings
from tokstat_library.utils.paths import get_config_dir


class ConfigDirTest(unittest.TestCase):
    def test_precedence(self) -> None:
        with mock.patch.dict(
            os.environ, {"TOKSTAT_CONFIG_DIR": "/tmp/a", "XDG_CONFIG_HOME": "/tmp/x"}
        ):
            self.assertEqual(get_config_dir("/tmp/override"), Path("/tmp/override"))
            self.assertEqual(get_config_dir(), Path("/tmp/a"))
        with mock.patch.dict(os.environ, {"XDG_CONFIG_HOME": "/tmp/x"}, clear=True):
            self.assertEqual(get_config_dir(), Path("/tmp/x/tokstat"))


class LoadSettingsTest(unittest.TestCase):
    def test_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with mock.patch.dict(os.environ, {}, clear=True):
                settings = load_settings(temp_dir)
        self.assertEqual(settings.refresh_interval, 60)
        self.assertEqual(settings.history_size, 100)
        self.assertEqual(settings.keyring_service, "tokstat")
        self.assertEqual(settings.index_path, Path(temp_dir) / "accounts.json")
        self.assertEqual(settings.history_path, Path(temp_dir) / "quota_history.json")

    def test_env_overrides_and_invalid_values(self) -> None:
        env = {
            "TOKSTAT_REFRESH_INTERVAL": "15",
            "TOKSTAT_HISTORY_SIZE": "zero",
            "TOKSTAT_HTTP_TIMEOUT": "0",
            "TOKSTAT_LOG_LEVEL": "debug",
        }
        with tempfile.TemporaryDirectory() as temp_dir:
            with mock.patch.dict(os.environ, env, clear=True):
                settings = load_settings(temp_dir)
        self.assertEqual(settings.refresh_interval, 15)
        self.assertEqual(settings.history_size, 100)
        self.assertEqual(settings.http_timeout, 30)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_dotenv_file_in_config_dir(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            Path(temp_dir, ".env").write_text("TOKSTAT_HISTORY_SIZE=7\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {}, clear=True):
                settings = load_settings(temp_dir)
        self.assertEqual(settings.history_size, 7)


if __name__ == "__main__":
    unittest.main()
