import io
import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from tube_json.config import DEFAULT_USER_AGENT, Settings
from tube_json.logging_utils import YtDlpLogger, configure_logging


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.user_agent, DEFAULT_USER_AGENT)
        self.assertEqual(settings.timeout_seconds, 30.0)
        self.assertEqual(settings.service_index, 0)
        self.assertIsNone(settings.resolved_cookies_file)

    def test_environment_prefix(self):
        env = {
            "TUBE_JSON_TIMEOUT_SECONDS": "5",
            "TUBE_JSON_SEARCH_MAX_RESULTS": "7",
            "TUBE_JSON_LOG_LEVEL": "debug",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.timeout_seconds, 5.0)
        self.assertEqual(settings.search_max_results, 7)
        self.assertEqual(settings.log_level, "debug")

    def test_cookies_file_must_exist(self):
        with tempfile.TemporaryDirectory() as tmp:
            cookies = Path(tmp) / "cookies.txt"
            settings = Settings(_env_file=None, cookies_file=cookies)
            self.assertIsNone(settings.resolved_cookies_file)

            cookies.write_text("# Netscape HTTP Cookie File\n", encoding="utf-8")
            self.assertEqual(settings.resolved_cookies_file, cookies)


class TestLogging(unittest.TestCase):
    def tearDown(self):
        logger = logging.getLogger("tube_json")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    def test_configure_logging_replaces_handlers(self):
        stream = io.StringIO()
        configure_logging("info", stream=io.StringIO())
        configure_logging("info", stream=stream)

        logger = logging.getLogger("tube_json")
        self.assertEqual(len(logger.handlers), 1)
        logging.getLogger("tube_json.engine").info("hello")
        self.assertIn("| INFO | tube_json.engine | hello", stream.getvalue())

    def test_yt_dlp_logger_routes_debug_prefix(self):
        target = mock.Mock()
        adapter = YtDlpLogger(target)
        adapter.debug("[debug] Python 3")
        adapter.debug("[youtube] abc: Downloading webpage")
        target.debug.assert_called_once_with("Python 3")
        target.info.assert_called_once_with("[youtube] abc: Downloading webpage")
