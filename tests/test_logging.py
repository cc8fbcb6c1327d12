import json
import logging
from unittest.mock import patch

from pinvault.logging import TEXT_FORMAT, configure_logging, reconfigure


class TestConfigureLogging:
    def test_json_format(self):
        with patch("pinvault.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = True
            configure_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        from pythonjsonlogger.json import JsonFormatter

        assert isinstance(handler.formatter, JsonFormatter)

    def test_text_format(self):
        with patch("pinvault.logging.settings") as mock_settings:
            mock_settings.log_level = "debug"
            mock_settings.log_json = False
            configure_logging()

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].formatter._fmt == TEXT_FORMAT

    def test_unknown_level_falls_back_to_info(self):
        with patch("pinvault.logging.settings") as mock_settings:
            mock_settings.log_level = "chatty"
            mock_settings.log_json = False
            configure_logging()

        assert logging.getLogger().level == logging.INFO

    def test_quiets_http_client_loggers(self):
        with patch("pinvault.logging.settings") as mock_settings:
            mock_settings.log_level = "DEBUG"
            mock_settings.log_json = False
            reconfigure()

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_http_client_loggers_follow_stricter_root(self):
        with patch("pinvault.logging.settings") as mock_settings:
            mock_settings.log_level = "ERROR"
            mock_settings.log_json = False
            configure_logging()

        assert logging.getLogger("httpx").level == logging.ERROR

    def test_json_records_carry_service(self):
        with patch("pinvault.logging.settings") as mock_settings:
            mock_settings.log_level = "INFO"
            mock_settings.log_json = True
            configure_logging()

        formatter = logging.getLogger().handlers[0].formatter
        record = logging.LogRecord("pinvault.services.pin_service", logging.INFO, __file__, 1, "PIN verified", None, None)
        payload = json.loads(formatter.format(record))
        assert payload["service"] == "pinvault"
        assert payload["level"] == "INFO"
        assert payload["message"] == "PIN verified"
