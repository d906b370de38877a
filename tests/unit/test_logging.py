"""
Unit Tests for Logging Configuration
====================================

Unit tests for the stdlib logging dictionary built from settings.
"""

from stackpaint.config.logging import QUIET_LOGGERS, get_logging_config


class TestLoggingConfig:
    """Test logging dictConfig generation."""

    def test_console_only_without_log_file(self, test_settings):
        config = get_logging_config(test_settings)
        assert list(config["handlers"]) == ["console"]
        assert config["loggers"][""]["handlers"] == ["console"]
        assert config["loggers"][""]["level"] == "DEBUG"
        assert "timestamped" not in config["formatters"]

    def test_log_file_adds_rotating_handler(self, test_settings, tmp_path):
        log_file = tmp_path / "logs" / "stackpaint.log"
        settings = test_settings.model_copy(update={"log_file": log_file})
        config = get_logging_config(settings)

        assert config["handlers"]["file"]["class"] == "logging.handlers.RotatingFileHandler"
        assert config["handlers"]["file"]["filename"] == str(log_file)
        assert config["loggers"][""]["handlers"] == ["console", "file"]
        assert log_file.parent.is_dir()

    def test_third_party_loggers_quietened(self, test_settings):
        loggers = get_logging_config(test_settings)["loggers"]
        for name in QUIET_LOGGERS:
            assert loggers[name]["level"] == "WARNING"
