"""
Unit tests for altibase_exporter.config

Tests DisableSet parsing and ExporterConfig construction from environment.
"""

from unittest.mock import patch

from altibase_exporter.config import (
    DEFAULT_DRIVER,
    DisableSet,
    ExporterConfig,
    env_int,
)


class TestDisableSetParse:
    """Test DisableSet.parse"""

    def test_none_returns_empty(self):
        """Test None parses to an empty set"""
        # Act & Assert
        assert len(DisableSet.parse(None)) == 0

    def test_blank_returns_empty(self):
        """Test blank input parses to an empty set"""
        # Act & Assert
        assert not DisableSet.parse("   ")

    def test_single(self):
        """Test a single key"""
        # Act
        disabled = DisableSet.parse("sysstat")

        # Assert
        assert list(disabled) == ["sysstat"]

    def test_multiple_trimmed(self):
        """Test whitespace around keys is trimmed"""
        # Act
        disabled = DisableSet.parse(" sysstat , replication_gap ,gc_gap")

        # Assert
        assert disabled == DisableSet(["sysstat", "replication_gap", "gc_gap"])

    def test_empty_segments_dropped(self):
        """Test empty tokens are ignored"""
        # Act
        disabled = DisableSet.parse("sysstat,,  ,replication_gap,")

        # Assert
        assert disabled.serialize() == "replication_gap,sysstat"

    def test_case_sensitive(self):
        """Test keys are matched exactly"""
        # Act
        disabled = DisableSet.parse("Sysstat")

        # Assert
        assert "sysstat" not in disabled
        assert "Sysstat" in disabled


class TestDisableSetCovers:
    """Test DisableSet.covers"""

    def test_all_keys_disabled(self):
        """Test covers is true only when every key is disabled"""
        # Arrange
        disabled = DisableSet.parse("logfile_oldest,logfile_current")

        # Act & Assert
        assert disabled.covers(["logfile_oldest", "logfile_current"]) is True
        assert disabled.covers(["logfile_oldest", "logfile_gap"]) is False

    def test_no_keys(self):
        """Test an empty key list is never covered"""
        # Act & Assert
        assert DisableSet.parse("sysstat").covers([]) is False


class TestExporterConfig:
    """Test ExporterConfig.from_env"""

    def test_defaults(self):
        """Test defaults with an empty environment"""
        # Act
        config = ExporterConfig.from_env({})

        # Assert
        assert config.server == "127.0.0.1"
        assert config.port == 20300
        assert config.user == "sys"
        assert config.password == "manager"
        assert config.database == "mydb"
        assert config.driver == DEFAULT_DRIVER
        assert config.listen_port == 9399
        assert config.connect_timeout == 10
        assert config.queries_file is None
        assert not config.disabled_metrics
        assert config.log_level == "INFO"

    def test_from_environment(self):
        """Test values are read from the environment"""
        # Arrange
        environ = {
            "ALTIBASE_SERVER": " db1 ",
            "ALTIBASE_PORT": "20301",
            "ALTIBASE_USER": "monitor",
            "ALTIBASE_PASSWORD": "secret",
            "ALTIBASE_DATABASE": "prod",
            "WEB_LISTEN_PORT": "9400",
            "ALTIBASE_CONNECT_TIMEOUT": "5",
            "ALTIBASE_QUERIES_FILE": "/etc/altibase/queries.yaml",
            "ALTIBASE_DISABLED_METRICS": "sysstat,gc_gap",
            "LOG_LEVEL": "DEBUG",
        }

        # Act
        config = ExporterConfig.from_env(environ)

        # Assert
        assert config.server == "db1"
        assert config.port == 20301
        assert config.user == "monitor"
        assert config.password == "secret"
        assert config.database == "prod"
        assert config.listen_port == 9400
        assert config.connect_timeout == 5
        assert config.queries_file == "/etc/altibase/queries.yaml"
        assert config.disabled_metrics == DisableSet.parse("gc_gap,sysstat")
        assert config.log_level == "DEBUG"

    def test_password_not_in_repr(self):
        """Test the password is kept out of repr"""
        # Act
        config = ExporterConfig.from_env({"ALTIBASE_PASSWORD": "hunter2"})

        # Assert
        assert "hunter2" not in repr(config)

    @patch("altibase_exporter.config.logger")
    def test_invalid_integer_falls_back(self, mock_logger):
        """Test an invalid integer logs a warning and uses the default"""
        # Act
        value = env_int({"ALTIBASE_PORT": "abc"}, "ALTIBASE_PORT", 20300)

        # Assert
        assert value == 20300
        mock_logger.warning.assert_called_once()
        assert "ALTIBASE_PORT" in mock_logger.warning.call_args[0][0]
