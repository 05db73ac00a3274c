"""
Unit tests for configuration management.
"""

import json

import pytest

from pcviz.core.config import Config, DEFAULT_IHOP_URL, get_config, reset_config
from pcviz.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PCVIZ_ENV", "IHOP_URL", "HTTP_TIMEOUT", "COCITATION_MIN_EDGE",
                 "COCITATION_MIN_NODE", "MAX_CONCURRENT_SCRAPES", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.mark.unit
class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.env.value == "development"
        assert config.ihop_url == DEFAULT_IHOP_URL
        assert config.cocitation_min_edge == 3
        assert config.cocitation_min_node == 5
        assert config.max_concurrent_scrapes == 8
        assert config["http_timeout"] == 30.0

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("COCITATION_MIN_EDGE", "7")
        monkeypatch.setenv("IHOP_URL", "http://mirror.test/iHOP/")
        config = Config()
        assert config.cocitation_min_edge == 7
        assert config.ihop_url == "http://mirror.test/iHOP/"

    def test_testing_overrides(self):
        config = Config("testing")
        assert config.http_timeout == 5.0
        assert config.query_max_retries == 1
        assert config.log_level == "DEBUG"

    def test_production_overrides(self):
        config = Config("production")
        assert config.structured_logging is True
        assert config.log_level == "WARNING"

    def test_env_from_variable(self, monkeypatch):
        monkeypatch.setenv("PCVIZ_ENV", "staging")
        assert Config().env.value == "staging"

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("COCITATION_MIN_NODE", "-1")
        with pytest.raises(ConfigurationError) as exc_info:
            Config()
        assert exc_info.value.config_key == "cocitation_min_node"

    def test_invalid_url(self, monkeypatch):
        monkeypatch.setenv("IHOP_URL", "ftp://ihop.test/")
        with pytest.raises(ConfigurationError):
            Config()

    def test_update_revalidates(self):
        config = Config()
        with pytest.raises(ConfigurationError):
            config.update({"max_concurrent_scrapes": 0})

    def test_unknown_key(self):
        config = Config()
        assert config.get("missing", 42) == 42
        assert config.missing is None

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "pcviz.yaml"
        path.write_text("cocitation_min_edge: 2\nprecalculated_folder: /data/precalculated\n")
        config = Config.from_file(str(path))
        assert config.cocitation_min_edge == 2
        assert config.precalculated_folder == "/data/precalculated"

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "pcviz.json"
        path.write_text(json.dumps({"cocitation_min_node": 10}))
        assert Config.from_file(str(path)).cocitation_min_node == 10

    def test_invalid_file_reports_path(self, tmp_path):
        path = tmp_path / "pcviz.yaml"
        path.write_text("http_timeout: 0\n")
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_file(str(path))
        assert exc_info.value.config_file == str(path)

    def test_file_must_be_mapping(self, tmp_path):
        path = tmp_path / "pcviz.yaml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigurationError):
            Config.from_file(str(path))

    def test_save_to_file(self, tmp_path):
        path = tmp_path / "saved.json"
        Config().save_to_file(str(path))
        assert json.loads(path.read_text())["cocitation_min_edge"] == 3

    def test_global_config(self):
        assert get_config() is get_config()
        first = get_config()
        reset_config()
        assert get_config() is not first
