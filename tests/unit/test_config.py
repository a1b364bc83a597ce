"""
Unit tests for the configuration system.
"""

import json
import logging
import pytest
import torch
import yaml

from faodag.utils.logging import setup_logging
from faodag.utils.config import (
    FaoDagConfig,
    EngineConfig,
    get_config,
    set_config,
    load_config,
)


class TestDefaults:
    """Test defaults when no configuration file exists."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = FaoDagConfig(str(tmp_path / "absent.json"))

        assert config.engine.validate_graph is True
        assert config.engine.dtype == "float64"
        assert config.engine.device == "cpu"
        assert config.profiling.report_on_close is True
        assert config.profiling.track_memory is False
        assert config.logging.level == "INFO"

    def test_torch_dtype(self):
        assert EngineConfig().torch_dtype() == torch.float64
        assert EngineConfig(dtype="float32").torch_dtype() == torch.float32

    def test_unknown_dtype(self):
        with pytest.raises(ValueError, match="Unknown torch dtype"):
            EngineConfig(dtype="quaternion").torch_dtype()

    def test_non_dtype_attribute_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(dtype="zeros").torch_dtype()


class TestFileLoading:
    """Test JSON and YAML loading."""

    def test_load_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "engine": {"validate_graph": False, "dtype": "float32"},
            "profiling": {"track_memory": True},
        }))

        config = load_config(str(path))

        assert config.engine.validate_graph is False
        assert config.engine.dtype == "float32"
        assert config.profiling.track_memory is True
        assert config.is_memory_tracking_enabled()
        assert not config.is_validation_enabled()

    def test_load_yaml(self, tmp_path, restore_logging):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: DEBUG\nprofiling:\n  report_on_close: false\n")

        config = load_config(str(path))

        assert config.logging.level == "DEBUG"
        assert config.profiling.report_on_close is False

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(str(path)).engine.validate_graph is True

    def test_invalid_json_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")

        assert load_config(str(path)).engine.dtype == "float64"

    def test_config_from_environment_path(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"engine": {"device": "meta"}}))
        monkeypatch.setenv("FAODAG_CONFIG", str(path))

        assert FaoDagConfig().engine.device == "meta"


class TestEnvironmentOverrides:
    """Test FAODAG_* environment variables."""

    def test_disable_validation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FAODAG_VALIDATE_GRAPH", "0")
        config = FaoDagConfig(str(tmp_path / "absent.json"))
        assert config.engine.validate_graph is False

    def test_enable_validation_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"engine": {"validate_graph": False}}))
        monkeypatch.setenv("FAODAG_VALIDATE_GRAPH", "yes")

        assert load_config(str(path)).engine.validate_graph is True

    def test_unrecognized_flag_value_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FAODAG_VALIDATE_GRAPH", "maybe")
        config = FaoDagConfig(str(tmp_path / "absent.json"))
        assert config.engine.validate_graph is True

    def test_track_memory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FAODAG_TRACK_MEMORY", "true")
        config = FaoDagConfig(str(tmp_path / "absent.json"))
        assert config.profiling.track_memory is True

    def test_log_level(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FAODAG_LOG_LEVEL", "WARNING")
        config = FaoDagConfig(str(tmp_path / "absent.json"))
        assert config.logging.level == "WARNING"


class TestLoggingSection:
    """Test that the logging section configures the faodag logger."""

    def test_level_from_file(self, tmp_path, restore_logging):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: DEBUG\n")

        FaoDagConfig(str(path))

        assert restore_logging.level == logging.DEBUG

    def test_file_logging(self, tmp_path, restore_logging):
        log_file = tmp_path / "engine.log"
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"logging": {
            "level": "WARNING",
            "enable_file_logging": True,
            "log_file": str(log_file),
        }}))

        FaoDagConfig(str(path))
        restore_logging.warning("written to file")
        for handler in restore_logging.handlers:
            handler.flush()

        assert restore_logging.level == logging.WARNING
        assert any(isinstance(h, logging.FileHandler) for h in restore_logging.handlers)
        assert "written to file" in log_file.read_text()

    def test_environment_level_wins_over_file(self, tmp_path, monkeypatch, restore_logging):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: DEBUG\n")
        monkeypatch.setenv("FAODAG_LOG_LEVEL", "ERROR")

        FaoDagConfig(str(path))

        assert restore_logging.level == logging.ERROR

    def test_no_section_leaves_logger_alone(self, tmp_path, restore_logging):
        setup_logging("WARNING")

        FaoDagConfig(str(tmp_path / "absent.json"))

        assert restore_logging.level == logging.WARNING

    def test_apply_after_change(self, tmp_path, restore_logging):
        config = FaoDagConfig(str(tmp_path / "absent.json"))
        config.logging.level = "CRITICAL"
        config.apply_logging()

        assert restore_logging.level == logging.CRITICAL


class TestSaveAndGlobal:
    """Test persistence and the global instance."""

    def test_save_json_round_trip(self, tmp_path):
        path = tmp_path / "saved.json"
        config = FaoDagConfig(str(path))
        config.engine.dtype = "float32"
        config.save_config()

        data = json.loads(path.read_text())
        assert data["engine"]["dtype"] == "float32"
        assert load_config(str(path)).engine.dtype == "float32"

    def test_save_yaml(self, tmp_path):
        path = tmp_path / "saved.yml"
        config = FaoDagConfig(str(path))
        config.profiling.track_memory = True
        config.save_config()

        data = yaml.safe_load(path.read_text())
        assert data["profiling"]["track_memory"] is True

    def test_global_config_is_cached(self):
        assert get_config() is get_config()

    def test_set_config(self, tmp_path):
        custom = FaoDagConfig(str(tmp_path / "absent.json"))
        set_config(custom)
        assert get_config() is custom

        set_config(None)
        assert get_config() is not custom
