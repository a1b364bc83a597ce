"""
Configuration system for the FAO DAG engine.

Settings are grouped into dataclass sections and loaded from a single
JSON or YAML file, with a few environment variable overrides.
"""

import json
import os
from typing import Dict, Any, Optional
from pathlib import Path
from dataclasses import dataclass, asdict

import torch
import yaml

from .logging import get_logger, setup_logging

logger = get_logger(__name__)

_TRUE_VALUES = ("1", "true", "yes")
_FALSE_VALUES = ("0", "false", "no")


@dataclass
class EngineConfig:
    """Evaluation engine configuration."""

    validate_graph: bool = True
    dtype: str = "float64"
    device: str = "cpu"

    def torch_dtype(self) -> torch.dtype:
        """Resolve the configured dtype name to a torch dtype."""
        dtype = getattr(torch, self.dtype, None)
        if not isinstance(dtype, torch.dtype):
            raise ValueError(f"Unknown torch dtype '{self.dtype}'")
        return dtype


@dataclass
class ProfilingConfig:
    """Instrumentation configuration."""

    report_on_close: bool = True
    track_memory: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    enable_file_logging: bool = False
    log_file: str = "faodag.log"


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name, "").lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


class FaoDagConfig:
    """
    Unified configuration manager.

    Loads one configuration file and exposes its ``engine``, ``profiling``
    and ``logging`` sections as dataclasses. Missing keys fall back to
    the dataclass defaults.
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, uses
                ``FAODAG_CONFIG`` or the default location.
        """
        self.config_file = self._get_config_file_path(config_file)
        self._config_data = self._load_config()

        self.engine = self._create_engine_config()
        self.profiling = self._create_profiling_config()
        self.logging = self._create_logging_config()

        if "logging" in self._config_data:
            self.apply_logging()

    def _get_config_file_path(self, config_file: Optional[str]) -> Path:
        """Get the configuration file path."""
        if config_file:
            return Path(config_file)

        env_file = os.getenv("FAODAG_CONFIG")
        if env_file:
            return Path(env_file)

        # Default location: try YAML first, then JSON
        config_dir = Path(__file__).parent
        yaml_config = config_dir / "faodag_config.yaml"
        json_config = config_dir / "faodag_config.json"

        if yaml_config.exists():
            return yaml_config
        return json_config

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file (JSON or YAML)."""
        if not self.config_file.exists():
            logger.debug(f"Configuration file {self.config_file} not found, using defaults")
            return {}

        try:
            with open(self.config_file, "r") as f:
                if self.config_file.suffix.lower() in (".yaml", ".yml"):
                    config_data = yaml.safe_load(f)
                else:
                    config_data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load configuration from {self.config_file}: {e}")
            return {}

        logger.info(f"Loaded configuration from {self.config_file}")
        return config_data or {}

    def _create_engine_config(self) -> EngineConfig:
        """Create engine configuration from loaded data."""
        engine_data = self._config_data.get("engine", {})

        validate = engine_data.get("validate_graph", True)
        env_validate = _env_flag("FAODAG_VALIDATE_GRAPH")
        if env_validate is not None:
            validate = env_validate

        return EngineConfig(
            validate_graph=validate,
            dtype=engine_data.get("dtype", "float64"),
            device=engine_data.get("device", "cpu"),
        )

    def _create_profiling_config(self) -> ProfilingConfig:
        """Create profiling configuration from loaded data."""
        prof_data = self._config_data.get("profiling", {})

        track_memory = prof_data.get("track_memory", False)
        env_track = _env_flag("FAODAG_TRACK_MEMORY")
        if env_track is not None:
            track_memory = env_track

        return ProfilingConfig(
            report_on_close=prof_data.get("report_on_close", True),
            track_memory=track_memory,
        )

    def _create_logging_config(self) -> LoggingConfig:
        """Create logging configuration from loaded data."""
        log_data = self._config_data.get("logging", {})

        return LoggingConfig(
            level=os.getenv("FAODAG_LOG_LEVEL", log_data.get("level", "INFO")),
            enable_file_logging=log_data.get("enable_file_logging", False),
            log_file=log_data.get("log_file", "faodag.log"),
        )

    def apply_logging(self) -> None:
        """
        Reconfigure the ``faodag`` logger from the ``logging`` section.

        Runs at construction when the loaded file has a ``logging``
        section; call it directly after changing ``self.logging``.
        """
        log_file = self.logging.log_file if self.logging.enable_file_logging else None
        setup_logging(self.logging.level, log_file)

    def is_validation_enabled(self) -> bool:
        """Check if graph validation runs at engine construction."""
        return self.engine.validate_graph

    def is_memory_tracking_enabled(self) -> bool:
        """Check if the profiler samples process memory."""
        return self.profiling.track_memory

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a plain dictionary."""
        return {
            "version": "1.0",
            "engine": asdict(self.engine),
            "profiling": asdict(self.profiling),
            "logging": asdict(self.logging),
        }

    def save_config(self) -> None:
        """Save current configuration to file."""
        config_data = self.to_dict()

        with open(self.config_file, "w") as f:
            if self.config_file.suffix.lower() in (".yaml", ".yml"):
                yaml.safe_dump(config_data, f, sort_keys=False)
            else:
                json.dump(config_data, f, indent=2)
        logger.info(f"Configuration saved to {self.config_file}")


# Global configuration instance
_global_config: Optional[FaoDagConfig] = None


def get_config() -> FaoDagConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = FaoDagConfig()
    return _global_config


def set_config(config: Optional[FaoDagConfig]) -> None:
    """Set the global configuration instance (None resets to defaults)."""
    global _global_config
    _global_config = config


def load_config(config_file: str) -> FaoDagConfig:
    """Load configuration from a specific file."""
    return FaoDagConfig(config_file)
