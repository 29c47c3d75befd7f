# config.py

import copy
import logging
import tomli, tomli_w
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Union
from platformdirs import user_cache_path, user_config_path, user_data_path

from timedwall.errors import TimedWallError
from timedwall.validate import TimelineValidator, ValidationResult

APP_NAME = "timedwall"

DEFAULT_CONFIG = {
    "timeline": {
        "path": "",
    },
    "daemon": {
        "loop_wait": 5,
        "temp_image": "",
    },
    "engine": {
        "command": "",
    },
}


class ConfigError(TimedWallError):
    """The configuration file could not be read or written"""


class ConfigManager:
    """Manages the global configuration file"""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        self.logger = logging.getLogger("timedwall.config")
        self.logger.debug("🔧 Initializing ConfigManager")

        self.validator = TimelineValidator()

        # Get directories and paths
        if config_dir is None:
            self.config_dir = user_config_path(appname=APP_NAME, appauthor=False, ensure_exists=True)
        else:
            self.config_dir = Path(config_dir)
            self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file_path = self.config_dir / "config.toml"

        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Loads the global configuration file"""

        self.logger.debug("🔁 Loading configuration")

        # Create a default config file if it doesn't exist or is empty
        if not self.config_file_path.exists() or self.config_file_path.stat().st_size == 0:
            self.logger.debug("⚠️ Config file not found, creating default")
            self._create_default_config()

        try:
            with open(self.config_file_path, "rb") as f:
                loaded = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            self.logger.error(f"💀 Error loading configuration: {str(e)}")
            raise ConfigError(f"Could not load {self.config_file_path}: {e}")

        # Fill in anything missing from the defaults
        config = copy.deepcopy(DEFAULT_CONFIG)
        for section, values in loaded.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values

        self.config = config
        return config

    def validate_config(self, config: Optional[Dict[str, Any]] = None) -> ValidationResult:
        """Validates the configuration and returns validation results"""
        return self.validator.validate_config(self.config if config is None else config)

    def _create_default_config(self) -> None:
        """Creates a default configuration file"""
        try:
            with open(self.config_file_path, "wb") as f:
                tomli_w.dump(DEFAULT_CONFIG, f)
            self.logger.debug("✅ Default configuration created")
        except OSError as e:
            self.logger.error(f"💀 Error creating default config: {str(e)}")
            raise ConfigError(f"Could not create {self.config_file_path}: {e}")

    def _save_config(self, config: dict) -> bool:
        """Saves the configuration to the global config file"""

        self.logger.debug("🔁 Saving configuration")

        # Validate the config before saving
        validation = self.validate_config(config)
        if validation.failed:
            self.logger.error("💀 Configuration validation failed")
            for key, result in validation.errors.items():
                self.logger.error(f"    ❗ {key.upper()}: {result}")
            return False

        # Log any warnings
        for key, result in validation.warnings.items():
            self.logger.warning(f"    ⚠️ {key.upper()}: {result}")

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "wb") as f:
                tomli_w.dump(config, f)
        except OSError as e:
            self.logger.error(f"💀 Error saving configuration: {str(e)}")
            return False

        self.config = config
        self.logger.debug("✅ Configuration saved")
        return True

    def set_value(self, key: str, value: Any) -> bool:
        """Sets a "section.key" value and saves the config

        Args:
            key (str): Dotted key, e.g. "daemon.loop_wait"
            value (Any): The new value
        """
        if "." not in key:
            raise ConfigError(f"Expected a key of the form section.name, got {key!r}")
        section, name = key.split(".", 1)
        if section not in DEFAULT_CONFIG or name not in DEFAULT_CONFIG[section]:
            raise ConfigError(f"Unknown configuration key: {key}")

        # Keep the type of the default
        default = DEFAULT_CONFIG[section][name]
        if isinstance(default, (int, float)) and isinstance(value, str):
            try:
                value = float(value) if "." in value else int(value)
            except ValueError:
                raise ConfigError(f"{key} must be a number, got {value!r}")

        config = copy.deepcopy(self.config)
        config.setdefault(section, {})[name] = value
        return self._save_config(config)

    def get_timeline_path(self) -> Optional[Path]:
        path = self.config["timeline"].get("path", "")
        return Path(path).expanduser() if path else None

    def get_loop_wait(self) -> timedelta:
        return timedelta(seconds=self.config["daemon"].get("loop_wait", DEFAULT_CONFIG["daemon"]["loop_wait"]))

    def get_temp_image(self) -> Path:
        """Where blended transition frames are written"""
        path = self.config["daemon"].get("temp_image", "")
        if path:
            return Path(path).expanduser()
        return user_cache_path(appname=APP_NAME, appauthor=False, ensure_exists=True) / "blended.jpg"

    def get_engine_command(self) -> Optional[str]:
        return self.config["engine"].get("command") or None

    @staticmethod
    def get_logs_dir() -> Path:
        return user_data_path(appname=APP_NAME, appauthor=False, ensure_exists=True) / "logs"
