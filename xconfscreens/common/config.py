"""Configuration file loading and management"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_XCONFIG_PATH = "/etc/X11/xorg.conf"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class XConfigFileConfig:
    """Location of the X configuration document being edited"""
    path: str
    backup: bool  # Write <path>.backup before overwriting


@dataclass
class HardwareConfig:
    """Hardware query settings"""
    nvidia_cfg_path: Optional[str]  # Directory holding libnvidia-cfg.so.1


@dataclass
class LoggingConfig:
    """Logging configuration settings"""
    level: str
    file: Optional[str]
    format: str


@dataclass
class Config:
    """Complete application configuration"""
    xconfig: XConfigFileConfig
    hardware: HardwareConfig
    logging: LoggingConfig


class ConfigLoader:
    """Loads and parses configuration from YAML files"""

    DEFAULT_CONFIG_PATHS = [
        "config.yml",
        "~/.config/xconfscreens/config.yml",
        "/etc/xconfscreens/config.yml",
    ]

    @staticmethod
    def configFile_find() -> Optional[Path]:
        """
        Find configuration file in standard locations

        Returns:
            Path to config file, or None if not found
        """
        for config_path in ConfigLoader.DEFAULT_CONFIG_PATHS:
            path = Path(config_path).expanduser().resolve()
            if path.exists() and path.is_file():
                return path
        return None

    @staticmethod
    def yaml_load(file_path: Path) -> Dict[str, Any]:
        """
        Load YAML configuration file

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If file does not exist
            yaml.YAMLError: If file is not valid YAML
        """
        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        # An empty file means "all defaults"
        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {file_path} must contain a YAML dictionary")

        return data

    @staticmethod
    def config_parse(data: Dict[str, Any]) -> Config:
        """
        Parse configuration dictionary into Config object

        Every section and key is optional; missing values take defaults.

        Args:
            data: Raw configuration dictionary

        Returns:
            Parsed Config object

        Raises:
            ValueError: If a section is present but is not a mapping
        """
        for section in ("xconfig", "hardware", "logging"):
            if data.get(section) is not None and not isinstance(data[section], dict):
                raise ValueError(f"Config section '{section}' must be a dictionary")

        xconfig_data = data.get("xconfig") or {}
        xconfig = XConfigFileConfig(
            path=xconfig_data.get("path", DEFAULT_XCONFIG_PATH),
            backup=bool(xconfig_data.get("backup", True)),
        )

        hardware_data = data.get("hardware") or {}
        hardware = HardwareConfig(
            nvidia_cfg_path=hardware_data.get("nvidia_cfg_path"),
        )

        logging_data = data.get("logging") or {}
        logging = LoggingConfig(
            level=logging_data.get("level", "WARNING"),
            file=logging_data.get("file"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
        )

        return Config(
            xconfig=xconfig,
            hardware=hardware,
            logging=logging,
        )

    @staticmethod
    def config_load(file_path: Optional[Path] = None) -> Config:
        """
        Load configuration from file

        Args:
            file_path: Optional path to config file. If None, searches standard
                locations and falls back to built-in defaults when none exists.

        Returns:
            Parsed Config object

        Raises:
            FileNotFoundError: If an explicitly given config file does not exist
            ValueError: If config file is invalid
        """
        if file_path is None:
            file_path = ConfigLoader.configFile_find()
            if file_path is None:
                return ConfigLoader.config_parse({})

        data = ConfigLoader.yaml_load(file_path)
        return ConfigLoader.config_parse(data)

    @staticmethod
    def configWithOverrides_load(
        file_path: Optional[Path] = None,
        **overrides: Any
    ) -> Config:
        """
        Load configuration and apply command-line overrides

        Args:
            file_path: Optional path to config file
            **overrides: Key-value pairs to override config values

        Returns:
            Config object with overrides applied

        Example:
            config = ConfigLoader.configWithOverrides_load(
                xconfig_path="/tmp/xorg.conf",
                nvidia_cfg_path="/usr/lib/nvidia"
            )
        """
        config = ConfigLoader.config_load(file_path)

        if overrides.get("xconfig_path") is not None:
            config.xconfig.path = overrides["xconfig_path"]
        if overrides.get("backup") is not None:
            config.xconfig.backup = overrides["backup"]
        if overrides.get("nvidia_cfg_path") is not None:
            config.hardware.nvidia_cfg_path = overrides["nvidia_cfg_path"]
        if overrides.get("log_level") is not None:
            config.logging.level = overrides["log_level"]

        return config
