"""Application settings singleton - single source of truth for configuration

This module provides a singleton Settings class that consolidates:
1. Constants of the X configuration format and the nvidia-cfg library
2. Runtime configuration from config.yml

Usage:
    from xconfscreens.common.settings import settings

    # Initialize once at startup with loaded config
    config = ConfigLoader.config_load()
    settings.initialize(config)

    # Use anywhere in the application
    identifier = device.identifier + settings.CLONE_SUFFIX
"""

from typing import Optional

from xconfscreens.common.config import Config


class Settings:
    """Singleton settings manager combining config.yml and format constants

    This class provides:
    - Constants shared by the editors, the generator and the hardware query
    - Access to runtime configuration loaded from config.yml
    """

    _instance: Optional["Settings"] = None

    def __new__(cls) -> "Settings":
        """Ensure only one Settings instance exists"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize settings singleton (only runs once)"""
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._config: Optional[Config] = None

    def initialize(self, config: Config) -> None:
        """
        Initialize with loaded configuration

        Args:
            config: Loaded application configuration
        """
        self._config = config

    # =========================================================================
    # nvidia-cfg Library Constants
    # =========================================================================

    NVCFG_LIB_NAME: str = "libnvidia-cfg.so.1"
    """Versioned soname of the NVIDIA hardware configuration library"""

    DISPLAY_MASK_BITS: int = 32
    """Width of the display device bitmask returned by nvCfgGetDisplayDevices"""

    # =========================================================================
    # X Configuration Constants
    # =========================================================================

    CLONE_SUFFIX: str = " (2nd)"
    """Appended to Screen and Device identifiers of a cloned second X screen"""

    DEFAULT_DEPTH: int = 24
    """Default color depth of generated Screen sections"""

    XINERAMA_OPTION: str = "Xinerama"
    """ServerFlags option name controlling the spanning mode"""

    DEFAULT_LAYOUT_NAME: str = "Layout0"
    """Identifier of the ServerLayout created when a document has none"""

    # =========================================================================
    # Runtime Configuration Access
    # =========================================================================

    @property
    def config(self) -> Config:
        """
        Get loaded configuration object

        Raises:
            RuntimeError: If settings were not initialized
        """
        if self._config is None:
            raise RuntimeError("Settings not initialized. Call settings.initialize(config) first.")
        return self._config


# Global singleton instance
settings = Settings()
"""Global settings singleton instance

Import this anywhere in the application:
    from xconfscreens.common.settings import settings
"""
