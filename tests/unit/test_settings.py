"""Unit tests for settings singleton"""

import pytest
from xconfscreens.common.config import Config
from xconfscreens.common.settings import Settings, settings


class TestSettingsSingleton:
    """Test Settings singleton pattern"""

    def test_singleton_same_instance(self, reset_settings):
        """Test that Settings() returns same instance"""
        s1 = Settings()
        s2 = Settings()
        assert s1 is s2

    def test_global_settings_is_singleton(self, reset_settings):
        """Test that global 'settings' is the singleton"""
        s = Settings()
        assert settings is s


class TestSettingsConstants:
    """Test that all constants are accessible"""

    def test_library_constants(self):
        """Test nvidia-cfg constants"""
        assert settings.NVCFG_LIB_NAME == "libnvidia-cfg.so.1"
        assert settings.DISPLAY_MASK_BITS == 32

    def test_xconfig_constants(self):
        """Test X configuration constants"""
        assert settings.CLONE_SUFFIX == " (2nd)"
        assert settings.DEFAULT_DEPTH == 24
        assert settings.XINERAMA_OPTION == "Xinerama"
        assert settings.DEFAULT_LAYOUT_NAME == "Layout0"


class TestSettingsInitialization:
    """Test settings initialization with config"""

    def test_initialize_with_config(self, reset_settings, sample_config):
        """Test settings can be initialized with config"""
        settings.initialize(sample_config)

        assert settings.config is sample_config

    def test_config_property_before_init_raises(self, reset_settings):
        """Test accessing config before initialization raises error"""
        with pytest.raises(RuntimeError, match="Settings not initialized"):
            _ = settings.config

    def test_initialize_multiple_times(self, reset_settings, sample_config):
        """Test that initialize can be called multiple times"""
        settings.initialize(sample_config)
        config1 = settings.config

        different_config = Config(
            xconfig=sample_config.xconfig,
            hardware=sample_config.hardware,
            logging=sample_config.logging,
        )

        settings.initialize(different_config)
        config2 = settings.config

        assert config2 is different_config
        assert config2 is not config1
