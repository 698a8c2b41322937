"""Pytest configuration and shared fixtures for xconfscreens tests

This module provides common fixtures used across the unit tests:
small in-memory X configuration documents and a fake GPU discovery.
"""

import logging
from pathlib import Path
from typing import Callable, Generator, List, Optional, Tuple

import pytest

from xconfscreens.common.config import Config, ConfigLoader
from xconfscreens.common.settings import settings
from xconfscreens.common.types import HardwareUnavailableError
from xconfscreens.hardware.devices import DetectedDevice
from xconfscreens.multiscreen import editors
from xconfscreens.multiscreen.adjacency import adjacencies_create
from xconfscreens.xconfig.model import Configuration, Device, Display, Layout, Monitor, Screen

# (screen identifier, BusID or None)
ScreenSpec = Tuple[str, Optional[str]]


@pytest.fixture
def sample_config() -> Config:
    """Load the sample configuration shipped at the repository root

    Returns:
        Config object with sample values
    """
    config_path = Path(__file__).parent.parent / "config.yml"
    if not config_path.exists():
        pytest.skip("config.yml not found - required for this test")
    return ConfigLoader.config_load(config_path)


@pytest.fixture
def reset_settings() -> Generator[None, None, None]:
    """Reset settings singleton between tests

    This fixture ensures each test gets a fresh Settings instance.
    """
    settings._initialized = False
    settings._config = None
    yield
    settings._initialized = False
    settings._config = None


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Setup logging for tests"""
    caplog.set_level(logging.DEBUG)


@pytest.fixture
def document_build() -> Callable[..., Tuple[Configuration, Layout]]:
    """Factory for a document with one Device and Monitor per screen

    Usage:
        config, layout = document_build(("A", "PCI:1:0:0"), ("B", None))
    """

    def _build(*screens: ScreenSpec) -> Tuple[Configuration, Layout]:
        config = Configuration()
        for index, (name, busid) in enumerate(screens):
            device = Device(identifier=f"Device{index}", driver="nvidia", busid=busid)
            monitor = Monitor(identifier=f"Monitor{index}")
            config.devices.append(device)
            config.monitors.append(monitor)
            config.screens.append(
                Screen(
                    identifier=name,
                    device=device,
                    device_name=device.identifier,
                    monitor=monitor,
                    monitor_name=monitor.identifier,
                    defaultdepth=24,
                    displays=[Display(depth=24, modes=["1920x1080"])],
                )
            )
        layout = Layout(identifier="Layout0")
        config.layouts.append(layout)
        adjacencies_create(config, layout)
        return config, layout

    return _build


@pytest.fixture
def gpus_install(monkeypatch) -> Callable[..., List[int]]:
    """Factory replacing GPU discovery in the editors

    Usage:
        calls = gpus_install((1, 0), (2, 0))   # two GPUs
        calls = gpus_install()                 # hardware unavailable

    Returns:
        A list that receives one entry per discovery call
    """

    def _install(*bus_slots: Tuple[int, int]) -> List[int]:
        calls: List[int] = []

        def _fake_discover(nvidia_cfg_path: Optional[str] = None) -> List[DetectedDevice]:
            calls.append(1)
            if not bus_slots:
                raise HardwareUnavailableError("no library")
            return [
                DetectedDevice(bus=bus, slot=slot, name=f"GPU {index}", crtcs=2)
                for index, (bus, slot) in enumerate(bus_slots)
            ]

        monkeypatch.setattr(editors, "devices_discover", _fake_discover)
        return calls

    return _install


def pytest_configure(config) -> None:
    """Register custom pytest markers used by this test suite."""
    config.addinivalue_line("markers", "requires_nvidia: mark test as requiring libnvidia-cfg")
