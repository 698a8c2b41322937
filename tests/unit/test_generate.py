"""Unit tests for generated default sections"""

from xconfscreens.xconfig.generate import (
    generateDevice_add,
    generateMonitor_add,
    generateScreen_add,
)
from xconfscreens.xconfig.model import Configuration


class TestGenerateDevice:
    """Test generated Device sections"""

    def test_device_with_location(self):
        """Test a GPU location becomes the BusID"""
        config = Configuration()

        device = generateDevice_add(config, 3, 0, "Quadro P2000", 1)

        assert config.devices == [device]
        assert device.identifier == "Device1"
        assert device.driver == "nvidia"
        assert device.vendor == "NVIDIA Corporation"
        assert device.board == "Quadro P2000"
        assert device.busid == "PCI:3:0:0"

    def test_device_without_location(self):
        """Test BusID stays unset without bus and slot"""
        device = generateDevice_add(Configuration(), None, None, None, 0)
        assert device.busid is None


class TestGenerateMonitor:
    """Test generated Monitor sections"""

    def test_monitor_defaults(self):
        """Test conservative sync ranges and DPMS"""
        config = Configuration()

        monitor = generateMonitor_add(config, 2)

        assert config.monitors == [monitor]
        assert monitor.identifier == "Monitor2"
        assert (monitor.vendor, monitor.model) == ("Unknown", "Unknown")
        assert monitor.horizsync == "28.0 - 33.0"
        assert monitor.vertrefresh == "43.0 - 72.0"
        assert [o.name for o in monitor.options] == ["DPMS"]


class TestGenerateScreen:
    """Test generated Screen sections"""

    def test_screen_owns_new_device_and_monitor(self):
        """Test a screen comes with its own Device and Monitor"""
        config = Configuration()

        screen = generateScreen_add(config, 1, 0, "GPU", 0)

        assert config.screens == [screen]
        assert screen.identifier == "Screen0"
        assert screen.device is config.devices[0]
        assert screen.monitor is config.monitors[0]
        assert screen.device_name == "Device0"
        assert screen.monitor_name == "Monitor0"
        assert screen.defaultdepth == 24
        assert len(screen.displays) == 1
        assert screen.displays[0].depth == 24

    def test_screens_numbered_by_count(self):
        """Test identifiers follow the given count"""
        config = Configuration()
        generateScreen_add(config, 1, 0, "GPU", 0)
        generateScreen_add(config, 2, 0, "GPU", 1)

        assert [s.identifier for s in config.screens] == ["Screen0", "Screen1"]
        assert [d.busid for d in config.devices] == ["PCI:1:0:0", "PCI:2:0:0"]
