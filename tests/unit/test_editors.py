"""Unit tests for the multi-screen editors"""

from xconfscreens.common.types import MultiScreenOptions
from xconfscreens.hardware.devices import DetectedDevice
from xconfscreens.multiscreen import editors
from xconfscreens.multiscreen.editors import (
    allGpus_enable,
    onlyOneScreen_apply,
    separateScreens_disable,
    separateScreens_enable,
    xinerama_set,
)
from xconfscreens.xconfig.model import Flags, Option


def _names(config):
    return [s.identifier for s in config.screens]


def _layout_consistent(config, layout):
    """Adjacencies mirror the screen list"""
    assert [a.scrnum for a in layout.adjacencies] == list(range(len(config.screens)))
    for adj, screen in zip(layout.adjacencies, config.screens):
        assert adj.screen is screen
        assert adj.screen_name == screen.identifier


def _no_orphans(config):
    for device in config.devices:
        assert any(s.device is device for s in config.screens)
    for monitor in config.monitors:
        assert any(s.monitor is monitor for s in config.screens)


class TestAllGpusEnable:
    """Test one generated screen per GPU"""

    def test_replaces_screens_with_one_per_gpu(self, document_build, gpus_install):
        """Test existing sections are replaced by generated ones"""
        config, layout = document_build(("Old", "PCI:9:0:0"))
        gpus_install((1, 0), (2, 0))

        assert allGpus_enable(MultiScreenOptions(), config, layout) is True

        assert _names(config) == ["Screen0", "Screen1"]
        assert [d.busid for d in config.devices] == ["PCI:1:0:0", "PCI:2:0:0"]
        assert [d.board for d in config.devices] == ["GPU 0", "GPU 1"]
        assert [m.identifier for m in config.monitors] == ["Monitor0", "Monitor1"]
        _layout_consistent(config, layout)

    def test_hardware_unavailable_fails(self, document_build, gpus_install, caplog):
        """Test discovery failure leaves the document untouched"""
        config, layout = document_build(("Old", "PCI:9:0:0"))
        gpus_install()

        assert allGpus_enable(MultiScreenOptions(), config, layout) is False

        assert _names(config) == ["Old"]
        assert "cannot honor '--enable-all-gpus' option" in caplog.text

    def test_passes_library_path(self, document_build, monkeypatch):
        """Test the configured library directory reaches discovery"""
        seen = []

        def _discover(nvidia_cfg_path=None):
            seen.append(nvidia_cfg_path)
            return [DetectedDevice(bus=1, slot=0, name="GPU")]

        monkeypatch.setattr(editors, "devices_discover", _discover)
        config, layout = document_build(("A", None))

        allGpus_enable(MultiScreenOptions(nvidia_cfg_path="/opt/nvidia"), config, layout)

        assert seen == ["/opt/nvidia"]


class TestSeparateScreensEnable:
    """Test splitting GPUs into two X screens"""

    def test_assigns_missing_busid_and_clones_both(self, document_build, gpus_install):
        """Test a screen without BusID is bound to the next GPU, then both are cloned"""
        config, layout = document_build(("A", "PCI:1:0:0"), ("B", None))
        gpus_install((1, 0), (2, 0))

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is True

        assert _names(config) == ["A", "A (2nd)", "B", "B (2nd)"]
        assert config.screens[2].device.busid == "PCI:2:0:0"
        assert config.screens[3].device.busid == "PCI:2:0:0"
        _layout_consistent(config, layout)

    def test_busids_present_skips_discovery(self, document_build, gpus_install):
        """Test hardware is not queried when every candidate has a BusID"""
        config, layout = document_build(("A", "PCI:1:0:0"), ("B", "PCI:2:0:0"))
        calls = gpus_install()

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is True

        assert calls == []
        assert len(config.screens) == 4

    def test_shared_gpu_not_cloned(self, document_build, gpus_install):
        """Test candidates whose GPU drives another screen are skipped"""
        config, layout = document_build(
            ("A", "PCI:1:0:0"), ("B", "PCI:1:0:0"), ("C", "PCI:1:0:0")
        )
        gpus_install()

        assert separateScreens_enable(MultiScreenOptions(screen="A"), config, layout) is True
        assert _names(config) == ["A", "B", "C"]

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is True
        assert _names(config) == ["A", "B", "C"]

    def test_named_screen_only(self, document_build, gpus_install):
        """Test --screen restricts cloning to that screen"""
        config, layout = document_build(("A", "PCI:1:0:0"), ("B", "PCI:2:0:0"))
        gpus_install()

        assert separateScreens_enable(MultiScreenOptions(screen="b"), config, layout) is True

        assert _names(config) == ["A", "B", "B (2nd)"]
        _layout_consistent(config, layout)

    def test_unknown_named_screen_fails(self, document_build, gpus_install, caplog):
        """Test a missing --screen target is an error"""
        config, layout = document_build(("A", "PCI:1:0:0"))
        gpus_install()

        assert separateScreens_enable(MultiScreenOptions(screen="Nope"), config, layout) is False
        assert "Unable to find screen 'Nope'." in caplog.text

    def test_more_screens_than_gpus(self, document_build, gpus_install):
        """Test candidates beyond the GPU count are not cloned"""
        config, layout = document_build(("A", None), ("B", None))
        gpus_install((5, 0))

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is True

        assert _names(config) == ["A", "A (2nd)", "B"]
        assert config.screens[0].device.busid == "PCI:5:0:0"
        assert config.screens[2].device.busid is None

    def test_reassignment_overrides_existing_busids(self, document_build, gpus_install):
        """Test every candidate is rebound once any BusID is missing"""
        config, layout = document_build(("A", "PCI:7:0:0"), ("B", None))
        gpus_install((1, 0), (2, 0))

        separateScreens_enable(MultiScreenOptions(), config, layout)

        assert config.screens[0].device.busid == "PCI:1:0:0"
        assert config.screens[0].device.board == "GPU 0"

    def test_hardware_unavailable_fails(self, document_build, gpus_install, caplog):
        """Test a missing BusID with no GPU information fails"""
        config, layout = document_build(("A", None))
        gpus_install()

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is False

        assert _names(config) == ["A"]
        assert "cannot honor '--separate-x-screens' option" in caplog.text

    def test_empty_layout_fails(self, document_build, gpus_install):
        """Test there must be something to separate"""
        config, layout = document_build()
        gpus_install()

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is False


class TestSeparateScreensDisable:
    """Test merging X screens that share a GPU"""

    def test_removes_screens_sharing_gpu(self, document_build, gpus_install):
        """Test only the candidate survives on its GPU"""
        config, layout = document_build(
            ("A", "PCI:1:0:0"), ("A2", "PCI:1:0:0"), ("B", "PCI:2:0:0")
        )
        config.devices[0].screen = 0
        config.devices[1].screen = 1

        assert separateScreens_disable(MultiScreenOptions(), config, layout) is True

        assert _names(config) == ["A", "B"]
        assert config.screens[0].device.screen == -1
        _layout_consistent(config, layout)
        _no_orphans(config)

    def test_undoes_enable(self, document_build, gpus_install):
        """Test disable after enable returns to one screen per GPU, and back"""
        config, layout = document_build(("A", None), ("B", None))
        gpus_install((1, 0), (2, 0))

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is True
        assert len(config.screens) == 4

        assert separateScreens_disable(MultiScreenOptions(), config, layout) is True
        assert _names(config) == ["A", "B"]
        assert {s.device.busid for s in config.screens} == {"PCI:1:0:0", "PCI:2:0:0"}
        _no_orphans(config)

        assert separateScreens_enable(MultiScreenOptions(), config, layout) is True
        assert len(config.screens) == 4
        assert len({s.device.busid for s in config.screens}) == 2

    def test_shared_monitor_kept(self, document_build):
        """Test a Monitor still used by a survivor stays"""
        config, layout = document_build(("A", "PCI:1:0:0"), ("A2", "PCI:1:0:0"))
        config.screens[1].monitor = config.screens[0].monitor

        separateScreens_disable(MultiScreenOptions(), config, layout)

        assert [m.identifier for m in config.monitors] == ["Monitor0"]
        assert [d.identifier for d in config.devices] == ["Device0"]

    def test_screens_without_busid_untouched(self, document_build):
        """Test candidates without a BusID are left alone"""
        config, layout = document_build(("A", None), ("B", None))

        assert separateScreens_disable(MultiScreenOptions(), config, layout) is True
        assert _names(config) == ["A", "B"]

    def test_empty_layout_succeeds(self, document_build):
        """Test there is nothing to merge in an empty layout"""
        config, layout = document_build()
        assert separateScreens_disable(MultiScreenOptions(), config, layout) is True


class TestXineramaSet:
    """Test the Xinerama server flag"""

    def test_creates_server_flags(self, document_build):
        """Test a ServerFlags section is created when missing"""
        config, _ = document_build(("A", None))

        assert xinerama_set(True, config) is True

        assert [(o.name, o.value) for o in config.flags.options] == [("Xinerama", "1")]

    def test_replaces_existing_option(self, document_build):
        """Test an earlier Xinerama option is replaced, others kept"""
        config, _ = document_build(("A", None))
        config.flags = Flags(options=[Option("xinerama", "1"), Option("BlankTime", "0")])

        xinerama_set(False, config)

        assert [(o.name, o.value) for o in config.flags.options] == [
            ("BlankTime", "0"),
            ("Xinerama", "0"),
        ]


class TestOnlyOneScreen:
    """Test reduction to a single X screen"""

    def test_keeps_first_screen(self, document_build):
        """Test three screens collapse to the first, without orphans"""
        config, layout = document_build(
            ("A", "PCI:1:0:0"), ("B", "PCI:2:0:0"), ("C", "PCI:3:0:0")
        )

        assert onlyOneScreen_apply(MultiScreenOptions(), config, layout) is True

        assert _names(config) == ["A"]
        assert len(config.devices) == 1
        assert len(config.monitors) == 1
        _layout_consistent(config, layout)
        _no_orphans(config)

    def test_monitor_shared_with_survivor_kept(self, document_build):
        """Test a monitor shared by screens 1 and 3 survives"""
        config, layout = document_build(("A", None), ("B", None), ("C", None))
        config.screens[2].monitor = config.screens[0].monitor

        onlyOneScreen_apply(MultiScreenOptions(), config, layout)

        assert [m.identifier for m in config.monitors] == ["Monitor0"]

    def test_single_screen_succeeds(self, document_build):
        """Test one screen is left as it is"""
        config, layout = document_build(("A", None))

        assert onlyOneScreen_apply(MultiScreenOptions(), config, layout) is True
        assert _names(config) == ["A"]

    def test_no_screens_fails(self, document_build, caplog):
        """Test there must be a screen to keep"""
        config, layout = document_build()

        assert onlyOneScreen_apply(MultiScreenOptions(), config, layout) is False
        assert "No X screens configured" in caplog.text
