"""Unit tests for ordered application of the multi-screen policies"""

import pytest

from xconfscreens.common.types import MultiScreenOptions
from xconfscreens.multiscreen import orchestrator
from xconfscreens.multiscreen.orchestrator import multiScreenOptions_apply


@pytest.fixture
def recorded(monkeypatch):
    """Replace every editor with a recorder; returns (calls, results)"""
    calls = []
    results = {}

    def _recorder(name):
        def _editor(*args):
            calls.append(name)
            return results.get(name, True)
        return _editor

    for name in (
        "allGpus_enable",
        "separateScreens_enable",
        "separateScreens_disable",
        "xinerama_set",
        "onlyOneScreen_apply",
    ):
        monkeypatch.setattr(orchestrator, name, _recorder(name))

    return calls, results


class TestPolicyOrder:
    """Test which editors run and in what order"""

    def test_nothing_requested(self, recorded, document_build):
        """Test default options run no editor"""
        calls, _ = recorded
        config, layout = document_build(("A", None))

        assert multiScreenOptions_apply(MultiScreenOptions(), config, layout) is True
        assert calls == []

    def test_fixed_order(self, recorded, document_build):
        """Test all GPUs, separate screens, Xinerama, then one screen"""
        calls, _ = recorded
        config, layout = document_build(("A", None))
        options = MultiScreenOptions(
            enable_all_gpus=True,
            separate_x_screens=True,
            xinerama=False,
            only_one_screen=True,
        )

        assert multiScreenOptions_apply(options, config, layout) is True
        assert calls == [
            "allGpus_enable",
            "separateScreens_enable",
            "xinerama_set",
            "onlyOneScreen_apply",
        ]

    def test_separate_false_disables(self, recorded, document_build):
        """Test separate_x_screens=False merges screens"""
        calls, _ = recorded
        config, layout = document_build(("A", None))

        multiScreenOptions_apply(MultiScreenOptions(separate_x_screens=False), config, layout)

        assert calls == ["separateScreens_disable"]

    def test_failure_short_circuits(self, recorded, document_build):
        """Test later policies are skipped after a failure"""
        calls, results = recorded
        results["separateScreens_enable"] = False
        config, layout = document_build(("A", None))
        options = MultiScreenOptions(separate_x_screens=True, xinerama=True, only_one_screen=True)

        assert multiScreenOptions_apply(options, config, layout) is False
        assert calls == ["separateScreens_enable"]


class TestCombinedPolicies:
    """Test real editors applied together"""

    def test_all_gpus_then_separate(self, document_build, gpus_install):
        """Test generated screens get split per GPU"""
        config, layout = document_build(("Old", None))
        gpus_install((1, 0), (2, 0))
        options = MultiScreenOptions(enable_all_gpus=True, separate_x_screens=True, xinerama=True)

        assert multiScreenOptions_apply(options, config, layout) is True

        assert [s.identifier for s in config.screens] == [
            "Screen0", "Screen0 (2nd)", "Screen1", "Screen1 (2nd)",
        ]
        assert [a.scrnum for a in layout.adjacencies] == [0, 1, 2, 3]
        assert config.flags.options[-1].value == "1"

    def test_all_gpus_failure_keeps_document(self, document_build, gpus_install):
        """Test a failed first policy leaves the document as it was"""
        config, layout = document_build(("Old", None))
        gpus_install()
        options = MultiScreenOptions(enable_all_gpus=True, xinerama=True)

        assert multiScreenOptions_apply(options, config, layout) is False

        assert [s.identifier for s in config.screens] == ["Old"]
        assert config.flags is None
