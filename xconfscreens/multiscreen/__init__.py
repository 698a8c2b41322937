"""Multi-screen reconciliation of X configuration documents."""

from xconfscreens.multiscreen.editors import (
    allGpus_enable,
    onlyOneScreen_apply,
    separateScreens_disable,
    separateScreens_enable,
    xinerama_set,
)
from xconfscreens.multiscreen.orchestrator import multiScreenOptions_apply

__all__ = [
    "allGpus_enable",
    "multiScreenOptions_apply",
    "onlyOneScreen_apply",
    "separateScreens_disable",
    "separateScreens_enable",
    "xinerama_set",
]
