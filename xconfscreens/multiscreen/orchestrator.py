"""Application of the multi-screen policies in their fixed order"""

import logging

from xconfscreens.common.types import MultiScreenOptions
from xconfscreens.multiscreen.editors import (
    allGpus_enable,
    onlyOneScreen_apply,
    separateScreens_disable,
    separateScreens_enable,
    xinerama_set,
)
from xconfscreens.xconfig.model import Configuration, Layout

logger = logging.getLogger(__name__)


def multiScreenOptions_apply(options: MultiScreenOptions, config: Configuration, layout: Layout) -> bool:
    """
    Apply the options that affect multiple X screens

    In order:
        - add X screens for all GPUs in the system
        - separate X screens on one GPU (turned on or off)
        - Xinerama
        - only one X screen

    Processing stops at the first policy that fails; edits already made
    are kept.

    Args:
        options: Requested policies
        config: Document to edit in place
        layout: ServerLayout of `config` whose screens are edited

    Returns:
        True if every requested policy succeeded
    """
    if options.enable_all_gpus:
        if not allGpus_enable(options, config, layout):
            return False

    if options.separate_x_screens is not None:
        if options.separate_x_screens:
            if not separateScreens_enable(options, config, layout):
                return False
        else:
            if not separateScreens_disable(options, config, layout):
                return False

    if options.xinerama is not None:
        if not xinerama_set(options.xinerama, config):
            return False

    if options.only_one_screen:
        if not onlyOneScreen_apply(options, config, layout):
            return False

    logger.debug(f"Layout '{layout.identifier}' has {len(config.screens)} screen(s) after multi-screen options")
    return True
