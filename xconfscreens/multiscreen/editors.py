"""Screen-set editors for the multi-screen policies

Each editor takes the options, the document and the layout being
edited, and returns True on success. Failures are logged at error
level; a failing editor may leave the document partially edited.
"""

import logging
from typing import List, Optional, Tuple

from xconfscreens.common.settings import settings
from xconfscreens.common.types import BusIdParseError, HardwareUnavailableError, MultiScreenOptions
from xconfscreens.hardware.nvcfg import devices_discover
from xconfscreens.multiscreen.adjacency import adjacencies_create, adjacencies_rebuild
from xconfscreens.multiscreen.cloner import screen_clone
from xconfscreens.multiscreen.orphans import unusedDevices_free, unusedMonitors_free
from xconfscreens.xconfig.busid import busId_format, busSlot_get
from xconfscreens.xconfig.generate import generateScreen_add
from xconfscreens.xconfig.model import (
    Configuration,
    Flags,
    Layout,
    Option,
    Screen,
    adjacencyList_free,
    option_remove,
    screen_find,
    screenList_free,
)

logger = logging.getLogger(__name__)


def _candidates_build(
    options: MultiScreenOptions, config: Configuration, layout: Layout
) -> Optional[List[Optional[Screen]]]:
    """
    Build the list of screens a separate-screens policy applies to

    Returns:
        The screen named by `options.screen`, or every screen of the layout
        in adjacency order; None if the named screen does not exist
    """
    if options.screen:
        screen = screen_find(options.screen, config.screens)
        if screen is None:
            logger.error(f"Unable to find screen '{options.screen}'.")
            return None
        return [screen]

    return [adj.screen for adj in layout.adjacencies]


def _gpu_get(screen: Screen) -> Optional[Tuple[int, int]]:
    """(bus, slot) of the GPU a screen's Device is bound to, if parseable"""
    if screen.device is None or screen.device.busid is None:
        return None
    try:
        return busSlot_get(screen.device.busid)
    except BusIdParseError:
        return None


def allGpus_enable(options: MultiScreenOptions, config: Configuration, layout: Layout) -> bool:
    """
    Replace all screens with one generated screen per detected GPU

    Existing Screen, Device and Monitor sections and the layout's
    adjacencies are discarded.
    """
    try:
        gpus = devices_discover(options.nvidia_cfg_path)
    except HardwareUnavailableError as e:
        logger.debug(f"GPU discovery failed: {e}")
        logger.error(
            "Unable to determine number of GPUs in system; cannot "
            "honor '--enable-all-gpus' option."
        )
        return False

    screenList_free(config, list(config.screens))
    config.devices.clear()
    config.monitors.clear()
    adjacencyList_free(layout)

    for index, gpu in enumerate(gpus):
        generateScreen_add(config, gpu.bus, gpu.slot, gpu.name, index)

    adjacencies_create(config, layout)

    logger.info(f"Configured {len(gpus)} X screen(s), one per GPU")
    return True


def separateScreens_enable(options: MultiScreenOptions, config: Configuration, layout: Layout) -> bool:
    """
    Clone every candidate screen that is alone on its GPU

    Algorithm:
        1. build the candidate list
        2. if any candidate has no BusID, assign BusIDs to all of them in
           GPU discovery order; candidates beyond the GPU count drop out
        3. drop candidates whose GPU already hosts another screen anywhere
           in the document
        4. clone the remaining candidates
        5. rebuild the layout's adjacencies
    """
    candidates = _candidates_build(options, config, layout)
    if candidates is None:
        return False
    if not candidates:
        logger.error(
            f"Layout '{layout.identifier}' has no X screens; cannot "
            "honor '--separate-x-screens' option."
        )
        return False

    have_busids = all(
        screen is not None and screen.device is not None and screen.device.busid
        for screen in candidates
    )

    # Every candidate is reassigned, including those that had a BusID
    if not have_busids:
        try:
            gpus = devices_discover(options.nvidia_cfg_path)
        except HardwareUnavailableError as e:
            logger.debug(f"GPU discovery failed: {e}")
            logger.error(
                "Unable to determine number or location of GPUs in system; "
                "cannot honor '--separate-x-screens' option."
            )
            return False

        for index, screen in enumerate(candidates):
            if index >= len(gpus) or screen is None or screen.device is None:
                if screen is not None:
                    logger.debug(f"Screen '{screen.identifier}' has no GPU left to bind to")
                candidates[index] = None
                continue
            screen.device.busid = busId_format(gpus[index].bus, gpus[index].slot)
            screen.device.board = gpus[index].name
            logger.debug(f"Assigned BusID {screen.device.busid} to screen '{screen.identifier}'")

    for index, screen in enumerate(candidates):
        if screen is None:
            continue

        gpu = _gpu_get(screen)
        if gpu is None:
            logger.debug(f"Screen '{screen.identifier}' has an unusable BusID; not separating it")
            candidates[index] = None
            continue

        for other in config.screens:
            if other is screen:
                continue
            if _gpu_get(other) == gpu:
                logger.debug(
                    f"GPU of screen '{screen.identifier}' already drives "
                    f"screen '{other.identifier}'; not separating it"
                )
                candidates[index] = None
                break

    for screen in candidates:
        if screen is not None:
            screen_clone(config, screen)

    adjacencies_rebuild(config, layout)
    return True


def separateScreens_disable(options: MultiScreenOptions, config: Configuration, layout: Layout) -> bool:
    """
    Remove the extra screens configured on the GPU of each candidate

    The candidate itself survives and its Device loses its head index.
    Devices and Monitors left without a screen are removed.
    """
    candidates = _candidates_build(options, config, layout)
    if candidates is None:
        return False

    # Keep candidates with a parseable BusID, first one per GPU
    survivors: List[Tuple[Screen, Tuple[int, int]]] = []
    for screen in candidates:
        if screen is None:
            continue
        gpu = _gpu_get(screen)
        if gpu is None:
            continue
        if any(gpu == seen for _, seen in survivors):
            continue
        survivors.append((screen, gpu))

    for screen, gpu in survivors:
        doomed = [
            other for other in config.screens
            if other is not screen and _gpu_get(other) == gpu
        ]
        for other in doomed:
            logger.info(f"Removing screen '{other.identifier}' (shares GPU with '{screen.identifier}')")
        screenList_free(config, doomed)

        screen.device.screen = -1

    adjacencies_rebuild(config, layout)

    unusedDevices_free(config)
    unusedMonitors_free(config)
    return True


def xinerama_set(xinerama_enabled: bool, config: Configuration) -> bool:
    """
    Set the Xinerama option in the ServerFlags section

    The section is created when missing, and any earlier Xinerama option
    is replaced.
    """
    if config.flags is None:
        config.flags = Flags()

    option_remove(config.flags.options, settings.XINERAMA_OPTION)
    config.flags.options.append(
        Option(name=settings.XINERAMA_OPTION, value="1" if xinerama_enabled else "0")
    )

    logger.info(f"Xinerama {'enabled' if xinerama_enabled else 'disabled'}")
    return True


def onlyOneScreen_apply(options: MultiScreenOptions, config: Configuration, layout: Layout) -> bool:
    """Delete every screen after the first one"""
    if not config.screens:
        logger.error("No X screens configured; cannot honor '--only-one-screen' option.")
        return False

    screenList_free(config, config.screens[1:])

    adjacencies_rebuild(config, layout)

    unusedDevices_free(config)
    unusedMonitors_free(config)
    return True
