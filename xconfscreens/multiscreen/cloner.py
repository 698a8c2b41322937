"""Duplication of Screen and Device sections for a second X screen on one GPU"""

import logging
from typing import Iterable, List

from xconfscreens.common.settings import settings
from xconfscreens.xconfig.model import Configuration, Device, Display, Screen, optionList_dup

logger = logging.getLogger(__name__)


def _after_insert(items: list, anchor: object, item: object) -> None:
    """Insert `item` right after `anchor` (by identity), or append if absent"""
    for index, existing in enumerate(items):
        if existing is anchor:
            items.insert(index + 1, item)
            return
    items.append(item)


def displayList_clone(displays: Iterable[Display]) -> List[Display]:
    """
    Deep-copy a list of Display subsections

    Args:
        displays: Display subsections of the source screen

    Returns:
        Independent copies in the same order
    """
    return [
        Display(
            depth=display.depth,
            bpp=display.bpp,
            modes=list(display.modes),
            visual=display.visual,
            virtual=display.virtual,
            viewport=display.viewport,
            options=optionList_dup(display.options),
            comment=list(display.comment),
            extra=list(display.extra),
        )
        for display in displays
    ]


def device_clone(config: Configuration, device0: Device) -> Device:
    """
    Duplicate a Device section so each X screen drives its own GPU head

    The original takes head 0 and the clone head 1. Chip id, revision
    and IRQ of the clone are reset to unknown. The clone is inserted
    right after the original in the device list.

    Args:
        config: Document owning the device
        device0: Device section to duplicate

    Returns:
        The new Device section
    """
    device = Device(
        identifier=device0.identifier + settings.CLONE_SUFFIX,
        vendor=device0.vendor,
        board=device0.board,
        chipset=device0.chipset,
        busid=device0.busid,
        card=device0.card,
        driver=device0.driver,
        ramdac=device0.ramdac,
        comment=list(device0.comment),
        options=optionList_dup(device0.options),
        extra=list(device0.extra),
    )

    device.screen = 1
    device0.screen = 0

    device.chipid = -1
    device.chiprev = -1
    device.irq = -1

    _after_insert(config.devices, device0, device)
    return device


def screen_clone(config: Configuration, screen0: Screen) -> Screen:
    """
    Duplicate a Screen section for use as the second X screen on its GPU

    The clone gets a new Device (see device_clone) and shares the
    original's Monitor. It is inserted right after the original in the
    screen list; the layout is left untouched.

    Args:
        config: Document owning the screen
        screen0: Screen section to duplicate; must reference a Device

    Returns:
        The new Screen section
    """
    if screen0.device is None:
        raise ValueError(f"Screen '{screen0.identifier}' has no Device section to clone")

    device = device_clone(config, screen0.device)

    screen = Screen(
        identifier=screen0.identifier + settings.CLONE_SUFFIX,
        device=device,
        device_name=device.identifier,
        monitor=screen0.monitor,
        monitor_name=screen0.monitor_name,
        defaultdepth=screen0.defaultdepth,
        displays=displayList_clone(screen0.displays),
        options=optionList_dup(screen0.options),
        comment=list(screen0.comment),
        extra=list(screen0.extra),
    )

    _after_insert(config.screens, screen0, screen)
    logger.info(f"Cloned screen '{screen0.identifier}' as '{screen.identifier}'")
    return screen
