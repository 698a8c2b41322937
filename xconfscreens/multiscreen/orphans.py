"""Removal of Device and Monitor sections no Screen refers to"""

import logging
from typing import List

from xconfscreens.xconfig.model import Configuration, Device, Monitor

logger = logging.getLogger(__name__)


def unusedDevices_free(config: Configuration) -> List[Device]:
    """
    Remove Device sections that no Screen references

    Args:
        config: Document to prune

    Returns:
        The removed Device sections
    """
    kept: List[Device] = []
    removed: List[Device] = []

    for device in config.devices:
        if any(screen.device is device for screen in config.screens):
            kept.append(device)
        else:
            removed.append(device)
            logger.debug(f"Removing unused Device '{device.identifier}'")

    config.devices[:] = kept
    return removed


def unusedMonitors_free(config: Configuration) -> List[Monitor]:
    """
    Remove Monitor sections that no Screen references

    Args:
        config: Document to prune

    Returns:
        The removed Monitor sections
    """
    kept: List[Monitor] = []
    removed: List[Monitor] = []

    for monitor in config.monitors:
        if any(screen.monitor is monitor for screen in config.screens):
            kept.append(monitor)
        else:
            removed.append(monitor)
            logger.debug(f"Removing unused Monitor '{monitor.identifier}'")

    config.monitors[:] = kept
    return removed
