"""Generation of default sections and screen placement"""

import logging
from typing import Optional

from xconfscreens.common.settings import settings
from xconfscreens.xconfig.busid import busId_format
from xconfscreens.xconfig.model import (
    AdjacencyPlacement,
    Configuration,
    Device,
    Display,
    Layout,
    Monitor,
    Option,
    Screen,
)

logger = logging.getLogger(__name__)

NVIDIA_DRIVER = "nvidia"
NVIDIA_VENDOR = "NVIDIA Corporation"
DEFAULT_HORIZSYNC = "28.0 - 33.0"
DEFAULT_VERTREFRESH = "43.0 - 72.0"


def generateDevice_add(
    config: Configuration, bus: Optional[int], slot: Optional[int], boardname: Optional[str], count: int
) -> Device:
    """
    Append a Device section for an NVIDIA GPU

    Args:
        config: Document to extend
        bus: PCI bus of the GPU, or None to leave BusID unset
        slot: PCI slot of the GPU
        boardname: Product name reported by the hardware
        count: Index used to build the identifier

    Returns:
        The new Device section
    """
    device = Device(
        identifier=f"Device{count}",
        driver=NVIDIA_DRIVER,
        vendor=NVIDIA_VENDOR,
        board=boardname,
    )
    if bus is not None and slot is not None:
        device.busid = busId_format(bus, slot)

    config.devices.append(device)
    return device


def generateMonitor_add(config: Configuration, count: int) -> Monitor:
    """
    Append a Monitor section with conservative sync ranges

    Args:
        config: Document to extend
        count: Index used to build the identifier

    Returns:
        The new Monitor section
    """
    monitor = Monitor(
        identifier=f"Monitor{count}",
        vendor="Unknown",
        model="Unknown",
        horizsync=DEFAULT_HORIZSYNC,
        vertrefresh=DEFAULT_VERTREFRESH,
        options=[Option(name="DPMS")],
    )
    config.monitors.append(monitor)
    return monitor


def generateScreen_add(
    config: Configuration, bus: Optional[int], slot: Optional[int], boardname: Optional[str], count: int
) -> Screen:
    """
    Append a Screen section together with its own Device and Monitor

    Args:
        config: Document to extend
        bus: PCI bus of the GPU
        slot: PCI slot of the GPU
        boardname: Product name reported by the hardware
        count: Index used to build the identifiers

    Returns:
        The new Screen section
    """
    device = generateDevice_add(config, bus, slot, boardname, count)
    monitor = generateMonitor_add(config, count)

    screen = Screen(
        identifier=f"Screen{count}",
        device=device,
        device_name=device.identifier,
        monitor=monitor,
        monitor_name=monitor.identifier,
        defaultdepth=settings.DEFAULT_DEPTH,
        displays=[Display(depth=settings.DEFAULT_DEPTH)],
    )
    config.screens.append(screen)

    logger.debug(f"Generated {screen.identifier} for {device.busid or 'unknown bus'} ({boardname})")
    return screen


def screenAdjacencies_assign(layout: Layout) -> None:
    """
    Place the screens of a layout left to right

    The first screen sits at the origin; every following screen is
    placed RightOf its predecessor. Placement depends only on the
    adjacency order.

    Args:
        layout: Layout whose adjacencies are placed
    """
    prev = None
    for adj in layout.adjacencies:
        if prev is None:
            adj.where = AdjacencyPlacement.UNSET
            adj.refscreen = None
        else:
            adj.where = AdjacencyPlacement.RIGHTOF
            adj.refscreen = prev.screen_name
        adj.x = 0
        adj.y = 0
        prev = adj
