"""PCI BusID parsing and formatting"""

import re
from typing import Optional, Tuple

from xconfscreens.common.types import BusIdParseError

# PCI:bus:slot:function, with an optional @domain suffix on the bus number
_BUSID_PATTERN = re.compile(r"^PCI:(\d+)(?:@(\d+))?:(\d+):(\d+)$", re.IGNORECASE)


def busId_parse(busid: Optional[str]) -> Tuple[int, int, int]:
    """
    Parse a BusID string

    Args:
        busid: String of the form "PCI:bus:slot:function"

    Returns:
        (bus, slot, function) tuple

    Raises:
        BusIdParseError: If the string is missing or malformed
    """
    if busid is None:
        raise BusIdParseError("BusID is not set")

    match = _BUSID_PATTERN.match(busid.strip())
    if match is None:
        raise BusIdParseError(f"Malformed BusID '{busid}'")

    bus, _domain, slot, function = match.groups()
    return int(bus), int(slot), int(function)


def busId_format(bus: int, slot: int, function: int = 0) -> str:
    """
    Format a BusID string

    Args:
        bus: PCI bus number
        slot: PCI slot (device) number
        function: PCI function number

    Returns:
        String of the form "PCI:bus:slot:function"
    """
    return f"PCI:{bus}:{slot}:{function}"


def busSlot_get(busid: Optional[str]) -> Tuple[int, int]:
    """
    Parse a BusID down to the (bus, slot) pair identifying a GPU

    Raises:
        BusIdParseError: If the string is missing or malformed
    """
    bus, slot, _function = busId_parse(busid)
    return bus, slot
