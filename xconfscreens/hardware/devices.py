"""Detected GPU and display output descriptions"""

from dataclasses import dataclass, field
from typing import List, Optional

from xconfscreens.xconfig.busid import busId_format


@dataclass(frozen=True)
class EdidInfo:
    """Monitor capabilities read from a display's EDID"""
    monitor_name: str
    min_horiz_sync: int  # Hz
    max_horiz_sync: int  # Hz
    min_vert_refresh: int  # milli-Hz
    max_vert_refresh: int  # milli-Hz
    max_pixel_clock: int  # kHz
    max_width: int
    max_height: int
    max_refresh_rate: int
    preferred_width: int
    preferred_height: int
    preferred_refresh: int
    physical_width: int  # mm
    physical_height: int  # mm


@dataclass
class DisplayOutput:
    """One display device attached to a GPU"""
    mask: int  # single bit of the GPU's display device mask
    info_valid: bool
    info: Optional[EdidInfo] = None


@dataclass
class DetectedDevice:
    """A GPU found by the nvidia-cfg library"""
    bus: int
    slot: int
    name: Optional[str] = None
    crtcs: int = 0
    display_device_mask: int = 0
    display_devices: List[DisplayOutput] = field(default_factory=list)

    @property
    def busid(self) -> str:
        """BusID string for this GPU"""
        return busId_format(self.bus, self.slot)

    @property
    def display_count(self) -> int:
        """Number of attached display devices"""
        return len(self.display_devices)
