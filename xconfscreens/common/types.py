"""Common types, options and error classes for xconfscreens"""

from dataclasses import dataclass
from typing import Optional


class XConfScreensError(Exception):
    """Base class for xconfscreens errors"""


class HardwareUnavailableError(XConfScreensError):
    """The nvidia-cfg library could not be loaded or queried"""


class BusIdParseError(XConfScreensError, ValueError):
    """A BusID string is not in PCI:bus:slot:function form"""


class ConfigSyntaxError(XConfScreensError):
    """An X configuration document could not be parsed"""

    def __init__(self, line: int, message: str) -> None:
        """
        Initialize syntax error

        Args:
            line: 1-based line number where parsing failed
            message: Description of the problem
        """
        super().__init__(f"line {line}: {message}")
        self.line = line
        self.message = message


@dataclass
class MultiScreenOptions:
    """Multi-screen policy options applied to a configuration

    `separate_x_screens` and `xinerama` are tri-state: None means the
    policy was not requested, True/False selects enable/disable.
    """
    enable_all_gpus: bool = False
    separate_x_screens: Optional[bool] = None
    xinerama: Optional[bool] = None
    only_one_screen: bool = False
    screen: Optional[str] = None  # restrict separate-screen policies to this screen
    nvidia_cfg_path: Optional[str] = None
