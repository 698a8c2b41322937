"""In-memory model of an X configuration document

Sections are identity-compared dataclasses (`eq=False`): a Screen refers to
its Device and Monitor by object reference, and membership tests such as
`device in config.devices` follow that identity rather than field values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional


class AdjacencyPlacement(Enum):
    """Placement keywords of a ServerLayout Screen entry"""
    UNSET = ""
    ABSOLUTE = "Absolute"
    RIGHTOF = "RightOf"
    LEFTOF = "LeftOf"
    ABOVE = "Above"
    BELOW = "Below"
    RELATIVE = "Relative"


@dataclass(eq=False)
class Option:
    """Option "name" ["value"] entry"""
    name: str
    value: Optional[str] = None


@dataclass(eq=False)
class Display:
    """Display subsection of a Screen"""
    depth: int = -1
    bpp: int = -1
    modes: List[str] = field(default_factory=list)
    visual: Optional[str] = None
    virtual: Optional[tuple] = None  # (width, height)
    viewport: Optional[tuple] = None  # (x, y)
    options: List[Option] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)


@dataclass(eq=False)
class Device:
    """Device section: binds a driver to a graphics adapter"""
    identifier: str
    vendor: Optional[str] = None
    board: Optional[str] = None
    chipset: Optional[str] = None
    busid: Optional[str] = None
    card: Optional[str] = None
    driver: Optional[str] = None
    ramdac: Optional[str] = None
    screen: int = -1  # GPU head driven by this section; -1 when unset
    chipid: int = -1
    chiprev: int = -1
    irq: int = -1
    options: List[Option] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)


@dataclass(eq=False)
class Monitor:
    """Monitor section; may be shared by several Screens"""
    identifier: str
    vendor: Optional[str] = None
    model: Optional[str] = None
    horizsync: Optional[str] = None
    vertrefresh: Optional[str] = None
    options: List[Option] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)


@dataclass(eq=False)
class Screen:
    """Screen section

    `device` is the Device section this screen drives and `monitor` the
    (possibly shared) Monitor section. The `*_name` fields keep the names
    written in the document, which matter only while a reference is
    unresolved.
    """
    identifier: str
    device: Optional[Device] = None
    device_name: Optional[str] = None
    monitor: Optional[Monitor] = None
    monitor_name: Optional[str] = None
    defaultdepth: int = -1
    displays: List[Display] = field(default_factory=list)
    options: List[Option] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)


@dataclass(eq=False)
class Adjacency:
    """One Screen entry of a ServerLayout"""
    scrnum: int
    screen_name: str
    screen: Optional[Screen] = None
    where: AdjacencyPlacement = AdjacencyPlacement.UNSET
    refscreen: Optional[str] = None
    x: int = 0
    y: int = 0


@dataclass(eq=False)
class Layout:
    """ServerLayout section"""
    identifier: str
    adjacencies: List[Adjacency] = field(default_factory=list)
    options: List[Option] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)  # InputDevice and other entries


@dataclass(eq=False)
class Flags:
    """ServerFlags section"""
    options: List[Option] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)


@dataclass(eq=False)
class RawSection:
    """Section carried through verbatim (Files, Module, InputDevice, ...)"""
    name: str
    lines: List[str] = field(default_factory=list)
    comment: List[str] = field(default_factory=list)


@dataclass(eq=False)
class Configuration:
    """Root of a parsed X configuration document"""
    screens: List[Screen] = field(default_factory=list)
    devices: List[Device] = field(default_factory=list)
    monitors: List[Monitor] = field(default_factory=list)
    layouts: List[Layout] = field(default_factory=list)
    sections: List[RawSection] = field(default_factory=list)
    flags: Optional[Flags] = None
    comment: List[str] = field(default_factory=list)


def names_match(name1: Optional[str], name2: Optional[str]) -> bool:
    """
    Compare two section names the way the X server does

    Case, blanks and underscores are ignored.

    Args:
        name1: First name
        name2: Second name

    Returns:
        True if both names are set and equivalent
    """
    if name1 is None or name2 is None:
        return False

    def _normalize(name: str) -> str:
        return "".join(c for c in name.lower() if c not in " \t_")

    return _normalize(name1) == _normalize(name2)


def screen_find(name: str, screens: Iterable[Screen]) -> Optional[Screen]:
    """Find a Screen section by identifier"""
    for screen in screens:
        if names_match(screen.identifier, name):
            return screen
    return None


def device_find(name: str, devices: Iterable[Device]) -> Optional[Device]:
    """Find a Device section by identifier"""
    for device in devices:
        if names_match(device.identifier, name):
            return device
    return None


def monitor_find(name: str, monitors: Iterable[Monitor]) -> Optional[Monitor]:
    """Find a Monitor section by identifier"""
    for monitor in monitors:
        if names_match(monitor.identifier, name):
            return monitor
    return None


def layout_find(name: str, layouts: Iterable[Layout]) -> Optional[Layout]:
    """Find a ServerLayout section by identifier"""
    for layout in layouts:
        if names_match(layout.identifier, name):
            return layout
    return None


def optionList_dup(options: Iterable[Option]) -> List[Option]:
    """
    Duplicate an option list, preserving order

    Args:
        options: Options to copy

    Returns:
        New list of new Option entries
    """
    return [Option(name=opt.name, value=opt.value) for opt in options]


def option_remove(options: List[Option], name: str) -> None:
    """Remove every option called `name` from the list in place"""
    options[:] = [opt for opt in options if not names_match(opt.name, name)]


def screenList_free(config: Configuration, screens: Iterable[Screen]) -> None:
    """
    Unlink Screen sections from the document

    Devices and Monitors they referenced stay in place; callers collect
    those that became unused separately.

    Args:
        config: Document owning the screens
        screens: Screens to remove (compared by identity)
    """
    doomed = list(screens)
    config.screens[:] = [
        s for s in config.screens if not any(s is d for d in doomed)
    ]
    for screen in doomed:
        screen.device = None
        screen.monitor = None
        screen.displays.clear()


def adjacencyList_free(layout: Layout) -> None:
    """Discard every adjacency of a layout"""
    for adj in layout.adjacencies:
        adj.screen = None
    layout.adjacencies.clear()
