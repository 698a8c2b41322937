"""Serializer for X configuration documents (xorg.conf)"""

import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from xconfscreens.xconfig.model import (
    Adjacency,
    AdjacencyPlacement,
    Configuration,
    Device,
    Display,
    Flags,
    Layout,
    Monitor,
    Option,
    RawSection,
    Screen,
)

logger = logging.getLogger(__name__)

INDENT = "    "
KEYWORD_WIDTH = 15


def _quote(value: str) -> str:
    """Quote a string argument"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _entry(keyword: str, args: str, depth: int = 1) -> str:
    """Format one `Keyword  args` line at the given nesting depth"""
    return f"{INDENT * depth}{keyword:<{KEYWORD_WIDTH}}{args}".rstrip()


class XConfigWriter:
    """Serializes a Configuration to xorg.conf text

    Sections are written in a fixed order: ServerLayout, passthrough
    sections, ServerFlags, Monitor, Device, Screen.
    """

    def __init__(self, config: Configuration) -> None:
        """
        Initialize writer

        Args:
            config: Document to serialize
        """
        self._config = config
        self._out: List[str] = []

    def document_serialize(self) -> str:
        """
        Produce the document text

        Returns:
            Complete xorg.conf content ending with a newline
        """
        self._out = []
        config = self._config

        if config.comment:
            self._out.extend(config.comment)
            self._out.append("")

        for layout in config.layouts:
            self._layout_write(layout)
        for raw in config.sections:
            self._raw_write(raw)
        if config.flags is not None:
            self._flags_write(config.flags)
        for monitor in config.monitors:
            self._monitor_write(monitor)
        for device in config.devices:
            self._device_write(device)
        for screen in config.screens:
            self._screen_write(screen)

        return "\n".join(self._out).rstrip("\n") + "\n"

    # =========================================================================
    # Helpers
    # =========================================================================

    def _sectionStart_write(self, name: str, comment: Iterable[str]) -> None:
        """Write comment lines and the Section header"""
        self._out.extend(comment)
        self._out.append(f"Section {_quote(name)}")

    def _sectionEnd_write(self) -> None:
        """Write EndSection and a separating blank line"""
        self._out.append("EndSection")
        self._out.append("")

    def _string_write(self, keyword: str, value: Optional[str], depth: int = 1) -> None:
        """Write a string entry if the value is set"""
        if value is not None:
            self._out.append(_entry(keyword, _quote(value), depth))

    def _options_write(self, options: Iterable[Option], depth: int = 1) -> None:
        """Write Option entries"""
        for opt in options:
            args = _quote(opt.name)
            if opt.value is not None:
                args += f" {_quote(opt.value)}"
            self._out.append(_entry("Option", args, depth))

    def _extra_write(self, lines: Iterable[str], depth: int = 1) -> None:
        """Write passthrough entries"""
        for line in lines:
            self._out.append(f"{INDENT * depth}{line}")

    # =========================================================================
    # Sections
    # =========================================================================

    def _layout_write(self, layout: Layout) -> None:
        """Write a ServerLayout section"""
        self._sectionStart_write("ServerLayout", layout.comment)
        self._string_write("Identifier", layout.identifier)
        for adj in layout.adjacencies:
            self._out.append(self._adjacency_format(adj))
        self._extra_write(layout.extra)
        self._options_write(layout.options)
        self._sectionEnd_write()

    @staticmethod
    def _adjacency_format(adj: Adjacency) -> str:
        """Format a ServerLayout Screen entry"""
        line = f"{INDENT}{'Screen':<{KEYWORD_WIDTH - 3}}{adj.scrnum:>2} {_quote(adj.screen_name)}"
        if adj.where in (AdjacencyPlacement.UNSET, AdjacencyPlacement.ABSOLUTE):
            line += f" {adj.x} {adj.y}"
        elif adj.where == AdjacencyPlacement.RELATIVE:
            line += f" Relative {_quote(adj.refscreen or '')} {adj.x} {adj.y}"
        else:
            line += f" {adj.where.value} {_quote(adj.refscreen or '')}"
        return line

    def _raw_write(self, raw: RawSection) -> None:
        """Write a passthrough section verbatim"""
        self._sectionStart_write(raw.name, raw.comment)
        self._out.extend(raw.lines)
        self._sectionEnd_write()

    def _flags_write(self, flags: Flags) -> None:
        """Write the ServerFlags section"""
        self._sectionStart_write("ServerFlags", flags.comment)
        self._extra_write(flags.extra)
        self._options_write(flags.options)
        self._sectionEnd_write()

    def _monitor_write(self, monitor: Monitor) -> None:
        """Write a Monitor section"""
        self._sectionStart_write("Monitor", monitor.comment)
        self._string_write("Identifier", monitor.identifier)
        self._string_write("VendorName", monitor.vendor)
        self._string_write("ModelName", monitor.model)
        if monitor.horizsync is not None:
            self._out.append(_entry("HorizSync", monitor.horizsync))
        if monitor.vertrefresh is not None:
            self._out.append(_entry("VertRefresh", monitor.vertrefresh))
        self._extra_write(monitor.extra)
        self._options_write(monitor.options)
        self._sectionEnd_write()

    def _device_write(self, device: Device) -> None:
        """Write a Device section"""
        self._sectionStart_write("Device", device.comment)
        self._string_write("Identifier", device.identifier)
        self._string_write("Driver", device.driver)
        self._string_write("VendorName", device.vendor)
        self._string_write("BoardName", device.board)
        self._string_write("ChipSet", device.chipset)
        self._string_write("Card", device.card)
        self._string_write("Ramdac", device.ramdac)
        self._string_write("BusID", device.busid)
        if device.chipid >= 0:
            self._out.append(_entry("ChipId", f"0x{device.chipid:04x}"))
        if device.chiprev >= 0:
            self._out.append(_entry("ChipRev", f"0x{device.chiprev:04x}"))
        if device.irq >= 0:
            self._out.append(_entry("IRQ", str(device.irq)))
        if device.screen >= 0:
            self._out.append(_entry("Screen", str(device.screen)))
        self._extra_write(device.extra)
        self._options_write(device.options)
        self._sectionEnd_write()

    def _screen_write(self, screen: Screen) -> None:
        """Write a Screen section with its Display subsections"""
        device_name = screen.device.identifier if screen.device is not None else screen.device_name
        monitor_name = screen.monitor.identifier if screen.monitor is not None else screen.monitor_name

        self._sectionStart_write("Screen", screen.comment)
        self._string_write("Identifier", screen.identifier)
        self._string_write("Device", device_name)
        self._string_write("Monitor", monitor_name)
        if screen.defaultdepth >= 0:
            self._out.append(_entry("DefaultDepth", f"{screen.defaultdepth:>4}"))
        self._extra_write(screen.extra)
        self._options_write(screen.options)
        for display in screen.displays:
            self._display_write(display)
        self._sectionEnd_write()

    def _display_write(self, display: Display) -> None:
        """Write a Display subsection"""
        self._out.extend(f"{INDENT}{line}" for line in display.comment)
        self._out.append(_entry("SubSection", _quote("Display")))
        if display.depth >= 0:
            self._out.append(_entry("Depth", f"{display.depth:>4}", depth=2))
        if display.bpp >= 0:
            self._out.append(_entry("FbBpp", f"{display.bpp:>4}", depth=2))
        if display.visual is not None:
            self._out.append(_entry("Visual", _quote(display.visual), depth=2))
        if display.virtual is not None:
            self._out.append(_entry("Virtual", f"{display.virtual[0]} {display.virtual[1]}", depth=2))
        if display.viewport is not None:
            self._out.append(_entry("ViewPort", f"{display.viewport[0]} {display.viewport[1]}", depth=2))
        if display.modes:
            self._out.append(_entry("Modes", " ".join(_quote(mode) for mode in display.modes), depth=2))
        self._extra_write(display.extra, depth=2)
        self._options_write(display.options, depth=2)
        self._out.append(f"{INDENT}EndSubSection")


def document_serialize(config: Configuration) -> str:
    """Serialize a Configuration to xorg.conf text"""
    return XConfigWriter(config).document_serialize()


def document_write(config: Configuration, path: Path, backup: bool = False) -> Optional[Path]:
    """
    Write a Configuration to disk

    Args:
        config: Document to write
        path: Destination file
        backup: Copy an existing destination to `<path>.backup` first

    Returns:
        Path of the backup copy, or None if none was made
    """
    backup_path: Optional[Path] = None
    if backup and path.exists():
        backup_path = path.with_name(path.name + ".backup")
        shutil.copy2(path, backup_path)
        logger.info(f"Backed up {path} to {backup_path}")

    text = document_serialize(config)
    with open(path, "w") as f:
        f.write(text)
    logger.info(f"Wrote {path}")
    return backup_path
