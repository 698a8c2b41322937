"""Parser for X configuration documents (xorg.conf)

Only the sections edited by xconfscreens are modelled field by field
(Device, Monitor, Screen, ServerLayout, ServerFlags). Every other section
is kept verbatim, and unknown entries inside modelled sections are kept as
passthrough lines, so a parse/write cycle does not lose content.
"""

import logging
import shlex
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from xconfscreens.common.types import ConfigSyntaxError
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
    device_find,
    monitor_find,
    screen_find,
)

logger = logging.getLogger(__name__)

# (line number, raw text)
SourceLine = Tuple[int, str]

_PLACEMENT_KEYWORDS: Dict[str, AdjacencyPlacement] = {
    "rightof": AdjacencyPlacement.RIGHTOF,
    "leftof": AdjacencyPlacement.LEFTOF,
    "above": AdjacencyPlacement.ABOVE,
    "below": AdjacencyPlacement.BELOW,
}


class XConfigParser:
    """Parses xorg.conf text into a Configuration"""

    def __init__(self, text: str) -> None:
        """
        Initialize parser

        Args:
            text: Complete document text
        """
        self._lines: List[SourceLine] = [
            (number, line) for number, line in enumerate(text.splitlines(), start=1)
        ]
        self._config = Configuration()
        self._section_handlers: Dict[str, Callable[[int, List[SourceLine], List[str]], None]] = {
            "device": self._device_parse,
            "monitor": self._monitor_parse,
            "screen": self._screen_parse,
            "serverlayout": self._layout_parse,
            "serverflags": self._flags_parse,
        }

    def document_parse(self) -> Configuration:
        """
        Parse the whole document

        Returns:
            Parsed Configuration with cross-references resolved

        Raises:
            ConfigSyntaxError: If the document is malformed
        """
        pending_comments: List[str] = []
        seen_section = False
        index = 0

        while index < len(self._lines):
            number, line = self._lines[index]
            stripped = line.strip()
            index += 1

            if not stripped:
                continue
            if stripped.startswith("#"):
                if seen_section:
                    pending_comments.append(stripped)
                else:
                    self._config.comment.append(stripped)
                continue

            tokens = self._tokens_split(number, stripped)
            if tokens[0].lower() != "section":
                raise ConfigSyntaxError(number, f"expected Section, found '{tokens[0]}'")
            if len(tokens) < 2:
                raise ConfigSyntaxError(number, "Section without a name")

            name = tokens[1]
            body, index = self._sectionBody_collect(number, index)
            seen_section = True

            handler = self._section_handlers.get(name.lower())
            if handler is None:
                raw = RawSection(name=name, lines=[text for _, text in body], comment=pending_comments)
                self._config.sections.append(raw)
            else:
                handler(number, body, pending_comments)
            pending_comments = []

        self._references_resolve()
        return self._config

    # =========================================================================
    # Tokenizing
    # =========================================================================

    @staticmethod
    def _tokens_split(number: int, text: str) -> List[str]:
        """Split one line into words, honouring quotes and trailing comments"""
        try:
            return shlex.split(text, comments=True)
        except ValueError as e:
            raise ConfigSyntaxError(number, str(e)) from e

    @staticmethod
    def _int_parse(number: int, token: str) -> int:
        """Parse a decimal, hex (0x) or octal (0o) integer token"""
        try:
            return int(token, 0)
        except ValueError as e:
            raise ConfigSyntaxError(number, f"expected an integer, found '{token}'") from e

    @staticmethod
    def _argument_get(number: int, tokens: List[str]) -> str:
        """Return the single argument of a keyword entry"""
        if len(tokens) < 2:
            raise ConfigSyntaxError(number, f"'{tokens[0]}' needs an argument")
        return tokens[1]

    def _sectionBody_collect(self, start: int, index: int) -> Tuple[List[SourceLine], int]:
        """
        Collect the lines between a Section line and its EndSection

        Args:
            start: Line number of the Section keyword
            index: Index of the first body line

        Returns:
            (body lines, index after EndSection)
        """
        body: List[SourceLine] = []
        while index < len(self._lines):
            number, line = self._lines[index]
            index += 1
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                keyword = self._tokens_split(number, stripped)
                if keyword and keyword[0].lower() == "endsection":
                    return body, index
                if keyword and keyword[0].lower() == "section":
                    raise ConfigSyntaxError(number, "Section inside another Section")
            body.append((number, line))
        raise ConfigSyntaxError(start, "Section is missing EndSection")

    def _entries_iterate(self, body: List[SourceLine], comment: List[str]):
        """Yield (line number, stripped text, tokens) for non-comment lines"""
        for number, line in body:
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.startswith("#"):
                comment.append(stripped)
                continue
            tokens = self._tokens_split(number, stripped)
            if tokens:
                yield number, stripped, tokens

    def _option_parse(self, number: int, tokens: List[str]) -> Option:
        """Parse an Option entry"""
        name = self._argument_get(number, tokens)
        value = tokens[2] if len(tokens) > 2 else None
        return Option(name=name, value=value)

    # =========================================================================
    # Section parsers
    # =========================================================================

    def _device_parse(self, start: int, body: List[SourceLine], comment: List[str]) -> None:
        """Parse a Device section"""
        device = Device(identifier="", comment=comment)
        string_fields = {
            "identifier": "identifier",
            "vendorname": "vendor",
            "boardname": "board",
            "chipset": "chipset",
            "busid": "busid",
            "card": "card",
            "driver": "driver",
            "ramdac": "ramdac",
        }
        int_fields = {"screen": "screen", "chipid": "chipid", "chiprev": "chiprev", "irq": "irq"}

        for number, stripped, tokens in self._entries_iterate(body, device.comment):
            keyword = tokens[0].lower()
            if keyword in string_fields:
                setattr(device, string_fields[keyword], self._argument_get(number, tokens))
            elif keyword in int_fields:
                value = self._int_parse(number, self._argument_get(number, tokens))
                setattr(device, int_fields[keyword], value)
            elif keyword == "option":
                device.options.append(self._option_parse(number, tokens))
            else:
                device.extra.append(stripped)

        self._identifier_require(start, "Device", device.identifier)
        self._config.devices.append(device)

    def _monitor_parse(self, start: int, body: List[SourceLine], comment: List[str]) -> None:
        """Parse a Monitor section"""
        monitor = Monitor(identifier="", comment=comment)

        for number, stripped, tokens in self._entries_iterate(body, monitor.comment):
            keyword = tokens[0].lower()
            if keyword == "identifier":
                monitor.identifier = self._argument_get(number, tokens)
            elif keyword == "vendorname":
                monitor.vendor = self._argument_get(number, tokens)
            elif keyword == "modelname":
                monitor.model = self._argument_get(number, tokens)
            elif keyword == "horizsync":
                monitor.horizsync = " ".join(tokens[1:])
            elif keyword == "vertrefresh":
                monitor.vertrefresh = " ".join(tokens[1:])
            elif keyword == "option":
                monitor.options.append(self._option_parse(number, tokens))
            else:
                monitor.extra.append(stripped)

        self._identifier_require(start, "Monitor", monitor.identifier)
        self._config.monitors.append(monitor)

    def _screen_parse(self, start: int, body: List[SourceLine], comment: List[str]) -> None:
        """Parse a Screen section, including its Display subsections"""
        screen = Screen(identifier="", comment=comment)
        index = 0

        while index < len(body):
            number, line = body[index]
            index += 1
            stripped = line.strip()
            if not stripped:
                continue
            if stripped.startswith("#"):
                screen.comment.append(stripped)
                continue

            tokens = self._tokens_split(number, stripped)
            keyword = tokens[0].lower()
            if keyword == "identifier":
                screen.identifier = self._argument_get(number, tokens)
            elif keyword == "device":
                screen.device_name = self._argument_get(number, tokens)
            elif keyword == "monitor":
                screen.monitor_name = self._argument_get(number, tokens)
            elif keyword == "defaultdepth":
                screen.defaultdepth = self._int_parse(number, self._argument_get(number, tokens))
            elif keyword == "option":
                screen.options.append(self._option_parse(number, tokens))
            elif keyword == "subsection":
                sub_body, index = self._subsectionBody_collect(number, body, index)
                if self._argument_get(number, tokens).lower() == "display":
                    screen.displays.append(self._display_parse(sub_body))
                else:
                    screen.extra.append(stripped)
                    screen.extra.extend(text.strip() for _, text in sub_body if text.strip())
                    screen.extra.append("EndSubSection")
            else:
                screen.extra.append(stripped)

        self._identifier_require(start, "Screen", screen.identifier)
        self._config.screens.append(screen)

    def _subsectionBody_collect(
        self, start: int, body: List[SourceLine], index: int
    ) -> Tuple[List[SourceLine], int]:
        """Collect the lines of a SubSection up to its EndSubSection"""
        sub_body: List[SourceLine] = []
        while index < len(body):
            number, line = body[index]
            index += 1
            stripped = line.strip()
            if stripped and not stripped.startswith("#"):
                tokens = self._tokens_split(number, stripped)
                if tokens and tokens[0].lower() == "endsubsection":
                    return sub_body, index
            sub_body.append((number, line))
        raise ConfigSyntaxError(start, "SubSection is missing EndSubSection")

    def _display_parse(self, body: List[SourceLine]) -> Display:
        """Parse a Display subsection"""
        display = Display()

        for number, stripped, tokens in self._entries_iterate(body, display.comment):
            keyword = tokens[0].lower()
            if keyword == "depth":
                display.depth = self._int_parse(number, self._argument_get(number, tokens))
            elif keyword == "fbbpp":
                display.bpp = self._int_parse(number, self._argument_get(number, tokens))
            elif keyword == "modes":
                display.modes = tokens[1:]
            elif keyword == "visual":
                display.visual = self._argument_get(number, tokens)
            elif keyword in ("virtual", "viewport"):
                if len(tokens) < 3:
                    raise ConfigSyntaxError(number, f"'{tokens[0]}' needs two values")
                pair = (self._int_parse(number, tokens[1]), self._int_parse(number, tokens[2]))
                setattr(display, keyword, pair)
            elif keyword == "option":
                display.options.append(self._option_parse(number, tokens))
            else:
                display.extra.append(stripped)

        return display

    def _layout_parse(self, start: int, body: List[SourceLine], comment: List[str]) -> None:
        """Parse a ServerLayout section"""
        layout = Layout(identifier="", comment=comment)

        for number, stripped, tokens in self._entries_iterate(body, layout.comment):
            keyword = tokens[0].lower()
            if keyword == "identifier":
                layout.identifier = self._argument_get(number, tokens)
            elif keyword == "screen":
                layout.adjacencies.append(self._adjacency_parse(number, tokens, len(layout.adjacencies)))
            elif keyword == "option":
                layout.options.append(self._option_parse(number, tokens))
            else:
                layout.extra.append(stripped)

        self._identifier_require(start, "ServerLayout", layout.identifier)
        self._config.layouts.append(layout)

    def _adjacency_parse(self, number: int, tokens: List[str], position: int) -> Adjacency:
        """
        Parse a ServerLayout Screen entry

        Accepted forms:
            Screen [scrnum] "name"
            Screen [scrnum] "name" x y
            Screen [scrnum] "name" Absolute x y
            Screen [scrnum] "name" RightOf|LeftOf|Above|Below "ref"
            Screen [scrnum] "name" Relative "ref" x y
        """
        args = tokens[1:]
        if args and args[0].lstrip("-").isdigit() and len(args) > 1:
            scrnum = self._int_parse(number, args[0])
            args = args[1:]
        else:
            scrnum = position
        if not args:
            raise ConfigSyntaxError(number, "Screen entry without a screen name")

        adj = Adjacency(scrnum=scrnum, screen_name=args[0])
        rest = args[1:]
        if not rest:
            return adj

        keyword = rest[0].lower()
        if keyword in _PLACEMENT_KEYWORDS:
            if len(rest) < 2:
                raise ConfigSyntaxError(number, f"'{rest[0]}' needs a reference screen")
            adj.where = _PLACEMENT_KEYWORDS[keyword]
            adj.refscreen = rest[1]
        elif keyword == "relative":
            if len(rest) < 4:
                raise ConfigSyntaxError(number, "'Relative' needs a reference screen and offsets")
            adj.where = AdjacencyPlacement.RELATIVE
            adj.refscreen = rest[1]
            adj.x = self._int_parse(number, rest[2])
            adj.y = self._int_parse(number, rest[3])
        else:
            coords = rest[1:] if keyword == "absolute" else rest
            if len(coords) < 2:
                raise ConfigSyntaxError(number, "absolute position needs x and y")
            adj.where = AdjacencyPlacement.ABSOLUTE
            adj.x = self._int_parse(number, coords[0])
            adj.y = self._int_parse(number, coords[1])
        return adj

    def _flags_parse(self, start: int, body: List[SourceLine], comment: List[str]) -> None:
        """Parse a ServerFlags section; a second one is merged into the first"""
        if self._config.flags is None:
            self._config.flags = Flags(comment=comment)
        else:
            logger.warning(f"line {start}: merging duplicate ServerFlags section")
            self._config.flags.comment.extend(comment)
        flags = self._config.flags

        for number, stripped, tokens in self._entries_iterate(body, flags.comment):
            if tokens[0].lower() == "option":
                flags.options.append(self._option_parse(number, tokens))
            else:
                flags.extra.append(stripped)

    @staticmethod
    def _identifier_require(start: int, kind: str, identifier: str) -> None:
        """Reject sections without an Identifier"""
        if not identifier:
            raise ConfigSyntaxError(start, f"{kind} section has no Identifier")

    # =========================================================================
    # Cross references
    # =========================================================================

    def _references_resolve(self) -> None:
        """Link Screens to Devices/Monitors and Adjacencies to Screens by name"""
        config = self._config
        for screen in config.screens:
            if screen.device_name is not None:
                screen.device = device_find(screen.device_name, config.devices)
                if screen.device is None:
                    logger.warning(f"Screen '{screen.identifier}' refers to unknown Device '{screen.device_name}'")
            if screen.monitor_name is not None:
                screen.monitor = monitor_find(screen.monitor_name, config.monitors)
                if screen.monitor is None:
                    logger.warning(f"Screen '{screen.identifier}' refers to unknown Monitor '{screen.monitor_name}'")

        for layout in config.layouts:
            for adj in layout.adjacencies:
                adj.screen = screen_find(adj.screen_name, config.screens)
                if adj.screen is None:
                    logger.warning(f"Layout '{layout.identifier}' refers to unknown Screen '{adj.screen_name}'")


def document_parse(text: str) -> Configuration:
    """
    Parse xorg.conf text

    Raises:
        ConfigSyntaxError: If the document is malformed
    """
    return XConfigParser(text).document_parse()


def document_read(path: Path) -> Configuration:
    """
    Read and parse an xorg.conf file

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigSyntaxError: If the document is malformed
    """
    with open(path, "r") as f:
        text = f.read()
    config = document_parse(text)
    logger.info(
        f"Read {path}: {len(config.screens)} screen(s), {len(config.devices)} device(s), "
        f"{len(config.monitors)} monitor(s), {len(config.layouts)} layout(s)"
    )
    return config
