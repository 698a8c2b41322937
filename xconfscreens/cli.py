"""xconfscreens command-line interface"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from xconfscreens import __version__
from xconfscreens.common.app_logging import logging_setup
from xconfscreens.common.config import Config, ConfigLoader
from xconfscreens.common.settings import settings
from xconfscreens.common.types import MultiScreenOptions, XConfScreensError
from xconfscreens.hardware.devices import DetectedDevice
from xconfscreens.hardware.nvcfg import devices_discover
from xconfscreens.multiscreen.adjacency import adjacencies_create
from xconfscreens.multiscreen.orchestrator import multiScreenOptions_apply
from xconfscreens.xconfig.model import Configuration, Layout, layout_find
from xconfscreens.xconfig.parser import document_read
from xconfscreens.xconfig.writer import document_write

logger = logging.getLogger(__name__)


def arguments_parse(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments

    Args:
        argv: Argument list; sys.argv[1:] when None

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="xconfscreens",
        description="Reconcile the X screens of an xorg.conf with the installed NVIDIA GPUs",
    )

    parser.add_argument("--version", action="version", version=f"xconfscreens {__version__}")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: search standard locations)",
    )

    parser.add_argument(
        "-c",
        "--xconfig",
        type=str,
        default=None,
        help="X configuration file to edit (overrides config)",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write the result here instead of over the input file",
    )

    parser.add_argument(
        "--layout",
        type=str,
        default=None,
        help="ServerLayout to edit (default: the first one)",
    )

    parser.add_argument(
        "--no-backup",
        action="store_true",
        help="Do not save a .backup copy of the file being overwritten",
    )

    # Multi-screen policies
    parser.add_argument(
        "--enable-all-gpus",
        action="store_true",
        help="Replace all X screens with one X screen per detected GPU",
    )

    parser.add_argument(
        "--separate-x-screens",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Split (or merge) X screens sharing a GPU",
    )

    parser.add_argument(
        "--xinerama",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable (or disable) Xinerama",
    )

    parser.add_argument(
        "--only-one-screen",
        action="store_true",
        help="Delete every X screen but the first",
    )

    parser.add_argument(
        "--screen",
        type=str,
        default=None,
        help="Restrict --separate-x-screens to this Screen section",
    )

    parser.add_argument(
        "--nvidia-cfg-path",
        type=str,
        default=None,
        dest="nvidia_cfg_path",
        help="Directory containing libnvidia-cfg.so.1 (overrides config)",
    )

    parser.add_argument(
        "--query-gpu-info",
        action="store_true",
        help="Print information about the detected GPUs and exit",
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging (overrides config)"
    )

    parser.add_argument(
        "--info", action="store_true", help="Enable info logging (overrides config)"
    )

    parser.add_argument(
        "--warning", action="store_true", help="Enable warning logging (overrides config)"
    )

    parser.add_argument(
        "--error", action="store_true", help="Enable error logging (overrides config)"
    )

    parser.add_argument(
        "--critical", action="store_true", help="Enable critical logging (overrides config)"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main entry point for the xconfscreens command

    Args:
        argv: Argument list; sys.argv[1:] when None
    """
    args = arguments_parse(argv)

    try:
        config = configForArgs_load(args)
        settings.initialize(config)
        logging_setup(config.logging.level, config.logging.format, config.logging.file)

        if args.query_gpu_info:
            sys.exit(gpuInfo_query(config))
        sys.exit(xconfig_edit(args, config))

    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def logLevelOverride_get(args: argparse.Namespace) -> str | None:
    """
    Resolve explicit log level override flags.

    Args:
        args: Parsed CLI args.

    Returns:
        Selected log level or None.
    """
    if args.critical:
        return "CRITICAL"
    if args.error:
        return "ERROR"
    if args.warning:
        return "WARNING"
    if args.info:
        return "INFO"
    if args.debug:
        return "DEBUG"
    return None


def configForArgs_load(args: argparse.Namespace) -> Config:
    """
    Load the tool configuration with command-line overrides applied.

    Args:
        args: Parsed CLI args.

    Returns:
        Effective configuration.
    """
    config_path: Path | None = Path(args.config) if args.config else None
    return ConfigLoader.configWithOverrides_load(
        config_path,
        xconfig_path=args.xconfig,
        nvidia_cfg_path=args.nvidia_cfg_path,
        log_level=logLevelOverride_get(args),
        backup=False if args.no_backup else None,
    )


def multiScreenOptions_build(args: argparse.Namespace, config: Config) -> MultiScreenOptions:
    """
    Translate CLI args into multi-screen policy options.

    Args:
        args: Parsed CLI args.
        config: Effective configuration.

    Returns:
        Options for multiScreenOptions_apply.
    """
    return MultiScreenOptions(
        enable_all_gpus=args.enable_all_gpus,
        separate_x_screens=args.separate_x_screens,
        xinerama=args.xinerama,
        only_one_screen=args.only_one_screen,
        screen=args.screen,
        nvidia_cfg_path=config.hardware.nvidia_cfg_path,
    )


def layout_select(document: Configuration, name: str | None) -> Layout:
    """
    Pick the ServerLayout to edit, creating one if the document has none.

    Args:
        document: Parsed X configuration.
        name: Requested layout identifier, or None for the first layout.

    Returns:
        Layout section of `document`.

    Raises:
        XConfScreensError: If the named layout does not exist.
    """
    if name:
        layout = layout_find(name, document.layouts)
        if layout is None:
            raise XConfScreensError(f"Unable to find layout '{name}'.")
        return layout

    if document.layouts:
        return document.layouts[0]

    layout = Layout(identifier=settings.DEFAULT_LAYOUT_NAME)
    document.layouts.append(layout)
    adjacencies_create(document, layout)
    logger.info(f"Created ServerLayout '{layout.identifier}'")
    return layout


def xconfig_edit(args: argparse.Namespace, config: Config) -> int:
    """
    Read the X configuration, apply the policies and write it back.

    Args:
        args: Parsed CLI args.
        config: Effective configuration.

    Returns:
        Process exit status.
    """
    input_path = Path(config.xconfig.path)
    output_path = Path(args.output) if args.output else input_path

    document = document_read(input_path)
    layout = layout_select(document, args.layout)

    options = multiScreenOptions_build(args, config)
    if not multiScreenOptions_apply(options, document, layout):
        print(f"Error: unable to apply multi-screen options to '{input_path}'", file=sys.stderr)
        return 1

    document_write(document, output_path, backup=config.xconfig.backup)
    print(f"New X configuration file written to '{output_path}'")
    return 0


def gpuInfo_query(config: Config) -> int:
    """
    Print the detected GPUs and their display devices.

    Args:
        config: Effective configuration.

    Returns:
        Process exit status.
    """
    devices = devices_discover(config.hardware.nvidia_cfg_path)
    print("\n".join(gpuInfo_format(devices)))
    return 0


def gpuInfo_format(devices: List[DetectedDevice]) -> List[str]:
    """
    Describe detected GPUs as printable lines.

    Args:
        devices: GPUs from devices_discover.

    Returns:
        Output lines.
    """
    lines: List[str] = [f"Number of GPUs: {len(devices)}"]

    for index, device in enumerate(devices):
        lines.append("")
        lines.append(f"GPU #{index}:")
        lines.append(f"  Name      : {device.name}")
        lines.append(f"  PCI BusID : {device.busid}")
        lines.append("")
        lines.append(f"  Number of CRTCs: {device.crtcs}")
        lines.append(f"  Number of Display Devices: {device.display_count}")

        for output_index, output in enumerate(device.display_devices):
            lines.append("")
            lines.append(f"  Display Device {output_index} (0x{output.mask:08x}):")
            if not output.info_valid or output.info is None:
                lines.append("      Unable to determine EDID information.")
                continue
            info = output.info
            lines.append(f"      EDID Name             : {info.monitor_name}")
            lines.append(f"      Minimum HorizSync     : {info.min_horiz_sync / 1000.0:.3f} kHz")
            lines.append(f"      Maximum HorizSync     : {info.max_horiz_sync / 1000.0:.3f} kHz")
            lines.append(f"      Minimum VertRefresh   : {info.min_vert_refresh / 1000.0:.0f} Hz")
            lines.append(f"      Maximum VertRefresh   : {info.max_vert_refresh / 1000.0:.0f} Hz")
            lines.append(f"      Maximum PixelClock    : {info.max_pixel_clock / 1000.0:.3f} MHz")
            lines.append(f"      Maximum Width         : {info.max_width} pixels")
            lines.append(f"      Maximum Height        : {info.max_height} pixels")
            lines.append(f"      Preferred Width       : {info.preferred_width} pixels")
            lines.append(f"      Preferred Height      : {info.preferred_height} pixels")
            lines.append(f"      Preferred VertRefresh : {info.preferred_refresh} Hz")
            lines.append(f"      Physical Width        : {info.physical_width} mm")
            lines.append(f"      Physical Height       : {info.physical_height} mm")

    return lines


if __name__ == "__main__":
    main()
