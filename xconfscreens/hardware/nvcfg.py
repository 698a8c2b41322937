"""GPU discovery through the NVIDIA hardware configuration library

libnvidia-cfg is loaded with ctypes for the duration of a single discovery
call. Loading probes the entry points the enumerator needs; a missing
required entry point makes the library unusable, while a missing
nvCfgIsPrimaryDevice only disables moving the primary GPU to the front.
"""

import ctypes
import ctypes.util
import logging
import os
from typing import Any, Callable, List, NoReturn, Optional, Tuple

from xconfscreens.common.settings import settings
from xconfscreens.common.types import HardwareUnavailableError
from xconfscreens.hardware.devices import DetectedDevice, DisplayOutput, EdidInfo

logger = logging.getLogger(__name__)

NVCFG_TRUE = 1

REQUIRED_SYMBOLS = (
    "nvCfgGetDevices",
    "nvCfgOpenDevice",
    "nvCfgGetNumCRTCs",
    "nvCfgGetProductName",
    "nvCfgGetDisplayDevices",
    "nvCfgGetEDID",
    "nvCfgCloseDevice",
)
OPTIONAL_SYMBOLS = ("nvCfgIsPrimaryDevice",)


class NvCfgDevice(ctypes.Structure):
    """NvCfgDevice: PCI location of one GPU"""
    _fields_ = [
        ("bus", ctypes.c_int),
        ("slot", ctypes.c_int),
    ]


class NvCfgDisplayDeviceInformation(ctypes.Structure):
    """NvCfgDisplayDeviceInformation: EDID-derived monitor description"""
    _fields_ = [
        ("monitor_name", ctypes.c_char * 64),
        ("min_horiz_sync", ctypes.c_uint),
        ("max_horiz_sync", ctypes.c_uint),
        ("min_vert_refresh", ctypes.c_uint),
        ("max_vert_refresh", ctypes.c_uint),
        ("max_pixel_clock", ctypes.c_uint),
        ("max_width", ctypes.c_uint),
        ("max_height", ctypes.c_uint),
        ("max_refresh_rate", ctypes.c_uint),
        ("preferred_width", ctypes.c_uint),
        ("preferred_height", ctypes.c_uint),
        ("preferred_refresh", ctypes.c_uint),
        ("physical_width", ctypes.c_uint),
        ("physical_height", ctypes.c_uint),
    ]

    def edidInfo_get(self) -> EdidInfo:
        """Convert to an EdidInfo value"""
        return EdidInfo(
            monitor_name=self.monitor_name.decode("utf-8", errors="replace"),
            min_horiz_sync=self.min_horiz_sync,
            max_horiz_sync=self.max_horiz_sync,
            min_vert_refresh=self.min_vert_refresh,
            max_vert_refresh=self.max_vert_refresh,
            max_pixel_clock=self.max_pixel_clock,
            max_width=self.max_width,
            max_height=self.max_height,
            max_refresh_rate=self.max_refresh_rate,
            preferred_width=self.preferred_width,
            preferred_height=self.preferred_height,
            preferred_refresh=self.preferred_refresh,
            physical_width=self.physical_width,
            physical_height=self.physical_height,
        )


_SIGNATURES = {
    "nvCfgGetDevices": [ctypes.POINTER(ctypes.c_int), ctypes.POINTER(ctypes.POINTER(NvCfgDevice))],
    "nvCfgOpenDevice": [ctypes.c_int, ctypes.c_int, ctypes.POINTER(ctypes.c_void_p)],
    "nvCfgGetNumCRTCs": [ctypes.c_void_p, ctypes.POINTER(ctypes.c_int)],
    "nvCfgGetProductName": [ctypes.c_void_p, ctypes.POINTER(ctypes.c_char_p)],
    "nvCfgGetDisplayDevices": [ctypes.c_void_p, ctypes.POINTER(ctypes.c_uint)],
    "nvCfgGetEDID": [ctypes.c_void_p, ctypes.c_uint, ctypes.POINTER(NvCfgDisplayDeviceInformation)],
    "nvCfgIsPrimaryDevice": [ctypes.c_void_p, ctypes.POINTER(ctypes.c_int)],
    "nvCfgCloseDevice": [ctypes.c_void_p],
}


def _libcFree_get() -> Callable[[Any], None]:
    """Return libc free() for memory handed out by the library"""
    libc = ctypes.CDLL(ctypes.util.find_library("c"))
    free = libc.free
    free.argtypes = [ctypes.c_void_p]
    free.restype = None
    return free


class NvCfgLibrary:
    """Probed entry points of a loaded libnvidia-cfg"""

    def __init__(self, cdll: Any, free: Optional[Callable[[Any], None]] = None) -> None:
        """
        Probe the entry points of a loaded library

        Args:
            cdll: Loaded library (ctypes.CDLL or an object exposing the same attributes)
            free: Deallocator for library-allocated memory (libc free by default)

        Raises:
            HardwareUnavailableError: If a required entry point is missing
        """
        self._cdll = cdll
        self._free = free
        self._funcs: dict = {}

        for name in REQUIRED_SYMBOLS:
            func = self._symbol_resolve(name)
            if func is None:
                logger.warning(f"error retrieving symbol {name} from {settings.NVCFG_LIB_NAME}")
                raise HardwareUnavailableError(f"{settings.NVCFG_LIB_NAME} has no symbol {name}")
            self._funcs[name] = func

        for name in OPTIONAL_SYMBOLS:
            func = self._symbol_resolve(name)
            if func is not None:
                self._funcs[name] = func
            else:
                logger.debug(f"{settings.NVCFG_LIB_NAME} has no optional symbol {name}")

    @classmethod
    def library_load(
        cls,
        nvidia_cfg_path: Optional[str] = None,
        loader: Callable[..., Any] = ctypes.CDLL,
    ) -> "NvCfgLibrary":
        """
        Open libnvidia-cfg and probe its entry points

        Args:
            nvidia_cfg_path: Directory to load the library from; the dynamic
                linker search path is used when None
            loader: Library loader, ctypes.CDLL by default

        Returns:
            Probed library wrapper

        Raises:
            HardwareUnavailableError: If the library cannot be opened or lacks
                a required entry point
        """
        lib_name = settings.NVCFG_LIB_NAME
        lib_path = os.path.join(nvidia_cfg_path, lib_name) if nvidia_cfg_path else lib_name

        try:
            cdll = loader(lib_path, mode=os.RTLD_NOW)
        except OSError as e:
            logger.warning(f"error opening {lib_name}: {e}.")
            raise HardwareUnavailableError(f"Unable to open {lib_path}: {e}") from e

        logger.debug(f"Loaded {lib_path}")
        return cls(cdll)

    def _symbol_resolve(self, name: str) -> Optional[Any]:
        """Look up one entry point and attach its C signature"""
        try:
            func = getattr(self._cdll, name)
        except AttributeError:
            return None
        func.argtypes = _SIGNATURES[name]
        func.restype = ctypes.c_int
        return func

    def _memory_free(self, pointer: Any) -> None:
        """Release memory allocated by the library"""
        if self._free is None:
            self._free = _libcFree_get()
        self._free(ctypes.cast(pointer, ctypes.c_void_p))

    @property
    def has_primary_query(self) -> bool:
        """True if nvCfgIsPrimaryDevice is available"""
        return "nvCfgIsPrimaryDevice" in self._funcs

    def library_close(self) -> None:
        """Drop the library and its entry points"""
        self._funcs = {}
        self._cdll = None

    # =========================================================================
    # Queries; each returns None when the library reports failure
    # =========================================================================

    def devices_get(self) -> Optional[List[Tuple[int, int]]]:
        """List (bus, slot) of every GPU"""
        count = ctypes.c_int(0)
        devs = ctypes.POINTER(NvCfgDevice)()
        if self._funcs["nvCfgGetDevices"](ctypes.byref(count), ctypes.byref(devs)) != NVCFG_TRUE:
            return None
        try:
            return [(devs[i].bus, devs[i].slot) for i in range(count.value)]
        finally:
            if devs:
                self._memory_free(devs)

    def device_open(self, bus: int, slot: int) -> Optional[ctypes.c_void_p]:
        """Open a handle to the GPU at bus:slot"""
        handle = ctypes.c_void_p()
        if self._funcs["nvCfgOpenDevice"](bus, slot, ctypes.byref(handle)) != NVCFG_TRUE:
            return None
        return handle

    def crtcCount_get(self, handle: ctypes.c_void_p) -> Optional[int]:
        """Number of CRTCs (display heads) on the GPU"""
        crtcs = ctypes.c_int(0)
        if self._funcs["nvCfgGetNumCRTCs"](handle, ctypes.byref(crtcs)) != NVCFG_TRUE:
            return None
        return crtcs.value

    def productName_get(self, handle: ctypes.c_void_p) -> Optional[str]:
        """Marketing name of the GPU"""
        name = ctypes.c_char_p()
        if self._funcs["nvCfgGetProductName"](handle, ctypes.byref(name)) != NVCFG_TRUE:
            return None
        try:
            return name.value.decode("utf-8", errors="replace") if name.value else ""
        finally:
            if name.value is not None:
                self._memory_free(name)

    def displayDeviceMask_get(self, handle: ctypes.c_void_p) -> Optional[int]:
        """Bitmask of display devices attached to the GPU"""
        mask = ctypes.c_uint(0)
        if self._funcs["nvCfgGetDisplayDevices"](handle, ctypes.byref(mask)) != NVCFG_TRUE:
            return None
        return mask.value

    def edid_get(self, handle: ctypes.c_void_p, display_device: int) -> Optional[EdidInfo]:
        """EDID information of one display device (a single mask bit)"""
        info = NvCfgDisplayDeviceInformation()
        if self._funcs["nvCfgGetEDID"](handle, display_device, ctypes.byref(info)) != NVCFG_TRUE:
            return None
        return info.edidInfo_get()

    def primaryDevice_check(self, handle: ctypes.c_void_p) -> Optional[bool]:
        """Whether the GPU is the primary (boot) device; None if unknown"""
        func = self._funcs.get("nvCfgIsPrimaryDevice")
        if func is None:
            return None
        is_primary = ctypes.c_int(0)
        if func(handle, ctypes.byref(is_primary)) != NVCFG_TRUE:
            return None
        return is_primary.value == NVCFG_TRUE

    def device_close(self, handle: ctypes.c_void_p) -> bool:
        """Close a device handle"""
        return self._funcs["nvCfgCloseDevice"](handle) == NVCFG_TRUE


class HardwareEnumerator:
    """Builds the list of detected GPUs, primary GPU first"""

    def __init__(self, library: NvCfgLibrary) -> None:
        """
        Initialize enumerator

        Args:
            library: Probed nvidia-cfg library
        """
        self._library = library

    def devices_discover(self) -> List[DetectedDevice]:
        """
        Query every GPU for its name, CRTC count and display devices

        Returns:
            Detected GPUs; entry 0 is the primary GPU when the library can
            tell which one that is

        Raises:
            HardwareUnavailableError: If the GPU list cannot be read, is empty,
                or any per-GPU query other than EDID fails
        """
        lib = self._library

        raw_devices = lib.devices_get()
        if raw_devices is None:
            raise HardwareUnavailableError("nvCfgGetDevices failed")
        if not raw_devices:
            raise HardwareUnavailableError("No NVIDIA GPUs found")

        devices: List[DetectedDevice] = []

        for index, (bus, slot) in enumerate(raw_devices):
            handle = lib.device_open(bus, slot)
            if handle is None:
                self._discovery_abort(devices, f"cannot open GPU at {bus}:{slot}")

            device = DetectedDevice(bus=bus, slot=slot)
            devices.append(device)

            # A failure from here on leaves `handle` open.
            crtcs = lib.crtcCount_get(handle)
            if crtcs is None:
                self._discovery_abort(devices, f"cannot query CRTCs of GPU at {bus}:{slot}")
            device.crtcs = crtcs

            name = lib.productName_get(handle)
            if name is None:
                self._discovery_abort(devices, f"cannot query name of GPU at {bus}:{slot}")
            device.name = name

            mask = lib.displayDeviceMask_get(handle)
            if mask is None:
                self._discovery_abort(devices, f"cannot query display devices of GPU at {bus}:{slot}")
            device.display_device_mask = mask
            device.display_devices = self._displayOutputs_query(handle, mask)

            if index != 0 and lib.has_primary_query and lib.primaryDevice_check(handle):
                devices[0], devices[index] = devices[index], devices[0]
                logger.debug(f"GPU at {bus}:{slot} is the primary device")

            if not lib.device_close(handle):
                self._discovery_abort(devices, f"cannot close GPU at {bus}:{slot}")

            logger.debug(
                f"Found {device.name} at {device.busid}: {device.crtcs} CRTC(s), "
                f"{device.display_count} display device(s)"
            )

        return devices

    def _displayOutputs_query(self, handle: ctypes.c_void_p, mask: int) -> List[DisplayOutput]:
        """Read EDID for every display device bit set in the mask"""
        outputs: List[DisplayOutput] = []
        for bit_index in range(settings.DISPLAY_MASK_BITS):
            bit = 1 << bit_index
            if not mask & bit:
                continue
            info = self._library.edid_get(handle, bit)
            if info is None:
                logger.debug(f"No EDID for display device 0x{bit:08x}")
            outputs.append(DisplayOutput(mask=bit, info_valid=info is not None, info=info))
        return outputs

    @staticmethod
    def _discovery_abort(devices: List[DetectedDevice], reason: str) -> NoReturn:
        """Discard partial results and fail the discovery"""
        logger.debug(reason)
        logger.warning("Unable to use the nvidia-cfg library to query NVIDIA hardware.")
        devices.clear()
        raise HardwareUnavailableError(reason)


def devices_discover(nvidia_cfg_path: Optional[str] = None) -> List[DetectedDevice]:
    """
    Load libnvidia-cfg, query all GPUs and release the library

    Args:
        nvidia_cfg_path: Optional directory holding libnvidia-cfg.so.1

    Returns:
        Detected GPUs, primary GPU first

    Raises:
        HardwareUnavailableError: If the hardware cannot be queried
    """
    library = NvCfgLibrary.library_load(nvidia_cfg_path)
    try:
        return HardwareEnumerator(library).devices_discover()
    finally:
        library.library_close()
