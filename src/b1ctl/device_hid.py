#!/usr/bin/env python3
"""
HID transport layer for blink(1) devices.

blink(1) is a plain HID device: every command and response is a feature
report (report ID 1, 9 bytes).  Nothing travels over interrupt endpoints.

The ``HidTransport`` ABC abstracts the raw feature-report I/O so that:
  • Tests can inject a mock transport (no real hardware needed).
  • ``HidApiTransport`` uses the OS HID driver via HIDAPI (preferred).
  • ``PyUsbTransport`` issues HID class control transfers via pyusb.

Linux dependencies (install one):
  • hidapi: ``pip install hidapi`` (needs libhidapi: ``apt install libhidapi-hidraw0``)
  • pyusb:  ``pip install pyusb``  (needs libusb1: ``apt install libusb-1.0-0``)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

import usb.core
import usb.util

from .constants import (
    B1_PID,
    B1_VID,
    DEFAULT_TIMEOUT_MS,
    HID_REPORT_TYPE_FEATURE,
    HID_REQ_GET_REPORT,
    HID_REQ_SET_REPORT,
    USB_CONFIGURATION,
    USB_INTERFACE,
    max_pattern_for,
)

# hidapi is optional ([hid] extra)
try:
    import hid as hidapi
    HIDAPI_AVAILABLE = True
except ImportError:
    HIDAPI_AVAILABLE = False

log = logging.getLogger(__name__)


# bmRequestType for HID class requests on interface 0
_REQTYPE_OUT = usb.util.CTRL_OUT | usb.util.CTRL_TYPE_CLASS | usb.util.CTRL_RECIPIENT_INTERFACE
_REQTYPE_IN = usb.util.CTRL_IN | usb.util.CTRL_TYPE_CLASS | usb.util.CTRL_RECIPIENT_INTERFACE


# =========================================================================
# Device info
# =========================================================================

@dataclass(frozen=True)
class Blink1Info:
    """Identity of a connected blink(1), as found by a scan.

    Attributes:
        vid: USB vendor ID.
        pid: USB product ID.
        serial: Serial number string (8 hex digits on real devices).
        product: Product string ("blink(1) mk2", ...).
        release: USB bcdDevice / HID release number; equals the generation.
        path: Backend-specific open path (hidraw path or bus-address).
        backend: 'hidapi' or 'pyusb'.
    """
    vid: int = B1_VID
    pid: int = B1_PID
    serial: str = ""
    product: str = ""
    release: int = 0
    path: Any = None
    backend: str = ""

    @property
    def generation(self) -> int:
        return self.release

    @property
    def max_pattern(self) -> int:
        return max_pattern_for(self.release)


def is_blink1(info: Optional[Blink1Info]) -> bool:
    """Whether *info* describes a blink(1) by VID/PID."""
    if info is None:
        return False
    return info.vid == B1_VID and info.pid == B1_PID


# =========================================================================
# Abstract HID transport
# =========================================================================

class HidTransport(ABC):
    """Abstract feature-report transport, mockable for testing."""

    @abstractmethod
    def open(self) -> None:
        """Open the HID device."""

    @abstractmethod
    def close(self) -> None:
        """Release and close the device."""

    @abstractmethod
    def write_feature(self, data: bytes) -> int:
        """Send a feature report; data[0] is the report ID.  Returns bytes sent."""

    @abstractmethod
    def read_feature(self, report_id: int, length: int) -> bytes:
        """Get a feature report of *length* bytes, report ID included."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is currently open."""


# =========================================================================
# Real transport: HIDAPI
# =========================================================================

class HidApiTransport(HidTransport):
    """Feature-report transport using HIDAPI (the ``hidapi`` package).

    HIDAPI uses the OS HID driver (hidraw on Linux), so it works without
    detaching the kernel driver; a udev rule is still needed for non-root.

    Requires: ``pip install hidapi`` + ``apt install libhidapi-hidraw0``
    """

    def __init__(self, vid: int = B1_VID, pid: int = B1_PID,
                 serial: Optional[str] = None, path: Optional[bytes] = None):
        if not HIDAPI_AVAILABLE:
            raise ImportError(
                "hidapi is not installed. Install with: pip install hidapi\n"
                "Also need libhidapi: apt install libhidapi-hidraw0 (Debian/Ubuntu) "
                "or dnf install hidapi (Fedora)"
            )
        self._vid = vid
        self._pid = pid
        self._serial = serial
        self._path = path
        self._device = None
        self._is_open = False

    def open(self) -> None:
        """Open by hidraw path when known, else by VID/PID/serial."""
        device = hidapi.device()
        if self._path:
            device.open_path(self._path)
        else:
            device.open(self._vid, self._pid, self._serial)
        self._device = device
        self._is_open = True
        log.debug("hidapi: opened %04x:%04x serial=%s", self._vid, self._pid, self._serial)

    def close(self) -> None:
        if self._device is not None:
            try:
                self._device.close()
            except Exception as e:
                log.debug("hidapi close: %s", e)
            self._device = None
        self._is_open = False

    def write_feature(self, data: bytes) -> int:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        sent = self._device.send_feature_report(list(data))
        if sent < 0:
            raise OSError(f"send_feature_report failed ({sent})")
        return sent

    def read_feature(self, report_id: int, length: int) -> bytes:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        data = self._device.get_feature_report(report_id, length)
        if not data:
            raise OSError("get_feature_report returned no data")
        return bytes(data)

    @property
    def is_open(self) -> bool:
        return self._is_open

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()


# =========================================================================
# Real transport: PyUSB  (libusb backend)
# =========================================================================
# Feature reports map onto HID class control requests on endpoint 0:
#   SET_REPORT  bmRequestType=0x21 bRequest=0x09 wValue=(3<<8)|id wIndex=0
#   GET_REPORT  bmRequestType=0xA1 bRequest=0x01 wValue=(3<<8)|id wIndex=0
# The report ID stays in the data stage, as blink1-lib does with libusb.

class PyUsbTransport(HidTransport):
    """Feature-report transport using pyusb control transfers.

    Sequence:
    1. Find device by VID/PID (and serial)
    2. Detach usbhid if it holds interface 0
    3. SetConfiguration(1), ClaimInterface(0)
    4. SET_REPORT / GET_REPORT on endpoint 0

    Requires: ``pip install pyusb`` + ``apt install libusb-1.0-0``
    """

    def __init__(self, vid: int = B1_VID, pid: int = B1_PID,
                 serial: Optional[str] = None, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self._vid = vid
        self._pid = pid
        self._serial = serial
        self._timeout_ms = timeout_ms
        self._device = None
        self._is_open = False

    def open(self) -> None:
        kwargs: dict[str, Any] = {'idVendor': self._vid, 'idProduct': self._pid}
        if self._serial:
            kwargs['serial_number'] = self._serial

        self._device = usb.core.find(**kwargs)  # type: ignore[union-attr]
        if self._device is None:
            raise RuntimeError(
                f"USB device not found: VID={self._vid:#06x} PID={self._pid:#06x}"
            )

        try:
            if self._device.is_kernel_driver_active(USB_INTERFACE):  # type: ignore[union-attr]
                self._device.detach_kernel_driver(USB_INTERFACE)  # type: ignore[union-attr]
                log.debug("Detached kernel driver from interface %d", USB_INTERFACE)
        except Exception as e:
            log.debug("Kernel driver detach: %s", e)

        self._device.set_configuration(USB_CONFIGURATION)  # type: ignore[union-attr]
        usb.util.claim_interface(self._device, USB_INTERFACE)
        self._is_open = True

    def close(self) -> None:
        if self._device is not None:
            try:
                usb.util.release_interface(self._device, USB_INTERFACE)
            except Exception as e:
                log.debug("pyusb release_interface: %s", e)
            try:
                usb.util.dispose_resources(self._device)
            except Exception as e:
                log.debug("pyusb dispose_resources: %s", e)
            self._device = None
        self._is_open = False

    def write_feature(self, data: bytes) -> int:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        return self._device.ctrl_transfer(  # type: ignore[union-attr]
            _REQTYPE_OUT,
            HID_REQ_SET_REPORT,
            (HID_REPORT_TYPE_FEATURE << 8) | data[0],
            USB_INTERFACE,
            data,
            self._timeout_ms,
        )

    def read_feature(self, report_id: int, length: int) -> bytes:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        data = self._device.ctrl_transfer(  # type: ignore[union-attr]
            _REQTYPE_IN,
            HID_REQ_GET_REPORT,
            (HID_REPORT_TYPE_FEATURE << 8) | report_id,
            USB_INTERFACE,
            length,
            self._timeout_ms,
        )
        return bytes(data)

    @property
    def is_open(self) -> bool:
        return self._is_open

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()


# =========================================================================
# Device discovery helper
# =========================================================================

def _find_hidapi() -> List[Blink1Info]:
    found = []
    for d in hidapi.enumerate(B1_VID, B1_PID):
        found.append(Blink1Info(
            vid=d.get('vendor_id', B1_VID),
            pid=d.get('product_id', B1_PID),
            serial=d.get('serial_number') or "",
            product=d.get('product_string') or "",
            release=d.get('release_number', 0),
            path=d.get('path'),
            backend='hidapi',
        ))
    return found


def _find_pyusb() -> List[Blink1Info]:
    found = []
    for dev in usb.core.find(find_all=True, idVendor=B1_VID, idProduct=B1_PID) or []:
        serial_idx = getattr(dev, 'iSerialNumber', 0)
        product_idx = getattr(dev, 'iProduct', 0)
        try:
            serial = usb.util.get_string(dev, serial_idx) if serial_idx else ""
            product = usb.util.get_string(dev, product_idx) if product_idx else ""
        except (usb.core.USBError, ValueError) as e:
            # string descriptors need permission on most distros
            log.debug("pyusb: cannot read strings for %s: %s", dev, e)
            serial, product = "", ""
        found.append(Blink1Info(
            vid=B1_VID,
            pid=B1_PID,
            serial=serial or "",
            product=product or "",
            release=getattr(dev, 'bcdDevice', 0),
            path=f"{dev.bus}-{dev.address}",
            backend='pyusb',
        ))
    return found


def find_devices() -> List[Blink1Info]:
    """Scan for connected blink(1) devices by VID/PID.

    Uses hidapi when installed, pyusb otherwise.
    """
    devices = _find_hidapi() if HIDAPI_AVAILABLE else _find_pyusb()
    log.debug("find_devices: %d blink(1) found", len(devices))
    return devices


def make_transport(info: Blink1Info) -> HidTransport:
    """Create (unopened) transport for *info* on the backend that found it."""
    if info.backend == 'hidapi' or (not info.backend and HIDAPI_AVAILABLE):
        return HidApiTransport(info.vid, info.pid, info.serial or None, info.path)
    return PyUsbTransport(info.vid, info.pid, info.serial or None)
