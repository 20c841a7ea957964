"""Mock tests for the blink(1) HID transports and device discovery.

No real USB hardware required: hidapi and pyusb are replaced by mocks.
"""

from unittest.mock import MagicMock, patch

import pytest

from b1ctl.constants import B1_PID, B1_VID, DEFAULT_TIMEOUT_MS
from b1ctl.device_hid import (
    Blink1Info,
    HidApiTransport,
    HidTransport,
    PyUsbTransport,
    find_devices,
    is_blink1,
    make_transport,
)

CMD = bytes([0x01, ord('v'), 0, 0, 0, 0, 0, 0, 0])


def _hidapi_module(device=None, enumerate_result=None) -> MagicMock:
    mod = MagicMock()
    mod.device.return_value = device if device is not None else MagicMock()
    mod.enumerate.return_value = enumerate_result or []
    return mod


# =========================================================================
# Blink1Info
# =========================================================================

class TestBlink1Info:

    def test_defaults_are_blink1_ids(self):
        info = Blink1Info()
        assert (info.vid, info.pid) == (B1_VID, B1_PID)
        assert is_blink1(info)

    @pytest.mark.parametrize("release,expected", [(0, 12), (1, 12), (2, 32), (3, 32)])
    def test_max_pattern_by_generation(self, release, expected):
        info = Blink1Info(release=release)
        assert info.generation == release
        assert info.max_pattern == expected

    def test_other_device_is_not_blink1(self):
        assert not is_blink1(Blink1Info(vid=0x1234, pid=B1_PID))
        assert not is_blink1(Blink1Info(vid=B1_VID, pid=0x0001))

    def test_none_is_not_blink1(self):
        assert not is_blink1(None)


# =========================================================================
# HidApiTransport
# =========================================================================

class TestHidApiTransport:

    def test_requires_hidapi(self):
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", False):
            with pytest.raises(ImportError, match="hidapi"):
                HidApiTransport()

    def test_open_by_path(self):
        dev = MagicMock()
        mod = _hidapi_module(dev)
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", True), \
             patch("b1ctl.device_hid.hidapi", mod, create=True):
            t = HidApiTransport(path=b"/dev/hidraw3")
            t.open()
        dev.open_path.assert_called_once_with(b"/dev/hidraw3")
        dev.open.assert_not_called()
        assert t.is_open

    def test_open_by_serial(self):
        dev = MagicMock()
        mod = _hidapi_module(dev)
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", True), \
             patch("b1ctl.device_hid.hidapi", mod, create=True):
            t = HidApiTransport(serial="2000abcd")
            t.open()
        dev.open.assert_called_once_with(B1_VID, B1_PID, "2000abcd")

    def _open_transport(self, dev):
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", True), \
             patch("b1ctl.device_hid.hidapi", _hidapi_module(dev), create=True):
            t = HidApiTransport()
            t.open()
        return t

    def test_write_sends_list(self):
        dev = MagicMock()
        dev.send_feature_report.return_value = 9
        t = self._open_transport(dev)
        assert t.write_feature(CMD) == 9
        dev.send_feature_report.assert_called_once_with(list(CMD))

    def test_write_negative_raises(self):
        dev = MagicMock()
        dev.send_feature_report.return_value = -1
        t = self._open_transport(dev)
        with pytest.raises(OSError):
            t.write_feature(CMD)

    def test_read_returns_bytes(self):
        dev = MagicMock()
        dev.get_feature_report.return_value = [1, ord('v'), 0, ord('2'), ord('4'), 0, 0, 0, 0]
        t = self._open_transport(dev)
        data = t.read_feature(1, 9)
        assert isinstance(data, bytes)
        assert data[3] == ord('2')
        dev.get_feature_report.assert_called_once_with(1, 9)

    def test_read_empty_raises(self):
        dev = MagicMock()
        dev.get_feature_report.return_value = []
        t = self._open_transport(dev)
        with pytest.raises(OSError):
            t.read_feature(1, 9)

    def test_io_before_open_raises(self):
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", True):
            t = HidApiTransport()
        with pytest.raises(RuntimeError, match="not open"):
            t.write_feature(CMD)

    def test_close(self):
        dev = MagicMock()
        t = self._open_transport(dev)
        t.close()
        dev.close.assert_called_once()
        assert not t.is_open


# =========================================================================
# PyUsbTransport
# =========================================================================

class TestPyUsbTransport:

    def _opened(self) -> tuple:
        dev = MagicMock()
        t = PyUsbTransport(serial="2000abcd")
        with patch("b1ctl.device_hid.usb.core.find", return_value=dev) as mock_find, \
             patch("b1ctl.device_hid.usb.util.claim_interface") as mock_claim:
            t.open()
        return t, dev, mock_find, mock_claim

    def test_open_claims_interface(self):
        t, dev, mock_find, mock_claim = self._opened()
        mock_find.assert_called_once_with(idVendor=B1_VID, idProduct=B1_PID,
                                          serial_number="2000abcd")
        dev.set_configuration.assert_called_once_with(1)
        mock_claim.assert_called_once_with(dev, 0)
        assert t.is_open

    def test_open_detaches_kernel_driver(self):
        _, dev, _, _ = self._opened()
        dev.detach_kernel_driver.assert_called_once_with(0)

    def test_open_not_found(self):
        t = PyUsbTransport()
        with patch("b1ctl.device_hid.usb.core.find", return_value=None):
            with pytest.raises(RuntimeError, match="not found"):
                t.open()

    def test_write_is_set_report(self):
        t, dev, _, _ = self._opened()
        dev.ctrl_transfer.return_value = 9
        assert t.write_feature(CMD) == 9
        dev.ctrl_transfer.assert_called_once_with(
            0x21, 0x09, 0x0301, 0, CMD, DEFAULT_TIMEOUT_MS)

    def test_read_is_get_report(self):
        t, dev, _, _ = self._opened()
        dev.ctrl_transfer.return_value = bytearray(9)
        assert t.read_feature(1, 9) == bytes(9)
        dev.ctrl_transfer.assert_called_once_with(
            0xA1, 0x01, 0x0301, 0, 9, DEFAULT_TIMEOUT_MS)

    def test_io_before_open_raises(self):
        with pytest.raises(RuntimeError):
            PyUsbTransport().read_feature(1, 9)

    def test_close_releases(self):
        t, dev, _, _ = self._opened()
        with patch("b1ctl.device_hid.usb.util.release_interface") as mock_release, \
             patch("b1ctl.device_hid.usb.util.dispose_resources") as mock_dispose:
            t.close()
        mock_release.assert_called_once_with(dev, 0)
        mock_dispose.assert_called_once_with(dev)
        assert not t.is_open


# =========================================================================
# Discovery
# =========================================================================

class TestFindDevices:

    def test_hidapi_scan(self):
        mod = _hidapi_module(enumerate_result=[{
            'vendor_id': B1_VID, 'product_id': B1_PID,
            'serial_number': '2000abcd', 'product_string': 'blink(1) mk2',
            'release_number': 2, 'path': b'/dev/hidraw0',
        }])
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", True), \
             patch("b1ctl.device_hid.hidapi", mod, create=True):
            found = find_devices()
        mod.enumerate.assert_called_once_with(B1_VID, B1_PID)
        assert len(found) == 1
        info = found[0]
        assert info.serial == '2000abcd'
        assert info.generation == 2
        assert info.backend == 'hidapi'
        assert info.path == b'/dev/hidraw0'

    def test_pyusb_scan_without_hidapi(self):
        usb_dev = MagicMock(iSerialNumber=3, iProduct=2, bcdDevice=1, bus=1, address=7)
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", False), \
             patch("b1ctl.device_hid.usb.core.find", return_value=[usb_dev]), \
             patch("b1ctl.device_hid.usb.util.get_string",
                   side_effect=lambda d, idx: {3: "1a2b3c4d", 2: "blink(1)"}[idx]):
            found = find_devices()
        assert found == [Blink1Info(serial="1a2b3c4d", product="blink(1)", release=1,
                                    path="1-7", backend="pyusb")]

    def test_pyusb_scan_unreadable_strings(self):
        import usb.core
        usb_dev = MagicMock(iSerialNumber=3, iProduct=2, bcdDevice=2, bus=1, address=4)
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", False), \
             patch("b1ctl.device_hid.usb.core.find", return_value=[usb_dev]), \
             patch("b1ctl.device_hid.usb.util.get_string",
                   side_effect=usb.core.USBError("Access denied")):
            found = find_devices()
        assert found[0].serial == ""
        assert found[0].generation == 2


class TestMakeTransport:

    def test_pyusb_backend(self):
        t = make_transport(Blink1Info(serial="abc", backend="pyusb"))
        assert isinstance(t, PyUsbTransport)
        assert isinstance(t, HidTransport)

    def test_hidapi_backend(self):
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", True):
            t = make_transport(Blink1Info(serial="abc", backend="hidapi", path=b"p"))
        assert isinstance(t, HidApiTransport)

    def test_unknown_backend_falls_back_to_pyusb(self):
        with patch("b1ctl.device_hid.HIDAPI_AVAILABLE", False):
            t = make_transport(Blink1Info(serial="abc"))
        assert isinstance(t, PyUsbTransport)
