"""b1ctl version information."""

__version__ = "0.3.1"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Initial release: HID feature-report commands, fade/set/read color,
#         pattern RAM read/write, play loop
# 0.2.0 - Controller layer: gamma correction, pattern load with retry and
#         pacing, blocking playback, auto/manual tickle watchdog
# 0.2.1 - Fix tickle end position (firmware treats it as exclusive), reject
#         repeat counts above 255 instead of silently masking them
# 0.3.0 - CLI (color, play, pattern, tickle, state, version), XDG config for
#         gamma and selected device, hidapi backend preferred over pyusb
# 0.3.1 - Controller.close() stops the watchdog before closing the device,
#         DeviceClosedError instead of AttributeError after close
