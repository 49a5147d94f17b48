"""cherryrgb version information."""

__version__ = "0.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Packet envelope, checksum, animation payload, pyusb transport
# 0.1.1 - Custom per-key colors (56-byte chunks, secondary key bank flag)
# 0.1.2 - Reset custom colors, replay of the vendor tool's state query
# 0.2.0 - Typed exceptions, hidapi backend, config file with resume,
#         thread-safe transactions
