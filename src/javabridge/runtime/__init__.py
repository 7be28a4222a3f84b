"""Platform probing and Java runtime discovery.

The locator lives in ``javabridge.runtime.locator``; it depends on the
artifact package, which itself needs ``runtime.platform``.
"""

from .platform import OS, Arch, Platform, detect_platform

__all__ = ["OS", "Arch", "Platform", "detect_platform"]
