"""Host OS / architecture probe."""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import UnsupportedPlatformError


class OS(str, Enum):
    LINUX = "linux"
    MAC = "mac"
    WINDOWS = "windows"


class Arch(str, Enum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    X86 = "x86"


_OS_BY_SYSTEM = {
    "Linux": OS.LINUX,
    "Darwin": OS.MAC,
    "Windows": OS.WINDOWS,
}

_ARCH_BY_MACHINE = {
    "x86_64": Arch.X86_64,
    "amd64": Arch.X86_64,
    "arm64": Arch.AARCH64,
    "aarch64": Arch.AARCH64,
    "i386": Arch.X86,
    "i686": Arch.X86,
    "x86": Arch.X86,
}


@dataclass(frozen=True)
class Platform:
    """Platform-specific names used for downloads and executables."""

    os: OS
    arch: Arch

    @property
    def is_windows(self) -> bool:
        return self.os == OS.WINDOWS

    @property
    def binary_suffix(self) -> str:
        """Suffix of the jdtls launcher script."""
        return ".bat" if self.is_windows else ""

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    @property
    def java_exec_name(self) -> str:
        return "java" + self.exe_suffix

    @property
    def download_os(self) -> str:
        return {OS.LINUX: "linux", OS.MAC: "macosx", OS.WINDOWS: "windows"}[self.os]

    @property
    def download_arch(self) -> str:
        return {Arch.X86_64: "x64", Arch.AARCH64: "aarch64", Arch.X86: "x86"}[self.arch]

    @property
    def shared_config_dir(self) -> str:
        # jdtls also ships config_*_arm variants; its own launch script ignores them.
        return {OS.LINUX: "config_linux", OS.MAC: "config_mac", OS.WINDOWS: "config_win"}[self.os]


def detect_platform(system: Optional[str] = None, machine: Optional[str] = None) -> Platform:
    """Resolve the current platform.

    Args:
        system: Override for ``platform.system()``
        machine: Override for ``platform.machine()``

    Raises:
        UnsupportedPlatformError: For any other OS family or architecture
    """
    system = system if system is not None else _platform.system()
    machine = machine if machine is not None else _platform.machine()

    os_ = _OS_BY_SYSTEM.get(system)
    arch = _ARCH_BY_MACHINE.get(machine.lower())
    if os_ is None or arch is None:
        raise UnsupportedPlatformError(f"Unsupported platform: {system}/{machine}")
    return Platform(os=os_, arch=arch)
