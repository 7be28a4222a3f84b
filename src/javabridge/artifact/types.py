"""Data types for artifact resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class UpdateMode(str, Enum):
    """Whether a fresh version check is performed before using an install."""

    ALWAYS = "always"
    ONCE = "once"
    NEVER = "never"

    @classmethod
    def parse(cls, value: Optional[str]) -> "UpdateMode":
        """Parse a settings value; anything unrecognized means ALWAYS."""
        if not value:
            return cls.ALWAYS
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.ALWAYS


class DownloadKind(str, Enum):
    """How a downloaded file is laid out on disk."""

    RAW = "raw"
    GZIP_TAR = "gzip-tar"
    ZIP = "zip"


@dataclass(frozen=True)
class VersionInfo:
    """What a version source reports about the newest release.

    Attributes:
        version: Semantic version string, e.g. ``"1.40.0"``
        build: Build identifier or archive name, when the index has one
        url: Direct download URL, when the index provides it
        previous: Second newest version, when the index lists several
    """

    version: str
    build: Optional[str] = None
    url: Optional[str] = None
    previous: Optional[str] = None
