"""Update policy: decide between a local install and a version check."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..util.log import Log
from .types import UpdateMode

log = Log.create({"service": "artifact.policy"})

ONCE_CHECK_MARKER = ".update_checked"

NO_LOCAL_INSTALL_NEVER_ERROR = "Update checks disabled (never) and no local installation found"
NO_LOCAL_INSTALL_ONCE_ERROR = "Update check already performed once and no local installation found"


@dataclass(frozen=True)
class UseLocal:
    path: Path


@dataclass(frozen=True)
class Download:
    pass


@dataclass(frozen=True)
class Fail:
    reason: str


Decision = Union[UseLocal, Download, Fail]


def marker_path(root: Path) -> Path:
    return Path(root) / ONCE_CHECK_MARKER


def has_checked_once(root: Path) -> bool:
    """Only the marker's existence matters; its content is diagnostic."""
    return marker_path(root).exists()


def read_marker(root: Path) -> Optional[str]:
    try:
        return marker_path(root).read_text(encoding="utf-8").strip()
    except OSError:
        return None


def mark_checked(root: Path, version: str) -> None:
    """Persist the once-check marker recording ``version``."""
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)
    marker_path(root).write_text(version, encoding="utf-8")


def decide(mode: UpdateMode, name: str, root: Path, local: Optional[Path]) -> Decision:
    """Decide what to do for one artifact.

    Args:
        mode: Configured update mode
        name: Artifact name used in failure messages
        root: Install root holding the once-check marker
        local: Best local candidate, if any
    """
    if mode == UpdateMode.NEVER:
        if local is not None:
            return UseLocal(local)
        return Fail(f"{NO_LOCAL_INSTALL_NEVER_ERROR} for {name}")

    if mode == UpdateMode.ONCE:
        if local is not None:
            return UseLocal(local)
        if has_checked_once(root):
            log.info("once-check marker present", {"artifact": name, "version": read_marker(root)})
            return Fail(f"{NO_LOCAL_INSTALL_ONCE_ERROR} for {name}")
        return Download()

    return Download()
