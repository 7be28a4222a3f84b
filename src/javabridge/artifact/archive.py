"""Archive extraction and file-mode helpers for downloaded artifacts."""

from __future__ import annotations

import os
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path
from typing import Optional

from ..errors import DownloadError
from ..util.log import Log
from .types import DownloadKind

log = Log.create({"service": "artifact.archive"})


def _safe_join(base: Path, relative: Path) -> Optional[Path]:
    try:
        target = (base / relative).resolve()
        base_resolved = base.resolve()
        if target == base_resolved or base_resolved in target.parents:
            return target
    except (OSError, ValueError):
        return None
    return None


def _stripped(name: str, strip_components: int) -> Optional[Path]:
    parts = Path(name).parts[strip_components:]
    if not parts:
        return None
    return Path(*parts)


def _extract_zip(archive: Path, destination: Path, strip_components: int) -> None:
    with zipfile.ZipFile(archive, "r") as zf:
        for info in zf.infolist():
            relative = _stripped(info.filename, strip_components)
            if relative is None:
                continue
            target = _safe_join(destination, relative)
            if not target:
                log.warn("skipping archive entry outside destination", {"entry": info.filename})
                continue
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info, "r") as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)


def _extract_tar(archive: Path, destination: Path, strip_components: int) -> None:
    with tarfile.open(archive, "r:gz") as tf:
        for member in tf.getmembers():
            relative = _stripped(member.name, strip_components)
            if relative is None:
                continue
            target = _safe_join(destination, relative)
            if not target:
                log.warn("skipping archive entry outside destination", {"entry": member.name})
                continue
            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if member.issym():
                # JDK images ship relative symlinks (e.g. legal/ notices)
                target.parent.mkdir(parents=True, exist_ok=True)
                if not target.exists():
                    os.symlink(member.linkname, target)
                continue
            if not member.isfile():
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            src = tf.extractfile(member)
            if src is None:
                continue
            with src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
            if member.mode & stat.S_IXUSR:
                set_executable(target)


def extract_archive(archive: Path, destination: Path, kind: DownloadKind, strip_components: int = 0) -> None:
    """Unpack ``archive`` into ``destination``.

    Raises:
        DownloadError: If the archive is corrupt or of an unknown kind
    """
    destination.mkdir(parents=True, exist_ok=True)
    try:
        if kind == DownloadKind.ZIP:
            _extract_zip(archive, destination, strip_components)
        elif kind == DownloadKind.GZIP_TAR:
            _extract_tar(archive, destination, strip_components)
        else:
            raise DownloadError(f"Cannot extract {archive.name}: not an archive")
    except (tarfile.TarError, zipfile.BadZipFile, OSError, EOFError) as e:
        log.error("failed to extract archive", {"archive": str(archive), "error": str(e)})
        raise DownloadError(f"Failed to extract {archive.name}: {e}") from e


def set_executable(path: Path) -> None:
    if os.name == "nt" or not path.exists():
        return
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
