"""Artifact lifecycle: decide, check, download, prune and cache.

``ArtifactStore.resolve`` is the one code path used for every managed
artifact (jdtls, lombok, the debug plugin and the JDK); per-artifact
differences live in ``ArtifactSpec`` data.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Dict, Mapping, Optional

import httpx

from .. import net
from ..core.bus import InstallationStatus, notify_status
from ..errors import DownloadError, PolicyError, VersionSourceError
from ..util.log import Log
from .archive import extract_archive, set_executable
from .catalog import ArtifactSpec
from .policy import ONCE_CHECK_MARKER, Fail, UseLocal, decide, mark_checked
from .types import DownloadKind, UpdateMode, VersionInfo

log = Log.create({"service": "artifact.store"})


def prune_except(root: Path, keep: str) -> None:
    """Remove every entry of ``root`` except ``keep`` and the once-check marker.

    Best effort: failures are logged, and entries that vanished in the
    meantime are not errors.
    """
    try:
        entries = list(Path(root).iterdir())
    except OSError as e:
        log.warn("failed to list install root", {"root": str(root), "error": str(e)})
        return

    for entry in entries:
        if entry.name in (keep, ONCE_CHECK_MARKER):
            continue
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink(missing_ok=True)
            log.debug("pruned old install", {"path": str(entry)})
        except FileNotFoundError:
            continue
        except OSError as e:
            log.warn("failed to remove old install", {"path": str(entry), "error": str(e)})


class ArtifactStore:
    """Resolves artifacts to a usable on-disk path."""

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = net.create_client()
        return self._client

    def resolve(self, spec: ArtifactSpec, mode: UpdateMode) -> Path:
        """Return the path of a usable install of ``spec``.

        Raises:
            PolicyError: The update mode forbids checking and nothing is installed
            VersionSourceError: The version check failed and nothing is installed
            DownloadError: Download or extraction of the new version failed and
                nothing is installed
        """
        local = spec.find_local()
        decision = decide(mode, spec.name, spec.root, local)

        if isinstance(decision, UseLocal):
            log.info("using local install", {"artifact": spec.name, "path": str(decision.path), "mode": mode.value})
            notify_status(spec.name, InstallationStatus.NONE)
            return decision.path
        if isinstance(decision, Fail):
            notify_status(spec.name, InstallationStatus.FAILED, decision.reason)
            raise PolicyError(decision.reason)

        notify_status(spec.name, InstallationStatus.CHECKING_FOR_UPDATE)
        try:
            info = spec.source.latest()
            target = spec.target_path(info)
            url = spec.download_url(info)
        except VersionSourceError as e:
            if local is None:
                notify_status(spec.name, InstallationStatus.FAILED, str(e))
                raise
            if e.transient:
                log.info("version index unavailable, using local install", {
                    "artifact": spec.name, "path": str(local), "error": str(e),
                })
            else:
                log.warn("could not parse version index, using local install", {
                    "artifact": spec.name, "path": str(local), "url": e.url, "error": str(e),
                })
            notify_status(spec.name, InstallationStatus.NONE)
            return local

        if spec.probe_path(target).is_file():
            log.info("latest version already installed", {"artifact": spec.name, "version": info.version})
        else:
            notify_status(spec.name, InstallationStatus.DOWNLOADING, info.version)
            try:
                self._install(spec, info, url, target)
            except DownloadError as e:
                if local is None:
                    notify_status(spec.name, InstallationStatus.FAILED, str(e))
                    raise
                log.warn("download failed, using local install", {
                    "artifact": spec.name, "version": info.version, "path": str(local), "error": str(e),
                })
                notify_status(spec.name, InstallationStatus.NONE)
                return local
            prune_except(spec.root, target.name)

        if mode == UpdateMode.ONCE:
            mark_checked(spec.root, info.version)

        notify_status(spec.name, InstallationStatus.NONE)
        return target

    def _install(self, spec: ArtifactSpec, info: VersionInfo, url: str, target: Path) -> None:
        spec.root.mkdir(parents=True, exist_ok=True)

        with log.time("download", {"artifact": spec.name, "version": info.version, "url": url}):
            if spec.kind == DownloadKind.RAW:
                net.download(self.client, url, target)
                return

            archive = spec.root / f".{target.name}.download"
            try:
                net.download(self.client, url, archive)
                if target.exists():
                    shutil.rmtree(target, ignore_errors=True)
                extract_archive(archive, target, spec.kind, spec.strip_components)
            except DownloadError:
                shutil.rmtree(target, ignore_errors=True)
                raise
            finally:
                archive.unlink(missing_ok=True)

        probe = spec.probe_path(target)
        if not probe.is_file():
            shutil.rmtree(target, ignore_errors=True)
            raise DownloadError(f"Downloaded {spec.name} {info.version} is missing {spec.probe}")

        for executable in spec.executables:
            set_executable(target / executable)


class ArtifactCache:
    """Per-process cache of resolved artifact paths.

    A cached path is only returned while it is still a complete install (a jar
    file, or a directory holding its probe file); otherwise it is resolved again.
    """

    def __init__(self, store: ArtifactStore, specs: Mapping[str, ArtifactSpec]):
        self.store = store
        self.specs = dict(specs)
        self._paths: Dict[str, Path] = {}

    def spec(self, name: str) -> ArtifactSpec:
        try:
            return self.specs[name]
        except KeyError:
            raise KeyError(f"Unknown artifact: {name}") from None

    def get(self, name: str) -> Optional[Path]:
        """Cached path for ``name`` if it is still valid on disk."""
        path = self._paths.get(name)
        if path is None:
            return None
        spec = self.spec(name)
        if not spec.matches_kind(path) or not spec.probe_path(path).is_file():
            log.info("cached install disappeared", {"artifact": name, "path": str(path)})
            del self._paths[name]
            return None
        return path

    def get_or_resolve(self, name: str, mode: UpdateMode) -> Path:
        cached = self.get(name)
        if cached is not None:
            return cached
        path = self.store.resolve(self.spec(name), mode)
        self._paths[name] = path
        return path

    def invalidate(self, name: Optional[str] = None) -> None:
        if name is None:
            self._paths.clear()
        else:
            self._paths.pop(name, None)
