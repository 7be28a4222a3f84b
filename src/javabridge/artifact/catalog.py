"""Artifact definitions.

Each managed artifact is plain data: where it is installed, which version
source answers "what is the newest release", how the download URL and the
on-disk entry name derive from that answer, and which file proves that an
install is complete.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from ..core.global_paths import GlobalPath
from ..errors import MalformedResponseError
from ..runtime.platform import OS, Platform
from .source import (
    GitHubReleaseSource,
    GitHubTagSource,
    MavenMetadataSource,
    MilestoneListingSource,
    PinnedSource,
    VersionSource,
)
from .types import DownloadKind, VersionInfo

JDTLS = "jdtls"
LOMBOK = "lombok"
DEBUGGER = "debugger"
JDK = "jdk"

DEBUG_PLUGIN_GROUP = "com.microsoft.java"
DEBUG_PLUGIN_ARTIFACT = "com.microsoft.java.debug.plugin"
DEBUG_PLUGIN_FORK_VERSION = "0.53.2"
DEBUG_PLUGIN_FORK_URL = (
    "https://github.com/zed-industries/java-debug/releases/download/"
    f"{DEBUG_PLUGIN_FORK_VERSION}/{DEBUG_PLUGIN_ARTIFACT}-{DEBUG_PLUGIN_FORK_VERSION}.jar"
)

LOMBOK_REPO = "projectlombok/lombok"
LOMBOK_DOWNLOAD_URL = "https://projectlombok.org/downloads/lombok-{version}.jar"

CORRETTO_REPO = "corretto/corretto-25"
CORRETTO_UNIX_URL = (
    "https://corretto.aws/downloads/resources/{version}/"
    "amazon-corretto-{version}-{platform}-{arch}.tar.gz"
)
CORRETTO_WINDOWS_URL = (
    "https://corretto.aws/downloads/resources/{version}/"
    "amazon-corretto-{version}-{platform}-{arch}-jdk.zip"
)

ARCHIVE_SUFFIX = ".tar.gz"


@dataclass(frozen=True)
class ArtifactSpec:
    """Static description of one managed artifact.

    Attributes:
        name: Logical artifact name, also the install root's directory name
        root: Install root holding every installed version
        source: Where the newest version is discovered
        kind: Layout of the downloaded file
        entry_name: Name of the installed entry under ``root`` for a version
        download_url: Download URL for a version
        is_dir: Whether installs are directories (else single ``*.jar`` files)
        probe: Path inside a directory install that must be a file
        executables: Paths inside a directory install to mark executable
        strip_components: Leading archive path components to drop
    """

    name: str
    root: Path
    source: VersionSource
    kind: DownloadKind
    entry_name: Callable[[VersionInfo], str]
    download_url: Callable[[VersionInfo], str]
    is_dir: bool = False
    probe: Optional[str] = None
    executables: Tuple[str, ...] = ()
    strip_components: int = 0

    def target_path(self, info: VersionInfo) -> Path:
        return self.root / self.entry_name(info)

    def probe_path(self, entry: Path) -> Path:
        """File whose presence proves ``entry`` is a complete install."""
        return entry / self.probe if self.probe else entry

    def matches_kind(self, path: Path) -> bool:
        if self.is_dir:
            return path.is_dir()
        return path.is_file() and path.suffix == ".jar"

    def find_local(self) -> Optional[Path]:
        """Most recently created install under ``root``, if any."""
        try:
            entries = list(self.root.iterdir())
        except OSError:
            return None

        candidates: List[Tuple[float, Path]] = []
        for entry in entries:
            if not self.matches_kind(entry):
                continue
            try:
                candidates.append((_created_at(entry), entry))
            except OSError:
                continue
        if not candidates:
            return None
        return max(candidates, key=lambda item: item[0])[1]


def _created_at(path: Path) -> float:
    st = path.stat()
    return getattr(st, "st_birthtime", None) or st.st_mtime


def _require_url(name: str) -> Callable[[VersionInfo], str]:
    def url(info: VersionInfo) -> str:
        if not info.url:
            raise MalformedResponseError(f"Version index for {name} did not provide a download URL")
        return info.url

    return url


def _jdtls_entry(info: VersionInfo) -> str:
    build = info.build or ""
    if build.endswith(ARCHIVE_SUFFIX):
        return build[: -len(ARCHIVE_SUFFIX)]
    return build or f"jdt-language-server-{info.version}"


def install_root(name: str, workdir: Optional[str] = None) -> Path:
    return Path(workdir or GlobalPath.workdir()) / name


def jdtls_spec(
    platform: Platform,
    client: Optional[httpx.Client] = None,
    workdir: Optional[str] = None,
) -> ArtifactSpec:
    binary = f"bin/jdtls{platform.binary_suffix}"
    return ArtifactSpec(
        name=JDTLS,
        root=install_root(JDTLS, workdir),
        source=MilestoneListingSource(client),
        kind=DownloadKind.GZIP_TAR,
        entry_name=_jdtls_entry,
        download_url=_require_url(JDTLS),
        is_dir=True,
        probe=binary,
        executables=(binary,),
    )


def lombok_spec(client: Optional[httpx.Client] = None, workdir: Optional[str] = None) -> ArtifactSpec:
    return ArtifactSpec(
        name=LOMBOK,
        root=install_root(LOMBOK, workdir),
        source=GitHubTagSource(LOMBOK_REPO, client),
        kind=DownloadKind.RAW,
        entry_name=lambda info: f"lombok-{info.version}.jar",
        download_url=lambda info: LOMBOK_DOWNLOAD_URL.format(version=info.version),
    )


def debugger_spec(
    debugger_source: str = "fork",
    client: Optional[httpx.Client] = None,
    workdir: Optional[str] = None,
) -> ArtifactSpec:
    """java-debug plugin; the pinned fork unless ``debugger_source`` is ``"maven"``."""
    if debugger_source == "maven":
        source: VersionSource = MavenMetadataSource(DEBUG_PLUGIN_GROUP, DEBUG_PLUGIN_ARTIFACT, client)
    else:
        source = PinnedSource(DEBUG_PLUGIN_FORK_VERSION, DEBUG_PLUGIN_FORK_URL)

    return ArtifactSpec(
        name=DEBUGGER,
        root=install_root(DEBUGGER, workdir),
        source=source,
        kind=DownloadKind.RAW,
        entry_name=lambda info: f"{DEBUG_PLUGIN_ARTIFACT}-{info.version}.jar",
        download_url=_require_url(DEBUGGER),
    )


def _jdk_bin(platform: Platform) -> str:
    return "Contents/Home/bin" if platform.os == OS.MAC else "bin"


def jdk_bin_dir(install: Path, platform: Platform) -> Path:
    """``bin`` directory of an extracted Corretto image."""
    return install / _jdk_bin(platform)


def corretto_url(version: str, platform: Platform) -> str:
    template = CORRETTO_WINDOWS_URL if platform.is_windows else CORRETTO_UNIX_URL
    return template.format(version=version, platform=platform.download_os, arch=platform.download_arch)


def jdk_spec(
    platform: Platform,
    client: Optional[httpx.Client] = None,
    workdir: Optional[str] = None,
) -> ArtifactSpec:
    java = f"{_jdk_bin(platform)}/{platform.java_exec_name}"
    return ArtifactSpec(
        name=JDK,
        root=install_root(JDK, workdir),
        source=GitHubReleaseSource(CORRETTO_REPO, client),
        kind=DownloadKind.ZIP if platform.is_windows else DownloadKind.GZIP_TAR,
        entry_name=lambda info: info.version,
        download_url=lambda info: corretto_url(info.version, platform),
        is_dir=True,
        probe=java,
        executables=(java,),
        strip_components=1,
    )


def default_catalog(
    platform: Platform,
    client: Optional[httpx.Client] = None,
    workdir: Optional[str] = None,
    debugger_source: str = "fork",
) -> Dict[str, ArtifactSpec]:
    """All managed artifacts keyed by name."""
    return {
        JDTLS: jdtls_spec(platform, client, workdir),
        LOMBOK: lombok_spec(client, workdir),
        DEBUGGER: debugger_spec(debugger_source, client, workdir),
        JDK: jdk_spec(platform, client, workdir),
    }
