"""Locate a Java runtime able to run jdtls."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..artifact.catalog import JDK, jdk_bin_dir, jdk_spec
from ..artifact.store import ArtifactCache, ArtifactStore
from ..artifact.types import UpdateMode
from ..core.settings import BridgeSettings
from ..errors import RuntimeNotFoundError, RuntimeTooOldError, RuntimeVersionUnparseableError
from ..util.log import Log
from .platform import Platform

log = Log.create({"service": "runtime.locator"})

MIN_JDTLS_MAJOR = 21

# Matches both "21.0.4" and legacy "1.8.0_292" reports
_VERSION = re.compile(r'version\s"(?P<major>\d+)(\.(?P<minor>\d+)\.\d+(_\d+)?)?')

VERSION_TIMEOUT = 30

NOT_FOUND_MESSAGE = (
    "Could not find a Java runtime. Set \"java_home\" (or JAVA_HOME), put java on PATH, "
    "or enable \"jdk_auto_download\"."
)

Which = Callable[[str], Optional[str]]
VersionRunner = Callable[[Path], str]


@dataclass(frozen=True)
class RuntimeDescriptor:
    """A Java executable together with its major version."""

    executable: Path
    major: int
    source: str

    @property
    def home(self) -> Path:
        return self.executable.parent.parent


def parse_java_major(output: str) -> Optional[int]:
    """Major version from ``java -version`` output; ``1.x`` reports ``x``."""
    match = _VERSION.search(output)
    if not match:
        return None
    major = int(match.group("major"))
    if major == 1 and match.group("minor"):
        return int(match.group("minor"))
    return major


def run_java_version(executable: Path) -> str:
    """Run ``<java> -version`` and return what it printed (stderr first)."""
    try:
        completed = subprocess.run(
            [str(executable), "-version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
            text=True,
            timeout=VERSION_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise RuntimeVersionUnparseableError(f"Failed to execute '{executable} -version': {e}") from e
    return completed.stderr or completed.stdout or ""


class RuntimeLocator:
    """Resolve the Java runtime in order: configured home, PATH, downloaded JDK."""

    def __init__(
        self,
        platform: Platform,
        cache: Optional[ArtifactCache] = None,
        run_version: VersionRunner = run_java_version,
        min_major: int = MIN_JDTLS_MAJOR,
    ):
        self.platform = platform
        self._cache = cache
        self.run_version = run_version
        self.min_major = min_major

    @property
    def cache(self) -> ArtifactCache:
        if self._cache is None:
            self._cache = ArtifactCache(ArtifactStore(), {JDK: jdk_spec(self.platform)})
        return self._cache

    def version_of(self, executable: Path) -> int:
        output = self.run_version(executable)
        major = parse_java_major(output)
        if major is None:
            raise RuntimeVersionUnparseableError(
                f"Could not determine the Java version of {executable}: {output.strip()[:200]!r}"
            )
        return major

    def find_executable(self, settings: BridgeSettings, which: Which) -> Optional[tuple[Path, str]]:
        """Configured home first, then the host PATH; None if neither has java."""
        home = settings.runtime_home
        if home.path:
            candidate = Path(home.path) / "bin" / self.platform.java_exec_name
            if candidate.is_file():
                return candidate, home.source
            log.warn("java home has no java executable", {"java_home": home.path, "source": home.source})

        found = which(self.platform.java_exec_name) or which("java")
        if found:
            return Path(found), "path"
        return None

    def download(self, mode: UpdateMode) -> Path:
        install = self.cache.get_or_resolve(JDK, mode)
        return jdk_bin_dir(install, self.platform) / self.platform.java_exec_name

    def resolve(
        self,
        settings: BridgeSettings,
        which: Which,
        auto_download: Optional[bool] = None,
    ) -> RuntimeDescriptor:
        """Find a Java runtime of at least ``min_major``.

        Args:
            settings: Resolved bridge settings
            which: Host search-path lookup
            auto_download: Overrides ``settings.auto_download`` when given

        Raises:
            RuntimeNotFoundError: No runtime found and auto download disabled
            RuntimeVersionUnparseableError: ``java -version`` output not understood
            RuntimeTooOldError: Runtime below the minimum and auto download disabled
        """
        if auto_download is None:
            auto_download = settings.auto_download.enabled
        mode = settings.updates.mode

        found = self.find_executable(settings, which)
        if found is None:
            if not auto_download:
                raise RuntimeNotFoundError(NOT_FOUND_MESSAGE)
            log.info("no local java runtime, using downloaded JDK")
            return self._checked(self.download(mode), "download")

        executable, source = found
        major = self.version_of(executable)
        if major >= self.min_major:
            log.info("found java runtime", {"path": str(executable), "major": major, "source": source})
            return RuntimeDescriptor(executable=executable, major=major, source=source)

        if not auto_download:
            raise RuntimeTooOldError(
                f"Java {major} at {executable} is too old; jdtls requires Java {self.min_major} or newer.",
                major=major,
            )

        log.info("java runtime too old, using downloaded JDK", {"path": str(executable), "major": major})
        return self._checked(self.download(mode), "download")

    def _checked(self, executable: Path, source: str) -> RuntimeDescriptor:
        major = self.version_of(executable)
        if major < self.min_major:
            raise RuntimeTooOldError(
                f"Downloaded Java {major} at {executable} is too old; jdtls requires Java {self.min_major} or newer.",
                major=major,
            )
        return RuntimeDescriptor(executable=executable, major=major, source=source)
