"""Assemble the command line that starts jdtls."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..core.global_paths import GlobalPath
from ..errors import LauncherNotFoundError
from ..runtime.locator import RuntimeDescriptor
from ..runtime.platform import OS, Platform
from ..util.log import Log

log = Log.create({"service": "launch.builder"})

EQUINOX_LAUNCHER = "org.eclipse.equinox.launcher.jar"
EQUINOX_LAUNCHER_PREFIX = "org.eclipse.equinox.launcher_"

XML_LIMITS_MIN_MAJOR = 24

BASE_JVM_ARGS = (
    "-Declipse.application=org.eclipse.jdt.ls.core.id1",
    "-Dosgi.bundles.defaultStartLevel=4",
    "-Declipse.product=org.eclipse.jdt.ls.core.product",
    "-Dosgi.checkConfiguration=true",
)

MODULE_JVM_ARGS = (
    "-Dosgi.sharedConfiguration.area.readOnly=true",
    "-Dosgi.configuration.cascaded=true",
    "-Xms1G",
    "--add-modules=ALL-SYSTEM",
    "--add-opens",
    "java.base/java.util=ALL-UNNAMED",
    "--add-opens",
    "java.base/java.lang=ALL-UNNAMED",
)

XML_LIMIT_ARGS = (
    "-Djdk.xml.maxGeneralEntitySizeLimit=0",
    "-Djdk.xml.totalEntitySizeLimit=0",
)


@dataclass(frozen=True)
class LaunchPlan:
    """Program and arguments (``command[0]`` is the program) plus extra env."""

    command: Tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def program(self) -> str:
        return self.command[0]

    @property
    def args(self) -> Tuple[str, ...]:
        return self.command[1:]

    def to_dict(self) -> Dict[str, Any]:
        return {"command": self.program, "args": list(self.args), "env": dict(self.env)}


def find_equinox_launcher(jdtls_home: Path) -> Path:
    """The Equinox launcher jar inside a jdtls install.

    Raises:
        LauncherNotFoundError: If ``plugins/`` has no launcher jar
    """
    plugins = jdtls_home / "plugins"
    exact = plugins / EQUINOX_LAUNCHER
    if exact.is_file():
        return exact

    try:
        entries = sorted(plugins.iterdir())
    except OSError as e:
        raise LauncherNotFoundError(f"Failed to read plugins directory {plugins}: {e}") from e

    for entry in entries:
        if entry.name.startswith(EQUINOX_LAUNCHER_PREFIX) and entry.name.endswith(".jar") and entry.is_file():
            return entry
    raise LauncherNotFoundError(f"Cannot find equinox launcher in {plugins}")


def shared_config_path(jdtls_home: Path, platform: Platform) -> Path:
    return jdtls_home / platform.shared_config_dir


def sha1_hex(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def cache_base(platform: Platform, env: Mapping[str, str]) -> Path:
    """OS cache directory taken from the host shell environment."""
    if platform.os == OS.MAC and env.get("HOME"):
        return Path(env["HOME"]) / "Library" / "Caches"
    if platform.os == OS.LINUX and env.get("HOME"):
        return Path(env["HOME"]) / ".cache"
    if platform.os == OS.WINDOWS and env.get("APPDATA"):
        return Path(env["APPDATA"])

    fallback = GlobalPath.cache()
    if fallback:
        return Path(fallback)
    return Path.cwd() / "caches"


def data_dir(workspace_root: str, platform: Platform, env: Mapping[str, str]) -> Path:
    """Per-workspace jdtls data directory, unique per workspace root."""
    return cache_base(platform, env) / f"jdtls-{sha1_hex(workspace_root)}"


class LaunchArgBuilder:
    """Builds the jdtls ``LaunchPlan`` for one workspace."""

    def __init__(self, platform: Platform, workspace_root: str, env: Optional[Mapping[str, str]] = None):
        self.platform = platform
        self.workspace_root = workspace_root
        self.env = dict(env or {})

    def data_dir(self) -> Path:
        return data_dir(self.workspace_root, self.platform, self.env)

    def build(
        self,
        *,
        runtime: Optional[RuntimeDescriptor] = None,
        jdtls_home: Optional[Path] = None,
        jvm_args: Iterable[str] = (),
        launcher: Optional[str] = None,
        java_home: Optional[str] = None,
    ) -> LaunchPlan:
        """Build the launch plan.

        An external ``launcher`` (configured or found on PATH) wins: its JVM
        arguments are forwarded as ``--jvm-arg=`` and no jar assembly happens.
        Otherwise ``runtime`` and ``jdtls_home`` are required.
        """
        env = {"JAVA_HOME": java_home} if java_home else {}
        jvm_args = list(jvm_args)

        if launcher:
            log.info("using external jdtls launcher", {"launcher": launcher})
            external = [launcher] + [f"--jvm-arg={arg}" for arg in jvm_args]
            return LaunchPlan(command=tuple(external), env=env)

        if runtime is None or jdtls_home is None:
            raise LauncherNotFoundError("No jdtls launcher configured and no jdtls installation available")

        jar = find_equinox_launcher(jdtls_home)
        command: List[str] = [str(runtime.executable)]
        command.extend(BASE_JVM_ARGS)
        command.append(f"-Dosgi.sharedConfiguration.area={shared_config_path(jdtls_home, self.platform)}")
        command.extend(MODULE_JVM_ARGS)
        command.extend(jvm_args)
        command.extend(["-jar", str(jar), "-data", str(self.data_dir())])
        if runtime.major >= XML_LIMITS_MIN_MAJOR:
            command.extend(XML_LIMIT_ARGS)

        log.debug("built jdtls command", {"java": str(runtime.executable), "major": runtime.major, "jar": str(jar)})
        return LaunchPlan(command=tuple(command), env=env)
