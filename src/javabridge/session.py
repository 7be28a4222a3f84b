"""Per-workspace orchestration of runtime, artifacts, launch and debugging.

``JavaSession`` is what an editor integration calls. It is the only layer
that turns resolver failures into user-facing messages: every error leaving
it is a ``SessionError`` whose message names the failed step.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union

import httpx

from .artifact.catalog import DEBUGGER, JDTLS, LOMBOK, default_catalog
from .artifact.store import ArtifactCache, ArtifactStore
from .artifact.types import UpdateMode
from .core.settings import BridgeSettings, resolve_settings
from .debug.client import LanguageServerClient, ProxyLanguageServerClient
from .debug.injector import DebugConfigInjector, inject_bundle
from .errors import (
    BridgeError,
    DebuggerNotLoadedError,
    InvalidDebugConfigError,
    SessionError,
    UnknownAdapterError,
)
from .host import Host
from .launch.builder import LaunchArgBuilder, LaunchPlan
from .runtime.locator import RuntimeDescriptor, RuntimeLocator, VersionRunner, run_java_version
from .runtime.platform import Platform, detect_platform
from .util.error import format_error, format_unknown_error
from .util.log import Log

log = Log.create({"service": "session"})

DEBUG_ADAPTER_NAME = "Java"
DEFAULT_ATTACH_HOST = "localhost"
DEFAULT_ATTACH_PORT = 5005
LOCALHOST = "127.0.0.1"

T = TypeVar("T")
ClientFactory = Callable[[str], LanguageServerClient]


@dataclass(frozen=True)
class Connection:
    host: str
    port: int


@dataclass(frozen=True)
class DebugAdapterBinary:
    """How the host should start talking to java-debug."""

    cwd: str
    request: str
    configuration: str
    connection: Connection


@dataclass(frozen=True)
class DebugScenario:
    adapter: str
    label: str
    config: str
    connection: Connection


def _guard(step: str, operation: Callable[[], T]) -> T:
    try:
        return operation()
    except SessionError:
        raise
    except BridgeError as e:
        message = format_error(e) or format_unknown_error(e)
        log.error(step, {"error": str(e), "category": e.category})
        raise SessionError(f"{step}: {message}", cause=e) from e


class JavaSession:
    """Backing logic for one workspace of the Java integration."""

    def __init__(
        self,
        host: Host,
        *,
        client_factory: ClientFactory = ProxyLanguageServerClient,
        store: Optional[ArtifactStore] = None,
        platform: Optional[Platform] = None,
        http_client: Optional[httpx.Client] = None,
        run_version: VersionRunner = run_java_version,
        workdir: Optional[str] = None,
    ):
        self.host = host
        self.platform = platform or detect_platform()
        self.store = store or ArtifactStore(http_client)
        self.workdir = workdir
        self.run_version = run_version
        self._client_factory = client_factory
        self._client: Optional[LanguageServerClient] = None
        self._cache: Optional[ArtifactCache] = None
        self._cache_debugger_source: Optional[str] = None
        self.debugger_path: Optional[Path] = None

    # settings

    def workspace_configuration(self) -> Optional[Dict[str, Any]]:
        """The settings blob, falling back to ``initialization_options["settings"]``."""
        settings = self.host.settings()
        if settings is not None:
            return settings
        options = self.host.initialization_options()
        if isinstance(options, dict) and isinstance(options.get("settings"), dict):
            return options["settings"]
        return None

    def bridge_settings(self) -> BridgeSettings:
        return _guard(
            "Failed to read jdtls settings",
            lambda: resolve_settings(
                self.workspace_configuration(),
                self.host.shell_env(),
                windows=self.platform.is_windows,
            ),
        )

    # artifacts

    def cache(self, settings: BridgeSettings) -> ArtifactCache:
        """Artifact cache for this session, rebuilt if the debugger source changes."""
        source = settings.debugger.source
        if self._cache is None or self._cache_debugger_source != source:
            specs = default_catalog(self.platform, self.store.client, self.workdir, debugger_source=source)
            self._cache = ArtifactCache(self.store, specs)
            self._cache_debugger_source = source
        return self._cache

    def locator(self, settings: BridgeSettings) -> RuntimeLocator:
        return RuntimeLocator(self.platform, cache=self.cache(settings), run_version=self.run_version)

    def runtime(self, settings: Optional[BridgeSettings] = None) -> RuntimeDescriptor:
        settings = settings or self.bridge_settings()
        return _guard(
            "Failed to find a Java runtime",
            lambda: self.locator(settings).resolve(settings, self.host.which),
        )

    def resolve_artifact(
        self,
        name: str,
        settings: Optional[BridgeSettings] = None,
        mode: Optional[UpdateMode] = None,
    ) -> Path:
        """Resolve one artifact by name, optionally overriding the update mode."""
        settings = settings or self.bridge_settings()
        cache = self.cache(settings)
        if name not in cache.specs:
            raise SessionError(f"Unknown artifact \"{name}\"; expected one of: {', '.join(sorted(cache.specs))}")
        return _guard(
            f"Failed to resolve {name}",
            lambda: cache.get_or_resolve(name, mode or settings.updates.mode),
        )

    def lombok_jar(self, settings: BridgeSettings) -> Path:
        if settings.agent.jar:
            jar = Path(settings.agent.jar)
            if jar.is_file():
                return jar
            log.warn("configured lombok_jar does not exist, using managed lombok", {"path": str(jar)})
        cache = self.cache(settings)
        return _guard(
            "Failed to get Lombok jar path",
            lambda: cache.get_or_resolve(LOMBOK, settings.updates.mode),
        )

    @property
    def debugger_loaded(self) -> bool:
        return self.debugger_path is not None and self.debugger_path.is_file()

    def load_debugger(self, settings: Optional[BridgeSettings] = None) -> Optional[Path]:
        """Resolve the debug plugin; failure leaves the session without debugging."""
        settings = settings or self.bridge_settings()
        try:
            self.debugger_path = self.cache(settings).get_or_resolve(DEBUGGER, settings.updates.mode)
        except BridgeError as e:
            log.warn("debugger unavailable, continuing without debug support", {
                "error": str(e),
                "category": e.category,
            })
            self.debugger_path = None
        return self.debugger_path

    # language server

    def external_launcher(self, settings: BridgeSettings) -> Optional[str]:
        if settings.launcher.path:
            return settings.launcher.path
        return self.host.which(f"jdtls{self.platform.binary_suffix}")

    def language_server_command(self) -> LaunchPlan:
        """Everything needed to spawn jdtls for this workspace."""
        settings = self.bridge_settings()
        builder = LaunchArgBuilder(self.platform, self.host.root_path, self.host.shell_env())

        jvm_args: List[str] = []
        if settings.agent.enabled:
            jvm_args.append(f"-javaagent:{os.path.abspath(self.lombok_jar(settings))}")

        java_home = settings.runtime_home.path if settings.runtime_home.source == "settings" else None
        self.load_debugger(settings)

        launcher = self.external_launcher(settings)
        if launcher:
            return _guard(
                "Failed to build jdtls command",
                lambda: builder.build(launcher=launcher, jvm_args=jvm_args, java_home=java_home),
            )

        runtime = self.runtime(settings)
        jdtls_home = _guard(
            "Failed to get JDTLS binary path",
            lambda: self.cache(settings).get_or_resolve(JDTLS, settings.updates.mode),
        )
        return _guard(
            "Failed to build jdtls command",
            lambda: builder.build(runtime=runtime, jdtls_home=jdtls_home, jvm_args=jvm_args, java_home=java_home),
        )

    def initialization_options(self) -> Optional[Dict[str, Any]]:
        """Host initialization options, with the debug plugin bundle when loaded."""
        options = self.host.initialization_options()
        if not self.debugger_loaded:
            return options
        return _guard("Failed to inject debug plugin", lambda: inject_bundle(options, self.debugger_path))

    # debugging

    @property
    def client(self) -> LanguageServerClient:
        if self._client is None:
            self._client = self._client_factory(self.host.root_path)
        return self._client

    def dap_request_kind(self, adapter: str, config: Union[str, Mapping[str, Any]]) -> str:
        """``"launch"`` or ``"attach"`` for a Java debug configuration."""
        _check_adapter(adapter)
        if isinstance(config, str):
            config = _parse_config(config)

        request = config.get("request")
        if request in ("launch", "attach"):
            return request
        if request is None:
            raise SessionError("Missing required `request` field in Java debug adapter configuration")
        raise SessionError(f"Unexpected value for `request` key in Java debug adapter configuration: {request!r}")

    def prepare_debug_config(self, config: str) -> str:
        """Complete a launch configuration; other requests pass through."""
        root = self.host.root_path
        return _guard(
            "Failed to prepare debug configuration",
            lambda: DebugConfigInjector(self.client).inject(config, root),
        )

    def _require_debugger(self) -> None:
        if not self.debugger_loaded:
            raise SessionError(
                "Failed to start debug session: debugger is not loaded",
                cause=DebuggerNotLoadedError("Debugger is not loaded yet"),
            )

    def debug_adapter_binary(self, adapter: str, config: str) -> DebugAdapterBinary:
        _check_adapter(adapter)
        self._require_debugger()

        request = self.dap_request_kind(adapter, config)
        configuration = self.prepare_debug_config(config)
        port = _guard("Failed to start debug session", self.client.start_debug_session)
        return DebugAdapterBinary(
            cwd=self.host.root_path,
            request=request,
            configuration=configuration,
            connection=Connection(host=LOCALHOST, port=port),
        )

    def debug_config_to_scenario(
        self,
        adapter: str,
        request: str,
        *,
        process_id: Optional[int] = None,
        stop_on_entry: Optional[bool] = None,
    ) -> DebugScenario:
        """Scenario for an attach request; launching is not supported."""
        self._require_debugger()
        if request != "attach":
            raise SessionError("Java debug scenarios only support attaching; use a launch configuration instead")

        if process_id is not None:
            config: Dict[str, Any] = {"request": "attach", "processId": process_id, "stopOnEntry": stop_on_entry}
        else:
            config = {"request": "attach", "hostName": DEFAULT_ATTACH_HOST, "port": DEFAULT_ATTACH_PORT}

        port = _guard("Failed to start debug session", self.client.start_debug_session)
        return DebugScenario(
            adapter=adapter,
            label="Attach to Java process",
            config=json.dumps(config),
            connection=Connection(host=LOCALHOST, port=port),
        )


def _check_adapter(adapter: str) -> None:
    if adapter != DEBUG_ADAPTER_NAME:
        error = UnknownAdapterError(f"Cannot create binary for adapter \"{adapter}\"")
        raise SessionError(str(error), cause=error)


def _parse_config(raw: str) -> Dict[str, Any]:
    try:
        config = json.loads(raw)
    except ValueError as e:
        error = InvalidDebugConfigError(f"Invalid JSON configuration: {e}")
        raise SessionError(str(error), cause=error) from e
    if not isinstance(config, dict):
        error = InvalidDebugConfigError("Invalid JSON configuration: expected an object")
        raise SessionError(str(error), cause=error)
    return config
