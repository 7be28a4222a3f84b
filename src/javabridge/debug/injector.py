"""Turn a host debug request into a configuration java-debug can run."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import (
    AmbiguousEntryPointError,
    DebuggerNotLoadedError,
    InvalidDebugConfigError,
    InvalidInitializationOptionsError,
)
from ..util.log import Log
from .client import LanguageServerClient

log = Log.create({"service": "debug.injector"})

TEST_SCOPE = "$Test"
AUTO_SCOPE = "$Auto"
RUNTIME_SCOPE = "$Runtime"
SCOPE_MARKERS = (TEST_SCOPE, AUTO_SCOPE, RUNTIME_SCOPE)

WORKSPACE_FOLDER = "${workspaceFolder}"

AMBIGUOUS_ENTRY_POINT = (
    "Project have multiple entry points, you must explicitly specify \"mainClass\" or \"projectName\""
)


class DebugLaunchConfig(BaseModel):
    """A java-debug launch configuration; unknown keys pass through."""

    request: str
    main_class: Optional[str] = Field(default=None, alias="mainClass")
    project_name: Optional[str] = Field(default=None, alias="projectName")
    args: Optional[Union[str, List[str]]] = None
    vm_args: Optional[Union[str, List[str]]] = Field(default=None, alias="vmArgs")
    encoding: Optional[str] = None
    class_paths: Optional[List[str]] = Field(default=None, alias="classPaths")
    module_paths: Optional[List[str]] = Field(default=None, alias="modulePaths")
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None
    stop_on_entry: Optional[bool] = Field(default=None, alias="stopOnEntry")
    no_debug: Optional[bool] = Field(default=None, alias="noDebug")
    console: Optional[str] = None
    shorten_command_line: Optional[str] = Field(default=None, alias="shortenCommandLine")
    launcher_script: Optional[str] = Field(default=None, alias="launcherScript")
    java_exec: Optional[str] = Field(default=None, alias="javaExec")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True))


def classpath_scope(class_paths: List[str]) -> Optional[str]:
    """Classpath scope requested by the markers; ``$Test`` beats ``$Auto`` beats ``$Runtime``."""
    if TEST_SCOPE in class_paths:
        return "test"
    if AUTO_SCOPE in class_paths:
        return None
    if RUNTIME_SCOPE in class_paths:
        return "runtime"
    return None


def dedupe(items: List[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


class DebugConfigInjector:
    """Fills in entry point, classpath and working directory for launch requests."""

    def __init__(self, client: LanguageServerClient):
        self.client = client

    def inject(self, raw: str, workspace_root: str) -> str:
        """Return the completed configuration as JSON.

        Non-``launch`` requests are returned byte-identical.

        Raises:
            InvalidDebugConfigError: ``raw`` is not a valid launch configuration
            AmbiguousEntryPointError: Several entry points match
        """
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise InvalidDebugConfigError(f"Failed to parse debug config: {e}") from e
        if not isinstance(data, dict):
            raise InvalidDebugConfigError("Failed to parse debug config: expected a JSON object")

        request = data.get("request")
        if isinstance(request, str) and request != "launch":
            return raw

        try:
            config = DebugLaunchConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidDebugConfigError(f"Failed to parse java debug config: {e}") from e

        main_class, project_name = self._entry_point(config)

        class_paths = list(config.class_paths) if config.class_paths is not None else [AUTO_SCOPE]
        if any(marker in class_paths for marker in SCOPE_MARKERS):
            scope = classpath_scope(class_paths)
            for resolved in self.client.resolve_classpath(main_class, project_name, scope):
                class_paths.extend(resolved)

        config.class_paths = dedupe([path for path in class_paths if path not in SCOPE_MARKERS])
        config.main_class = main_class
        config.project_name = project_name
        if config.cwd is None:
            config.cwd = workspace_root

        log.info("injected debug config", {
            "main_class": main_class,
            "project": project_name,
            "classpaths": len(config.class_paths),
        })
        # The root is JSON-escaped so Windows paths keep the output valid
        escaped_root = json.dumps(workspace_root)[1:-1]
        return config.to_json().replace(WORKSPACE_FOLDER, escaped_root)

    def _entry_point(self, config: DebugLaunchConfig) -> tuple[Optional[str], Optional[str]]:
        hints = [hint for hint in (config.main_class, config.project_name) if hint]
        entries = [
            entry
            for entry in self.client.resolve_main_class(hints)
            if (config.main_class is None or entry.main_class == config.main_class)
            and (config.project_name is None or entry.project_name == config.project_name)
        ]

        if len(entries) > 1:
            raise AmbiguousEntryPointError(AMBIGUOUS_ENTRY_POINT)
        if not entries:
            return config.main_class, config.project_name
        return entries[0].main_class, entries[0].project_name


def inject_bundle(options: Optional[Mapping[str, Any]], plugin_path: Optional[Path]) -> Dict[str, Any]:
    """Add the debug plugin to the language server's ``bundles``.

    The plugin's absolute path appears exactly once; every other key is kept.

    Raises:
        DebuggerNotLoadedError: ``plugin_path`` is None
        InvalidInitializationOptionsError: ``bundles`` exists but is not a list
    """
    if plugin_path is None:
        raise DebuggerNotLoadedError("Debugger is not loaded yet")

    canonical = os.path.abspath(plugin_path)
    if options is None:
        return {"bundles": [canonical]}

    result = dict(options)
    bundles = result.get("bundles")
    if bundles is None:
        bundles = []
    if not isinstance(bundles, list):
        raise InvalidInitializationOptionsError("Invalid initialization_options format: \"bundles\" must be a list")

    bundles = list(bundles)
    if canonical not in bundles:
        bundles.append(canonical)
    result["bundles"] = bundles
    return result
