"""The editor-side services the bridge depends on.

``Host`` is what an editor integration implements; ``LocalHost`` backs the
CLI with the current process environment, ``shutil.which`` and a JSONC
settings file shaped like an editor's LSP section::

    {
      // jdtls language server section
      "settings": {"java_home": "~/jdks/21", "check_updates": "once"},
      "initialization_options": {"bundles": []}
    }

A file with neither key is taken to be the settings object itself.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from .core.config_loader import load_json_file
from .util.log import Log

log = Log.create({"service": "host"})


@runtime_checkable
class Host(Protocol):
    """Workspace and settings access provided by the editor."""

    @property
    def root_path(self) -> str: ...

    def shell_env(self) -> Mapping[str, str]: ...

    def which(self, name: str) -> Optional[str]: ...

    def settings(self) -> Optional[Dict[str, Any]]: ...

    def initialization_options(self) -> Optional[Dict[str, Any]]: ...


class LocalHost:
    """``Host`` for command-line use."""

    def __init__(
        self,
        root: str,
        settings_file: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self._root = str(Path(root).absolute())
        self._env = dict(os.environ if env is None else env)
        self._section: Dict[str, Any] = {}
        if settings_file:
            self._section = load_json_file(settings_file)
            log.info("loaded settings file", {"path": settings_file, "keys": sorted(self._section)})

    @property
    def root_path(self) -> str:
        return self._root

    def shell_env(self) -> Mapping[str, str]:
        return self._env

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name, path=self._env.get("PATH"))

    def settings(self) -> Optional[Dict[str, Any]]:
        if "settings" in self._section or "initialization_options" in self._section:
            settings = self._section.get("settings")
            return settings if isinstance(settings, dict) else None
        return dict(self._section) if self._section else None

    def initialization_options(self) -> Optional[Dict[str, Any]]:
        options = self._section.get("initialization_options")
        return options if isinstance(options, dict) else None
