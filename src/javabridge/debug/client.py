"""Requests to the running language server on behalf of the debugger.

The language-server proxy writes the port of a small local HTTP endpoint to
``<workdir>/proxy/<hex(workspace root)>``. Requests are posted there as
``{"method": ..., "params": ...}`` and answered with ``{"result": ...}`` or
``{"error": {"code", "message", "data"}}``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.global_paths import GlobalPath
from ..errors import LanguageServerRequestError
from ..util.log import Log

log = Log.create({"service": "debug.client"})

EXECUTE_COMMAND = "workspace/executeCommand"
RESOLVE_CLASSPATH = "vscode.java.resolveClasspath"
RESOLVE_MAIN_CLASS = "vscode.java.resolveMainClass"
START_DEBUG_SESSION = "vscode.java.startDebugSession"


class MainClassEntry(BaseModel):
    """One runnable entry point reported by jdtls."""

    main_class: str = Field(alias="mainClass")
    project_name: str = Field(default="", alias="projectName")
    file_path: Optional[str] = Field(default=None, alias="filePath")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


@runtime_checkable
class LanguageServerClient(Protocol):
    """The language-server calls the debug integration needs."""

    def resolve_main_class(self, hints: Sequence[str]) -> List[MainClassEntry]: ...

    def resolve_classpath(
        self,
        main_class: Optional[str],
        project_name: Optional[str],
        scope: Optional[str],
    ) -> List[List[str]]: ...

    def start_debug_session(self) -> int: ...


def string_to_hex(text: str) -> str:
    return text.encode("utf-8").hex()


def port_file(workspace_root: str, proxy_dir: Optional[str] = None) -> Path:
    return Path(proxy_dir or GlobalPath.proxy()) / string_to_hex(workspace_root)


class ProxyLanguageServerClient:
    """``LanguageServerClient`` speaking to the local language-server proxy."""

    def __init__(
        self,
        workspace_root: str,
        *,
        proxy_dir: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.workspace_root = workspace_root
        self.proxy_dir = proxy_dir
        self._client = httpx.Client(transport=transport, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def port(self) -> int:
        """Read the proxy port; never cached since the server may restart."""
        path = port_file(self.workspace_root, self.proxy_dir)
        if not path.is_file():
            raise LanguageServerRequestError(f"Failed to find lsp port file {path}")
        try:
            return int(path.read_text(encoding="utf-8").strip())
        except OSError as e:
            raise LanguageServerRequestError(f"Failed to read lsp proxy port from {path}: {e}") from e
        except ValueError as e:
            raise LanguageServerRequestError(f"Failed to read lsp proxy port, file corrupted: {e}") from e

    def request(self, method: str, params: Any) -> Any:
        url = f"http://localhost:{self.port()}"
        try:
            response = self._client.post(url, json={"method": method, "params": params})
        except httpx.HTTPError as e:
            raise LanguageServerRequestError(f"Failed to send request to lsp proxy: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise LanguageServerRequestError(f"Failed to parse response from lsp proxy: {e}") from e

        if isinstance(data, dict) and "result" in data:
            return data["result"]
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            error = data["error"]
            code = error.get("code")
            message = f"{code} {error.get('message', '')} {error.get('data')}".strip()
            log.warn("language server request failed", {"method": method, "code": code})
            raise LanguageServerRequestError(message, code=code if isinstance(code, int) else None)
        raise LanguageServerRequestError(f"Unexpected response from lsp proxy (HTTP {response.status_code})")

    def execute_command(self, command: str, arguments: Optional[List[Any]] = None) -> Any:
        params: dict = {"command": command}
        if arguments is not None:
            params["arguments"] = arguments
        return self.request(EXECUTE_COMMAND, params)

    def resolve_main_class(self, hints: Sequence[str]) -> List[MainClassEntry]:
        result = self.execute_command(RESOLVE_MAIN_CLASS, list(hints))
        try:
            return [MainClassEntry.model_validate(entry) for entry in result or []]
        except (ValidationError, TypeError) as e:
            raise LanguageServerRequestError(f"Malformed resolveMainClass result: {e}") from e

    def resolve_classpath(
        self,
        main_class: Optional[str],
        project_name: Optional[str],
        scope: Optional[str],
    ) -> List[List[str]]:
        result = self.execute_command(RESOLVE_CLASSPATH, [main_class, project_name, scope])
        if not isinstance(result, list):
            raise LanguageServerRequestError("Malformed resolveClasspath result")
        return [[str(item) for item in group] for group in result if isinstance(group, list)]

    def start_debug_session(self) -> int:
        result = self.execute_command(START_DEBUG_SESSION)
        if isinstance(result, bool) or not isinstance(result, int):
            raise LanguageServerRequestError(f"Malformed startDebugSession result: {result!r}")
        return result
