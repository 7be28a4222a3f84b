"""Shared test helpers."""

from __future__ import annotations

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from javabridge.artifact.catalog import ArtifactSpec
from javabridge.artifact.source import VersionSource
from javabridge.artifact.types import DownloadKind, VersionInfo
from javabridge.debug.client import MainClassEntry
from javabridge.net import create_client

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]

APP_ENTRY = {"mainClass": "com.example.App", "projectName": "app", "filePath": "/home/u/proj/src/App.java"}


def mock_client(routes: Mapping[str, Route], calls: Optional[List[str]] = None) -> httpx.Client:
    """httpx client answering exact URLs from ``routes``; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        route = routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    return create_client(transport=httpx.MockTransport(handler))


def tar_gz(files: Mapping[str, bytes], executable: Sequence[str] = ()) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755 if name in executable else 0o644
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def zip_bytes(files: Mapping[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


class CountingSource(VersionSource):
    """Version source returning a fixed answer (or raising) and counting calls."""

    name = "counting"

    def __init__(self, info: Optional[VersionInfo] = None, error: Optional[Exception] = None):
        super().__init__(None)
        self.info = info
        self.error = error
        self.calls = 0

    def latest(self) -> VersionInfo:
        self.calls += 1
        if self.error is not None:
            raise self.error
        assert self.info is not None
        return self.info


def jar_spec(root: Path, source: VersionSource, name: str = "lib") -> ArtifactSpec:
    return ArtifactSpec(
        name=name,
        root=root,
        source=source,
        kind=DownloadKind.RAW,
        entry_name=lambda info: f"{name}-{info.version}.jar",
        download_url=lambda info: f"https://downloads.test/{name}-{info.version}.jar",
    )


class FakeHost:
    def __init__(
        self,
        root: str,
        *,
        settings: Optional[Dict[str, Any]] = None,
        initialization_options: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, str]] = None,
        binaries: Optional[Dict[str, str]] = None,
    ):
        self._root = root
        self._settings = settings
        self._options = initialization_options
        self._env = env if env is not None else {"HOME": root}
        self._binaries = binaries or {}

    @property
    def root_path(self) -> str:
        return self._root

    def shell_env(self) -> Mapping[str, str]:
        return self._env

    def which(self, name: str) -> Optional[str]:
        return self._binaries.get(name)

    def settings(self) -> Optional[Dict[str, Any]]:
        return self._settings

    def initialization_options(self) -> Optional[Dict[str, Any]]:
        return self._options


class FakeLanguageServerClient:
    def __init__(
        self,
        entries: Sequence[Dict[str, str]] = (),
        classpaths: Sequence[Sequence[str]] = (),
        port: int = 40123,
    ):
        self.entries = [MainClassEntry.model_validate(entry) for entry in entries]
        self.classpaths = [list(group) for group in classpaths]
        self.port = port
        self.main_class_calls: List[List[str]] = []
        self.classpath_calls: List[tuple] = []
        self.sessions = 0

    def resolve_main_class(self, hints: Sequence[str]) -> List[MainClassEntry]:
        self.main_class_calls.append(list(hints))
        return list(self.entries)

    def resolve_classpath(self, main_class, project_name, scope) -> List[List[str]]:
        self.classpath_calls.append((main_class, project_name, scope))
        return [list(group) for group in self.classpaths]

    def start_debug_session(self) -> int:
        self.sessions += 1
        return self.port
