"""Typed view over the editor's jdtls settings blob.

The editor hands over free-form JSON. It is validated once with Pydantic and
then reduced to small frozen structs, one per logical setting, each applying
its own legacy-alias fallback. Nothing past this module sees the raw JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..artifact.types import UpdateMode
from ..errors import InvalidSettingsError
from ..util.log import Log

log = Log.create({"service": "settings"})


def _drop_mistyped(value: Any, expected: Mapping[str, type]) -> Any:
    """Treat keys holding the wrong JSON type as unset."""
    if not isinstance(value, dict):
        return value
    cleaned = dict(value)
    for key, kind in expected.items():
        item = cleaned.get(key)
        if item is None or isinstance(item, kind):
            continue
        log.warn("ignoring setting with unexpected type", {
            "key": key, "expected": kind.__name__, "type": type(item).__name__,
        })
        cleaned[key] = None
    return cleaned


class LombokSupportModel(BaseModel):
    enabled: Optional[bool] = None

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped_keys(cls, value: Any) -> Any:
        return _drop_mistyped(value, {"enabled": bool})


class JdtLsModel(BaseModel):
    lombok_support: Optional[LombokSupportModel] = Field(None, alias="lombokSupport")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped_keys(cls, value: Any) -> Any:
        return _drop_mistyped(value, {"lombokSupport": dict, "lombok_support": dict})


class JdtModel(BaseModel):
    ls: Optional[JdtLsModel] = None

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped_keys(cls, value: Any) -> Any:
        return _drop_mistyped(value, {"ls": dict})


class JavaSectionModel(BaseModel):
    """Legacy ``java.*`` settings tree."""
    home: Optional[str] = None
    jdt: Optional[JdtModel] = None

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped_keys(cls, value: Any) -> Any:
        return _drop_mistyped(value, {"home": str, "jdt": dict})


class SettingsModel(BaseModel):
    """Settings schema for the jdtls language server section.

    A key holding the wrong type is logged and read as unset, so one bad
    value never disables the others.
    """
    java_home: Optional[str] = None
    jdk_auto_download: Optional[bool] = None
    check_updates: Optional[str] = None
    lombok_support: Optional[bool] = None
    lombok_jar: Optional[str] = None
    jdtls_launcher: Optional[str] = None
    debugger_source: Optional[str] = None
    java: Optional[JavaSectionModel] = None

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_mistyped_keys(cls, value: Any) -> Any:
        return _drop_mistyped(value, {
            "java_home": str,
            "jdk_auto_download": bool,
            "check_updates": str,
            "lombok_support": bool,
            "lombok_jar": str,
            "jdtls_launcher": str,
            "debugger_source": str,
            "java": dict,
        })


@dataclass(frozen=True)
class RuntimeHome:
    """Java home directory, from settings or the shell's ``JAVA_HOME``."""
    path: Optional[str]
    source: str


@dataclass(frozen=True)
class AutoDownload:
    enabled: bool


@dataclass(frozen=True)
class UpdateSetting:
    mode: UpdateMode


@dataclass(frozen=True)
class AgentSetting:
    """Lombok agent toggle and optional user-supplied jar."""
    enabled: bool
    jar: Optional[str]


@dataclass(frozen=True)
class LauncherOverride:
    path: Optional[str]


@dataclass(frozen=True)
class DebuggerSetting:
    source: str


@dataclass(frozen=True)
class BridgeSettings:
    """Every logical setting the bridge consumes."""
    runtime_home: RuntimeHome
    auto_download: AutoDownload
    updates: UpdateSetting
    agent: AgentSetting
    launcher: LauncherOverride
    debugger: DebuggerSetting


def parse_settings(raw: Optional[Mapping[str, Any]]) -> SettingsModel:
    """Validate the raw settings blob."""
    if raw is None:
        return SettingsModel()
    if not isinstance(raw, Mapping):
        raise InvalidSettingsError(f"jdtls settings must be an object, not {type(raw).__name__}")
    try:
        return SettingsModel.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidSettingsError(f"Invalid jdtls settings: {e}") from e


def expand_home(path: str, env: Mapping[str, str], *, windows: bool = False) -> Optional[str]:
    """Replace ``~`` with the shell's ``HOME``.

    Returns None when expansion is needed but ``HOME`` is unset. Windows paths
    are returned untouched.
    """
    if windows or "~" not in path:
        return path
    home = env.get("HOME")
    if not home:
        return None
    return path.replace("~", home)


def resolve_runtime_home(
    model: SettingsModel,
    env: Mapping[str, str],
    *,
    windows: bool = False,
) -> RuntimeHome:
    configured = model.java_home or (model.java.home if model.java else None)
    if configured:
        expanded = expand_home(configured, env, windows=windows)
        if expanded:
            return RuntimeHome(path=expanded, source="settings")
        log.warn("failed to expand ~ in java_home", {"java_home": configured})

    java_home = env.get("JAVA_HOME", "")
    if java_home:
        return RuntimeHome(path=java_home, source="env")
    return RuntimeHome(path=None, source="none")


def resolve_agent(model: SettingsModel, env: Mapping[str, str], *, windows: bool = False) -> AgentSetting:
    enabled = model.lombok_support
    if enabled is None and model.java and model.java.jdt and model.java.jdt.ls:
        support = model.java.jdt.ls.lombok_support
        enabled = support.enabled if support else None

    jar = None
    if model.lombok_jar:
        jar = expand_home(model.lombok_jar, env, windows=windows)
    return AgentSetting(enabled=True if enabled is None else enabled, jar=jar)


DEBUGGER_SOURCES = ("fork", "maven")


def resolve_debugger(model: SettingsModel) -> DebuggerSetting:
    if model.debugger_source is None:
        return DebuggerSetting(source="fork")
    source = model.debugger_source.strip().lower()
    if source not in DEBUGGER_SOURCES:
        log.warn("unknown debugger_source, using fork", {"debugger_source": model.debugger_source})
        return DebuggerSetting(source="fork")
    return DebuggerSetting(source=source)


def resolve_settings(
    raw: Optional[Mapping[str, Any]],
    env: Mapping[str, str],
    *,
    windows: bool = False,
) -> BridgeSettings:
    """Resolve the settings blob into typed per-setting structs."""
    model = parse_settings(raw)

    launcher = None
    if model.jdtls_launcher:
        launcher = expand_home(model.jdtls_launcher, env, windows=windows)

    return BridgeSettings(
        runtime_home=resolve_runtime_home(model, env, windows=windows),
        auto_download=AutoDownload(enabled=bool(model.jdk_auto_download)),
        updates=UpdateSetting(mode=UpdateMode.parse(model.check_updates)),
        agent=resolve_agent(model, env, windows=windows),
        launcher=LauncherOverride(path=launcher),
        debugger=resolve_debugger(model),
    )
