"""javabridge - Java tooling bridge for editors.

Locates, installs and launches the Eclipse JDT language server, the Lombok
agent and the java-debug plugin, finds or downloads a Java runtime, and
prepares debug configurations for the java-debug adapter.
"""

__version__ = "0.1.0"


# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    """Lazy import module components."""
    if name in ("GlobalPath", "Bus", "BusEvent", "InstallationStatus", "InstallationStatusChanged"):
        from . import core
        return getattr(core, name)
    if name == "Log":
        from .util.log import Log
        return Log
    if name in ("JavaSession", "DebugAdapterBinary", "DebugScenario"):
        from . import session
        return getattr(session, name)
    if name in ("Host", "LocalHost"):
        from . import host
        return getattr(host, name)
    if name in ("ArtifactStore", "ArtifactCache", "UpdateMode"):
        from . import artifact
        return getattr(artifact, name)
    if name in ("LaunchPlan", "LaunchArgBuilder"):
        from . import launch
        return getattr(launch, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "ArtifactCache",
    "ArtifactStore",
    "Bus",
    "BusEvent",
    "DebugAdapterBinary",
    "DebugScenario",
    "GlobalPath",
    "Host",
    "InstallationStatus",
    "InstallationStatusChanged",
    "JavaSession",
    "LaunchArgBuilder",
    "LaunchPlan",
    "LocalHost",
    "Log",
    "UpdateMode",
]
