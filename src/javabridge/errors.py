"""Error types shared by every resolver.

Each error carries a ``category`` so the session layer can decide how much
diagnostic detail to show:

- ``transient``: a remote index is unreachable or answered 5xx
- ``malformed``: a response could not be parsed or was rejected (4xx)
- ``policy``: update policy forbids the network and nothing is installed
- ``ambiguous``: several debug entry points match
- ``precondition``: runtime missing or too old, plugin not loaded, ...
"""

from __future__ import annotations

from typing import Optional


class BridgeError(Exception):
    """Base class for controlled javabridge failures."""

    category = "precondition"


class UnsupportedPlatformError(BridgeError):
    """Raised for an OS or CPU architecture that has no downloads."""


class VersionSourceError(BridgeError):
    """A version source could not produce a usable version."""

    transient = False

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class SourceUnavailableError(VersionSourceError):
    """The remote index is unreachable, timed out or failed server-side."""

    category = "transient"
    transient = True


class MalformedResponseError(VersionSourceError):
    """The remote index answered, but not with anything usable."""

    category = "malformed"


class DownloadError(BridgeError):
    """Downloading or unpacking an artifact failed."""

    category = "transient"


class PolicyError(BridgeError):
    """The update policy forbids a check and no local install exists."""

    category = "policy"


class RuntimeNotFoundError(BridgeError):
    """No Java executable could be located."""


class RuntimeVersionUnparseableError(BridgeError):
    """``java -version`` ran but its output had no recognizable version."""


class RuntimeTooOldError(BridgeError):
    """The located Java runtime is older than the required major version."""

    def __init__(self, message: str, *, major: int):
        super().__init__(message)
        self.major = major


class LauncherNotFoundError(BridgeError):
    """The equinox launcher jar is missing from a jdtls install."""


class AmbiguousEntryPointError(BridgeError):
    """More than one main class matches the debug configuration."""

    category = "ambiguous"


class InvalidDebugConfigError(BridgeError):
    """The host supplied a debug configuration that cannot be parsed."""

    category = "malformed"


class DebuggerNotLoadedError(BridgeError):
    """The debug plugin has not been resolved yet."""


class InvalidInitializationOptionsError(BridgeError):
    """Initialization options hold a ``bundles`` value that is not a list."""

    category = "malformed"


class LanguageServerRequestError(BridgeError):
    """A request to the running language server failed."""

    def __init__(self, message: str, *, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class InvalidSettingsError(BridgeError):
    """The editor settings blob does not match the expected shape."""

    category = "malformed"


class UnknownAdapterError(BridgeError):
    """A debug request named an adapter other than the Java one."""


class SessionError(BridgeError):
    """A session operation failed; the message is ready for the user."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if isinstance(cause, BridgeError):
            self.category = cause.category
