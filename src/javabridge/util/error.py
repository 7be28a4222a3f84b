"""Error formatting utilities.

Turns resolver failures into messages the editor can show, adding the
configuration knob that fixes the problem where one exists.
"""

import json
import traceback
from typing import Any

from ..errors import (
    BridgeError,
    MalformedResponseError,
    RuntimeNotFoundError,
    RuntimeTooOldError,
    SourceUnavailableError,
)

_RUNTIME_HINT = (
    "Set \"java_home\" in the jdtls settings to point at a JDK 21+ installation, "
    "or enable \"jdk_auto_download\" to let the extension fetch one."
)


def format_error(error: Any) -> str | None:
    """Format known application errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    if isinstance(error, (RuntimeNotFoundError, RuntimeTooOldError)):
        return f"{error} {_RUNTIME_HINT}"
    if isinstance(error, MalformedResponseError):
        where = f" ({error.url})" if error.url else ""
        return f"Unexpected response from version index{where}: {error}"
    if isinstance(error, SourceUnavailableError):
        return f"Version index unavailable: {error}"
    if isinstance(error, BridgeError):
        return str(error)
    return None


def format_unknown_error(error: Any) -> str:
    """Format any error into a string representation."""
    if isinstance(error, Exception):
        if error.__traceback__:
            return "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {error}"

    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)
