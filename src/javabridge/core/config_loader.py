"""Reading the CLI settings file.

Settings files are JSONC (comments allowed) and may reference environment
variables as ``{env:NAME}``; unset variables become empty strings.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Union

import commentjson

from ..util.log import Log

log = Log.create({"service": "config.loader"})

_ENV_REFERENCE = re.compile(r"\{env:([^}]+)\}")


def substitute_env_vars(text: str) -> str:
    return _ENV_REFERENCE.sub(lambda match: os.environ.get(match.group(1), ""), text)


def load_json_file(filepath: Union[str, Path]) -> Dict[str, Any]:
    """Parse a settings file into a dict.

    A missing file, unreadable or invalid content, or a top-level value
    that is not an object all yield ``{}``; the latter two are logged.
    """
    path = Path(filepath)
    if not path.is_file():
        return {}

    try:
        data = commentjson.loads(substitute_env_vars(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, UnicodeDecodeError) as e:
        log.error("failed to load settings file", {"path": str(path), "error": str(e)})
        return {}

    if isinstance(data, dict):
        return data
    log.error("settings file must hold a JSON object", {"path": str(path), "type": type(data).__name__})
    return {}
