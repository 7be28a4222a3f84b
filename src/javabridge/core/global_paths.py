"""Global directory paths for javabridge.

Artifacts (jdtls, lombok, the debug plugin and downloaded JDKs) live in a
single work directory so every editor window shares one cache. Paths follow
the platform conventions provided by ``platformdirs`` and can be redirected
with ``JAVABRIDGE_WORKDIR`` (used heavily by the tests).
"""

import os
from pathlib import Path

from platformdirs import user_cache_dir, user_data_dir

APP_NAME = "javabridge"


class GlobalPath:
    """Global path management for javabridge directories."""

    @classmethod
    def workdir(cls) -> str:
        """Directory holding one install root per artifact."""
        override = os.environ.get("JAVABRIDGE_WORKDIR", "").strip()
        if override:
            return override
        return user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.workdir()) / "log")

    @classmethod
    def proxy(cls) -> str:
        """Directory where the language server proxy writes its port files."""
        return str(Path(cls.workdir()) / "proxy")

    @classmethod
    def cache(cls) -> str:
        """Fallback cache directory for per-workspace server data."""
        return user_cache_dir(APP_NAME)
