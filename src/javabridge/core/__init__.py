"""Core infrastructure modules."""

from .global_paths import GlobalPath
from .bus import Bus, BusEvent, InstallationStatus, InstallationStatusChanged

__all__ = ["GlobalPath", "Bus", "BusEvent", "InstallationStatus", "InstallationStatusChanged"]

# Settings are exported separately to avoid circular imports
# from ..core.settings import resolve_settings
