"""jdtls launch command assembly."""

from .builder import LaunchArgBuilder, LaunchPlan, data_dir, find_equinox_launcher

__all__ = ["LaunchArgBuilder", "LaunchPlan", "data_dir", "find_equinox_launcher"]
