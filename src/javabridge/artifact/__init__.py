"""Artifact discovery, installation and update policy."""

from .types import DownloadKind, UpdateMode, VersionInfo
from .source import (
    GitHubReleaseSource,
    GitHubTagSource,
    MavenMetadataSource,
    MavenSearchSource,
    MilestoneListingSource,
    PinnedSource,
    VersionSource,
    pick_latest,
)
from .policy import Decision, Download, Fail, UseLocal, decide, mark_checked, read_marker
from .catalog import ArtifactSpec, default_catalog
from .store import ArtifactCache, ArtifactStore, prune_except

__all__ = [
    "ArtifactCache",
    "ArtifactSpec",
    "ArtifactStore",
    "Decision",
    "Download",
    "DownloadKind",
    "Fail",
    "GitHubReleaseSource",
    "GitHubTagSource",
    "MavenMetadataSource",
    "MavenSearchSource",
    "MilestoneListingSource",
    "PinnedSource",
    "UpdateMode",
    "UseLocal",
    "VersionInfo",
    "VersionSource",
    "decide",
    "default_catalog",
    "mark_checked",
    "pick_latest",
    "prune_except",
    "read_marker",
]
