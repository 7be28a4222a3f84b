"""Version sources: ask a remote index for the newest artifact version.

Every source returns a ``VersionInfo`` or raises a ``VersionSourceError``.
``SourceUnavailableError`` marks transient failures (index down, 5xx);
``MalformedResponseError`` marks responses that were received but could not
be used. The store falls back to a local install for both, but only the
latter is reported loudly.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any, Iterable, List, Optional, Tuple

import httpx

from .. import net
from ..errors import MalformedResponseError
from ..util.log import Log
from .types import VersionInfo

log = Log.create({"service": "artifact.source"})

VersionTriple = Tuple[int, int, int]

_TRIPLE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")
_LISTED_TRIPLE = re.compile(r"(?<![\w.])(\d+)\.(\d+)\.(\d+)(?![\w.])")


def parse_version(text: str) -> Optional[VersionTriple]:
    """Parse ``"major.minor.patch"``; anything else yields None."""
    match = _TRIPLE.match(text.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def format_version(triple: VersionTriple) -> str:
    return ".".join(str(part) for part in triple)


def rank_versions(candidates: Iterable[str]) -> List[str]:
    """Return parseable candidates newest first, compared numerically.

    Malformed entries are skipped rather than aborting the scan.
    """
    parsed = {}
    for candidate in candidates:
        triple = parse_version(candidate)
        if triple is None:
            log.debug("skipping malformed version", {"candidate": candidate})
            continue
        parsed[triple] = candidate.strip()
    return [parsed[triple] for triple in sorted(parsed, reverse=True)]


def pick_latest(candidates: Iterable[str]) -> Optional[str]:
    ranked = rank_versions(candidates)
    return ranked[0] if ranked else None


def scan_listing(text: str) -> List[str]:
    """Extract every ``N.N.N`` token from an HTML directory listing."""
    return [format_version((int(a), int(b), int(c))) for a, b, c in _LISTED_TRIPLE.findall(text)]


class VersionSource:
    """Base class for version sources."""

    name = "source"

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = net.create_client()
        return self._client

    def latest(self) -> VersionInfo:
        raise NotImplementedError


class MilestoneListingSource(VersionSource):
    """jdtls milestones: HTML directory listing plus ``latest.txt``."""

    name = "jdtls-milestones"
    BASE_URL = "https://download.eclipse.org/jdtls/milestones/"
    DOWNLOAD_URL = "https://www.eclipse.org/downloads/download.php?file=/jdtls/milestones/{version}/{build}"

    def __init__(self, client: Optional[httpx.Client] = None, base_url: str = BASE_URL):
        super().__init__(client)
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    def latest(self) -> VersionInfo:
        listing = net.fetch_text(self.client, self.base_url)
        ranked = rank_versions(scan_listing(listing))
        if not ranked:
            raise MalformedResponseError("No available versions in jdtls milestone listing", url=self.base_url)
        version = ranked[0]

        build_url = f"{self.base_url}{version}/latest.txt"
        build = net.fetch_text(self.client, build_url).strip()
        if not build.endswith(".tar.gz"):
            raise MalformedResponseError(
                f"Malformed latest build name for jdtls {version}: {build!r}", url=build_url
            )

        return VersionInfo(
            version=version,
            build=build,
            url=self.DOWNLOAD_URL.format(version=version, build=build),
            previous=ranked[1] if len(ranked) > 1 else None,
        )


def _maven_jar_url(group: str, artifact: str, version: str) -> str:
    group_path = group.replace(".", "/")
    return f"https://repo1.maven.org/maven2/{group_path}/{artifact}/{version}/{artifact}-{version}.jar"


class MavenSearchSource(VersionSource):
    """Maven Central package-search API."""

    name = "maven-search"
    SEARCH_URL = "https://search.maven.org/solrsearch/select?q=g:{group}+AND+a:{artifact}&rows=1&wt=json"

    def __init__(self, group: str, artifact: str, client: Optional[httpx.Client] = None):
        super().__init__(client)
        self.group = group
        self.artifact = artifact

    def latest(self) -> VersionInfo:
        url = self.SEARCH_URL.format(group=self.group, artifact=self.artifact)
        data = net.fetch_json(self.client, url)
        try:
            version = data["response"]["docs"][0]["latestVersion"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Malformed Maven search response: missing {e}", url=url) from e
        if not isinstance(version, str) or not version.strip():
            raise MalformedResponseError("Malformed Maven search response: empty latestVersion", url=url)

        version = version.strip()
        return VersionInfo(version=version, url=_maven_jar_url(self.group, self.artifact, version))


class MavenMetadataSource(VersionSource):
    """``maven-metadata.xml`` from a Maven repository."""

    name = "maven-metadata"
    METADATA_URL = "https://repo1.maven.org/maven2/{group_path}/{artifact}/maven-metadata.xml"

    def __init__(self, group: str, artifact: str, client: Optional[httpx.Client] = None):
        super().__init__(client)
        self.group = group
        self.artifact = artifact

    def latest(self) -> VersionInfo:
        url = self.METADATA_URL.format(group_path=self.group.replace(".", "/"), artifact=self.artifact)
        xml = net.fetch_text(self.client, url)
        try:
            root = ET.fromstring(xml)
        except ET.ParseError as e:
            raise MalformedResponseError(f"Failed to parse maven-metadata.xml: {e}", url=url) from e

        version = root.findtext("versioning/latest") or root.findtext("versioning/release")
        if not version or not version.strip():
            raise MalformedResponseError("maven-metadata.xml has no <latest> version", url=url)

        version = version.strip()
        return VersionInfo(version=version, url=_maven_jar_url(self.group, self.artifact, version))


class GitHubTagSource(VersionSource):
    """Repository tag list from the GitHub API."""

    name = "github-tags"
    TAGS_URL = "https://api.github.com/repos/{repo}/tags"

    def __init__(self, repo: str, client: Optional[httpx.Client] = None):
        super().__init__(client)
        self.repo = repo

    def latest(self) -> VersionInfo:
        url = self.TAGS_URL.format(repo=self.repo)
        data = net.fetch_json(self.client, url)
        if not isinstance(data, list):
            raise MalformedResponseError("Malformed GitHub tags response", url=url)

        names = [_tag_name(tag) for tag in data]
        ranked = rank_versions(name for name in names if name)
        if not ranked:
            raise MalformedResponseError("Malformed GitHub tags response: no version tags", url=url)
        return VersionInfo(version=ranked[0], previous=ranked[1] if len(ranked) > 1 else None)


def _tag_name(tag: Any) -> Optional[str]:
    if not isinstance(tag, dict):
        return None
    name = tag.get("name")
    if not isinstance(name, str):
        return None
    return name[1:] if name.startswith("v") else name


class GitHubReleaseSource(VersionSource):
    """Latest published GitHub release; the tag is used verbatim."""

    name = "github-release"
    RELEASE_URL = "https://api.github.com/repos/{repo}/releases/latest"

    def __init__(self, repo: str, client: Optional[httpx.Client] = None):
        super().__init__(client)
        self.repo = repo

    def latest(self) -> VersionInfo:
        url = self.RELEASE_URL.format(repo=self.repo)
        data = net.fetch_json(self.client, url)
        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not isinstance(tag, str) or not tag.strip():
            raise MalformedResponseError("Malformed GitHub release response: missing tag_name", url=url)
        return VersionInfo(version=tag.strip())


class PinnedSource(VersionSource):
    """A fixed release; never touches the network."""

    name = "pinned"

    def __init__(self, version: str, url: str):
        super().__init__(None)
        self.version = version
        self.url = url

    def latest(self) -> VersionInfo:
        return VersionInfo(version=self.version, url=self.url)
