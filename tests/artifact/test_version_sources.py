from __future__ import annotations

import httpx
import pytest

from javabridge.artifact.source import (
    GitHubReleaseSource,
    GitHubTagSource,
    MavenMetadataSource,
    MavenSearchSource,
    MilestoneListingSource,
    PinnedSource,
    pick_latest,
    rank_versions,
    scan_listing,
)
from javabridge.errors import MalformedResponseError, SourceUnavailableError
from javabridge.net import create_client
from tests.helpers import mock_client


MILESTONES = "https://download.eclipse.org/jdtls/milestones/"

LISTING = """
<html><body>
<a href="1.9.0/">1.9.0/</a>
<a href="1.10.0/">1.10.0/</a>
<a href="1.2.5/">1.2.5/</a>
<a href="latest/">latest/</a>
<a href="1.x.0/">1.x.0/</a>
</body></html>
"""


def test_versions_compare_numerically() -> None:
    assert pick_latest(["1.9.0", "1.10.0", "1.2.5"]) == "1.10.0"
    assert rank_versions(["1.9.0", "1.10.0", "1.2.5"]) == ["1.10.0", "1.9.0", "1.2.5"]


def test_malformed_versions_are_skipped() -> None:
    assert rank_versions(["bogus", "1.2", "2.0.0", "v3.0.0", "1.0.0.1"]) == ["2.0.0"]
    assert pick_latest(["nope"]) is None


def test_scan_listing_ignores_longer_tokens() -> None:
    assert scan_listing('<a href="1.2.3/">x</a> 1.2.3.4 a1.0.0 4.5.6') == ["1.2.3", "4.5.6"]


def test_milestone_listing_reports_latest_build() -> None:
    build = "jdt-language-server-1.10.0-202401011200.tar.gz"
    client = mock_client({
        MILESTONES: httpx.Response(200, text=LISTING),
        f"{MILESTONES}1.10.0/latest.txt": httpx.Response(200, text=f"{build}\n"),
    })

    info = MilestoneListingSource(client).latest()

    assert info.version == "1.10.0"
    assert info.build == build
    assert info.previous == "1.9.0"
    assert info.url == (
        "https://www.eclipse.org/downloads/download.php?file=/jdtls/milestones/1.10.0/" + build
    )


def test_milestone_listing_rejects_malformed_build_name() -> None:
    client = mock_client({
        MILESTONES: httpx.Response(200, text=LISTING),
        f"{MILESTONES}1.10.0/latest.txt": httpx.Response(200, text="<html>oops</html>"),
    })

    with pytest.raises(MalformedResponseError) as exc_info:
        MilestoneListingSource(client).latest()

    assert exc_info.value.url == f"{MILESTONES}1.10.0/latest.txt"
    assert exc_info.value.transient is False


def test_milestone_listing_without_versions_is_malformed() -> None:
    client = mock_client({MILESTONES: httpx.Response(200, text="<html>empty</html>")})

    with pytest.raises(MalformedResponseError, match="No available versions"):
        MilestoneListingSource(client).latest()


def test_server_errors_are_transient() -> None:
    client = mock_client({MILESTONES: httpx.Response(503, text="busy")})

    with pytest.raises(SourceUnavailableError) as exc_info:
        MilestoneListingSource(client).latest()

    assert exc_info.value.transient is True
    assert exc_info.value.category == "transient"


def test_client_errors_are_malformed() -> None:
    client = mock_client({})

    with pytest.raises(MalformedResponseError, match="HTTP 404"):
        MilestoneListingSource(client).latest()


def test_connection_failures_are_transient() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = mock_client({MILESTONES: refuse})

    with pytest.raises(SourceUnavailableError, match="connection refused"):
        MilestoneListingSource(client).latest()


def test_disabled_downloads_skip_the_network(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JAVABRIDGE_DISABLE_DOWNLOAD", "1")
    calls: list[str] = []
    client = mock_client({MILESTONES: httpx.Response(200, text=LISTING)}, calls)

    with pytest.raises(SourceUnavailableError, match="disabled"):
        MilestoneListingSource(client).latest()

    assert calls == []


def test_github_tags_strip_v_prefix_and_rank() -> None:
    client = mock_client({
        "https://api.github.com/repos/projectlombok/lombok/tags": httpx.Response(200, json=[
            {"name": "v1.18.30"},
            {"name": "v1.18.34"},
            {"name": "nightly"},
            {"name": "v1.18.4"},
            "garbage",
        ]),
    })

    info = GitHubTagSource("projectlombok/lombok", client).latest()

    assert info.version == "1.18.34"
    assert info.previous == "1.18.30"


def test_github_tags_require_a_list() -> None:
    client = mock_client({
        "https://api.github.com/repos/projectlombok/lombok/tags": httpx.Response(200, json={"message": "rate limited"}),
    })

    with pytest.raises(MalformedResponseError):
        GitHubTagSource("projectlombok/lombok", client).latest()


def test_github_tags_invalid_json_is_malformed() -> None:
    client = mock_client({
        "https://api.github.com/repos/projectlombok/lombok/tags": httpx.Response(200, text="not json"),
    })

    with pytest.raises(MalformedResponseError, match="deserialize"):
        GitHubTagSource("projectlombok/lombok", client).latest()


def test_github_release_uses_tag_verbatim() -> None:
    client = mock_client({
        "https://api.github.com/repos/corretto/corretto-25/releases/latest": httpx.Response(
            200, json={"tag_name": "25.0.1.8.1", "name": "Corretto 25"}
        ),
    })

    info = GitHubReleaseSource("corretto/corretto-25", client).latest()

    assert info.version == "25.0.1.8.1"
    assert info.url is None


def test_github_release_without_tag_is_malformed() -> None:
    client = mock_client({
        "https://api.github.com/repos/corretto/corretto-25/releases/latest": httpx.Response(200, json={}),
    })

    with pytest.raises(MalformedResponseError, match="tag_name"):
        GitHubReleaseSource("corretto/corretto-25", client).latest()


def test_maven_metadata_prefers_latest() -> None:
    base = "https://repo1.maven.org/maven2/com/microsoft/java/com.microsoft.java.debug.plugin"
    xml = (
        "<metadata><versioning>"
        "<latest>0.53.1</latest><release>0.53.0</release>"
        "</versioning></metadata>"
    )
    client = mock_client({f"{base}/maven-metadata.xml": httpx.Response(200, text=xml)})

    info = MavenMetadataSource("com.microsoft.java", "com.microsoft.java.debug.plugin", client).latest()

    assert info.version == "0.53.1"
    assert info.url == f"{base}/0.53.1/com.microsoft.java.debug.plugin-0.53.1.jar"


def test_maven_metadata_falls_back_to_release() -> None:
    base = "https://repo1.maven.org/maven2/org/example/tool"
    xml = "<metadata><versioning><release>2.1.0</release></versioning></metadata>"
    client = mock_client({f"{base}/maven-metadata.xml": httpx.Response(200, text=xml)})

    assert MavenMetadataSource("org.example", "tool", client).latest().version == "2.1.0"


def test_maven_metadata_rejects_bad_xml() -> None:
    base = "https://repo1.maven.org/maven2/org/example/tool"
    client = mock_client({f"{base}/maven-metadata.xml": httpx.Response(200, text="<metadata>")})

    with pytest.raises(MalformedResponseError, match="maven-metadata"):
        MavenMetadataSource("org.example", "tool", client).latest()


def _search_client(payload: object) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "search.maven.org"
        return httpx.Response(200, json=payload)

    return create_client(transport=httpx.MockTransport(handler))


def test_maven_search_reads_first_doc() -> None:
    client = _search_client({"response": {"docs": [{"latestVersion": "0.53.1"}]}})

    info = MavenSearchSource("com.microsoft.java", "com.microsoft.java.debug.plugin", client).latest()

    assert info.version == "0.53.1"
    assert info.url is not None and info.url.endswith("/0.53.1/com.microsoft.java.debug.plugin-0.53.1.jar")


def test_maven_search_without_docs_is_malformed() -> None:
    client = _search_client({"response": {"docs": []}})

    with pytest.raises(MalformedResponseError):
        MavenSearchSource("com.microsoft.java", "com.microsoft.java.debug.plugin", client).latest()


def test_pinned_source_is_offline(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JAVABRIDGE_DISABLE_DOWNLOAD", "true")

    info = PinnedSource("0.53.2", "https://example.test/plugin.jar").latest()

    assert info.version == "0.53.2"
    assert info.url == "https://example.test/plugin.jar"
