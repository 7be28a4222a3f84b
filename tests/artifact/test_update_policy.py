from pathlib import Path

import pytest

from javabridge.artifact.policy import (
    ONCE_CHECK_MARKER,
    Download,
    Fail,
    UseLocal,
    decide,
    has_checked_once,
    mark_checked,
    read_marker,
)
from javabridge.artifact.types import UpdateMode


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("always", UpdateMode.ALWAYS),
        ("once", UpdateMode.ONCE),
        ("NEVER", UpdateMode.NEVER),
        (" once ", UpdateMode.ONCE),
        ("weekly", UpdateMode.ALWAYS),
        ("", UpdateMode.ALWAYS),
        (None, UpdateMode.ALWAYS),
    ],
)
def test_update_mode_parse(value, expected: UpdateMode) -> None:  # type: ignore[no-untyped-def]
    assert UpdateMode.parse(value) is expected


def test_never_uses_local_install(tmp_path: Path) -> None:
    local = tmp_path / "lombok-1.18.30.jar"

    assert decide(UpdateMode.NEVER, "lombok", tmp_path, local) == UseLocal(local)


def test_never_without_local_install_fails(tmp_path: Path) -> None:
    decision = decide(UpdateMode.NEVER, "lombok", tmp_path, None)

    assert isinstance(decision, Fail)
    assert "never" in decision.reason
    assert decision.reason.endswith("lombok")


def test_once_downloads_until_marker_exists(tmp_path: Path) -> None:
    assert decide(UpdateMode.ONCE, "jdtls", tmp_path, None) == Download()

    mark_checked(tmp_path, "1.40.0")

    decision = decide(UpdateMode.ONCE, "jdtls", tmp_path, None)
    assert isinstance(decision, Fail)
    assert "already performed once" in decision.reason


def test_once_prefers_local_install(tmp_path: Path) -> None:
    local = tmp_path / "jdt-language-server-1.40.0"

    assert decide(UpdateMode.ONCE, "jdtls", tmp_path, local) == UseLocal(local)


def test_always_checks_even_with_local_install(tmp_path: Path) -> None:
    assert decide(UpdateMode.ALWAYS, "jdtls", tmp_path, tmp_path / "old") == Download()


def test_marker_existence_is_what_counts(tmp_path: Path) -> None:
    (tmp_path / ONCE_CHECK_MARKER).write_text("", encoding="utf-8")

    assert has_checked_once(tmp_path)
    assert read_marker(tmp_path) == ""


def test_mark_checked_creates_root(tmp_path: Path) -> None:
    root = tmp_path / "nested" / "debugger"

    mark_checked(root, "0.53.2")

    assert read_marker(root) == "0.53.2"
    assert read_marker(tmp_path / "missing") is None
