from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from javabridge import __version__
from javabridge.cli.main import app


runner = CliRunner()


def _empty_path(tmp_path: Path) -> dict:
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    return {"PATH": str(empty), "JAVA_HOME": ""}


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"javabridge {__version__}" in result.output


def test_runtime_without_java_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["runtime", "-w", str(tmp_path)], env=_empty_path(tmp_path))

    assert result.exit_code == 1
    assert "Failed to find a Java runtime" in result.output


def test_resolve_uses_local_install(workdir: Path, tmp_path: Path) -> None:
    jar = workdir / "lombok" / "lombok-1.18.34.jar"
    jar.parent.mkdir(parents=True)
    jar.write_bytes(b"jar")

    result = runner.invoke(app, ["resolve", "lombok", "--mode", "never", "-w", str(tmp_path)])

    assert result.exit_code == 0
    assert str(jar) in result.output


def test_resolve_unknown_artifact(tmp_path: Path) -> None:
    result = runner.invoke(app, ["resolve", "gradle", "-w", str(tmp_path)])

    assert result.exit_code == 1
    assert "Unknown artifact" in result.output


def test_command_with_external_launcher(tmp_path: Path) -> None:
    settings = tmp_path / "settings.jsonc"
    settings.write_text(
        json.dumps({"jdtls_launcher": "/opt/jdtls/bin/jdtls", "lombok_support": False, "check_updates": "never"}),
        encoding="utf-8",
    )

    result = runner.invoke(
        app,
        ["command", "-w", str(tmp_path), "-s", str(settings)],
        env=_empty_path(tmp_path),
    )

    assert result.exit_code == 0
    assert '"command": "/opt/jdtls/bin/jdtls"' in result.output
    assert "Debugger not available" in result.output


def test_inject_debug_passes_attach_through(tmp_path: Path) -> None:
    config = tmp_path / "attach.json"
    raw = '{"request": "attach", "hostName": "localhost", "port": 5005}'
    config.write_text(raw, encoding="utf-8")

    result = runner.invoke(app, ["inject-debug", str(config), "-w", str(tmp_path)])

    assert result.exit_code == 0
    assert result.output.strip() == raw


def test_inject_debug_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["inject-debug", str(tmp_path / "nope.json"), "-w", str(tmp_path)])

    assert result.exit_code == 1
    assert "Failed to read" in result.output
