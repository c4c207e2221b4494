from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import BASE_NS, write_file
from patchgen.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_help_lists_both_modes(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0, result.output
    assert "update" in result.output
    assert "compare" in result.output


def test_missing_input_directory_is_a_usage_error(runner: CliRunner) -> None:
    result = runner.invoke(app, ["update"])

    assert result.exit_code != 0


def test_nonexistent_input_directory_exits_nonzero(runner: CliRunner, workdir: Path) -> None:
    result = runner.invoke(app, ["update", "ghost"])

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_update_then_compare_builds_patch(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    result = runner.invoke(app, ["update", "-s", "snap.xml", str(source_tree)])
    assert result.exit_code == 0, result.output
    assert "Snapshot written" in result.output
    assert (workdir / "snap.xml").exists()

    write_file(source_tree, "img/icon.png", "icon", mtime_ns=BASE_NS)
    result = runner.invoke(app, ["compare", "-s", "snap.xml", "-t", "out", str(source_tree)])

    assert result.exit_code == 0, result.output
    assert "New (1)" in result.output
    assert "icon.png" in result.output
    assert (workdir / "out" / "img" / "icon.png").read_text(encoding="utf-8") == "icon"


def test_compare_uses_default_storage_and_target(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    runner.invoke(app, ["update", str(source_tree)])
    assert (workdir / "storage.xml").exists()

    result = runner.invoke(app, ["compare", str(source_tree)])

    assert result.exit_code == 0, result.output
    assert "No changes detected" in result.output
    assert (workdir / "target").is_dir()


def test_compare_without_snapshot_reports_error(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    result = runner.invoke(app, ["compare", str(source_tree)])

    assert result.exit_code == 1
    assert "snapshot read failed" in result.output
    assert not (workdir / "target").exists()


def test_compare_with_malformed_snapshot_reports_error(
    runner: CliRunner, workdir: Path, source_tree: Path
) -> None:
    (workdir / "storage.xml").write_text("<files><file name='a'/>", encoding="utf-8")

    result = runner.invoke(app, ["compare", str(source_tree)])

    assert result.exit_code == 1
    assert "snapshot read failed" in result.output


def test_compare_dry_run(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    runner.invoke(app, ["update", str(source_tree)])
    write_file(source_tree, "extra.txt")

    result = runner.invoke(app, ["compare", "--dry-run", str(source_tree)])

    assert result.exit_code == 0, result.output
    assert "Dry run: 1 file(s)" in result.output
    assert not (workdir / "target").exists()


def test_defaults_file_supplies_options(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    (workdir / ".patchgen.json").write_text('{"storage": "from-defaults.xml"}', encoding="utf-8")

    result = runner.invoke(app, ["update", str(source_tree)])

    assert result.exit_code == 0, result.output
    assert (workdir / "from-defaults.xml").exists()


def test_invalid_resolution_exits_nonzero(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    result = runner.invoke(app, ["update", "--resolution", "ms", str(source_tree)])

    assert result.exit_code == 1
    assert "invalid arguments" in result.output


def test_compare_keeps_snapshot_stored_in_output_dir(runner: CliRunner, workdir: Path, source_tree: Path) -> None:
    runner.invoke(app, ["update", "-s", "target/storage.xml", str(source_tree)])

    result = runner.invoke(app, ["compare", "-s", "target/storage.xml", "-t", "target", str(source_tree)])

    assert result.exit_code == 1
    assert "invalid arguments" in result.output
    assert (workdir / "target" / "storage.xml").exists()
