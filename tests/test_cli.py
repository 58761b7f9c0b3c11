import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from layergraph import __version__
from layergraph.cli import cli


@pytest.fixture
def runner(tmp_path: Path, monkeypatch) -> CliRunner:
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def _args(data_dir: Path, tmp_path: Path, *rest: str) -> list[str]:
    return ["--data-dir", str(data_dir), "--state-dir", str(tmp_path / "state"), *rest]


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_render_json(runner: CliRunner, data_dir: Path, tmp_path: Path) -> None:
    result = runner.invoke(cli, _args(data_dir, tmp_path, "render", "--format", "json", "--max-ticks", "20"))
    assert result.exit_code == 0
    assert len(json.loads(result.stdout)["nodes"]) == 13


def test_missing_data_dir(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(cli, ["--data-dir", str(tmp_path / "nope"), "stats"])
    assert result.exit_code == 2


def test_invalid_config_file(runner: CliRunner, tmp_path: Path) -> None:
    (tmp_path / "layergraph.toml").write_text("[canvas]\nwidth = 0\n", encoding="utf-8")
    result = runner.invoke(cli, ["stats"])
    assert result.exit_code == 1
    assert "invalid configuration" in result.output


def test_config_file_supplies_data_dir(runner: CliRunner, data_dir: Path, tmp_path: Path) -> None:
    (tmp_path / "layergraph.toml").write_text(f'[data]\ndir = "{data_dir.name}"\n', encoding="utf-8")
    result = runner.invoke(cli, ["stats", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["nodes"] == 13
    assert not (tmp_path / ".layergraph").exists()


def test_edit_flow(runner: CliRunner, data_dir: Path, tmp_path: Path) -> None:
    assert runner.invoke(cli, _args(data_dir, tmp_path, "edit", "begin")).exit_code == 0

    result = runner.invoke(
        cli,
        _args(data_dir, tmp_path, "edit", "add-node", "--layer", "4", "--name", "Regression", "--set", "keywords=[\"ols\"]"),
    )
    assert result.exit_code == 0
    session = json.loads((tmp_path / "state" / "session.json").read_text(encoding="utf-8"))
    added = [n for n in session["data"]["nodes"] if n["id"] == "know_edit_001"]
    assert added[0]["keywords"] == ["ols"]

    result = runner.invoke(cli, _args(data_dir, tmp_path, "edit", "add-link", "skill_01", "ghost"))
    assert result.exit_code == 1
    assert "ghost" in result.output

    assert runner.invoke(cli, _args(data_dir, tmp_path, "edit", "commit")).exit_code == 0
    assert (tmp_path / "state" / "graph.json").exists()

    result = runner.invoke(cli, _args(data_dir, tmp_path, "reset", "--yes"))
    assert result.exit_code == 0
    assert not (tmp_path / "state" / "graph.json").exists()


def test_set_requires_key_value(runner: CliRunner, data_dir: Path, tmp_path: Path) -> None:
    runner.invoke(cli, _args(data_dir, tmp_path, "edit", "begin"))
    result = runner.invoke(cli, _args(data_dir, tmp_path, "edit", "update-node", "skill_01", "--set", "oops"))
    assert result.exit_code == 2
