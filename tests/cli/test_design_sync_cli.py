"""Tests for the design-sync CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from cli.cli import app
from design_sync.sync import repository

runner = CliRunner()


@pytest.fixture(autouse=True)
def keep_test_log_sinks(monkeypatch):
    """The CLI callback would replace every loguru sink with one bound to the runner's stderr."""
    monkeypatch.setattr("cli.cli.setup_logger", lambda **kwargs: None)


@pytest.fixture
def write_json(tmp_path):
    def _write(name: str, payload: object):
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


def test_drift_command_reports_items(write_json):
    sources = write_json(
        "sources.json",
        [
            {"component_id": "btn", "code": {"color": "red"}, "design": {"color": "blue"}},
            {"component_id": "card", "code": {"updatedAt": 1}, "design": {"updatedAt": 2}},
        ],
    )

    result = runner.invoke(app, ["drift", str(sources)])

    assert result.exit_code == 0, result.output
    assert "Drift (1 item(s))" in result.output
    assert "modified:color" in result.output


def test_drift_command_rejects_invalid_input(write_json):
    sources = write_json("sources.json", [{"code": {}}])
    result = runner.invoke(app, ["drift", str(sources)])
    assert result.exit_code == 1


def test_coverage_command(write_json):
    data = write_json(
        "coverage.json",
        {
            "component_id": "btn",
            "component_name": "Button",
            "defined_variants": [{"name": "primary"}, {"name": "secondary"}],
            "existing_stories": [{"variant_name": "primary", "has_visual_test": True}],
        },
    )

    result = runner.invoke(app, ["coverage", str(data)])

    assert result.exit_code == 0, result.output
    assert "Coverage btn: 50%" in result.output


def test_sync_undo_history_flow(db_session, write_json):
    request = write_json("sync.json", {"components": [{"component_id": "btn", "direction": "code_to_design"}]})

    preview = runner.invoke(app, ["sync", str(request), "--dry-run"])
    assert preview.exit_code == 0, preview.output
    assert "Sync preview (dry run)" in preview.output

    synced = runner.invoke(app, ["sync", str(request)])
    assert synced.exit_code == 0, synced.output

    rows = repository.list_operations(db_session)
    assert len(rows) == 1
    operation = rows[0][0]

    duplicate = runner.invoke(app, ["sync", str(request)])
    assert duplicate.exit_code == 1
    assert operation.id in duplicate.output

    listed = runner.invoke(app, ["history"])
    assert listed.exit_code == 0, listed.output
    assert "Design-sync operations" in listed.output

    undone = runner.invoke(app, ["undo", operation.id])
    assert undone.exit_code == 0, undone.output
    assert "Undo succeeded" in undone.output

    again = runner.invoke(app, ["undo", operation.id])
    assert again.exit_code == 1
    assert "Undo failed" in again.output


def test_prune_command(db_session):
    result = runner.invoke(app, ["prune", "--undo-days", "30", "--coverage-days", "7"])
    assert result.exit_code == 0, result.output
    assert "Pruned 0 undo entr(ies) and 0 coverage report(s)" in result.output


def test_init_db_command(db_engine):
    result = runner.invoke(app, ["init-db"])
    assert result.exit_code == 0, result.output
    assert "schema ready" in result.output
