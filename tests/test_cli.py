"""Tests for the docgraph CLI."""

import re

import pytest
from typer.testing import CliRunner

from cli.main import app
from cli.rendering import render_navigation
from docgraph.models import NavigationItem, NavigationTree

runner = CliRunner()

_ID = r"([0-9a-f-]{36})"


@pytest.fixture
def logging_calls(monkeypatch):
    """Record setup_logging calls instead of reconfiguring the root logger."""
    calls = []
    monkeypatch.setattr("cli.main.setup_logging", lambda *args: calls.append(args))
    return calls


@pytest.fixture
def workspace(tmp_path, monkeypatch, logging_calls):
    """Point the CLI at a throw-away workspace."""
    monkeypatch.setattr("docgraph.config.settings.workspace_dir", tmp_path)
    return tmp_path


def _created_id(output: str) -> str:
    match = re.search(_ID, output)
    assert match, output
    return match.group(1)


def test_db_init(workspace):
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert (workspace / "graph.db").exists()


def test_verbose_logs_at_debug(workspace, logging_calls):
    runner.invoke(app, ["--verbose", "db", "init"])
    assert logging_calls[-1][0] == "DEBUG"


def test_doc_lifecycle(workspace):
    result = runner.invoke(app, ["doc", "create", "--title", "Quickstart", "--content", "Install it."])
    assert result.exit_code == 0
    assert "status=draft" in result.stdout
    doc_id = _created_id(result.stdout)

    result = runner.invoke(app, ["doc", "show", doc_id])
    assert result.exit_code == 0
    assert "Install it." in result.stdout
    assert "next: in_review" in result.stdout

    result = runner.invoke(app, ["doc", "status", doc_id, "in_review"])
    assert result.exit_code == 0
    assert "is now in_review" in result.stdout

    result = runner.invoke(app, ["doc", "list", "--status", "in_review"])
    assert doc_id in result.stdout


def test_doc_create_from_file(workspace, tmp_path):
    body = tmp_path / "guide.md"
    body.write_text("# Guide\n", encoding="utf-8")
    result = runner.invoke(app, ["doc", "create", "--title", "Guide", "--type", "tutorial", "--file", str(body)])
    assert result.exit_code == 0


def test_doc_create_without_body(workspace):
    result = runner.invoke(app, ["doc", "create", "--title", "Empty"])
    assert result.exit_code == 1


def test_invalid_transition_exits_with_error(workspace):
    result = runner.invoke(app, ["doc", "create", "--title", "Quickstart", "--content", "x"])
    doc_id = _created_id(result.stdout)
    result = runner.invoke(app, ["doc", "status", doc_id, "publish"])
    assert result.exit_code == 1
    assert "INVALID_STATUS_TRANSITION" in result.output


def test_concepts_and_impact(workspace):
    api = _created_id(runner.invoke(app, ["concept", "create", "--term", "API", "--description", "x"]).stdout)
    rest = _created_id(runner.invoke(app, ["concept", "create", "--term", "REST", "--description", "y"]).stdout)

    result = runner.invoke(app, ["concept", "link", rest, api, "--relation", "subtype"])
    assert result.exit_code == 0
    result = runner.invoke(app, ["concept", "link", api, rest])
    assert result.exit_code == 1
    assert "cycle" in result.output

    doc_id = _created_id(runner.invoke(app, ["doc", "create", "--title", "REST guide", "--content", "x"]).stdout)
    assert runner.invoke(app, ["doc", "use", doc_id, api]).exit_code == 0
    result = runner.invoke(app, ["concept", "impact", api])
    assert "1 document(s)" in result.stdout
    assert doc_id in result.stdout


def test_version_navigation(workspace):
    version_id = _created_id(
        runner.invoke(app, ["version", "create", "--version", "v1.0.0", "--name", "First", "--main"]).stdout
    )
    guide = _created_id(
        runner.invoke(app, ["page", "create", "--version", version_id, "--slug", "guide", "--title", "Guide", "--visible"]).stdout
    )
    runner.invoke(
        app,
        ["page", "create", "--version", version_id, "--slug", "setup", "--title", "Setup", "--parent", guide],
    )

    result = runner.invoke(app, ["version", "nav", version_id])
    assert result.exit_code == 0
    assert "└── [0] guide  Guide" in result.stdout
    assert "    └── [0] setup  Setup (hidden)" in result.stdout

    result = runner.invoke(app, ["version", "nav", version_id, "--visible-only"])
    assert "setup" not in result.stdout


def test_search(workspace):
    runner.invoke(app, ["doc", "create", "--title", "Webhooks", "--content", "Deliver events."])
    result = runner.invoke(app, ["search", "webhooks"])
    assert result.exit_code == 0
    assert "'Webhooks'" in result.stdout
    assert "(1 of 1)" in result.stdout

    result = runner.invoke(app, ["search", "nothing-matches-this"])
    assert "No results" in result.stdout


def test_render_navigation():
    tree = NavigationTree(
        pages=[
            NavigationItem(
                id="1", slug="intro", title="Intro", order=0, visible=True,
                children=[NavigationItem(id="2", slug="install", title="Install", order=0, visible=False)],
            ),
            NavigationItem(id="3", slug="api", title="API", order=1, visible=True, document_id="1b2c3d4e-aaaa"),
        ]
    )
    assert render_navigation(tree, title="v1.0.0").splitlines() == [
        "v1.0.0",
        "├── [0] intro  Intro",
        "│   └── [0] install  Install (hidden)",
        "└── [1] api  API  -> doc 1b2c3d4e",
    ]
    assert render_navigation(NavigationTree()) == "(no pages)"
