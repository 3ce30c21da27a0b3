"""Tests for document-level CLI commands."""

import json
from pathlib import Path

from block_conditions.__main__ import cli


def _stored(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_kinds_lists_every_group(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["kinds"])
    assert result.exit_code == 0
    for text in ("User Conditions", "Post Conditions", "Date Conditions", "Advanced"):
        assert text in result.output
    assert "user_is_not_logged_in" in result.output
    assert "query_string" in result.output


def test_init_creates_empty_document(document_path: Path, cli_runner) -> None:
    result = cli_runner.invoke(cli, ["init", str(document_path), "--action", "hide"])
    assert result.exit_code == 0
    assert "Created rule document." in result.output
    assert _stored(document_path) == {"action": "hide", "conditions": []}


def test_init_refuses_to_overwrite(document_path: Path, cli_runner, write_json) -> None:
    write_json(document_path, {"action": "show", "conditions": []})
    result = cli_runner.invoke(cli, ["init", str(document_path)])
    assert result.exit_code != 0
    assert "Document already exists" in result.output


def test_init_force_overwrites(document_path: Path, cli_runner, write_json) -> None:
    write_json(
        document_path,
        {"action": "show", "conditions": [{"id": "a", "type": "user_is_logged_in"}]},
    )
    result = cli_runner.invoke(cli, ["init", str(document_path), "--force"])
    assert result.exit_code == 0
    assert _stored(document_path)["conditions"] == []


def test_init_yaml_document(tmp_path: Path, cli_runner) -> None:
    path = tmp_path / "hero.yaml"
    result = cli_runner.invoke(cli, ["init", str(path)])
    assert result.exit_code == 0
    assert path.read_text(encoding="utf-8").startswith("action: show")


def test_show_document(document_path: Path, cli_runner, write_json) -> None:
    write_json(
        document_path,
        {
            "action": "hide",
            "conditions": [
                {"id": "a", "type": "post_slug", "params": {"slug": "about"}},
                {"id": "b", "type": "future_kind"},
            ],
        },
    )
    result = cli_runner.invoke(cli, ["show", str(document_path)])
    assert result.exit_code == 0
    assert "Check Post Slug" in result.output
    assert "slug=about" in result.output
    assert "unknown kind" in result.output


def test_show_empty_document(document_path: Path, cli_runner, write_json) -> None:
    write_json(document_path, {"action": "show", "conditions": []})
    result = cli_runner.invoke(cli, ["show", str(document_path)])
    assert result.exit_code == 0
    assert "The block is always shown." in result.output


def test_show_missing_document(document_path: Path, cli_runner) -> None:
    result = cli_runner.invoke(cli, ["show", str(document_path)])
    assert result.exit_code != 0
    assert "Missing rule document" in result.output


def test_show_broken_document(document_path: Path, cli_runner) -> None:
    document_path.parent.mkdir(parents=True)
    document_path.write_text("{", encoding="utf-8")
    result = cli_runner.invoke(cli, ["show", str(document_path)])
    assert result.exit_code != 0
    assert "Invalid document format" in result.output


def test_validate_clean_document(document_path: Path, cli_runner, write_json) -> None:
    write_json(
        document_path,
        {"action": "show", "conditions": [{"id": "a", "type": "user_is_logged_in"}]},
    )
    result = cli_runner.invoke(cli, ["validate", str(document_path)])
    assert result.exit_code == 0
    assert "Document is valid." in result.output


def test_validate_reports_errors(document_path: Path, cli_runner, write_json) -> None:
    write_json(
        document_path,
        {
            "action": "toggle",
            "conditions": [
                {"id": "a", "type": "post_id"},
                {"id": "a", "type": "post_slug"},
            ],
        },
    )
    result = cli_runner.invoke(cli, ["validate", str(document_path)])
    assert result.exit_code == 1
    assert "duplicate id" in result.output


def test_validate_warnings_do_not_fail(
    document_path: Path, cli_runner, write_json
) -> None:
    write_json(
        document_path,
        {"action": "show", "conditions": [{"id": "a", "type": "post_id"}]},
    )
    result = cli_runner.invoke(cli, ["validate", str(document_path)])
    assert result.exit_code == 0
    assert "condition never matches" in result.output


def test_action_and_logic(document_path: Path, cli_runner, write_json) -> None:
    write_json(document_path, {"action": "show", "conditions": []})

    assert cli_runner.invoke(cli, ["action", str(document_path), "HIDE"]).exit_code == 0
    assert cli_runner.invoke(cli, ["logic", str(document_path), "or"]).exit_code == 0

    assert _stored(document_path) == {
        "action": "hide",
        "logic": "or",
        "conditions": [],
    }


def test_action_rejects_unknown_value(
    document_path: Path, cli_runner, write_json
) -> None:
    write_json(document_path, {"action": "show", "conditions": []})
    result = cli_runner.invoke(cli, ["action", str(document_path), "toggle"])
    assert result.exit_code != 0
    assert _stored(document_path)["action"] == "show"
