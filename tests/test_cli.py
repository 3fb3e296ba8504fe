"""
Tests for the nextmove command line.
"""

import json

import pytest
import yaml

from cli.main import main

NOW = "2026-03-11T10:00:00"


@pytest.fixture
def snapshot(tmp_path):
    data = {
        "actions": [
            {"id": "f", "action_type": "OUTREACH", "state": "NEW", "due_date": "2026-03-10", "estimated_minutes": 3},
            {"id": "a1", "action_type": "FOLLOW_UP", "state": "NEW", "due_date": "2026-03-11"},
            {"id": "a2", "action_type": "FOLLOW_UP", "state": "NEW", "due_date": "2026-03-09"},
            {"id": "s1", "action_type": "OUTREACH", "state": "SENT", "due_date": "2026-03-05", "person_id": "r1"},
        ],
        "relationships": [
            {"id": "r1", "name": "Dana", "preferred_channel": "linkedin", "last_interaction_at": "2026-03-05T10:00:00"},
        ],
    }
    path = tmp_path / "snapshot.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_plan_json(snapshot, capsys):
    code = main(["--now", NOW, "--json", "plan", str(snapshot), "--free-minutes", "45"])
    assert code == 0
    plan = json.loads(capsys.readouterr().out)
    assert plan["action_ids"] == ["f", "a2", "a1"]
    assert plan["capacity_tier"] == "light"


def test_plan_table(snapshot, capsys):
    assert main(["--now", NOW, "plan", str(snapshot), "--override", "micro", "--reason", "Offsite"]) == 0
    out = capsys.readouterr().out
    assert "PLAN 2026-03-11 - Busy Day" in out
    assert "Override reason: Offsite" in out
    assert "FAST WIN  f" in out
    assert "ACTIONS (2/2)" in out


def test_weekend_skip(snapshot, capsys):
    assert main(["--now", NOW, "plan", str(snapshot), "--date", "2026-03-14", "--exclude-weekends"]) == 0
    assert "Skipped: weekend" in capsys.readouterr().out


def test_priorities(snapshot, capsys):
    assert main(["--now", NOW, "--json", "priorities", str(snapshot)]) == 0
    results = json.loads(capsys.readouterr().out)
    assert results["a1"]["level"] == "High"
    assert results["a1"]["urgency_label"] == "due today"


def test_lanes(snapshot, capsys):
    assert main(["--now", NOW, "lanes", str(snapshot)]) == 0
    out = capsys.readouterr().out
    assert "PRIORITY" in out
    assert "ON_DECK" in out


def test_stalls(snapshot, capsys):
    assert main(["--now", NOW, "--json", "stalls", str(snapshot)]) == 0
    nudges = json.loads(capsys.readouterr().out)
    assert [n["relationship_id"] for n in nudges] == ["r1"]
    assert nudges[0]["suggestion"] == "Move this to email"


def test_bad_now(snapshot, capsys):
    assert main(["--now", "soonish", "plan", str(snapshot)]) == 2


def test_missing_snapshot(tmp_path, capsys):
    assert main(["--now", NOW, "plan", str(tmp_path / "absent.yaml")]) == 1
    assert "could not read" in capsys.readouterr().err


def test_invalid_action_row(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"actions": [{"id": "x", "action_type": "CALL", "state": "NEW", "due_date": "2026-03-11"}]}))
    assert main(["--now", NOW, "priorities", str(path)]) == 1
    assert "action_type" in capsys.readouterr().err


def test_snapshot_must_be_mapping(tmp_path, capsys):
    path = tmp_path / "list.yaml"
    path.write_text("- just\n- a list\n")
    assert main(["--now", NOW, "priorities", str(path)]) == 1


def test_malformed_completion_history(tmp_path, capsys):
    path = tmp_path / "history.yaml"
    path.write_text(yaml.safe_dump({"completion_history": [{"date": "2026-03-10", "planned": "lots", "completed": 0}]}))
    assert main(["--now", NOW, "plan", str(path)]) == 1
    assert "planned" in capsys.readouterr().err
