import json

import pandas as pd
import pytest
from typer.testing import CliRunner

from journalgeo.cli import app
from journalgeo.config import Config
from journalgeo.ingest import InvalidJournalFileError, UnsupportedFileError, load_journal

runner = CliRunner()


def _write_journal(path, entries):
    path.write_text(json.dumps(entries, ensure_ascii=False), encoding="utf-8")
    return path


def _entry(day, location):
    return {"day": day, "date": f"{day} janvier", "title": f"Jour {day}", "location": location, "story": "...", "mood": "Bien"}


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    def fail_get(*args, **kwargs):
        raise AssertionError("network must not be used")

    monkeypatch.setattr("journalgeo.geocode.requests.get", fail_get)
    monkeypatch.setattr("journalgeo.cli.DEFAULT_CONFIG", Config(mapbox_access_token=None))


def test_load_journal_accepts_export_object(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"entries": [_entry(2, "Jerash"), _entry(1, "Amman")]}), encoding="utf-8")
    assert [entry.day for entry in load_journal(path)] == [1, 2]


def test_load_journal_rejects_bad_files(tmp_path):
    with pytest.raises(UnsupportedFileError):
        load_journal(tmp_path / "journal.txt")
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(InvalidJournalFileError):
        load_journal(broken)
    with pytest.raises(InvalidJournalFileError):
        load_journal(_write_journal(tmp_path / "bad.json", [{"day": 0}]))


def test_geocode_command_writes_outputs(tmp_path):
    journal = _write_journal(tmp_path / "journal.json", [_entry(1, "Amman"), _entry(2, "Jerash, Château perdu")])
    out = tmp_path / "out"

    result = runner.invoke(app, ["geocode", str(journal), "--output-dir", str(out)])

    assert result.exit_code == 0, result.output
    assert "Geocoded 2 of 3 locations, 1 need review." in result.output
    assert "Château perdu (not in gazetteer)" in result.output
    pending = json.loads((out / "pending_locations.json").read_text(encoding="utf-8"))
    assert [loc["name"] for loc in pending] == ["Amman", "Jerash"]
    assert pending[1]["coordinates"] == [35.8998, 32.2811]
    frame = pd.read_csv(out / "locations.csv")
    assert list(frame["status"]) == ["pending", "pending", "failed"]

    inspected = runner.invoke(app, ["inspect", str(out / "pending_locations.json")])
    assert inspected.exit_code == 0
    assert "day 2 Jerash [secondaire] -> (35.8998, 32.2811)" in inspected.output


def test_geocode_command_rejects_unsupported_file(tmp_path):
    path = tmp_path / "journal.txt"
    path.write_text("Amman", encoding="utf-8")
    result = runner.invoke(app, ["geocode", str(path)])
    assert result.exit_code == 1


def test_publish_and_storage_status(tmp_path):
    storage_path = tmp_path / "storage.json"

    result = runner.invoke(app, ["publish", "journal", "6", "published", "--storage-path", str(storage_path)])
    assert result.exit_code == 0
    stored = json.loads(storage_path.read_text(encoding="utf-8"))
    assert json.loads(stored["content-publication-state.v1"])["journal"]["6"]["status"] == "published"

    status = runner.invoke(app, ["storage-status", "--storage-path", str(storage_path)])
    assert status.exit_code == 0
    assert "Entries: 5 (days 1-5)" in status.output
    assert "Storage version: 3.0" in status.output

    invalid = runner.invoke(app, ["publish", "recipes", "x", "--storage-path", str(storage_path)])
    assert invalid.exit_code == 1
