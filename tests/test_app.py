"""
Tests for the command-line interface.
"""

import json

import pytest

from jobtracker import __version__
from jobtracker.app import main
from jobtracker.logger import get_logger


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """Run every command from an empty directory with file logging off."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JOBTRACKER_LOG_FILE", "false")
    monkeypatch.delenv("JOBTRACKER_STORE", raising=False)
    monkeypatch.delenv("DUPLICATE_DETECTION_ENABLED", raising=False)
    yield
    # main() binds a console handler to the captured stdout of this test
    get_logger().configure(enable_file=False, enable_console=False)


def run(capsys, *argv):
    main(["--log-level", "WARNING", *argv])
    return capsys.readouterr().out


def test_version(capsys):
    assert run(capsys, "--version").strip() == __version__


def test_add_and_duplicate(capsys, tmp_path):
    store = str(tmp_path / "jobs.json")
    out = run(capsys, "add", "--company", "Acme", "--title", "Engineer", "--url", "https://acme.example/1", "--store", store)
    assert "Index: 0" in out
    assert "Status: added" in out

    out = run(capsys, "add", "--company", "ACME", "--title", "engineer", "--store", store)
    assert "Index: 0" in out
    assert "Status: duplicate" in out


def test_default_store_path_from_settings(capsys, tmp_path):
    run(capsys, "add", "--company", "Acme", "--title", "Engineer")
    assert (tmp_path / "data" / "jobs.json").exists()


def test_add_with_info(capsys, tmp_path):
    store = str(tmp_path / "jobs.json")
    run(capsys, "add", "--company", "Acme", "--title", "Engineer", "--info", '{"matchReason": "python"}', "--store", store)
    job = json.loads(run(capsys, "show", "--index", "0", "--store", store))
    assert job["additionalInfo"] == {"matchReason": "python"}


def test_add_invalid(capsys, tmp_path):
    with pytest.raises(SystemExit, match="Invalid job"):
        main(["add", "--company", "Acme", "--title", " ", "--store", str(tmp_path / "jobs.json")])


def test_import(capsys, tmp_path):
    input_path = tmp_path / "candidates.json"
    input_path.write_text(json.dumps([
        {"company": "Acme", "jobTitle": "Engineer"},
        {"company": "acme", "jobTitle": "ENGINEER"},
        {"company": "Beta"},
    ]))
    out = run(capsys, "import", "--input", str(input_path), "--store", str(tmp_path / "jobs.json"))
    assert "added=1 duplicates=1 invalid=1" in out


def test_status_and_note(capsys, populated_store_path):
    store = str(populated_store_path)
    out = run(capsys, "status", "--index", "1", "--status", "reviewed", "--note", "good fit", "--store", store)
    assert "reviewed" in out

    run(capsys, "note", "--index", "1", "--text", "called recruiter", "--store", store)
    job = json.loads(run(capsys, "show", "--index", "1", "--store", store))
    assert job["status"] == "reviewed"
    assert [n["note"] for n in job["notes"]] == ["called recruiter"]


def test_status_out_of_range(populated_store_path):
    with pytest.raises(SystemExit, match="out of range"):
        main(["status", "--index", "3", "--status", "applied", "--store", str(populated_store_path)])


def test_show_missing(populated_store_path):
    with pytest.raises(SystemExit, match="not found"):
        main(["show", "--index", "-1", "--store", str(populated_store_path)])


def test_list_filters(capsys, populated_store_path):
    store = str(populated_store_path)
    out = run(capsys, "list", "--company", "acme", "--store", store)
    assert "[0]" in out and "[2]" in out and "[1]" not in out

    out = run(capsys, "list", "--status", "applied", "--store", store)
    assert "Product Manager" in out and "Software Engineer" not in out

    out = run(capsys, "list", "--search", "nothing-matches", "--store", store)
    assert "No jobs found." in out


def test_stats(capsys, populated_store_path):
    stats = json.loads(run(capsys, "stats", "--store", str(populated_store_path)))
    assert stats["totalJobs"] == 3
    assert stats["byStatus"] == {"found": 2, "applied": 1}
    assert stats["appliedCount"] == 1


def test_migrate(capsys, legacy_store_path):
    out = run(capsys, "migrate", "--store", str(legacy_store_path))
    assert "Migrated 2 jobs" in out
    assert isinstance(json.loads(legacy_store_path.read_text()), list)

    out = run(capsys, "migrate", "--store", str(legacy_store_path))
    assert "Nothing to migrate" in out


def test_migrate_malformed(tmp_path):
    path = tmp_path / "jobs.json"
    path.write_text("{oops")
    with pytest.raises(SystemExit, match="Cannot migrate"):
        main(["migrate", "--store", str(path)])


def test_apply_result(capsys, populated_store_path, tmp_path):
    result_path = tmp_path / "result.json"
    result_path.write_text(json.dumps({"success": True, "result": "Submitted", "sessionId": "s-1"}))

    out = run(capsys, "apply-result", "--index", "0", "--input", str(result_path), "--store", str(populated_store_path))
    assert "applied" in out

    job = json.loads(run(capsys, "show", "--index", "0", "--store", str(populated_store_path)))
    assert job["additionalInfo"]["applicationProof"]["sessionId"] == "s-1"


def test_apply_result_already_applied(populated_store_path, tmp_path):
    result_path = tmp_path / "result.json"
    result_path.write_text(json.dumps({"success": True}))
    with pytest.raises(SystemExit, match="not recorded"):
        main(["apply-result", "--index", "2", "--input", str(result_path), "--store", str(populated_store_path)])


def test_scrape_unsupported_host(tmp_path):
    with pytest.raises(SystemExit, match="Unsupported URL host"):
        main(["scrape", "--url", "https://example.com/jobs/1", "--store", str(tmp_path / "jobs.json")])


def test_duplicate_detection_can_be_disabled(capsys, tmp_path, monkeypatch):
    monkeypatch.setenv("DUPLICATE_DETECTION_ENABLED", "false")
    store = str(tmp_path / "jobs.json")
    run(capsys, "add", "--company", "Acme", "--title", "Engineer", "--store", store)
    out = run(capsys, "add", "--company", "Acme", "--title", "Engineer", "--store", store)
    assert "Index: 1" in out
