from __future__ import annotations

import json
import sys
from typing import List

import pytest


def _run_cli_with_args(args_list: List[str]) -> int:
    """Run cli.py main() with provided argv in-process (no subprocess); returns the exit code."""
    argv_backup = sys.argv[:]
    try:
        sys.argv = ["cli.py"] + args_list
        # Import fresh to ensure clean parser each time
        if "cli" in sys.modules:
            del sys.modules["cli"]
        import cli  # type: ignore
        try:
            cli.main()  # type: ignore[attr-defined]
        except SystemExit as e:
            return int(getattr(e, "code", 0) or 0)
        return 0
    finally:
        sys.argv = argv_backup


@pytest.fixture()
def admin(local_env, monkeypatch):
    monkeypatch.setenv("RUN_ID", "cli-test")
    assert _run_cli_with_args(["add-admin", "--email", "admin@example.com", "--password", "s3cret"]) == 0
    return local_env


def _last_line(capsys) -> str:
    return capsys.readouterr().out.strip().splitlines()[-1]


def test_profile_lifecycle_through_cli(admin, capsys):
    assert _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"]) == 0
    assert "Signed in as admin@example.com" in capsys.readouterr().out

    code = _run_cli_with_args([
        "create",
        "--set", "fullName=Jane Doe",
        "--set", "primarySkill=Elder Care",
        "--set", "experienceYears=3",
        "--set", "bioSummary=Warm and patient caregiver.",
        "--set", "locationPreference=Kampala",
        "--set", "languagesSpoken=English, Luganda",
    ])
    assert code == 0
    record_id = _last_line(capsys)

    assert _run_cli_with_args(["update", record_id, "--set", "bioSummary=Also trained in first aid."]) == 0
    assert "HCP profile updated successfully!" in capsys.readouterr().out

    assert _run_cli_with_args(["set-status", record_id, "Approved - Ready for Match"]) == 0
    capsys.readouterr()

    photo = admin / "jane.png"
    photo.write_bytes(b"\x89PNG" + b"0" * 100)
    assert _run_cli_with_args(["upload", str(photo), "--profile", record_id]) == 0
    out = capsys.readouterr().out
    assert "Uploading: 100%" in out
    assert "Upload complete: file://" in out

    assert _run_cli_with_args(["list", "--json"]) == 0
    records = json.loads(capsys.readouterr().out)
    assert len(records) == 1
    rec = records[0]
    assert rec["id"] == record_id
    assert rec["languagesSpoken"] == ["English", "Luganda"]
    assert rec["bioSummary"] == "Also trained in first aid."
    assert rec["internalStatus"] == "Approved - Ready for Match"
    assert rec["profilePhotoUrl"].startswith("file://")
    assert rec["dateCreated"].endswith("Z")
    assert rec["lastUpdated"].endswith("Z")

    assert _run_cli_with_args(["delete", record_id, "--yes"]) == 0
    assert "Deleted" in capsys.readouterr().out
    assert _run_cli_with_args(["list"]) == 0
    assert "No HCP profiles found." in capsys.readouterr().out


def test_delete_can_be_cancelled(admin, capsys, monkeypatch):
    _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"])
    _run_cli_with_args([
        "create", "--set", "fullName=Jane", "--set", "primarySkill=Care", "--set", "experienceYears=1",
        "--set", "bioSummary=b", "--set", "locationPreference=Kampala",
    ])
    record_id = _last_line(capsys)

    monkeypatch.setattr("builtins.input", lambda _prompt: "n")
    assert _run_cli_with_args(["delete", record_id]) == 0
    assert "Cancelled" in capsys.readouterr().out
    assert _run_cli_with_args(["show", record_id]) == 0
    assert '"fullName": "Jane"' in capsys.readouterr().out


def test_commands_require_sign_in(admin, capsys):
    assert _run_cli_with_args(["list"]) == 1
    assert "Sign in required." in capsys.readouterr().err
    assert _run_cli_with_args(["whoami"]) == 1


def test_logout_forgets_session(admin, capsys):
    _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"])
    assert _run_cli_with_args(["whoami"]) == 0
    assert "admin@example.com" in capsys.readouterr().out
    assert _run_cli_with_args(["logout"]) == 0
    assert _run_cli_with_args(["whoami"]) == 1


def test_bad_credentials_show_provider_message(admin, capsys):
    assert _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "wrong"]) == 1
    assert "INVALID_LOGIN_CREDENTIALS" in capsys.readouterr().err


def test_invalid_create_reports_missing_fields(admin, capsys):
    _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"])
    capsys.readouterr()
    assert _run_cli_with_args(["create", "--set", "fullName=Jane"]) == 1
    assert "primarySkill" in capsys.readouterr().err


def test_upload_rejects_non_images(admin, capsys):
    _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"])
    doc = admin / "cv.pdf"
    doc.write_bytes(b"%PDF-1.4")
    assert _run_cli_with_args(["upload", str(doc)]) == 1
    assert "Only image files" in capsys.readouterr().err
    assert not (admin / "blobs").exists() or not any((admin / "blobs").rglob("*.pdf"))


def test_import_command(admin, capsys):
    _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"])
    path = admin / "profiles.json"
    path.write_text(json.dumps([
        {"fullName": "A", "primarySkill": "Care", "experienceYears": 1, "bioSummary": "b", "locationPreference": "x"},
        {"fullName": "", "primarySkill": "Care"},
    ]), encoding="utf-8")
    assert _run_cli_with_args(["import", str(path)]) == 0
    out = capsys.readouterr().out
    assert "Created 1 profile(s)..." in out
    assert "Created: 1" in out
    assert "Invalid Rows: 1" in out


def test_check_config_reports_missing_firebase_settings(monkeypatch, capsys):
    monkeypatch.setenv("HCP_BACKEND", "firebase")
    for name in ("FIREBASE_API_KEY", "FIREBASE_AUTH_DOMAIN", "FIREBASE_PROJECT_ID",
                 "FIREBASE_STORAGE_BUCKET", "FIREBASE_MESSAGING_SENDER_ID", "FIREBASE_APP_ID"):
        monkeypatch.delenv(name, raising=False)
    from config.settings import get_settings
    get_settings.cache_clear()

    assert _run_cli_with_args(["check-config"]) == 1
    captured = capsys.readouterr()
    assert "FIREBASE_API_KEY" in captured.out
    assert "Data operations are disabled" in captured.err


def test_add_admin_is_local_only(monkeypatch, capsys):
    monkeypatch.setenv("HCP_BACKEND", "firebase")
    from config.settings import get_settings
    get_settings.cache_clear()
    assert _run_cli_with_args(["add-admin", "--email", "a@b.c", "--password", "x"]) == 1
    assert "local backend" in capsys.readouterr().err


def test_update_cannot_blank_required_fields(admin, capsys):
    _run_cli_with_args(["login", "--email", "admin@example.com", "--password", "s3cret"])
    _run_cli_with_args([
        "create", "--set", "fullName=Jane", "--set", "primarySkill=Care", "--set", "experienceYears=4",
        "--set", "bioSummary=b", "--set", "locationPreference=Kampala",
    ])
    record_id = _last_line(capsys)

    assert _run_cli_with_args(["update", record_id, "--set", "experienceYears="]) == 1
    assert "experienceYears" in capsys.readouterr().err
    assert _run_cli_with_args(["update", record_id, "--set", "primarySkill=  "]) == 1
    assert "Primary skill is required" in capsys.readouterr().err

    assert _run_cli_with_args(["list", "--json"]) == 0
    records = json.loads(capsys.readouterr().out)
    assert [(r["id"], r["experienceYears"], r["primarySkill"]) for r in records] == [(record_id, 4, "Care")]


def test_bad_integer_setting_fails_cleanly(local_env, monkeypatch, capsys):
    monkeypatch.setenv("HCP_HTTP_TIMEOUT_SECONDS", "soon")
    from config.settings import get_settings
    get_settings.cache_clear()
    assert _run_cli_with_args(["whoami"]) == 1
    assert "HCP_HTTP_TIMEOUT_SECONDS must be a positive integer" in capsys.readouterr().err
