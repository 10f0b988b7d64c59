"""Tests for the ``credspine`` CLI against a real SQLite store."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from credspine.cli.app import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "cred.db")


def _invoke(*args):
    return runner.invoke(app, ["--log-level", "ERROR", *args])


def _json(*args):
    result = _invoke(*args, "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def _create_provider(db, *extra):
    payload = _json(
        "create", "Providers", "-d", db,
        "-f", "firstName=Ada", "-f", "lastName=Lovelace",
        "-f", "credentialingStatus=Pending", *extra,
    )
    return payload["data"]["id"]


class TestRoot:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("cred-spine ")


class TestTablesCommands:
    def test_init_creates_then_is_idempotent(self, db):
        first = _json("init", "-d", db)
        assert first["data"]["created"] == []
        assert first["success"] is True

    def test_tables(self, db):
        payload = _json("tables", "-d", db)
        names = [t["table"] for t in payload["data"]]
        assert "Providers" in names
        assert "AuditLog" in names

    def test_tables_rich_output(self, db):
        result = _invoke("tables", "-d", db)
        assert result.exit_code == 0
        assert "Providers" in result.stdout


class TestRecordCommands:
    def test_create_and_show(self, db):
        pid = _create_provider(db, "-f", 'address={"city": "Austin"}')

        payload = _json("show", "Providers", pid, "-d", db)
        assert payload["data"]["firstName"] == "Ada"
        assert payload["data"]["address"] == {"city": "Austin"}

    def test_create_child_and_show_entity(self, db):
        pid = _create_provider(db)
        _json(
            "create", "Licenses", "-d", db, "--parent", pid,
            "-f", "licenseNumber=A123", "-f", "state=TX",
        )

        payload = _json("show", "Provider", pid, "-d", db)
        assert [lic["licenseNumber"] for lic in payload["data"]["licenses"]] == ["A123"]

    def test_create_child_without_parent_fails(self, db):
        result = _invoke("create", "Licenses", "-d", db, "-f", "licenseNumber=A1", "-f", "state=TX")
        assert result.exit_code == 1

    def test_create_missing_required_json(self, db):
        result = _invoke("create", "Providers", "-d", db, "-f", "firstName=Ada", "--json")
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["error"]["code"] == "VALIDATION_FAILED"
        assert payload["error"]["details"]["missing_fields"] == ["lastName"]

    def test_bad_field_syntax(self, db):
        result = _invoke("create", "Providers", "-d", db, "-f", "firstName")
        assert result.exit_code == 2

    def test_create_dry_run(self, db):
        payload = _json("create", "Providers", "-d", db, "-f", "firstName=A", "--dry-run")
        assert payload["data"]["dry_run"] is True
        assert _json("list", "Providers", "-d", db)["total"] == 0

    def test_list_with_filter_and_paging(self, db):
        pid = _create_provider(db)
        _json("create", "Providers", "-d", db, "-f", "firstName=Grace", "-f", "lastName=Hopper")

        payload = _json("list", "Providers", "-d", db, "-f", "lastName=Lovelace")
        assert [r["id"] for r in payload["data"]] == [pid]

        page = _json("list", "Providers", "-d", db, "--limit", "1")
        assert page["total"] == 2
        assert page["has_more"] is True

    def test_list_rich_output(self, db):
        _create_provider(db)
        result = _invoke("list", "Providers", "-d", db)
        assert result.exit_code == 0
        assert "Showing 1 of 1" in result.stdout

    def test_patch(self, db):
        pid = _create_provider(db)
        payload = _json("patch", "Providers", pid, "-d", db, "-f", "credentialingStatus=Active")
        assert payload["data"]["updated"] is True
        assert payload["data"]["changes"] == {"credentialingStatus": ["Pending", "Active"]}

        again = _json("patch", "Providers", pid, "-d", db, "-f", "credentialingStatus=Active")
        assert again["data"]["updated"] is False

    def test_patch_replace(self, db):
        pid = _create_provider(db)
        payload = _json(
            "patch", "Providers", pid, "-d", db, "--replace",
            "-f", "firstName=Ada", "-f", "lastName=King",
        )
        assert payload["data"]["record"]["credentialingStatus"] == ""

    def test_patch_missing_record(self, db):
        result = _invoke("patch", "Providers", "nope", "-d", db, "-f", "npi=1", "--json")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"]["code"] == "NOT_FOUND"

    def test_show_missing_record(self, db):
        result = _invoke("show", "Providers", "nope", "-d", db)
        assert result.exit_code == 1

    def test_show_unknown_table(self, db):
        result = _invoke("show", "Spaceships", "x", "-d", db, "--json")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"]["code"] == "SCHEMA_NOT_FOUND"


class TestDeleteCommand:
    def test_delete_row(self, db):
        pid = _create_provider(db)
        payload = _json("delete", "Providers", pid, "-d", db)
        assert payload["data"] == {"id": pid, "deleted": True}

        again = _json("delete", "Providers", pid, "-d", db)
        assert again["data"]["deleted"] is False

    def test_delete_entity_cascades(self, db):
        pid = _create_provider(db)
        _json(
            "create", "Licenses", "-d", db, "--parent", pid,
            "-f", "licenseNumber=A123", "-f", "state=TX",
        )

        payload = _json("delete", "Provider", pid, "-d", db)
        assert payload["data"]["success"] is True
        assert "Licenses" in [s["table"] for s in payload["data"]["steps"]]
        assert _json("list", "Licenses", "-d", db)["total"] == 0

    def test_delete_entity_dry_run(self, db):
        pid = _create_provider(db)
        _json("delete", "Provider", pid, "-d", db, "--dry-run")
        assert _json("show", "Providers", pid, "-d", db)["success"] is True

    def test_audit_log_cannot_be_changed(self, db):
        _create_provider(db)
        event_id = _json("list", "AuditLog", "-d", db)["data"][0]["id"]

        patched = _invoke("patch", "AuditLog", event_id, "-d", db, "-f", "message=x", "--json")
        deleted = _invoke("delete", "AuditLog", event_id, "-d", db, "--json")

        for result in (patched, deleted):
            assert result.exit_code == 1
            assert json.loads(result.stdout)["error"]["code"] == "VALIDATION_FAILED"

    def test_audit_event_is_not_a_cascade_target(self, db):
        _create_provider(db)
        event_id = _json("list", "AuditLog", "-d", db)["data"][0]["id"]

        result = _invoke("delete", "AuditEvent", event_id, "-d", db, "--json")

        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"]["code"] == "SCHEMA_NOT_FOUND"
        assert _json("show", "AuditLog", event_id, "-d", db)["success"] is True
