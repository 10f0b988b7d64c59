"""Tests for ``credspine.ops.records`` - record operations over a live engine."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from credspine.ops.context import OperationContext
from credspine.ops.requests import (
    CreateChildRecordRequest,
    CreateRecordRequest,
    DeleteEntityRequest,
    DeleteRecordRequest,
    GetEntityRequest,
    ListRecordsRequest,
    ReplaceRecordRequest,
    UpdateRecordRequest,
)


class TestTables:
    def test_initialize_is_idempotent(self, ctx):
        from credspine.ops.records import initialize_tables

        result = initialize_tables(ctx)
        assert result.success is True
        assert result.data == {"created": []}

    def test_initialize_dry_run_lists_missing(self, store, cache):
        from credspine.engine.index import RowIndexCache
        from credspine.engine.mutators import DataEngine
        from credspine.engine.schemas import default_registry
        from credspine.ops.records import initialize_tables

        engine = DataEngine(store, default_registry(), RowIndexCache(store, cache))
        result = initialize_tables(OperationContext(engine=engine, dry_run=True))

        assert result.data["dry_run"] is True
        assert "Providers" in result.data["would_create"]
        assert store.table_names() == []

    def test_list_tables(self, ctx, provider_id):
        from credspine.ops.records import list_tables

        result = list_tables(ctx)
        by_name = {t["table"]: t for t in result.data}
        assert by_name["Providers"]["rows"] == 1
        assert by_name["Providers"]["parent"] is None
        assert by_name["Licenses"]["parent"] == "Providers"
        assert by_name["TaskAttachments"]["parent"] == "RequestTasks"


class TestReads:
    def test_get_record(self, ctx, provider_id):
        from credspine.ops.records import get_record

        result = get_record(ctx, "Providers", provider_id)
        assert result.success is True
        assert result.data["lastName"] == "Lovelace"

    def test_get_record_not_found(self, ctx):
        from credspine.ops.records import get_record

        result = get_record(ctx, "Providers", "nope")
        assert result.success is False
        assert result.error.code == "NOT_FOUND"
        assert result.error.details["record_id"] == "nope"

    def test_unknown_table(self, ctx):
        from credspine.ops.records import get_record

        assert get_record(ctx, "Spaceships", "x").error.code == "SCHEMA_NOT_FOUND"

    def test_list_records_paged(self, ctx, engine):
        from credspine.ops.records import list_records

        for i in range(5):
            engine.create_record("Providers", {"firstName": f"P{i}", "lastName": "X"}).unwrap()

        result = list_records(ctx, ListRecordsRequest(table="Providers", limit=2, offset=2))
        assert result.success is True
        assert [r["firstName"] for r in result.data] == ["P2", "P3"]
        assert result.total == 5
        assert result.has_more is True

    def test_list_records_filtered(self, ctx, engine, provider_id):
        from credspine.ops.records import list_records

        engine.create_record("Providers", {"firstName": "G", "lastName": "H"}).unwrap()
        result = list_records(
            ctx, ListRecordsRequest(table="Providers", filters={"lastName": "Lovelace"})
        )
        assert [r["id"] for r in result.data] == [provider_id]
        assert result.has_more is False

    def test_list_records_unknown_table(self, ctx):
        from credspine.ops.records import list_records

        result = list_records(ctx, ListRecordsRequest(table="Spaceships"))
        assert result.success is False
        assert result.error.code == "SCHEMA_NOT_FOUND"

    def test_get_entity_details(self, ctx, engine, provider_id):
        from credspine.ops.records import get_entity_details

        engine.create_child_record(
            "Licenses", provider_id, {"licenseNumber": "A1", "state": "TX"}
        ).unwrap()
        result = get_entity_details(
            ctx, GetEntityRequest(entity_type="Provider", record_id=provider_id)
        )
        assert result.success is True
        assert len(result.data["licenses"]) == 1


class TestCreate:
    def test_create_record(self, ctx, engine):
        from credspine.ops.records import create_record

        result = create_record(
            ctx, CreateRecordRequest(table="Facilities", fields={"name": "St. Mary"})
        )
        assert result.success is True
        assert result.message == "Created Facilities record"
        assert engine.get_record("Facilities", result.data["id"]).is_ok()

    def test_correlation_id_is_request_id(self, ctx, engine):
        from credspine.ops.records import create_record

        create_record(ctx, CreateRecordRequest(table="Facilities", fields={"name": "St. Mary"}))
        audit = engine.list_records("AuditLog").unwrap()
        assert audit[-1]["correlationId"] == ctx.request_id

    def test_missing_fields(self, ctx):
        from credspine.ops.records import create_record

        result = create_record(ctx, CreateRecordRequest(table="Providers", fields={}))
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details["missing_fields"] == ["firstName", "lastName"]
        assert result.error.retryable is False

    def test_dry_run_writes_nothing(self, dry_ctx, engine):
        from credspine.ops.records import create_record

        result = create_record(
            dry_ctx, CreateRecordRequest(table="Providers", fields={"firstName": "A"})
        )
        assert result.data == {"dry_run": True, "would_create": "Providers"}
        assert engine.list_records("Providers").unwrap() == []

    def test_create_child(self, ctx, engine, provider_id):
        from credspine.ops.records import create_child_record

        result = create_child_record(
            ctx,
            CreateChildRecordRequest(
                table="Licenses",
                parent_id=provider_id,
                fields={"licenseNumber": "A1", "state": "TX"},
            ),
        )
        assert result.success is True
        record = engine.get_record("Licenses", result.data["id"]).unwrap()
        assert record["providerId"] == provider_id

    def test_create_child_unknown_parent(self, ctx, engine):
        from credspine.ops.records import create_child_record

        result = create_child_record(
            ctx,
            CreateChildRecordRequest(
                table="Licenses", parent_id="ghost", fields={"licenseNumber": "A1", "state": "TX"}
            ),
        )
        assert result.error.code == "NOT_FOUND"
        assert engine.list_records("Licenses").unwrap() == []

    def test_create_child_without_parent_id(self, ctx):
        from credspine.ops.records import create_child_record

        result = create_child_record(
            ctx,
            CreateChildRecordRequest(table="Licenses", fields={"licenseNumber": "A1", "state": "TX"}),
        )
        assert result.error.code == "VALIDATION_FAILED"

    def test_create_child_dry_run_still_checks_parent(self, dry_ctx):
        from credspine.ops.records import create_child_record

        result = create_child_record(
            dry_ctx,
            CreateChildRecordRequest(table="Licenses", parent_id="ghost", fields={}),
        )
        assert result.error.code == "NOT_FOUND"


class TestUpdate:
    def test_update_record(self, ctx, provider_id):
        from credspine.ops.records import update_record

        result = update_record(
            ctx,
            UpdateRecordRequest(
                table="Providers", record_id=provider_id, fields={"credentialingStatus": "Active"}
            ),
        )
        assert result.success is True
        assert result.data["updated"] is True
        assert result.data["changes"] == {"credentialingStatus": ["Pending", "Active"]}
        assert result.data["record"]["credentialingStatus"] == "Active"

    def test_no_changes(self, ctx, provider_id):
        from credspine.ops.records import update_record

        result = update_record(
            ctx,
            UpdateRecordRequest(table="Providers", record_id=provider_id, fields={"firstName": "Ada"}),
        )
        assert result.success is True
        assert result.data["updated"] is False
        assert result.message == "No changes"

    def test_update_not_found(self, ctx):
        from credspine.ops.records import update_record

        result = update_record(
            ctx, UpdateRecordRequest(table="Providers", record_id="nope", fields={"npi": "1"})
        )
        assert result.error.code == "NOT_FOUND"
        assert result.error.details["operation"] == "patch_by_id"

    def test_replace_record(self, ctx, provider_id):
        from credspine.ops.records import replace_record

        result = replace_record(
            ctx,
            ReplaceRecordRequest(
                table="Providers",
                record_id=provider_id,
                fields={"firstName": "Ada", "lastName": "Lovelace"},
            ),
        )
        assert result.data["record"]["npi"] == ""

    def test_update_dry_run(self, dry_ctx, engine, provider_id):
        from credspine.ops.records import update_record

        result = update_record(
            dry_ctx,
            UpdateRecordRequest(table="Providers", record_id=provider_id, fields={"npi": "1"}),
        )
        assert result.data["would_update"] == provider_id
        assert engine.get_record("Providers", provider_id).unwrap()["npi"] == "1234567890"


class TestDelete:
    def test_delete_record(self, ctx, provider_id):
        from credspine.ops.records import delete_record

        result = delete_record(ctx, DeleteRecordRequest(table="Providers", record_id=provider_id))
        assert result.data == {"id": provider_id, "deleted": True}

    def test_delete_missing_is_success(self, ctx):
        from credspine.ops.records import delete_record

        result = delete_record(ctx, DeleteRecordRequest(table="Providers", record_id="nope"))
        assert result.success is True
        assert result.data["deleted"] is False
        assert result.message == "Nothing to delete"

    def test_delete_entity(self, ctx, engine, provider_id):
        from credspine.ops.records import delete_entity

        engine.create_child_record(
            "Licenses", provider_id, {"licenseNumber": "A1", "state": "TX"}
        ).unwrap()
        result = delete_entity(
            ctx, DeleteEntityRequest(entity_type="Provider", record_id=provider_id)
        )
        assert result.success is True
        assert result.data["success"] is True
        assert result.warnings == []
        assert engine.list_records("Licenses").unwrap() == []

    def test_delete_entity_not_found(self, ctx):
        from credspine.ops.records import delete_entity

        result = delete_entity(ctx, DeleteEntityRequest(entity_type="Provider", record_id="nope"))
        assert result.error.code == "NOT_FOUND"

    def test_delete_entity_dry_run(self, dry_ctx, engine, provider_id):
        from credspine.ops.records import delete_entity

        delete_entity(dry_ctx, DeleteEntityRequest(entity_type="Provider", record_id=provider_id))
        assert engine.get_record("Providers", provider_id).is_ok()


class TestUnexpectedErrors:
    @pytest.fixture
    def broken_ctx(self):
        engine = MagicMock()
        engine.get_record.side_effect = RuntimeError("disk on fire")
        engine.delete_by_id.side_effect = RuntimeError("disk on fire")
        return OperationContext(engine=engine, caller="test")

    def test_internal_error_envelope(self, broken_ctx):
        from credspine.ops.records import get_record

        result = get_record(broken_ctx, "Providers", "p-1")
        assert result.success is False
        assert result.error.code == "INTERNAL"
        assert "disk on fire" in result.error.message

    def test_delete_internal_error(self, broken_ctx):
        from credspine.ops.records import delete_record

        result = delete_record(broken_ctx, DeleteRecordRequest(table="Providers", record_id="p-1"))
        assert result.error.code == "INTERNAL"
