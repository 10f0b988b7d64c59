"""Tests for credspine.engine.audit - one audit event per mutation attempt."""

from structlog.testing import capture_logs

from credspine.core.cache import InMemoryCache
from credspine.engine.audit import AuditHook, AuditKind
from credspine.engine.index import RowIndexCache
from credspine.engine.mutators import DataEngine
from credspine.engine.schemas import PROVIDER, default_registry
from credspine.store.memory import InMemoryTabularStore


def _audit(engine):
    return engine.list_records("AuditLog").unwrap()


class TestAuditHook:
    def test_record_appends_row(self, engine):
        hook = AuditHook(engine.store)
        event = hook.record(
            AuditKind.REQUEST, "manual", {"operation": "test"}, correlation_id="c-1"
        )

        rows = _audit(engine)
        assert rows[-1]["id"] == event.id
        assert rows[-1]["kind"] == "Request"
        assert rows[-1]["message"] == "manual"
        assert rows[-1]["correlationId"] == "c-1"
        assert rows[-1]["context"] == {"operation": "test"}
        assert rows[-1]["timestamp"] == event.timestamp

    def test_free_form_kind(self, engine):
        AuditHook(engine.store).record("Login", "signed in")
        assert _audit(engine)[-1]["kind"] == "Login"

    def test_write_failure_is_swallowed(self):
        store = InMemoryTabularStore()
        hook = AuditHook(store)

        with capture_logs() as logs:
            event = hook.record(AuditKind.ERROR, "boom", correlation_id="c-9")

        assert event is None
        failures = [e for e in logs if e["event"] == "audit.write_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert failures[0]["correlation_id"] == "c-9"


class TestMutationAuditing:
    def test_create_writes_one_request_event(self, engine):
        rid = engine.create_record(
            "Providers", {"firstName": "A", "lastName": "B"}, correlation_id="req-1"
        ).unwrap()

        rows = _audit(engine)
        assert len(rows) == 1
        assert rows[0]["kind"] == "Request"
        assert rows[0]["correlationId"] == "req-1"
        assert rows[0]["context"]["operation"] == "create_record"
        assert rows[0]["context"]["table"] == "Providers"
        assert rows[0]["context"]["id"] == rid

    def test_failure_writes_one_error_event(self, engine):
        engine.create_record("Providers", {"firstName": "A"}, correlation_id="req-2")

        rows = _audit(engine)
        assert len(rows) == 1
        assert rows[0]["kind"] == "Error"
        assert rows[0]["correlationId"] == "req-2"
        assert rows[0]["context"]["error"]["missing_fields"] == ["lastName"]

    def test_every_attempt_is_audited(self, engine, provider_id):
        engine.patch_by_id("Providers", provider_id, {"specialty": "ENT"})
        engine.patch_by_id("Providers", provider_id, {"specialty": "ENT"})
        engine.patch_by_id("Providers", "missing", {"specialty": "ENT"})
        engine.delete_by_id("Providers", "missing")

        kinds = [r["kind"] for r in _audit(engine)]
        assert kinds == ["Request", "Request", "Request", "Error", "Request"]

    def test_patch_context_carries_changes(self, engine, provider_id):
        engine.patch_by_id("Providers", provider_id, {"credentialingStatus": "Active"})
        context = _audit(engine)[-1]["context"]
        assert context["updated"] is True
        assert context["changes"] == {"credentialingStatus": ["Pending", "Active"]}

    def test_audit_failure_does_not_fail_mutation(self, cache):
        store = InMemoryTabularStore()
        store.create_table("Providers", list(PROVIDER.headers))
        index = RowIndexCache(store, cache)
        engine = DataEngine(store, default_registry(), index, audit=AuditHook(store, index=index))

        with capture_logs() as logs:
            result = engine.create_record("Providers", {"firstName": "A", "lastName": "B"})

        assert result.is_ok()
        assert engine.get_record("Providers", result.unwrap()).is_ok()
        assert any(e["event"] == "audit.write_failed" for e in logs)

    def test_audit_table_index_invalidated(self, engine):
        hook = AuditHook(engine.store, index=engine.index)
        engine.get_or_build_index("AuditLog")
        event = hook.record(AuditKind.REQUEST, "x")
        assert event.id in engine.get_or_build_index("AuditLog")

    def test_engine_without_audit(self):
        store = InMemoryTabularStore()
        engine = DataEngine(store, default_registry(), RowIndexCache(store, InMemoryCache()))
        engine.ensure_tables()
        engine.create_record("Providers", {"firstName": "A", "lastName": "B"}).unwrap()
        assert store.get_grid("AuditLog") == [store.get_headers("AuditLog")]
