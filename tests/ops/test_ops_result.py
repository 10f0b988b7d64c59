"""Tests for ``credspine.ops.result`` - OperationResult / PagedResult envelopes."""

from __future__ import annotations

from credspine.core.errors import ErrorCategory
from credspine.ops.result import OperationError, OperationResult, PagedResult, start_timer


class TestOperationResult:
    def test_ok(self):
        result = OperationResult.ok({"id": "p-1"}, message="Created")
        assert result.success is True
        assert result.error is None
        assert result.to_dict() == {
            "success": True,
            "message": "Created",
            "data": {"id": "p-1"},
        }

    def test_fail(self):
        result = OperationResult.fail(
            "NOT_FOUND",
            "Record 'x' not found in Providers",
            category=ErrorCategory.NOT_FOUND,
            details={"table": "Providers"},
        )
        assert result.success is False
        assert result.data is None
        assert result.message == result.error.message
        assert result.to_dict()["error"] == {
            "code": "NOT_FOUND",
            "message": "Record 'x' not found in Providers",
            "retryable": False,
            "details": {"table": "Providers"},
        }

    def test_optional_sections(self):
        result = OperationResult.ok(
            [], warnings=["careful"], elapsed_ms=1.23456, metadata={"caller": "test"}
        )
        data = result.to_dict()
        assert data["warnings"] == ["careful"]
        assert data["elapsed_ms"] == 1.23
        assert data["metadata"] == {"caller": "test"}

    def test_error_defaults(self):
        error = OperationError(code="X", message="y")
        assert error.details == {}
        assert error.retryable is False


class TestPagedResult:
    def test_has_more(self):
        page = PagedResult.from_items([1, 2], total=5, limit=2, offset=0)
        assert page.has_more is True
        assert PagedResult.from_items([5], total=5, limit=2, offset=4).has_more is False

    def test_to_dict(self):
        data = PagedResult.from_items(["a"], total=1, limit=10, message="1 records").to_dict()
        assert data["data"] == ["a"]
        assert data["total"] == 1
        assert data["limit"] == 10
        assert data["offset"] == 0
        assert data["has_more"] is False
        assert data["message"] == "1 records"


class TestTimer:
    def test_elapsed_is_non_negative(self):
        timer = start_timer()
        assert timer.elapsed_ms >= 0
