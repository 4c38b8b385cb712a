"""Tests for exception to HTTP status mapping."""

import json

import pytest
from starlette.requests import Request

from stockledger.api.middleware.error_handler import (
    _get_hint,
    _infer_error_code,
    build_error_response,
    status_for,
)
from stockledger.core.exceptions import (
    ConcurrencyConflictError,
    ConfigurationError,
    ConflictError,
    DatabaseError,
    DuplicateCodeError,
    InsufficientStockError,
    MaterialNotFoundError,
    NegativeStockResultError,
    StoreTimeoutError,
    TransactionNotFoundError,
    ValidationError,
)


def make_request(path: str = "/api/transactions/issue") -> Request:
    return Request({"type": "http", "method": "POST", "path": path, "headers": [], "query_string": b""})


class TestStatusFor:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ValidationError("quantity", "Must be positive", 0), 400),
            (MaterialNotFoundError("mat-x"), 404),
            (TransactionNotFoundError(99), 404),
            (DuplicateCodeError("OTO001"), 409),
            (ConcurrencyConflictError("mat-1", 3), 409),
            (ConflictError("Transaction already cancelled"), 409),
            (InsufficientStockError("mat-1", 16, 15), 422),
            (NegativeStockResultError("mat-1", 15, -16), 422),
            (StoreTimeoutError("issue", 15.0), 503),
            (DatabaseError("insert", "disk full"), 500),
            (ConfigurationError("bad settings"), 500),
            (RuntimeError("boom"), 500),
        ],
    )
    def test_mapping(self, exc, expected):
        assert status_for(exc) == expected


class TestHints:
    def test_code_hint_preferred(self):
        assert "quantity on hand" in _get_hint("INSUFFICIENT_STOCK", 422)

    def test_status_fallback(self):
        assert _get_hint("SOMETHING_ELSE", 404).startswith("The requested resource")

    def test_unknown(self):
        assert _get_hint("SOMETHING_ELSE", 418) == ""

    @pytest.mark.parametrize(
        ("status_code", "code"),
        [(404, "NOT_FOUND"), (405, "METHOD_NOT_ALLOWED"), (400, "BAD_REQUEST"), (418, "HTTP_ERROR")],
    )
    def test_infer_error_code(self, status_code, code):
        assert _infer_error_code(status_code) == code


class TestBuildErrorResponse:
    def test_domain_error_body(self):
        response = build_error_response(make_request(), InsufficientStockError("mat-1", 16, 15))
        body = json.loads(response.body)
        assert response.status_code == 422
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert body["path"] == "/api/transactions/issue"
        assert body["hint"]
        assert "current_quantity" in body["detail"]

    def test_unexpected_error_body(self):
        response = build_error_response(make_request(), RuntimeError("boom"))
        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["error_code"] == "RuntimeError"
        assert body["message"] == "boom"
