"""
Unit tests for exception classification in the error handling middleware.
"""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.requests import Request

from complygrid.middleware.error_handling import ErrorHandlingMiddleware, ErrorType, classify_exception
from complygrid.services.errors import FrameworkNotFoundError, InvalidRiskParameterError, VendorNotFoundError


def _request(path: str = "/api/gap-analysis") -> Request:
    return Request({"type": "http", "method": "GET", "path": path, "headers": [], "query_string": b""})


@pytest.mark.unit
class TestClassifyException:
    def test_domain_not_found(self) -> None:
        assert classify_exception(VendorNotFoundError("v1")) == (ErrorType.NOT_FOUND_ERROR, 404, "Vendor not found")

    def test_invalid_parameters_keep_their_message(self) -> None:
        exc = InvalidRiskParameterError("Likelihood must be an integer between 1 and 5")
        assert classify_exception(exc) == (
            ErrorType.VALIDATION_ERROR,
            400,
            "Likelihood must be an integer between 1 and 5",
        )

    def test_infrastructure_errors(self) -> None:
        assert classify_exception(OperationalError("SELECT 1", {}, Exception("down")))[:2] == (
            ErrorType.DATABASE_UNAVAILABLE,
            503,
        )
        assert classify_exception(IntegrityError("INSERT", {}, Exception("dup")))[:2] == (ErrorType.DATABASE_ERROR, 500)
        assert classify_exception(RedisConnectionError())[:2] == (ErrorType.CACHE_ERROR, 500)

    def test_unknown_errors_are_generic(self) -> None:
        error_type, status_code, message = classify_exception(RuntimeError("secret internals"))
        assert (error_type, status_code) == (ErrorType.INTERNAL_ERROR, 500)
        assert "secret" not in message


@pytest.mark.unit
class TestErrorResponse:
    def test_domain_error_details_are_returned(self) -> None:
        middleware = ErrorHandlingMiddleware(app=None)

        response = middleware.build_response(_request(), FrameworkNotFoundError("fw-1"))

        body = json.loads(response.body)
        assert response.status_code == 404
        assert body["message"] == "Framework not found"
        assert body["path"] == "/api/gap-analysis"
        assert body["details"][0]["type"] == "FrameworkNotFoundError"

    def test_internal_error_hides_details(self) -> None:
        middleware = ErrorHandlingMiddleware(app=None)

        response = middleware.build_response(_request(), RuntimeError("db password is hunter2"))

        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["details"] == []
        assert len(body["error_id"]) == 8


@pytest.mark.unit
class TestNotFoundMessages:
    def test_explicit_message(self) -> None:
        exc = FrameworkNotFoundError(message="One or both frameworks not found")
        assert exc.message == "One or both frameworks not found"
