"""Error hierarchy tests — codes, statuses, and the REST envelope."""

import pytest

from app.core.errors import (
    AuthenticationError, AuthenticationRequiredError, ConflictError, ConsoleError,
    DatabaseError, ErrorCategory, ErrorContext, IdentityServiceError,
    InputValidationError, PermissionDeniedError, ResourceNotFoundError,
)


@pytest.mark.parametrize("error,status,code", [
    (InputValidationError("bad", "field"), 400, "VALIDATION_ERROR"),
    (AuthenticationRequiredError(), 401, "UNAUTHORIZED"),
    (AuthenticationError(), 401, "INVALID_CREDENTIALS"),
    (PermissionDeniedError("user", "admin"), 403, "FORBIDDEN"),
    (ResourceNotFoundError("Profile", "p1"), 404, "RESOURCE_NOT_FOUND"),
    (ConflictError("dup"), 409, "CONFLICT"),
    (DatabaseError("boom", "insert"), 503, "DATABASE_ERROR"),
    (IdentityServiceError("down", "create_user"), 502, "IDENTITY_SERVICE_ERROR"),
])
def test_status_and_code(error, status, code):
    assert isinstance(error, ConsoleError)
    assert error.http_status == status
    assert error.code == code


def test_permission_denied_carries_roles():
    err = PermissionDeniedError("user", "admin", ErrorContext(user_id="u1"))
    body = err.to_response()["error"]
    assert body["category"] == ErrorCategory.AUTHORIZATION.value
    assert body["context"]["user_role"] == "user"
    assert body["context"]["required_role"] == "admin"


def test_not_found_sets_resource_id():
    err = ResourceNotFoundError("Profile", "abc")
    assert err.to_response()["error"]["context"]["resource_id"] == "abc"
    assert "abc" in err.message


def test_envelope_has_timestamp_and_severity():
    body = DatabaseError("x", "select").to_response()["error"]
    assert body["severity"] == "critical"
    assert body["timestamp"]
    assert body["message"] == "Database select failed: x"


def test_identity_error_keeps_upstream_status():
    err = IdentityServiceError("nope", "delete_user", status_code=404)
    assert err.status_code == 404
    assert err.operation == "delete_user"
