"""
Tests for service error translation.
"""

import pytest
from fastapi import HTTPException

from admissions.core.exceptions import (
    ConflictError,
    NotFoundError,
    StorageConsistencyError,
    TransientError,
    ValidationError,
    raise_http_error,
    raise_internal_error,
)


class TestRaiseHttpError:
    """Tests for raise_http_error."""

    def test_client_error_keeps_message(self):
        with pytest.raises(HTTPException) as exc_info:
            raise_http_error(ValidationError("GPA must be between 0 and 4.0.", field="gpa"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == {
            "error": "VALIDATION_ERROR",
            "message": "GPA must be between 0 and 4.0.",
        }

    def test_not_found_code_derived_from_entity(self):
        with pytest.raises(HTTPException) as exc_info:
            raise_http_error(NotFoundError("Document", "abc"))

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail["error"] == "DOCUMENT_NOT_FOUND"

    def test_conflict(self):
        with pytest.raises(HTTPException) as exc_info:
            raise_http_error(ConflictError("dup", error_code="PENDING_APPLICATION_EXISTS"))

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail["error"] == "PENDING_APPLICATION_EXISTS"

    @pytest.mark.parametrize(
        "error,code",
        [
            (TransientError("db down"), "TRANSIENT_ERROR"),
            (StorageConsistencyError("orphan"), "STORAGE_CONSISTENCY_ERROR"),
        ],
    )
    def test_server_errors_are_generic_but_distinguishable(self, error, code):
        with pytest.raises(HTTPException) as exc_info:
            raise_http_error(error)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail["error"] == code
        assert exc_info.value.detail["message"] == "An unexpected error occurred."


def test_raise_internal_error():
    with pytest.raises(HTTPException) as exc_info:
        raise_internal_error(RuntimeError("boom"), "testing")

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail["error"] == "INTERNAL_ERROR"
