"""
Unit tests for resolving the authenticated user from a bearer token.
"""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from complygrid.auth import get_current_user, jwt_manager


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.unit
class TestGetCurrentUser:
    def test_subject_exposed_as_id(self) -> None:
        token = jwt_manager.create_access_token(
            {"sub": "user-7", "email": "user-7@example.com", "role": "ASSESSOR", "organization_id": "org-1"}
        )

        user = get_current_user(_credentials(token))

        assert user["id"] == "user-7"
        assert user["sub"] == "user-7"
        assert user["email"] == "user-7@example.com"
        assert user["role"] == "ASSESSOR"
        assert user["organization_id"] == "org-1"

    def test_token_without_organization_rejected(self) -> None:
        token = jwt_manager.create_access_token({"sub": "user-7", "role": "ADMIN"})

        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_credentials(token))
        assert exc_info.value.status_code == 401

    def test_expired_token_rejected(self) -> None:
        token = jwt_manager.create_access_token(
            {"sub": "user-7", "organization_id": "org-1"}, expires_delta=timedelta(minutes=-1)
        )

        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_credentials(token))
        assert exc_info.value.detail == "Token has expired"
