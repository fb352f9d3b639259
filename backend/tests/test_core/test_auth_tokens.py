"""
Unit tests for token issuing, password hashing and organization scoping

Author: SmartStore
Date: 2025-11-12
"""
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from smartstore.core.auth import (
    TokenUser,
    create_access_token,
    decode_token,
    get_organization_scope,
    hash_password,
    verify_password,
)
from smartstore.core.exceptions import ValidationError


def _user(**overrides):
    data = {
        "id": 7,
        "email": "admin@demo.store",
        "name": "Demo Admin",
        "role": "TENANT_ADMIN",
        "role_tag": None,
        "organization_id": 3,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class TestTokens:
    """Test JWT round trips and failures"""

    def test_token_carries_user_claims(self):
        payload = decode_token(create_access_token(_user()))

        assert payload["sub"] == "7"
        assert payload["email"] == "admin@demo.store"
        assert payload["role"] == "TENANT_ADMIN"
        assert payload["organization_id"] == 3
        assert payload["exp"] > payload["iat"]

    def test_expired_token_is_rejected(self):
        token = create_access_token(_user(), expires_minutes=-1)

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"

    def test_garbage_token_is_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token("not-a-jwt")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail.startswith("Invalid token")


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_empty_hash_never_verifies(self):
        assert not verify_password("anything", "")


class TestOrganizationScope:
    """Test which tenant a request operates on"""

    def test_regular_user_is_pinned_to_own_org(self):
        user = TokenUser(id=1, email="a@b.com", role="TENANT_ADMIN", organization_id=5)

        assert get_organization_scope(user, 99) == 5

    def test_super_admin_can_pick_org(self):
        user = TokenUser(id=1, email="root@b.com", role="SUPER_ADMIN", organization_id=None)

        assert get_organization_scope(user, 99) == 99

    def test_super_admin_without_org_must_pick_one(self):
        user = TokenUser(id=1, email="root@b.com", role="SUPER_ADMIN", organization_id=None)

        with pytest.raises(ValidationError):
            get_organization_scope(user)
