"""Authorization engine decisions."""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from admin_api.core.exceptions import ServiceUnavailableError
from admin_api.models.role import SUPER_ADMIN_ROLE_NAME
from admin_api.services.admin_service import admin_service
from admin_api.services.authorization_service import (
    AuthorizationService, Principal, Requirement, authorization_service,
)


def principal(admin, token_role=None):
    return Principal(admin_id=admin.id, email=admin.email, token_role=token_role or admin.role.value)


def allowed(db, admin, permissions=(), roles=(), token_role=None):
    return authorization_service.is_allowed(
        db, principal(admin, token_role), Requirement.of(permissions=permissions, roles=roles),
    )


class TestSuperAdmin:

    def test_legacy_tag_bypasses_everything(self, db, super_admin):
        assert allowed(db, super_admin, permissions=["reports.delete"])
        assert allowed(db, super_admin, roles=["admin"])

    def test_graph_role_bypasses(self, db, plain_admin, make_role):
        make_role(SUPER_ADMIN_ROLE_NAME, admins=[plain_admin])
        db.expire_all()

        assert allowed(db, plain_admin, permissions=["system.maintenance", "anything.else"])
        assert allowed(db, plain_admin, roles=["super_admin"])

    def test_inactive_graph_role_does_not_bypass(self, db, plain_admin, make_role):
        make_role(SUPER_ADMIN_ROLE_NAME, admins=[plain_admin], is_active=False)
        db.expire_all()

        assert not allowed(db, plain_admin, permissions=["users.view"])


class TestPermissions:

    def test_no_requirement_allows_active_admin(self, db, plain_admin):
        assert allowed(db, plain_admin)

    def test_requires_every_permission(self, db, plain_admin, make_role):
        make_role("Viewer", ["users.view"], admins=[plain_admin])
        db.expire_all()

        assert allowed(db, plain_admin, permissions=["users.view"])
        assert not allowed(db, plain_admin, permissions=["users.view", "users.edit"])

    def test_union_across_roles(self, db, plain_admin, make_role):
        make_role("Viewer", ["users.view"], admins=[plain_admin])
        make_role("Editor", ["users.edit"], admins=[plain_admin])
        db.expire_all()

        assert allowed(db, plain_admin, permissions=["users.view", "users.edit"])
        assert AuthorizationService.effective_permissions(plain_admin) == {"users.view", "users.edit"}

    def test_inactive_role_contributes_nothing(self, db, plain_admin, make_role):
        make_role("Dormant", ["users.view"], admins=[plain_admin], is_active=False)
        db.expire_all()

        assert not allowed(db, plain_admin, permissions=["users.view"])

    def test_inactive_permission_contributes_nothing(self, db, plain_admin, make_role, permissions):
        make_role("Viewer", ["users.view"], admins=[plain_admin])
        permissions["users.view"].is_active = False
        db.commit()
        db.expire_all()

        assert not allowed(db, plain_admin, permissions=["users.view"])

    def test_revocation_takes_effect_immediately(self, db, plain_admin, make_role):
        from admin_api.services.role_service import role_service

        role = make_role("Viewer", ["users.view"], admins=[plain_admin])
        role_service.remove_role_from_admin(db, role.id, plain_admin.id)
        db.expire_all()

        assert not allowed(db, plain_admin, permissions=["users.view"])


class TestLegacyRole:

    def test_role_requirement(self, db, plain_admin):
        assert allowed(db, plain_admin, roles=["admin"])
        assert not allowed(db, plain_admin, roles=["super_admin"])

    def test_token_claim_ignored_by_default(self, db, plain_admin):
        assert not allowed(db, plain_admin, roles=["super_admin"], token_role="super_admin")

    def test_token_claim_trusted_when_enabled(self, db, plain_admin):
        with patch("admin_api.services.authorization_service.settings.AUTHZ_TRUST_TOKEN_ROLE", True):
            assert allowed(db, plain_admin, permissions=["users.view"], token_role="super_admin")


class TestDeny:

    def test_unknown_and_malformed_ids(self, db):
        for admin_id in (str(uuid.uuid4()), "not-a-uuid", ""):
            assert not authorization_service.is_allowed(db, Principal(admin_id=admin_id), Requirement())

    def test_inactive_admin_denied_even_without_requirement(self, db, super_admin):
        admin_service.deactivate(db, super_admin.id)
        assert not allowed(db, super_admin)

    def test_store_failure_raises_unavailable(self, db, plain_admin):
        with patch.object(db, "query", side_effect=OperationalError("SELECT", {}, Exception("down"))):
            with pytest.raises(ServiceUnavailableError):
                allowed(db, plain_admin, permissions=["users.view"])

    def test_requirement_rejects_unknown_role_tag(self):
        with pytest.raises(ValueError):
            Requirement.of(roles=["owner"])
