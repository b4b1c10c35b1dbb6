"""Role lifecycle, referential checks and admin assignment."""

import uuid
from unittest.mock import patch

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import OperationalError

from admin_api.core.exceptions import (
    AuthorizationError, InvalidOperationError, ResourceConflictError, ResourceNotFoundError,
    ServiceUnavailableError, ValidationError,
)
from admin_api.models.admin import Admin
from admin_api.models.permission import PriorityEnum
from admin_api.models.role import Role, SUPER_ADMIN_ROLE_NAME
from admin_api.schemas.schemas import RoleCreate, RoleUpdate
from admin_api.services.role_service import RoleService, role_service


# ---------------------------------------------------------------------------
# create_role
# ---------------------------------------------------------------------------

class TestCreateRole:

    def test_creates_with_permissions_and_admins(self, db, permissions, plain_admin):
        role = role_service.create_role(db, RoleCreate(
            name="Auditor",
            description="Reads logs",
            permissions=[permissions["system.logs"].id, permissions["dashboard.view"].id],
            assigned_admins=[plain_admin.id],
            priority=PriorityEnum.high,
        ), created_by=plain_admin.id)

        assert role.name == "Auditor"
        assert role.priority == PriorityEnum.high
        assert {p.permission_name for p in role.permissions} == {"system.logs", "dashboard.view"}
        assert [a.id for a in role.assigned_admins] == [plain_admin.id]
        assert role.creator.id == plain_admin.id

        db.expire_all()
        assert [r.id for r in db.get(type(plain_admin), plain_admin.id).roles] == [role.id]

    def test_name_is_unique_case_insensitively(self, db, make_role):
        make_role("Support")

        with pytest.raises(ResourceConflictError) as exc:
            role_service.create_role(db, RoleCreate(name="  SUPPORT "))
        assert exc.value.code == "DuplicateName"

    def test_malformed_permission_id_rejected(self, db, permissions):
        with pytest.raises(ValidationError) as exc:
            role_service.create_role(db, RoleCreate(name="Broken", permissions=["not-a-uuid"]))

        assert exc.value.code == "BadIdFormat"
        assert db.query(Role).count() == 0

    def test_unknown_permission_rejected_without_persisting(self, db, permissions):
        with pytest.raises(ValidationError) as exc:
            role_service.create_role(db, RoleCreate(
                name="Ghost",
                permissions=[permissions["users.view"].id, str(uuid.uuid4())],
            ))

        assert exc.value.code == "UnknownPermission"
        assert db.query(Role).count() == 0

    def test_unknown_admin_rejected(self, db, permissions):
        with pytest.raises(ValidationError) as exc:
            role_service.create_role(db, RoleCreate(name="Lonely", assigned_admins=[str(uuid.uuid4())]))
        assert exc.value.code == "UnknownAdmin"

    def test_duplicate_ids_collapse(self, db, permissions):
        pid = permissions["users.view"].id
        role = role_service.create_role(db, RoleCreate(name="Dup", permissions=[pid, pid, pid.upper()]))
        assert len(role.permissions) == 1


# ---------------------------------------------------------------------------
# list_roles
# ---------------------------------------------------------------------------

class TestListRoles:

    def test_pagination_math(self, db, make_role):
        for i in range(25):
            make_role(f"Role {i:02d}")

        result = role_service.list_roles(db, page=3, page_size=10)

        assert len(result["roles"]) == 5
        assert result["pagination"] == {
            "current_page": 3,
            "total_pages": 3,
            "total_items": 25,
            "items_per_page": 10,
            "has_next": False,
            "has_prev": True,
        }

    def test_empty_listing(self, db):
        result = role_service.list_roles(db)
        assert result["roles"] == []
        assert result["pagination"]["total_pages"] == 0
        assert result["pagination"]["has_next"] is False
        assert result["pagination"]["has_prev"] is False

    def test_filters(self, db, make_role):
        make_role("Billing Lead", description="handles invoices", priority=PriorityEnum.high)
        make_role("Night Shift", is_active=False)
        make_role("Core", is_system_role=True)

        assert [r.name for r in role_service.list_roles(db, search="INVOICE")["roles"]] == ["Billing Lead"]
        assert [r.name for r in role_service.list_roles(db, is_active=False)["roles"]] == ["Night Shift"]
        assert [r.name for r in role_service.list_roles(db, is_system_role=True)["roles"]] == ["Core"]
        assert [r.name for r in role_service.list_roles(db, priority=PriorityEnum.high)["roles"]] == ["Billing Lead"]

    def test_search_treats_wildcards_literally(self, db, make_role):
        make_role("Ops")
        assert role_service.list_roles(db, search="%")["roles"] == []


# ---------------------------------------------------------------------------
# get / update / delete
# ---------------------------------------------------------------------------

class TestGetUpdateDelete:

    def test_get_unknown_and_malformed(self, db):
        with pytest.raises(ResourceNotFoundError):
            role_service.get_role(db, str(uuid.uuid4()))
        with pytest.raises(ResourceNotFoundError):
            role_service.get_role(db, "garbage")

    def test_partial_update_keeps_untouched_fields(self, db, make_role, permissions):
        role = make_role("Editor", ["users.view"], description="first draft")

        updated = role_service.update_role(db, role.id, RoleUpdate(priority=PriorityEnum.critical))

        assert updated.description == "first draft"
        assert updated.priority == PriorityEnum.critical
        assert [p.permission_name for p in updated.permissions] == ["users.view"]

    def test_update_replaces_permissions(self, db, make_role, permissions):
        role = make_role("Editor", ["users.view"])

        updated = role_service.update_role(db, role.id, RoleUpdate(
            permissions=[permissions["users.edit"].id],
        ))
        assert [p.permission_name for p in updated.permissions] == ["users.edit"]

        cleared = role_service.update_role(db, role.id, RoleUpdate(permissions=[]))
        assert cleared.permissions == []

    def test_rename_to_own_name_in_other_case(self, db, make_role):
        role = make_role("editor")
        updated = role_service.update_role(db, role.id, RoleUpdate(name="Editor"))
        assert updated.name == "Editor"

    def test_rename_collision(self, db, make_role):
        make_role("Alpha")
        beta = make_role("Beta")

        with pytest.raises(ResourceConflictError):
            role_service.update_role(db, beta.id, RoleUpdate(name="alpha"))

    def test_unknown_permission_leaves_role_untouched(self, db, make_role):
        role = make_role("Editor", ["users.view"], description="before")

        with pytest.raises(ValidationError):
            role_service.update_role(db, role.id, RoleUpdate(
                description="after", permissions=[str(uuid.uuid4())],
            ))

        db.expire_all()
        fresh = role_service.get_role(db, role.id)
        assert fresh.description == "before"
        assert [p.permission_name for p in fresh.permissions] == ["users.view"]

    def test_system_role_is_immutable(self, db, make_role):
        role = make_role("Core", is_system_role=True)

        with pytest.raises(InvalidOperationError) as exc:
            role_service.update_role(db, role.id, RoleUpdate(description="x"))
        assert exc.value.code == "SystemRole"

        with pytest.raises(InvalidOperationError):
            role_service.delete_role(db, role.id)

        with pytest.raises(InvalidOperationError):
            role_service.assign_permissions_to_role(db, role.id, [])

    def test_delete_role_in_use(self, db, make_role, plain_admin):
        role = make_role("Busy", admins=[plain_admin])

        with pytest.raises(InvalidOperationError) as exc:
            role_service.delete_role(db, role.id)
        assert exc.value.code == "RoleInUse"

    def test_delete_then_lookup_fails(self, db, make_role):
        role = make_role("Temp", ["users.view"])
        role_service.delete_role(db, role.id)

        with pytest.raises(ResourceNotFoundError):
            role_service.get_role(db, role.id)


# ---------------------------------------------------------------------------
# assignment
# ---------------------------------------------------------------------------

class TestAssignment:

    def test_assign_updates_both_views(self, db, make_role, plain_admin):
        role = make_role("Support")

        role_service.assign_role_to_admin(db, role.id, plain_admin.id)

        db.expire_all()
        assert [a.id for a in role_service.get_role(db, role.id).assigned_admins] == [plain_admin.id]
        assert [r.id for r in db.get(type(plain_admin), plain_admin.id).roles] == [role.id]

    def test_assign_twice_conflicts(self, db, make_role, plain_admin):
        role = make_role("Support", admins=[plain_admin])

        with pytest.raises(ResourceConflictError) as exc:
            role_service.assign_role_to_admin(db, role.id, plain_admin.id)
        assert exc.value.code == "AlreadyAssigned"

    def test_assign_unknown_targets(self, db, make_role, plain_admin):
        role = make_role("Support")

        with pytest.raises(ResourceNotFoundError, match="Admin not found"):
            role_service.assign_role_to_admin(db, role.id, str(uuid.uuid4()))
        with pytest.raises(ResourceNotFoundError, match="Role not found"):
            role_service.assign_role_to_admin(db, str(uuid.uuid4()), plain_admin.id)

    def test_remove_is_symmetric_and_idempotent(self, db, make_role, plain_admin):
        role = make_role("Support", admins=[plain_admin])

        role_service.remove_role_from_admin(db, role.id, plain_admin.id)
        role_service.remove_role_from_admin(db, role.id, plain_admin.id)

        db.expire_all()
        assert role_service.get_role(db, role.id).assigned_admins == []
        assert db.get(type(plain_admin), plain_admin.id).roles == []

    def test_assign_permissions_replaces_set(self, db, make_role, permissions):
        role = make_role("Finance", ["payments.view", "payments.refund"])

        updated = role_service.assign_permissions_to_role(db, role.id, [
            permissions["payments.export"].id,
        ])
        assert [p.permission_name for p in updated.permissions] == ["payments.export"]

    def test_choices(self, db, make_admin, permissions):
        make_admin(full_name="Zed")
        make_admin(full_name="Amy")

        assert [a.full_name for a in role_service.list_admin_choices(db)] == ["Amy", "Zed"]
        assert len(role_service.list_permission_choices(db)) == 37


# ---------------------------------------------------------------------------
# storage guarantees
# ---------------------------------------------------------------------------

class TestStorageGuarantees:

    def test_unique_name_enforced_by_storage(self, db):
        role_service.create_role(db, RoleCreate(name="Admin"))

        with patch.object(RoleService, "_name_taken", return_value=False):
            with pytest.raises(ResourceConflictError) as exc:
                role_service.create_role(db, RoleCreate(name="admin"))

        assert exc.value.code == "DuplicateName"
        assert db.query(Role).count() == 1

    def test_rename_collision_enforced_by_storage(self, db, make_role):
        make_role("Alpha")
        beta = make_role("Beta")

        with patch.object(RoleService, "_name_taken", return_value=False):
            with pytest.raises(ResourceConflictError) as exc:
                role_service.update_role(db, beta.id, RoleUpdate(name="ALPHA"))
        assert exc.value.code == "DuplicateName"

    @pytest.mark.parametrize("name", ["", "   ", "\t"])
    def test_blank_names_rejected(self, name):
        with pytest.raises(SchemaValidationError):
            RoleCreate(name=name)
        with pytest.raises(SchemaValidationError):
            RoleUpdate(name=name)

    def test_name_is_trimmed(self):
        assert RoleCreate(name="  Support  ").name == "Support"
        assert RoleUpdate().name is None


class TestFailedCommit:

    def _fail_commit(self, db):
        return patch.object(db, "commit", side_effect=OperationalError("COMMIT", {}, Exception("down")))

    def test_failed_assign_leaves_no_link(self, db, make_role, plain_admin):
        role = make_role("Support")

        with self._fail_commit(db):
            with pytest.raises(ServiceUnavailableError):
                role_service.assign_role_to_admin(db, role.id, plain_admin.id)

        db.expire_all()
        assert role_service.get_role(db, role.id).assigned_admins == []
        assert db.get(Admin, plain_admin.id).roles == []

    def test_failed_remove_keeps_link(self, db, make_role, plain_admin):
        role = make_role("Support", admins=[plain_admin])

        with self._fail_commit(db):
            with pytest.raises(ServiceUnavailableError):
                role_service.remove_role_from_admin(db, role.id, plain_admin.id)

        db.expire_all()
        assert [a.id for a in role_service.get_role(db, role.id).assigned_admins] == [plain_admin.id]
        assert [r.id for r in db.get(Admin, plain_admin.id).roles] == [role.id]

    def test_failed_create_persists_nothing(self, db, permissions, plain_admin):
        with self._fail_commit(db):
            with pytest.raises(ServiceUnavailableError):
                role_service.create_role(db, RoleCreate(
                    name="Support",
                    permissions=[permissions["users.view"].id],
                    assigned_admins=[plain_admin.id],
                ))

        db.expire_all()
        assert db.query(Role).count() == 0
        assert db.get(Admin, plain_admin.id).roles == []


# ---------------------------------------------------------------------------
# super admin role
# ---------------------------------------------------------------------------

class TestSuperAdminRoleGuard:

    def test_plain_admin_cannot_assign_super_admin_role(self, db, make_role, plain_admin):
        role = make_role(SUPER_ADMIN_ROLE_NAME)

        with pytest.raises(AuthorizationError):
            role_service.assign_role_to_admin(db, role.id, plain_admin.id, assigned_by=plain_admin.id)

        db.expire_all()
        assert db.get(Admin, plain_admin.id).roles == []

    def test_plain_admin_cannot_create_or_rename_into_super_admin_role(self, db, make_role, plain_admin):
        with pytest.raises(AuthorizationError):
            role_service.create_role(db, RoleCreate(name="super admin"), created_by=plain_admin.id)

        role = make_role("Helpers")
        with pytest.raises(AuthorizationError):
            role_service.update_role(db, role.id, RoleUpdate(name="SUPER ADMIN"), updated_by=plain_admin.id)

        db.expire_all()
        assert [r.name for r in db.query(Role).all()] == ["Helpers"]

    def test_plain_admin_cannot_touch_existing_super_admin_role(self, db, make_role, plain_admin, super_admin):
        role = make_role(SUPER_ADMIN_ROLE_NAME, admins=[super_admin])

        with pytest.raises(AuthorizationError):
            role_service.remove_role_from_admin(db, role.id, super_admin.id, removed_by=plain_admin.id)
        with pytest.raises(AuthorizationError):
            role_service.update_role(db, role.id, RoleUpdate(is_active=False), updated_by=plain_admin.id)
        with pytest.raises(AuthorizationError):
            role_service.assign_permissions_to_role(db, role.id, [], updated_by=plain_admin.id)
        with pytest.raises(AuthorizationError):
            role_service.delete_role(db, role.id, deleted_by=plain_admin.id)

    def test_super_admin_may_grant_it(self, db, make_role, plain_admin, super_admin):
        role = make_role(SUPER_ADMIN_ROLE_NAME)

        role_service.assign_role_to_admin(db, role.id, plain_admin.id, assigned_by=super_admin.id)

        db.expire_all()
        assert [r.name for r in db.get(Admin, plain_admin.id).roles] == [SUPER_ADMIN_ROLE_NAME]

    def test_other_roles_unaffected(self, db, make_role, plain_admin):
        role = make_role("Support")
        role_service.assign_role_to_admin(db, role.id, plain_admin.id, assigned_by=plain_admin.id)

        assert [a.id for a in role.assigned_admins] == [plain_admin.id]
