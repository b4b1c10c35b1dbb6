"""Role service — role lifecycle with referential-integrity checks.

Every validation runs before the first write, so a rejected request leaves
no partial state behind. Role <-> admin links live in the single
``admin_roles`` table: ``Role.assigned_admins`` and ``Admin.roles`` are two
views of the same rows and are changed together in one transaction.
"""

import logging
from typing import Optional, List, Dict, Any, Iterable, Type

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from admin_api.core.exceptions import (
    AuthorizationError, InvalidOperationError, ResourceConflictError, ResourceNotFoundError,
    ServiceUnavailableError, ValidationError,
)
from admin_api.core.pagination import build_pagination, offset_for
from admin_api.db.base import normalize_id
from admin_api.models.admin import Admin
from admin_api.models.permission import Permission, PriorityEnum
from admin_api.models.role import Role, SUPER_ADMIN_ROLE_NAME, normalize_role_name
from admin_api.schemas.schemas import RoleCreate, RoleUpdate
from admin_api.services.authorization_service import authorization_service

logger = logging.getLogger("admin_api")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def resolve_ids(
    db: Session,
    model: Type,
    ids: Iterable[str],
    label: str,
    unknown_code: str,
) -> List:
    """Resolve ``ids`` to records, failing closed.

    Duplicate ids collapse to one. Raises ``ValidationError`` with code
    ``BadIdFormat`` if any id is malformed, or ``unknown_code`` if any id
    does not resolve; nothing is returned partially.
    """
    raw = list(dict.fromkeys(str(i) for i in ids))
    invalid = [i for i in raw if normalize_id(i) is None]
    if invalid:
        raise ValidationError(
            f"Invalid {label} ID format: {', '.join(invalid)}",
            code="BadIdFormat",
        )
    wanted = list(dict.fromkeys(normalize_id(i) for i in raw))
    if not wanted:
        return []

    records = db.query(model).filter(model.id.in_(wanted)).all()
    if len(records) != len(wanted):
        raise ValidationError(
            f"One or more {label} IDs do not exist",
            code=unknown_code,
        )
    by_id = {record.id: record for record in records}
    return [by_id[i] for i in wanted]


def _commit(db: Session, failure: str, conflict: Optional[ResourceConflictError] = None) -> None:
    """Commit or roll back; a failed commit is never reported as success."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if conflict is not None:
            raise conflict from e
        raise ServiceUnavailableError(failure) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(failure)
        raise ServiceUnavailableError(failure) from e


def _duplicate_name() -> ResourceConflictError:
    return ResourceConflictError("Role with this name already exists", code="DuplicateName")


class RoleService:
    """Creates, updates, deletes and assigns roles."""

    @staticmethod
    def _name_taken(db: Session, name: str, exclude_id: Optional[str] = None) -> bool:
        query = db.query(Role.id).filter(Role.name_key == normalize_role_name(name))
        if exclude_id is not None:
            query = query.filter(Role.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def _find(db: Session, role_id: str, for_update: bool = False) -> Role:
        rid = normalize_id(role_id)
        role = None
        if rid is not None:
            query = db.query(Role).filter(Role.id == rid)
            if for_update:
                query = query.with_for_update()
            role = query.first()
        if role is None:
            raise ResourceNotFoundError("Role not found")
        return role

    @staticmethod
    def _find_admin(db: Session, admin_id: str) -> Admin:
        aid = normalize_id(admin_id)
        admin = db.query(Admin).filter(Admin.id == aid).first() if aid else None
        if admin is None:
            raise ResourceNotFoundError("Admin not found")
        return admin

    @staticmethod
    def _guard_super_admin_role(db: Session, name: str, acting_admin_id: Optional[str]) -> None:
        """Only a super admin may create, change or hand out the super admin role.

        ``acting_admin_id`` of None marks an internal caller (seeds, CLI).
        """
        if normalize_role_name(name) != normalize_role_name(SUPER_ADMIN_ROLE_NAME):
            return
        if acting_admin_id is None:
            return
        actor = authorization_service.load_admin(db, acting_admin_id)
        if actor is None or not authorization_service.is_super_admin(actor, actor.role):
            logger.warning("Admin %s refused change to role '%s'", acting_admin_id, SUPER_ADMIN_ROLE_NAME)
            raise AuthorizationError()

    @staticmethod
    def create_role(db: Session, data: RoleCreate, created_by: Optional[str] = None) -> Role:
        """Create a role with optional initial permissions and admins.

        Raises:
            ResourceConflictError: Name already used (case-insensitive).
            AuthorizationError: Non super admin creating the super admin role.
            ValidationError: Malformed or unknown permission/admin id.
        """
        RoleService._guard_super_admin_role(db, data.name, created_by)

        if RoleService._name_taken(db, data.name):
            raise _duplicate_name()

        permissions = resolve_ids(db, Permission, data.permissions, "permission", "UnknownPermission")
        admins = resolve_ids(db, Admin, data.assigned_admins, "admin", "UnknownAdmin")

        role = Role(
            name=data.name.strip(),
            description=data.description,
            priority=data.priority,
            is_active=data.is_active,
            is_system_role=data.is_system_role,
            created_by=normalize_id(created_by) if created_by else None,
        )
        role.permissions = permissions
        role.assigned_admins = admins
        db.add(role)
        _commit(db, "Failed to create role", conflict=_duplicate_name())
        db.refresh(role)

        logger.info(
            "Role '%s' created by %s with %d permissions and %d admins",
            role.name, created_by or "system", len(permissions), len(admins),
        )
        return role

    @staticmethod
    def list_roles(
        db: Session,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_system_role: Optional[bool] = None,
        priority: Optional[PriorityEnum] = None,
    ) -> Dict[str, Any]:
        """List roles with filters and pagination, newest first."""
        query = db.query(Role)

        if search:
            pattern = f"%{_escape_like(search)}%"
            query = query.filter(or_(
                Role.name.ilike(pattern, escape="\\"),
                Role.description.ilike(pattern, escape="\\"),
            ))
        if is_active is not None:
            query = query.filter(Role.is_active.is_(is_active))
        if is_system_role is not None:
            query = query.filter(Role.is_system_role.is_(is_system_role))
        if priority is not None:
            query = query.filter(Role.priority == PriorityEnum(priority))

        total = query.count()
        roles = (
            query.order_by(Role.created_at.desc(), Role.name)
            .offset(offset_for(page, page_size))
            .limit(page_size)
            .all()
        )
        return {
            "roles": roles,
            "pagination": build_pagination(page, page_size, total),
        }

    @staticmethod
    def get_role(db: Session, role_id: str) -> Role:
        """Get a role by id."""
        return RoleService._find(db, role_id)

    @staticmethod
    def update_role(db: Session, role_id: str, patch: RoleUpdate, updated_by: Optional[str] = None) -> Role:
        """Apply a partial update to a non-system role.

        Raises:
            ResourceNotFoundError: Unknown role.
            AuthorizationError: Non super admin touching the super admin role.
            InvalidOperationError: The role is a system role.
            ResourceConflictError: New name collides with another role.
            ValidationError: Malformed or unknown permission id.
        """
        role = RoleService._find(db, role_id)
        RoleService._guard_super_admin_role(db, role.name, updated_by)
        if patch.name is not None:
            RoleService._guard_super_admin_role(db, patch.name, updated_by)

        if role.is_system_role:
            raise InvalidOperationError("Cannot update system roles", code="SystemRole")

        if patch.name is not None and normalize_role_name(patch.name) != role.name_key:
            if RoleService._name_taken(db, patch.name, exclude_id=role.id):
                raise _duplicate_name()

        permissions = None
        if patch.permissions is not None:
            permissions = resolve_ids(db, Permission, patch.permissions, "permission", "UnknownPermission")

        if patch.name is not None:
            role.name = patch.name.strip()
        if patch.description is not None:
            role.description = patch.description
        if patch.priority is not None:
            role.priority = patch.priority
        if patch.is_active is not None:
            role.is_active = patch.is_active
        if permissions is not None:
            role.permissions = permissions
        role.updated_by = normalize_id(updated_by) if updated_by else None

        _commit(db, "Failed to update role", conflict=_duplicate_name())
        db.refresh(role)
        logger.info("Role %s updated by %s", role.id, updated_by or "system")
        return role

    @staticmethod
    def delete_role(db: Session, role_id: str, deleted_by: Optional[str] = None) -> None:
        """Delete a non-system role that has no assigned admins."""
        role = RoleService._find(db, role_id)
        RoleService._guard_super_admin_role(db, role.name, deleted_by)

        if role.is_system_role:
            raise InvalidOperationError("Cannot delete system roles", code="SystemRole")
        if role.assigned_admins:
            raise InvalidOperationError(
                "Cannot delete role that is assigned to admins", code="RoleInUse",
            )

        db.delete(role)
        _commit(db, "Failed to delete role")
        logger.info("Role %s deleted", role_id)

    @staticmethod
    def assign_role_to_admin(db: Session, role_id: str, admin_id: str, assigned_by: Optional[str] = None) -> Role:
        """Link an admin to a role (both views change together)."""
        role = RoleService._find(db, role_id, for_update=True)
        RoleService._guard_super_admin_role(db, role.name, assigned_by)
        admin = RoleService._find_admin(db, admin_id)

        if admin in role.assigned_admins:
            raise ResourceConflictError("Admin already has this role", code="AlreadyAssigned")

        role.assigned_admins.append(admin)
        _commit(
            db, "Failed to assign role",
            conflict=ResourceConflictError("Admin already has this role", code="AlreadyAssigned"),
        )
        logger.info("Role %s assigned to admin %s", role.id, admin.id)
        return role

    @staticmethod
    def remove_role_from_admin(db: Session, role_id: str, admin_id: str, removed_by: Optional[str] = None) -> Role:
        """Unlink an admin from a role; unlinking an absent pair is a no-op."""
        role = RoleService._find(db, role_id, for_update=True)
        RoleService._guard_super_admin_role(db, role.name, removed_by)
        admin = RoleService._find_admin(db, admin_id)

        if admin in role.assigned_admins:
            role.assigned_admins.remove(admin)
            _commit(db, "Failed to remove role")
            logger.info("Role %s removed from admin %s", role.id, admin.id)
        else:
            db.rollback()
        return role

    @staticmethod
    def assign_permissions_to_role(
        db: Session,
        role_id: str,
        permission_ids: List[str],
        updated_by: Optional[str] = None,
    ) -> Role:
        """Replace the role's permission set with ``permission_ids``."""
        role = RoleService._find(db, role_id)
        RoleService._guard_super_admin_role(db, role.name, updated_by)
        if role.is_system_role:
            raise InvalidOperationError("Cannot update system roles", code="SystemRole")

        permissions = resolve_ids(db, Permission, permission_ids, "permission", "UnknownPermission")
        role.permissions = permissions
        role.updated_by = normalize_id(updated_by) if updated_by else None
        _commit(db, "Failed to assign permissions to role")
        db.refresh(role)
        return role

    @staticmethod
    def list_admin_choices(db: Session) -> List[Admin]:
        """Active admins sorted by name, for role assignment pickers."""
        return (
            db.query(Admin)
            .filter(Admin.is_active.is_(True))
            .order_by(Admin.full_name)
            .all()
        )

    @staticmethod
    def list_permission_choices(db: Session) -> List[Dict[str, str]]:
        """Active permission ids with name and group."""
        rows = (
            db.query(Permission.id, Permission.permission_name, Permission.permission_group)
            .filter(Permission.is_active.is_(True))
            .order_by(Permission.permission_group, Permission.permission_name)
            .all()
        )
        return [
            {"id": r.id, "permission_name": r.permission_name, "permission_group": r.permission_group}
            for r in rows
        ]


role_service = RoleService()
