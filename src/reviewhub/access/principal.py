"""Principal aggregate: an account that can act on the platform.

Principals are never physically removed. Admins toggle `is_active` and
`is_deleted`; every other role is read-only here.

Roles:
    Admin     bypasses module checks wherever an endpoint lists it
    Operator  staff account, owns the companies it registers
    SubAdmin  staff account restricted by its permission tree
    User      self-registered visitor
"""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from reviewhub.access.events import (
    PrincipalDeactivated,
    PrincipalDeleted,
    PrincipalReactivated,
    PrincipalRegistered,
    PrincipalRestored,
    StaffAccountProvisioned,
)
from reviewhub.clock import get_clock
from reviewhub.domain import reviewhub


class Role(Enum):
    ADMIN = "Admin"
    OPERATOR = "Operator"
    SUB_ADMIN = "SubAdmin"
    USER = "User"


# Roles that carry a PermissionTree once provisioned
TREE_ROLES = frozenset({Role.OPERATOR, Role.SUB_ADMIN})
STAFF_ROLES = frozenset({Role.ADMIN, Role.OPERATOR, Role.SUB_ADMIN})


@reviewhub.aggregate
class Principal:
    email = String(required=True, max_length=254)
    full_name = String(max_length=150)
    role = String(choices=Role, default=Role.USER.value)

    is_active = Boolean(default=True)
    is_deleted = Boolean(default=False)
    added_by = Identifier()

    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def email_must_look_like_an_address(self):
        if self.email is not None and "@" not in self.email:
            raise ValidationError({"email": ["Enter a valid email address"]})

    @classmethod
    def register(cls, email, full_name=None):
        """Self sign-up. Always produces a User."""
        now = get_clock().now()
        principal = cls(
            email=email.strip().lower(),
            full_name=full_name,
            role=Role.USER.value,
            created_at=now,
            updated_at=now,
        )
        principal.raise_(
            PrincipalRegistered(
                principal_id=str(principal.id),
                email=principal.email,
                role=principal.role,
                registered_at=now,
            )
        )
        return principal

    @classmethod
    def provision(cls, email, full_name, role, added_by=None):
        """Create a staff account on behalf of an Admin."""
        role = Role(role)
        if role not in STAFF_ROLES:
            raise ValidationError({"role": [f"Cannot provision a staff account with role {role.value}"]})

        now = get_clock().now()
        principal = cls(
            email=email.strip().lower(),
            full_name=full_name,
            role=role.value,
            added_by=added_by,
            created_at=now,
            updated_at=now,
        )
        principal.raise_(
            StaffAccountProvisioned(
                principal_id=str(principal.id),
                email=principal.email,
                role=principal.role,
                added_by=str(added_by) if added_by else None,
                provisioned_at=now,
            )
        )
        return principal

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    @property
    def needs_permission_tree(self) -> bool:
        return self.role_enum in TREE_ROLES

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Account is already inactive"]})
        now = get_clock().now()
        self.is_active = False
        self.updated_at = now
        self.raise_(PrincipalDeactivated(principal_id=str(self.id), deactivated_at=now))

    def reactivate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Account is already active"]})
        now = get_clock().now()
        self.is_active = True
        self.updated_at = now
        self.raise_(PrincipalReactivated(principal_id=str(self.id), reactivated_at=now))

    def soft_delete(self):
        if self.is_deleted:
            raise ValidationError({"is_deleted": ["Account is already deleted"]})
        now = get_clock().now()
        self.is_deleted = True
        self.updated_at = now
        self.raise_(PrincipalDeleted(principal_id=str(self.id), deleted_at=now))

    def restore(self):
        if not self.is_deleted:
            raise ValidationError({"is_deleted": ["Account is not deleted"]})
        now = get_clock().now()
        self.is_deleted = False
        self.updated_at = now
        self.raise_(PrincipalRestored(principal_id=str(self.id), restored_at=now))
