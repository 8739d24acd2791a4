"""The acting principal, as seen by every other context."""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviewhub.access.principal import STAFF_ROLES, Principal, Role
from reviewhub.errors import PermissionDenied
from reviewhub.utils.logging import bind_actor, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentityContext:
    principal_id: str
    role: Role
    is_active: bool = True
    is_deleted: bool = False

    @classmethod
    def of(cls, principal: Principal) -> "IdentityContext":
        return cls(
            principal_id=str(principal.id),
            role=Role(principal.role),
            is_active=bool(principal.is_active),
            is_deleted=bool(principal.is_deleted),
        )

    @property
    def viewer_identifier(self) -> str:
        return f"user_{self.principal_id}"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles

    def owns(self, owner_id) -> bool:
        return owner_id is not None and str(owner_id) == self.principal_id


def resolve_identity(principal_id) -> IdentityContext:
    """Load the principal behind `principal_id` and refuse accounts that cannot act."""
    repo = current_domain.repository_for(Principal)
    try:
        principal = repo.get(str(principal_id))
    except ObjectNotFoundError:
        logger.debug("identity_unknown", principal_id=str(principal_id))
        raise PermissionDenied("Unknown principal", principal_id=str(principal_id)) from None

    if principal.is_deleted:
        raise PermissionDenied("Account has been deleted", principal_id=str(principal_id))
    if not principal.is_active:
        raise PermissionDenied("Account is inactive", principal_id=str(principal_id))

    identity = IdentityContext.of(principal)
    bind_actor(identity.principal_id, identity.role.value)
    return identity


def require_role(identity: IdentityContext, *roles: Role) -> None:
    if not identity.has_role(*roles):
        allowed = ", ".join(r.value for r in roles)
        raise PermissionDenied(f"Only {allowed} can perform this action", role=identity.role.value)
