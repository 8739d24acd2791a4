"""RegisterUser and ProvisionStaffAccount: create principals.

Anyone may register as a User. Staff accounts are created by an Admin;
Operators and SubAdmins receive their PermissionTree in the same step.
"""

from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import require_role, resolve_identity
from reviewhub.access.permission_tree import PermissionTree
from reviewhub.access.principal import Principal, Role
from reviewhub.domain import reviewhub
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)


@reviewhub.command(part_of="Principal")
class RegisterUser:
    email = String(required=True, max_length=254)
    full_name = String(max_length=150)


@reviewhub.command(part_of="Principal")
class ProvisionStaffAccount:
    actor_id = Identifier(required=True)
    email = String(required=True, max_length=254)
    full_name = String(max_length=150)
    role = String(required=True)  # "Admin", "Operator" or "SubAdmin"
    permissions = Text()  # JSON permission document


def _ensure_email_is_free(repo, email):
    taken = repo._dao.query.filter(email=email.strip().lower()).all().items
    if taken:
        raise ValidationError({"email": ["An account with this email already exists"]})


@reviewhub.command_handler(part_of=Principal)
class PrincipalRegistrationHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        repo = current_domain.repository_for(Principal)
        _ensure_email_is_free(repo, command.email)

        principal = Principal.register(email=command.email, full_name=command.full_name)
        repo.add(principal)
        return str(principal.id)

    @handle(ProvisionStaffAccount)
    def provision_staff_account(self, command):
        actor = resolve_identity(command.actor_id)
        require_role(actor, Role.ADMIN)

        repo = current_domain.repository_for(Principal)
        _ensure_email_is_free(repo, command.email)

        principal = Principal.provision(
            email=command.email,
            full_name=command.full_name,
            role=command.role,
            added_by=actor.principal_id,
        )
        repo.add(principal)

        if principal.needs_permission_tree:
            tree = PermissionTree.from_document(
                principal_id=str(principal.id),
                document=command.permissions,
                created_by=actor.principal_id,
            )
            current_domain.repository_for(PermissionTree).add(tree)

        logger.info(
            "staff_account_provisioned",
            principal_id=str(principal.id),
            role=principal.role,
            added_by=actor.principal_id,
        )
        return str(principal.id)


def bootstrap_admin(email, full_name=None) -> str:
    """Create an Admin without an acting Admin. Used once, from the management CLI."""
    repo = current_domain.repository_for(Principal)
    _ensure_email_is_free(repo, email)

    admin = Principal.provision(email=email, full_name=full_name, role=Role.ADMIN)
    repo.add(admin)
    logger.info("admin_bootstrapped", principal_id=str(admin.id))
    return str(admin.id)
