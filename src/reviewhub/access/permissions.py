"""UpdatePermissions: an Admin replaces a staff member's grants."""

from protean.exceptions import ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import require_role, resolve_identity
from reviewhub.access.permission_tree import PermissionTree
from reviewhub.access.principal import Principal, Role
from reviewhub.domain import reviewhub
from reviewhub.utils.concurrency import save_if_unchanged, serialized


@reviewhub.command(part_of="PermissionTree")
class UpdatePermissions:
    actor_id = Identifier(required=True)
    principal_id = Identifier(required=True)
    permissions = Text(required=True)  # JSON permission document


def _principal_key(command):
    return ("principal", str(command.principal_id))


@reviewhub.command_handler(part_of=PermissionTree)
class UpdatePermissionsHandler:
    @serialized(_principal_key)
    @handle(UpdatePermissions)
    def update_permissions(self, command):
        actor = resolve_identity(command.actor_id)
        require_role(actor, Role.ADMIN)

        principal = current_domain.repository_for(Principal).get(command.principal_id)
        if not principal.needs_permission_tree:
            raise ValidationError({"principal_id": [f"{principal.role} accounts do not carry permissions"]})

        repo = current_domain.repository_for(PermissionTree)
        tree = repo.for_principal(principal.id)
        if tree is None:
            # Staff created before trees were provisioned
            tree = PermissionTree.from_document(str(principal.id), {}, created_by=actor.principal_id)
            tree.replace_grants(command.permissions, updated_by=actor.principal_id)
            repo.add(tree)
            return str(tree.id)

        expected = tree.revision
        tree.replace_grants(command.permissions, updated_by=actor.principal_id)
        save_if_unchanged(repo, tree, expected)
        return str(tree.id)
