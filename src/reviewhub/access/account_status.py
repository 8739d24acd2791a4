"""Admin-only account status changes.

Principals are never physically removed: deletion and deactivation are
reversible markers. An Admin cannot lock themselves out.
"""

from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.identity import require_role, resolve_identity
from reviewhub.access.principal import Principal, Role
from reviewhub.domain import reviewhub
from reviewhub.utils.concurrency import save_if_unchanged, serialized


@reviewhub.command(part_of="Principal")
class DeactivatePrincipal:
    actor_id = Identifier(required=True)
    principal_id = Identifier(required=True)


@reviewhub.command(part_of="Principal")
class ReactivatePrincipal:
    actor_id = Identifier(required=True)
    principal_id = Identifier(required=True)


@reviewhub.command(part_of="Principal")
class DeletePrincipal:
    actor_id = Identifier(required=True)
    principal_id = Identifier(required=True)


@reviewhub.command(part_of="Principal")
class RestorePrincipal:
    actor_id = Identifier(required=True)
    principal_id = Identifier(required=True)


def _principal_key(command):
    return ("principal", str(command.principal_id))


@reviewhub.command_handler(part_of=Principal)
class AccountStatusHandler:
    def _change(self, command, change, self_allowed=True):
        actor = resolve_identity(command.actor_id)
        require_role(actor, Role.ADMIN)
        if not self_allowed and actor.owns(command.principal_id):
            raise ValidationError({"principal_id": ["You cannot do this to your own account"]})

        repo = current_domain.repository_for(Principal)
        principal = repo.get(command.principal_id)
        expected = principal.revision
        change(principal)
        save_if_unchanged(repo, principal, expected)

    @serialized(_principal_key)
    @handle(DeactivatePrincipal)
    def deactivate(self, command):
        self._change(command, Principal.deactivate, self_allowed=False)

    @serialized(_principal_key)
    @handle(ReactivatePrincipal)
    def reactivate(self, command):
        self._change(command, Principal.reactivate)

    @serialized(_principal_key)
    @handle(DeletePrincipal)
    def delete(self, command):
        self._change(command, Principal.soft_delete, self_allowed=False)

    @serialized(_principal_key)
    @handle(RestorePrincipal)
    def restore(self, command):
        self._change(command, Principal.restore)
