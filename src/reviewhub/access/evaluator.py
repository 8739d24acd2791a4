"""PermissionEvaluator: may this identity use these capabilities on a module?

Evaluation is read-only. Candidates are tried in the order the caller gives
them; a path the tree has no grant for is skipped, and the first grant that
holds every required capability wins. Capabilities are never combined across
different paths.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from reviewhub.access.identity import IdentityContext
from reviewhub.access.modules import module_path, parse_capability
from reviewhub.access.permission_tree import PermissionTree
from reviewhub.access.principal import Role
from reviewhub.errors import PermissionDenied
from reviewhub.utils.logging import get_logger

logger = get_logger(__name__)

NO_PERMISSIONS = "no permissions configured"
NOT_AUTHORIZED = "not authorized"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None
    module_path: str | None = None
    bypassed: bool = False

    @classmethod
    def allow(cls, module_path=None, bypassed=False) -> "Decision":
        return cls(allowed=True, module_path=module_path, bypassed=bypassed)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, str | Role) or not isinstance(value, Iterable):
        return [value]
    return list(value)


def _bypass_set(roles) -> set[Role]:
    bypass = set()
    for role in _as_list(roles):
        try:
            bypass.add(Role(role))
        except ValueError:
            raise ValidationError({"bypass_roles": [f"Unknown role '{role}'"]}) from None
    return bypass


class PermissionEvaluator:
    def __init__(self, trees) -> None:
        # Anything with `for_principal(principal_id) -> PermissionTree | None`
        self.trees = trees

    def evaluate(
        self,
        identity: IdentityContext,
        module_paths,
        capabilities,
        bypass_roles=(),
    ) -> Decision:
        bypass = _bypass_set(bypass_roles)
        if identity.role in bypass:
            return Decision.allow(bypassed=True)

        tree = self.trees.for_principal(identity.principal_id)
        if tree is None:
            logger.debug("permission_denied", principal_id=identity.principal_id, reason=NO_PERMISSIONS)
            return Decision.deny(NO_PERMISSIONS)

        required = [parse_capability(c) for c in _as_list(capabilities)]
        for candidate in _as_list(module_paths):
            grant = tree.grant_for(module_path(candidate))
            if grant is None:
                continue
            if all(grant.allows(capability) for capability in required):
                return Decision.allow(module_path=grant.module_path)

        logger.debug(
            "permission_denied",
            principal_id=identity.principal_id,
            module_paths=[module_path(p) for p in _as_list(module_paths)],
            capabilities=[c.value for c in required],
            reason=NOT_AUTHORIZED,
        )
        return Decision.deny(NOT_AUTHORIZED)

    def authorize(self, identity: IdentityContext, module_paths, capabilities, bypass_roles=()) -> Decision:
        """Like `evaluate`, but raise PermissionDenied instead of returning a denial."""
        decision = self.evaluate(identity, module_paths, capabilities, bypass_roles)
        if not decision.allowed:
            raise PermissionDenied(decision.reason, principal_id=identity.principal_id)
        return decision


def permission_evaluator() -> PermissionEvaluator:
    """Evaluator wired to the active domain's PermissionTree repository."""
    return PermissionEvaluator(current_domain.repository_for(PermissionTree))
