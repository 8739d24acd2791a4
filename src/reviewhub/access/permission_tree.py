"""PermissionTree aggregate: per-principal capability grants.

Stored documents come in a loose nested shape, e.g.

    {
        "commonPermissions": {
            "company": {"read": true, "update": {"value": true}},
            "blog": true,
        },
        "specific": {"company": {"read": true}},
    }

`from_document` flattens that into one `ModuleGrant` per registered module
path. `true` at module level grants every capability; a capability is
granted by `true` or by an object whose `value` is `true`. Anything else is
rejected up front so lookups never have to interpret shapes.
"""

import json

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String

from reviewhub.access.events import PermissionsUpdated
from reviewhub.access.modules import CAPABILITY_NAMES, Capability, is_registered
from reviewhub.clock import get_clock
from reviewhub.domain import reviewhub


def _capability_granted(value, path: str, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, dict) and "value" in value:
        if not isinstance(value["value"], bool):
            raise ValidationError({"permissions": [f"'{path}.{name}.value' must be a boolean"]})
        return value["value"]
    raise ValidationError({"permissions": [f"'{path}.{name}' must be a boolean or an object with a boolean 'value'"]})


def _is_leaf(node) -> bool:
    return isinstance(node, bool) or (isinstance(node, dict) and bool(node) and set(node) <= CAPABILITY_NAMES)


def normalize_document(document) -> dict[str, dict[str, bool]]:
    """Flatten a nested permission document into `{module_path: {capability: granted}}`."""
    if isinstance(document, str):
        document = json.loads(document) if document.strip() else {}
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValidationError({"permissions": ["Permission document must be an object"]})

    flat: dict[str, dict[str, bool]] = {}

    def walk(node, path):
        if path and _is_leaf(node):
            if not is_registered(path):
                raise ValidationError({"permissions": [f"Unknown module path '{path}'"]})
            if isinstance(node, bool):
                flat[path] = {name: node for name in CAPABILITY_NAMES}
            else:
                flat[path] = {name: _capability_granted(node.get(name, False), path, name) for name in CAPABILITY_NAMES}
            return
        if not isinstance(node, dict):
            raise ValidationError({"permissions": [f"Malformed permission entry at '{path or '<root>'}'"]})
        for key, child in node.items():
            walk(child, f"{path}.{key}" if path else str(key))

    walk(document, "")
    return flat


@reviewhub.entity(part_of="PermissionTree")
class ModuleGrant:
    """Capabilities granted on one module path."""

    module_path = String(required=True, max_length=100)
    can_create = Boolean(default=False)
    can_read = Boolean(default=False)
    can_update = Boolean(default=False)
    can_delete = Boolean(default=False)

    def allows(self, capability: Capability) -> bool:
        return bool(getattr(self, f"can_{capability.value}"))

    def capabilities(self) -> dict[str, bool]:
        return {c.value: self.allows(c) for c in Capability}


def _grant(path: str, capabilities: dict[str, bool]) -> ModuleGrant:
    return ModuleGrant(module_path=path, **{f"can_{name}": granted for name, granted in capabilities.items()})


@reviewhub.aggregate
class PermissionTree:
    """The grants of one Operator or SubAdmin.

    An empty tree is a configured tree that grants nothing, which is not
    the same as having no tree at all.
    """

    principal_id = Identifier(required=True)
    grants = HasMany(ModuleGrant)

    updated_by = Identifier()
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def module_paths_are_unique(self):
        paths = [g.module_path for g in self.grants]
        if len(paths) != len(set(paths)):
            raise ValidationError({"grants": ["A module path can only be granted once"]})

    @invariant.post
    def module_paths_are_registered(self):
        for grant in self.grants:
            if not is_registered(grant.module_path):
                raise ValidationError({"grants": [f"Unknown module path '{grant.module_path}'"]})

    @classmethod
    def from_document(cls, principal_id, document, created_by=None):
        now = get_clock().now()
        tree = cls(
            principal_id=principal_id,
            updated_by=created_by,
            created_at=now,
            updated_at=now,
        )
        for path, capabilities in sorted(normalize_document(document).items()):
            tree.add_grants(_grant(path, capabilities))
        return tree

    def replace_grants(self, document, updated_by=None):
        """Swap every grant for the ones described by `document`."""
        flat = normalize_document(document)
        now = get_clock().now()

        for grant in list(self.grants):
            self.remove_grants(grant)
        for path, capabilities in sorted(flat.items()):
            self.add_grants(_grant(path, capabilities))
        self.updated_by = updated_by
        self.updated_at = now

        self.raise_(
            PermissionsUpdated(
                principal_id=str(self.principal_id),
                document=json.dumps(self.to_document(), sort_keys=True),
                updated_by=str(updated_by) if updated_by else None,
                updated_at=now,
            )
        )

    def grant_for(self, path: str) -> ModuleGrant | None:
        return next((g for g in self.grants if g.module_path == path), None)

    def to_document(self) -> dict:
        """Render the canonical nested document."""
        document: dict = {}
        for grant in sorted(self.grants, key=lambda g: g.module_path):
            namespace, _, module = grant.module_path.partition(".")
            document.setdefault(namespace, {})[module] = grant.capabilities()
        return document


@reviewhub.repository(part_of=PermissionTree)
class PermissionTreeRepository:
    def for_principal(self, principal_id) -> PermissionTree | None:
        """Return the principal's tree, or None when none was ever configured."""
        trees = self._dao.query.filter(principal_id=str(principal_id)).all().items
        return trees[0] if trees else None
