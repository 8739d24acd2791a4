"""Domain events for the Principal and PermissionTree aggregates."""

from protean.fields import DateTime, Identifier, String, Text

from reviewhub.domain import reviewhub


@reviewhub.event(part_of="Principal")
class PrincipalRegistered:
    """A visitor signed up and became a User principal."""

    __version__ = 1

    principal_id = Identifier(required=True)
    email = String(required=True)
    role = String(required=True)
    registered_at = DateTime(required=True)


@reviewhub.event(part_of="Principal")
class StaffAccountProvisioned:
    """An Admin provisioned an Admin, Operator or SubAdmin account."""

    __version__ = 1

    principal_id = Identifier(required=True)
    email = String(required=True)
    role = String(required=True)
    added_by = Identifier()
    provisioned_at = DateTime(required=True)


@reviewhub.event(part_of="Principal")
class PrincipalDeactivated:
    __version__ = 1

    principal_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@reviewhub.event(part_of="Principal")
class PrincipalReactivated:
    __version__ = 1

    principal_id = Identifier(required=True)
    reactivated_at = DateTime(required=True)


@reviewhub.event(part_of="Principal")
class PrincipalDeleted:
    """The account was soft-deleted; the row is kept."""

    __version__ = 1

    principal_id = Identifier(required=True)
    deleted_at = DateTime(required=True)


@reviewhub.event(part_of="Principal")
class PrincipalRestored:
    __version__ = 1

    principal_id = Identifier(required=True)
    restored_at = DateTime(required=True)


@reviewhub.event(part_of="PermissionTree")
class PermissionsUpdated:
    """The grants of a principal's permission tree were replaced."""

    __version__ = 1

    principal_id = Identifier(required=True)
    document = Text(required=True)  # JSON, canonical nested shape
    updated_by = Identifier()
    updated_at = DateTime(required=True)
