"""Registry of permission scopes.

A module path is `<namespace>.<module>`. The set of paths is closed: a
permission document naming anything else is rejected when it is loaded, so
evaluation is a plain lookup and never walks arbitrary structures.
"""

from enum import Enum

from protean.exceptions import ValidationError

from reviewhub.utils.config import custom_setting

DEFAULT_COMMON_NAMESPACE = "commonPermissions"
SPECIFIC_NAMESPACE = "specific"


class Capability(Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Module(Enum):
    DASHBOARD = "dashboard"
    COMPANY = "company"
    REVIEW = "review"
    BLOG = "blog"
    EVENT = "event"
    PRODUCT = "product"
    USER = "user"


CAPABILITY_NAMES = frozenset(c.value for c in Capability)


def common_namespace() -> str:
    return custom_setting("PERMISSION_COMMON_NAMESPACE", DEFAULT_COMMON_NAMESPACE)


def registered_paths() -> frozenset[str]:
    namespaces = (common_namespace(), SPECIFIC_NAMESPACE)
    return frozenset(f"{ns}.{module.value}" for ns in namespaces for module in Module)


def module_path(name) -> str:
    """Qualify `name` with the common namespace unless it already has one."""
    if isinstance(name, Module):
        name = name.value
    name = str(name).strip()
    if "." in name:
        return name
    return f"{common_namespace()}.{name}"


def module_candidates(module) -> list[str]:
    """Paths that may grant access to `module`, in the order they are consulted."""
    name = module.value if isinstance(module, Module) else str(module).strip()
    return [module_path(name), f"{SPECIFIC_NAMESPACE}.{name}"]


def is_registered(path: str) -> bool:
    return path in registered_paths()


def parse_capability(value) -> Capability:
    if isinstance(value, Capability):
        return value
    try:
        return Capability(str(value).lower())
    except ValueError:
        raise ValidationError({"capabilities": [f"Unknown capability '{value}'"]}) from None
