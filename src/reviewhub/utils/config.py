"""Access to the `[custom]` table of the active domain's configuration."""

from protean.utils.globals import current_domain


def custom_setting(name: str, default):
    """Return a custom setting of the active domain, or `default` when unset."""
    custom = current_domain.config.get("custom") or {}
    value = custom.get(name)
    return default if value is None else value
