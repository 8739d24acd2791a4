"""Viewer fingerprints used to deduplicate content views."""

import hashlib

from reviewhub.access.identity import IdentityContext


def viewer_identifier(
    identity: IdentityContext | None = None,
    client_address: str | None = None,
    user_agent: str | None = None,
) -> str:
    """`user_<id>` for a signed-in principal, a stable hash of connection metadata otherwise."""
    if identity is not None:
        return identity.viewer_identifier
    fingerprint = f"{client_address or 'unknown'}_{user_agent or 'unknown'}"
    return "anon_" + hashlib.md5(fingerprint.encode(), usedforsecurity=False).hexdigest()
