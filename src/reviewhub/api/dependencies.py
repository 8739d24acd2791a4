"""Request-scoped collaborators.

Authentication happens upstream; the gateway forwards the authenticated
principal in the `X-Principal-Id` header.
"""

from fastapi import Header, HTTPException, Request

from reviewhub.access.identity import IdentityContext, resolve_identity
from reviewhub.access.viewer import viewer_identifier


def principal_id(x_principal_id: str | None = Header(default=None)) -> str:
    if not x_principal_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_principal_id


def optional_identity(x_principal_id: str | None = Header(default=None)) -> IdentityContext | None:
    if not x_principal_id:
        return None
    return resolve_identity(x_principal_id)


def request_viewer(request: Request, identity: IdentityContext | None) -> str:
    client_address = request.client.host if request.client else None
    return viewer_identifier(identity, client_address, request.headers.get("user-agent"))
