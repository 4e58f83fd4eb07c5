"""Request-scoped dependencies supplied by the identity layer."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class RequestContext:
    """Active tenant and authenticated actor for one request."""
    organization_id: UUID
    user_id: Optional[UUID] = None


def get_request_context(
    x_organization_id: Optional[UUID] = Header(default=None),
    x_user_id: Optional[UUID] = Header(default=None),
) -> RequestContext:
    """
    Resolve the active organization and user from request headers.

    The upstream identity layer authenticates the caller and forwards the
    session's active organization and user id. Requests without an
    organization are rejected.
    """
    if x_organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No active organization for this request",
        )
    return RequestContext(organization_id=x_organization_id, user_id=x_user_id)


def require_user(context: RequestContext) -> UUID:
    """Return the acting user id, rejecting anonymous calls."""
    if context.user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="An authenticated user is required for this action",
        )
    return context.user_id
