"""Shared FastAPI dependencies for API routes."""

from functools import lru_cache
from typing import Annotated

from fastapi import Header, HTTPException

from tradr.services.league_sync import SyncContext


@lru_cache
def get_sync_context() -> SyncContext:
    """Process-wide resolver caches shared by every request."""
    return SyncContext()


def require_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """FastAPI dependency that extracts the Yahoo access token.

    Token acquisition and refresh happen in the auth layer; this only reads
    the ``Authorization: Bearer <token>`` header it forwards.

    Raises HTTPException 401 if the header is missing or not a bearer token.

    Usage:
        @router.post("/endpoint")
        async def endpoint(token: str = Depends(require_bearer_token)):
            ...
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=401,
            detail="Missing Yahoo access token. Send 'Authorization: Bearer <token>'.",
        )
    return token.strip()
