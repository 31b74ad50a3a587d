"""
Supabase client configuration

Lifecycle records, schedules and push tokens are read and written with the
service-role client, which bypasses RLS. Every request is therefore
attributed to a user only after Supabase Auth has verified the bearer token.
"""
from __future__ import annotations

import os
import logging
from functools import lru_cache
from typing import Annotated, Optional
from dataclasses import dataclass

from supabase import create_client, Client
from fastapi import Depends, HTTPException, Header

logger = logging.getLogger(__name__)


@dataclass
class AuthenticatedUser:
    """The caller of a proactive route."""
    user_id: str
    token: str


@lru_cache()
def get_service_client() -> Client:
    """Get Supabase client with service key (bypasses RLS)."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_SERVICE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
    return create_client(url, key)


def get_current_user(
    authorization: Optional[str] = Header(None),
    client: Client = Depends(get_service_client),
) -> AuthenticatedUser:
    """
    Resolve the calling user from the Authorization header.
    Use as FastAPI dependency.

    The token is checked by Supabase Auth (signature and expiry); a token it
    rejects never reaches the service-role client.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    token = authorization.replace("Bearer ", "", 1)
    try:
        response = client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"[AUTH] Token rejected: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = getattr(response, "user", None)
    if user is None or not user.id:
        raise HTTPException(status_code=401, detail="Invalid token: no user")
    return AuthenticatedUser(user_id=str(user.id), token=token)


# Type alias for dependency injection
CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
