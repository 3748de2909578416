"""Minimal auth dependency.

Stub implementation that extracts the owner id from a demo bearer token
or falls back to the demo owner. Real authentication is out of scope:
the owner id is trusted as given.
"""

import re
from typing import Annotated

from fastapi import Header, HTTPException, status

DEFAULT_OWNER_ID = "1"

_DEMO_TOKEN = re.compile(r"^demo_token_(?P<owner>.+)_(?P<ts>\d+)$")


async def get_current_owner(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Extract the owner id from the authorization header.

    Accepted forms:
    - "Bearer demo_token_<owner_id>_<timestamp>" (issued by the demo login)
    - "Bearer <owner_id>" for testing
    - no header: the default demo owner

    Args:
        authorization: Authorization header (e.g., "Bearer <token>")

    Returns:
        Owner id used to scope document queries

    Raises:
        HTTPException: If the header is not a bearer token
    """
    if not authorization:
        return DEFAULT_OWNER_ID

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:].strip()  # Strip "Bearer "
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Empty bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    match = _DEMO_TOKEN.match(token)
    if match:
        return match.group("owner")
    return token
