"""Authenticated identity for request handlers.

Session handling lives in front of this service; it forwards the verified
owner id in the X-User-ID header.
"""

from typing import Annotated

import structlog
from fastapi import Depends, Header, HTTPException

logger = structlog.get_logger()


async def get_current_user(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Return the authenticated owner id or reject with 401."""
    if not x_user_id or not x_user_id.strip():
        logger.info("Request without authenticated identity")
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id.strip()


CurrentUser = Annotated[str, Depends(get_current_user)]
