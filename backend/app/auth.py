"""API key authentication for write endpoints.

Agents (the ingestion bot, the marketplace frontend) share a single key,
sent as the ``x-api-key`` header or the ``api_key`` query parameter.
"""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .config import Settings, get_settings
from .logging_config import get_logger

logger = get_logger("api.auth")

API_KEY_HEADER = "x-api-key"


def require_agent_key(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Reject the request unless it carries the configured agent API key."""
    api_key = request.headers.get(API_KEY_HEADER) or request.query_params.get("api_key")
    if not api_key or not secrets.compare_digest(api_key, settings.agent_api_key):
        logger.warning(f"Rejected API key | {request.method} {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


AgentKey = Annotated[None, Depends(require_agent_key)]
