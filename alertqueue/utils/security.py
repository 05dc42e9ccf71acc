import logging

from fastapi import HTTPException, Request, Depends
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..core.config import load_settings

logger = logging.getLogger(__name__)

# --- API Key Authentication ---
API_KEY_NAME = "X-API-Key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def get_api_key(request: Request, api_key: str = Depends(api_key_header)):
    """
    Dependency to validate the API key from the request header.

    Raises HTTPException 401 if the key is missing or invalid.
    """
    expected = request.app.state.alerts.settings.api_key
    if not expected:
        # If the server has no API_KEY configured, authentication is disabled.
        # This allows the service to run without security for local development.
        logger.warning("API_KEY not configured. Allowing request without authentication.")
        return None

    if not api_key:
        logger.warning("API key missing from request.")
        raise HTTPException(status_code=401, detail="API key is missing")

    if api_key != expected:
        logger.warning("Invalid API key received.")
        raise HTTPException(status_code=401, detail="Invalid API key")

    return api_key


# --- Rate Limiting Setup ---
# The key function uses the client's IP address to identify them.
limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Handles the exception when a rate limit is exceeded.

    Registered as an exception handler for RateLimitExceeded; returns a JSON
    response with a 429 status code.
    """
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests", "error": f"Rate limit exceeded: {exc.detail}"}
    )


def rate_limit() -> str:
    """The per-client limit for alert creation and streaming, e.g. '30/minute'."""
    return load_settings().rate_limit
