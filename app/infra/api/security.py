# app/infra/api/security.py
import hmac
import logging
import os

from fastapi import Depends, HTTPException, status
from fastapi.security.api_key import APIKeyHeader

log = logging.getLogger("api")

API_KEY_NAME = "X-Api-Key"
_api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


def _key_settings() -> tuple[bool, str]:
    return os.getenv("REQUIRE_API_KEY", "1") == "1", os.getenv("SERVICE_API_KEY", "")


async def require_api_key(api_key: str | None = Depends(_api_key_header)):
    """Shared service key on every /v1 route. Gate only, no roles."""
    required, expected = _key_settings()
    if not required:
        return
    if not expected:
        log.warning("Auth fail: SERVICE_API_KEY not configured")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service key not configured")
    if not api_key or not hmac.compare_digest(api_key, expected):
        log.info("Auth fail: bad or missing %s", API_KEY_NAME)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
