"""API authentication: API key and JWT Bearer support."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import jwt as pyjwt
from fastapi import Request, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from docchat.exceptions import UnauthorizedError

if TYPE_CHECKING:
    from docchat.core.config import AuthConfig

log = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
_bearer_scheme = HTTPBearer(auto_error=False)


async def require_auth(
    request: Request,
    api_key: Optional[str] = Security(_api_key_header),
    bearer: Optional[HTTPAuthorizationCredentials] = Security(_bearer_scheme),
) -> Optional[str]:
    """Validate authentication. Returns the caller's user id when a JWT carries one."""
    config: AuthConfig = request.app.state.settings.auth

    if not config.enabled:
        return None

    # Try API key first; the header name is configurable
    api_key = api_key or request.headers.get(config.api_key_header)
    if api_key and api_key in config.api_keys:
        return None

    # Try JWT Bearer
    if bearer:
        return _validate_jwt(bearer.credentials, config)

    raise UnauthorizedError("Authentication required. Provide X-API-Key header or Bearer token.")


async def require_caller(
    request: Request,
    api_key: Optional[str] = Security(_api_key_header),
    bearer: Optional[HTTPAuthorizationCredentials] = Security(_bearer_scheme),
) -> str:
    """Strict variant for destructive operations: an authenticated caller is mandatory.

    Rejects every request while auth is disabled. Returns the JWT user id, or
    ``"api-key"`` for API key callers.
    """
    config: AuthConfig = request.app.state.settings.auth
    if not config.enabled:
        raise UnauthorizedError("Authentication required. Enable DOCCHAT_AUTH_ENABLED to allow this operation.")

    api_key = api_key or request.headers.get(config.api_key_header)
    if api_key and api_key in config.api_keys:
        return "api-key"

    caller = await require_auth(request, api_key, bearer)
    if caller is None:
        raise UnauthorizedError(f"Token carries no {config.user_claim!r} claim.")
    return caller


def _validate_jwt(token: str, config: AuthConfig) -> Optional[str]:
    """Validate JWT and extract the user claim."""
    try:
        if config.jwks_url:
            jwk_client = pyjwt.PyJWKClient(config.jwks_url)
            signing_key = jwk_client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                key=signing_key.key,
                algorithms=[config.algorithm],
                audience=config.audience if config.audience else None,
                issuer=config.issuer if config.issuer else None,
            )
        else:
            # Gateway-terminated auth: upstream proxy verified the signature,
            # we only decode claims (audience, issuer, expiry still checked).
            log.warning(
                "JWT signature verification disabled (no JWKS URL). "
                "Ensure requests are proxied through an authenticating gateway."
            )
            payload = pyjwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": True},
                algorithms=[config.algorithm],
                audience=config.audience if config.audience else None,
                issuer=config.issuer if config.issuer else None,
            )
        return payload.get(config.user_claim)
    except pyjwt.PyJWTError as e:
        raise UnauthorizedError(f"Invalid token: {e}") from e
