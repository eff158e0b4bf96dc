"""Authentication module: FastAPI dependencies resolving the caller.

Public interface:
    ``optional_principal``: returns the Principal, or None when the request
                             carries no valid token. Never raises; the gate
                             turns None into a 401.
    ``require_principal`` : returns the Principal or raises 401.

Token issuance is external; this module only verifies bearer tokens signed
with the shared ``JWT_SECRET_KEY``.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .token_factory import decode_token
from ..exceptions import AuthenticationError
from ..services.gate import Principal

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[Principal]:
    """Decode the bearer token if present and valid."""
    if credentials is None:
        return None

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        logger.debug("Rejected bearer token")
        return None

    return Principal(user_id=payload.sub, email=payload.email)


def require_principal(
    principal: Optional[Principal] = Depends(optional_principal),
) -> Principal:
    """Require an authenticated caller. Raises 401 otherwise."""
    if principal is None:
        raise AuthenticationError("Missing or invalid authentication token")
    return principal
