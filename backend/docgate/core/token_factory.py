"""Pure functions for creating and decoding bearer tokens.

Token issuance normally belongs to the identity provider; these helpers let
the service verify HS256 tokens it shares a secret with, and let tests and
scripts mint tokens. No classes, no state, just encode/decode.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

_ISSUER = "docgate"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded token claims. Immutable."""
    sub: str
    email: Optional[str]
    exp: datetime


def create_token(
    subject: str,
    secret: str,
    email: Optional[str] = None,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed JWT.

    Args:
        subject: User id of the principal.
        secret: HMAC signing key.
        email: Principal's email; used to match shared links.
        algorithm: Only HS256 supported.
        expires_hours: Hours until expiry (negative values mint expired tokens).
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    now = int(time.time())
    claims = {
        "sub": subject,
        "iat": now,
        "exp": now + expires_hours * 3600,
        "iss": _ISSUER,
    }
    if email:
        claims["email"] = email

    signing_input = b".".join([
        _b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode()),
        _b64encode(json.dumps(claims).encode()),
    ])
    return (signing_input + b"." + _b64encode(_sign(secret, signing_input))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Verify and decode a token.

    Returns ``None`` on any failure (bad signature, expired, wrong issuer,
    malformed); callers decide what absence means.
    """
    if algorithm != "HS256":
        return None
    try:
        header, body, signature = token.encode().split(b".")
        if not hmac.compare_digest(_sign(secret, header + b"." + body), _b64decode(signature)):
            return None

        claims = json.loads(_b64decode(body))
        if claims.get("iss") != _ISSUER or not claims.get("sub"):
            return None

        exp = int(claims.get("exp", 0))
        if time.time() > exp:
            return None

        return TokenPayload(
            sub=str(claims["sub"]),
            email=claims.get("email"),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (json.JSONDecodeError, ValueError, TypeError):
        return None


def _sign(secret: str, data: bytes) -> bytes:
    return hmac.new(secret.encode(), data, hashlib.sha256).digest()


# --- base64url helpers (no padding, URL-safe) ---

def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
