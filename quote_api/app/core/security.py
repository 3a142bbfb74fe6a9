"""
Token signing and verification for bearer authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed
the user's e‑mail as subject (``sub``) and an expiration timestamp
(``exp``).  The secret key from the application settings is used to
sign and verify tokens.

``TokenVerifier`` is what the quote handlers consume: it takes a
request and returns either the resolved user or a ``TokenFailure``.
``send_json_error_token`` turns a failure into the JSON body returned
with the 401 response.
"""

import base64
import enum
import hashlib
import hmac
import json
import logging
import time
from typing import Dict, Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPBearer

from .config import settings
from .errors import UnauthorizedError
from ..schemas.user import UserRead
from ..services.user_service import UserService

logger = logging.getLogger(__name__)


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, str], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field representing the
    expiration time as a UNIX timestamp.  The token is a string of the
    form ``header.payload.signature``, where each part is base64url
    encoded.  Clients send it in the ``Authorization`` header as
    ``Bearer <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. {"sub": "user@example.com"}).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.  A negative
        value produces an already expired token.

    Returns
    -------
    str
        A signed JWT token.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta if expires_delta is not None else settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(',', ':')).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(',', ':')).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, str]]:
    """Verify and decode a JWT token.

    Verifies the HMAC signature and the ``exp`` field.  Returns the
    payload dictionary if valid, otherwise ``None``.
    """
    parts = token.split('.')
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    try:
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        expected_sig = _sign(signing_input, settings.secret_key)
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeError):
        # Covers binascii.Error and json.JSONDecodeError
        return None
    if not isinstance(data, dict):
        return None
    exp = data.get("exp")
    if not isinstance(exp, (int, float)) or int(exp) < int(time.time()):
        return None
    return data


class TokenFailure(str, enum.Enum):
    """Reasons a bearer token can be rejected."""

    MISSING = "missing"
    INVALID = "invalid"
    UNKNOWN_USER = "unknown_user"
    DISABLED = "disabled"


TOKEN_FAILURE_MESSAGES: Dict[TokenFailure, str] = {
    TokenFailure.MISSING: "Token d'authentification manquant.",
    TokenFailure.INVALID: "Token invalide ou expiré.",
    TokenFailure.UNKNOWN_USER: "Utilisateur introuvable.",
    TokenFailure.DISABLED: "Compte utilisateur désactivé.",
}


bearer_scheme = HTTPBearer(auto_error=False)


class TokenVerifier:
    """Resolve the user behind a request's bearer token."""

    async def check_token(self, request: Request) -> Union[UserRead, TokenFailure]:
        """Return the authenticated user, or the reason the token was rejected."""
        credentials = await bearer_scheme(request)
        if credentials is None:
            return TokenFailure.MISSING
        payload = decode_access_token(credentials.credentials)
        if not payload or not payload.get("sub"):
            return TokenFailure.INVALID
        user = await UserService.get_user_by_email(payload["sub"])
        if user is None:
            return TokenFailure.UNKNOWN_USER
        if user.disabled:
            return TokenFailure.DISABLED
        return user

    def send_json_error_token(self, failure: TokenFailure) -> Dict[str, object]:
        """Build the JSON body returned with a 401 for ``failure``."""
        return {"error": True, "message": TOKEN_FAILURE_MESSAGES[failure]}


token_verifier = TokenVerifier()


def get_token_verifier() -> TokenVerifier:
    """Dependency returning the verifier; override it in tests if needed."""
    return token_verifier


async def get_current_user(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> UserRead:
    """Dependency that resolves the current user or raises ``UnauthorizedError``."""
    result = await verifier.check_token(request)
    if isinstance(result, TokenFailure):
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, result.value)
        body = verifier.send_json_error_token(result)
        raise UnauthorizedError(body["message"], body=body)
    return result
