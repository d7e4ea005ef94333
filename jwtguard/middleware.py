"""ASGI middleware that requires a valid JWT bearer token."""

from __future__ import annotations

import logging
from typing import Any

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from jwtguard.auth import AuthConfig
from jwtguard.keys import (
    DecodeHeaderError,
    DecodingKeyError,
    KeyCache,
    KeyNotFoundError,
    MissingKidError,
    SignatureVerificationError,
    UnauthorisedKeyError,
    get_key,
)
from jwtguard.keys_utils import KeyConversionError, key_to_pem

log = logging.getLogger(__name__)

_SCHEME = "Bearer "


def extract_token(header_value: str | bytes | None) -> str:
    """Return the token from a ``Bearer`` header value."""
    if header_value is None:
        raise UnauthorisedKeyError("Missing Authorization header")
    raw = header_value.encode("latin-1", "replace") if isinstance(header_value, str) else header_value
    if not all(byte == 9 or 32 <= byte <= 126 for byte in raw):
        raise UnauthorisedKeyError("Invalid Authorization header")
    text = raw.decode("ascii")
    if not text.startswith(_SCHEME):
        raise UnauthorisedKeyError("Invalid Authorization header format")
    return text[len(_SCHEME):]


def create_validation(auth_config: AuthConfig) -> dict[str, Any]:
    """Keyword arguments for ``jwt.decode`` enforcing the configured claims."""
    return {
        "algorithms": [auth_config.algorithm],
        "audience": auth_config.audience,
        "issuer": auth_config.issuer,
        "leeway": auth_config.leeway,
        "options": {
            "require": ["exp"],
            "verify_signature": True,
            "verify_exp": True,
            "verify_nbf": False,
            "verify_iat": False,
            "verify_aud": True,
            "verify_iss": True,
        },
    }


async def verify_jwt_signature(
    token: str, auth_config: AuthConfig, key_cache: KeyCache | None = None
) -> dict[str, Any]:
    """Verify ``token`` against the key named by its ``kid`` and return its claims."""
    try:
        header = jwt.get_unverified_header(token)
    except jwt.PyJWTError as exc:
        log.error("Failed to decode header: %s", exc)
        raise DecodeHeaderError(str(exc)) from exc

    kid = header.get("kid")
    if kid is None:
        raise MissingKidError()
    if not isinstance(kid, str):
        raise DecodeHeaderError("kid must be a string")

    fetch = key_cache.get if key_cache is not None else get_key
    try:
        key = await fetch(auth_config.jwks_url, kid)
    except UnauthorisedKeyError as exc:
        log.error("Failed to get key: %s", exc)
        raise KeyNotFoundError() from exc

    try:
        pem = key_to_pem(key)
    except KeyConversionError as exc:
        log.error("Failed to convert key to PEM: %s", exc)
        raise DecodingKeyError(str(exc)) from exc

    try:
        serialization.load_pem_public_key(pem.encode("ascii"))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        log.error("Failed to create decoding key: %s", exc)
        raise DecodingKeyError(str(exc)) from exc

    try:
        claims = jwt.decode(token, pem, **create_validation(auth_config))
    except jwt.PyJWTError as exc:
        log.error("Signature verification failed: %s", exc)
        raise SignatureVerificationError(str(exc)) from exc
    log.debug("JWT decoded successfully.")
    return claims


class JwtAuthMiddleware:
    """Reject HTTP requests without a valid token; pass verified claims on.

    Verified claims are placed in ``scope["state"]["claims"]``. ``OPTIONS``
    requests and non-HTTP scopes pass through unchecked.
    """

    def __init__(self, app: Any, config: AuthConfig, key_cache: KeyCache | None = None) -> None:
        self.app = app
        self.config = config
        self.key_cache = key_cache
        self._header_name = config.header.lower().encode("latin-1")

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope.get("type") != "http" or scope.get("method", "").upper() == "OPTIONS":
            await self.app(scope, receive, send)
            return

        try:
            token = extract_token(self._header_value(scope))
            log.debug("Verifying JWT signature.")
            claims = await verify_jwt_signature(token, self.config, self.key_cache)
        except UnauthorisedKeyError as exc:
            log.debug("Error %s", exc)
            await _reject(send, str(exc))
            return

        log.debug("JWT signature verified successfully.")
        scope.setdefault("state", {})["claims"] = claims
        await self.app(scope, receive, send)

    def _header_value(self, scope: dict[str, Any]) -> bytes | None:
        for name, value in scope.get("headers", ()):
            if name.lower() == self._header_name:
                return value
        return None


async def _reject(send: Any, message: str) -> None:
    body = message.encode("utf-8")
    await send(
        {
            "type": "http.response.start",
            "status": 401,
            "headers": [
                (b"content-type", b"text/plain; charset=utf-8"),
                (b"content-length", str(len(body)).encode("ascii")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": body})