"""Conversion of RSA JSON Web Keys to PEM."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Mapping
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

log = logging.getLogger(__name__)

_BASE64URL = re.compile(r"[A-Za-z0-9_-]*")


class KeyConversionError(Exception):
    """A JSON Web Key could not be turned into an RSA public key."""


def _component(key: Any, name: str) -> int:
    value = key.get(name) if isinstance(key, Mapping) else None
    if not isinstance(value, str):
        log.error("'%s' field not found in JWK.", name)
        raise KeyConversionError(f"'{name}' field not found in JWK")
    failure = KeyConversionError(f"Failed to decode '{name}' from base64url")
    if not _BASE64URL.fullmatch(value.rstrip("=")):
        raise failure
    padded = value + "=" * (-len(value) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError):
        raise failure from None
    return int.from_bytes(raw, "big")


def key_to_pem(key: Mapping[str, Any]) -> str:
    """Return the PKCS#1 PEM encoding of the RSA key in a JWK mapping."""
    modulus = _component(key, "n")
    exponent = _component(key, "e")
    try:
        public_key = rsa.RSAPublicNumbers(exponent, modulus).public_key()
    except ValueError as exc:
        log.error("Failed to create RSA public key: %s", exc)
        raise KeyConversionError("Failed to create RSA public key") from exc

    log.debug("Converting RSA public key to PEM format.")
    pem = public_key.public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.PKCS1
    ).decode("ascii")
    log.debug("JWK converted to PEM successfully.")
    return pem