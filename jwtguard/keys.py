"""Fetching and caching of JSON Web Key Sets."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from typing import Any

import httpx
from cachetools import TTLCache

log = logging.getLogger(__name__)

DEFAULT_TTL = 24 * 60
DEFAULT_REFRESH_INTERVAL = 5 * 60


class UnauthorisedKeyError(Exception):
    """A token could not be authenticated."""


class DecodeHeaderError(UnauthorisedKeyError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to decode header: {detail}")
        self.detail = detail


class MissingKidError(UnauthorisedKeyError):
    def __init__(self) -> None:
        super().__init__("Missing kid in header")


class KeyNotFoundError(UnauthorisedKeyError):
    def __init__(self) -> None:
        super().__init__("Key not found in JWKS")


class DecodingKeyError(UnauthorisedKeyError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to create decoding key: {detail}")
        self.detail = detail


class SignatureVerificationError(UnauthorisedKeyError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Signature verification failed: {detail}")
        self.detail = detail


class KeyCache:
    """Keys from a JWKS endpoint, indexed by ``kid``.

    Entries expire after ``ttl`` seconds. The endpoint is fetched again at
    most once every ``refresh_interval`` seconds; each fetch replaces the
    whole set.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        ttl: float = DEFAULT_TTL,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self._client = client
        self._keys: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=sys.maxsize, ttl=ttl)
        self._refresh_interval = refresh_interval
        self._last_refresh: float | None = None
        self._lock = asyncio.Lock()

    async def refresh(self, jwks_url: str) -> None:
        """Reload the key set unless it was reloaded recently.

        Fetch and parse failures are logged; the cache is then left empty.
        """
        async with self._lock:
            now = time.monotonic()
            if (
                self._last_refresh is not None
                and now - self._last_refresh < self._refresh_interval
            ):
                return
            self._keys.clear()
            document = await self._fetch(jwks_url)
            if document is not None:
                self._store(document)
            self._last_refresh = now

    def lookup(self, kid: str) -> dict[str, Any] | None:
        """Return the cached key with this ``kid``, if any."""
        return self._keys.get(kid)

    async def get(self, jwks_url: str, kid: str) -> dict[str, Any]:
        """Return the key with this ``kid``, refreshing the set on a miss."""
        log.debug("Looking for kid %s in jwks_url %s", kid, jwks_url)
        key = self.lookup(kid)
        if key is not None:
            return key
        log.debug("Did not find. Refreshing keys.")
        await self.refresh(jwks_url)
        key = self.lookup(kid)
        if key is not None:
            return key
        log.debug("Could not find key in JWKS cache.")
        raise KeyNotFoundError()

    async def _fetch(self, jwks_url: str) -> Any:
        try:
            if self._client is None:
                async with httpx.AsyncClient() as client:
                    response = await client.get(jwks_url)
            else:
                response = await self._client.get(jwks_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.error("Error fetching JWKS: %s", exc)
            return None
        try:
            return json.loads(response.text)
        except ValueError as exc:
            log.error("Error: %s", exc)
            return None

    def _store(self, document: Any) -> None:
        keys = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(keys, list):
            return
        for key in keys:
            if isinstance(key, dict) and isinstance(key.get("kid"), str):
                self._keys[key["kid"]] = key
                log.debug("Inserted new key %s", key["kid"])


_default_cache = KeyCache()


async def key_refresh(jwks_url: str) -> None:
    """Refresh the shared key cache from ``jwks_url``."""
    await _default_cache.refresh(jwks_url)


async def get_key(jwks_url: str, kid: str) -> dict[str, Any]:
    """Look up ``kid`` in the shared key cache."""
    return await _default_cache.get(jwks_url, kid)