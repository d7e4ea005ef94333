import httpx
import pytest

from jwtguard.keys import (
    DecodeHeaderError,
    DecodingKeyError,
    KeyCache,
    KeyNotFoundError,
    MissingKidError,
    SignatureVerificationError,
    UnauthorisedKeyError,
    get_key,
    key_refresh,
)

URL = "https://login.example.com/keys"

KEY_A = {"kid": "a", "kty": "RSA", "e": "AQAB", "n": "sXch"}
KEY_B = {"kid": "b", "kty": "RSA", "e": "AQAB", "n": "0vx7"}


def _serving(*bodies):
    """A cache whose client answers with the given bodies in turn."""
    requests = []

    def handler(request):
        body = bodies[min(len(requests), len(bodies) - 1)]
        requests.append(request)
        if isinstance(body, str):
            return httpx.Response(200, text=body)
        return httpx.Response(200, json=body)

    return requests, handler


def _cache(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return KeyCache(client=client, **kwargs)


@pytest.mark.asyncio
async def test_refresh_stores_keys_by_kid():
    requests, handler = _serving({"keys": [KEY_A, KEY_B, {"e": "AQAB"}]})
    cache = _cache(handler)
    await cache.refresh(URL)
    assert cache.lookup("a") == KEY_A
    assert cache.lookup("b") == KEY_B
    assert cache.lookup("missing") is None
    assert str(requests[0].url) == URL


@pytest.mark.asyncio
async def test_get_uses_cache_after_first_fetch():
    requests, handler = _serving({"keys": [KEY_A]})
    cache = _cache(handler)
    assert await cache.get(URL, "a") == KEY_A
    assert await cache.get(URL, "a") == KEY_A
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_refresh_is_throttled():
    requests, handler = _serving({"keys": [KEY_A]}, {"keys": [KEY_B]})
    cache = _cache(handler)
    await cache.refresh(URL)
    await cache.refresh(URL)
    assert len(requests) == 1
    assert cache.lookup("a") == KEY_A
    assert cache.lookup("b") is None


@pytest.mark.asyncio
async def test_refresh_replaces_whole_set():
    requests, handler = _serving({"keys": [KEY_A]}, {"keys": [KEY_B]})
    cache = _cache(handler, refresh_interval=0)
    await cache.refresh(URL)
    await cache.refresh(URL)
    assert len(requests) == 2
    assert cache.lookup("a") is None
    assert cache.lookup("b") == KEY_B


@pytest.mark.asyncio
async def test_unknown_kid_raises_key_not_found():
    _, handler = _serving({"keys": [KEY_A]})
    cache = _cache(handler)
    with pytest.raises(KeyNotFoundError):
        await cache.get(URL, "b")


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["not json", {"other": []}, [KEY_A], {"keys": "a"}])
async def test_unusable_documents_yield_no_keys(body):
    _, handler = _serving(body)
    cache = _cache(handler)
    with pytest.raises(KeyNotFoundError):
        await cache.get(URL, "a")


@pytest.mark.asyncio
async def test_transport_failure_yields_no_keys():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    cache = _cache(handler)
    with pytest.raises(KeyNotFoundError):
        await cache.get(URL, "a")
    assert cache.lookup("a") is None


@pytest.mark.asyncio
async def test_shared_cache_with_unusable_url():
    await key_refresh("not-a-url")
    with pytest.raises(KeyNotFoundError):
        await get_key("not-a-url", "missing")


@pytest.mark.parametrize(
    "error, message",
    [
        (DecodeHeaderError("bad"), "Failed to decode header: bad"),
        (MissingKidError(), "Missing kid in header"),
        (KeyNotFoundError(), "Key not found in JWKS"),
        (DecodingKeyError("bad"), "Failed to create decoding key: bad"),
        (SignatureVerificationError("bad"), "Signature verification failed: bad"),
    ],
)
def test_error_messages(error, message):
    assert str(error) == message
    assert isinstance(error, UnauthorisedKeyError)