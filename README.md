# jwtguard

ASGI middleware that checks JWT bearer tokens on incoming HTTP requests. It
uses RSA signing keys published at a JWKS endpoint, such as the one an OpenID
Connect identity provider exposes.

For each HTTP request other than `OPTIONS`, the middleware:

1. reads the configured header and expects a value of the form `Bearer <token>`;
2. takes the `kid` from the token header and looks it up among the cached JWKS keys;
3. builds an RSA public key from the key's `n` and `e` values;
4. verifies the signature with the configured algorithm, requires an `exp`
   claim and checks it (allowing the configured leeway), and checks the
   audience and the issuer.

A request that fails any of these steps gets a `401` response with a plain-text
body describing the failure, and never reaches the wrapped application. On
success the decoded claims are stored in `scope["state"]["claims"]` before the
application is called. `OPTIONS` requests and non-HTTP scopes (websocket,
lifespan) pass through without checks, so CORS preflight requests keep working.

## Installation

```
pip install jwtguard
```

## Configuration

All settings are held in a frozen dataclass, `jwtguard.auth.AuthConfig`:

| field       | meaning                                                   |
|-------------|-----------------------------------------------------------|
| `jwks_url`  | URL of the JWKS document holding the signing keys         |
| `leeway`    | clock skew, in seconds, allowed when checking `exp`       |
| `audience`  | required `aud` claim                                      |
| `issuer`    | required `iss` claim                                      |
| `algorithm` | signature algorithm the tokens must use, e.g. `RS256`     |
| `header`    | name of the request header carrying the token             |

`AuthConfig` raises `ValueError` if `algorithm` is not one of the names in
`jwtguard.auth.SUPPORTED_ALGORITHMS`, or if `leeway` is not a non-negative
integer.

```python
from jwtguard.auth import AuthConfig

config = AuthConfig(
    jwks_url="https://login.example.com/discovery/keys",
    leeway=60,
    audience="api://my-service",
    issuer="https://login.example.com/tenant/v2.0",
    algorithm="RS256",
    header="Authorization",
)
```

## Protecting an application

Wrap any ASGI application with `jwtguard.middleware.JwtAuthMiddleware`:

```python
from jwtguard.middleware import JwtAuthMiddleware

async def app(scope, receive, send):
    claims = scope["state"]["claims"]
    ...

protected = JwtAuthMiddleware(app, config)
```

The header name is matched case-insensitively. Clients send their token in it:

```
Authorization: Bearer token
```

## Key caching

Keys fetched from the JWKS endpoint live in a `jwtguard.keys.KeyCache`, indexed
by `kid`. A key that is not yet cached triggers a refresh of the whole key set,
but refreshes happen at most once every `refresh_interval` seconds (five
minutes by default), so tokens with unknown key ids cannot flood the identity
provider with requests. Each refresh clears the cache first; if the fetch or
the JSON parsing fails, the error is logged and the cache stays empty until
the next allowed refresh. Cached keys expire after `ttl` seconds (24 minutes
by default).

- `KeyCache.refresh(jwks_url)` reloads the key set unless it was reloaded recently.
- `KeyCache.lookup(kid)` returns a cached key or `None`.
- `KeyCache.get(jwks_url, kid)` returns a key, refreshing once on a miss, and
  raises `KeyNotFoundError` if it is still absent.

The module-level coroutines `get_key(jwks_url, kid)` and `key_refresh(jwks_url)`
in `jwtguard.keys` work on a cache shared across the process; the middleware
uses it when no cache is given. To control the HTTP client or the timings,
create a `KeyCache` yourself and pass it to the middleware. Without a client,
each fetch opens a short-lived `httpx.AsyncClient`.

```python
import httpx
from jwtguard.keys import KeyCache
from jwtguard.middleware import JwtAuthMiddleware

cache = KeyCache(httpx.AsyncClient(), ttl=24 * 60, refresh_interval=5 * 60)
protected = JwtAuthMiddleware(app, config, cache)
```

## Lower-level helpers

- `jwtguard.middleware.extract_token(header_value)` returns the token from a
  `Bearer <token>` header value (`str` or `bytes`). It raises
  `UnauthorisedKeyError` when the value is missing, holds characters outside
  visible ASCII, or does not start with `Bearer `.
- `jwtguard.middleware.create_validation(auth_config)` returns the keyword
  arguments passed to `jwt.decode`.
- `jwtguard.middleware.verify_jwt_signature(token, auth_config, key_cache=None)`
  is a coroutine that verifies a token and returns its claims as a dictionary.
- `jwtguard.keys_utils.key_to_pem(key)` turns a JWK mapping with base64url
  `n` and `e` values into a PKCS#1 PEM public key. It raises
  `KeyConversionError` when the key cannot be converted.

Verification failures raise subclasses of `jwtguard.keys.UnauthorisedKeyError`:
`DecodeHeaderError`, `MissingKidError`, `KeyNotFoundError`, `DecodingKeyError`
and `SignatureVerificationError`.

## What it does not do

- It is middleware only: it does not serve HTTP itself; run the wrapped
  application under an ASGI server of your choice.
- Only RSA keys (`n` and `e`) are read from the JWKS document. `AuthConfig`
  accepts other algorithm names, but tokens signed with HMAC, EC or EdDSA keys
  will fail verification.
- `nbf` and `iat` claims are not checked.

## Running the tests

```
pip install -e ".[test]"
pytest
```