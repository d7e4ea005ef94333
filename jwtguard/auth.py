"""Configuration for JWT bearer-token authentication."""

from __future__ import annotations

from dataclasses import dataclass

SUPPORTED_ALGORITHMS = frozenset(
    {
        "HS256",
        "HS384",
        "HS512",
        "ES256",
        "ES384",
        "RS256",
        "RS384",
        "RS512",
        "PS256",
        "PS384",
        "PS512",
        "EdDSA",
    }
)


@dataclass(frozen=True)
class AuthConfig:
    """Where to find signing keys and which claims a token must carry.

    ``leeway`` is the clock skew, in seconds, tolerated when checking
    time-based claims. ``header`` names the request header that carries
    the bearer token.
    """

    jwks_url: str
    leeway: int
    audience: str
    issuer: str
    algorithm: str
    header: str

    def __post_init__(self) -> None:
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"unknown algorithm: {self.algorithm!r}")
        if (
            isinstance(self.leeway, bool)
            or not isinstance(self.leeway, int)
            or self.leeway < 0
        ):
            raise ValueError("leeway must be a non-negative number of seconds")