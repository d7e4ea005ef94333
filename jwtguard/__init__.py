"""ASGI middleware that verifies JWT bearer tokens against RSA keys from a JWKS endpoint."""

__version__ = "0.1.0"

__all__ = ["auth", "keys", "keys_utils", "middleware"]