"""Basic authentication header helpers."""

import base64

BASIC_AUTH_HEADER_KEY = "Authorization"


def basic_auth_value(username: str, password: str) -> str:
    """Build the value of a basic auth header.

    Example:
        >>> basic_auth_value("admin", "test123")
        'Basic YWRtaW46dGVzdDEyMw=='
    """
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def basic_auth_header(username: str, password: str) -> dict[str, str]:
    """Build a complete basic auth header, ready to pass as ``headers``."""
    return {BASIC_AUTH_HEADER_KEY: basic_auth_value(username, password)}
