"""Authentication for the Dockhand gateway."""

from __future__ import annotations

from collections.abc import Generator

import httpx

from dockhand_reconciler.config.models import GatewayProfile


class CookieAuth(httpx.Auth):
    """Authenticate with a Dockhand session cookie (``Cookie`` header)."""

    def __init__(self, cookie: str) -> None:
        self.cookie = cookie

    def auth_flow(
        self, request: httpx.Request,
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Cookie"] = self.cookie
        yield request


def resolve_auth(profile: GatewayProfile) -> httpx.Auth | None:
    """Resolve authentication from a gateway profile."""
    if profile.cookie:
        return CookieAuth(profile.cookie)
    return None
