"""Gateway HTTP client."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from dockhand_reconciler.client.auth import resolve_auth
from dockhand_reconciler.client.errors import (
    AuthenticationError,
    ConflictError,
    InvalidRecordError,
    MalformedResponse,
    NotFoundError,
    RemoteError,
    RemoteRejected,
    RemoteUnavailable,
)
from dockhand_reconciler.config.constants import (
    DEFAULT_API_BASE,
    DEFAULT_MAX_RETRIES,
    HEALTH_PATH,
)
from dockhand_reconciler.config.models import GatewayProfile
from dockhand_reconciler.models.common import Kind
from dockhand_reconciler.reconcile.policy import policy_for

logger = logging.getLogger(__name__)

# Collection segment under /environments/{id}/
COLLECTIONS: dict[Kind, str] = {
    Kind.CONTAINER: "containers",
    Kind.COMPOSE_STACK: "compose-stacks",
    Kind.NETWORK: "networks",
    Kind.VOLUME: "volumes",
    Kind.IMAGE: "images",
    Kind.IMAGE_PULL: "images",
}


def collection_path(kind: Kind, env_id: str) -> str:
    if kind is Kind.ENVIRONMENT:
        return "/environments"
    if not env_id:
        raise InvalidRecordError(f"{kind.value} requires an environment_id")
    return f"/environments/{env_id}/{COLLECTIONS[kind]}"


def item_path(kind: Kind, env_id: str, object_id: str) -> str:
    if not object_id:
        raise InvalidRecordError(f"{kind.value} has no id")
    return f"{collection_path(kind, env_id)}/{object_id}"


class GatewayClient:
    """Synchronous HTTP client for the Dockhand REST API.

    Every method returns decoded JSON (or nothing) and raises
    :class:`RemoteUnavailable` for transport failures and
    :class:`RemoteRejected` (or a subclass) for any non-2xx status.
    """

    def __init__(self, profile: GatewayProfile) -> None:
        self.profile = profile
        self.base_url = f"{profile.url}{DEFAULT_API_BASE}"
        if not profile.verify_ssl:
            logger.warning("TLS certificate verification is disabled for %s", profile.url)
        transport = httpx.HTTPTransport(
            retries=DEFAULT_MAX_RETRIES, verify=profile.verify_ssl,
        )
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=resolve_auth(profile),
            verify=profile.verify_ssl,
            timeout=profile.timeout,
            transport=transport,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GatewayClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        status = response.status_code
        body = response.text
        if status in (401, 403):
            raise AuthenticationError(status, body or "check the session cookie")
        if status == 404:
            raise NotFoundError(status, body)
        if status == 409:
            raise ConflictError(status, body)
        raise RemoteRejected(status, body)

    def request(
        self,
        method: str,
        path: str,
        *,
        operation: str | None = None,
        kind: Kind | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.ConnectError as exc:
                raise RemoteUnavailable(
                    f"Cannot connect to gateway at {self.profile.url}: {exc}"
                ) from exc
            except httpx.TimeoutException as exc:
                raise RemoteUnavailable(
                    f"Request to {self.profile.url} timed out: {exc}"
                ) from exc
            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
                raise RemoteUnavailable(
                    f"Invalid URL for gateway at {self.profile.url}: {exc}"
                ) from exc
            except httpx.TransportError as exc:
                raise RemoteUnavailable(
                    f"Transport error talking to {self.profile.url}: {exc}"
                ) from exc
            return self._handle_response(response)
        except (RemoteUnavailable, RemoteRejected) as exc:
            if operation:
                exc.bind(operation, kind.value if kind else "gateway")
            raise

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponse(
                response.content.decode("utf-8", errors="replace"),
                "not JSON",
                response.status_code,
            ) from exc

    def list(self, kind: Kind, env_id: str = "") -> list[dict[str, Any]]:
        resp = self.request("GET", collection_path(kind, env_id), operation="list", kind=kind)
        data = self._json(resp)
        if isinstance(data, dict):
            data = data.get("items", [])
        return list(data or [])

    def get(self, kind: Kind, env_id: str, object_id: str) -> dict[str, Any]:
        resp = self.request(
            "GET", item_path(kind, env_id, object_id), operation="get", kind=kind,
        )
        result: dict[str, Any] = self._json(resp)
        return result

    def create(self, kind: Kind, env_id: str, body: dict[str, Any]) -> dict[str, Any]:
        resp = self.request(
            "POST", collection_path(kind, env_id), operation="create", kind=kind, json=body,
        )
        result: dict[str, Any] = self._json(resp)
        return result

    def update(
        self, kind: Kind, env_id: str, object_id: str, body: dict[str, Any],
    ) -> dict[str, Any]:
        resp = self.request(
            "PUT", item_path(kind, env_id, object_id), operation="update", kind=kind, json=body,
        )
        result: dict[str, Any] = self._json(resp)
        return result

    def delete(self, kind: Kind, env_id: str, object_id: str) -> None:
        if kind is Kind.IMAGE_PULL:
            # Pulled images stay on the host; only the record goes away.
            logger.debug("Leaving pulled image %s in environment %s", object_id, env_id)
            return
        self.request(
            "DELETE", item_path(kind, env_id, object_id), operation="delete", kind=kind,
        )

    def action(self, kind: Kind, env_id: str, object_id: str, verb: str) -> None:
        """Run a lifecycle verb such as ``start`` or ``pause``."""
        if verb not in policy_for(kind).actions:
            raise InvalidRecordError(f"{kind.value} does not support '{verb}'")
        self.request(
            "POST", f"{item_path(kind, env_id, object_id)}/{verb}", operation=verb, kind=kind,
        )

    def pull(self, env_id: str, body: dict[str, Any]) -> None:
        self.request(
            "POST",
            f"{collection_path(Kind.IMAGE, env_id)}/pull",
            operation="pull",
            kind=Kind.IMAGE,
            json=body,
        )

    def health_check(self) -> bool:
        """Return True iff the gateway answers its liveness path with a 2xx."""
        try:
            self.request("GET", HEALTH_PATH, operation="health check")
        except RemoteError as exc:
            logger.info("Health check failed: %s", exc)
            return False
        return True
