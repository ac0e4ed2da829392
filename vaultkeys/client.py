"""Thin async HTTP wrapper over the key vault data-plane REST API."""

from collections.abc import Awaitable, Callable
from typing import Optional
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import RemoteServiceError
from .logging import get_logger
from .models import JsonWebKey, KeyAttributes, KeyBundle

logger = get_logger("client")


class VaultClient:
    """Async client for creating and importing vault keys."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credential_provider: Callable[[], Awaitable[str]] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or Settings()
        self._access_token = self.settings.access_token
        self._credential_provider = credential_provider
        self._client = httpx.AsyncClient(timeout=self.settings.timeout, transport=transport)

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def vault_url(self, vault_name: str) -> str:
        """Base URL of a vault, built from its name and the DNS suffix."""
        if vault_name.startswith(("http://", "https://")):
            return vault_name.rstrip("/")
        return f"https://{vault_name}.{self.settings.dns_suffix}"

    def key_url(self, vault_name: str, key_name: str) -> str:
        return f"{self.vault_url(vault_name)}/keys/{quote(key_name, safe='')}"

    async def _get_access_token(self, force_refresh: bool = False) -> str:
        """Return cached token, or fetch from provider if empty/forced."""
        if self._access_token and not force_refresh:
            return self._access_token

        if self._credential_provider:
            logger.info("Fetching access token from credential provider")
            self._access_token = await self._credential_provider()

        return self._access_token

    async def create_key(
        self,
        vault_name: str,
        key_name: str,
        attributes: KeyAttributes,
    ) -> KeyBundle:
        """Have the vault generate a new key."""
        body: dict = {"attributes": attributes.to_wire()}
        if attributes.key_type is not None:
            body["kty"] = attributes.key_type.value
        if attributes.key_ops is not None:
            body["key_ops"] = list(attributes.key_ops)

        resp = await self._request(
            "POST", f"{self.key_url(vault_name, key_name)}/create", body
        )
        return _read_bundle(vault_name, resp)

    async def import_key(
        self,
        vault_name: str,
        key_name: str,
        attributes: KeyAttributes,
        material: JsonWebKey,
        import_to_hsm: Optional[bool] = None,
    ) -> KeyBundle:
        """Upload key material. `import_to_hsm=None` leaves the choice to the vault."""
        key = material.to_dict()
        if attributes.key_ops is not None:
            key["key_ops"] = list(attributes.key_ops)

        body: dict = {"key": key, "attributes": attributes.to_wire()}
        if import_to_hsm is not None:
            body["hsm"] = import_to_hsm

        resp = await self._request("PUT", self.key_url(vault_name, key_name), body)
        return _read_bundle(vault_name, resp)

    async def _request(self, method: str, url: str, body: dict) -> httpx.Response:
        """Send a request and return the successful response.

        On 401 with a credential provider, refreshes the token and retries once.
        """
        params = {"api-version": self.settings.api_version}

        for attempt in range(2):
            token = await self._get_access_token(force_refresh=(attempt > 0))

            headers = {"Content-Type": "application/json"}
            if token:
                headers["Authorization"] = f"Bearer {token}"

            try:
                resp = await self._client.request(
                    method, url, params=params, json=body, headers=headers
                )
            except httpx.HTTPError as e:
                logger.warning(f"{method} {url} failed: {type(e).__name__}: {e}")
                raise RemoteServiceError(f"Could not reach vault at {url}: {e}") from e

            if resp.status_code == 401 and attempt == 0 and self._credential_provider:
                logger.warning("Got 401 from vault, refreshing credentials and retrying")
                continue

            if resp.is_error:
                raise _service_error(resp)

            logger.debug(f"{method} {url} -> {resp.status_code}")
            return resp

        # Unreachable: the second attempt always returns or raises
        raise RemoteServiceError("Vault request was not sent")


def _read_bundle(vault_name: str, resp: httpx.Response) -> KeyBundle:
    """Parse a success body; anything unreadable is the vault's failure."""
    try:
        payload = resp.json()
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
        return KeyBundle.from_response(vault_name, payload)
    except (ValueError, AttributeError, KeyError, TypeError) as e:
        logger.warning(f"Vault returned an unreadable {resp.status_code} response: {e}")
        raise RemoteServiceError(
            f"Vault returned an unreadable response: {e}",
            status_code=resp.status_code,
        ) from e


def _service_error(resp: httpx.Response) -> RemoteServiceError:
    """Translate an error response, using the service's error body if present."""
    code = None
    message = resp.reason_phrase or "Vault request failed"
    try:
        data = resp.json()
    except ValueError:
        data = {}
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message") or message

    logger.warning(f"Vault returned {resp.status_code} ({code or 'no code'}): {message}")
    return RemoteServiceError(
        f"Vault returned {resp.status_code}: {message}",
        status_code=resp.status_code,
        code=code,
    )
