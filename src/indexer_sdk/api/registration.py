"""Indexer registration client - POSTs an app configuration to the indexer API."""

from __future__ import annotations

import json
import logging

import httpx

from indexer_sdk.errors import RegistrationError
from indexer_sdk.models.config import Configuration, SDKOptions
from indexer_sdk.models.events import RegisterResponse

log = logging.getLogger(__name__)


class RegistrationClient:
    """Registers apps with the indexer HTTP API.

    One request per call, no retry. ``transport`` lets callers substitute
    an httpx transport (e.g. for tests).
    """

    def __init__(
        self,
        options: SDKOptions,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = options.api.rstrip("/")
        self._api_key = options.api_key
        self._timeout = options.http_timeout
        self._transport = transport

    def _url(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        return headers

    async def configure(self, config: Configuration) -> RegisterResponse:
        """Register ``config`` with the indexer and return the app hash."""
        log.debug("Configuring app %s (%d contracts)", config.app_name, len(config.contracts))
        if not config.app_name:
            log.warning("Registering a configuration with an empty app name")

        try:
            payload = json.dumps(config.to_dict())
        except (TypeError, ValueError) as exc:
            log.error("Cannot encode configuration for %s: %s", config.app_name, exc)
            raise RegistrationError(f"configuration is not JSON-serializable: {exc}") from exc

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(
                    self._url("register"),
                    content=payload,
                    headers=self._headers(),
                )
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            log.error("Indexer rejected %s: HTTP %d", config.app_name, exc.response.status_code)
            raise RegistrationError(
                f"indexer returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.error("Register request failed for %s: %s", config.app_name, exc)
            raise RegistrationError(f"register request failed: {exc}") from exc
        except ValueError as exc:
            log.error("Invalid register response for %s: %s", config.app_name, exc)
            raise RegistrationError(f"invalid register response: {exc}") from exc

        if not isinstance(body, dict):
            raise RegistrationError("invalid register response: not a JSON object")

        result = RegisterResponse(
            app_name=str(body.get("app_name", "")),
            hash=str(body.get("hash", "")),
        )
        log.info("Registered %s (hash %s)", result.app_name, result.hash)
        return result
