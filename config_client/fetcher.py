from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from config_client.binder import bind_environment
from config_client.models import CONFIG_PREFIX, DemoProperties
from config_client.settings import ClientSettings

logger = logging.getLogger(__name__)


class ConfigClientError(RuntimeError):
    pass


class ConfigServerClient:
    """Fetches the layered Environment for this application from the config server."""

    def __init__(self, *, session: aiohttp.ClientSession, settings: ClientSettings) -> None:
        self._session = session
        self._settings = settings

    @property
    def url(self) -> str:
        return f"{self._settings.config_server_uri}{self._settings.environment_path()}"

    async def fetch_environment(self) -> dict[str, Any]:
        """Return the raw Environment JSON document.

        Raises:
            ConfigClientError: the server is unreachable, rejects the credentials,
                or answers with something that is not an Environment.
        """

        url = self.url
        logger.info("Fetching configuration from %s", url)
        try:
            async with self._session.get(
                url,
                auth=aiohttp.BasicAuth(self._settings.username, self._settings.password),
                timeout=aiohttp.ClientTimeout(total=self._settings.timeout_seconds),
                headers={"Accept": "application/json"},
            ) as resp:
                if resp.status in (401, 403):
                    raise ConfigClientError(
                        f"Config server rejected credentials for {self._settings.username} ({resp.status})"
                    )
                if resp.status != 200:
                    raise ConfigClientError(f"Config server returned HTTP {resp.status} for {url}")
                payload = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ConfigClientError(f"Failed to fetch configuration from {url}") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("propertySources", []), list):
            raise ConfigClientError(f"Unexpected Environment payload from {url}")

        logger.info(
            "Located environment: name=%s, profiles=%s, label=%s, sources=%s",
            payload.get("name"),
            payload.get("profiles"),
            payload.get("label"),
            property_source_names(payload),
        )
        return payload


def property_source_names(environment: dict[str, Any]) -> list[str]:
    return [str(s.get("name")) for s in environment.get("propertySources") or [] if isinstance(s, dict)]


async def load_demo_properties(client: ConfigServerClient) -> tuple[DemoProperties, list[str]]:
    """Fetch and bind the `demo.*` properties. Returns the bound tree and the source names used."""

    environment = await client.fetch_environment()
    properties = bind_environment(DemoProperties, environment, prefix=CONFIG_PREFIX)
    return properties, property_source_names(environment)
