from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, Optional

import yaml
from pydantic_core import PydanticSerializationError, to_jsonable_python

from config_server.models.environment import Environment, PropertySource
from config_server.services.flatten import flatten_properties
from config_server.services.s3_service import S3ObjectNotFoundError, S3Service, S3ServiceError

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_KEY = "application.yml"
GLOBAL_SOURCE_NAME = "application"
MAX_CACHED_ENVIRONMENTS = 256


def parse_yaml_document(content: bytes) -> dict[str, Any]:
    """Parse a UTF-8 YAML document whose root must be a mapping (or empty)."""

    document = yaml.safe_load(content.decode("utf-8"))
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"YAML root must be a mapping, got {type(document).__name__}")
    return document


class EnvironmentRepository:
    """Builds layered environments from YAML documents stored in S3.

    For `find_one("demo", "dev", ...)` the sources are, in precedence order:
    `demo-dev.yml` (named "demo-dev") then `application.yml` (named "application").
    A missing or unreadable document is skipped; the result is never an error.
    """

    def __init__(
        self,
        *,
        s3: S3Service,
        cache_ttl_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._s3 = s3
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock
        self._cache: dict[tuple[str, str, Optional[str]], tuple[float, Environment]] = {}
        self._cache_lock = asyncio.Lock()

    async def find_one(self, application: str, profile: str, label: Optional[str] = None) -> Environment:
        if self._cache_ttl_seconds <= 0:
            return await self._build(application, profile, label)

        cache_key = (application, profile, label)
        # Held across the fetch so concurrent misses for a key trigger a single load.
        async with self._cache_lock:
            now = self._clock()
            self._evict_expired(now)
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.info("Serving cached configuration for %s-%s (label=%s)", application, profile, label)
                return cached[1]

            environment = await self._build(application, profile, label)
            if len(self._cache) >= MAX_CACHED_ENVIRONMENTS:
                # Oldest insertion goes first.
                del self._cache[next(iter(self._cache))]
            self._cache[cache_key] = (now + self._cache_ttl_seconds, environment)
            return environment

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._cache.items() if expires_at <= now]
        for key in expired:
            del self._cache[key]

    async def _build(self, application: str, profile: str, label: Optional[str]) -> Environment:
        logger.info(
            "Finding configuration for application=%s, profile=%s, label=%s",
            application,
            profile,
            label,
        )

        sources: list[PropertySource] = []
        specific_name = f"{application}-{profile}"
        for key, name in ((f"{specific_name}.yml", specific_name), (GLOBAL_CONFIG_KEY, GLOBAL_SOURCE_NAME)):
            source = await self._load_property_source(key=key, name=name)
            if source is not None:
                sources.append(source)

        logger.info("Loaded %d property sources for %s", len(sources), specific_name)
        return Environment(
            name=application,
            profiles=profile.split(","),
            label=label,
            property_sources=sources,
        )

    async def _load_property_source(self, *, key: str, name: str) -> Optional[PropertySource]:
        """Fetch, parse and flatten one document. Returns None when it contributes nothing."""

        logger.info("Attempting to load configuration from S3: %s (bucket: %s)", key, self._s3.bucket_name)
        try:
            content = await self._s3.get_object_bytes(key=key)
            # Values must survive the JSON response, e.g. `!!binary` leaves that are not UTF-8.
            properties = to_jsonable_python(flatten_properties(parse_yaml_document(content)))
        except S3ObjectNotFoundError:
            logger.warning("Configuration file not found in S3: %s", key)
            return None
        except S3ServiceError:
            logger.exception("Error reading configuration from S3: %s", key)
            return None
        except (yaml.YAMLError, PydanticSerializationError, ValueError):
            logger.exception("Invalid configuration document in S3: %s", key)
            return None

        if not properties:
            logger.info("Configuration file %s is empty, skipping", key)
            return None

        logger.info("Added %d properties from %s", len(properties), key)
        return PropertySource(name=name, source=properties)
