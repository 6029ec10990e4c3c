"""Service configuration types.

This package is intentionally kept small: it holds plain dataclasses that are
loaded from environment variables. Credentials coming from the platform
service binding are resolved in `service_binding`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_REGION = "us-east-1"


class CredentialResolutionError(RuntimeError):
    """Object-store credentials could not be resolved. The server must not start."""


@dataclass(frozen=True)
class S3Config:

    endpoint_url: str
    access_key: str
    secret_key: str
    bucket_name: str
    region_name: str = DEFAULT_REGION

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks.
        return (
            f"S3Config(endpoint_url={self.endpoint_url!r}, bucket_name={self.bucket_name!r}, "
            f"region_name={self.region_name!r})"
        )

    @staticmethod
    def from_env() -> "S3Config":
        """Build the config from static settings (no service binding present)."""

        required = {
            "S3_ENDPOINT_URL": os.getenv("S3_ENDPOINT_URL"),
            "S3_ACCESS_KEY": os.getenv("S3_ACCESS_KEY"),
            "S3_SECRET_KEY": os.getenv("S3_SECRET_KEY"),
            "S3_BUCKET_NAME": os.getenv("S3_BUCKET_NAME"),
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise CredentialResolutionError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

        region_name = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION

        return S3Config(
            endpoint_url=required["S3_ENDPOINT_URL"],
            access_key=required["S3_ACCESS_KEY"],
            secret_key=required["S3_SECRET_KEY"],
            bucket_name=required["S3_BUCKET_NAME"],
            region_name=region_name,
        )


@dataclass(frozen=True)
class ServerSettings:

    s3_service_name: str = "s3"
    environment_cache_ttl_seconds: float = 0.0

    @staticmethod
    def from_env() -> "ServerSettings":
        service_name = (os.getenv("CONFIG_SERVER_S3_SERVICE_NAME") or "").strip() or "s3"

        raw_ttl = (os.getenv("ENVIRONMENT_CACHE_TTL_SECONDS") or "").strip()
        if not raw_ttl:
            ttl = 0.0
        else:
            try:
                ttl = float(raw_ttl)
            except ValueError as exc:
                raise ValueError("ENVIRONMENT_CACHE_TTL_SECONDS must be a number") from exc
            if ttl < 0:
                raise ValueError("ENVIRONMENT_CACHE_TTL_SECONDS must be >= 0")

        return ServerSettings(s3_service_name=service_name, environment_cache_ttl_seconds=ttl)
