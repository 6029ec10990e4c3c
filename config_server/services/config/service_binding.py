"""Credential discovery from a Cloud Foundry style `VCAP_SERVICES` document."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

from config_server.services.config import (
    DEFAULT_REGION,
    CredentialResolutionError,
    S3Config,
    ServerSettings,
)

logger = logging.getLogger(__name__)

FALLBACK_SERVICE_NAMES: tuple[str, ...] = ("s3", "dell-ecs", "ecs-s3", "object-storage", "aws-s3")

# First present, non-null field wins.
ENDPOINT_FIELDS: tuple[str, ...] = ("endpoint", "uri", "url", "host")
ACCESS_KEY_FIELDS: tuple[str, ...] = ("access-key", "accessKey", "access_key", "username")
SECRET_KEY_FIELDS: tuple[str, ...] = ("secret-key", "secretKey", "secret_key", "password")
BUCKET_FIELDS: tuple[str, ...] = ("bucket", "bucket-name", "bucketName", "bucket_name")
REGION_FIELDS: tuple[str, ...] = ("region", "aws-region", "awsRegion")


def _first_value(credentials: dict[str, Any], candidates: tuple[str, ...]) -> Optional[str]:
    for name in candidates:
        value = credentials.get(name)
        if value is not None:
            return str(value)
    return None


def _with_scheme(endpoint: str) -> str:
    if endpoint.startswith("http://") or endpoint.startswith("https://"):
        return endpoint
    return f"https://{endpoint}"


def find_service_entries(vcap: dict[str, Any], *, primary_service_name: str) -> Optional[list[Any]]:
    """Return the first non-empty service list, trying the primary name first."""

    for name in (primary_service_name, *FALLBACK_SERVICE_NAMES):
        entries = vcap.get(name)
        if isinstance(entries, list) and entries:
            logger.info("Found S3 service binding under name: %s", name)
            return entries
    return None


def extract_s3_config(credentials: dict[str, Any]) -> S3Config:
    endpoint = _first_value(credentials, ENDPOINT_FIELDS)
    access_key = _first_value(credentials, ACCESS_KEY_FIELDS)
    secret_key = _first_value(credentials, SECRET_KEY_FIELDS)
    bucket_name = _first_value(credentials, BUCKET_FIELDS)
    region_name = _first_value(credentials, REGION_FIELDS) or DEFAULT_REGION

    if endpoint is None:
        raise CredentialResolutionError("S3 endpoint not found in VCAP_SERVICES credentials")
    if access_key is None:
        raise CredentialResolutionError("S3 access key not found in VCAP_SERVICES credentials")
    if secret_key is None:
        raise CredentialResolutionError("S3 secret key not found in VCAP_SERVICES credentials")
    if bucket_name is None:
        raise CredentialResolutionError("S3 bucket name not found in VCAP_SERVICES credentials")

    return S3Config(
        endpoint_url=_with_scheme(endpoint),
        access_key=access_key,
        secret_key=secret_key,
        bucket_name=bucket_name,
        region_name=region_name,
    )


def from_service_binding(raw: str, *, primary_service_name: str = "s3") -> S3Config:
    """Parse `VCAP_SERVICES` and extract the S3 credentials of the first matching binding.

    Raises:
        CredentialResolutionError: the document is malformed, no S3 binding is
            present, or a required credential field is missing.
    """

    logger.info("Parsing VCAP_SERVICES for S3 configuration")
    try:
        vcap = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CredentialResolutionError("VCAP_SERVICES is not valid JSON") from exc
    if not isinstance(vcap, dict):
        raise CredentialResolutionError("VCAP_SERVICES must be a JSON object")

    entries = find_service_entries(vcap, primary_service_name=primary_service_name)
    if entries is None:
        raise CredentialResolutionError("No S3 service found in VCAP_SERVICES")

    first = entries[0]
    credentials = first.get("credentials") if isinstance(first, dict) else None
    if not isinstance(credentials, dict):
        raise CredentialResolutionError("No credentials found in S3 service binding")

    config = extract_s3_config(credentials)
    logger.info("Resolved S3 configuration from VCAP_SERVICES: %s", config.endpoint_url)
    return config


def resolve_s3_config(settings: Optional[ServerSettings] = None) -> S3Config:
    """Resolve the active object-store credentials.

    The platform service binding (`VCAP_SERVICES`) wins when present; otherwise
    the static `S3_*` environment variables are used.
    """

    settings = settings or ServerSettings.from_env()
    vcap_services = os.getenv("VCAP_SERVICES")
    if vcap_services:
        return from_service_binding(vcap_services, primary_service_name=settings.s3_service_name)

    logger.info("VCAP_SERVICES not set, using static S3 settings")
    return S3Config.from_env()
