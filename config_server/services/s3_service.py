from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

import aioboto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from config_server.services.config import S3Config

logger = logging.getLogger(__name__)

# MinIO and ECS only support path-style addressing.
PATH_STYLE_CONFIG = BotoConfig(s3={"addressing_style": "path"})


class S3ServiceError(RuntimeError):
    pass


class S3ObjectNotFoundError(S3ServiceError):
    pass


def _error_code_and_status(exc: ClientError) -> tuple[Any, HTTPStatus | None]:
    code = (exc.response.get("Error") or {}).get("Code")
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    try:
        status_enum = HTTPStatus(status) if isinstance(status, int) else None
    except ValueError:
        # Proxies may answer with codes outside the standard set (e.g. 520).
        status_enum = None
    return code, status_enum


class S3Service:
    def __init__(self, config: S3Config) -> None:
        self._config = config
        self._session = aioboto3.Session(
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region_name,
        )
        logger.info(
            "Configured S3 client for endpoint=%s region=%s bucket=%s",
            config.endpoint_url,
            config.region_name,
            config.bucket_name,
        )

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    def _client(self) -> Any:
        return self._session.client(
            "s3",
            region_name=self._config.region_name,
            endpoint_url=self._config.endpoint_url,
            config=PATH_STYLE_CONFIG,
        )

    async def bucket_exists(self, *, bucket_name: str) -> bool:
        """Return True if the bucket exists (and is accessible), otherwise False.

        Notes:
        - If the bucket exists but is not accessible, S3 commonly returns 403.
          In that case we raise instead of reporting it as missing.
        """

        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name must be provided")

        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                await s3.head_bucket(Bucket=bucket_name)
            return True
        except ClientError as exc:
            code, status_enum = _error_code_and_status(exc)
            if status_enum == HTTPStatus.NOT_FOUND or code in {"NoSuchBucket", "NotFound"}:
                return False
            if status_enum == HTTPStatus.FORBIDDEN or code in {"AccessDenied"}:
                raise S3ServiceError(f"Access denied checking S3 bucket: {bucket_name}") from exc
            logger.exception("S3 bucket_exists failed")
            raise S3ServiceError(f"Failed to check if S3 bucket exists: {bucket_name}") from exc
        except Exception as exc:
            logger.exception("S3 bucket_exists failed")
            raise S3ServiceError(f"Failed to check if S3 bucket exists: {bucket_name}") from exc

    async def get_object_bytes(self, *, key: str) -> bytes:
        """Return the raw bytes for an object in the configured bucket.

        Raises:
            S3ObjectNotFoundError: the key does not exist.
            S3ServiceError: any other failure talking to the store.
        """

        if not key:
            raise ValueError("'key' must be provided")

        try:
            s3_client: Any = self._client()
            async with s3_client as s3:
                resp = await s3.get_object(Bucket=self._config.bucket_name, Key=key)
                body = resp.get("Body")
                if body is None:
                    return b""
                return await body.read()
        except ClientError as exc:
            code, status_enum = _error_code_and_status(exc)
            if status_enum == HTTPStatus.NOT_FOUND or code in {"NoSuchKey", "NotFound"}:
                raise S3ObjectNotFoundError(f"Object not found in S3 (key={key})") from exc
            raise S3ServiceError(f"Failed to fetch object from S3 (key={key}, code={code})") from exc
        except Exception as exc:
            raise S3ServiceError(f"Failed to fetch object from S3 (key={key})") from exc
