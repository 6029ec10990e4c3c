from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from config_server.models.environment import ServerHealthResponse
from config_server.services.dependencies import get_s3_service
from config_server.services.s3_service import S3Service, S3ServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/actuator", tags=["health"])


@router.get("/health", response_model=ServerHealthResponse)
async def health(
    s3: S3Service = Depends(get_s3_service),
) -> ServerHealthResponse:
    """Liveness plus a reachability check of the configuration bucket. No authentication."""

    try:
        reachable = await s3.bucket_exists(bucket_name=s3.bucket_name)
        detail = None if reachable else "Bucket not found"
    except S3ServiceError as exc:
        logger.warning("Health check could not reach bucket %s: %s", s3.bucket_name, exc)
        reachable = False
        detail = str(exc)

    return ServerHealthResponse(bucket=s3.bucket_name, bucket_reachable=reachable, detail=detail)
