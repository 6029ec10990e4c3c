from __future__ import annotations

import logging

from fastapi import FastAPI, Request

from config_server.services.environment_repository import EnvironmentRepository
from config_server.services.s3_service import S3Service

logger = logging.getLogger(__name__)


def get_s3_service_from_app(app: FastAPI) -> S3Service:
    s3 = getattr(app.state, "s3_service", None)
    if s3 is None:
        raise RuntimeError("S3 service not initialized (app.state.s3_service)")
    if not isinstance(s3, S3Service):
        raise RuntimeError("Unexpected s3_service type")
    return s3


def get_s3_service(request: Request) -> S3Service:
    """FastAPI dependency provider for the S3Service built at startup."""

    return get_s3_service_from_app(request.app)


def get_environment_repository_from_app(app: FastAPI) -> EnvironmentRepository:
    repository = getattr(app.state, "environment_repository", None)
    if repository is None:
        raise RuntimeError("Environment repository not initialized (app.state.environment_repository)")
    return repository


def get_environment_repository(request: Request) -> EnvironmentRepository:
    return get_environment_repository_from_app(request.app)
