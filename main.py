import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status

from config_server.routes.environment import router as environment_router
from config_server.routes.health import router as health_router
from config_server.services.config import CredentialResolutionError, ServerSettings
from config_server.services.config.service_binding import resolve_s3_config
from config_server.services.environment_repository import EnvironmentRepository
from config_server.services.s3_service import S3Service, S3ServiceError
from shared.log_setup import ensure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_logging()

    # Credentials are resolved exactly once; any failure aborts startup.
    settings = ServerSettings.from_env()
    try:
        s3_config = resolve_s3_config(settings)
    except CredentialResolutionError as exc:
        logger.error("Cannot start config server: %s", exc)
        raise

    # One S3Service (and its aioboto3 session) for the app's lifetime, shared by all requests.
    app.state.s3_service = S3Service(s3_config)
    app.state.environment_repository = EnvironmentRepository(
        s3=app.state.s3_service,
        cache_ttl_seconds=settings.environment_cache_ttl_seconds,
    )
    logger.info("Config server ready (bucket=%s)", s3_config.bucket_name)
    yield


app = FastAPI(lifespan=lifespan, title="S3 Config Server")

# Health first: `/actuator/health` would otherwise match `/{application}/{profile}`.
app.include_router(health_router)
app.include_router(environment_router)


@app.exception_handler(S3ServiceError)
async def s3_service_error_handler(request: Request, exc: S3ServiceError) -> JSONResponse:
    """Map S3 service-layer failures that escape a route to a consistent HTTP response.

    Environment lookups swallow per-document failures, so in practice this only
    covers direct store calls.

    Returns:
        502 Bad Gateway with a JSON body: {"detail": "..."}
    """
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )
