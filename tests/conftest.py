import pytest

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from starlette import status

from config_client.binder import ConfigBindingError
from config_client.fetcher import ConfigClientError
from config_client.models import DemoProperties
from config_client.routes import router as config_client_router
from config_client.settings import ClientSettings
from config_server.routes.environment import router as environment_router
from config_server.routes.health import router as health_router
from config_server.services.s3_service import S3ServiceError


@pytest.fixture()
def fastapi_app() -> FastAPI:
    """A minimal config-server app for route tests.

    Notes:
    - Does NOT use the production lifespan (avoids credential resolution and S3 access).
    - Includes the same S3ServiceError exception handler as main.py.
    """

    app = FastAPI()
    app.include_router(health_router)
    app.include_router(environment_router)

    @app.exception_handler(S3ServiceError)
    async def s3_service_error_handler(request: Request, exc: S3ServiceError) -> JSONResponse:  # noqa: ARG001
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    return app


@pytest.fixture()
def client(fastapi_app: FastAPI):
    with TestClient(fastapi_app) as c:
        yield c


@pytest.fixture()
def client_settings() -> ClientSettings:
    return ClientSettings(
        config_server_uri="http://config-server.test",
        application="demo",
        profile="dev",
        environment="DEV",
    )


@pytest.fixture()
def config_client_app(client_settings: ClientSettings) -> FastAPI:
    """A minimal config-client app with settings and bound properties pre-seeded on app.state."""

    app = FastAPI()
    app.include_router(config_client_router)
    app.state.client_settings = client_settings
    app.state.demo_properties = DemoProperties()

    @app.exception_handler(ConfigClientError)
    async def config_client_error_handler(request: Request, exc: ConfigClientError) -> JSONResponse:  # noqa: ARG001
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    @app.exception_handler(ConfigBindingError)
    async def config_binding_error_handler(request: Request, exc: ConfigBindingError) -> JSONResponse:  # noqa: ARG001
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    return app


@pytest.fixture()
def config_client(config_client_app: FastAPI):
    with TestClient(config_client_app) as c:
        yield c
