from __future__ import annotations

import argparse
import logging
import os
from contextlib import asynccontextmanager

import aiohttp
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status

from config_client.binder import ConfigBindingError
from config_client.fetcher import ConfigClientError, ConfigServerClient, load_demo_properties
from config_client.models import DemoProperties
from config_client.routes import router as config_router
from config_client.settings import ClientSettings
from shared.log_setup import ensure_logging

logger = logging.getLogger(__name__)


async def bind_startup_configuration(app: FastAPI) -> None:
    """Fetch and bind the configuration once, storing it on `app.state.demo_properties`.

    Without fail-fast a client that cannot reach the server still starts, with an
    empty (but non-null) configuration tree.
    """

    settings: ClientSettings = app.state.client_settings
    client = ConfigServerClient(session=app.state.http_session, settings=settings)
    try:
        properties, sources = await load_demo_properties(client)
        logger.info("Bound configuration from property sources: %s", sources)
    except (ConfigClientError, ConfigBindingError) as exc:
        if settings.fail_fast:
            logger.error("Could not load configuration and fail-fast is enabled: %s", exc)
            raise
        logger.warning("Could not load remote configuration, continuing with defaults: %s", exc)
        properties = DemoProperties()

    app.state.demo_properties = properties


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_logging()

    app.state.client_settings = ClientSettings.from_env()
    # One aiohttp.ClientSession for the app's lifetime, reused by startup binding and /refresh.
    app.state.http_session = aiohttp.ClientSession()
    try:
        await bind_startup_configuration(app)
        yield
    finally:
        await app.state.http_session.close()


app = FastAPI(lifespan=lifespan, title="Config Client")

app.include_router(config_router)


@app.exception_handler(ConfigClientError)
async def config_client_error_handler(request: Request, exc: ConfigClientError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )


@app.exception_handler(ConfigBindingError)
async def config_binding_error_handler(request: Request, exc: ConfigBindingError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Configuration client application")
    parser.add_argument("--host", default=os.getenv("CONFIG_CLIENT_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("CONFIG_CLIENT_PORT", "8080")))
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    uvicorn.run("config_client.main:app", host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
