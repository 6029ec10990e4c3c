from __future__ import annotations

from typing import Optional

import aiohttp
from fastapi import FastAPI, Request

from config_client.fetcher import ConfigServerClient
from config_client.models import DemoProperties
from config_client.settings import ClientSettings


def get_http_session_from_app(app: FastAPI) -> aiohttp.ClientSession:
    session = getattr(app.state, "http_session", None)
    if session is None:
        raise RuntimeError("HTTP session not initialized (app.state.http_session)")
    if not isinstance(session, aiohttp.ClientSession):
        raise RuntimeError("Unexpected http_session type")
    return session


def get_client_settings(request: Request) -> ClientSettings:
    settings = getattr(request.app.state, "client_settings", None)
    if settings is None:
        raise RuntimeError("Client settings not initialized (app.state.client_settings)")
    return settings


def get_demo_properties(request: Request) -> Optional[DemoProperties]:
    """The bound configuration tree, or None when binding never produced one."""

    return getattr(request.app.state, "demo_properties", None)


def get_config_server_client(request: Request) -> ConfigServerClient:
    return ConfigServerClient(
        session=get_http_session_from_app(request.app),
        settings=get_client_settings(request),
    )
