from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from config_client.dependencies import get_client_settings, get_config_server_client, get_demo_properties
from config_client.fetcher import ConfigServerClient, load_demo_properties
from config_client.models import ConfigResponse, DemoProperties, HealthResponse, RefreshResponse
from config_client.settings import ClientSettings
from shared.security import ROLE_ADMIN, ROLE_USER, User, require_role

logger = logging.getLogger(__name__)

router = APIRouter(tags=["config"])

# Starlette enables autoescaping for these templates.
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def _flatten_for_display(value: Any, prefix: str = "") -> list[tuple[str, Any]]:
    if isinstance(value, dict):
        rows: list[tuple[str, Any]] = []
        for key, child in value.items():
            rows.extend(_flatten_for_display(child, f"{prefix}.{key}" if prefix else key))
        return rows
    return [(prefix, value)]


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    _user: User = Depends(require_role(ROLE_USER)),
    settings: ClientSettings = Depends(get_client_settings),
    properties: Optional[DemoProperties] = Depends(get_demo_properties),
) -> HTMLResponse:
    """Human-readable rendering of the bound configuration."""

    data = properties.model_dump(by_alias=True) if properties is not None else {}
    return templates.TemplateResponse(
        request,
        "config-display.html",
        {
            "environment": settings.environment,
            "rows": _flatten_for_display(data, "demo"),
            "timestamp": datetime.now(),
        },
    )


@router.get(
    "/api/config",
    response_model=ConfigResponse,
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "environment": "DEV",
                        "service": {
                            "name": "demo-service-dev",
                            "parameters": {"a": "dev-a", "b": "dev-b", "c": "dev-c"},
                            "database": {"url": "jdbc:h2:mem:devdb", "username": "dev_user"},
                            "features": {"featureX": True, "featureY": False, "featureZ": True},
                        },
                        "common": {"version": "1.0.0", "author": "Platform Team", "created": "2024-01-15"},
                        "timestamp": "2026-10-19T12:00:00.000000",
                    }
                }
            }
        }
    },
)
async def get_config(
    _user: User = Depends(require_role(ROLE_USER)),
    settings: ClientSettings = Depends(get_client_settings),
    properties: Optional[DemoProperties] = Depends(get_demo_properties),
) -> ConfigResponse:
    return ConfigResponse(
        environment=settings.environment,
        service=properties.service if properties is not None else None,
        common=properties.common if properties is not None else None,
        timestamp=datetime.now(),
    )


@router.get("/health", response_model=HealthResponse)
async def health(
    settings: ClientSettings = Depends(get_client_settings),
    properties: Optional[DemoProperties] = Depends(get_demo_properties),
) -> HealthResponse:
    """Liveness. No authentication."""

    return HealthResponse(
        environment=settings.environment,
        config_loaded=properties is not None,
        timestamp=datetime.now(),
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    request: Request,
    user: User = Depends(require_role(ROLE_ADMIN)),
    client: ConfigServerClient = Depends(get_config_server_client),
) -> RefreshResponse:
    """Re-poll the config server and replace the bound configuration."""

    properties, sources = await load_demo_properties(client)
    request.app.state.demo_properties = properties
    logger.info("Configuration refreshed by %s from %d property sources", user.username, len(sources))
    return RefreshResponse(refreshed=True, property_sources=sources)
