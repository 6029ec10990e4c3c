from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from config_server.models.environment import Environment
from config_server.services.dependencies import get_environment_repository
from config_server.services.environment_repository import EnvironmentRepository
from shared.security import ROLE_USER, User, require_role

router = APIRouter(tags=["environment"])

ENVIRONMENT_EXAMPLE = {
    "name": "demo",
    "profiles": ["dev"],
    "label": None,
    "version": None,
    "state": None,
    "propertySources": [
        {
            "name": "demo-dev",
            "source": {
                "demo.service.name": "demo-service-dev",
                "demo.service.features.featureX": True,
            },
        },
        {
            "name": "application",
            "source": {
                "demo.common.version": "1.0.0",
                "demo.common.author": "Platform Team",
            },
        },
    ],
}


@router.get(
    "/{application}/{profile}",
    response_model=Environment,
    responses={200: {"content": {"application/json": {"example": ENVIRONMENT_EXAMPLE}}}},
)
async def get_environment(
    application: str = Path(..., min_length=1),
    profile: str = Path(..., min_length=1),
    _user: User = Depends(require_role(ROLE_USER)),
    repository: EnvironmentRepository = Depends(get_environment_repository),
) -> Environment:
    """Layered configuration for `{application}-{profile}.yml` plus the global `application.yml`."""

    return await repository.find_one(application, profile, None)


@router.get("/{application}/{profile}/{label}", response_model=Environment)
async def get_labelled_environment(
    application: str = Path(..., min_length=1),
    profile: str = Path(..., min_length=1),
    label: str = Path(..., min_length=1),
    _user: User = Depends(require_role(ROLE_USER)),
    repository: EnvironmentRepository = Depends(get_environment_repository),
) -> Environment:
    """Same as the unlabelled endpoint; the label is echoed back in the response."""

    return await repository.find_one(application, profile, label)
