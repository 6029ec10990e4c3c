from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Keys under this prefix are bound into DemoProperties (e.g. `demo.service.name`).
CONFIG_PREFIX = "demo"


class _BoundModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Parameters(_BoundModel):
    a: Optional[str] = None
    b: Optional[str] = None
    c: Optional[str] = None


class Database(_BoundModel):
    url: Optional[str] = None
    username: Optional[str] = None


class Features(_BoundModel):
    feature_x: Optional[bool] = Field(default=None, alias="featureX")
    feature_y: Optional[bool] = Field(default=None, alias="featureY")
    feature_z: Optional[bool] = Field(default=None, alias="featureZ")


class Service(_BoundModel):
    name: Optional[str] = None
    parameters: Optional[Parameters] = None
    database: Optional[Database] = None
    features: Optional[Features] = None


class Common(_BoundModel):
    version: Optional[str] = None
    author: Optional[str] = None
    created: Optional[str] = None


class DemoProperties(_BoundModel):
    service: Optional[Service] = None
    common: Optional[Common] = None


class ConfigResponse(BaseModel):
    environment: str
    service: Optional[Service] = None
    common: Optional[Common] = None
    timestamp: datetime


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "UP"
    environment: str
    config_loaded: bool = Field(..., alias="configLoaded")
    timestamp: datetime


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refreshed: bool
    property_sources: list[str] = Field(default_factory=list, alias="propertySources")
