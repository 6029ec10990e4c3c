from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PropertySource(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Layer name, e.g. 'demo-dev' or 'application'")
    source: dict[str, Any] = Field(default_factory=dict, description="Flat dotted key -> value mapping")


class Environment(BaseModel):
    """Ordered stack of property sources, most specific first."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    profiles: list[str]
    label: Optional[str] = None
    version: Optional[str] = None
    state: Optional[str] = None
    property_sources: list[PropertySource] = Field(default_factory=list, alias="propertySources")


class ServerHealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "UP"
    bucket: str
    bucket_reachable: bool = Field(..., alias="bucketReachable")
    detail: Optional[str] = None
