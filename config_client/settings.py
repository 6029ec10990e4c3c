from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_CONFIG_SERVER_URI = "http://localhost:8888"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ClientSettings:
    config_server_uri: str = DEFAULT_CONFIG_SERVER_URI
    application: str = "demo"
    profile: str = "dev"
    label: Optional[str] = None
    username: str = "config-user"
    password: str = field(default="config-pass", repr=False)
    environment: str = "DEV"
    fail_fast: bool = False
    timeout_seconds: float = 10.0

    @staticmethod
    def from_env() -> "ClientSettings":
        profile = (os.getenv("CONFIG_CLIENT_PROFILE") or "dev").strip()
        raw_timeout = (os.getenv("CONFIG_CLIENT_TIMEOUT_SECONDS") or "").strip()
        try:
            timeout_seconds = float(raw_timeout) if raw_timeout else 10.0
        except ValueError as exc:
            raise ValueError("CONFIG_CLIENT_TIMEOUT_SECONDS must be a number") from exc

        settings = ClientSettings(
            config_server_uri=(os.getenv("CONFIG_SERVER_URI") or DEFAULT_CONFIG_SERVER_URI).strip().rstrip("/"),
            application=(os.getenv("CONFIG_CLIENT_APPLICATION") or "demo").strip(),
            profile=profile,
            label=(os.getenv("CONFIG_CLIENT_LABEL") or "").strip() or None,
            username=os.getenv("CONFIG_CLIENT_USERNAME") or "config-user",
            password=os.getenv("CONFIG_CLIENT_PASSWORD") or "config-pass",
            # The two demo deployments were tagged DEV and TEST after their profile.
            environment=(os.getenv("CONFIG_CLIENT_ENVIRONMENT") or profile.upper()).strip(),
            fail_fast=(os.getenv("CONFIG_CLIENT_FAIL_FAST") or "").strip().lower() in _TRUE_VALUES,
            timeout_seconds=timeout_seconds,
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not self.config_server_uri.startswith(("http://", "https://")):
            raise ValueError(f"CONFIG_SERVER_URI must be an http(s) URL, got {self.config_server_uri!r}")
        if not self.application:
            raise ValueError("CONFIG_CLIENT_APPLICATION must not be empty")
        if not self.profile:
            raise ValueError("CONFIG_CLIENT_PROFILE must not be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("CONFIG_CLIENT_TIMEOUT_SECONDS must be > 0")

    def environment_path(self) -> str:
        path = f"/{self.application}/{self.profile}"
        if self.label:
            path += f"/{self.label}"
        return path
