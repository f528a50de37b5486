from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, SecretStr


class ProxySettings(BaseModel):
    enabled: bool = False
    url: str | None = None
    username: str | None = None
    password: SecretStr | None = None

    model_config = {"extra": "forbid"}


class LogSettings(BaseModel):
    level: str = "INFO"
    dir: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    backup_count: int = Field(default=5, ge=0)

    model_config = {"extra": "forbid"}


class ExchangeCredentials(BaseModel):
    api_key: SecretStr
    api_secret: SecretStr

    model_config = {"extra": "forbid"}


class ExchangeSettings(BaseModel):
    name: str = "bitteam"
    base_url: str = "https://bit.team"
    history_url: str = "https://history.bit.team"
    timeout: float = Field(default=10.0, gt=0)
    credentials: ExchangeCredentials | None = None
    options: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class Settings(BaseModel):
    env: str = "dev"
    log: LogSettings = Field(default_factory=LogSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)

    model_config = {"extra": "forbid"}

    def redacted(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        creds = data.get("exchange", {}).get("credentials")
        if isinstance(creds, dict):
            if "api_key" in creds:
                creds["api_key"] = "***"
            if "api_secret" in creds:
                creds["api_secret"] = "***"
        proxy = data.get("proxy")
        if isinstance(proxy, dict) and proxy.get("password") is not None:
            proxy["password"] = "***"
        return data
