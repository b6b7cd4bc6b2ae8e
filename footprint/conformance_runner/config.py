"""Runtime settings read from the environment."""

import os
from typing import Literal

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Settings shared by the CLI, the orchestrator and the web service."""

    conformance_api: str = Field(
        default="http://localhost:8080",
        description="Public base URL where this service receives webhooks",
    )
    testcase_timeout: float = Field(
        default=5.0, gt=0, description="Per-request timeout in seconds"
    )
    storage_backend: Literal["memory", "sql"] = Field(
        default="memory", description="Result store implementation"
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///conformance.db",
        description="SQLAlchemy async URL for the sql backend",
    )
    jwt_secret: str = Field(
        default="default_secret", description="Secret signing listener tokens"
    )
    listener_client_id: str = Field(
        default="test_client_id", description="Client id accepted by /auth/token"
    )
    listener_client_secret: str = Field(
        default="test_client_secret",
        description="Client secret accepted by /auth/token",
    )
    port: int = Field(default=8080, description="Port of the web service")
    log_level: str = Field(default="INFO", description="Root logging level")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings, letting environment variables override defaults."""
        env_names = {
            "conformance_api": "CONFORMANCE_API",
            "testcase_timeout": "TESTCASE_TIMEOUT",
            "storage_backend": "STORAGE_BACKEND",
            "database_url": "DATABASE_URL",
            "jwt_secret": "JWT_SECRET",
            "listener_client_id": "LISTENER_CLIENT_ID",
            "listener_client_secret": "LISTENER_CLIENT_SECRET",
            "port": "PORT",
            "log_level": "LOG_LEVEL",
        }
        values = {
            field: os.environ[name]
            for field, name in env_names.items()
            if name in os.environ
        }
        return cls.model_validate(values)
