# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
Pydantic models for the pytyrant client.

Provides validated configuration for client connections.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 1978


class ClientConfig(BaseModel):
    """Configuration for a Tyrant client connection."""

    model_config = ConfigDict(validate_assignment=True)

    host: str = Field(default=DEFAULT_HOST, description="Server host name or address")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    connect_timeout_ms: int = Field(default=10000, ge=100, le=300000)
    request_timeout_ms: int | None = Field(
        default=None,
        ge=1,
        description="Socket timeout for a single request; None blocks until the response arrives",
    )
    tcp_nodelay: bool = True

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Host must not be empty")
        return v

    @property
    def address(self) -> str:
        """host:port of the configured server."""
        return f"{self.host}:{self.port}"
