"""Models for saved database connection profiles."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from restodb.models.common import ApiModel


class AuthenticationMode(str, Enum):
    """How the driver authenticates against the database server."""

    SQL_CREDENTIAL = "SQL Server Authentication"
    PLATFORM_CREDENTIAL = "Windows Authentication"


class ConnectionProfileRequest(ApiModel):
    """Request to save or test a connection."""

    name: str = Field(..., description="Connection name", min_length=1, max_length=100)
    server: str = Field(..., description="Server address (host, host,port or host:port)", min_length=1)
    authentication: AuthenticationMode = Field(..., description="Authentication mode")
    username: str = Field(..., description="Database username", min_length=1)
    password: str = Field(..., description="Database password", min_length=1)
    database: str = Field(..., description="Database name", min_length=1)
    save_credentials: bool = Field(default=False, description="Remember credentials")


class ConnectionProfileUpdate(ApiModel):
    """Partial update of a saved connection; omitted fields keep their value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    server: Optional[str] = Field(default=None, min_length=1)
    authentication: Optional[AuthenticationMode] = None
    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=1)
    database: Optional[str] = Field(default=None, min_length=1)
    save_credentials: Optional[bool] = None


class ConnectionProfile(ConnectionProfileRequest):
    """A stored connection profile, credentials included. Never returned by the API."""

    id: int
    created_at: datetime


class ConnectionProfileResponse(ApiModel):
    """Connection profile as returned by the API (no password)."""

    id: int
    name: str
    server: str
    authentication: AuthenticationMode
    username: str
    database: str
    save_credentials: bool
    created_at: datetime

    @classmethod
    def from_profile(cls, profile: ConnectionProfile) -> "ConnectionProfileResponse":
        return cls.model_validate(profile.model_dump(exclude={"password"}))


class ConnectionTestResponse(ApiModel):
    """Outcome of a connection test."""

    message: str


class TableInfo(ApiModel):
    """A table or view reported by the database catalog."""

    name: str
    schema_name: str = Field(..., alias="schema")
    type: str
