"""
Pydantic schemas for whitelist registrations.

Only the address and the registration time are ever returned to
clients.  The IP address and user agent captured at registration are
stored but intentionally absent from every read schema.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class CamelModel(BaseModel):
    model_config = {
        "populate_by_name": True,
    }


class RegistrationCreate(BaseModel):
    """Body of ``POST /register``.

    ``address`` is typed loosely so that a missing or non-string value
    reaches the service and is reported as an invalid wallet address
    instead of a generic validation error.
    """

    address: Optional[Any] = Field(None, examples=["0xabcdef0123456789abcdef0123456789abcdef01"])


class RegistrationRead(CamelModel):
    """Public view of a registration."""

    address: str = Field(..., examples=["0xabcdef0123456789abcdef0123456789abcdef01"])
    registered_at: datetime = Field(..., alias="registeredAt")


class RegistrationPage(BaseModel):
    """One page of registrations as returned by the service."""

    registrations: List[RegistrationRead]
    total: int
    page: int
    limit: int
    total_pages: int


class WhitelistStats(CamelModel):
    total: int
    today: int
    last_week: int = Field(..., alias="lastWeek")


class RegisterResponse(CamelModel):
    success: bool = True
    message: str = "Successfully registered"
    address: str
    registered_at: datetime = Field(..., alias="registeredAt")


class CheckResponse(CamelModel):
    success: bool = True
    is_registered: bool = Field(..., alias="isRegistered")
    registration: Optional[RegistrationRead] = None


class ListResponse(CamelModel):
    success: bool = True
    count: int
    total: int
    page: int
    total_pages: int = Field(..., alias="totalPages")
    registrations: List[RegistrationRead]


class StatsResponse(BaseModel):
    success: bool = True
    stats: WhitelistStats


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    registration: Optional[RegistrationRead] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    database: Optional[str] = None
    registrations: Optional[int] = None
    error: Optional[str] = None
