"""
Whitelist endpoints for API v1.

These routes let anyone register a wallet address, check whether an
address is registered, page through the registrations, read simple
statistics and remove an address.  Error responses are produced by the
exception handlers installed in ``main``; handlers here only shape the
successful response bodies.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from whitelist_api.app.schemas.whitelist import (
    CheckResponse,
    ListResponse,
    MessageResponse,
    RegisterResponse,
    RegistrationCreate,
    StatsResponse,
)
from whitelist_api.app.services.whitelist_service import WhitelistService

router = APIRouter()


def get_whitelist_service(request: Request) -> WhitelistService:
    """Dependency returning the service built by ``create_app``."""
    return request.app.state.whitelist_service


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_address(
    payload: RegistrationCreate,
    request: Request,
    service: WhitelistService = Depends(get_whitelist_service),
) -> RegisterResponse:
    """Register a wallet address.

    The client IP and user agent are stored with the registration but
    never returned.  Returns 409 with the existing entry when the
    address is already registered, in any letter case.
    """
    client_ip = request.client.host if request.client else None
    registration = await service.register(
        payload.address,
        client_ip=client_ip,
        user_agent=request.headers.get("user-agent"),
    )
    return RegisterResponse(address=registration.address, registered_at=registration.registered_at)


@router.get("/check/{address}", response_model=CheckResponse)
async def check_address(
    address: str,
    service: WhitelistService = Depends(get_whitelist_service),
) -> CheckResponse:
    """Report whether ``address`` is on the whitelist."""
    registration = await service.check(address)
    return CheckResponse(is_registered=registration is not None, registration=registration)


@router.get("/list", response_model=ListResponse)
async def list_registrations(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: WhitelistService = Depends(get_whitelist_service),
) -> ListResponse:
    """Return registrations, most recent first.

    - **page**: 1-based page number, defaults to 1.
    - **limit**: page size, defaults to 50.

    Non-numeric values fall back to the defaults.
    """
    result = await service.list_registrations(page=page, limit=limit)
    return ListResponse(
        count=len(result.registrations),
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
        registrations=result.registrations,
    )


@router.get("/stats", response_model=StatsResponse)
async def whitelist_stats(
    service: WhitelistService = Depends(get_whitelist_service),
) -> StatsResponse:
    """Return total, today's (UTC) and last seven days' registration counts."""
    return StatsResponse(stats=await service.stats())


@router.delete("/{address}", response_model=MessageResponse)
async def remove_address(
    address: str,
    service: WhitelistService = Depends(get_whitelist_service),
) -> MessageResponse:
    """Remove an address from the whitelist, or 404 if it is not present."""
    await service.remove(address)
    return MessageResponse(message="Address removed from whitelist")
