"""Support message routes.

Support is open to signed-out users; senders are metered by email.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from sport_weather.api.dependencies import get_support_policy, get_support_service
from sport_weather.policies.support_messages import SupportMessagePolicy
from sport_weather.support.email import SupportTicket
from sport_weather.support.service import SupportService

router = APIRouter()


class SupportSentResponse(BaseModel):
    status: str
    remaining: int
    capacity: int


class LimitInfoResponse(BaseModel):
    message: str


@router.post("", response_model=SupportSentResponse)
async def send_support_message(
    ticket: SupportTicket,
    service: SupportService = Depends(get_support_service),
) -> SupportSentResponse:
    """Send a support message to the team."""
    decision = await service.send_support_message(ticket)
    return SupportSentResponse(
        status="sent",
        remaining=decision.remaining,
        capacity=decision.capacity,
    )


@router.get("/limits", response_model=LimitInfoResponse)
async def get_support_limits(
    email: str = Query(..., max_length=254),
    policy: SupportMessagePolicy = Depends(get_support_policy),
) -> LimitInfoResponse:
    """Describe how many support messages `email` may still send."""
    message = await policy.get_limit_info(email)
    return LimitInfoResponse(message=message)
