"""Credit balance endpoints.

Prefix: ``/credits``
"""

import asyncio

from fastapi import APIRouter, Depends

from creator_toolkit.features.auth.dependencies import get_current_user, require_admin
from creator_toolkit.features.credits.models import CreditBalance, RenewalResponse
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.logging_config import get_logger
from creator_toolkit.platform.storage_factory import get_tool_context

logger = get_logger(__name__)

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("/balance", response_model=CreditBalance)
async def get_balance(
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await asyncio.to_thread(ctx.credits.get_balance, user["sub"])


@router.post("/renew", response_model=RenewalResponse)
async def renew_credits(
    admin: dict = Depends(require_admin),
    ctx: ToolContext = Depends(get_tool_context),
):
    renewed = await asyncio.to_thread(ctx.credits.renew_expired)
    logger.info("credits_renewed", count=renewed, admin=admin["sub"])
    return RenewalResponse(renewed=renewed)
