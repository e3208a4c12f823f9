"""Stored asset maintenance endpoints.

Prefix: ``/assets``
"""

import asyncio
from datetime import timedelta

from fastapi import APIRouter, Depends

from creator_toolkit.features.assets.models import SweepRequest, SweepResult
from creator_toolkit.features.assets.relocator import sweep_expired_assets
from creator_toolkit.features.auth.dependencies import require_admin
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.storage_factory import get_tool_context

router = APIRouter(prefix="/assets", tags=["assets"])


@router.post("/sweep", response_model=SweepResult)
async def sweep_assets(
    request: SweepRequest,
    admin: dict = Depends(require_admin),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await asyncio.to_thread(
        sweep_expired_assets,
        ctx.objects,
        request.bucket,
        request.prefix,
        name_prefix=request.name_prefix,
        max_age=timedelta(hours=request.max_age_hours),
    )
