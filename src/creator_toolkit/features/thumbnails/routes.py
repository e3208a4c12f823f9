"""Thumbnail tool endpoint.

Prefix: ``/tools``
"""

from fastapi import APIRouter, Depends

from creator_toolkit.features.auth.dependencies import get_current_user
from creator_toolkit.features.thumbnails import logic
from creator_toolkit.features.thumbnails.models import ThumbnailRequest, ThumbnailResult
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.storage_factory import get_tool_context

router = APIRouter(prefix="/tools", tags=["thumbnails"])


@router.post("/thumbnails", response_model=ThumbnailResult)
async def generate_thumbnails(
    request: ThumbnailRequest,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await logic.generate_thumbnails(ctx, user["sub"], request)
