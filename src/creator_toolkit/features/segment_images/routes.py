"""Segment image tool endpoints.

Prefix: ``/tools``
"""

from fastapi import APIRouter, Depends

from creator_toolkit.features.auth.dependencies import get_current_user
from creator_toolkit.features.segment_images import logic
from creator_toolkit.features.segment_images.models import (
    RegenerateImageRequest,
    SegmentImagesRequest,
    SegmentImagesResult,
)
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.storage_factory import get_tool_context

router = APIRouter(prefix="/tools", tags=["segment-images"])


@router.post("/segment-images", response_model=SegmentImagesResult)
async def generate_segment_images(
    request: SegmentImagesRequest,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await logic.generate_segment_images(ctx, user["sub"], request)


@router.post("/segment-images/regenerate", response_model=SegmentImagesResult)
async def regenerate_segment_image(
    request: RegenerateImageRequest,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await logic.regenerate_segment_image(
        ctx, user["sub"], request.segment, request.style_settings
    )
