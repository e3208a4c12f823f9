"""Transcript tool endpoint.

Prefix: ``/tools``
"""

from fastapi import APIRouter, Depends

from creator_toolkit.features.auth.dependencies import get_current_user
from creator_toolkit.features.transcripts import logic
from creator_toolkit.features.transcripts.models import TranscriptRequest, TranscriptResult
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.storage_factory import get_tool_context

router = APIRouter(prefix="/tools", tags=["transcripts"])


@router.post("/transcripts", response_model=TranscriptResult)
async def transcribe(
    request: TranscriptRequest,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await logic.transcribe(ctx, user["sub"], request)
