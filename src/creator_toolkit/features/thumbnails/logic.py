"""Thumbnail machine: N variations of one prompt, all-or-nothing.

Each variation is its own vendor job so a slow or failed variation can be
told apart from the others. The first failure cancels the remaining
variations and fails the whole request. The estimate is checked up front and
credits are deducted once, only after every variation succeeded.
"""

import asyncio
import time

from creator_toolkit.features.credits.logic import charge, ensure_affordable
from creator_toolkit.features.jobs.batch import gather_all_or_nothing
from creator_toolkit.features.jobs.failures import classify_failure
from creator_toolkit.features.jobs.logic import failure_result, run_job
from creator_toolkit.features.jobs.models import (
    IMAGE_POLICY,
    JobOutcome,
    JobRequest,
    new_batch_id,
)
from creator_toolkit.features.prompts import STYLE_PHRASES
from creator_toolkit.features.thumbnails.models import (
    Thumbnail,
    ThumbnailRequest,
    ThumbnailResult,
)
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.errors import ToolError, VendorFailureError
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

TOOL_ID = "thumbnail-machine"
BUCKET = "images"
CREDITS_PER_THUMBNAIL = 2

# flux-thumbnails-v2
THUMBNAIL_MODEL_VERSION = "be1f9d9a43c18c9c0d8c9024d285aa5fa343914648a7fe35be291ed04a9dfeb0"


def build_prompt(request: ThumbnailRequest) -> str:
    if request.style:
        return f"{request.prompt.strip()}, {STYLE_PHRASES[request.style]}"
    return request.prompt.strip()


async def _generate_variation(
    ctx: ToolContext,
    user_id: str,
    batch_id: str,
    request: ThumbnailRequest,
    index: int,
) -> JobOutcome:
    payload = {
        "prompt": build_prompt(request),
        "aspect_ratio": request.aspect_ratio,
        "num_outputs": 1,
        "guidance_scale": request.guidance_scale,
        "output_format": request.output_format,
    }
    if request.seed is not None:
        payload["seed"] = request.seed + index

    outcome = await run_job(
        ctx,
        JobRequest(
            user_id=user_id,
            tool_id=TOOL_ID,
            model=THUMBNAIL_MODEL_VERSION,
            input=payload,
            batch_id=batch_id,
            identifier=f"thumbnail_{index + 1}",
            bucket=BUCKET,
        ),
        policy=IMAGE_POLICY,
    )
    if not outcome.succeeded:
        raise VendorFailureError(
            f"Generation failed: {outcome.error or 'Unknown error'}",
            job_id=outcome.record.id,
            category=classify_failure(outcome.error).value,
        )
    return outcome


async def generate_thumbnails(
    ctx: ToolContext, user_id: str, request: ThumbnailRequest
) -> ThumbnailResult:
    """Generate ``num_outputs`` thumbnails; any failure fails the request."""
    started = time.monotonic()
    batch_id = new_batch_id()
    estimated = CREDITS_PER_THUMBNAIL * request.num_outputs

    try:
        await asyncio.to_thread(ensure_affordable, ctx.credits, user_id, estimated)
        logger.info(
            "thumbnails_started",
            batch_id=batch_id,
            num_outputs=request.num_outputs,
            style=request.style,
        )
        outcomes = await gather_all_or_nothing(
            _generate_variation(ctx, user_id, batch_id, request, i)
            for i in range(request.num_outputs)
        )
    except ToolError as e:
        return failure_result(ThumbnailResult, e, batch_id=batch_id)

    thumbnails = [
        Thumbnail(
            id=f"{batch_id}_{i + 1}",
            url=outcome.assets[0].url,
            variation_index=i + 1,
            batch_id=batch_id,
            prediction_id=outcome.record.id,
        )
        for i, outcome in enumerate(outcomes)
    ]
    credits_used = CREDITS_PER_THUMBNAIL * len(thumbnails)
    deduction = await asyncio.to_thread(
        charge,
        ctx.credits,
        user_id,
        credits_used,
        TOOL_ID,
        {"batch_id": batch_id, "thumbnails": len(thumbnails)},
    )
    warnings = [w for outcome in outcomes for w in outcome.warnings]
    if not deduction.success:
        warnings.append(f"Credit deduction failed: {deduction.error}")
    elapsed_ms = int((time.monotonic() - started) * 1000)

    logger.info("thumbnails_finished", batch_id=batch_id, count=len(thumbnails), ms=elapsed_ms)
    return ThumbnailResult(
        success=True,
        batch_id=batch_id,
        thumbnails=thumbnails,
        credits_used=credits_used,
        remaining_credits=deduction.remaining,
        generation_time_ms=elapsed_ms,
        warnings=warnings,
    )
