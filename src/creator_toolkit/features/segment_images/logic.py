"""Script-to-video segment images.

One image per script segment, generated concurrently. Segments settle
independently: the batch succeeds when at least one image was produced, and
only successful images are charged, in a single deduction after the batch.

A vendor failure classified as a content-policy rejection is retried once
with a sanitized prompt and a higher safety tolerance. Any other failure is
final for that segment.
"""

import asyncio
import re
import time

from creator_toolkit.features.credits.logic import charge, ensure_affordable
from creator_toolkit.features.jobs.batch import gather_partial
from creator_toolkit.features.jobs.failures import classify_failure, is_safety_retryable
from creator_toolkit.features.jobs.logic import failure_result, run_job
from creator_toolkit.features.jobs.models import IMAGE_POLICY, JobRequest, new_batch_id
from creator_toolkit.features.prompts import STYLE_PHRASES
from creator_toolkit.features.segment_images.models import (
    FailedSegment,
    GeneratedImage,
    Segment,
    SegmentImagesRequest,
    SegmentImagesResult,
    StyleSettings,
)
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.errors import (
    InvalidRequestError,
    ToolError,
    VendorFailureError,
)
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

TOOL_ID = "script-to-video"
BUCKET = "script-videos"

CREDITS_PER_IMAGE = {"draft": 3, "standard": 4, "premium": 6}

# (safety_tolerance, sanitize) per attempt
ATTEMPTS = ((4, False), (6, True))

QUALITY_PHRASES = {
    "draft": "",
    "standard": "high quality, well composed",
    "premium": "ultra high quality, masterpiece, perfect composition, award winning",
}

CINEMATIC_PHRASE = (
    "cinematic composition, professional storytelling, diverse camera angles, "
    "engaging visual narrative"
)
CONSISTENCY_PHRASE = (
    "maintain character consistency, same character throughout series, "
    "consistent visual identity"
)

_QUICK_FIXES = {
    "killed it": "succeeded",
    "dead serious": "very serious",
    "shooting": "filming",
    "shot": "scene",
}

SAFETY_TAGS = (
    "professional",
    "appropriate",
    "family-friendly",
    "suitable for all audiences",
    "no violence",
    "no explicit content",
    "safe for work",
)


def enhance_prompt_for_style(base_prompt: str, style: StyleSettings) -> str:
    parts = [
        base_prompt.strip(),
        CINEMATIC_PHRASE,
        CONSISTENCY_PHRASE,
        STYLE_PHRASES[style.visual_style],
        QUALITY_PHRASES[style.quality],
    ]
    return ", ".join(part for part in parts if part)


def sanitize_prompt_for_safety(prompt: str) -> str:
    """Replace a few ambiguous phrases and append any missing safety tags."""
    sanitized = prompt
    for pattern, replacement in _QUICK_FIXES.items():
        sanitized = re.sub(rf"\b{re.escape(pattern)}\b", replacement, sanitized, flags=re.IGNORECASE)

    lowered = sanitized.lower()
    missing = [tag for tag in SAFETY_TAGS if tag not in lowered]
    if missing:
        sanitized = f"{sanitized}, {', '.join(missing)}"
    return sanitized


def credits_per_image(quality: str) -> int:
    return CREDITS_PER_IMAGE.get(quality, CREDITS_PER_IMAGE["standard"])


async def _generate_segment(
    ctx: ToolContext,
    user_id: str,
    batch_id: str,
    segment: Segment,
    style: StyleSettings,
) -> GeneratedImage:
    """Generate and store one segment image, retrying once on a safety rejection.

    Raises:
        InvalidRequestError: If the segment has no prompt.
        VendorFailureError: If the vendor failed and no retry applies.
        ToolError: Submission, timeout, or relocation failures from ``run_job``.
    """
    if not segment.image_prompt.strip():
        raise InvalidRequestError(f"Segment {segment.id} has no image prompt")

    started = time.monotonic()
    enhanced = enhance_prompt_for_style(segment.image_prompt, style)
    log = logger.bind(segment_id=segment.id, batch_id=batch_id)

    for attempt, (tolerance, sanitize) in enumerate(ATTEMPTS, start=1):
        prompt = sanitize_prompt_for_safety(enhanced) if sanitize else enhanced
        if attempt > 1:
            log.info("segment_image_retry_sanitized", attempt=attempt, safety_tolerance=tolerance)

        outcome = await run_job(
            ctx,
            JobRequest(
                user_id=user_id,
                tool_id=TOOL_ID,
                model=ctx.settings.image_model,
                input={
                    "prompt": prompt,
                    "aspect_ratio": style.aspect_ratio,
                    "output_format": "png",
                    "safety_tolerance": tolerance,
                    "prompt_upsampling": style.quality == "premium",
                },
                batch_id=batch_id,
                identifier=segment.id,
                bucket=BUCKET,
                upsert=True,
            ),
            policy=IMAGE_POLICY,
        )

        if outcome.succeeded:
            return GeneratedImage(
                segment_id=segment.id,
                image_url=outcome.assets[0].url,
                prompt=prompt,
                prediction_id=outcome.record.id,
                generation_time_ms=int((time.monotonic() - started) * 1000),
                attempts=attempt,
            )

        category = classify_failure(outcome.error)
        log.warning(
            "segment_image_failed",
            attempt=attempt,
            job_id=outcome.record.id,
            category=category.value,
            error=outcome.error,
        )
        if not is_safety_retryable(category) or attempt == len(ATTEMPTS):
            raise VendorFailureError(
                f"Image generation failed after {attempt} attempt(s): {outcome.error}",
                job_id=outcome.record.id,
                category=category.value,
            )


async def generate_segment_images(
    ctx: ToolContext, user_id: str, request: SegmentImagesRequest
) -> SegmentImagesResult:
    """Generate one image per segment with a partial-success join."""
    started = time.monotonic()
    batch_id = request.batch_id or new_batch_id()
    style = request.style_settings
    per_image = credits_per_image(style.quality)

    try:
        await asyncio.to_thread(
            ensure_affordable, ctx.credits, user_id, per_image * len(request.segments)
        )
    except ToolError as e:
        return failure_result(SegmentImagesResult, e, batch_id=batch_id)

    logger.info(
        "segment_images_started",
        batch_id=batch_id,
        segments=len(request.segments),
        visual_style=style.visual_style,
        quality=style.quality,
    )
    results = await gather_partial(
        _generate_segment(ctx, user_id, batch_id, segment, style)
        for segment in request.segments
    )

    generated: list[GeneratedImage] = []
    failed: list[FailedSegment] = []
    for segment, result in zip(request.segments, results):
        if isinstance(result, GeneratedImage):
            generated.append(result)
        elif isinstance(result, ToolError):
            failed.append(
                FailedSegment(
                    segment_id=segment.id,
                    error=str(result),
                    prompt=segment.image_prompt,
                    error_kind=result.kind,
                )
            )
        else:
            raise result

    warnings: list[str] = []
    credits_used = per_image * len(generated)
    remaining = None
    if credits_used:
        deduction = await asyncio.to_thread(
            charge,
            ctx.credits,
            user_id,
            credits_used,
            TOOL_ID,
            {"batch_id": batch_id, "images": len(generated)},
        )
        remaining = deduction.remaining
        if not deduction.success:
            warnings.append(f"Credit deduction failed: {deduction.error}")

    total_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "segment_images_finished",
        batch_id=batch_id,
        generated=len(generated),
        failed=len(failed),
        credits_used=credits_used,
        total_ms=total_ms,
    )
    return SegmentImagesResult(
        success=bool(generated),
        error=None if generated else "No images were generated",
        error_kind=None if generated else "vendor_failure",
        batch_id=batch_id,
        generated_images=generated,
        failed_segments=failed,
        partial_failure=bool(failed),
        credits_used=credits_used,
        remaining_credits=remaining,
        total_generation_time_ms=total_ms,
        warnings=warnings,
    )


async def regenerate_segment_image(
    ctx: ToolContext, user_id: str, segment: Segment, style: StyleSettings
) -> SegmentImagesResult:
    """Regenerate a single segment image in its own batch."""
    return await generate_segment_images(
        ctx,
        user_id,
        SegmentImagesRequest(
            segments=[segment],
            style_settings=style,
            batch_id=f"regenerate_{new_batch_id()}",
        ),
    )
