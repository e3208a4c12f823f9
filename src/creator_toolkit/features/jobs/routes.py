"""Job history and cancellation endpoints.

Prefix: ``/jobs``
"""

import asyncio
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException

from creator_toolkit.features.auth.dependencies import get_current_user
from creator_toolkit.features.jobs.models import (
    TERMINAL_STATUSES,
    CancelResponse,
    JobRecord,
    JobStatus,
    utcnow,
)
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.errors import JobFinalizedError, VendorRequestError
from creator_toolkit.platform.logging_config import get_logger
from creator_toolkit.platform.storage_factory import get_tool_context

logger = get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])

STALE_AFTER = timedelta(minutes=5)

_TERMINAL_VALUES = {s.value for s in TERMINAL_STATUSES}


def _owned_job(ctx: ToolContext, job_id: str, owner: str) -> dict:
    job = ctx.jobs.get_job(job_id)
    # Other users' jobs are reported as missing
    if not job or job.get("user_id") != owner:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


# ---------------------------------------------------------------------------
# GET /jobs
# ---------------------------------------------------------------------------


@router.get("", response_model=list[JobRecord])
async def list_jobs(
    status: str | None = None,
    tool_id: str | None = None,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    owner = user["sub"]
    if status == "active":
        failed = await asyncio.to_thread(ctx.jobs.fail_stale_jobs, owner, STALE_AFTER)
        if failed:
            logger.info("stale_jobs_failed", user_id=owner, count=failed)
        return await asyncio.to_thread(ctx.jobs.list_jobs, owner, tool_id, True)
    if status == "history":
        return await asyncio.to_thread(ctx.jobs.list_jobs, owner, tool_id, False)
    if status is not None:
        raise HTTPException(status_code=400, detail="status must be 'active' or 'history'")
    return await asyncio.to_thread(ctx.jobs.list_jobs, owner, tool_id, None)


# ---------------------------------------------------------------------------
# GET /jobs/batches/{batch_id} (fixed-path routes BEFORE /{job_id})
# ---------------------------------------------------------------------------


@router.get("/batches/{batch_id}", response_model=list[JobRecord])
async def list_batch(
    batch_id: str,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    rows = await asyncio.to_thread(ctx.jobs.list_batch, batch_id)
    return [row for row in rows if row.get("user_id") == user["sub"]]


# ---------------------------------------------------------------------------
# GET /jobs/{job_id}
# ---------------------------------------------------------------------------


@router.get("/{job_id}", response_model=JobRecord)
async def get_job(
    job_id: str,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await asyncio.to_thread(_owned_job, ctx, job_id, user["sub"])


# ---------------------------------------------------------------------------
# POST /jobs/{job_id}/cancel
# ---------------------------------------------------------------------------


def _cancel(ctx: ToolContext, job_id: str, owner: str) -> CancelResponse:
    job = _owned_job(ctx, job_id, owner)
    if job.get("status") in _TERMINAL_VALUES:
        raise HTTPException(status_code=409, detail="Job already finished")

    try:
        ctx.vendor(job["service_id"]).cancel(job_id)
    except VendorRequestError as e:
        logger.warning("job_vendor_cancel_failed", job_id=job_id, error=str(e))
        raise HTTPException(status_code=502, detail=str(e))

    now = utcnow().isoformat()
    try:
        ctx.jobs.update_job(
            job_id,
            {
                "status": JobStatus.CANCELED.value,
                "error": "Canceled by user",
                "completed_at": now,
            },
        )
    except JobFinalizedError:
        raise HTTPException(status_code=409, detail="Job already finished")

    logger.info("job_canceled", job_id=job_id, user_id=owner)
    return CancelResponse(message="Job canceled", job_id=job_id, status=JobStatus.CANCELED)


@router.post("/{job_id}/cancel", response_model=CancelResponse)
async def cancel_job(
    job_id: str,
    user: dict = Depends(get_current_user),
    ctx: ToolContext = Depends(get_tool_context),
):
    return await asyncio.to_thread(_cancel, ctx, job_id, user["sub"])
