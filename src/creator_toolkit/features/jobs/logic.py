"""The create → poll → relocate → persist pipeline shared by every tool.

``run_job`` owns the whole lifecycle of one vendor job and its row. The row
is created only after the vendor accepted the submission and is written
exactly once with a terminal status.
"""

import asyncio
from typing import TypeVar

from creator_toolkit.features.assets.models import StoredAsset
from creator_toolkit.features.assets.relocator import relocate_asset
from creator_toolkit.features.credits.logic import charge, ensure_affordable
from creator_toolkit.features.jobs.models import (
    IMAGE_POLICY,
    JobOutcome,
    JobRecord,
    JobRequest,
    JobSnapshot,
    JobStatus,
    PollPolicy,
    ToolResult,
    utcnow,
)
from creator_toolkit.features.jobs.poller import poll_until_terminal
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.errors import (
    JobFinalizedError,
    RelocationError,
    ToolError,
)
from creator_toolkit.platform.logging_config import get_logger, log_context

logger = get_logger(__name__)

NO_OUTPUT_MESSAGE = "Vendor returned no output"
ABANDONED_MESSAGE = "Abandoned before completion"

ResultT = TypeVar("ResultT", bound=ToolResult)


def failure_result(result_cls: type[ResultT], exc: ToolError, **fields) -> ResultT:
    """Convert a ToolError into the ``{success: false, error}`` envelope."""
    logger.warning("tool_failed", error_kind=exc.kind, error=str(exc))
    return result_cls(success=False, error=str(exc), error_kind=exc.kind, **fields)


def _finalize(ctx: ToolContext, job_id: str, fields: dict) -> JobRecord:
    """Write the terminal fields for a row.

    A row already finalized elsewhere (explicit cancel, stale sweep) is left
    as it is and returned.
    """
    fields = {**fields, "completed_at": utcnow().isoformat()}
    try:
        row = ctx.jobs.update_job(job_id, fields)
    except JobFinalizedError:
        row = ctx.jobs.get_job(job_id)
        logger.info("job_already_finalized", job_id=job_id, status=row and row.get("status"))
    return JobRecord.model_validate(row)


def _relocate_outputs(
    ctx: ToolContext, request: JobRequest, urls: list[str]
) -> list[StoredAsset]:
    assets = []
    for i, url in enumerate(urls):
        identifier = request.identifier if len(urls) == 1 else f"{request.identifier}_{i + 1}"
        assets.append(
            relocate_asset(
                url,
                objects=ctx.objects,
                session=ctx.session,
                bucket=request.bucket,
                user_id=request.user_id,
                tool_id=request.tool_id,
                batch_id=request.batch_id,
                identifier=identifier,
                upsert=request.upsert,
                timeout=ctx.settings.http_timeout,
            )
        )
    return assets


async def run_job(
    ctx: ToolContext,
    request: JobRequest,
    *,
    cost: int = 0,
    policy: PollPolicy = IMAGE_POLICY,
) -> JobOutcome:
    """Submit one vendor job, poll it, store its outputs, and persist the row.

    Args:
        ctx: Ports to run against.
        request: What to submit and where to store results.
        cost: Credits deducted right after the vendor accepts the job. Pass
            0 when the caller charges for a whole batch itself.
        policy: Polling budget.

    Returns:
        The outcome. Vendor ``failed``/``canceled`` is returned, not raised.

    Raises:
        InsufficientCreditsError: Before submission, if ``cost`` is unaffordable.
        SubmissionError: If the vendor rejects the job. No row is written.
        PollTimeoutError: After the row is marked failed.
        VendorRequestError: If a status fetch fails, after the row is marked
            failed.
        RelocationError: After the row is marked failed. Credits already
            deducted are not refunded.
    """
    with log_context(
        user_id=request.user_id, tool_id=request.tool_id, batch_id=request.batch_id
    ):
        return await _run_job(ctx, request, cost, policy)


async def _run_job(
    ctx: ToolContext, request: JobRequest, cost: int, policy: PollPolicy
) -> JobOutcome:
    if cost > 0:
        await asyncio.to_thread(ensure_affordable, ctx.credits, request.user_id, cost)

    client = ctx.vendor(request.vendor)
    submitted = await asyncio.to_thread(client.submit, request.model, request.input)
    job_id = submitted.id
    log = logger.bind(job_id=job_id, vendor=request.vendor)
    log.info("job_submitted", model=request.model)

    record = JobRecord(
        id=job_id,
        user_id=request.user_id,
        tool_id=request.tool_id,
        service_id=request.vendor,
        model_version=request.model,
        batch_id=request.batch_id,
        input_data=request.input,
        created_at=submitted.created_at or utcnow(),
    )
    await asyncio.to_thread(ctx.jobs.create_job, record.model_dump(mode="json"))

    warnings: list[str] = []
    if cost > 0:
        deduction = await asyncio.to_thread(
            charge,
            ctx.credits,
            request.user_id,
            cost,
            request.tool_id,
            {"job_id": job_id, "batch_id": request.batch_id},
        )
        if not deduction.success:
            warnings.append(f"Credit deduction failed: {deduction.error}")

    def _on_update(snapshot: JobSnapshot) -> None:
        if snapshot.status != JobStatus.PROCESSING:
            return
        started = snapshot.started_at or utcnow()
        try:
            ctx.jobs.update_job(
                job_id, {"status": JobStatus.PROCESSING.value, "started_at": started.isoformat()}
            )
        except JobFinalizedError:
            log.info("job_update_skipped_finalized")

    try:
        snapshot = await poll_until_terminal(
            job_id,
            client.fetch,
            poll_interval=policy.poll_interval,
            max_wait=policy.max_wait,
            on_update=_on_update,
        )
    except ToolError as e:
        # Timeout or a failed status fetch: the row still gets its terminal write.
        await asyncio.to_thread(
            _finalize, ctx, job_id, {"status": JobStatus.FAILED.value, "error": str(e)}
        )
        log.warning("job_poll_failed", error_kind=e.kind, error=str(e))
        raise
    except asyncio.CancelledError:
        # The vendor job keeps running; only the local row is closed.
        _finalize(ctx, job_id, {"status": JobStatus.FAILED.value, "error": ABANDONED_MESSAGE})
        raise

    if snapshot.status != JobStatus.SUCCEEDED:
        error = snapshot.error or f"Job {snapshot.status.value}"
        final = await asyncio.to_thread(
            _finalize, ctx, job_id, {"status": snapshot.status.value, "error": error}
        )
        log.info("job_finished", status=final.status.value, error=final.error)
        return JobOutcome(record=final, snapshot=snapshot, warnings=warnings)

    assets: list[StoredAsset] = []
    if request.relocate_outputs:
        urls = snapshot.output_urls()
        if not urls:
            final = await asyncio.to_thread(
                _finalize,
                ctx,
                job_id,
                {"status": JobStatus.FAILED.value, "error": NO_OUTPUT_MESSAGE},
            )
            log.warning("job_no_output")
            return JobOutcome(record=final, snapshot=snapshot, warnings=warnings)
        try:
            assets = await asyncio.to_thread(_relocate_outputs, ctx, request, urls)
        except RelocationError as e:
            await asyncio.to_thread(
                _finalize, ctx, job_id, {"status": JobStatus.FAILED.value, "error": str(e)}
            )
            log.error("job_relocation_failed", error=str(e))
            raise
        output_data = {
            "assets": [a.model_dump(mode="json") for a in assets],
            "source_urls": urls,
        }
    else:
        output_data = {"output": snapshot.output}

    final = await asyncio.to_thread(
        _finalize,
        ctx,
        job_id,
        {"status": JobStatus.SUCCEEDED.value, "output_data": output_data},
    )
    log.info("job_finished", status=final.status.value, assets=len(assets))
    return JobOutcome(record=final, snapshot=snapshot, assets=assets, warnings=warnings)
