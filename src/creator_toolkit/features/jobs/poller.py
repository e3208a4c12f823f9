"""Deadline-bounded polling of vendor job status.

The poller is a coroutine: the blocking status fetch runs in a worker thread
and each tick suspends on ``asyncio.sleep``, so the task can be cancelled
between ticks. Cancelling locally never cancels the vendor-side job.
"""

import asyncio
from typing import Callable

from creator_toolkit.features.jobs.models import JobSnapshot
from creator_toolkit.platform.errors import PollTimeoutError
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)


async def poll_until_terminal(
    job_id: str,
    fetch: Callable[[str], JobSnapshot],
    *,
    poll_interval: float = 3.0,
    max_wait: float = 300.0,
    on_update: Callable[[JobSnapshot], None] | None = None,
) -> JobSnapshot:
    """Poll ``fetch(job_id)`` until the job reaches a terminal status.

    Args:
        job_id: Vendor job id.
        fetch: Blocking status fetch, run via ``asyncio.to_thread``.
        poll_interval: Delay between fetches, in seconds.
        max_wait: Wall-clock budget, in seconds.
        on_update: Optional blocking callback, invoked whenever the status
            differs from the previous fetch.

    Returns:
        The terminal snapshot. ``failed`` and ``canceled`` are returned, not
        raised, so callers can apply their own retry/fallback policy.

    Raises:
        PollTimeoutError: If the budget runs out first. The last sleep is
            clipped to the deadline, so this fires no later than
            ``max_wait`` plus one fetch.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + max_wait
    last_status = None

    while True:
        snapshot = await asyncio.to_thread(fetch, job_id)

        if snapshot.status != last_status:
            logger.info(
                "job_status_changed",
                job_id=job_id,
                status=snapshot.status.value,
                vendor_status=snapshot.vendor_status,
                elapsed_s=round(loop.time() - started, 1),
            )
            if on_update is not None:
                await asyncio.to_thread(on_update, snapshot)
            last_status = snapshot.status

        if snapshot.is_terminal:
            return snapshot

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.warning("job_poll_timeout", job_id=job_id, max_wait_s=max_wait)
            raise PollTimeoutError(job_id, max_wait, last_status=snapshot.vendor_status or None)

        await asyncio.sleep(min(poll_interval, remaining))
