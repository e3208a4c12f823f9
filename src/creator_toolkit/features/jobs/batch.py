"""Join policies for running several ``run_job`` coroutines at once."""

import asyncio
from typing import Any, Awaitable, Iterable


async def gather_all_or_nothing(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """Run all awaitables; the first failure cancels the rest and is raised."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def gather_partial(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """Run all awaitables to completion; failures come back as exceptions in place."""
    return await asyncio.gather(*aws, return_exceptions=True)
