"""
Staggered fan-out of async jobs.

Rate-limited providers reject bursts, so batch requests are spread out: job
``i`` starts after ``delay_for(i)`` seconds. All jobs still run concurrently
once started and results come back in input order.
"""

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")

Job = Callable[[], Awaitable[T]]
SleepFunc = Callable[[float], Awaitable[None]]


def linear_delay(step: float) -> Callable[[int], float]:
    """Delay of ``index * step`` seconds."""
    return lambda index: index * step


async def _run_after(job: Job, delay: float, sleep: SleepFunc):
    if delay > 0:
        await sleep(delay)
    return await job()


async def stagger(
    jobs: Sequence[Job],
    delay_for: Callable[[int], float],
    sleep: SleepFunc = asyncio.sleep,
) -> List:
    """
    Run ``jobs`` with staggered start times.

    Args:
        jobs: Zero-argument coroutine functions
        delay_for: Maps a job index to its start delay in seconds
        sleep: Sleep coroutine (inject a virtual clock in tests)

    Returns:
        Job results in input order.

    Raises:
        The first exception raised by any job. Jobs already started are not
        cancelled.
    """
    return list(
        await asyncio.gather(
            *(_run_after(job, delay_for(index), sleep) for index, job in enumerate(jobs))
        )
    )
