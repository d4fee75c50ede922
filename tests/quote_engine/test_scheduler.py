import asyncio

import pytest

from quote_engine.scheduler import linear_delay, stagger


class VirtualClock:
    """Records requested sleeps and completes them without waiting."""

    def __init__(self):
        self.sleeps = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        await asyncio.sleep(0)


def test_linear_delay():
    delay_for = linear_delay(0.025)

    assert delay_for(0) == 0
    assert delay_for(4) == pytest.approx(0.1)


@pytest.mark.asyncio
async def test_stagger_preserves_input_order():
    clock = VirtualClock()

    def job(value):
        async def run():
            # Later jobs finish first on the real loop
            await asyncio.sleep(0.001 * (5 - value))
            return value
        return run

    results = await stagger([job(i) for i in range(5)], linear_delay(1.0), sleep=clock.sleep)

    assert results == [0, 1, 2, 3, 4]
    assert sorted(clock.sleeps) == [1.0, 2.0, 3.0, 4.0]


@pytest.mark.asyncio
async def test_stagger_zero_delay_never_sleeps():
    clock = VirtualClock()

    async def job():
        return "ok"

    results = await stagger([job, job, job], linear_delay(0), sleep=clock.sleep)

    assert results == ["ok", "ok", "ok"]
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_stagger_empty():
    assert await stagger([], linear_delay(1.0)) == []


@pytest.mark.asyncio
async def test_stagger_fire_times_follow_delay():
    loop = asyncio.get_running_loop()
    started = {}

    def job(index):
        async def run():
            started[index] = loop.time()
            return index
        return run

    begin = loop.time()
    await stagger([job(i) for i in range(3)], linear_delay(0.05))

    offsets = [started[i] - begin for i in range(3)]
    assert offsets[0] < 0.04
    assert offsets[1] >= 0.045
    assert offsets[2] >= 0.095
    assert offsets[0] <= offsets[1] <= offsets[2]


@pytest.mark.asyncio
async def test_stagger_propagates_first_failure():
    clock = VirtualClock()

    async def ok():
        return 1

    async def boom():
        raise RuntimeError("provider down")

    with pytest.raises(RuntimeError, match="provider down"):
        await stagger([ok, boom, ok], linear_delay(0.5), sleep=clock.sleep)


@pytest.mark.asyncio
async def test_stagger_does_not_cancel_started_jobs():
    finished = []

    async def fail_fast():
        raise ValueError("bad leg")

    async def slow():
        await asyncio.sleep(0.01)
        finished.append("slow")
        return "slow"

    with pytest.raises(ValueError):
        await stagger([fail_fast, slow], linear_delay(0))

    await asyncio.sleep(0.05)
    assert finished == ["slow"]
