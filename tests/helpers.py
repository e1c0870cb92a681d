import asyncio
import time


async def wait_until(predicate, timeout=1.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met within %.2fs" % timeout)
        await asyncio.sleep(interval)


def names(events):
    return [event.name for event in events]
