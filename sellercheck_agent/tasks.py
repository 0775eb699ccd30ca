from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable


async def gather_or_cancel(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """Run `aws` concurrently and return their results in order.

    If any of them raises, the others are cancelled and awaited before the
    error propagates, so nothing keeps touching pages after a failed join.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
