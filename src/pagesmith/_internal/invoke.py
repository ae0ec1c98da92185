"""Invoke helpers — call sync or async callbacks uniformly.

Session callbacks (``on_chunk``, ``on_complete``, ...) can be ``def`` or
``async def``. Any code that calls a host-provided callback must handle
both cases. This module provides a single helper so the sync/async check
lives in exactly one place.

Usage::

    from pagesmith._internal.invoke import invoke

    await invoke(on_complete, result)
"""

import inspect
from typing import Any


async def invoke(callback: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *callback* if set, awaiting the result if it is awaitable.

    ``None`` callbacks are skipped and return ``None``.
    """
    if callback is None:
        return None
    result = callback(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
