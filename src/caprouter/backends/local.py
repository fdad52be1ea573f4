"""Callable-backed execution backend for inline handling.

Wraps a plain Python function (sync or async) so the minimal-overhead path
goes through the same ``invoke`` contract as every other target.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import inspect

from caprouter.backends.base import ExecutionResult

Handler = Callable[[str], str | ExecutionResult | Awaitable[str | ExecutionResult]]


class CallableBackend:
    """Backend that runs a local handler.

    Sync handlers run in a worker thread so a slow handler never blocks the
    event loop and still honours the dispatcher's timeout.

    Example:
        backend = CallableBackend(lambda text: text.replace("console.log(x);", ""))
        result = await backend.invoke("console.log(x);")
    """

    def __init__(self, handler: Handler, *, name: str | None = None) -> None:
        self._handler = handler
        self._name = name or getattr(handler, "__name__", "callable")

    @property
    def name(self) -> str:
        return self._name

    async def invoke(self, request_text: str) -> ExecutionResult:
        if inspect.iscoroutinefunction(self._handler):
            output = await self._handler(request_text)
        else:
            output = await asyncio.to_thread(self._handler, request_text)
            if inspect.isawaitable(output):
                output = await output

        if isinstance(output, ExecutionResult):
            return output
        return ExecutionResult.success(str(output), backend=self._name)
