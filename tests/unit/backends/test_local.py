"""Unit tests for the callable inline backend."""

import threading

import pytest

from caprouter.backends import CallableBackend, ExecutionResult


class TestCallableBackend:
    """Test CallableBackend.invoke."""

    @pytest.mark.asyncio
    async def test_sync_handler(self) -> None:
        """Sync handlers return successful results."""
        backend = CallableBackend(lambda text: text.replace("console.log(x);", "").strip(), name="strip")

        result = await backend.invoke("console.log(x); total()")

        assert result.is_success
        assert result.output == "total()"
        assert result.metadata["backend"] == "strip"

    @pytest.mark.asyncio
    async def test_sync_handler_runs_off_loop_thread(self) -> None:
        """Sync handlers run in a worker thread."""
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def handler(text: str) -> str:
            seen.append(threading.get_ident())
            return text

        await CallableBackend(handler).invoke("x")

        assert seen and seen[0] != loop_thread

    @pytest.mark.asyncio
    async def test_async_handler(self) -> None:
        """Coroutine handlers are awaited."""

        async def handler(text: str) -> str:
            return text.upper()

        result = await CallableBackend(handler).invoke("fix")

        assert result.output == "FIX"
        assert result.metadata["backend"] == "handler"

    @pytest.mark.asyncio
    async def test_handler_returning_result(self) -> None:
        """ExecutionResult values pass through untouched."""
        failure = ExecutionResult.failure("cannot handle inline")

        result = await CallableBackend(lambda _: failure).invoke("x")

        assert result is failure

    def test_name_defaults_to_function_name(self) -> None:
        """The handler's __name__ names the backend."""

        def echo(text: str) -> str:
            return text

        assert CallableBackend(echo).name == "echo"
