"""HTTP backend for remote execution targets.

POSTs ``{"request": text}`` as JSON and expects ``{"output": "..."}`` back.
A non-2xx status or a body with ``"error"`` becomes a failure result;
transport errors propagate so the dispatcher can retry them.
"""

import httpx
import structlog

from caprouter.backends.base import ExecutionResult
from caprouter.core.security import truncate_output

log = structlog.get_logger()


class HttpBackend:
    """Execution backend calling a remote endpoint.

    Example:
        backend = HttpBackend("https://executor.internal/run")
        result = await backend.invoke("Run the migration dry-run")
    """

    def __init__(
        self,
        endpoint: str,
        *,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._client = client

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def _post(self, client: httpx.AsyncClient, request_text: str) -> httpx.Response:
        return await client.post(
            self._endpoint, json={"request": request_text}, headers=self._headers
        )

    async def invoke(self, request_text: str) -> ExecutionResult:
        if self._client is not None:
            response = await self._post(self._client, request_text)
        else:
            async with httpx.AsyncClient() as client:
                response = await self._post(client, request_text)

        if response.status_code >= 400:
            log.warning(
                "backend.http.error_status",
                endpoint=self._endpoint,
                status_code=response.status_code,
            )
            return ExecutionResult.failure(
                f"HTTP {response.status_code} from {self._endpoint}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            return ExecutionResult.failure(
                "Response body is not JSON", status_code=response.status_code
            )

        if not isinstance(body, dict):
            return ExecutionResult.failure("Response body must be a JSON object")
        if body.get("error"):
            return ExecutionResult.failure(str(body["error"]), status_code=response.status_code)

        output, _ = truncate_output(str(body.get("output", "")))
        return ExecutionResult.success(output, status_code=response.status_code)
