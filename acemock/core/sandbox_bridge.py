"""
Sandbox Bridge for AceMock

Relays JavaScript runs to the sandboxed runner document that the browser
hosts in an isolated iframe. The server sends a ``runner:exec`` message over
the session's WebSocket and waits for the matching ``runner:result``.

Each request carries a monotonically increasing request id; results that do
not match a pending request are stale and dropped.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from acemock.models.execution import SandboxResult

logger = logging.getLogger(__name__)


class SandboxTimeoutError(Exception):
    """Raised when the sandboxed runner does not answer in time."""
    pass


class SandboxUnavailableError(Exception):
    """Raised when no runner is connected or it disconnected mid-request."""
    pass


SendCallable = Callable[[dict[str, Any]], Awaitable[None]]

NO_SOLVE_RESULT = "[No solve() function found]"

# Served as the body of the runner iframe. The CSP below drops it into a
# unique opaque origin with no network or storage access.
RUNNER_CSP = (
    "default-src 'none'; "
    "script-src 'unsafe-inline' 'unsafe-eval'; "
    "connect-src 'none'; "
    "sandbox allow-scripts"
)

RUNNER_DOCUMENT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>AceMock runner</title></head>
<body>
<script>
(function () {
  function format(value) {
    if (typeof value === "string") return value;
    try { return JSON.stringify(value); } catch (e) { return String(value); }
  }

  window.addEventListener("message", function (event) {
    var msg = event.data || {};
    if (msg.type !== "runner:exec") return;

    var logs = [];
    var original = console.log;
    console.log = function () {
      logs.push(Array.prototype.map.call(arguments, format).join(" "));
    };

    var reply = { type: "runner:result", requestId: msg.requestId, logs: logs, result: "", error: "" };
    try {
      var input;
      try { input = JSON.parse(msg.input); } catch (e) { input = msg.input; }
      var solve = new Function(msg.code + "\\n;return typeof solve === 'function' ? solve : null;")();
      if (solve) {
        reply.result = format(solve(input));
      } else {
        reply.result = "__NO_SOLVE__";
      }
    } catch (err) {
      reply.error = String(err && err.stack ? err.stack : err);
    } finally {
      console.log = original;
    }
    event.source.postMessage(reply, "*");
  });
})();
</script>
</body>
</html>
""".replace("__NO_SOLVE__", NO_SOLVE_RESULT)


class SandboxBridge:
    """
    Request/response correlation for one connected browser runner.

    execute() registers a future under a fresh request id, sends the
    request through ``send`` and waits at most ``timeout`` seconds for
    deliver() to resolve it.
    """

    def __init__(self, send: SendCallable, timeout: float = 10.0):
        self._send = send
        self.timeout = timeout
        self._next_request_id = 0
        self._pending: dict[int, asyncio.Future] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def execute(self, code: str, stdin: str = "") -> SandboxResult:
        """
        Run code in the browser sandbox.

        Raises:
            SandboxTimeoutError: If no matching result arrives in time
            SandboxUnavailableError: If the bridge is closed or the request
                cannot be sent
        """
        if self._closed:
            raise SandboxUnavailableError("No sandbox runner is connected")

        self._next_request_id += 1
        request_id = self._next_request_id
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await self._send({
                "type": "runner:exec",
                "requestId": request_id,
                "code": code,
                "input": stdin,
            })
        except Exception as e:
            # The socket went away; later runs fall back to the remote service
            logger.warning(f"Sandbox request {request_id} could not be sent: {e}")
            self._pending.pop(request_id, None)
            self.close()
            raise SandboxUnavailableError("Sandbox runner connection is closed") from e

        try:
            return await asyncio.wait_for(future, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Sandbox request {request_id} timed out after {self.timeout}s")
            raise SandboxTimeoutError(
                f"Sandbox runner did not respond within {self.timeout:g} seconds"
            ) from None
        finally:
            self._pending.pop(request_id, None)

    def deliver(self, message: dict[str, Any]) -> bool:
        """
        Resolve the pending request a ``runner:result`` message answers.

        Returns:
            True if a pending request was resolved, False for stale or
            unrelated messages
        """
        if message.get("type") != "runner:result":
            return False

        request_id = message.get("requestId")
        future = self._pending.get(request_id)
        if future is None or future.done():
            logger.debug(f"Dropping stale sandbox result for request {request_id}")
            return False

        try:
            result = SandboxResult.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Malformed sandbox result for request {request_id}: {e}")
            result = SandboxResult(error="Malformed result from sandbox runner")

        future.set_result(result)
        return True

    def close(self) -> None:
        """Fail every pending request and refuse new ones."""
        self._closed = True
        for future in self._pending.values():
            if not future.done():
                future.set_exception(SandboxUnavailableError("Sandbox runner disconnected"))
        self._pending.clear()
