"""httpx MockTransport handlers for the Gemini and Piston APIs."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx


def gemini_response(payload: Any) -> httpx.Response:
    """A generateContent reply whose text part is the JSON-encoded payload."""
    return httpx.Response(
        200,
        json={
            "candidates": [
                {"content": {"role": "model", "parts": [{"text": json.dumps(payload)}]}}
            ]
        },
    )


class GeminiAPIMock:
    """Replays queued replies; each item is a JSON payload or an httpx.Response."""

    def __init__(self, *replies: Any) -> None:
        self.replies: List[Any] = list(replies)
        self.requests: List[Dict[str, Any]] = []
        self.paths: List[str] = []
        self.headers: List[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        self.headers.append(request.headers)
        self.requests.append(json.loads(request.content))
        if not self.replies:
            return httpx.Response(500, json={"error": {"message": "no reply queued"}})
        reply = self.replies.pop(0)
        if isinstance(reply, httpx.Response):
            return reply
        return gemini_response(reply)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self),
            base_url="https://gemini.test/v1beta",
        )

    def prompt_text(self, index: int = -1) -> str:
        return self.requests[index]["contents"][0]["parts"][0]["text"]


PISTON_RUNTIMES = [
    {"language": "python", "version": "3.10.0", "aliases": ["py", "python3"]},
    {"language": "python", "version": "3.12.0", "aliases": ["py", "python3"]},
    {"language": "javascript", "version": "18.15.0", "aliases": ["js", "node"], "runtime": "node"},
    {"language": "java", "version": "15.0.2", "aliases": []},
]


class PistonAPIMock:
    """Serves /runtimes and /execute; records every execute payload."""

    def __init__(
        self,
        runtimes: Any = None,
        run: Dict[str, Any] | None = None,
        runtimes_status: int = 200,
        execute_status: int = 200,
        execute_error: Exception | None = None,
    ) -> None:
        self.runtimes = PISTON_RUNTIMES if runtimes is None else runtimes
        self.run = run or {"stdout": "hello\n", "stderr": "", "code": 0, "signal": None}
        self.runtimes_status = runtimes_status
        self.execute_status = execute_status
        self.execute_error = execute_error
        self.runtime_calls = 0
        self.executions: List[Dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/runtimes"):
            self.runtime_calls += 1
            if self.runtimes_status != 200:
                return httpx.Response(self.runtimes_status, json={"message": "unavailable"})
            return httpx.Response(200, json=self.runtimes)

        if request.url.path.endswith("/execute"):
            payload = json.loads(request.content)
            self.executions.append(payload)
            if self.execute_error is not None:
                raise self.execute_error
            if self.execute_status != 200:
                return httpx.Response(self.execute_status, json={"message": "rate limited"})
            return httpx.Response(
                200,
                json={"language": payload["language"], "version": payload["version"], "run": self.run},
            )

        return httpx.Response(404, json={"message": "not found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self),
            base_url="https://piston.test/api/v2",
        )
