"""
Execution Backend Resolver for AceMock

Runs candidate code for the coding stage:
- Maps a selection to a Piston runtime id (static lookup)
- Caches the Piston runtime catalog, with a fixed fallback table
- Executes source remotely, or in the browser sandbox for JavaScript

Running code is a developer aid. Failures are reported in the returned
ExecutionOutcome and never block submission of the stage.
"""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from acemock.config.settings import Settings, get_settings
from acemock.core.sandbox_bridge import (
    SandboxBridge,
    SandboxTimeoutError,
    SandboxUnavailableError,
)
from acemock.models.execution import (
    ExecutionBackend,
    ExecutionOutcome,
    ExecutionStatus,
    RunResult,
)
from acemock.models.profiles import BROWSER_RUNTIME, SELECTION_RUNTIMES

logger = logging.getLogger(__name__)


# One known-good version per runtime, used when the catalog is unreachable
FALLBACK_RUNTIMES: dict[str, str] = {
    "javascript": "18.17.0",
    "typescript": "5.0.3",
    "python": "3.10.0",
    "java": "19.0.2",
    "cpp": "11.2.0",
    "csharp": "6.12.0",
    "go": "1.21.0",
    "rust": "1.70.0",
    "php": "8.2.8",
    "ruby": "3.2.2",
    "kotlin": "1.9.0",
    "swift": "5.9.2",
}


class ExecutionServiceError(Exception):
    """Raised when the execution service is unreachable or returns an HTTP error."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class UnsupportedRuntimeError(Exception):
    """Raised when a selection or runtime has no execution backend."""
    pass


def strip_code_fences(code: str) -> str:
    """Remove a surrounding ``` fence (with optional language tag), if present."""
    stripped = code.strip()
    if not stripped.startswith("```"):
        return code

    first_newline = stripped.find("\n")
    if first_newline == -1:
        return ""
    body = stripped[first_newline + 1:]
    if body.rstrip().endswith("```"):
        body = body.rstrip()[:-3]
    return body.rstrip("\n")


class ExecutionBackendResolver:
    """
    Resolves selections to runtimes and runs code against Piston.

    The catalog is fetched once and kept for the process lifetime.
    A failed fetch is not cached, so a later call can still succeed.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        runtime_map: dict[str, str] | None = None,
    ):
        self.settings = settings or get_settings()
        self.runtime_map = dict(SELECTION_RUNTIMES if runtime_map is None else runtime_map)

        self.client = client or httpx.AsyncClient(
            base_url=self.settings.piston_base_url.rstrip("/"),
            timeout=self.settings.execution_timeout_seconds,
        )

        self._catalog: dict[str, list[str]] | None = None
        self._catalog_lock = asyncio.Lock()

    async def close(self):
        await self.client.aclose()

    # =========================================================================
    # RUNTIME CATALOG
    # =========================================================================

    def resolve_runtime(self, selection: str) -> str | None:
        """Map a selection to its runtime id, or None if it cannot be executed."""
        return self.runtime_map.get(selection)

    async def _fetch_catalog(self) -> dict[str, list[str]]:
        response = await self.client.get("/runtimes")
        response.raise_for_status()
        entries = response.json()
        if not isinstance(entries, list):
            raise ValueError(f"Runtime catalog is not a list: {type(entries).__name__}")

        catalog: dict[str, list[str]] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            language = entry.get("language")
            version = entry.get("version")
            if not isinstance(language, str) or not isinstance(version, str):
                continue
            aliases = entry.get("aliases")
            if not isinstance(aliases, list):
                aliases = []
            for name in [language, *(a for a in aliases if isinstance(a, str))]:
                catalog.setdefault(name, []).append(version)
        return catalog

    async def list_versions(self, runtime_id: str) -> list[str]:
        """
        Available versions for a runtime, in catalog order.

        Falls back to the fixed table when the catalog cannot be fetched
        or does not list the runtime.
        """
        async with self._catalog_lock:
            if self._catalog is None:
                try:
                    self._catalog = await self._fetch_catalog()
                    logger.info(f"Loaded execution catalog with {len(self._catalog)} runtimes")
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning(f"Runtime catalog unavailable, using fallback table: {e}")

        if self._catalog and self._catalog.get(runtime_id):
            return list(self._catalog[runtime_id])
        if runtime_id in FALLBACK_RUNTIMES:
            return [FALLBACK_RUNTIMES[runtime_id]]
        return []

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def execute(
        self,
        runtime_id: str,
        source: str,
        stdin: str = "",
        version: str | None = None,
    ) -> RunResult:
        """
        Run source remotely and capture its output.

        A program that exits non-zero is a normal RunResult; only failures
        to reach the service raise.

        Raises:
            UnsupportedRuntimeError: If no version is known for the runtime
            ExecutionServiceError: On network or HTTP failure
        """
        if version is None:
            versions = await self.list_versions(runtime_id)
            if not versions:
                raise UnsupportedRuntimeError(f"No versions available for runtime {runtime_id}")
            version = versions[-1]

        payload = {
            "language": runtime_id,
            "version": version,
            "files": [{"name": "Main", "content": source}],
            "stdin": stdin,
        }

        try:
            response = await self.client.post("/execute", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Execution service timed out for {runtime_id} {version}")
            raise ExecutionServiceError("Execution service timed out", timed_out=True) from e
        except httpx.HTTPError as e:
            logger.error(f"Execution service error for {runtime_id} {version}: {e}")
            raise ExecutionServiceError(f"Execution service error: {e}") from e
        except ValueError as e:
            raise ExecutionServiceError("Execution service returned invalid JSON") from e

        if not isinstance(data, dict):
            raise ExecutionServiceError("Execution service returned an unexpected response")

        # A failed compile step stands in for the run
        compile_stage = data.get("compile")
        if isinstance(compile_stage, dict) and compile_stage.get("code") not in (None, 0):
            stage = compile_stage
        else:
            stage = data.get("run")
        if not isinstance(stage, dict):
            raise ExecutionServiceError("Execution service response has no run result")

        try:
            return RunResult(
                stdout=stage.get("stdout") or "",
                stderr=stage.get("stderr") or "",
                exit_code=stage.get("code"),
                signal=stage.get("signal"),
            )
        except ValidationError as e:
            raise ExecutionServiceError("Execution service returned a malformed run result") from e

    async def run_selection(
        self,
        selection: str,
        source: str,
        stdin: str = "",
        sandbox: SandboxBridge | None = None,
    ) -> ExecutionOutcome:
        """
        Run code for a selection and describe the outcome.

        JavaScript goes to the browser sandbox when one is attached.
        Never raises for execution failures.
        """
        code = strip_code_fences(source)
        runtime = self.resolve_runtime(selection)
        if runtime is None:
            return ExecutionOutcome(
                status=ExecutionStatus.UNSUPPORTED,
                message=f"Code execution is not supported for {selection}.",
            )

        if runtime == BROWSER_RUNTIME and sandbox is not None and not sandbox.closed:
            return await self._run_in_sandbox(sandbox, runtime, code, stdin)

        try:
            versions = await self.list_versions(runtime)
            if not versions:
                raise UnsupportedRuntimeError(f"No versions available for runtime {runtime}")
            version = versions[-1]
            result = await self.execute(runtime, code, stdin, version=version)
        except UnsupportedRuntimeError as e:
            return ExecutionOutcome(
                status=ExecutionStatus.UNSUPPORTED,
                runtime=runtime,
                message=str(e),
            )
        except ExecutionServiceError as e:
            return ExecutionOutcome(
                status=ExecutionStatus.TIMEOUT if e.timed_out else ExecutionStatus.ERROR,
                backend=ExecutionBackend.REMOTE,
                runtime=runtime,
                version=version,
                message=str(e),
            )

        return ExecutionOutcome(
            status=ExecutionStatus.OK,
            backend=ExecutionBackend.REMOTE,
            runtime=runtime,
            version=version,
            result=result,
        )

    async def _run_in_sandbox(
        self,
        sandbox: SandboxBridge,
        runtime: str,
        code: str,
        stdin: str,
    ) -> ExecutionOutcome:
        try:
            result = await sandbox.execute(code, stdin)
        except SandboxTimeoutError as e:
            return ExecutionOutcome(
                status=ExecutionStatus.TIMEOUT,
                backend=ExecutionBackend.SANDBOX,
                runtime=runtime,
                message=str(e),
            )
        except SandboxUnavailableError as e:
            return ExecutionOutcome(
                status=ExecutionStatus.ERROR,
                backend=ExecutionBackend.SANDBOX,
                runtime=runtime,
                message=str(e),
            )

        return ExecutionOutcome(
            status=ExecutionStatus.OK,
            backend=ExecutionBackend.SANDBOX,
            runtime=runtime,
            sandbox=result,
            logs=result.logs,
        )
