"""
Coding API endpoints

Handles:
- Running the coding stage's code (Piston or browser sandbox)
- Serving the sandboxed runner document
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from acemock.api.dependencies import get_orchestrator, translate_errors
from acemock.core.interview_orchestrator import InterviewOrchestrator
from acemock.core.sandbox_bridge import RUNNER_CSP, RUNNER_DOCUMENT
from acemock.models.execution import ExecutionOutcome

router = APIRouter()


class RunRequest(BaseModel):
    """Request model for a code run."""
    stdin: str = ""


@router.post("/{session_id}/run", response_model=ExecutionOutcome)
async def run_code(
    session_id: str,
    request: RunRequest | None = None,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> ExecutionOutcome:
    """
    Run the current code of the coding challenge.

    Always answers 200 with an outcome; an unsupported language or an
    unreachable execution service is reported in ``status``.
    """
    stdin = request.stdin if request else ""
    with translate_errors():
        return await orchestrator.run_code(session_id, stdin)


@router.get("/runner", response_class=HTMLResponse)
async def runner_document() -> HTMLResponse:
    """The document hosted in the browser's sandboxed runner iframe."""
    return HTMLResponse(
        content=RUNNER_DOCUMENT,
        headers={
            "Content-Security-Policy": RUNNER_CSP,
            "X-Content-Type-Options": "nosniff",
        },
    )
