"""
Interview API endpoints

Handles interview session lifecycle:
- Creating sessions
- Starting and choosing a selection
- Preparing stages and sending stage events
- Resetting
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError

from acemock.api.dependencies import get_orchestrator, translate_errors
from acemock.core.interview_orchestrator import InterviewOrchestrator, SessionNotFoundError
from acemock.core.stage_machine import StageTransitionError
from acemock.core.stages import InputValidationError
from acemock.models.events import parse_event

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class LanguageRequest(BaseModel):
    """Request model for choosing a selection."""
    selection: str = Field(..., min_length=1)


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/sessions")
async def create_session(
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Create a new interview session at the Welcome stage."""
    session = orchestrator.create_session()
    return orchestrator.snapshot(session.session_id)


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Get the session and the current stage's view."""
    with translate_errors():
        return orchestrator.snapshot(session_id)


@router.post("/{session_id}/start")
async def start_interview(
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Leave the Welcome screen."""
    with translate_errors():
        await orchestrator.start(session_id)
        return orchestrator.snapshot(session_id)


@router.post("/{session_id}/language")
async def select_language(
    session_id: str,
    request: LanguageRequest,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Choose the language, framework or track for the interview."""
    with translate_errors():
        await orchestrator.select_language(session_id, request.selection)
        return orchestrator.snapshot(session_id)


@router.post("/{session_id}/prepare")
async def prepare_stage(
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """
    Load generated content for the current stage.

    A failed load is reported in the stage view and can be retried.
    """
    with translate_errors():
        return await orchestrator.prepare_stage(session_id)


@router.post("/{session_id}/events")
async def send_event(
    session_id: str,
    payload: dict[str, Any] = Body(...),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """
    Send a stage event.

    The body is one event, tagged by ``type``: timer_tick, answer_selected,
    response_edited, speech_interim, speech_final, speech_error,
    next_question or submit.
    """
    try:
        event = parse_event(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))

    with translate_errors():
        return await orchestrator.dispatch(session_id, event)


@router.post("/{session_id}/reset")
async def reset_interview(
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Return to Welcome, clearing the selection and all results."""
    with translate_errors():
        await orchestrator.reset(session_id)
        return orchestrator.snapshot(session_id)


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/{session_id}")
async def websocket_interview(
    websocket: WebSocket,
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    """
    WebSocket endpoint for real-time interview interaction.

    Client sends:
    - start / language / prepare / reset / run / ping
    - any stage event (same shape as POST /events)
    - runner:result: output of the sandboxed JavaScript runner

    Server sends:
    - snapshot: session and stage view after each message, and whenever
      the stage changes outside this socket (server-side timers, REST calls)
    - run_result: outcome of a code run
    - runner:exec: code for the sandboxed runner
    - error: error occurred
    """
    await websocket.accept()

    if orchestrator.get_session(session_id) is None:
        await websocket.close(code=4004, reason="Session not found")
        return

    bridge = orchestrator.attach_sandbox(session_id, websocket.send_json)
    runs: set[asyncio.Task] = set()
    # Stage changes made while answering a message are covered by the reply
    busy = False

    async def push_snapshot(changed_id: str, old_stage, new_stage):
        if changed_id != session_id or busy:
            return
        await websocket.send_json({"type": "snapshot", "data": orchestrator.snapshot(session_id)})

    orchestrator.on_state_change(push_snapshot)

    async def run_code(stdin: str):
        # Runs as a task so this loop can keep receiving runner:result
        try:
            outcome = await orchestrator.run_code(session_id, stdin)
            await websocket.send_json({
                "type": "run_result",
                "data": outcome.model_dump(mode="json", by_alias=True),
            })
        except InputValidationError as e:
            await websocket.send_json({"type": "error", "message": str(e)})

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                data = None
            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "message": "Messages must be JSON objects"})
                continue

            message_type = data.get("type")

            if message_type == "runner:result":
                orchestrator.deliver_sandbox_result(session_id, data)
                continue

            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "run":
                task = asyncio.create_task(run_code(str(data.get("stdin", ""))))
                runs.add(task)
                task.add_done_callback(runs.discard)
                continue

            busy = True
            try:
                if message_type == "start":
                    await orchestrator.start(session_id)
                    snapshot = orchestrator.snapshot(session_id)
                elif message_type == "language":
                    await orchestrator.select_language(session_id, str(data.get("selection", "")))
                    snapshot = orchestrator.snapshot(session_id)
                elif message_type == "prepare":
                    snapshot = await orchestrator.prepare_stage(session_id)
                elif message_type == "reset":
                    await orchestrator.reset(session_id)
                    snapshot = orchestrator.snapshot(session_id)
                else:
                    snapshot = await orchestrator.dispatch(session_id, parse_event(data))
            except (InputValidationError, StageTransitionError, ValidationError) as e:
                await websocket.send_json({"type": "error", "message": str(e)})
                continue
            finally:
                busy = False

            await websocket.send_json({"type": "snapshot", "data": snapshot})

    except WebSocketDisconnect:
        # Client disconnected
        pass
    except SessionNotFoundError:
        await websocket.close(code=4004, reason="Session not found")
    finally:
        orchestrator.remove_state_change_callback(push_snapshot)
        for task in runs:
            task.cancel()
        orchestrator.detach_sandbox(session_id, bridge)
