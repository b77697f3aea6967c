"""
Interview Orchestrator - session controller for AceMock.

Owns the in-memory sessions and, per session:
- the active stage handler
- the sandbox bridge of a connected browser, if any
- the optional server-side timer task

Every stage change goes through the StageStateMachine.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from acemock.config.settings import Settings, get_settings
from acemock.core.code_runner import ExecutionBackendResolver
from acemock.core.llm_gateway import LLMEvaluationGateway
from acemock.core.report_generator import ReportGenerator
from acemock.core.sandbox_bridge import SandboxBridge, SendCallable
from acemock.core.stage_machine import StageStateMachine, StageTransitionError
from acemock.core.stages import (
    CodingStage,
    InputValidationError,
    StageHandler,
    StageStatus,
    build_stage_handler,
)
from acemock.models.events import StageEvent, TimerTick
from acemock.models.execution import ExecutionOutcome
from acemock.models.feedback import Feedback
from acemock.models.report import InterviewReport, ReportRecord
from acemock.models.session import InterviewSession
from acemock.models.stages import InterviewStage

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised for an unknown session id."""
    pass


StateChangeCallback = Callable[[str, InterviewStage, InterviewStage], Awaitable[None]]


class InterviewOrchestrator:
    """
    Central controller for interview sessions.

    Responsibilities:
    - Session lifecycle (create, start, select language, reset)
    - Building and preparing the handler for the current stage
    - Routing stage events and recording completed feedback
    - Relaying code runs to Piston or the browser sandbox
    """

    def __init__(
        self,
        gateway: LLMEvaluationGateway,
        resolver: ExecutionBackendResolver,
        settings: Settings | None = None,
        stage_machine: StageStateMachine | None = None,
        report_generator: ReportGenerator | None = None,
    ):
        self.gateway = gateway
        self.resolver = resolver
        self.settings = settings or get_settings()
        self.stage_machine = stage_machine or StageStateMachine()
        self.report_generator = report_generator or ReportGenerator(self.stage_machine.accumulator)

        # Session storage (in-memory)
        self._sessions: dict[str, InterviewSession] = {}
        self._handlers: dict[str, StageHandler] = {}
        self._sandboxes: dict[str, SandboxBridge] = {}
        self._tickers: dict[str, asyncio.Task] = {}

        # Event callbacks
        self._state_change_callbacks: list[StateChangeCallback] = []

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def create_session(self) -> InterviewSession:
        """Create a new session at the Welcome stage."""
        session = InterviewSession()
        self._sessions[session.session_id] = session
        logger.info(f"Created interview session: {session.session_id}")
        return session

    def get_session(self, session_id: str) -> InterviewSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> InterviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def get_handler(self, session_id: str) -> StageHandler | None:
        return self._handlers.get(session_id)

    def snapshot(self, session_id: str) -> dict[str, Any]:
        """Session state plus the active stage's client view."""
        session = self.require_session(session_id)
        handler = self._handlers.get(session_id)
        return {
            "session": session.model_dump(mode="json", by_alias=True),
            "stageName": session.stage.display_name,
            "overallScore": self.stage_machine.accumulator.overall_score(session.results),
            "stageView": handler.snapshot() if handler else None,
            "sandboxConnected": session_id in self._sandboxes and not self._sandboxes[session_id].closed,
        }

    # =========================================================================
    # STAGE FLOW
    # =========================================================================

    async def start(self, session_id: str) -> InterviewSession:
        """Leave the Welcome screen."""
        session = self.require_session(session_id)
        if session.stage != InterviewStage.WELCOME:
            raise StageTransitionError("Interview has already started")
        await self._advance(session)
        return session

    async def select_language(self, session_id: str, selection: str) -> InterviewSession:
        """Record the selection and move on to the self-introduction."""
        session = self.require_session(session_id)
        if session.stage != InterviewStage.LANGUAGE_SELECTION:
            raise StageTransitionError("Language can only be chosen at the language selection stage")
        await self._advance(session, selection)
        return session

    async def prepare_stage(self, session_id: str) -> dict[str, Any]:
        """
        Load content for the current stage.

        Idempotent once the stage is ready; retries a failed load.
        """
        self.require_session(session_id)
        handler = self._handlers.get(session_id)
        if handler is None:
            raise InputValidationError("The current stage has nothing to prepare")

        await handler.prepare()
        if handler.status == StageStatus.ACTIVE:
            self._start_ticker(session_id, handler)
        return self.snapshot(session_id)

    async def dispatch(self, session_id: str, event: StageEvent) -> dict[str, Any]:
        """
        Route an event to the active stage handler.

        When the event completes the stage, its feedback is recorded and
        the session advances.

        Raises:
            SessionNotFoundError: Unknown session
            InputValidationError: No active stage, or invalid input
        """
        session = self.require_session(session_id)
        handler = self._handlers.get(session_id)
        if handler is None:
            raise InputValidationError(f"{session.stage.display_name} does not accept events")

        feedback = await handler.handle(event)
        if feedback is not None and self._handlers.get(session_id) is handler:
            await self._advance(session, feedback)
        return self.snapshot(session_id)

    async def run_code(self, session_id: str, stdin: str = "") -> ExecutionOutcome:
        """Run the coding stage's current code."""
        self.require_session(session_id)
        handler = self._handlers.get(session_id)
        if not isinstance(handler, CodingStage):
            raise InputValidationError("Code can only be run during the coding challenge")
        return await handler.run(stdin, self._sandboxes.get(session_id))

    async def reset(self, session_id: str) -> InterviewSession:
        """Abandon the interview and return to Welcome with no results."""
        session = self.require_session(session_id)
        old_stage = session.stage
        self._drop_handler(session_id)
        self.stage_machine.reset(session)
        await self._notify_state_change(session_id, old_stage, session.stage)
        return session

    def delete_session(self, session_id: str) -> None:
        self._drop_handler(session_id)
        self.detach_sandbox(session_id)
        self._sessions.pop(session_id, None)

    async def _advance(self, session: InterviewSession, result: Feedback | str | None = None) -> None:
        old_stage = session.stage
        new_stage = self.stage_machine.advance(session, result)

        self._drop_handler(session.session_id)
        handler = build_stage_handler(
            new_stage,
            self.gateway,
            session.selection,
            settings=self.settings,
            resolver=self.resolver,
        )
        if handler is not None:
            self._handlers[session.session_id] = handler
            # The introduction needs no generated content
            if new_stage == InterviewStage.SELF_INTRODUCTION:
                await handler.prepare()

        await self._notify_state_change(session.session_id, old_stage, new_stage)

    def _drop_handler(self, session_id: str) -> None:
        self._stop_ticker(session_id)
        self._handlers.pop(session_id, None)

    # =========================================================================
    # REPORT
    # =========================================================================

    def report(self, session_id: str) -> InterviewReport:
        return self.report_generator.build(self.require_session(session_id))

    def records(self, session_id: str, user_id: str | None = None) -> list[ReportRecord]:
        return self.report_generator.records(self.require_session(session_id), user_id)

    # =========================================================================
    # SANDBOX
    # =========================================================================

    def attach_sandbox(self, session_id: str, send: SendCallable) -> SandboxBridge:
        """Register the browser runner reachable through ``send``."""
        self.require_session(session_id)
        self.detach_sandbox(session_id)
        bridge = SandboxBridge(send, timeout=self.settings.sandbox_timeout_seconds)
        self._sandboxes[session_id] = bridge
        logger.info(f"Sandbox runner attached to session {session_id}")
        return bridge

    def detach_sandbox(self, session_id: str, bridge: SandboxBridge | None = None) -> None:
        """Disconnect the runner; with ``bridge``, only if it is still the current one."""
        current = self._sandboxes.get(session_id)
        if current is None or (bridge is not None and current is not bridge):
            return
        del self._sandboxes[session_id]
        current.close()
        logger.info(f"Sandbox runner detached from session {session_id}")

    def deliver_sandbox_result(self, session_id: str, message: dict[str, Any]) -> bool:
        bridge = self._sandboxes.get(session_id)
        if bridge is None:
            return False
        return bridge.deliver(message)

    # =========================================================================
    # SERVER-SIDE TIMERS
    # =========================================================================

    def _start_ticker(self, session_id: str, handler: StageHandler) -> None:
        if not self.settings.server_side_timers or handler.remaining_seconds is None:
            return
        if session_id in self._tickers:
            return
        self._tickers[session_id] = asyncio.create_task(self._run_ticker(session_id, handler))

    def _stop_ticker(self, session_id: str) -> None:
        task = self._tickers.pop(session_id, None)
        # A ticker that completed the stage is stopping itself
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _run_ticker(self, session_id: str, handler: StageHandler) -> None:
        """Feed one TimerTick per second into dispatch while the handler is current."""
        while self._handlers.get(session_id) is handler:
            await asyncio.sleep(1)
            if self._handlers.get(session_id) is not handler:
                break
            if handler.status != StageStatus.ACTIVE:
                continue
            try:
                await self.dispatch(session_id, TimerTick())
            except (InputValidationError, StageTransitionError) as e:
                logger.warning(f"Timer tick rejected for session {session_id}: {e}")

    async def close(self) -> None:
        """Stop timers and disconnect sandboxes."""
        for session_id in list(self._tickers):
            self._stop_ticker(session_id)
        for session_id in list(self._sandboxes):
            self.detach_sandbox(session_id)

    # =========================================================================
    # EVENT CALLBACKS
    # =========================================================================

    def on_state_change(self, callback: StateChangeCallback) -> None:
        """Register a callback for stage changes."""
        self._state_change_callbacks.append(callback)

    def remove_state_change_callback(self, callback: StateChangeCallback) -> None:
        if callback in self._state_change_callbacks:
            self._state_change_callbacks.remove(callback)

    async def _notify_state_change(
        self,
        session_id: str,
        old_stage: InterviewStage,
        new_stage: InterviewStage,
    ) -> None:
        for callback in list(self._state_change_callbacks):
            try:
                await callback(session_id, old_stage, new_stage)
            except Exception as e:
                logger.error(f"State change callback error: {e}")
