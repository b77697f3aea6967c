"""
Stage State Machine - linear progression through the interview stages.

Welcome → LanguageSelection → SelfIntroduction → Aptitude → TechnicalQA
        → Coding → HR → Feedback

Each transition is gated on the result of the stage being left. The only
way back is reset(), which returns to Welcome and clears the session.
"""

import logging
from typing import Callable

from acemock.core.feedback_accumulator import FeedbackAccumulator
from acemock.models.feedback import Feedback
from acemock.models.session import InterviewSession, ResultsAggregate
from acemock.models.stages import InterviewStage, STAGE_RESULT_SLOTS

logger = logging.getLogger(__name__)


class StageTransitionError(Exception):
    """Raised when advance is called without the result the stage requires."""
    pass


class UnknownStageError(Exception):
    """Raised when the session is in a stage with no defined transition."""
    pass


TransitionCallback = Callable[[InterviewSession, InterviewStage, InterviewStage], None]


class StageStateMachine:
    """
    Owns every mutation of a session's stage, selection and results.

    Stage handlers never touch the session directly; they hand their
    result to advance(), which records it and moves exactly one stage on.
    """

    def __init__(self, accumulator: FeedbackAccumulator | None = None):
        self.accumulator = accumulator or FeedbackAccumulator()
        self._callbacks: list[TransitionCallback] = []

    def on_transition(self, callback: TransitionCallback) -> None:
        """Register a callback invoked after every stage change."""
        self._callbacks.append(callback)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def advance(
        self,
        session: InterviewSession,
        result: Feedback | str | None = None,
    ) -> InterviewStage:
        """
        Complete the current stage and move to the next one.

        Args:
            session: Session to advance
            result: None when leaving Welcome, the selection string when
                leaving LanguageSelection, the stage's feedback otherwise

        Returns:
            The new current stage

        Raises:
            StageTransitionError: If the result is missing or of the wrong kind,
                or the session is already at Feedback
            UnknownStageError: If the current stage is not a known stage
        """
        current = session.stage
        if not isinstance(current, InterviewStage):
            raise UnknownStageError(f"No transition defined for stage: {current!r}")

        next_stage = current.next_stage
        if next_stage is None:
            raise StageTransitionError(
                f"Cannot advance past {current.value}; reset to start a new session"
            )

        if current == InterviewStage.WELCOME:
            session.selection = ""
            session.results = ResultsAggregate()

        elif current == InterviewStage.LANGUAGE_SELECTION:
            if not isinstance(result, str) or not result.strip():
                raise StageTransitionError("A selection is required to leave language selection")
            session.selection = result.strip()

        elif current in STAGE_RESULT_SLOTS:
            if not isinstance(result, Feedback):
                raise StageTransitionError(f"Feedback is required to complete {current.value}")
            try:
                session.results = self.accumulator.merge(session.results, current, result)
            except ValueError as e:
                raise StageTransitionError(str(e)) from e

        else:
            raise UnknownStageError(f"No transition defined for stage: {current.value}")

        self._set_stage(session, next_stage)
        return next_stage

    def reset(self, session: InterviewSession) -> InterviewStage:
        """Return to Welcome and clear the selection and all results."""
        session.selection = ""
        session.results = ResultsAggregate()
        self._set_stage(session, InterviewStage.WELCOME)
        return InterviewStage.WELCOME

    def _set_stage(self, session: InterviewSession, new_stage: InterviewStage) -> None:
        old_stage = session.stage
        session.stage = new_stage
        session.touch()

        for callback in self._callbacks:
            try:
                callback(session, old_stage, new_stage)
            except Exception as e:
                logger.error(f"Stage change callback error: {e}")

        old_name = getattr(old_stage, "value", old_stage)
        logger.info(f"Session {session.session_id}: {old_name} → {new_stage.value}")
