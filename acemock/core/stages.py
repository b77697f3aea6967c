"""
Stage Handlers for AceMock

One handler per feedback stage. A handler owns its stage-local state
(questions, answers, timers, draft text), consumes StageEvents and returns
the stage feedback exactly once, when the stage completes.

Handlers never touch the session; the orchestrator hands the returned
feedback to the stage machine.
"""

import logging
from enum import Enum
from typing import Any

from acemock.config.settings import Settings, get_settings
from acemock.core.code_runner import ExecutionBackendResolver, strip_code_fences
from acemock.core.llm_gateway import EvaluationError, LLMEvaluationGateway
from acemock.core.sandbox_bridge import SandboxBridge
from acemock.models.events import (
    AnswerSelected,
    NextQuestion,
    ResponseEdited,
    SpeechError,
    SpeechFinalResult,
    SpeechInterimResult,
    StageEvent,
    SubmitStage,
    TimerTick,
)
from acemock.models.execution import ExecutionOutcome
from acemock.models.feedback import (
    AptitudeQuestion,
    CodingChallenge,
    Feedback,
    HRFeedback,
    HRQuestion,
    HRResult,
)
from acemock.models.stages import InterviewStage

logger = logging.getLogger(__name__)


RETRY_MESSAGE = "We couldn't evaluate this stage right now. Please try submitting again."
PREPARE_RETRY_MESSAGE = "We couldn't load this stage. Please try again."


class InputValidationError(Exception):
    """Raised for empty or malformed candidate input; no remote call is made."""
    pass


class StageStatus(str, Enum):
    """Lifecycle of a stage handler."""

    LOADING = "loading"
    ACTIVE = "active"
    EVALUATING = "evaluating"
    COMPLETED = "completed"
    FAILED = "failed"


def append_transcript(text: str, transcript: str) -> str:
    """Append a final speech transcript to typed text, separated by a space."""
    transcript = transcript.strip()
    if not transcript:
        return text
    if not text.strip():
        return transcript
    return f"{text.rstrip()} {transcript}"


def hr_fallback_feedback(questions: list[HRQuestion], responses: list[str]) -> HRFeedback:
    """Deterministic HR feedback used when the evaluation call fails."""
    return HRFeedback(
        strengths=["Good communication skills", "Professional demeanor"],
        weaknesses=["Could provide more specific examples", "Consider expanding on experiences"],
        suggestions=["Practice STAR method responses", "Prepare more detailed examples"],
        score=7,
        communication=7,
        problem_solving=6,
        cultural_fit=7,
        leadership=6,
        detailed_results=[
            HRResult(
                question=question.question,
                response=responses[i] if i < len(responses) else "",
                evaluation="Good response with room for improvement",
                score=7,
            )
            for i, question in enumerate(questions)
        ],
    )


class StageHandler:
    """
    Base class for stage handlers.

    Subclasses implement:
    - _load(): fetch generated content (questions, challenge)
    - _apply(event): update local state; return True when the stage
      should be evaluated
    - _evaluate(): produce the stage feedback
    - _view(): stage-specific part of the snapshot
    """

    stage: InterviewStage

    def __init__(
        self,
        gateway: LLMEvaluationGateway,
        selection: str = "",
        settings: Settings | None = None,
    ):
        self.gateway = gateway
        self.selection = selection
        self.settings = settings or get_settings()
        self.status = StageStatus.LOADING
        self.prepared = False
        self.error: str | None = None
        self.feedback: Feedback | None = None

    @property
    def remaining_seconds(self) -> int | None:
        """Seconds left on the stage countdown, None for untimed stages."""
        return None

    async def prepare(self) -> None:
        """Load the stage content. Safe to call again after a failure."""
        if self.prepared:
            return

        self.status = StageStatus.LOADING
        self.error = None
        try:
            await self._load()
        except EvaluationError as e:
            logger.warning(f"Failed to prepare {self.stage.value}: {e}")
            self.status = StageStatus.FAILED
            self.error = PREPARE_RETRY_MESSAGE
            return

        self.prepared = True
        self.status = StageStatus.ACTIVE

    async def handle(self, event: StageEvent) -> Feedback | None:
        """
        Apply an event to the stage.

        Returns:
            The stage feedback on the event that completes the stage,
            None otherwise

        Raises:
            InputValidationError: If the stage is not ready or the input is invalid
        """
        if self.status == StageStatus.COMPLETED:
            return None
        if not self.prepared:
            raise InputValidationError(f"{self.stage.display_name} is not ready yet")
        if self.status == StageStatus.EVALUATING:
            raise InputValidationError(f"{self.stage.display_name} is already being evaluated")

        if not self._apply(event):
            return None
        return await self._complete()

    async def _complete(self) -> Feedback | None:
        self.status = StageStatus.EVALUATING
        self.error = None
        try:
            feedback = await self._evaluate()
        except EvaluationError as e:
            logger.warning(f"Evaluation failed for {self.stage.value}: {e}")
            self.status = StageStatus.FAILED
            self.error = RETRY_MESSAGE
            return None
        except Exception:
            logger.exception(f"Unexpected error evaluating {self.stage.value}")
            self.status = StageStatus.FAILED
            self.error = RETRY_MESSAGE
            raise

        self.feedback = feedback
        self.status = StageStatus.COMPLETED
        logger.info(f"{self.stage.display_name} completed with score {feedback.score}")
        return feedback

    def snapshot(self) -> dict[str, Any]:
        """Client view of the stage."""
        view = {
            "stage": self.stage.value,
            "status": self.status.value,
            "error": self.error,
            "remainingSeconds": self.remaining_seconds,
            "feedback": self.feedback.model_dump(mode="json", by_alias=True) if self.feedback else None,
        }
        if self.prepared:
            view.update(self._view())
        return view

    async def _load(self) -> None:
        pass

    def _apply(self, event: StageEvent) -> bool:
        raise NotImplementedError

    async def _evaluate(self) -> Feedback:
        raise NotImplementedError

    def _view(self) -> dict[str, Any]:
        return {}


# =============================================================================
# SELF INTRODUCTION
# =============================================================================

class SelfIntroductionStage(StageHandler):
    """Single free-text introduction, typed or dictated."""

    stage = InterviewStage.SELF_INTRODUCTION

    def __init__(self, gateway, selection="", settings=None):
        super().__init__(gateway, selection, settings)
        self.text = ""
        self.interim = ""
        self.speech_enabled = True

    def _apply(self, event: StageEvent) -> bool:
        if isinstance(event, ResponseEdited):
            self.text = event.text
        elif isinstance(event, SpeechInterimResult):
            self.interim = event.transcript
        elif isinstance(event, SpeechFinalResult):
            self.text = append_transcript(self.text, event.transcript)
            self.interim = ""
        elif isinstance(event, SpeechError):
            logger.info(f"Speech unavailable, continuing with text input: {event.error}")
            self.speech_enabled = False
            self.interim = ""
        elif isinstance(event, SubmitStage):
            if not self.text.strip():
                raise InputValidationError("Please enter your introduction before submitting.")
            return True
        return False

    async def _evaluate(self) -> Feedback:
        return await self.gateway.evaluate_self_introduction(self.text.strip())

    def _view(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "interim": self.interim,
            "speechEnabled": self.speech_enabled,
        }


# =============================================================================
# APTITUDE
# =============================================================================

class AptitudeStage(StageHandler):
    """
    Timed multiple-choice test.

    One countdown covers the whole test. When it reaches zero the test
    finishes with whatever answers were recorded; unanswered questions
    are graded as empty strings.
    """

    stage = InterviewStage.APTITUDE

    def __init__(self, gateway, selection="", settings=None):
        super().__init__(gateway, selection, settings)
        self.questions: list[AptitudeQuestion] = []
        self.answers: list[str] = []
        self.current = 0
        self.time_left = 0
        self.finished = False

    @property
    def remaining_seconds(self) -> int | None:
        return self.time_left

    async def _load(self) -> None:
        self.questions = await self.gateway.generate_aptitude_questions(
            self.settings.aptitude_question_count
        )
        self.answers = [""] * len(self.questions)
        self.current = 0
        self.time_left = len(self.questions) * self.settings.aptitude_seconds_per_question

    def _apply(self, event: StageEvent) -> bool:
        if self.finished:
            # Only a retry of a failed evaluation is meaningful now
            return isinstance(event, SubmitStage)

        if isinstance(event, AnswerSelected):
            index = self.current if event.question_index is None else event.question_index
            if index >= len(self.questions):
                raise InputValidationError(f"No question at index {index}")
            if event.answer not in self.questions[index].options:
                raise InputValidationError("Answer must be one of the question's options")
            self.answers[index] = event.answer
            return False

        if isinstance(event, NextQuestion):
            if self.current < len(self.questions) - 1:
                self.current += 1
                return False
            return self._finish("last question answered")

        if isinstance(event, TimerTick):
            self.time_left = max(0, self.time_left - event.seconds)
            if self.time_left == 0:
                return self._finish("time is up")
            return False

        if isinstance(event, SubmitStage):
            return self._finish("submitted")

        return False

    def _finish(self, reason: str) -> bool:
        answered = sum(1 for answer in self.answers if answer)
        logger.info(f"Aptitude test finished ({reason}): {answered}/{len(self.questions)} answered")
        self.finished = True
        return True

    async def _evaluate(self) -> Feedback:
        return await self.gateway.evaluate_aptitude(self.questions, self.answers)

    def _view(self) -> dict[str, Any]:
        # Answer keys stay server-side
        return {
            "questions": [{"question": q.question, "options": q.options} for q in self.questions],
            "currentIndex": self.current,
            "answers": self.answers,
            "finished": self.finished,
        }


# =============================================================================
# TECHNICAL Q&A
# =============================================================================

class TechnicalQAStage(StageHandler):
    """Free-text answers to 8-10 questions framed by the selection."""

    stage = InterviewStage.TECHNICAL_QA

    def __init__(self, gateway, selection="", settings=None):
        super().__init__(gateway, selection, settings)
        self.questions: list[str] = []
        self.answers: list[str] = []
        self.current = 0
        self.interim = ""

    async def _load(self) -> None:
        self.questions = await self.gateway.generate_technical_questions(self.selection)
        self.answers = [""] * len(self.questions)
        self.current = 0

    def _apply(self, event: StageEvent) -> bool:
        if isinstance(event, ResponseEdited):
            self.answers[self.current] = event.text
        elif isinstance(event, SpeechInterimResult):
            self.interim = event.transcript
        elif isinstance(event, SpeechFinalResult):
            self.answers[self.current] = append_transcript(self.answers[self.current], event.transcript)
            self.interim = ""
        elif isinstance(event, SpeechError):
            self.interim = ""
        elif isinstance(event, AnswerSelected) and event.question_index is not None:
            # Jump to a question; the free text arrives as the answer
            if event.question_index >= len(self.questions):
                raise InputValidationError(f"No question at index {event.question_index}")
            self.current = event.question_index
            self.answers[self.current] = event.answer
        elif isinstance(event, NextQuestion):
            self.current = min(self.current + 1, len(self.questions) - 1)
        elif isinstance(event, SubmitStage):
            if not any(answer.strip() for answer in self.answers):
                raise InputValidationError("Please answer at least one question before submitting.")
            return True
        return False

    async def _evaluate(self) -> Feedback:
        answers = [answer.strip() for answer in self.answers]
        return await self.gateway.evaluate_technical_answers(self.questions, answers, self.selection)

    def _view(self) -> dict[str, Any]:
        return {
            "questions": self.questions,
            "answers": self.answers,
            "currentIndex": self.current,
            "interim": self.interim,
        }


# =============================================================================
# CODING
# =============================================================================

class CodingStage(StageHandler):
    """
    Coding challenge with an editor and an optional run button.

    Running code never blocks submission; its outcome only feeds the
    program-output panel.
    """

    stage = InterviewStage.CODING

    def __init__(self, gateway, selection="", settings=None, resolver: ExecutionBackendResolver | None = None):
        super().__init__(gateway, selection, settings)
        self.resolver = resolver
        self.challenge: CodingChallenge | None = None
        self.code = ""
        self.last_run: ExecutionOutcome | None = None

    async def _load(self) -> None:
        self.challenge = await self.gateway.generate_coding_challenge(self.selection)
        self.code = self.challenge.default_code

    def _apply(self, event: StageEvent) -> bool:
        if isinstance(event, ResponseEdited):
            self.code = event.text
        elif isinstance(event, SubmitStage):
            if not strip_code_fences(self.code).strip():
                raise InputValidationError("Please write some code before submitting.")
            return True
        return False

    async def run(self, stdin: str = "", sandbox: SandboxBridge | None = None) -> ExecutionOutcome:
        """Execute the current code for the selection."""
        if not self.prepared:
            raise InputValidationError("Coding challenge is not ready yet")
        if self.resolver is None:
            raise InputValidationError("Code execution is not available")

        self.last_run = await self.resolver.run_selection(self.selection, self.code, stdin, sandbox)
        logger.info(f"Code run for {self.selection}: {self.last_run.status.value}")
        return self.last_run

    async def _evaluate(self) -> Feedback:
        problem = f"{self.challenge.title}\n\n{self.challenge.description}"
        return await self.gateway.evaluate_code(problem, self.selection, strip_code_fences(self.code))

    def _view(self) -> dict[str, Any]:
        return {
            "challenge": self.challenge.model_dump(mode="json", by_alias=True) if self.challenge else None,
            "code": self.code,
            "lastRun": self.last_run.model_dump(mode="json", by_alias=True) if self.last_run else None,
        }


# =============================================================================
# HR ROUND
# =============================================================================

class HRStage(StageHandler):
    """
    Five timed soft-skill questions.

    Each question has its own countdown. Moving on (or running out of
    time) records the current response, empty or not. This stage always
    completes: a failed evaluation falls back to fixed feedback.
    """

    stage = InterviewStage.HR

    def __init__(self, gateway, selection="", settings=None):
        super().__init__(gateway, selection, settings)
        self.questions: list[HRQuestion] = []
        self.responses: list[str] = []
        self.current = 0
        self.draft = ""
        self.interim = ""
        self.speech_enabled = True
        self.time_left = 0

    @property
    def remaining_seconds(self) -> int | None:
        return self.time_left

    @property
    def finished(self) -> bool:
        return bool(self.questions) and len(self.responses) >= len(self.questions)

    async def _load(self) -> None:
        self.questions = await self.gateway.generate_hr_questions(self.settings.hr_question_count)
        self.responses = []
        self.current = 0
        self.draft = ""
        self.time_left = self.settings.hr_seconds_per_question

    def _apply(self, event: StageEvent) -> bool:
        if self.finished:
            return isinstance(event, SubmitStage)

        if isinstance(event, ResponseEdited):
            self.draft = event.text
        elif isinstance(event, SpeechInterimResult):
            self.interim = event.transcript
        elif isinstance(event, SpeechFinalResult):
            self.draft = append_transcript(self.draft, event.transcript)
            self.interim = ""
        elif isinstance(event, SpeechError):
            logger.info(f"Speech unavailable, continuing with text input: {event.error}")
            self.speech_enabled = False
            self.interim = ""
        elif isinstance(event, NextQuestion):
            return self._record_response()
        elif isinstance(event, TimerTick):
            self.time_left = max(0, self.time_left - event.seconds)
            if self.time_left == 0:
                return self._record_response()
        elif isinstance(event, SubmitStage):
            # Finish early; questions not reached are not asked
            self.responses.append(self.draft.strip())
            self.questions = self.questions[:len(self.responses)]
            return True
        return False

    def _record_response(self) -> bool:
        self.responses.append(self.draft.strip())
        self.draft = ""
        self.interim = ""
        if self.finished:
            return True
        self.current += 1
        self.time_left = self.settings.hr_seconds_per_question
        return False

    async def _evaluate(self) -> Feedback:
        try:
            return await self.gateway.evaluate_hr_responses(self.questions, self.responses)
        except EvaluationError as e:
            logger.warning(f"HR evaluation failed, using fallback feedback: {e}")
            return hr_fallback_feedback(self.questions, self.responses)

    def _view(self) -> dict[str, Any]:
        question = self.questions[self.current] if self.current < len(self.questions) else None
        return {
            "questionCount": len(self.questions),
            "currentIndex": self.current,
            "currentQuestion": question.model_dump(mode="json", by_alias=True) if question else None,
            "draft": self.draft,
            "interim": self.interim,
            "speechEnabled": self.speech_enabled,
        }


STAGE_HANDLERS: dict[InterviewStage, type[StageHandler]] = {
    InterviewStage.SELF_INTRODUCTION: SelfIntroductionStage,
    InterviewStage.APTITUDE: AptitudeStage,
    InterviewStage.TECHNICAL_QA: TechnicalQAStage,
    InterviewStage.CODING: CodingStage,
    InterviewStage.HR: HRStage,
}


def build_stage_handler(
    stage: InterviewStage,
    gateway: LLMEvaluationGateway,
    selection: str,
    settings: Settings | None = None,
    resolver: ExecutionBackendResolver | None = None,
) -> StageHandler | None:
    """Create the handler for a feedback stage, or None for other stages."""
    handler_class = STAGE_HANDLERS.get(stage)
    if handler_class is None:
        return None
    if handler_class is CodingStage:
        return CodingStage(gateway, selection, settings, resolver=resolver)
    return handler_class(gateway, selection, settings)
