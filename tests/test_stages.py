from __future__ import annotations

import asyncio

import httpx
import pytest

from acemock.core.code_runner import ExecutionBackendResolver
from acemock.core.llm_gateway import LLMEvaluationGateway
from acemock.core.stages import (
    AptitudeStage,
    CodingStage,
    HRStage,
    InputValidationError,
    SelfIntroductionStage,
    StageStatus,
    TechnicalQAStage,
    build_stage_handler,
    hr_fallback_feedback,
)
from acemock.models.events import (
    AnswerSelected,
    NextQuestion,
    ResponseEdited,
    SpeechError,
    SpeechFinalResult,
    SpeechInterimResult,
    SubmitStage,
    TimerTick,
)
from acemock.models.execution import ExecutionStatus
from acemock.models.profiles import SELECTION_RUNTIMES
from acemock.models.stages import InterviewStage
from tests.mocks.gateway import HR_QUESTIONS, FakeGateway
from tests.mocks.remote_api import GeminiAPIMock, PistonAPIMock


def _run(handler, *events):
    """Apply events in order; return the results of each handle call."""

    async def run():
        results = []
        for event in events:
            results.append(await handler.handle(event))
        return results

    return asyncio.run(run())


# =============================================================================
# SELF INTRODUCTION
# =============================================================================

def test_self_introduction_rejects_empty_submission(gateway: FakeGateway, settings) -> None:
    stage = SelfIntroductionStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    with pytest.raises(InputValidationError):
        _run(stage, ResponseEdited(text="   "), SubmitStage())
    assert gateway.calls == []
    assert stage.status == StageStatus.ACTIVE


def test_self_introduction_combines_typing_and_speech(gateway: FakeGateway, settings) -> None:
    stage = SelfIntroductionStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    _run(
        stage,
        ResponseEdited(text="Hi, I'm Sam."),
        SpeechInterimResult(transcript="I build"),
        SpeechFinalResult(transcript="I build APIs."),
    )
    assert stage.text == "Hi, I'm Sam. I build APIs."
    assert stage.interim == ""

    _run(stage, SpeechError(error="not-allowed"))
    assert stage.speech_enabled is False
    assert stage.status == StageStatus.ACTIVE

    first, second = _run(stage, SubmitStage(), SubmitStage())
    assert first is not None and first.score == 8
    assert second is None
    assert stage.status == StageStatus.COMPLETED
    assert gateway.called("evaluate_self_introduction") == [{"introduction": "Hi, I'm Sam. I build APIs."}]


def test_failed_evaluation_stays_submittable(settings) -> None:
    gateway = FakeGateway(fail={"evaluate_self_introduction"})
    stage = SelfIntroductionStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    [result] = _run(stage, ResponseEdited(text="Hello"))
    [result] = _run(stage, SubmitStage())
    assert result is None
    assert stage.status == StageStatus.FAILED
    assert "try submitting again" in stage.error
    assert stage.feedback is None

    gateway.fail.clear()
    _run(stage, ResponseEdited(text="Hello there"))
    [result] = _run(stage, SubmitStage())
    assert result is not None
    assert stage.status == StageStatus.COMPLETED
    assert stage.error is None


def test_malformed_model_reply_leaves_stage_retryable(settings) -> None:
    gemini = GeminiAPIMock(
        httpx.Response(200, json=[]),
        {"strengths": ["Warm"], "weaknesses": [], "suggestions": [], "score": 6},
    )
    gateway = LLMEvaluationGateway(settings, client=gemini.client())
    stage = SelfIntroductionStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    [_, result] = _run(stage, ResponseEdited(text="hi"), SubmitStage())
    assert result is None
    assert stage.status == StageStatus.FAILED

    [result] = _run(stage, SubmitStage())
    assert result is not None and result.score == 6
    assert stage.status == StageStatus.COMPLETED



def test_unexpected_evaluation_error_does_not_wedge_the_stage(settings) -> None:
    class BrokenGateway(FakeGateway):
        async def evaluate_self_introduction(self, introduction):
            if not self.calls:
                self.calls.append(("evaluate_self_introduction", {}))
                raise RuntimeError("boom")
            return await super().evaluate_self_introduction(introduction)

    stage = SelfIntroductionStage(BrokenGateway(), "Python", settings)
    asyncio.run(stage.prepare())
    _run(stage, ResponseEdited(text="Hello"))

    with pytest.raises(RuntimeError):
        _run(stage, SubmitStage())
    assert stage.status == StageStatus.FAILED

    [result] = _run(stage, SubmitStage())
    assert result is not None
    assert stage.status == StageStatus.COMPLETED


# =============================================================================
# APTITUDE
# =============================================================================

def test_aptitude_timer_expiry_submits_recorded_answers(gateway: FakeGateway, settings) -> None:
    stage = AptitudeStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())
    assert stage.remaining_seconds == 5 * settings.aptitude_seconds_per_question

    results = _run(
        stage,
        AnswerSelected(answer="A"),
        NextQuestion(),
        AnswerSelected(answer="B"),
        TimerTick(seconds=stage.remaining_seconds - 1),
        TimerTick(),
    )

    assert results[:-1] == [None, None, None, None]
    feedback = results[-1]
    assert feedback is not None
    assert gateway.called("evaluate_aptitude")[0]["answers"] == ["A", "B", "", "", ""]
    assert feedback.correct_count == 1
    assert feedback.total_questions == 5
    assert stage.remaining_seconds == 0


def test_aptitude_finishes_after_last_question(gateway: FakeGateway, settings) -> None:
    stage = AptitudeStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    events = []
    for _ in range(5):
        events += [AnswerSelected(answer="A"), NextQuestion()]
    results = _run(stage, *events)

    assert all(r is None for r in results[:-1])
    assert results[-1].correct_count == 5


def test_aptitude_answer_must_be_an_option(gateway: FakeGateway, settings) -> None:
    stage = AptitudeStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    with pytest.raises(InputValidationError):
        _run(stage, AnswerSelected(answer="E"))
    with pytest.raises(InputValidationError):
        _run(stage, AnswerSelected(answer="A", question_index=7))

    _run(stage, AnswerSelected(answer="C", question_index=3))
    assert stage.answers == ["", "", "", "C", ""]


def test_aptitude_snapshot_hides_answer_keys(gateway: FakeGateway, settings) -> None:
    stage = AptitudeStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    view = stage.snapshot()
    assert view["status"] == "active"
    assert view["questions"][0] == {"question": "Question 0", "options": ["A", "B", "C", "D"]}
    assert "answer" not in str(view["questions"])


def test_aptitude_retry_after_failed_evaluation(settings) -> None:
    gateway = FakeGateway(fail={"evaluate_aptitude"})
    stage = AptitudeStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    [result] = _run(stage, TimerTick(seconds=10_000))
    assert result is None
    assert stage.status == StageStatus.FAILED

    # Answers are frozen once time is up
    _run(stage, AnswerSelected(answer="A"), NextQuestion())
    gateway.fail.clear()
    [result] = _run(stage, SubmitStage())
    assert result is not None
    assert gateway.called("evaluate_aptitude")[-1]["answers"] == [""] * 5


# =============================================================================
# TECHNICAL Q&A
# =============================================================================

def test_technical_stage_requires_one_answer(gateway: FakeGateway, settings) -> None:
    stage = TechnicalQAStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())
    assert len(stage.questions) == 9

    with pytest.raises(InputValidationError):
        _run(stage, SubmitStage())
    assert gateway.called("evaluate_technical_answers") == []

    results = _run(
        stage,
        ResponseEdited(text="A list is mutable."),
        NextQuestion(),
        SpeechFinalResult(transcript="Generators are lazy."),
        SubmitStage(),
    )
    feedback = results[-1]
    assert feedback.question_count == 9
    assert len(feedback.detailed_results) == 9
    sent = gateway.called("evaluate_technical_answers")[0]
    assert sent["answers"][:3] == ["A list is mutable.", "Generators are lazy.", ""]
    assert sent["selection"] == "Python"


def test_failed_prepare_can_be_retried(settings) -> None:
    gateway = FakeGateway(fail={"generate_technical_questions"})
    stage = TechnicalQAStage(gateway, "Go", settings)

    asyncio.run(stage.prepare())
    assert stage.status == StageStatus.FAILED
    assert stage.error
    with pytest.raises(InputValidationError):
        _run(stage, ResponseEdited(text="answer"))

    gateway.fail.clear()
    asyncio.run(stage.prepare())
    assert stage.status == StageStatus.ACTIVE
    assert stage.error is None
    assert len(gateway.called("generate_technical_questions")) == 2


# =============================================================================
# CODING
# =============================================================================

def test_unsupported_language_does_not_block_submission(gateway: FakeGateway, settings) -> None:
    runtime_map = {k: v for k, v in SELECTION_RUNTIMES.items() if k != "Java"}
    piston = PistonAPIMock()
    resolver = ExecutionBackendResolver(settings, client=piston.client(), runtime_map=runtime_map)
    stage = CodingStage(gateway, "Java", settings, resolver=resolver)
    asyncio.run(stage.prepare())

    outcome = asyncio.run(stage.run())
    assert outcome.status == ExecutionStatus.UNSUPPORTED
    assert stage.snapshot()["lastRun"]["status"] == "unsupported"

    _run(stage, ResponseEdited(text="```java\nclass Main {}\n```"))
    [feedback] = _run(stage, SubmitStage())
    assert feedback is not None and feedback.stage == "coding"
    assert gateway.called("evaluate_code")[0]["code"] == "class Main {}"
    assert piston.executions == []


def test_coding_run_uses_current_code(gateway: FakeGateway, settings, resolver, piston) -> None:
    stage = CodingStage(gateway, "Python", settings, resolver=resolver)
    asyncio.run(stage.prepare())
    assert stage.code.startswith("```python")

    _run(stage, ResponseEdited(text="print(input())"))
    outcome = asyncio.run(stage.run("7"))

    assert outcome.status == ExecutionStatus.OK
    assert piston.executions[0]["files"][0]["content"] == "print(input())"
    assert piston.executions[0]["stdin"] == "7"
    assert stage.status == StageStatus.ACTIVE


def test_coding_rejects_empty_code(gateway: FakeGateway, settings, resolver) -> None:
    stage = CodingStage(gateway, "Python", settings, resolver=resolver)
    asyncio.run(stage.prepare())

    with pytest.raises(InputValidationError):
        _run(stage, ResponseEdited(text="```python\n```"), SubmitStage())
    assert gateway.called("evaluate_code") == []


# =============================================================================
# HR ROUND
# =============================================================================

def test_hr_evaluation_failure_uses_fallback_feedback(settings) -> None:
    gateway = FakeGateway(fail={"evaluate_hr_responses"})
    stage = HRStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    events = [
        ResponseEdited(text="I mediated between two teammates."),
        NextQuestion(),
        TimerTick(seconds=settings.hr_seconds_per_question),
        SpeechFinalResult(transcript="I love building products."),
        NextQuestion(),
        ResponseEdited(text="Small and candid."),
        NextQuestion(),
        NextQuestion(),
    ]
    results = _run(stage, *events)

    feedback = results[-1]
    assert all(r is None for r in results[:-1])
    assert feedback is not None
    assert stage.status == StageStatus.COMPLETED
    assert (feedback.score, feedback.communication, feedback.problem_solving,
            feedback.cultural_fit, feedback.leadership) == (7, 7, 6, 7, 6)
    assert len(feedback.detailed_results) == 5
    assert [r.response for r in feedback.detailed_results] == [
        "I mediated between two teammates.", "", "I love building products.", "Small and candid.", "",
    ]
    assert [r.question for r in feedback.detailed_results] == [q.question for q in HR_QUESTIONS]


def test_hr_timer_resets_for_each_question(gateway: FakeGateway, settings) -> None:
    stage = HRStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())
    per_question = settings.hr_seconds_per_question

    _run(stage, TimerTick(seconds=30))
    assert stage.remaining_seconds == per_question - 30

    _run(stage, NextQuestion())
    assert stage.current == 1
    assert stage.remaining_seconds == per_question
    assert stage.responses == [""]


def test_hr_submit_early_evaluates_questions_asked(gateway: FakeGateway, settings) -> None:
    stage = HRStage(gateway, "Python", settings)
    asyncio.run(stage.prepare())

    results = _run(stage, ResponseEdited(text="First"), NextQuestion(), ResponseEdited(text="Second"), SubmitStage())

    feedback = results[-1]
    assert len(feedback.detailed_results) == 2
    sent = gateway.called("evaluate_hr_responses")[0]
    assert sent["responses"] == ["First", "Second"]
    assert len(sent["questions"]) == 2


def test_hr_fallback_covers_every_question_asked() -> None:
    feedback = hr_fallback_feedback(HR_QUESTIONS[:3], ["only one"])
    assert len(feedback.detailed_results) == 3
    assert [r.response for r in feedback.detailed_results] == ["only one", "", ""]
    assert all(1 <= r.score <= 10 for r in feedback.detailed_results)


def test_build_stage_handler(gateway: FakeGateway, settings, resolver) -> None:
    assert build_stage_handler(InterviewStage.WELCOME, gateway, "Python", settings) is None
    assert build_stage_handler(InterviewStage.FEEDBACK, gateway, "Python", settings) is None
    coding = build_stage_handler(InterviewStage.CODING, gateway, "Python", settings, resolver=resolver)
    assert isinstance(coding, CodingStage)
    assert coding.resolver is resolver
    assert isinstance(build_stage_handler(InterviewStage.HR, gateway, "Python", settings), HRStage)
