"""
Report Generator for AceMock

Builds the final interview report from a session's results:
- Overall score (mean of completed stages)
- Per-stage summaries
- Readiness verdict
- Top strengths and focus areas
"""

import logging

from acemock.core.feedback_accumulator import FeedbackAccumulator
from acemock.models.feedback import (
    AptitudeFeedback,
    CodingFeedback,
    Feedback,
    HRFeedback,
    TechnicalQAFeedback,
)
from acemock.models.report import InterviewReport, ReadinessVerdict, ReportRecord, StageSummary
from acemock.models.session import InterviewSession
from acemock.models.stages import InterviewStage, STAGE_RESULT_SLOTS

logger = logging.getLogger(__name__)


_SLOT_STAGES = {slot: stage for stage, slot in STAGE_RESULT_SLOTS.items()}


class ReportGenerator:
    """
    Generates the end-of-interview report.

    Scores are always recomputed from the session's ResultsAggregate.
    """

    def __init__(self, accumulator: FeedbackAccumulator | None = None):
        self.accumulator = accumulator or FeedbackAccumulator()

    def build(self, session: InterviewSession) -> InterviewReport:
        """
        Build the report for a session.

        Works for partially completed sessions; only populated stages
        are summarised.
        """
        populated = session.results.populated()
        overall = round(self.accumulator.overall_score(session.results), 1)
        verdict = self._determine_verdict(overall, len(populated))

        stages = [
            self._summarize_stage(_SLOT_STAGES[slot], feedback)
            for slot, feedback in populated.items()
        ]

        logger.info(
            f"Report for session {session.session_id}: "
            f"{len(stages)} stages, overall {overall}, {verdict.value}"
        )

        return InterviewReport(
            session_id=session.session_id,
            selection=session.selection,
            overall_score=overall,
            verdict=verdict,
            verdict_description=verdict.description,
            completed_stages=len(stages),
            stages=stages,
            top_strengths=self._collect(populated.values(), "strengths"),
            focus_areas=self._identify_focus_areas(populated.values()),
        )

    def records(self, session: InterviewSession, user_id: str | None = None) -> list[ReportRecord]:
        """One storable record per completed stage."""
        return [
            ReportRecord(
                user_id=user_id,
                stage=_SLOT_STAGES[slot].display_name,
                score=feedback.score,
                summary=self._summary_line(_SLOT_STAGES[slot], feedback),
            )
            for slot, feedback in session.results.populated().items()
        ]

    def _determine_verdict(self, score: float, completed: int) -> ReadinessVerdict:
        """Map the overall score to a readiness band."""
        if completed == 0:
            return ReadinessVerdict.NOT_STARTED
        if score >= 8:
            return ReadinessVerdict.INTERVIEW_READY
        elif score >= 6:
            return ReadinessVerdict.PROMISING
        else:
            return ReadinessVerdict.NEEDS_PRACTICE

    def _summarize_stage(self, stage: InterviewStage, feedback: Feedback) -> StageSummary:
        return StageSummary(
            stage=stage,
            stage_name=stage.display_name,
            score=feedback.score,
            summary=self._summary_line(stage, feedback),
            strengths=feedback.strengths,
            weaknesses=feedback.weaknesses,
            suggestions=feedback.suggestions,
        )

    def _summary_line(self, stage: InterviewStage, feedback: Feedback) -> str:
        """One-line, stage-specific description of the result."""
        base = f"{stage.display_name}: {feedback.score}/10"

        if isinstance(feedback, AptitudeFeedback):
            return f"{base}, {feedback.correct_count}/{feedback.total_questions} correct"
        if isinstance(feedback, TechnicalQAFeedback):
            return f"{base} across {feedback.question_count} questions"
        if isinstance(feedback, CodingFeedback):
            return f"{base}. {feedback.logic}"
        if isinstance(feedback, HRFeedback):
            return (
                f"{base} (communication {feedback.communication}, "
                f"problem solving {feedback.problem_solving}, "
                f"cultural fit {feedback.cultural_fit}, leadership {feedback.leadership})"
            )
        return f"{base}. {self._interpret_score(feedback.score)}"

    def _interpret_score(self, score: int) -> str:
        if score >= 9:
            return "Exceptional"
        elif score >= 7:
            return "Strong with minor improvements possible"
        elif score >= 5:
            return "Adequate with clear gaps"
        else:
            return "Needs significant improvement"

    def _collect(self, feedbacks, field: str, limit: int = 5) -> list[str]:
        items = []
        for feedback in feedbacks:
            items.extend(getattr(feedback, field)[:2])

        # Deduplicate and limit
        return list(dict.fromkeys(items))[:limit]

    def _identify_focus_areas(self, feedbacks) -> list[str]:
        """Weaknesses from the lowest-scoring stages first."""
        ordered = sorted(feedbacks, key=lambda f: f.score)
        return self._collect(ordered, "weaknesses")
