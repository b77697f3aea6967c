"""
Feedback Accumulator for AceMock

Folds each completed stage's feedback into the session's ResultsAggregate
and derives summary statistics from it.
"""

import logging

from acemock.models.feedback import Feedback
from acemock.models.session import ResultsAggregate
from acemock.models.stages import InterviewStage, STAGE_RESULT_SLOTS

logger = logging.getLogger(__name__)


class FeedbackAlreadyRecordedError(Exception):
    """Raised when a stage's slot is written a second time."""
    pass


class FeedbackAccumulator:
    """
    Pure operations over ResultsAggregate.

    merge never mutates its input; overall_score is always recomputed
    from the populated slots.
    """

    def slot_for(self, stage: InterviewStage | str) -> str:
        """Resolve a stage (or slot name) to its aggregate slot name."""
        if isinstance(stage, InterviewStage):
            if stage not in STAGE_RESULT_SLOTS:
                raise ValueError(f"Stage {stage.value} does not produce feedback")
            return STAGE_RESULT_SLOTS[stage]

        if stage in STAGE_RESULT_SLOTS.values():
            return stage
        try:
            return self.slot_for(InterviewStage(stage))
        except ValueError:
            raise ValueError(f"Unknown result slot: {stage}") from None

    def merge(
        self,
        aggregate: ResultsAggregate,
        stage: InterviewStage | str,
        feedback: Feedback,
    ) -> ResultsAggregate:
        """
        Return a copy of the aggregate with the stage's slot set.

        Raises:
            FeedbackAlreadyRecordedError: If the slot is already populated
            ValueError: If the feedback belongs to a different stage
        """
        slot = self.slot_for(stage)

        feedback_stage = getattr(feedback, "stage", None)
        if feedback_stage is not None and STAGE_RESULT_SLOTS.get(InterviewStage(feedback_stage)) != slot:
            raise ValueError(
                f"Feedback for stage {feedback_stage} cannot be stored in slot {slot}"
            )

        if getattr(aggregate, slot) is not None:
            raise FeedbackAlreadyRecordedError(f"Feedback for {slot} is already recorded")

        logger.debug(f"Recording {slot} feedback (score {feedback.score})")
        return aggregate.model_copy(update={slot: feedback})

    def overall_score(self, aggregate: ResultsAggregate) -> float:
        """Mean score of the populated slots, or 0 when none are populated."""
        scores = [feedback.score for feedback in aggregate.populated().values()]
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    def completed_count(self, aggregate: ResultsAggregate) -> int:
        return len(aggregate.populated())
