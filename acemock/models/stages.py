"""
Interview stage definitions for AceMock

The interview is a fixed, linear sequence of stages. Stages are totally
ordered; the only way back to an earlier stage is a full reset.
"""

from enum import Enum


class InterviewStage(str, Enum):
    """Interview stages, declared in progression order."""

    WELCOME = "welcome"
    LANGUAGE_SELECTION = "language_selection"
    SELF_INTRODUCTION = "self_introduction"
    APTITUDE = "aptitude"
    TECHNICAL_QA = "technical_qa"
    CODING = "coding"
    HR = "hr"
    FEEDBACK = "feedback"

    @property
    def index(self) -> int:
        """Position of the stage in the interview sequence."""
        return STAGE_ORDER.index(self)

    @property
    def next_stage(self) -> "InterviewStage | None":
        """The stage that follows this one, or None after FEEDBACK."""
        position = self.index + 1
        return STAGE_ORDER[position] if position < len(STAGE_ORDER) else None

    @property
    def display_name(self) -> str:
        """Human-readable stage name."""
        names = {
            "welcome": "Welcome",
            "language_selection": "Language Selection",
            "self_introduction": "Self Introduction",
            "aptitude": "Aptitude Test",
            "technical_qa": "Technical Q&A",
            "coding": "Coding Challenge",
            "hr": "HR Round",
            "feedback": "Feedback Report",
        }
        return names.get(self.value, self.value)

    @property
    def produces_feedback(self) -> bool:
        """Whether completing this stage yields a StageFeedback."""
        return self in STAGE_RESULT_SLOTS

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, InterviewStage):
            return NotImplemented
        return self.index < other.index

    def __le__(self, other: object) -> bool:
        if not isinstance(other, InterviewStage):
            return NotImplemented
        return self.index <= other.index

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, InterviewStage):
            return NotImplemented
        return self.index > other.index

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, InterviewStage):
            return NotImplemented
        return self.index >= other.index


STAGE_ORDER: list[InterviewStage] = list(InterviewStage)

# Aggregate slot written when each feedback stage completes
STAGE_RESULT_SLOTS: dict[InterviewStage, str] = {
    InterviewStage.SELF_INTRODUCTION: "self_introduction",
    InterviewStage.APTITUDE: "aptitude",
    InterviewStage.TECHNICAL_QA: "technical_qa",
    InterviewStage.CODING: "coding",
    InterviewStage.HR: "hr_round",
}
