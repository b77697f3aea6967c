"""
Interview session models for AceMock
"""

from datetime import datetime
from uuid import uuid4

from pydantic import Field

from acemock.models.feedback import (
    AptitudeFeedback,
    CamelModel,
    CodingFeedback,
    Feedback,
    HRFeedback,
    SelfIntroductionFeedback,
    TechnicalQAFeedback,
)
from acemock.models.stages import InterviewStage


class ResultsAggregate(CamelModel):
    """One optional feedback slot per completed stage."""

    self_introduction: SelfIntroductionFeedback | None = None
    aptitude: AptitudeFeedback | None = None
    technical_qa: TechnicalQAFeedback | None = Field(
        default=None, alias="technicalQA"
    )
    coding: CodingFeedback | None = None
    hr_round: HRFeedback | None = None

    def populated(self) -> dict[str, Feedback]:
        """Populated slots keyed by slot name, in stage order."""
        slots = {
            "self_introduction": self.self_introduction,
            "aptitude": self.aptitude,
            "technical_qa": self.technical_qa,
            "coding": self.coding,
            "hr_round": self.hr_round,
        }
        return {name: value for name, value in slots.items() if value is not None}


class InterviewSession(CamelModel):
    """Session-scoped interview state owned by the orchestrator."""

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    stage: InterviewStage = InterviewStage.WELCOME
    selection: str = ""
    results: ResultsAggregate = Field(default_factory=ResultsAggregate)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def touch(self) -> None:
        """Record a mutation time."""
        self.updated_at = datetime.utcnow()
