"""
Report models for AceMock

Defines the structure of the final interview report.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import Field

from acemock.models.feedback import CamelModel
from acemock.models.stages import InterviewStage


class ReadinessVerdict(str, Enum):
    """Overall readiness derived from the overall score."""

    INTERVIEW_READY = "interview_ready"
    PROMISING = "promising"
    NEEDS_PRACTICE = "needs_practice"
    NOT_STARTED = "not_started"

    @property
    def display_text(self) -> str:
        """Human-readable verdict."""
        texts = {
            "interview_ready": "Interview Ready",
            "promising": "Promising",
            "needs_practice": "Needs Practice",
            "not_started": "Not Started",
        }
        return texts.get(self.value, self.value)

    @property
    def description(self) -> str:
        """Verdict description."""
        descriptions = {
            "interview_ready": "Strong, consistent performance across the completed stages.",
            "promising": "Solid foundation with a few areas to sharpen before a real interview.",
            "needs_practice": "Several stages need focused practice before a real interview.",
            "not_started": "No stage has been completed yet.",
        }
        return descriptions.get(self.value, "")


class StageSummary(CamelModel):
    """Condensed result of one completed stage."""

    stage: InterviewStage
    stage_name: str
    score: int
    summary: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class InterviewReport(CamelModel):
    """Final report shown after the HR round."""

    session_id: str
    selection: str
    generated_at: datetime = Field(default_factory=datetime.utcnow)

    overall_score: float = Field(..., ge=0, le=10)
    verdict: ReadinessVerdict
    verdict_description: str

    completed_stages: int
    stages: list[StageSummary] = Field(default_factory=list)

    top_strengths: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)


class ReportRecord(CamelModel):
    """Row shape handed to an external report store."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str | None = None
    stage: str
    score: float
    summary: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
