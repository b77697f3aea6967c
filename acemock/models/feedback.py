"""
Stage feedback models for AceMock

Every feedback stage returns one structured record. All records share the
base shape (strengths, weaknesses, suggestions, score) and are discriminated
by the stage that produced them.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# Scores and sub-scores are integers on a 1-10 scale
Score = Annotated[int, Field(ge=1, le=10)]


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys for the browser client."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================================
# STAGE INPUTS
# ============================================================================

class AptitudeQuestion(CamelModel):
    """A multiple-choice aptitude question with its answer key."""

    question: str
    options: list[str] = Field(..., min_length=2)
    answer: str

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "AptitudeQuestion":
        if self.answer not in self.options:
            raise ValueError("answer must be one of the options")
        return self


class HRCategory(str, Enum):
    """HR question categories."""

    BEHAVIORAL = "behavioral"
    SITUATIONAL = "situational"
    MOTIVATIONAL = "motivational"
    TEAMWORK = "teamwork"
    LEADERSHIP = "leadership"


class HRQuestion(CamelModel):
    """An HR round question."""

    question: str
    category: HRCategory = HRCategory.BEHAVIORAL


class CodingChallenge(CamelModel):
    """A generated coding challenge."""

    title: str
    description: str
    default_code: str = ""


# ============================================================================
# FEEDBACK
# ============================================================================

class Feedback(CamelModel):
    """Base feedback shape shared by all stages."""

    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    score: Score


class SelfIntroductionFeedback(Feedback):
    """Feedback on the candidate's self-introduction."""

    stage: Literal["self_introduction"] = "self_introduction"


class AptitudeResult(CamelModel):
    """Per-question aptitude outcome."""

    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool


class AptitudeFeedback(Feedback):
    """Aptitude test feedback; correctness is computed locally."""

    stage: Literal["aptitude"] = "aptitude"
    correct_count: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    detailed_results: list[AptitudeResult] = Field(default_factory=list)

    @model_validator(mode="after")
    def _counts_are_consistent(self) -> "AptitudeFeedback":
        if self.correct_count > self.total_questions:
            raise ValueError("correct_count cannot exceed total_questions")
        return self


class TechnicalQAResult(CamelModel):
    """Per-question technical evaluation."""

    question: str
    answer: str
    evaluation: str
    score: Score


class TechnicalQAFeedback(Feedback):
    """Technical Q&A feedback."""

    stage: Literal["technical_qa"] = "technical_qa"
    question_count: int = Field(..., ge=0)
    detailed_results: list[TechnicalQAResult] = Field(default_factory=list)


class CodingFeedback(Feedback):
    """Code review feedback."""

    stage: Literal["coding"] = "coding"
    logic: str
    syntax: str
    efficiency: str


class HRResult(CamelModel):
    """Per-question HR evaluation."""

    question: str
    response: str
    evaluation: str
    score: Score


class HRFeedback(Feedback):
    """HR round feedback with four named sub-scores."""

    stage: Literal["hr"] = "hr"
    communication: Score
    problem_solving: Score
    cultural_fit: Score
    leadership: Score
    detailed_results: list[HRResult] = Field(default_factory=list)


StageFeedback = Annotated[
    Union[
        SelfIntroductionFeedback,
        AptitudeFeedback,
        TechnicalQAFeedback,
        CodingFeedback,
        HRFeedback,
    ],
    Field(discriminator="stage"),
]
