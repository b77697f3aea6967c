"""
Data models and schemas for AceMock

Contains Pydantic models for:
- Interview stages and sessions
- Selection profiles
- Stage feedback
- Stage events
- Code execution results
- Report data
"""

from acemock.models.stages import InterviewStage, STAGE_ORDER, STAGE_RESULT_SLOTS
from acemock.models.profiles import (
    ProfileKind,
    SelectionProfile,
    PROFILE_CATALOG,
    SELECTION_RUNTIMES,
    get_profile,
)
from acemock.models.feedback import (
    AptitudeFeedback,
    AptitudeQuestion,
    CodingChallenge,
    CodingFeedback,
    Feedback,
    HRFeedback,
    HRQuestion,
    SelfIntroductionFeedback,
    StageFeedback,
    TechnicalQAFeedback,
)
from acemock.models.session import InterviewSession, ResultsAggregate
from acemock.models.events import StageEvent, parse_event
from acemock.models.execution import ExecutionOutcome, ExecutionStatus, RunResult, SandboxResult
from acemock.models.report import InterviewReport, ReadinessVerdict, ReportRecord, StageSummary

__all__ = [
    # Stages
    "InterviewStage",
    "STAGE_ORDER",
    "STAGE_RESULT_SLOTS",
    # Profiles
    "ProfileKind",
    "SelectionProfile",
    "PROFILE_CATALOG",
    "SELECTION_RUNTIMES",
    "get_profile",
    # Feedback
    "AptitudeFeedback",
    "AptitudeQuestion",
    "CodingChallenge",
    "CodingFeedback",
    "Feedback",
    "HRFeedback",
    "HRQuestion",
    "SelfIntroductionFeedback",
    "StageFeedback",
    "TechnicalQAFeedback",
    # Session
    "InterviewSession",
    "ResultsAggregate",
    # Events
    "StageEvent",
    "parse_event",
    # Execution
    "ExecutionOutcome",
    "ExecutionStatus",
    "RunResult",
    "SandboxResult",
    # Report
    "InterviewReport",
    "ReadinessVerdict",
    "ReportRecord",
    "StageSummary",
]
