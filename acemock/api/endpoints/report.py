"""
Report API endpoints

Handles:
- Final report generation
- Storable report records
"""

from fastapi import APIRouter, Depends

from acemock.api.dependencies import get_orchestrator, translate_errors
from acemock.core.interview_orchestrator import InterviewOrchestrator
from acemock.models.report import InterviewReport, ReportRecord

router = APIRouter()


@router.get("/{session_id}", response_model=InterviewReport)
async def get_report(
    session_id: str,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> InterviewReport:
    """
    Get the interview report.

    Available at any stage; only completed stages are included.
    """
    with translate_errors():
        return orchestrator.report(session_id)


@router.get("/{session_id}/records", response_model=list[ReportRecord])
async def get_report_records(
    session_id: str,
    user_id: str | None = None,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
) -> list[ReportRecord]:
    """One record per completed stage, in the shape a report store keeps."""
    with translate_errors():
        return orchestrator.records(session_id, user_id)
