"""
Metadata API endpoints

Provides reference data for:
- Selections (languages, frameworks, tracks)
- Interview stages
"""

from fastapi import APIRouter
from pydantic import BaseModel

from acemock.models.profiles import ProfileKind, get_profiles_by_kind
from acemock.models.stages import InterviewStage

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class SelectionInfo(BaseModel):
    """Information about a selectable language, framework or track."""
    name: str
    kind: str
    description: str
    topics: list[str]
    coding_language: str
    supports_execution: bool


class StageInfo(BaseModel):
    """Information about an interview stage."""
    id: str
    name: str
    index: int
    produces_feedback: bool


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/selections")
async def get_selections() -> dict[str, list[SelectionInfo]]:
    """Get all selections grouped by kind."""
    grouped = {}

    for kind in ProfileKind:
        grouped[kind.value] = [
            SelectionInfo(
                name=profile.name,
                kind=profile.kind.value,
                description=profile.description,
                topics=list(profile.topics),
                coding_language=profile.coding_language,
                supports_execution=profile.supports_execution,
            )
            for profile in get_profiles_by_kind(kind)
        ]

    return grouped


@router.get("/stages")
async def get_stages() -> list[StageInfo]:
    """Get the interview stages in order."""
    return [
        StageInfo(
            id=stage.value,
            name=stage.display_name,
            index=stage.index,
            produces_feedback=stage.produces_feedback,
        )
        for stage in InterviewStage
    ]
