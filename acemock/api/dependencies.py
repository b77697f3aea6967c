"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

from contextlib import contextmanager

from fastapi import HTTPException

from acemock.config.settings import get_settings
from acemock.core.code_runner import ExecutionBackendResolver
from acemock.core.feedback_accumulator import FeedbackAlreadyRecordedError
from acemock.core.interview_orchestrator import InterviewOrchestrator, SessionNotFoundError
from acemock.core.llm_gateway import LLMEvaluationGateway
from acemock.core.stage_machine import StageTransitionError
from acemock.core.stages import InputValidationError


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_orchestrator: InterviewOrchestrator | None = None


def get_orchestrator() -> InterviewOrchestrator:
    """
    Get the interview orchestrator singleton.

    Lazily initializes the gateway and the execution resolver.
    """
    global _orchestrator

    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = InterviewOrchestrator(
            gateway=LLMEvaluationGateway(settings),
            resolver=ExecutionBackendResolver(settings),
            settings=settings,
        )

    return _orchestrator


async def cleanup():
    """Cleanup resources on shutdown."""
    global _orchestrator

    if _orchestrator:
        await _orchestrator.close()
        await _orchestrator.gateway.close()
        await _orchestrator.resolver.close()

    _orchestrator = None


# ============================================================================
# ERROR MAPPING
# ============================================================================

@contextmanager
def translate_errors():
    """Map core exceptions to HTTP errors."""
    try:
        yield
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (StageTransitionError, FeedbackAlreadyRecordedError) as e:
        raise HTTPException(status_code=409, detail=str(e))
