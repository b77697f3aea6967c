"""
Core business logic modules for AceMock

Contains:
- Stage State Machine: Fixed stage order, reset
- Feedback Accumulator: Results aggregate and overall score
- LLM Evaluation Gateway: Content generation and evaluation
- Execution Backend Resolver: Piston runtimes and code runs
- Sandbox Bridge: Browser-side JavaScript runs
- Stage Handlers: Per-stage state and events
- Interview Orchestrator: Session controller
- Report Generator: Final report compilation
"""

from acemock.core.stage_machine import StageStateMachine
from acemock.core.feedback_accumulator import FeedbackAccumulator
from acemock.core.llm_gateway import LLMEvaluationGateway
from acemock.core.code_runner import ExecutionBackendResolver
from acemock.core.sandbox_bridge import SandboxBridge
from acemock.core.interview_orchestrator import InterviewOrchestrator
from acemock.core.report_generator import ReportGenerator

__all__ = [
    "StageStateMachine",
    "FeedbackAccumulator",
    "LLMEvaluationGateway",
    "ExecutionBackendResolver",
    "SandboxBridge",
    "InterviewOrchestrator",
    "ReportGenerator",
]
