"""
AI prompt templates for AceMock

Contains structured prompts and response schemas for:
- Stage content generation
- Stage evaluation
"""

from acemock.prompts.base import PromptRequest
from acemock.prompts.interviewer import InterviewerPrompts
from acemock.prompts.evaluator import EvaluatorPrompts

__all__ = [
    "PromptRequest",
    "InterviewerPrompts",
    "EvaluatorPrompts",
]
