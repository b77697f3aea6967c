"""
Shared prompt building blocks.

Response schemas use the Gemini structured-output schema dialect
(OBJECT / ARRAY / STRING / INTEGER type names).
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PromptRequest:
    """A prompt paired with the response schema the model must follow."""

    name: str
    system_instruction: str
    contents: str
    response_schema: dict[str, Any] = field(default_factory=dict)


FEEDBACK_PROPERTIES: dict[str, Any] = {
    "strengths": {
        "type": "ARRAY",
        "items": {"type": "STRING"},
        "description": "Positive aspects of the response.",
    },
    "weaknesses": {
        "type": "ARRAY",
        "items": {"type": "STRING"},
        "description": "Areas that need improvement.",
    },
    "suggestions": {
        "type": "ARRAY",
        "items": {"type": "STRING"},
        "description": "Actionable tips for improvement.",
    },
    "score": {
        "type": "INTEGER",
        "description": "A score from 1 to 10 evaluating the overall performance.",
    },
}

FEEDBACK_REQUIRED: list[str] = ["strengths", "weaknesses", "suggestions", "score"]


def feedback_schema(
    extra_properties: dict[str, Any] | None = None,
    extra_required: list[str] | None = None,
) -> dict[str, Any]:
    """Base feedback schema, optionally extended with stage-specific fields."""
    return {
        "type": "OBJECT",
        "properties": {**FEEDBACK_PROPERTIES, **(extra_properties or {})},
        "required": FEEDBACK_REQUIRED + (extra_required or []),
    }


def sub_score(description: str) -> dict[str, Any]:
    return {"type": "INTEGER", "description": description}
