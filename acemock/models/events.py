"""
Stage event models for AceMock

Timer, speech and answer input reach a stage handler as explicit events, so
a stage behaves the same whether ticks come from the browser, from the
server-side ticker or from a test.
"""

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from acemock.models.feedback import CamelModel


class TimerTick(CamelModel):
    """One or more elapsed seconds on the stage countdown."""

    type: Literal["timer_tick"] = "timer_tick"
    seconds: int = Field(default=1, ge=1)


class AnswerSelected(CamelModel):
    """Multiple-choice answer picked by the candidate."""

    type: Literal["answer_selected"] = "answer_selected"
    answer: str
    question_index: int | None = Field(
        default=None, ge=0,
        description="Defaults to the current question"
    )


class ResponseEdited(CamelModel):
    """Free-text or code typed by the candidate (replaces the current value)."""

    type: Literal["response_edited"] = "response_edited"
    text: str


class SpeechInterimResult(CamelModel):
    """Provisional speech-to-text transcript; shown but not recorded."""

    type: Literal["speech_interim"] = "speech_interim"
    transcript: str


class SpeechFinalResult(CamelModel):
    """Final speech-to-text transcript; appended to the current response."""

    type: Literal["speech_final"] = "speech_final"
    transcript: str


class SpeechError(CamelModel):
    """Speech recognition failed or is unavailable in the browser."""

    type: Literal["speech_error"] = "speech_error"
    error: str = ""


class NextQuestion(CamelModel):
    """Move to the next question; finishes the stage after the last one."""

    type: Literal["next_question"] = "next_question"


class SubmitStage(CamelModel):
    """Submit the stage for evaluation (also used to retry a failed one)."""

    type: Literal["submit"] = "submit"


StageEvent = Annotated[
    Union[
        TimerTick,
        AnswerSelected,
        ResponseEdited,
        SpeechInterimResult,
        SpeechFinalResult,
        SpeechError,
        NextQuestion,
        SubmitStage,
    ],
    Field(discriminator="type"),
]

_STAGE_EVENT_ADAPTER = TypeAdapter(StageEvent)


def parse_event(data: dict) -> StageEvent:
    """Validate a raw event payload (raises pydantic.ValidationError)."""
    return _STAGE_EVENT_ADAPTER.validate_python(data)
