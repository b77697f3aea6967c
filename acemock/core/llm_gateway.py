"""
LLM Evaluation Gateway for AceMock

Handles all AI-powered operations:
- Stage content generation (aptitude, technical, coding, HR)
- Stage evaluation into typed feedback

Uses the Gemini generateContent API with structured JSON output.
Integrated with Langfuse for observability and tracing.
"""

import json
import logging
from typing import Any

import httpx
from langfuse import Langfuse
from pydantic import TypeAdapter, ValidationError

from acemock.config.settings import Settings, get_settings
from acemock.models.feedback import (
    AptitudeFeedback,
    AptitudeQuestion,
    AptitudeResult,
    CodingChallenge,
    CodingFeedback,
    Feedback,
    HRFeedback,
    HRQuestion,
    SelfIntroductionFeedback,
    TechnicalQAFeedback,
)
from acemock.models.profiles import coding_language_for, get_profile
from acemock.prompts.base import PromptRequest
from acemock.prompts.evaluator import EvaluatorPrompts
from acemock.prompts.interviewer import InterviewerPrompts

logger = logging.getLogger(__name__)


class EvaluationError(Exception):
    """Raised when an LLM call fails or its response does not validate."""
    pass


_APTITUDE_QUESTIONS = TypeAdapter(list[AptitudeQuestion])
_HR_QUESTIONS = TypeAdapter(list[HRQuestion])
_STRING_LIST = TypeAdapter(list[str])


def grade_aptitude(questions: list[AptitudeQuestion], answers: list[str]) -> list[AptitudeResult]:
    """Grade answers by exact string match against each question's answer key."""
    results = []
    for i, question in enumerate(questions):
        user_answer = answers[i] if i < len(answers) else ""
        results.append(AptitudeResult(
            question=question.question,
            user_answer=user_answer,
            correct_answer=question.answer,
            is_correct=user_answer == question.answer,
        ))
    return results


def normalize_code_fence(code: str, language: str) -> str:
    """Wrap code in a fence tagged with the language unless already fenced."""
    if code.startswith("```"):
        return code
    return f"```{language}\n{code}\n```"


class LLMEvaluationGateway:
    """
    Central AI component using Gemini models.

    Every operation builds a prompt plus response schema, calls the model,
    and validates the JSON it returns against the stage's pydantic model.
    Any failure along the way surfaces as EvaluationError.

    Observability:
    - Langfuse integration for tracing all LLM calls
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        """Initialize the gateway with Gemini configuration."""
        self.settings = settings or get_settings()
        self.model = self.settings.gemini_model

        # HTTP client for API calls
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.gemini_base_url.rstrip("/"),
            headers={
                "x-goog-api-key": self.settings.gemini_api_key,
                "Content-Type": "application/json",
            },
            timeout=self.settings.llm_timeout_seconds,
        )

        # Prompt templates
        self.interviewer_prompts = InterviewerPrompts()
        self.evaluator_prompts = EvaluatorPrompts()

        # Initialize Langfuse for observability
        self.langfuse: Langfuse | None = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    async def close(self):
        """Close the HTTP client and flush Langfuse."""
        await self.client.aclose()
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_text(self, result: Any) -> str:
        """Extract the text of the first candidate from a generateContent response."""
        if not isinstance(result, dict):
            raise EvaluationError(f"Unexpected response body: {type(result).__name__}")

        candidates = result.get("candidates") or []
        if not candidates:
            feedback = result.get("promptFeedback", {})
            raise EvaluationError(f"Model returned no candidates: {feedback}")

        candidate = candidates[0] if isinstance(candidates, list) else None
        content = candidate.get("content") if isinstance(candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise EvaluationError("Model response has no content parts")

        text = "".join(
            part["text"] for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        if not text.strip():
            raise EvaluationError("Model returned an empty response")
        return text

    def _parse_json(self, text: str) -> Any:
        """Parse model output as JSON, tolerating leading prose or code fences."""
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
        end = max(text.rfind("}"), text.rfind("]")) + 1
        if starts and end > min(starts):
            try:
                return json.loads(text[min(starts):end])
            except json.JSONDecodeError as e:
                raise EvaluationError(f"Model response is not valid JSON: {e}") from e
        raise EvaluationError("Model response is not valid JSON")

    def _start_span(self, request: PromptRequest, metadata: dict[str, Any] | None):
        if not self.langfuse:
            return None
        try:
            return self.langfuse.start_span(
                name=request.name,
                input=request.contents,
                metadata={"model": self.model, **(metadata or {})},
            )
        except Exception as lf_err:
            logger.warning(f"Langfuse span start failed: {lf_err}")
            return None

    def _end_span(self, span, output: Any = None, error: str | None = None) -> None:
        if span is None:
            return
        try:
            if error:
                span.update(level="ERROR", status_message=error)
            else:
                span.update(output=output)
            span.end()
        except Exception as lf_err:
            logger.warning(f"Langfuse span end failed: {lf_err}")

    async def _generate_json(self, request: PromptRequest, metadata: dict[str, Any] | None = None) -> Any:
        """
        Call Gemini with a prompt and response schema and return parsed JSON.

        Raises:
            EvaluationError: On HTTP failure, empty output or invalid JSON
        """
        payload = {
            "systemInstruction": {"parts": [{"text": request.system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": request.contents}]}],
            "generationConfig": {
                "temperature": self.settings.llm_temperature,
                "responseMimeType": "application/json",
                "responseSchema": request.response_schema,
            },
        }

        span = self._start_span(request, metadata)
        try:
            response = await self.client.post(
                f"/models/{self.model}:generateContent",
                json=payload,
            )
            response.raise_for_status()
            text = self._extract_text(response.json())
            data = self._parse_json(text)
        except httpx.HTTPError as e:
            logger.error(f"Gemini API error ({request.name}): {e}")
            self._end_span(span, error=str(e))
            raise EvaluationError(f"Gemini API error: {e}") from e
        except (EvaluationError, ValueError) as e:
            logger.error(f"Gemini response error ({request.name}): {e}")
            self._end_span(span, error=str(e))
            if isinstance(e, EvaluationError):
                raise
            raise EvaluationError(f"Gemini response error: {e}") from e

        self._end_span(span, output=data)
        return data

    def _validate(self, model: type[Feedback], data: Any, operation: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"{operation} response failed validation: {e}")
            raise EvaluationError(f"{operation} response did not match the expected schema") from e

    # =========================================================================
    # SELF INTRODUCTION
    # =========================================================================

    async def evaluate_self_introduction(self, introduction: str) -> SelfIntroductionFeedback:
        """Evaluate a self-introduction for clarity, confidence and structure."""
        request = self.evaluator_prompts.self_introduction(introduction)
        data = await self._generate_json(request, {"stage": "self_introduction"})
        return self._validate(SelfIntroductionFeedback, data, "Self-introduction evaluation")

    # =========================================================================
    # APTITUDE
    # =========================================================================

    async def generate_aptitude_questions(self, count: int | None = None) -> list[AptitudeQuestion]:
        """Generate multiple-choice aptitude questions with answer keys."""
        count = count or self.settings.aptitude_question_count
        request = self.interviewer_prompts.aptitude_questions(count)
        data = await self._generate_json(request, {"stage": "aptitude", "count": count})

        try:
            questions = _APTITUDE_QUESTIONS.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Aptitude questions failed validation: {e}")
            raise EvaluationError("Aptitude questions did not match the expected schema") from e

        if not questions:
            raise EvaluationError("Model returned no aptitude questions")
        return questions[:count]

    async def evaluate_aptitude(
        self,
        questions: list[AptitudeQuestion],
        answers: list[str],
    ) -> AptitudeFeedback:
        """
        Grade answers locally, then ask the model for qualitative feedback.

        correct_count and the per-question results never come from the model.
        """
        results = grade_aptitude(questions, answers)
        correct_count = sum(1 for r in results if r.is_correct)

        request = self.evaluator_prompts.aptitude(results)
        data = await self._generate_json(request, {"stage": "aptitude"})
        base = self._validate(Feedback, data, "Aptitude evaluation")

        logger.info(f"Aptitude graded: {correct_count}/{len(questions)} correct")
        return AptitudeFeedback(
            strengths=base.strengths,
            weaknesses=base.weaknesses,
            suggestions=base.suggestions,
            score=base.score,
            correct_count=correct_count,
            total_questions=len(questions),
            detailed_results=results,
        )

    # =========================================================================
    # TECHNICAL Q&A
    # =========================================================================

    async def generate_technical_questions(self, selection: str) -> list[str]:
        """Generate 8-10 technical questions framed by the selection's profile."""
        min_count = self.settings.technical_min_questions
        max_count = self.settings.technical_max_questions
        request = self.interviewer_prompts.technical_questions(selection, min_count, max_count)
        data = await self._generate_json(request, {"stage": "technical_qa", "selection": selection})

        try:
            questions = [q.strip() for q in _STRING_LIST.validate_python(data) if q.strip()]
        except ValidationError as e:
            raise EvaluationError("Technical questions did not match the expected schema") from e

        if len(questions) < min_count:
            raise EvaluationError(
                f"Model returned {len(questions)} technical questions, expected at least {min_count}"
            )
        if len(questions) > max_count:
            logger.info(f"Truncating {len(questions)} technical questions to {max_count}")
            questions = questions[:max_count]
        return questions

    async def evaluate_technical_answers(
        self,
        questions: list[str],
        answers: list[str],
        selection: str,
    ) -> TechnicalQAFeedback:
        """Evaluate each answer and summarise the technical round."""
        request = self.evaluator_prompts.technical_answers(questions, answers, selection)
        data = await self._generate_json(request, {"stage": "technical_qa", "selection": selection})
        if not isinstance(data, dict):
            raise EvaluationError("Technical evaluation response is not an object")

        detailed = data.get("detailedResults")
        if not isinstance(detailed, list) or len(detailed) != len(questions):
            raise EvaluationError(
                f"Technical evaluation returned {len(detailed) if isinstance(detailed, list) else 0} "
                f"results for {len(questions)} questions"
            )

        # Locally known question and answer text wins over the model's echo
        for i, entry in enumerate(detailed):
            if isinstance(entry, dict):
                entry["question"] = questions[i]
                entry["answer"] = answers[i] if i < len(answers) else ""
        data["questionCount"] = len(questions)

        return self._validate(TechnicalQAFeedback, data, "Technical evaluation")

    # =========================================================================
    # CODING CHALLENGE
    # =========================================================================

    async def generate_coding_challenge(self, selection: str) -> CodingChallenge:
        """Generate a challenge whose default code is the profile's starter."""
        profile = get_profile(selection)
        starter = profile.starter_template if profile else ""
        language = coding_language_for(selection)

        request = self.interviewer_prompts.coding_challenge(selection)
        data = await self._generate_json(request, {"stage": "coding", "selection": selection})
        challenge = self._validate(CodingChallenge, data, "Coding challenge")

        # Fall back to the curated starter if the model ignores it
        default_code = challenge.default_code if challenge.default_code.strip() else starter
        return challenge.model_copy(update={
            "default_code": normalize_code_fence(default_code, language),
        })

    async def evaluate_code(self, problem: str, selection: str, code: str) -> CodingFeedback:
        """Review submitted code for logic, syntax and efficiency."""
        request = self.evaluator_prompts.code(problem, selection, code, coding_language_for(selection))
        data = await self._generate_json(request, {"stage": "coding", "selection": selection})
        return self._validate(CodingFeedback, data, "Code evaluation")

    # =========================================================================
    # HR ROUND
    # =========================================================================

    async def generate_hr_questions(self, count: int | None = None) -> list[HRQuestion]:
        """Generate HR questions across the five soft-skill categories."""
        count = count or self.settings.hr_question_count
        request = self.interviewer_prompts.hr_questions(count)
        data = await self._generate_json(request, {"stage": "hr", "count": count})

        try:
            questions = _HR_QUESTIONS.validate_python(data)
        except ValidationError as e:
            raise EvaluationError("HR questions did not match the expected schema") from e

        if not questions:
            raise EvaluationError("Model returned no HR questions")
        return questions[:count]

    async def evaluate_hr_responses(
        self,
        questions: list[HRQuestion],
        responses: list[str],
    ) -> HRFeedback:
        """Evaluate HR responses and score the four soft-skill dimensions."""
        request = self.evaluator_prompts.hr_responses(questions, responses)
        data = await self._generate_json(request, {"stage": "hr"})
        if not isinstance(data, dict):
            raise EvaluationError("HR evaluation response is not an object")

        detailed = data.get("detailedResults")
        if not isinstance(detailed, list) or len(detailed) != len(questions):
            raise EvaluationError("HR evaluation did not return one result per question")

        for i, entry in enumerate(detailed):
            if isinstance(entry, dict):
                entry["question"] = questions[i].question
                entry["response"] = responses[i] if i < len(responses) else ""

        return self._validate(HRFeedback, data, "HR evaluation")
