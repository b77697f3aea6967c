from __future__ import annotations

import asyncio

import httpx
import pytest

from acemock.core.llm_gateway import EvaluationError, LLMEvaluationGateway, grade_aptitude
from acemock.models.feedback import AptitudeQuestion, HRCategory, HRQuestion
from tests.mocks.remote_api import GeminiAPIMock

BASE_FEEDBACK = {
    "strengths": ["Clear structure"],
    "weaknesses": ["Few examples"],
    "suggestions": ["Quantify impact"],
    "score": 7,
}


def _gateway(settings, gemini: GeminiAPIMock) -> LLMEvaluationGateway:
    return LLMEvaluationGateway(settings, client=gemini.client())


def test_request_carries_prompt_schema_and_json_mode(settings) -> None:
    gemini = GeminiAPIMock(BASE_FEEDBACK)
    feedback = asyncio.run(_gateway(settings, gemini).evaluate_self_introduction("I am a backend developer."))

    assert feedback.stage == "self_introduction"
    assert feedback.score == 7
    assert gemini.paths == ["/v1beta/models/gemini-2.5-flash:generateContent"]
    body = gemini.requests[0]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"]["required"] == ["strengths", "weaknesses", "suggestions", "score"]
    assert "HR manager" in body["systemInstruction"]["parts"][0]["text"]
    assert "I am a backend developer." in gemini.prompt_text()


def test_default_client_sends_api_key(settings) -> None:
    gateway = LLMEvaluationGateway(settings)
    try:
        assert gateway.client.headers["x-goog-api-key"] == "test-key"
        assert str(gateway.client.base_url).startswith("https://generativelanguage.googleapis.com/v1beta")
    finally:
        asyncio.run(gateway.close())


def test_python_technical_round_with_nine_questions(settings) -> None:
    questions = [f"Python question {i}?" for i in range(9)]
    answers = [f"answer {i}" for i in range(9)]
    evaluation = {
        **BASE_FEEDBACK,
        "questionCount": 7,
        "detailedResults": [
            {"question": "echoed", "answer": "echoed", "evaluation": f"eval {i}", "score": 6}
            for i in range(9)
        ],
    }
    gemini = GeminiAPIMock(questions, evaluation)
    gateway = _gateway(settings, gemini)

    async def run():
        generated = await gateway.generate_technical_questions("Python")
        return generated, await gateway.evaluate_technical_answers(generated, answers, "Python")

    generated, feedback = asyncio.run(run())

    assert generated == questions
    assert "decorators" in gemini.prompt_text(0)
    assert feedback.question_count == 9
    assert len(feedback.detailed_results) == 9
    assert feedback.detailed_results[3].question == questions[3]
    assert feedback.detailed_results[3].answer == answers[3]


def test_unknown_selection_uses_generic_topics(settings) -> None:
    gemini = GeminiAPIMock([f"q{i}" for i in range(8)])
    asyncio.run(_gateway(settings, gemini).generate_technical_questions("Elixir"))
    assert "core language/framework fundamentals" in gemini.prompt_text()


def test_too_many_technical_questions_are_truncated(settings) -> None:
    gemini = GeminiAPIMock([f"q{i}" for i in range(12)])
    generated = asyncio.run(_gateway(settings, gemini).generate_technical_questions("Go"))
    assert generated == [f"q{i}" for i in range(10)]


def test_too_few_technical_questions_fail(settings) -> None:
    gemini = GeminiAPIMock(["q1", "q2", " "])
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, gemini).generate_technical_questions("Go"))


def test_technical_result_count_mismatch_fails(settings) -> None:
    evaluation = {
        **BASE_FEEDBACK,
        "questionCount": 2,
        "detailedResults": [{"question": "q", "answer": "a", "evaluation": "e", "score": 5}],
    }
    gemini = GeminiAPIMock(evaluation)
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, gemini).evaluate_technical_answers(["q1", "q2"], ["a1", ""], "Go"))
    assert "Not Answered" in gemini.prompt_text()


def test_aptitude_correctness_is_computed_locally(settings) -> None:
    questions = [
        AptitudeQuestion(question=f"Q{i}", options=["10", "20", "30", "40"], answer="20")
        for i in range(5)
    ]
    answers = ["20", "20", "20", "10", "30"]
    # The model's own counts are ignored
    gemini = GeminiAPIMock({**BASE_FEEDBACK, "correctCount": 5, "totalQuestions": 9})

    feedback = asyncio.run(_gateway(settings, gemini).evaluate_aptitude(questions, answers))

    assert feedback.correct_count == 3
    assert feedback.total_questions == 5
    assert [r.is_correct for r in feedback.detailed_results] == [True, True, True, False, False]
    assert feedback.correct_count == sum(
        1 for r in feedback.detailed_results if r.user_answer == r.correct_answer
    )
    assert '"userAnswer": "10"' in gemini.prompt_text()


def test_grade_aptitude_pads_missing_answers() -> None:
    questions = [AptitudeQuestion(question="Q", options=["a", "b"], answer="a")] * 3
    results = grade_aptitude(questions, ["a"])
    assert [r.user_answer for r in results] == ["a", "", ""]
    assert [r.is_correct for r in results] == [True, False, False]


def test_generated_aptitude_questions_are_validated(settings) -> None:
    good = {"question": "2+2?", "options": ["3", "4", "5", "6"], "answer": "4"}
    gemini = GeminiAPIMock([good] * 6)
    questions = asyncio.run(_gateway(settings, gemini).generate_aptitude_questions(5))
    assert len(questions) == 5

    bad = {"question": "2+2?", "options": ["3", "5"], "answer": "4"}
    gemini = GeminiAPIMock([good, bad])
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, gemini).generate_aptitude_questions(2))


@pytest.mark.parametrize(
    "reply",
    [
        {**BASE_FEEDBACK, "score": 11},
        {**BASE_FEEDBACK, "score": 0},
        {"strengths": [], "weaknesses": [], "suggestions": []},
        ["not", "an", "object"],
    ],
)
def test_schema_violations_are_evaluation_errors(settings, reply) -> None:
    gemini = GeminiAPIMock(reply)
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, gemini).evaluate_self_introduction("Hello"))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": {"message": "internal"}}),
        httpx.Response(200, json={"candidates": []}),
        httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "no json here"}]}}]}),
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json=[]),
        httpx.Response(200, json={"candidates": ["not an object"]}),
        httpx.Response(200, json={"candidates": [{"content": {"parts": "text"}}]}),
    ],
)
def test_transport_and_parse_failures_are_evaluation_errors(settings, response) -> None:
    gemini = GeminiAPIMock(response)
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, gemini).evaluate_self_introduction("Hello"))


def test_json_wrapped_in_prose_is_accepted(settings) -> None:
    text = 'Here you go:\n```json\n{"strengths": [], "weaknesses": [], "suggestions": [], "score": 4}\n```'
    gemini = GeminiAPIMock(httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]}))
    feedback = asyncio.run(_gateway(settings, gemini).evaluate_self_introduction("Hello"))
    assert feedback.score == 4


def test_coding_challenge_falls_back_to_starter(settings) -> None:
    gemini = GeminiAPIMock({"title": "Reverse", "description": "Reverse a list.", "defaultCode": ""})
    challenge = asyncio.run(_gateway(settings, gemini).generate_coding_challenge("Python"))

    assert challenge.title == "Reverse"
    assert challenge.default_code.startswith("```python\n")
    assert challenge.default_code.endswith("\n```")
    assert "---STARTER-BEGIN---" in gemini.prompt_text()


def test_coding_challenge_keeps_fenced_code(settings) -> None:
    fenced = "```go\nfunc solve() {}\n```"
    gemini = GeminiAPIMock({"title": "T", "description": "D", "defaultCode": fenced})
    challenge = asyncio.run(_gateway(settings, gemini).generate_coding_challenge("Go"))
    assert challenge.default_code == fenced


def test_code_evaluation(settings) -> None:
    gemini = GeminiAPIMock({**BASE_FEEDBACK, "logic": "Sound", "syntax": "Idiomatic", "efficiency": "O(n)"})
    feedback = asyncio.run(_gateway(settings, gemini).evaluate_code("Two Sum", "Rust", "fn main() {}"))
    assert feedback.stage == "coding"
    assert feedback.efficiency == "O(n)"
    assert "```rust\nfn main() {}\n```" in gemini.prompt_text()


def test_hr_evaluation_reconciles_questions(settings) -> None:
    questions = [HRQuestion(question=f"HR {i}", category="teamwork") for i in range(2)]
    reply = {
        **BASE_FEEDBACK,
        "communication": 8,
        "problemSolving": 7,
        "culturalFit": 9,
        "leadership": 6,
        "detailedResults": [
            {"question": "?", "response": "?", "evaluation": "good", "score": 8},
            {"question": "?", "response": "?", "evaluation": "thin", "score": 5},
        ],
    }
    gemini = GeminiAPIMock(reply)
    feedback = asyncio.run(_gateway(settings, gemini).evaluate_hr_responses(questions, ["We split the work.", ""]))

    assert feedback.problem_solving == 7
    assert [r.question for r in feedback.detailed_results] == ["HR 0", "HR 1"]
    assert [r.response for r in feedback.detailed_results] == ["We split the work.", ""]


def test_hr_sub_score_out_of_range_fails(settings) -> None:
    questions = [HRQuestion(question="HR", category="teamwork")]
    reply = {
        **BASE_FEEDBACK,
        "communication": 12,
        "problemSolving": 7,
        "culturalFit": 9,
        "leadership": 6,
        "detailedResults": [{"question": "HR", "response": "r", "evaluation": "e", "score": 8}],
    }
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, GeminiAPIMock(reply)).evaluate_hr_responses(questions, ["r"]))


def test_hr_questions_use_known_categories(settings) -> None:
    reply = [
        {"question": "Tell me about a conflict.", "category": "behavioral"},
        {"question": "Why us?", "category": "motivational"},
    ]
    questions = asyncio.run(_gateway(settings, GeminiAPIMock(reply)).generate_hr_questions(2))
    assert [q.category for q in questions] == [HRCategory.BEHAVIORAL, HRCategory.MOTIVATIONAL]

    off_list = [{"question": "Favourite hobby?", "category": "hobbies"}]
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, GeminiAPIMock(off_list)).generate_hr_questions(1))


def test_hr_prompt_lists_plain_category_names(settings) -> None:
    questions = [HRQuestion(question="HR", category="teamwork")]
    gemini = GeminiAPIMock({})
    with pytest.raises(EvaluationError):
        asyncio.run(_gateway(settings, gemini).evaluate_hr_responses(questions, ["r"]))
    assert '"teamwork"' in gemini.prompt_text()
    assert "HRCategory" not in gemini.prompt_text()
