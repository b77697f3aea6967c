"""
AI Evaluator Prompt Templates

Contains structured prompts for evaluating each interview stage.
Every prompt is paired with a response schema so the model returns
JSON that validates against the stage's feedback model.
"""

import json

from acemock.models.feedback import AptitudeResult, HRQuestion
from acemock.prompts.base import PromptRequest, feedback_schema, sub_score


class EvaluatorPrompts:
    """
    Prompt templates for AI evaluation of stage submissions.

    Key principles:
    - Scores are integers from 1 to 10
    - Identify both strengths and gaps
    - Provide actionable suggestions
    """

    SCORING_GUIDE = """
=== SCORING GUIDE (1-10 scale) ===
- 9-10: Exceptional, ready for a real interview
- 7-8: Strong, minor improvements possible
- 5-6: Adequate, clear gaps to work on
- 3-4: Weak, significant gaps
- 1-2: Poor or missing
"""

    def self_introduction(self, introduction: str) -> PromptRequest:
        return PromptRequest(
            name="evaluate_self_introduction",
            system_instruction=(
                "You are an expert HR manager and interview coach evaluating a "
                "candidate's self-introduction."
            ),
            contents=(
                f'Analyze the following self-introduction: "{introduction}". '
                "Evaluate it based on clarity, confidence, and structure. "
                f"Provide a score out of 10.\n{self.SCORING_GUIDE}"
            ),
            response_schema=feedback_schema(),
        )

    def aptitude(self, results: list[AptitudeResult]) -> PromptRequest:
        """Qualitative feedback on locally graded aptitude answers."""
        payload = json.dumps([r.model_dump(by_alias=True) for r in results])
        return PromptRequest(
            name="evaluate_aptitude",
            system_instruction=(
                "You are an expert test evaluator. Analyze the user's performance and "
                "provide constructive feedback."
            ),
            contents=(
                f"A candidate took an aptitude test. Here are their results:\n{payload}\n\n"
                "Provide an overall evaluation of their performance. Give a score from 1-10. "
                "Identify strengths (e.g., strong logical reasoning) and weaknesses "
                "(e.g., difficulty with percentages). Offer suggestions for improvement."
            ),
            response_schema=feedback_schema(),
        )

    def technical_answers(self, questions: list[str], answers: list[str], selection: str) -> PromptRequest:
        qa_pairs = [
            {"question": q, "answer": answers[i] if i < len(answers) and answers[i] else "Not Answered"}
            for i, q in enumerate(questions)
        ]
        schema = feedback_schema(
            extra_properties={
                "questionCount": {"type": "INTEGER"},
                "detailedResults": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "question": {"type": "STRING"},
                            "answer": {"type": "STRING"},
                            "evaluation": {
                                "type": "STRING",
                                "description": "Specific feedback on this answer's technical accuracy and clarity.",
                            },
                            "score": sub_score("A score from 1 to 10 for this specific answer."),
                        },
                        "required": ["question", "answer", "evaluation", "score"],
                    },
                },
            },
            extra_required=["questionCount", "detailedResults"],
        )
        return PromptRequest(
            name="evaluate_technical_answers",
            system_instruction=(
                f"You are a senior software engineer and tech interviewer with deep "
                f"expertise in {selection}. Provide a critical and fair evaluation for "
                "each answer and an overall summary."
            ),
            contents=(
                f"Language context: {selection}\n\n"
                "Here are the candidate's answers to a series of technical questions:\n\n"
                f"{json.dumps(qa_pairs)}\n\n"
                "First, for each question/answer pair, provide a specific evaluation and a "
                "score from 1-10, in the same order as given. Then, provide an overall "
                "summary of performance: overall score, strengths, weaknesses, and suggestions."
            ),
            response_schema=schema,
        )

    def code(self, problem: str, selection: str, code: str, coding_language: str) -> PromptRequest:
        schema = feedback_schema(
            extra_properties={
                "logic": {
                    "type": "STRING",
                    "description": "Evaluation of the logical approach and correctness of the algorithm.",
                },
                "syntax": {
                    "type": "STRING",
                    "description": "Comments on code style, syntax, and readability.",
                },
                "efficiency": {
                    "type": "STRING",
                    "description": "Analysis of the time and space complexity.",
                },
            },
            extra_required=["logic", "syntax", "efficiency"],
        )
        return PromptRequest(
            name="evaluate_code",
            system_instruction=(
                "You are an expert code reviewer and competitive programming judge. "
                "Be precise and constructive in your feedback."
            ),
            contents=(
                f'Coding Challenge: "{problem}"\n\n'
                f'Language: "{selection}"\n\n'
                f"Candidate's Code:\n```{coding_language}\n{code}\n```\n\n"
                "Evaluate the code for logic, syntax, efficiency, and adherence to the "
                "problem description."
            ),
            response_schema=schema,
        )

    def hr_responses(self, questions: list[HRQuestion], responses: list[str]) -> PromptRequest:
        qa_pairs = [
            {
                "question": q.question,
                "category": q.category.value,
                "response": responses[i] if i < len(responses) and responses[i] else "Not Answered",
            }
            for i, q in enumerate(questions)
        ]
        schema = feedback_schema(
            extra_properties={
                "communication": sub_score("Score from 1-10 for communication skills"),
                "problemSolving": sub_score("Score from 1-10 for problem-solving approach"),
                "culturalFit": sub_score("Score from 1-10 for cultural fit and values alignment"),
                "leadership": sub_score("Score from 1-10 for leadership potential"),
                "detailedResults": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "question": {"type": "STRING"},
                            "response": {"type": "STRING"},
                            "evaluation": {"type": "STRING", "description": "Specific feedback on this response"},
                            "score": sub_score("Score from 1-10 for this response"),
                        },
                        "required": ["question", "response", "evaluation", "score"],
                    },
                },
            },
            extra_required=["communication", "problemSolving", "culturalFit", "leadership", "detailedResults"],
        )
        return PromptRequest(
            name="evaluate_hr_responses",
            system_instruction=(
                "You are an expert HR manager evaluating interview responses. Assess "
                "communication, problem-solving, cultural fit, and leadership potential. "
                "Be fair and constructive."
            ),
            contents=(
                "Here are the candidate's responses to HR interview questions:\n\n"
                f"{json.dumps(qa_pairs)}\n\n"
                "Evaluate each response individually, in the same order as given, and "
                "provide an overall assessment. Consider communication skills, "
                "problem-solving approach, cultural fit, and leadership potential."
            ),
            response_schema=schema,
        )
