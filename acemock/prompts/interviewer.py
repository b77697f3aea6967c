"""
AI Interviewer Prompt Templates

Contains structured prompts for generating stage content:
- Aptitude questions
- Technical questions tailored to a selection
- Coding challenges built around a starter template
- HR questions
"""

from acemock.models.profiles import GENERIC_CHALLENGE_STYLE, get_profile
from acemock.prompts.base import PromptRequest


class InterviewerPrompts:
    """
    Prompt templates for generating interview content.

    Key principles:
    - Entry-level difficulty
    - Clear, unambiguous questions
    - No repetition or trick questions
    """

    def aptitude_questions(self, count: int) -> PromptRequest:
        """Multiple-choice quantitative and logical reasoning questions."""
        schema = {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING", "description": "The aptitude question text."},
                    "options": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "An array of 4 multiple-choice options.",
                    },
                    "answer": {
                        "type": "STRING",
                        "description": "The correct answer, copied exactly from the options array.",
                    },
                },
                "required": ["question", "options", "answer"],
            },
        }
        return PromptRequest(
            name="aptitude_questions",
            system_instruction=(
                "You are an expert test creator. Generate clear and unambiguous "
                "questions and answers."
            ),
            contents=(
                f"Generate {count} unique, medium-difficulty quantitative and logical "
                "reasoning aptitude questions suitable for a pre-employment screening "
                "test. Each question must have exactly 4 multiple-choice options. "
                "Ensure one option is the correct answer and that the answer field "
                "matches that option exactly."
            ),
            response_schema=schema,
        )

    def technical_questions(self, selection: str, min_count: int = 8, max_count: int = 10) -> PromptRequest:
        """Foundational technical questions framed by the selection's profile."""
        profile = get_profile(selection)
        if profile:
            role_line = (
                f"You are a senior interviewer for an entry-level "
                f"{profile.kind.value.lower()} candidate in {selection}."
            )
            topics_line = f"Focus on these topics: {', '.join(profile.topics)}."
        else:
            role_line = f"You are a senior interviewer for an entry-level {selection} candidate."
            topics_line = "Focus on core language/framework fundamentals."

        count_line = f"Generate {min_count} to {max_count} unique, foundational technical interview questions."
        quality_line = (
            "Keep each question concise and unambiguous. Avoid trick questions and "
            "multi-part scenarios. Do not repeat or rephrase questions."
        )
        return PromptRequest(
            name="technical_questions",
            system_instruction=(
                f"Generate high-quality technical questions tailored to {selection}. "
                "Ensure coverage breadth across the specified topics. "
                "Output JSON array of strings only."
            ),
            contents=f"{role_line} {count_line} {topics_line} {quality_line}",
            response_schema={
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "A list of technical interview questions",
            },
        )

    def coding_challenge(self, selection: str) -> PromptRequest:
        """A 15-20 minute coding challenge that keeps the profile's starter."""
        profile = get_profile(selection)
        challenge_style = profile.challenge_style if profile else GENERIC_CHALLENGE_STYLE
        starter = profile.starter_template if profile else ""

        contents = f"""Generate a unique, medium-difficulty coding challenge for a {selection} candidate. The problem should be solvable within 15-20 minutes. Style: {challenge_style}

You MUST return JSON with keys: title, description, defaultCode. For defaultCode, use the following starter EXACTLY as the starting point (do not alter surrounding structure, only fill TODO when the candidate writes their solution):

---STARTER-BEGIN---
{starter}
---STARTER-END---

Do NOT include test cases or I/O code in defaultCode."""

        return PromptRequest(
            name="coding_challenge",
            system_instruction="You are an expert problem setter for coding interviews.",
            contents=contents,
            response_schema={
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "description": {"type": "STRING"},
                    "defaultCode": {
                        "type": "STRING",
                        "description": f"Function signature or class structure in {selection}",
                    },
                },
                "required": ["title", "description", "defaultCode"],
            },
        )

    def hr_questions(self, count: int = 5) -> PromptRequest:
        """Soft-skill questions spread across the HR categories."""
        return PromptRequest(
            name="hr_questions",
            system_instruction=(
                "You are an expert HR manager creating interview questions for software "
                "developer candidates. Generate questions that assess soft skills, "
                "communication, and cultural fit."
            ),
            contents=(
                f"Generate {count} diverse HR interview questions covering different "
                "categories: behavioral, situational, motivational, teamwork, and "
                "leadership. These should be relevant for entry-level software "
                "developer positions."
            ),
            response_schema={
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "question": {"type": "STRING", "description": "The HR interview question text."},
                        "category": {
                            "type": "STRING",
                            "description": (
                                "Category of the question: behavioral, situational, "
                                "motivational, teamwork, or leadership."
                            ),
                        },
                    },
                    "required": ["question", "category"],
                },
            },
        )
