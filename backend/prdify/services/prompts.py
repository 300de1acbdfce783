from typing import Iterable, Tuple

from prdify.models.prd import PRD
from prdify.models.prd_question import PrdQuestion


DOCUMENT_SECTIONS = [
    "Project Overview",
    "User Problem",
    "Functional Requirements",
    "Project Boundaries",
    "User Stories",
    "Success Metrics",
]

PRD_DOCUMENT_SCHEMA = {
    "name": "prd_document_response",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "document": {
                "type": "string",
                "description": "The complete PRD document in markdown format",
            },
        },
        "required": ["document"],
        "additionalProperties": False,
    },
}

PRD_SUMMARY_SCHEMA = {
    "name": "prd_summary_response",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "summary": {
                "type": "string",
                "description": "Summary of the planning session in markdown format",
            },
        },
        "required": ["summary"],
        "additionalProperties": False,
    },
}

PRD_QUESTIONS_SCHEMA = {
    "name": "prd_questions_response",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Clarifying questions for the next planning round",
            },
        },
        "required": ["questions"],
        "additionalProperties": False,
    },
}


def build_project_description(prd: PRD) -> str:
    fields = [
        ("application_name", prd.name),
        ("main_problem", prd.main_problem),
        ("in_scope", prd.in_scope),
        ("out_of_scope", prd.out_of_scope),
        ("success_criteria", prd.success_criteria),
    ]
    return "\n\n".join(f"<{tag}>\n{value}\n</{tag}>" for tag, value in fields)


def format_qa_history(questions: Iterable[PrdQuestion]) -> str:
    blocks = []
    for index, question in enumerate(questions, start=1):
        blocks.append(
            f"Round {question.round_number}\n"
            f"Q{index}: {question.question}\n"
            f"A{index}: {question.answer}"
        )
    return "\n\n".join(blocks)


def build_questions_prompts(prd: PRD, history: Iterable[PrdQuestion], count: int) -> Tuple[str, str]:
    """Prompts for the next round of clarifying questions"""
    system_prompt = f"""You are an experienced product manager running a planning session for a new product.
Your task is to ask the user exactly {count} short, specific clarifying questions that will help
write a complete Product Requirements Document.

Rules:
- Do not repeat questions that were already asked.
- Build on the answers given so far and go deeper where they are vague.
- Cover users, core functionality, boundaries, constraints and measurable success.
- Each question must be answerable in a few sentences."""

    qa_history = format_qa_history(history) or "No questions have been asked yet."
    user_prompt = f"""<project_description>
{build_project_description(prd)}
</project_description>

<qa_history>
{qa_history}
</qa_history>

Ask the next {count} clarifying questions."""
    return system_prompt, user_prompt


def build_summary_prompts(prd: PRD, questions: Iterable[PrdQuestion]) -> Tuple[str, str]:
    """Prompts for the planning session summary"""
    system_prompt = """You are an experienced product manager. Summarize a product planning session.
Capture the key insights, clarifications and refinements that emerged from the questions and answers,
and explain how they shape the requirements. Format the summary in markdown."""

    user_prompt = f"""<project_description>
{build_project_description(prd)}
</project_description>

<qa_session>
{format_qa_history(questions)}
</qa_session>

Write a comprehensive summary of the planning session."""
    return system_prompt, user_prompt


def build_document_prompts(prd: PRD) -> Tuple[str, str]:
    """Prompts for the final PRD document"""
    section_list = "\n".join(
        f"   {chr(ord('a') + index)}. {section}" for index, section in enumerate(DOCUMENT_SECTIONS)
    )
    heading_list = "\n".join(
        f"## {index}. {section}" for index, section in enumerate(DOCUMENT_SECTIONS, start=1)
    )

    system_prompt = f"""You are an experienced product manager whose task is to create a comprehensive Product Requirements Document (PRD) based on the provided project description and planning session summary.

1. Divide the PRD into the following sections:
{section_list}

2. In each section, provide detailed and relevant information based on the project description and planning session summary:
   - Use clear and concise language
   - Provide specific details and data as needed
   - Maintain consistency throughout the document

3. When writing user stories:
   - List all necessary user stories, including basic, alternative and edge case scenarios.
   - Give each user story a unique identifier (e.g. US-001).
   - Include a user story for secure access if the application requires user identification.
   - Make every user story testable, with ID, Title, Description and Acceptance Criteria.

4. Formatting:
   - Keep formatting and numbering consistent.
   - Do not use bold formatting in markdown.
   - Format the PRD in proper markdown.

Use the following structure:

# Product Requirements Document (PRD) - {prd.name}
{heading_list}

The final output should consist solely of the PRD in the specified markdown format."""

    user_prompt = f"""<project_description>
{build_project_description(prd)}
</project_description>

<project_details>
{prd.summary}
</project_details>

Generate a comprehensive Product Requirements Document (PRD) following the structure and guidelines provided in the system prompt."""
    return system_prompt, user_prompt
