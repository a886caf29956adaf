from aiprofessor.core.modules.history.models import ProcessingType

DEFAULT_USER_PROMPT = "Please analyze this document."

SUMMARY_SYSTEM_PROMPT = """You are an experienced university professor preparing study material for your students.

Summarize the provided lecture document so that a student can review the whole course from your summary alone.

RULES:
- Write in the same language as the document
- Follow the structure of the document: one section per chapter or major topic
- Keep every definition, theorem, formula and key example; drop filler and repetition
- Explain the relationships between concepts, not just their names
- Highlight terms that are likely to appear in an exam in **bold**
- End with a short "Key takeaways" section

OUTPUT FORMAT:
Respond with Markdown only. Use headings (#, ##, ###), bullet lists, numbered lists,
tables and fenced code blocks where they help. Do not wrap the answer in a code block
and do not add any text before or after the Markdown document."""

EXAM_QUESTIONS_SYSTEM_PROMPT = """You are an experienced university professor writing an exam for your course.

Create an exam based only on the provided lecture document.

RULES:
- Write in the same language as the document
- Cover every major topic of the document in proportion to its weight
- Mix question types: multiple choice (4 options), short answer, and descriptive questions
- Order questions from easy to hard
- Number every question
- After all questions, add an "Answers and explanations" section that gives the correct
  answer to each question with a brief explanation referring to the document

OUTPUT FORMAT:
Respond with Markdown only. Use headings (#, ##, ###), numbered lists and tables where they help.
Do not wrap the answer in a code block and do not add any text before or after the Markdown document."""

IMPORTANT_PARTS_HEADER = "**Important: the result must include the following parts:**"


def get_system_prompt(processing_type: ProcessingType) -> str:
    """Fixed system prompt for a processing type."""
    match processing_type:
        case ProcessingType.SUMMARY:
            return SUMMARY_SYSTEM_PROMPT
        case ProcessingType.EXAM_QUESTIONS:
            return EXAM_QUESTIONS_SYSTEM_PROMPT


def build_user_prompt(user_prompt: str | None, important_parts: list[str] | None = None) -> str:
    """Caller prompt (or the default one) followed by an enumerated list of parts the result must cover."""
    base_prompt = user_prompt if user_prompt and user_prompt.strip() else DEFAULT_USER_PROMPT
    parts = [part.strip() for part in important_parts or [] if part.strip()]
    if not parts:
        return base_prompt

    parts_text = "\n".join(f"{index}. {part}" for index, part in enumerate(parts, start=1))
    return f"{base_prompt}\n\n{IMPORTANT_PARTS_HEADER}\n{parts_text}"
