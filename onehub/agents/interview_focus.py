"""Interview focus writer: short prep points from a requirement's JD."""

from langchain_core.language_models import BaseChatModel

from onehub.tools.groq_llm import complete, create_llm

FOCUS_SYSTEM_PROMPT = """You help consultants prepare for client interviews.
Given a job description and tech stack, list the 5 most likely interview focus areas.
Rules:
- One bullet per line, starting with "- "
- Max 15 words per bullet
- No intro or closing text"""

MAX_JD_CHARS = 3000


def create_focus_llm() -> BaseChatModel:
    return create_llm(temperature=0.7, max_tokens=512)


def generate_interview_focus(
    description: str | None,
    tech_stack: str | None,
    title: str | None,
    llm: BaseChatModel,
) -> str:
    """Bullet list of focus areas (one per line)."""
    prompt = (
        f"Role: {title or 'Unknown'}\n"
        f"Tech stack: {tech_stack or 'Not specified'}\n\n"
        f"Job description:\n{(description or 'Not provided')[:MAX_JD_CHARS]}"
    )
    text = complete(llm, prompt, system=FOCUS_SYSTEM_PROMPT)
    bullets = [line.strip() for line in text.splitlines() if line.strip().startswith(("-", "*", "•"))]
    if not bullets:
        return text.strip()
    return "\n".join("- " + b.lstrip("-*• ").strip() for b in bullets)
