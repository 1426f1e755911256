"""Prompt templates and teaching modes for the tutor persona.

Loads Markdown prompt templates from the prompts/ directory and renders
them with Jinja2 variable substitution. The system template carries the
tutor persona; the explain, answer, and feedback templates carry the
task-specific instructions sent as the user turn.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, Environment

from tutorgate.schemas.completion import Task, TeachingMode

# Directory containing the .md prompt template files
_PROMPTS_DIR = Path(__file__).parent

# Keyword rules for mode detection, checked in order
_STRICT_HINTS = ("strict mode", "follow structure", "exact format")
_BEGINNER_HINTS = ("beginner mode", "explain like i'm 5", "eli5", "simple explanation")
_ENGINEER_HINTS = (
    "engineer mode", "advanced", "technical details", "optimize",
    "performance", "architecture", "best practices",
)


def render_prompt(template_name: str, **variables: object) -> str:
    """Load a prompt template and render it with Jinja2 variables.

    Args:
        template_name: Name of the template file (without .md extension).
                       Must correspond to a file in the prompts/ directory.
        **variables: Template variables to inject.

    Returns:
        The fully rendered prompt string.

    Raises:
        FileNotFoundError: If the template file does not exist.
    """
    path = _PROMPTS_DIR / f"{template_name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    template_text = path.read_text(encoding="utf-8")

    # Default Undefined renders as empty, so {% if optional %} blocks are skipped
    env = Environment(loader=BaseLoader(), keep_trailing_newline=True)
    template = env.from_string(template_text)
    return template.render(**variables)


def detect_mode(text: str | None) -> TeachingMode:
    """Infer a teaching mode from the learner's own wording."""
    if not text or not isinstance(text, str):
        return TeachingMode.DEFAULT

    lowered = text.lower()
    if any(hint in lowered for hint in _STRICT_HINTS) or (
        "strict" in lowered and "on" in lowered
    ):
        return TeachingMode.STRICT
    if any(hint in lowered for hint in _BEGINNER_HINTS) or (
        "beginner" in lowered and ("explain" in lowered or "simple" in lowered)
    ):
        return TeachingMode.BEGINNER
    if any(hint in lowered for hint in _ENGINEER_HINTS):
        return TeachingMode.ENGINEER
    return TeachingMode.DEFAULT


def resolve_mode(mode: TeachingMode | str, text: str | None) -> TeachingMode:
    """Use the requested mode, or detect one when the caller left it at default."""
    requested = TeachingMode(mode)
    if requested is TeachingMode.DEFAULT:
        return detect_mode(text)
    return requested


def system_message(mode: TeachingMode | str = TeachingMode.DEFAULT) -> str:
    """Render the tutor persona with the addendum for a mode."""
    return render_prompt("system", mode=TeachingMode(mode).value).strip()


def task_prompt(task: Task, **variables: object) -> str:
    """Render the user-turn instructions for a task."""
    return render_prompt(task.value, **variables).strip()
