"""Request and result schemas for the completion gateway.

CompletionRequest is what every provider adapter receives; CompletionResult
is what every public gateway operation returns. Results are ephemeral and
handed straight back to the route handler.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from tutorgate.schemas.analysis import CodeIssue


class Task(StrEnum):
    """The logical requests the gateway serves."""

    EXPLAIN = "explain"
    ANSWER = "answer"
    FEEDBACK = "feedback"
    COURSE = "course"


class TeachingMode(StrEnum):
    """Tutor persona variants appended to the system instruction."""

    DEFAULT = "default"
    BEGINNER = "beginner"
    STRICT = "strict"
    ENGINEER = "engineer"


class CompletionRequest(BaseModel):
    """A single logical request handed to a provider adapter."""

    task: Task = Field(description="Which prompt family to use")
    content: str = Field(description="Source code (explain/feedback) or question text (answer)")
    language: str = Field(default="python", description="Programming language of the content")
    mode: TeachingMode = Field(default=TeachingMode.DEFAULT, description="Requested teaching mode")
    output: str | None = Field(default=None, description="Program output, for feedback")
    error: str | None = Field(default=None, description="Console error message, for feedback")
    difficulty: str | None = Field(default=None, description="Target level, for course outlines")
    detected_issues: list[str] = Field(
        default_factory=list,
        description="Analyzer findings to surface in the feedback prompt",
    )


class ProviderError(BaseModel):
    """One provider's failure on the all-failed path."""

    provider: str
    error: str

    def __str__(self) -> str:
        return f"{self.provider}: {self.error}"


class CompletionResult(BaseModel):
    """The gateway's answer to a caller.

    ``provider`` is the winning adapter's name, or ``"fallback"`` when the
    text was produced by the deterministic fallback builder. Callers use it
    (together with ``warning``) to tell AI output from templated output.
    """

    explanation: str = Field(description="Markdown answer text")
    provider: str = Field(description="Provider that produced the text, or 'fallback'")
    concepts: list[str] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)
    is_error_analysis: bool | None = Field(
        default=None, description="True when broken code was routed to feedback"
    )
    warning: str | None = Field(default=None, description="Set when no provider answered")
    errors: list[str] | None = Field(
        default=None, description="'provider: message' for every failed provider"
    )
    detected_issues: list[CodeIssue] = Field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.provider == "fallback"


class ProviderStatus(BaseModel):
    """Availability of one provider, as reported to operators."""

    name: str
    configured: bool
    healthy: bool
