"""tutorgate schema definitions.

All Pydantic v2 models used across the analyzer, adapters, and orchestrator.
"""

from tutorgate.schemas.analysis import (
    AnalysisResult,
    CodeIssue,
    IssueType,
    ParsedError,
    Suggestion,
)
from tutorgate.schemas.course import CourseLesson, CourseOutline, Difficulty
from tutorgate.schemas.completion import (
    CompletionRequest,
    CompletionResult,
    ProviderError,
    ProviderStatus,
    Task,
    TeachingMode,
)
from tutorgate.schemas.providers import (
    GatewayConfig,
    ProviderConfig,
    ProviderName,
    RateLimitConfig,
)

__all__ = [
    "AnalysisResult",
    "CodeIssue",
    "CompletionRequest",
    "CompletionResult",
    "CourseLesson",
    "CourseOutline",
    "Difficulty",
    "GatewayConfig",
    "IssueType",
    "ParsedError",
    "ProviderConfig",
    "ProviderError",
    "ProviderName",
    "ProviderStatus",
    "RateLimitConfig",
    "Suggestion",
    "Task",
    "TeachingMode",
]
