"""tutorgate: multi-provider completion gateway for a programming tutor."""

__version__ = "0.1.0"

from .errors import GatewayError, UnknownProviderError
from .orchestrator import CompletionOrchestrator
from .schemas.completion import CompletionResult, ProviderStatus

__all__ = [
    "CompletionOrchestrator",
    "CompletionResult",
    "GatewayError",
    "ProviderStatus",
    "UnknownProviderError",
]
