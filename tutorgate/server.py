"""FastAPI binding for the completion gateway.

A thin HTTP surface over CompletionOrchestrator: route handlers validate
the body, call one orchestrator operation, and serialize the result.
Provider failures never surface as HTTP errors; the orchestrator answers
with fallback text instead. Only an unknown provider name is a 400, and a
course outline no provider could produce is a 503.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from tutorgate.analysis.analyzer import analyze
from tutorgate.analysis.questions import is_question
from tutorgate.errors import CourseGenerationError, UnknownProviderError
from tutorgate.orchestrator import AUTO, CompletionOrchestrator
from tutorgate.schemas.analysis import AnalysisResult
from tutorgate.schemas.completion import TeachingMode
from tutorgate.schemas.course import CourseOutline, Difficulty

logger = logging.getLogger(__name__)

# Upper bound on submitted source code, in characters
MAX_CODE_LENGTH = 100_000


class ExplainBody(BaseModel):
    """Explain code, or answer a question when one is given."""

    code: str | None = Field(default=None, max_length=MAX_CODE_LENGTH)
    question: str | None = Field(default=None, max_length=MAX_CODE_LENGTH)
    language: str = "python"
    provider: str = AUTO
    mode: TeachingMode = TeachingMode.DEFAULT


class FeedbackBody(BaseModel):
    code: str = Field(min_length=1, max_length=MAX_CODE_LENGTH)
    output: str | None = None
    error: str | None = None
    provider: str = AUTO


class ResetBody(BaseModel):
    provider: str | None = Field(default=None, description="Provider to reset; all when omitted")


class AnalyzeBody(BaseModel):
    code: str = Field(max_length=MAX_CODE_LENGTH)
    language: str = "python"


class CourseBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    topic: str = Field(min_length=1, max_length=200)
    difficulty: Difficulty = Difficulty.BEGINNER
    provider: str = AUTO


def create_app(orchestrator: CompletionOrchestrator | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        orchestrator: The orchestrator to serve. Built from the packaged
            configuration when omitted.
    """
    gateway = orchestrator if orchestrator is not None else CompletionOrchestrator()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        # Let adapter calls that lost their race finish recording health
        await gateway.drain()

    app = FastAPI(
        title="tutorgate",
        description="Multi-provider completion gateway for a programming tutor",
        lifespan=lifespan,
    )
    app.state.orchestrator = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(UnknownProviderError)
    async def unknown_provider(request: Request, exc: UnknownProviderError) -> JSONResponse:
        logger.info("Rejected request for unknown provider %s", exc.name)
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(CourseGenerationError)
    async def course_failed(request: Request, exc: CourseGenerationError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={
                "detail": "All AI providers failed for course generation",
                "errors": exc.errors,
            },
        )

    # ── Providers ────────────────────────────────────────────────

    @app.get("/api/ai/providers")
    async def list_providers() -> dict:
        """Availability of every known provider."""
        statuses = gateway.get_available_providers()
        healthy = sum(1 for s in statuses if s.configured and s.healthy)
        return {
            "providers": [s.model_dump() for s in statuses],
            "summary": {
                "total": len(statuses),
                "healthy": healthy,
                "fallback_available": True,
            },
        }

    @app.post("/api/ai/providers/reset")
    async def reset_providers(body: ResetBody | None = None) -> dict:
        name = body.provider if body else None
        gateway.reset_provider_health(name)
        return {"reset": name or "all"}

    # ── Completions ──────────────────────────────────────────────

    @app.post("/api/ai/explain")
    async def explain(body: ExplainBody) -> dict:
        """Answer ``question`` or explain ``code``.

        When both are sent, the question is answered only if it reads as one;
        code-like text in ``question`` falls back to explaining ``code``.
        """
        has_code = bool(body.code and body.code.strip())
        has_question = bool(body.question and body.question.strip())

        if has_question and (not has_code or is_question(body.question)):
            result = await gateway.answer_question(
                body.question, body.language, body.provider, body.mode,
            )
        elif has_code:
            result = await gateway.explain_code(
                body.code, body.language, body.provider, body.mode,
            )
        else:
            raise HTTPException(status_code=400, detail="Either code or question is required")
        return result.model_dump(exclude_none=True)

    @app.post("/api/ai/feedback")
    async def feedback(body: FeedbackBody) -> dict:
        text = await gateway.generate_feedback(
            body.code, body.output, body.error, body.provider,
        )
        return {"feedback": text}

    @app.post("/api/ai/generate-course")
    async def generate_course(body: CourseBody) -> CourseOutline:
        return await gateway.generate_course_content(
            body.topic, body.difficulty, body.provider,
        )

    # ── Static analysis ──────────────────────────────────────────

    @app.post("/api/ai/analyze")
    async def analyze_code(body: AnalyzeBody) -> AnalysisResult:
        return analyze(
            body.code,
            body.language,
            uppercase_heuristic=gateway.config.uppercase_heuristic,
        )

    return app
