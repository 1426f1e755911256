"""Completion orchestrator: provider selection, racing, and fallback.

Serves the three public operations (explain code, answer a question,
generate feedback). In auto mode every eligible adapter is started at
once and the first successful answer is returned; the slower adapters keep
running in the background so their outcomes still update provider health.
When every adapter fails, or none is eligible, the deterministic fallback
builder answers instead, so callers always get a result.

Course outlines are the exception: providers are tried one at a time until
one returns a valid outline, and there is no fallback text.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from pydantic import ValidationError

from tutorgate.analysis.analyzer import analyze
from tutorgate.analysis.concepts import extract_concepts, generate_examples
from tutorgate.analysis.fallback import (
    FALLBACK_NOTE,
    build_answer_fallback,
    build_explanation_fallback,
    build_fallback,
)
from tutorgate.errors import (
    CourseGenerationError,
    ProviderCallError,
    ProviderUnavailableError,
    UnknownProviderError,
)
from tutorgate.providers.base import ProviderAdapter
from tutorgate.providers.health import HealthRegistry
from tutorgate.providers.registry import build_adapters, load_gateway_config, load_providers
from tutorgate.schemas.analysis import CodeIssue
from tutorgate.schemas.completion import (
    CompletionRequest,
    CompletionResult,
    ProviderError,
    ProviderStatus,
    Task,
    TeachingMode,
)
from tutorgate.schemas.course import CourseOutline, Difficulty
from tutorgate.schemas.providers import GatewayConfig, ProviderConfig, ProviderName

logger = logging.getLogger(__name__)

AUTO = "auto"
FALLBACK_PROVIDER = "fallback"

# Builds the fallback result from the errors collected so far
FallbackBuilder = Callable[[list[ProviderError]], CompletionResult]

_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n```", re.DOTALL)


@dataclass
class AttemptOutcome:
    """How one adapter call ended, with its wall-clock latency."""

    provider: ProviderName
    latency: float
    result: CompletionResult | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


def _error_text(error: Exception) -> str:
    """The bare failure message, without the provider prefix."""
    match error:
        case ProviderUnavailableError():
            return error.reason
        case ProviderCallError():
            return error.message
        case _:
            return str(error) or type(error).__name__


def _parse_outline(content: str) -> CourseOutline | None:
    """Parse a course outline from a reply, bare or in a Markdown code block.

    Returns None when neither form validates.
    """
    try:
        return CourseOutline.model_validate_json(content)
    except ValidationError:
        pass

    json_match = _JSON_BLOCK_RE.search(content)
    if json_match:
        try:
            return CourseOutline.model_validate_json(json_match.group(1))
        except ValidationError:
            pass

    return None


def _issue_lines(
    code: str, language: str, uppercase_heuristic: bool,
) -> tuple[list[CodeIssue], list[str]]:
    result = analyze(code, language, uppercase_heuristic=uppercase_heuristic)
    return result.issues, [f"Line {issue.line}: {issue.message}" for issue in result.issues]


class CompletionOrchestrator:
    """Front door of the gateway.

    Args:
        adapters: Adapters to route between. Built from provider_configs
            (or providers.toml) when omitted.
        health: Shared health registry. A fresh one is created from the
            gateway config when omitted.
        config: Gateway settings. Loaded from defaults.toml when omitted.
        provider_configs: Provider definitions used to build the adapters.
    """

    def __init__(
        self,
        adapters: Iterable[ProviderAdapter] | Mapping[str, ProviderAdapter] | None = None,
        health: HealthRegistry | None = None,
        config: GatewayConfig | None = None,
        provider_configs: Mapping[ProviderName, ProviderConfig] | None = None,
    ) -> None:
        self._config = config or load_gateway_config()
        self._health = health or HealthRegistry(
            ttl=self._config.health_ttl,
            rate_limited_cooldown=self._config.rate_limited_cooldown,
        )

        if adapters is None:
            configs = dict(provider_configs) if provider_configs else load_providers()
            adapters = build_adapters(configs, self._health, self._config)
        if isinstance(adapters, Mapping):
            adapters = adapters.values()

        # Candidate order in auto mode: free tiers first
        self._adapters: dict[str, ProviderAdapter] = {
            adapter.name.value: adapter
            for adapter in sorted(adapters, key=lambda a: a.priority)
        }
        self._background: set[asyncio.Task[AttemptOutcome]] = set()

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def health(self) -> HealthRegistry:
        return self._health

    @property
    def adapters(self) -> dict[str, ProviderAdapter]:
        return dict(self._adapters)

    # ── Public operations ─────────────────────────────────────

    async def explain_code(
        self,
        code: str,
        language: str = "python",
        provider: str = AUTO,
        mode: TeachingMode | str = TeachingMode.DEFAULT,
    ) -> CompletionResult:
        """Explain a piece of code.

        Code the analyzer finds problems in is routed to feedback instead:
        the result then has ``is_error_analysis=True`` and carries the
        detected issues.

        Raises:
            UnknownProviderError: If ``provider`` names no known provider.
        """
        self._resolve_provider(provider)
        issues, issue_lines = _issue_lines(code, language, self._config.uppercase_heuristic)

        if issues:
            logger.info("Analyzer found %d issue(s); routing to feedback", len(issues))
            request = CompletionRequest(
                task=Task.FEEDBACK,
                content=code,
                language=language,
                mode=mode,
                detected_issues=issue_lines,
            )
            result = await self._complete(
                request,
                provider,
                self._config.feedback_timeout,
                lambda errors: self._fallback_result(
                    build_fallback(code, None, errors), errors, code=code,
                ),
            )
            return result.model_copy(
                update={"is_error_analysis": True, "detected_issues": issues}
            )

        request = CompletionRequest(task=Task.EXPLAIN, content=code, language=language, mode=mode)
        return await self._complete(
            request,
            provider,
            self._config.explain_timeout,
            lambda errors: self._fallback_result(
                build_explanation_fallback(code, errors), errors, code=code,
            ),
        )

    async def answer_question(
        self,
        question: str,
        language: str = "python",
        provider: str = AUTO,
        mode: TeachingMode | str = TeachingMode.DEFAULT,
    ) -> CompletionResult:
        """Answer a free-form programming question."""
        self._resolve_provider(provider)
        request = CompletionRequest(
            task=Task.ANSWER, content=question, language=language, mode=mode,
        )
        return await self._complete(
            request,
            provider,
            self._config.answer_timeout,
            lambda errors: self._fallback_result(
                build_answer_fallback(question, language, errors), errors,
            ),
        )

    async def generate_feedback(
        self,
        code: str,
        output: str | None = None,
        error: str | None = None,
        provider: str = AUTO,
    ) -> str:
        """Feedback on code the learner ran, optionally with its console error.

        Without an error message the analyzer's findings are passed to the
        provider so it can address them.
        """
        self._resolve_provider(provider)
        issue_lines: list[str] = []
        if not error:
            _, issue_lines = _issue_lines(code, "python", self._config.uppercase_heuristic)

        request = CompletionRequest(
            task=Task.FEEDBACK,
            content=code,
            output=output,
            error=error,
            detected_issues=issue_lines,
        )
        result = await self._complete(
            request,
            provider,
            self._config.feedback_timeout,
            lambda errors: self._fallback_result(build_fallback(code, error, errors), errors),
        )
        return result.explanation

    async def generate_course_content(
        self,
        topic: str,
        difficulty: Difficulty | str = Difficulty.BEGINNER,
        provider: str = AUTO,
    ) -> CourseOutline:
        """Generate a course outline for a programming topic.

        Providers are tried one after another in priority order (a named
        provider first), skipping those that cannot return JSON. The first
        reply that validates as a CourseOutline wins; malformed JSON moves
        on to the next provider.

        Raises:
            UnknownProviderError: If ``provider`` names no known provider.
            CourseGenerationError: If no provider produced a valid outline.
        """
        named = self._resolve_provider(provider)
        request = CompletionRequest(
            task=Task.COURSE, content=topic, difficulty=Difficulty(difficulty).value,
        )

        candidates = [named] if named is not None else []
        candidates += [
            adapter for adapter in self._adapters.values()
            if adapter is not named and adapter.config.json_output and adapter.eligible
        ]

        errors: list[ProviderError] = []
        for adapter in candidates:
            outcome = await self._attempt(adapter, request, self._config.course_timeout)
            if not outcome.succeeded:
                errors.append(self._provider_error(outcome))
                continue
            outline = _parse_outline(outcome.result.explanation)
            if outline is None:
                logger.warning("Provider %s returned an invalid course outline", adapter.name)
                errors.append(ProviderError(
                    provider=adapter.name.value, error="invalid course outline JSON",
                ))
                continue
            logger.info("Provider %s generated a course on %r", adapter.name, topic)
            return outline.model_copy(update={"provider": adapter.name.value})

        logger.error(
            "Course generation failed for %r: %s",
            topic, "; ".join(str(e) for e in errors) or "no eligible providers",
        )
        raise CourseGenerationError([str(e) for e in errors])

    def get_available_providers(self) -> list[ProviderStatus]:
        """Every known provider with its configured and healthy flags."""
        return [
            ProviderStatus(name=name, configured=adapter.configured, healthy=adapter.healthy)
            for name, adapter in self._adapters.items()
        ]

    def reset_provider_health(self, name: str | None = None) -> None:
        """Clear the health record of one provider, or of all of them."""
        if name is None:
            self._health.reset_all()
            return
        adapter = self._resolve_provider(name)
        self._health.reset(adapter.name)

    async def drain(self) -> None:
        """Wait for adapter calls still running after their race was decided."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ── Selection and racing ──────────────────────────────────

    def _resolve_provider(self, provider: str | None) -> ProviderAdapter | None:
        """Adapter for an explicit provider name, or None for auto mode.

        Raises:
            UnknownProviderError: If the name is not registered.
        """
        if not provider or provider == AUTO:
            return None
        adapter = self._adapters.get(provider.lower())
        if adapter is None:
            raise UnknownProviderError(provider, list(self._adapters))
        return adapter

    async def _complete(
        self,
        request: CompletionRequest,
        provider: str,
        timeout: float,
        fallback: FallbackBuilder,
    ) -> CompletionResult:
        errors: list[ProviderError] = []

        named = self._resolve_provider(provider)
        if named is not None:
            outcome = await self._attempt(named, request, timeout)
            if outcome.succeeded:
                return outcome.result
            errors.append(self._provider_error(outcome))
            logger.warning(
                "Provider %s failed, falling back to auto selection: %s",
                named.name, _error_text(outcome.error),
            )

        candidates = [
            adapter for adapter in self._adapters.values()
            if adapter is not named and adapter.eligible
        ]
        logger.debug(
            "Eligible providers for %s: %s",
            request.task, ", ".join(a.name for a in candidates) or "none",
        )

        if not candidates:
            logger.warning("No eligible providers for %s, using fallback", request.task)
            return fallback(errors)

        winner, race_errors = await self._race(candidates, request, timeout)
        errors.extend(race_errors)
        if winner is not None:
            return winner.result

        logger.error(
            "All providers failed for %s: %s",
            request.task, "; ".join(str(e) for e in errors),
        )
        return fallback(errors)

    async def _race(
        self,
        candidates: list[ProviderAdapter],
        request: CompletionRequest,
        timeout: float,
    ) -> tuple[AttemptOutcome | None, list[ProviderError]]:
        """Start every candidate at once and return the first success.

        Returns the winning outcome (None when every candidate failed) and
        the errors of the candidates that finished without success before
        the race was decided.
        """
        pending: set[asyncio.Task[AttemptOutcome]] = {
            asyncio.create_task(
                self._attempt(adapter, request, timeout), name=f"tutorgate-{adapter.name}",
            )
            for adapter in candidates
        }
        errors: list[ProviderError] = []

        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            outcomes = sorted((task.result() for task in done), key=lambda o: o.latency)

            errors.extend(self._provider_error(o) for o in outcomes if not o.succeeded)
            successes = [o for o in outcomes if o.succeeded]
            if successes:
                winner = successes[0]
                logger.info(
                    "Provider %s answered %s in %.2fs (%d racing)",
                    winner.provider, request.task, winner.latency, len(candidates),
                )
                for task in pending:
                    self._track(task)
                return winner, errors

        return None, errors

    async def _attempt(
        self,
        adapter: ProviderAdapter,
        request: CompletionRequest,
        timeout: float,
    ) -> AttemptOutcome:
        """One time-boxed adapter call. Never raises for provider failures."""
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(adapter.call(request), timeout=timeout)
        except TimeoutError:
            self._health.mark_health(adapter.name, False)
            error = ProviderCallError(adapter.display_name, f"timed out after {timeout:g}s")
            logger.warning("Provider %s timed out after %gs", adapter.name, timeout)
            return AttemptOutcome(adapter.name, time.monotonic() - start, error=error)
        except Exception as e:
            logger.warning("Provider %s failed: %s", adapter.name, _error_text(e))
            return AttemptOutcome(adapter.name, time.monotonic() - start, error=e)

        return AttemptOutcome(adapter.name, time.monotonic() - start, result=result)

    def _track(self, task: asyncio.Task[AttemptOutcome]) -> None:
        self._background.add(task)
        task.add_done_callback(self._on_straggler_done)

    def _on_straggler_done(self, task: asyncio.Task[AttemptOutcome]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        outcome = task.result()
        logger.debug(
            "Provider %s finished after the race in %.2fs (%s)",
            outcome.provider,
            outcome.latency,
            "ok" if outcome.succeeded else _error_text(outcome.error),
        )

    # ── Fallback ──────────────────────────────────────────────

    @staticmethod
    def _provider_error(outcome: AttemptOutcome) -> ProviderError:
        return ProviderError(provider=outcome.provider.value, error=_error_text(outcome.error))

    @staticmethod
    def _fallback_result(
        text: str, errors: list[ProviderError], code: str | None = None,
    ) -> CompletionResult:
        return CompletionResult(
            explanation=text,
            provider=FALLBACK_PROVIDER,
            concepts=extract_concepts(code) if code is not None else [],
            examples=generate_examples(code) if code is not None else [],
            warning=FALLBACK_NOTE,
            errors=[str(e) for e in errors],
        )
