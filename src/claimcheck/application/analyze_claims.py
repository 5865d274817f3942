"""
Pipeline Orchestrator
=====================

Primary application use-case: runs the claim verification pipeline.

Flow:
1. Validate and screen the request
2. Check the request-level cache
3. Extract claims (a failure here aborts the request)
4. Fan out one task per claim:
   cache check -> evidence -> rank -> adjudicate -> [rewrite] -> cite
5. Collect results by extraction index, emitting events as claims finish
6. Cache the result, emit ``done`` and hand off to the history recorder

Any exception inside a single claim's task downgrades only that claim to
``unclear`` with a generic explanation; siblings are unaffected.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import uuid4

from claimcheck.domain.entities import ProcessedClaim, Verdict
from claimcheck.domain.errors import ClaimCheckError, InputValidationError, UpstreamTimeout
from claimcheck.domain.results import (
    TERMINAL_EVENTS,
    ClaimEvent,
    DoneEvent,
    ErrorEvent,
    ExtractionEvent,
    PipelineEvent,
    PipelineMetadata,
    PipelineRequest,
    PipelineResult,
)
from claimcheck.domain.services.citation_formatter import cite_source
from claimcheck.domain.services.content_filter import ensure_allowed
from claimcheck.ports.collaborators import HistoryEntry

if TYPE_CHECKING:
    from claimcheck.domain.entities import EvidenceDocument, RawClaim
    from claimcheck.domain.services.claim_extractor import ClaimExtractor
    from claimcheck.domain.services.result_cache import ResultCache
    from claimcheck.domain.services.rewrite_generator import RewriteGenerator
    from claimcheck.domain.services.source_ranker import SourceRanker
    from claimcheck.domain.services.verdict_adjudicator import VerdictAdjudicator
    from claimcheck.ports.collaborators import HistoryRecorder
    from claimcheck.ports.evidence_provider import EvidenceProvider

logger = logging.getLogger(__name__)

CLAIM_FAILURE_EXPLANATION = "We could not verify this claim at this time. Please try again later."
GENERIC_FAILURE_MESSAGE = "Analysis failed. Please try again later."
HISTORY_SNIPPET_CHARS = 200
EVIDENCE_DEADLINE_MARGIN_SECONDS = 1.0
DEFAULT_EVIDENCE_TIMEOUT_SECONDS = 10.0

EventSink = Callable[[PipelineEvent], Awaitable[None]]


def evidence_deadline(evidence: EvidenceProvider) -> float:
    """Outer deadline for one search: the whole chain's budget plus a margin."""
    budget = evidence.timeout_budget_seconds
    if budget is None:
        return DEFAULT_EVIDENCE_TIMEOUT_SECONDS
    return budget + EVIDENCE_DEADLINE_MARGIN_SECONDS


class ClaimState(StrEnum):
    """Progress of a single claim through the pipeline."""

    PENDING = "pending"
    EXTRACTED = "extracted"
    CACHE_CHECKED = "cache_checked"
    EVIDENCE_FETCHED = "evidence_fetched"
    RANKED = "ranked"
    ADJUDICATED = "adjudicated"
    REWRITTEN = "rewritten"
    CITED = "cited"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ClaimOutcome:
    """Terminal result of one claim task."""

    index: int
    claim: ProcessedClaim
    from_cache: bool = False
    failed: bool = False


class PipelineOrchestrator:
    """
    Composes the pipeline stages for one request at a time.

    All collaborators are injected; the orchestrator owns no global state
    except the set of fire-and-forget history tasks it has started.
    """

    def __init__(
        self,
        *,
        extractor: ClaimExtractor,
        evidence: EvidenceProvider,
        ranker: SourceRanker,
        adjudicator: VerdictAdjudicator,
        rewriter: RewriteGenerator,
        cache: ResultCache,
        history: HistoryRecorder | None = None,
        concurrency: int = 3,
        max_text_chars: int = 5000,
        max_claims_limit: int = 20,
        evidence_timeout_seconds: float | None = None,
        enable_request_cache: bool = True,
        content_filter_enabled: bool = True,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            concurrency: Claims processed at once; 0 means unbounded fan-out.
            evidence_timeout_seconds: Hard deadline for one evidence search.
                Defaults to the provider chain's timeout budget plus a margin,
                so a fallback backend still runs after the primary times out.
        """
        self._extractor = extractor
        self._evidence = evidence
        self._ranker = ranker
        self._adjudicator = adjudicator
        self._rewriter = rewriter
        self._cache = cache
        self._history = history
        self._concurrency = concurrency
        self._max_text_chars = max_text_chars
        self._max_claims_limit = max_claims_limit
        self._evidence_timeout = (
            evidence_timeout_seconds
            if evidence_timeout_seconds is not None
            else evidence_deadline(evidence)
        )
        self._enable_request_cache = enable_request_cache
        self._content_filter_enabled = content_filter_enabled
        self._background: set[asyncio.Task[None]] = set()

    # -------------------------------------------------------------------------
    # Public entry points
    # -------------------------------------------------------------------------

    def validate(self, request: PipelineRequest) -> None:
        """
        Reject malformed, oversized or blocked requests.

        Raises:
            InputValidationError: Before any upstream call is made.
        """
        if not request.text.strip():
            raise InputValidationError("empty text", public_message="Text must not be empty")
        if len(request.text) > self._max_text_chars:
            raise InputValidationError(
                f"text length {len(request.text)} exceeds {self._max_text_chars}",
                public_message=f"Text exceeds the maximum length of {self._max_text_chars} characters",
            )
        if request.max_claims > self._max_claims_limit:
            raise InputValidationError(
                f"max_claims {request.max_claims} exceeds {self._max_claims_limit}",
                public_message=f"maxClaims must be between 1 and {self._max_claims_limit}",
            )
        if self._content_filter_enabled:
            ensure_allowed(request.text)

    async def run(self, request: PipelineRequest, *, request_id: str | None = None) -> PipelineResult:
        """
        Run the pipeline and return the aggregated result.

        Raises:
            InputValidationError: For invalid requests.
            ParseError | UpstreamTimeout | UpstreamUnavailable: If claim
                extraction fails.
        """
        self.validate(request)
        return await self._execute(request, request_id or str(uuid4()), None)

    async def stream(
        self,
        request: PipelineRequest,
        *,
        request_id: str | None = None,
    ) -> AsyncIterator[PipelineEvent]:
        """
        Run the pipeline, yielding events as they occur.

        Yields ``extraction`` once, one ``claim`` per extracted claim in
        completion order, then exactly one ``done`` or ``error``. Closing
        the iterator early cancels in-flight claim work.
        """
        self.validate(request)
        request_id = request_id or str(uuid4())
        queue: asyncio.Queue[PipelineEvent] = asyncio.Queue()

        async def runner() -> None:
            try:
                await self._execute(request, request_id, queue.put)
            except ClaimCheckError as e:
                logger.warning(
                    f"Streaming analysis {request_id} failed: {type(e).__name__}: {e}",
                    extra={"request_id": request_id, "error_type": type(e).__name__},
                )
                await queue.put(ErrorEvent(message=e.public_message, request_id=request_id))
            except Exception:
                logger.exception(
                    f"Unexpected error in streaming analysis {request_id}",
                    extra={"request_id": request_id},
                )
                await queue.put(ErrorEvent(message=GENERIC_FAILURE_MESSAGE, request_id=request_id))

        task = asyncio.create_task(runner(), name=f"analyze-{request_id}")
        try:
            while True:
                event = await queue.get()
                yield event
                if isinstance(event, TERMINAL_EVENTS):
                    break
        finally:
            if not task.done():
                logger.info(f"Consumer left stream {request_id}; cancelling in-flight work")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def drain(self) -> None:
        """Wait for pending history hand-offs (used on shutdown)."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Core
    # -------------------------------------------------------------------------

    async def _execute(
        self,
        request: PipelineRequest,
        request_id: str,
        emit: EventSink | None,
    ) -> PipelineResult:
        start_time = time.perf_counter()
        style = request.citation_style

        async def send(event: PipelineEvent) -> None:
            if emit is not None:
                await emit(event)

        # Step 1: Request-level cache
        if self._enable_request_cache:
            cached = await self._cache.get_request(request.text, style)
            if cached is not None:
                logger.info(
                    f"Request cache hit for {request_id} ({len(cached.claims)} claims)",
                    extra={"request_id": request_id},
                )
                result = cached.model_copy(
                    update={
                        "request_id": request_id,
                        "cached": True,
                        "metadata": cached.metadata.model_copy(
                            update={"processing_time_ms": self._elapsed_ms(start_time)}
                        ),
                    }
                )
                await send(ExtractionEvent(total=len(result.claims)))
                for index, claim in enumerate(result.claims):
                    await send(ClaimEvent(index=index, claim=claim))
                await send(DoneEvent(request_id=request_id, metadata=result.metadata))
                self._schedule_history(request, result)
                return result

        # Step 2: Extraction (request-level failure)
        claims = await self._extractor.extract(request.text, request.max_claims)
        await send(ExtractionEvent(total=len(claims)))

        # Step 3: Per-claim fan-out
        results: list[ProcessedClaim | None] = [None] * len(claims)
        any_failed = False
        semaphore = asyncio.Semaphore(self._concurrency) if self._concurrency > 0 else None

        async def bounded(index: int, claim: RawClaim) -> ClaimOutcome:
            if semaphore is None:
                return await self._process_claim(index, claim, request, request_id)
            async with semaphore:
                return await self._process_claim(index, claim, request, request_id)

        tasks = [
            asyncio.create_task(bounded(i, c), name=f"claim-{request_id}-{i}")
            for i, c in enumerate(claims)
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                outcome = await next_done
                results[outcome.index] = outcome.claim
                any_failed = any_failed or outcome.failed
                await send(ClaimEvent(index=outcome.index, claim=outcome.claim))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        # Step 4: Aggregate
        metadata = PipelineMetadata(
            processing_time_ms=self._elapsed_ms(start_time),
            claims_extracted=len(claims),
            citation_style=style,
        )
        result = PipelineResult(
            request_id=request_id,
            claims=[c for c in results if c is not None],
            metadata=metadata,
        )

        if self._enable_request_cache and not any_failed:
            await self._cache.set_request(request.text, style, result)

        logger.info(
            f"Analysis {request_id} finished: {len(claims)} claims in "
            f"{metadata.processing_time_ms:.0f}ms",
            extra={"request_id": request_id},
        )
        await send(DoneEvent(request_id=request_id, metadata=metadata))
        self._schedule_history(request, result)
        return result

    async def _process_claim(
        self,
        index: int,
        claim: RawClaim,
        request: PipelineRequest,
        request_id: str,
    ) -> ClaimOutcome:
        """Run one claim to a terminal state. Never raises except on cancellation."""
        style = request.citation_style
        state = ClaimState.EXTRACTED
        try:
            cached = await self._cache.get_claim(claim.original_text, style)
            state = ClaimState.CACHE_CHECKED
            if cached is not None:
                logger.debug(
                    f"Claim cache hit for claim {index}",
                    extra={"request_id": request_id, "claim_index": index},
                )
                return ClaimOutcome(
                    index=index,
                    claim=cached.model_copy(
                        update={
                            "claim_id": str(uuid4()),
                            "original_text": claim.original_text,
                            "span": claim.span,
                        }
                    ),
                    from_cache=True,
                )

            documents = await self._search(claim.original_text)
            state = ClaimState.EVIDENCE_FETCHED

            ranked = self._ranker.rank(claim, documents)
            state = ClaimState.RANKED

            adjudication = await self._adjudicator.adjudicate(claim, ranked)
            state = ClaimState.ADJUDICATED

            rewrites = []
            if adjudication.verdict.needs_rewrite:
                rewrites = await self._rewriter.generate(
                    claim.original_text, adjudication.verdict, ranked
                )
                state = ClaimState.REWRITTEN

            cited = [cite_source(source, style) for source in ranked]
            state = ClaimState.CITED

            processed = ProcessedClaim(
                original_text=claim.original_text,
                span=claim.span,
                verdict=adjudication.verdict,
                explanation=adjudication.explanation,
                sources=cited,
                rewrites=rewrites,
            )
            await self._cache.set_claim(claim.original_text, style, processed)
            return ClaimOutcome(index=index, claim=processed)

        except Exception as e:
            logger.warning(
                f"Claim {index} failed in state {state}: {type(e).__name__}: {e}",
                extra={
                    "request_id": request_id,
                    "claim_index": index,
                    "stage": str(state),
                    "error_type": type(e).__name__,
                },
            )
            return ClaimOutcome(
                index=index,
                claim=ProcessedClaim(
                    original_text=claim.original_text,
                    span=claim.span,
                    verdict=Verdict.UNCLEAR,
                    explanation=CLAIM_FAILURE_EXPLANATION,
                ),
                failed=True,
            )

    async def _search(self, query: str) -> list[EvidenceDocument]:
        try:
            return await asyncio.wait_for(self._evidence.search(query), self._evidence_timeout)
        except TimeoutError as e:
            raise UpstreamTimeout(
                f"evidence search exceeded {self._evidence_timeout}s"
            ) from e

    # -------------------------------------------------------------------------
    # History hand-off
    # -------------------------------------------------------------------------

    def _schedule_history(self, request: PipelineRequest, result: PipelineResult) -> None:
        if self._history is None:
            return
        entry = HistoryEntry(
            user_id=request.user_id,
            type="analyze",
            input_snippet=request.text[:HISTORY_SNIPPET_CHARS],
            result_json=result.model_dump_json(),
            claim_count=len(result.claims),
        )
        task = asyncio.create_task(self._record_history(entry))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _record_history(self, entry: HistoryEntry) -> None:
        if self._history is None:
            return
        try:
            await self._history.record(entry)
        except Exception as e:
            logger.error(f"Failed to save check to history: {e}")

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)
