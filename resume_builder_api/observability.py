"""Observability utilities: trace IDs, metrics, LLM payload logging and parse diagnostics.

This module provides:
- Trace ID generation and propagation via context vars
- Prometheus metrics for LLM calls (tokens, latency, errors) and for resume parsing
- Structured logging helpers for LLM request/response correlation
- ParseDiagnostics, the per-request diagnostic log filled in by the text parser
"""

import time
import secrets
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field

import structlog
from prometheus_client import Counter, Histogram, Gauge

logger = structlog.get_logger()

# =============================================================================
# Trace ID Context
# =============================================================================

# Context variable for trace ID propagation across async calls
trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")


def generate_trace_id() -> str:
    """Generate cryptographically secure trace ID for request tracking."""
    return secrets.token_hex(16)


def get_trace_id() -> str:
    """Get current trace ID from context, or empty string if not set."""
    return trace_id_ctx.get()


def set_trace_id(trace_id: str) -> None:
    """Set trace ID in context."""
    trace_id_ctx.set(trace_id)


# =============================================================================
# Prometheus Metrics
# =============================================================================

llm_requests_total = Counter(
    "llm_requests_total",
    "Total LLM API requests",
    ["model", "operation", "status"],
)

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens used in LLM calls",
    ["model", "type"],  # values: prompt, completion, total
)

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM response latency in seconds",
    ["model", "operation"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

llm_active_requests = Gauge(
    "llm_active_requests",
    "Currently active LLM requests",
    ["model"],
)

resume_sections_parsed_total = Counter(
    "resume_sections_parsed_total",
    "Resume text sections recognized by the parser",
    ["section"],
)

resume_fragments_dropped_total = Counter(
    "resume_fragments_dropped_total",
    "Resume text lines or blocks the parser dropped",
    ["reason"],
)

resume_rejections_total = Counter(
    "resume_rejections_total",
    "Merged resumes rejected by the empty-result validation gate",
)


# =============================================================================
# Parse Diagnostics
# =============================================================================


@dataclass
class DiagnosticEvent:
    """One thing the parser noticed while reading resume text."""

    event: str
    section: str | None = None
    detail: str = ""


@dataclass
class ParseDiagnostics:
    """Diagnostic log collected across one request's parse calls.

    Passed by reference into the tokenizer and section parser. The events end
    up on EmptyResumeError when the validation gate rejects a result.
    """

    events: list[DiagnosticEvent] = field(default_factory=list)

    def record(self, event: str, section: str | None = None, detail: str = "") -> None:
        self.events.append(DiagnosticEvent(event=event, section=section, detail=detail[:200]))
        if event.startswith("dropped_"):
            resume_fragments_dropped_total.labels(reason=event).inc()

    def count(self, event: str) -> int:
        return sum(1 for e in self.events if e.event == event)

    def as_dicts(self) -> list[dict]:
        return [asdict(e) for e in self.events]

    def __len__(self) -> int:
        return len(self.events)


# =============================================================================
# LLM Payload Logging
# =============================================================================


@dataclass
class LLMRequestLog:
    """Structured log data for LLM requests."""

    trace_id: str
    model: str
    operation: str
    prompt_chars: int
    prompt_preview: str  # First 100 chars
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        if self.timestamp == 0.0:
            self.timestamp = time.time()


@dataclass
class LLMResponseLog:
    """Structured log data for LLM responses."""

    trace_id: str
    model: str
    operation: str
    tokens_prompt: int
    tokens_completion: int
    tokens_total: int
    latency_ms: int
    finish_reason: str
    error: str | None = None


def log_llm_request(model: str, operation: str, prompt: str) -> LLMRequestLog:
    """Log an LLM request for debugging.

    Returns LLMRequestLog for correlation with response.
    """
    log_data = LLMRequestLog(
        trace_id=get_trace_id(),
        model=model,
        operation=operation,
        prompt_chars=len(prompt),
        prompt_preview=prompt[:100] + ("..." if len(prompt) > 100 else ""),
    )

    logger.info(
        "llm_request",
        trace_id=log_data.trace_id,
        model=log_data.model,
        operation=log_data.operation,
        prompt_chars=log_data.prompt_chars,
        prompt_preview=log_data.prompt_preview,
    )

    llm_active_requests.labels(model=model).inc()

    return log_data


def log_llm_response(
    request_log: LLMRequestLog,
    tokens_prompt: int = 0,
    tokens_completion: int = 0,
    tokens_total: int = 0,
    finish_reason: str = "unknown",
    error: str | None = None,
) -> None:
    """Log an LLM response with metrics and correlation."""
    latency_ms = int((time.time() - request_log.timestamp) * 1000)

    log_data = LLMResponseLog(
        trace_id=request_log.trace_id,
        model=request_log.model,
        operation=request_log.operation,
        tokens_prompt=tokens_prompt,
        tokens_completion=tokens_completion,
        tokens_total=tokens_total,
        latency_ms=latency_ms,
        finish_reason=finish_reason,
        error=error,
    )

    if error:
        logger.error(
            "llm_response",
            trace_id=log_data.trace_id,
            model=log_data.model,
            operation=log_data.operation,
            latency_ms=log_data.latency_ms,
            error=log_data.error,
        )
        status = "error"
    else:
        logger.info(
            "llm_response",
            trace_id=log_data.trace_id,
            model=log_data.model,
            operation=log_data.operation,
            tokens_prompt=log_data.tokens_prompt,
            tokens_completion=log_data.tokens_completion,
            tokens_total=log_data.tokens_total,
            latency_ms=log_data.latency_ms,
            finish_reason=log_data.finish_reason,
        )
        status = "success"

    llm_active_requests.labels(model=request_log.model).dec()
    llm_requests_total.labels(
        model=request_log.model,
        operation=request_log.operation,
        status=status,
    ).inc()

    if tokens_total > 0:
        llm_tokens_total.labels(model=request_log.model, type="prompt").inc(tokens_prompt)
        llm_tokens_total.labels(model=request_log.model, type="completion").inc(tokens_completion)
        llm_tokens_total.labels(model=request_log.model, type="total").inc(tokens_total)

    llm_latency_seconds.labels(
        model=request_log.model,
        operation=request_log.operation,
    ).observe(latency_ms / 1000.0)
