"""FastAPI application entrypoint for the Resume Builder API."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, NoReturn

import structlog
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from resume_builder_api import __version__
from resume_builder_api.ats_analysis import analyze_resume
from resume_builder_api.auth import CurrentUser
from resume_builder_api.config import get_settings
from resume_builder_api.enhancer import EnhancementResult, enhance_resume_text, enhance_stored_resume
from resume_builder_api.guardrails import check_input
from resume_builder_api.job_matcher import JobCatalogueError, load_jobs
from resume_builder_api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    DeleteResponse,
    EnhanceRequest,
    EnhanceResponse,
    HealthResponse,
    Job,
    SaveResumeRequest,
    StoredResume,
)
from resume_builder_api.observability import generate_trace_id, set_trace_id
from resume_builder_api.openrouter_client import (
    OpenRouterAuthError,
    OpenRouterError,
    OpenRouterNetworkError,
    OpenRouterRateLimitError,
    close_openrouter_client,
    get_openrouter_client,
)
from resume_builder_api.resume_store import ResumeNotFoundError, get_resume_store
from resume_builder_api.validation import EmptyResumeError

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

API_KEY_STATUS = {
    0: "not set",
    1: "valid format",
    2: "incorrect prefix",
    3: "incorrect length",
    4: "invalid characters",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info(
        "Starting Resume Builder API",
        version=__version__,
        api_key_status=API_KEY_STATUS[settings.validate_openrouter_api_key()],
        mock_openrouter=settings.mock_openrouter,
    )

    try:
        await get_openrouter_client()
        logger.info("OpenRouter client initialized")
    except Exception as e:
        logger.warning("Failed to initialize OpenRouter client", error=str(e))

    yield

    logger.info("Shutting down Resume Builder API")
    await close_openrouter_client()


app = FastAPI(
    title="Resume Builder API",
    description="Resume parsing, AI enhancement and ATS analysis",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-User-ID", "X-Trace-ID"],
)


# Trace ID middleware for request correlation
@app.middleware("http")
async def trace_id_middleware(request: Request, call_next):
    """Add trace ID to every request for log correlation."""
    trace_id = request.headers.get("X-Trace-ID", generate_trace_id())
    set_trace_id(trace_id)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)

    response = await call_next(request)

    response.headers["X-Trace-ID"] = trace_id
    return response


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

Instrumentator().instrument(app).expose(app)


def _raise_upstream_error(e: OpenRouterError) -> NoReturn:
    """Translate a generator failure into the caller-visible status."""
    if isinstance(e, OpenRouterAuthError):
        raise HTTPException(status_code=500, detail="Invalid or missing API key") from e
    if isinstance(e, OpenRouterNetworkError):
        raise HTTPException(
            status_code=503,
            detail="Network error connecting to the AI service",
        ) from e
    if isinstance(e, OpenRouterRateLimitError):
        raise HTTPException(status_code=429, detail="AI service quota exceeded") from e
    raise HTTPException(status_code=502, detail=f"AI service error: {e}") from e


def _enhance_response(result: EnhancementResult) -> EnhanceResponse:
    return EnhanceResponse(enhanced_resume=result.sections, raw_text=result.raw_text)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/health", response_model=HealthResponse)
@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check the health of the API and its dependencies."""
    current = get_settings()
    llm_configured = current.has_openrouter_key or current.mock_openrouter

    return HealthResponse(
        status="healthy" if llm_configured else "degraded",
        llm_configured=llm_configured,
        stored_resumes=get_resume_store().count(),
        version=__version__,
    )


# =============================================================================
# Job Catalogue
# =============================================================================


@app.get("/jobs", response_model=list[Job])
async def list_jobs() -> list[Job]:
    """Return the job catalogue."""
    try:
        return load_jobs(get_settings().jobs_json_path)
    except JobCatalogueError as e:
        raise HTTPException(status_code=500, detail="Failed to fetch jobs") from e


# =============================================================================
# Enhancement and Analysis Endpoints
# =============================================================================


@app.post("/api/enhance-resume", response_model=EnhanceResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def enhance_resume(
    request: Request,
    enhance_request: EnhanceRequest,
    user_id: CurrentUser,
) -> EnhanceResponse:
    """
    Enhance resume text with the AI service.

    - **resumeText**: Resume in section text format (min 50 chars)

    Returns the merged resume (facts from the input, prose from the AI)
    and the AI's raw output.
    """
    logger.info(
        "Enhancement request received",
        user_id=user_id,
        resume_text_length=len(enhance_request.resume_text),
    )

    is_safe, reason = check_input(enhance_request.resume_text)
    if not is_safe:
        raise HTTPException(status_code=400, detail=reason)

    client = await get_openrouter_client()
    try:
        result = await enhance_resume_text(enhance_request.resume_text, client)
    except OpenRouterError as e:
        logger.error("Enhancement failed upstream", error=str(e))
        _raise_upstream_error(e)
    except EmptyResumeError as e:
        raise HTTPException(status_code=502, detail=e.to_detail()) from e

    return _enhance_response(result)


@app.post("/api/analyze", response_model=AnalyzeResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def analyze(
    request: Request,
    analyze_request: AnalyzeRequest,
    user_id: CurrentUser,
) -> AnalyzeResponse:
    """
    Score resume text against the best-fit job profile.

    - **resumeText**: Resume in section text format (min 50 chars)
    - **experienceLevel**: Candidate level used to calibrate the analysis
    - **industry**: Industry context for the analysis
    """
    logger.info(
        "Analysis request received",
        user_id=user_id,
        resume_text_length=len(analyze_request.resume_text),
    )

    is_safe, reason = check_input(analyze_request.resume_text)
    if not is_safe:
        raise HTTPException(status_code=400, detail=reason)

    try:
        jobs = load_jobs(get_settings().jobs_json_path)
    except JobCatalogueError:
        jobs = []

    client = await get_openrouter_client()
    try:
        result = await analyze_resume(
            analyze_request.resume_text,
            jobs,
            client,
            experience_level=analyze_request.experience_level,
            industry=analyze_request.industry,
        )
    except OpenRouterError as e:
        logger.error("Analysis failed upstream", error=str(e))
        _raise_upstream_error(e)

    return AnalyzeResponse(**result.analysis.model_dump(), matched_job=result.job)


# =============================================================================
# Resume Document Endpoints
# =============================================================================


@app.get("/resumes/resumes", response_model=list[StoredResume])
async def list_resumes(user_id: CurrentUser) -> list[StoredResume]:
    """List the caller's resumes, most recently updated first."""
    return get_resume_store().list_for_owner(user_id)


@app.get("/resumes/{resume_id}", response_model=StoredResume)
async def get_resume(resume_id: str, user_id: CurrentUser) -> StoredResume:
    """Get one of the caller's resumes."""
    resume = get_resume_store().get(user_id, resume_id)
    if resume is None:
        raise HTTPException(status_code=404, detail="Resume not found")
    return resume


@app.post("/resumes/", response_model=StoredResume)
async def save_resume(
    save_request: SaveResumeRequest,
    response: Response,
    user_id: CurrentUser,
) -> StoredResume:
    """Create a resume (201), or update one when resumeId is given (200)."""
    try:
        resume, created = get_resume_store().save(user_id, save_request)
    except ResumeNotFoundError as e:
        raise HTTPException(status_code=404, detail="Resume not found") from e

    logger.info("Resume saved", user_id=user_id, resume_id=resume.id, created=created)
    response.status_code = 201 if created else 200
    return resume


@app.delete("/resumes/{resume_id}", response_model=DeleteResponse)
async def delete_resume(resume_id: str, user_id: CurrentUser) -> DeleteResponse:
    """Delete one of the caller's resumes."""
    if not get_resume_store().delete(user_id, resume_id):
        raise HTTPException(status_code=404, detail="Resume not found")
    logger.info("Resume deleted", user_id=user_id, resume_id=resume_id)
    return DeleteResponse(message="Resume deleted successfully")


@app.post("/resumes/{resume_id}/enhance", response_model=EnhanceResponse)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def enhance_saved_resume(
    request: Request,
    resume_id: str,
    user_id: CurrentUser,
) -> EnhanceResponse:
    """Enhance a stored resume. The result is returned, not saved."""
    resume = get_resume_store().get(user_id, resume_id)
    if resume is None:
        raise HTTPException(status_code=404, detail="Resume not found")

    client = await get_openrouter_client()
    try:
        result = await enhance_stored_resume(resume.to_sections(), client)
    except OpenRouterError as e:
        logger.error("Enhancement failed upstream", error=str(e), resume_id=resume_id)
        _raise_upstream_error(e)
    except EmptyResumeError as e:
        raise HTTPException(status_code=502, detail=e.to_detail()) from e

    return _enhance_response(result)


# =============================================================================
# Entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "resume_builder_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
