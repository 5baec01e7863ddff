"""
Report Service - FastAPI application for report PDF generation.

Provides the report generation endpoint and a health check. All document
work happens in report_service.pipeline; this module only validates,
applies back-pressure and maps error categories to HTTP status codes.
"""

import logging
import re
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse

from . import __version__
from .config import get_settings, validate_config_on_startup
from .errors import CLIENT_ERROR, SERVER_ERROR, ReportError, ReportValidationError
from .models import ErrorResponse, HealthResponse
from .pipeline import compose_report, validate_request
from .rasterizer import get_engine, validate_engine

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Report Service",
    version=__version__,
    description="Text/HTML report to letterhead PDF generation using Playwright/Chromium"
)

engine = get_engine()

# Playwright readiness state
_playwright_ready = False
_playwright_error: Optional[str] = None

DEFAULT_FILENAME = "report.pdf"


# ============================================================================
# Startup Event - Validate configuration and Playwright
# ============================================================================

@app.on_event("startup")
async def validate_playwright_on_startup():
    """
    Validate configuration and the Playwright/Chromium install on startup.

    This ensures the service won't report as healthy if Playwright can't
    actually generate PDFs.
    """
    global _playwright_ready, _playwright_error

    validate_config_on_startup()
    logger.info("Report Service starting - validating Playwright installation...")

    _playwright_ready, _playwright_error = await validate_engine(engine)
    if not _playwright_ready:
        logger.error(f"❌ Playwright validation failed: {_playwright_error}")
        logger.error("PDF generation will not work until this is resolved.")


# ============================================================================
# Helpers
# ============================================================================

def sanitize_for_filename(text: str) -> str:
    """
    Sanitize a report title for use as an ASCII download filename.

    Example:
        >>> sanitize_for_filename("Quarterly Report (Q3)")
        "Quarterly_Report__Q3_"
    """
    cleaned = re.sub(r"[^A-Za-z0-9\s-]", "_", text.strip())
    return re.sub(r"\s", "_", cleaned)


def build_content_disposition(title: Optional[str]) -> str:
    """Attachment header with an ASCII fallback and the UTF-8 title (RFC 5987)."""
    if not title or not title.strip():
        return f'attachment; filename="{DEFAULT_FILENAME}"'
    filename = f"{sanitize_for_filename(title)}.pdf"
    encoded = quote(f"{title.strip()}.pdf", safe="")
    return f"attachment; filename=\"{filename}\"; filename*=UTF-8''{encoded}"


def _error_response(status_code: int, message: str, category: str, error: Optional[str] = None) -> JSONResponse:
    payload = ErrorResponse(message=message, category=category, error=error)
    return JSONResponse(status_code=status_code, content=payload.model_dump())


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns service status, capacity information, Playwright readiness and
    letterhead status. Returns HTTP 503 if Playwright validation failed on
    startup.
    """
    letterhead = settings.letterhead_file
    letterhead_present = bool(letterhead and letterhead.is_file())

    if not _playwright_ready:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "active_renders": engine.active_sessions,
                "max_concurrent": engine.max_sessions,
                "playwright_ready": False,
                "playwright_error": _playwright_error,
                "message": "Report service is unhealthy - Playwright/Chromium not available"
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        active_renders=engine.active_sessions,
        max_concurrent=engine.max_sessions,
        playwright_ready=True,
        playwright_error=None,
        letterhead_configured=letterhead is not None,
        letterhead_present=letterhead_present,
    )


# ============================================================================
# PDF Generation Endpoint
# ============================================================================

@app.post("/api/pdf/generate")
async def generate_pdf(payload: Dict[str, Any] = Body(...)):
    """
    Generate a report PDF.

    Request body: ``{title?, content, contentType: "plain" | "html", styles?}``

    Returns:
        StreamingResponse with PDF binary data, or a JSON error payload
        (400 invalid request, 500 rendering failure, 503 overload)
    """
    try:
        report = validate_request(payload)
    except ReportValidationError as e:
        return _error_response(400, e.message, e.category)

    # Check capacity
    if engine.is_saturated:
        logger.warning("Report service overloaded, rejecting request")
        return _error_response(
            503,
            "Service overloaded. Too many concurrent PDF operations.",
            SERVER_ERROR,
        )

    try:
        logger.info(f"Starting report PDF generation (contentType={report.contentType.value})")
        composed = await compose_report(report, settings=settings, engine=engine)
    except ReportError as e:
        logger.error(f"Report generation failed: {e.message}")
        status_code = 400 if e.category == CLIENT_ERROR else 500
        return _error_response(
            status_code,
            "An error occurred while generating the PDF. Please try again later.",
            e.category,
            error=e.message,
        )
    except Exception as e:
        logger.error(f"Report generation failed unexpectedly: {str(e)}", exc_info=True)
        return _error_response(
            500,
            "An error occurred while generating the PDF. Please try again later.",
            SERVER_ERROR,
            error=str(e),
        )

    logger.info(f"Report PDF generation completed ({len(composed.pdf)} bytes)")

    return StreamingResponse(
        BytesIO(composed.pdf),
        media_type="application/pdf",
        headers={
            "Content-Disposition": build_content_disposition(report.title),
            "Content-Length": str(len(composed.pdf)),
            "X-Response-Time-ms": f"{composed.duration_ms:.1f}",
            "X-Letterhead": "applied" if composed.letterhead_applied else "skipped",
        }
    )
