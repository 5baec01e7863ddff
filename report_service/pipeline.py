"""
Report generation pipeline.

validate -> sanitize -> template -> rasterize -> letterhead

Every invocation is self-contained; the only shared state is the engine's
session semaphore and the read-only letterhead cache.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .config import ReportSettings, get_settings
from .errors import RenderEngineError, ReportValidationError
from .letterhead import LetterheadResult, apply_letterhead
from .models import ReportRequest
from .rasterizer import PDF_SIGNATURE, PlaywrightEngine, RenderEngine, rasterize
from .sanitizer import sanitize
from .template import render_report_html

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComposedReport:
    """Final PDF plus how the letterhead stage went."""

    pdf: bytes
    letterhead: LetterheadResult
    duration_ms: float

    @property
    def letterhead_applied(self) -> bool:
        return self.letterhead.applied


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "request"
    if field == "content":
        return "Report content is required."
    if field == "contentType":
        return 'Content type must be "plain" or "html".'
    return f"Invalid value for {field}: {first.get('msg', 'invalid')}"


def validate_request(data: Union[ReportRequest, Mapping[str, Any]]) -> ReportRequest:
    """
    Validate a report request before any rendering work starts.

    Args:
        data: A ReportRequest or its JSON mapping

    Returns:
        The validated ReportRequest

    Raises:
        ReportValidationError: For missing/empty content or an unknown content type
    """
    if isinstance(data, ReportRequest):
        request = data
    else:
        try:
            request = ReportRequest.model_validate(data)
        except ValidationError as e:
            raise ReportValidationError(_describe_validation_error(e)) from e

    if not request.content:
        raise ReportValidationError("Report content is required.")
    return request


async def compose_report(
    request: Union[ReportRequest, Mapping[str, Any]],
    *,
    settings: Optional[ReportSettings] = None,
    engine: Optional[RenderEngine] = None,
) -> ComposedReport:
    """
    Run the full pipeline and report how the letterhead stage went.

    Raises:
        ReportValidationError: If the request is invalid
        RenderEngineError: If the browser engine fails
    """
    report = validate_request(request)
    settings = settings or get_settings()
    started = time.perf_counter()

    content_html = sanitize(report.content, report.contentType)
    document = render_report_html(
        report.title,
        content_html,
        report.styles,
        language=settings.document_language,
    )
    logger.debug(f"Rendered {report.contentType.value} report template ({len(document)} chars)")

    raster_pdf = await rasterize(document, engine=engine)

    # pypdf work is CPU bound; keep it off the event loop
    letterhead = await asyncio.to_thread(
        apply_letterhead,
        raster_pdf,
        settings.letterhead_file,
        preserve_aspect=settings.letterhead_preserve_aspect,
    )
    if not letterhead.applied:
        logger.info(f"Letterhead skipped: {letterhead.reason}")

    if not letterhead.pdf.startswith(PDF_SIGNATURE):
        raise RenderEngineError("Pipeline produced an invalid PDF")

    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(f"Report generated: {len(letterhead.pdf)} bytes in {duration_ms:.1f}ms")
    return ComposedReport(pdf=letterhead.pdf, letterhead=letterhead, duration_ms=duration_ms)


async def generate_report(
    request: Union[ReportRequest, Mapping[str, Any]],
    *,
    settings: Optional[ReportSettings] = None,
    engine: Optional[RenderEngine] = None,
) -> bytes:
    """
    Generate the final report PDF.

    Args:
        request: Report request (model or JSON mapping)
        settings: Service settings; the cached environment settings by default
        engine: Rendering engine; the process-wide Playwright engine by default

    Returns:
        PDF bytes

    Raises:
        ReportValidationError: If the request is invalid
        RenderEngineError: If the browser engine fails
    """
    composed = await compose_report(request, settings=settings, engine=engine)
    return composed.pdf


def generate_report_sync(
    request: Union[ReportRequest, Mapping[str, Any]],
    *,
    settings: Optional[ReportSettings] = None,
    engine: Optional[RenderEngine] = None,
) -> bytes:
    """
    Blocking variant of generate_report for callers without an event loop.

    Uses a fresh engine unless one is given, since the process-wide engine's
    semaphore belongs to the service's event loop.
    """
    settings = settings or get_settings()
    engine = engine or PlaywrightEngine.from_settings(settings)
    return asyncio.run(generate_report(request, settings=settings, engine=engine))
