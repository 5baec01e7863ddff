"""
Pydantic models for the report service.

These models define the structure of report requests and API responses.
Field names follow the JSON contract of the report editor (camelCase).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    """How the report content should be interpreted."""

    PLAIN = "plain"
    HTML = "html"


class StyleOptions(BaseModel):
    """Typography options; unset values fall back to the template defaults."""

    titleFontSize: Optional[float] = Field(None, description="Title font size in points (default 22)")
    bodyFontSize: Optional[float] = Field(None, description="Body font size in points (default 12)")
    titleFont: Optional[str] = Field(None, description="Font key for the title (default 'default')")
    bodyFont: Optional[str] = Field(None, description="Font key for the body text (default 'default')")


class ReportRequest(BaseModel):
    """Report generation request."""

    title: Optional[str] = Field(None, description="Optional document title")
    content: str = Field(..., description="Report content, plain text or HTML")
    contentType: ContentType = Field(..., description="'plain' or 'html'")
    styles: Optional[StyleOptions] = Field(None, description="Typography options")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    timestamp: datetime
    active_renders: int
    max_concurrent: int
    playwright_ready: bool = True
    playwright_error: Optional[str] = None
    letterhead_configured: bool = False
    letterhead_present: bool = False


class ErrorResponse(BaseModel):
    """Structured error payload returned instead of a PDF."""
    success: bool = False
    message: str
    category: str
    error: Optional[str] = None
