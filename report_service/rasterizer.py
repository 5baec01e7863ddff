"""
Rasterizer adapter - renders print documents to PDF.

The browser engine is treated as an opaque "HTML in, paginated PDF out"
capability behind the RenderEngine interface. The default implementation
drives Chromium through Playwright, one browser per request, bounded by a
semaphore and a render timeout.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Optional, Tuple

from .config import ReportSettings, get_settings
from .errors import RenderEngineError

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF-"
CHROMIUM_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
ZERO_MARGINS = {"top": "0px", "right": "0px", "bottom": "0px", "left": "0px"}
VALIDATION_HTML = "<html><body><h1>Test</h1></body></html>"


class RenderEngine(ABC):
    """
    Interface for HTML to PDF rendering engines.

    Implementations must return complete PDF bytes or raise
    RenderEngineError, never a partial document.
    """

    max_sessions = 1

    @abstractmethod
    async def render_html_to_pdf(self, html: str) -> bytes:
        """
        Render a complete HTML document to an A4 PDF with zero margins.

        Raises:
            RenderEngineError: If the engine fails, crashes or times out
        """

    @property
    def is_saturated(self) -> bool:
        """True when a new render would have to wait for a free session."""
        return False

    @property
    def active_sessions(self) -> int:
        return 0


class PlaywrightEngine(RenderEngine):
    """
    Chromium via Playwright.

    Each render launches its own browser inside ``browser_session`` which
    closes it on every exit path. At most ``max_sessions`` browsers run at
    once; further renders queue on the semaphore.
    """

    def __init__(
        self,
        max_sessions: int = 5,
        timeout_ms: int = 30000,
        render_timeout_seconds: float = 60.0,
        headless: bool = True,
    ):
        self.max_sessions = max_sessions
        self.timeout_ms = timeout_ms
        self.render_timeout_seconds = render_timeout_seconds
        self.headless = headless
        self._semaphore = asyncio.Semaphore(max_sessions)
        self._active = 0

    @classmethod
    def from_settings(cls, settings: ReportSettings) -> "PlaywrightEngine":
        return cls(
            max_sessions=settings.max_concurrent_pdfs,
            timeout_ms=settings.playwright_timeout,
            render_timeout_seconds=settings.render_timeout_seconds,
            headless=settings.playwright_headless,
        )

    @property
    def active_sessions(self) -> int:
        return self._active

    @property
    def is_saturated(self) -> bool:
        return self._active >= self.max_sessions

    @asynccontextmanager
    async def browser_session(self) -> AsyncIterator:
        """
        Acquire a session slot and a launched Chromium browser.

        The browser is closed and the slot released even when the body
        raises or is cancelled by the render timeout.
        """
        # Import here to avoid loading Playwright on startup
        from playwright.async_api import async_playwright

        async with self._semaphore:
            self._active += 1
            try:
                async with async_playwright() as p:
                    browser = await p.chromium.launch(headless=self.headless, args=CHROMIUM_ARGS)
                    try:
                        yield browser
                    finally:
                        await browser.close()
            finally:
                self._active -= 1

    async def _render(self, html: str) -> bytes:
        async with self.browser_session() as browser:
            page = await browser.new_page()
            # Set page timeout before loading content
            page.set_default_timeout(self.timeout_ms)

            await page.set_content(html, wait_until="networkidle")
            await page.wait_for_load_state("networkidle")

            return await page.pdf(
                format="A4",
                print_background=True,
                prefer_css_page_size=True,
                margin=ZERO_MARGINS,
            )

    async def render_html_to_pdf(self, html: str) -> bytes:
        try:
            pdf_bytes = await asyncio.wait_for(self._render(html), timeout=self.render_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(f"PDF rendering timed out after {self.render_timeout_seconds}s")
            raise RenderEngineError(f"Rendering timed out after {self.render_timeout_seconds}s") from e
        except Exception as e:
            logger.error(f"PDF rendering failed: {str(e)}")
            raise RenderEngineError(f"Rendering failed: {str(e)}") from e

        if not pdf_bytes or not bytes(pdf_bytes).startswith(PDF_SIGNATURE):
            logger.error("PDF rendering returned no PDF data")
            raise RenderEngineError("Rendering engine returned an empty or invalid PDF")

        return bytes(pdf_bytes)


@lru_cache()
def get_engine() -> PlaywrightEngine:
    """Process-wide engine shared by all requests of the service."""
    return PlaywrightEngine.from_settings(get_settings())


async def rasterize(document: str, engine: Optional[RenderEngine] = None) -> bytes:
    """
    Render a print document to PDF bytes.

    Args:
        document: Complete HTML document from the template renderer
        engine: Rendering engine; the process-wide Playwright engine by default

    Returns:
        Multi-page A4 PDF bytes

    Raises:
        RenderEngineError: If rendering fails
    """
    engine = engine or get_engine()
    pdf_bytes = await engine.render_html_to_pdf(document)
    logger.info(f"Rasterized document to {len(pdf_bytes)} byte PDF")
    return pdf_bytes


async def validate_engine(engine: Optional[RenderEngine] = None) -> Tuple[bool, Optional[str]]:
    """
    Render a tiny test document to check the engine works.

    Returns:
        (ready, error message or None)
    """
    engine = engine or get_engine()
    try:
        test_pdf = await engine.render_html_to_pdf(VALIDATION_HTML)
    except RenderEngineError as e:
        return False, e.message
    logger.info(f"✅ Playwright validation successful - generated {len(test_pdf)} byte test PDF")
    return True, None
