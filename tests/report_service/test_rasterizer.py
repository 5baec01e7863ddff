"""
Unit tests for the Playwright rasterizer adapter.

Playwright is mocked; these tests check the engine contract: PDF options,
guaranteed browser release, timeouts and the session bound.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from report_service.config import ReportSettings
from report_service.errors import RenderEngineError
from report_service.rasterizer import (
    CHROMIUM_ARGS,
    PlaywrightEngine,
    rasterize,
    validate_engine,
)

FAKE_PDF = b"%PDF-1.4 fake pdf content"


def mock_browser_with_page(mock_page):
    mock_browser = AsyncMock()
    mock_browser.new_page = AsyncMock(return_value=mock_page)
    return mock_browser


def mock_page(pdf_result=FAKE_PDF, **overrides):
    page = AsyncMock()
    page.set_default_timeout = MagicMock()
    page.pdf = AsyncMock(return_value=pdf_result)
    for name, value in overrides.items():
        setattr(page, name, value)
    return page


def install_playwright(mock_playwright, mock_browser=None, launch_error=None):
    launch = AsyncMock(return_value=mock_browser, side_effect=launch_error)
    mock_playwright.return_value.__aenter__ = AsyncMock(
        return_value=MagicMock(chromium=MagicMock(launch=launch))
    )
    return launch


class TestPlaywrightEngine:
    """Tests for PlaywrightEngine.render_html_to_pdf."""

    @patch("playwright.async_api.async_playwright")
    def test_render_success(self, mock_playwright):
        """Test that the document is printed as A4 with zero margins."""
        page = mock_page()
        browser = mock_browser_with_page(page)
        launch = install_playwright(mock_playwright, browser)
        engine = PlaywrightEngine(timeout_ms=1234)

        pdf = asyncio.run(engine.render_html_to_pdf("<html><body>x</body></html>"))

        assert pdf == FAKE_PDF
        launch.assert_awaited_once_with(headless=True, args=CHROMIUM_ARGS)
        page.set_default_timeout.assert_called_once_with(1234)
        page.set_content.assert_awaited_once_with("<html><body>x</body></html>", wait_until="networkidle")
        page.pdf.assert_awaited_once_with(
            format="A4",
            print_background=True,
            prefer_css_page_size=True,
            margin={"top": "0px", "right": "0px", "bottom": "0px", "left": "0px"},
        )
        browser.close.assert_awaited_once()
        assert engine.active_sessions == 0

    @patch("playwright.async_api.async_playwright")
    def test_crash_releases_browser(self, mock_playwright):
        """Test that the browser is closed when printing fails."""
        page = mock_page(pdf=AsyncMock(side_effect=RuntimeError("Target crashed")))
        browser = mock_browser_with_page(page)
        install_playwright(mock_playwright, browser)
        engine = PlaywrightEngine()

        with pytest.raises(RenderEngineError, match="Target crashed"):
            asyncio.run(engine.render_html_to_pdf("<p>x</p>"))

        browser.close.assert_awaited_once()
        assert engine.active_sessions == 0

    @patch("playwright.async_api.async_playwright")
    def test_launch_failure(self, mock_playwright):
        """Test that a browser that cannot start raises RenderEngineError."""
        install_playwright(mock_playwright, launch_error=RuntimeError("Executable doesn't exist"))
        engine = PlaywrightEngine()

        with pytest.raises(RenderEngineError) as exc_info:
            asyncio.run(engine.render_html_to_pdf("<p>x</p>"))

        assert exc_info.value.category == "server"
        assert engine.active_sessions == 0

    @patch("playwright.async_api.async_playwright")
    def test_timeout_releases_browser(self, mock_playwright):
        """Test that a hanging render times out and still closes the browser."""
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        page = mock_page(set_content=AsyncMock(side_effect=hang))
        browser = mock_browser_with_page(page)
        install_playwright(mock_playwright, browser)
        engine = PlaywrightEngine(render_timeout_seconds=0.05)

        with pytest.raises(RenderEngineError, match="timed out"):
            asyncio.run(engine.render_html_to_pdf("<p>x</p>"))

        browser.close.assert_awaited_once()
        page.pdf.assert_not_awaited()
        assert engine.active_sessions == 0

    @pytest.mark.parametrize("result", [b"", b"<html>not a pdf</html>"])
    @patch("playwright.async_api.async_playwright")
    def test_empty_or_invalid_output(self, mock_playwright, result):
        """Test that an empty or non-PDF result is never returned as success."""
        browser = mock_browser_with_page(mock_page(pdf_result=result))
        install_playwright(mock_playwright, browser)

        with pytest.raises(RenderEngineError, match="empty or invalid"):
            asyncio.run(PlaywrightEngine().render_html_to_pdf("<p>x</p>"))

    @patch("playwright.async_api.async_playwright")
    def test_concurrency_bounded(self, mock_playwright):
        """Test that no more than max_sessions browsers run at once."""
        state = {"running": 0, "peak": 0}

        async def slow_pdf(**kwargs):
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
            await asyncio.sleep(0.01)
            state["running"] -= 1
            return FAKE_PDF

        browser = mock_browser_with_page(mock_page(pdf=AsyncMock(side_effect=slow_pdf)))
        install_playwright(mock_playwright, browser)
        engine = PlaywrightEngine(max_sessions=2)

        async def render_many():
            return await asyncio.gather(*(engine.render_html_to_pdf("<p>x</p>") for _ in range(6)))

        results = asyncio.run(render_many())

        assert results == [FAKE_PDF] * 6
        assert state["peak"] == 2
        assert browser.close.await_count == 6

    def test_is_saturated(self):
        """Test saturation reporting."""
        engine = PlaywrightEngine(max_sessions=1)
        assert engine.is_saturated is False
        engine._active = 1
        assert engine.is_saturated is True

    def test_from_settings(self):
        """Test that engine limits come from settings."""
        settings = ReportSettings(
            max_concurrent_pdfs=7,
            playwright_timeout=5000,
            render_timeout_seconds=12,
            playwright_headless=False,
        )
        engine = PlaywrightEngine.from_settings(settings)
        assert engine.max_sessions == 7
        assert engine.timeout_ms == 5000
        assert engine.render_timeout_seconds == 12
        assert engine.headless is False


class TestRasterize:
    """Tests for the module-level helpers."""

    def test_rasterize_delegates_to_engine(self, fake_engine):
        """Test that rasterize hands the document to the engine."""
        pdf = asyncio.run(rasterize("<html>doc</html>", engine=fake_engine))
        assert pdf == fake_engine.pdf
        assert fake_engine.documents == ["<html>doc</html>"]

    def test_validate_engine_ready(self, fake_engine):
        """Test that a working engine validates."""
        assert asyncio.run(validate_engine(fake_engine)) == (True, None)

    def test_validate_engine_failure(self, fake_engine_factory):
        """Test that a broken engine reports its error."""
        engine = fake_engine_factory(error=RenderEngineError("Rendering failed: no chromium"))
        ready, error = asyncio.run(validate_engine(engine))
        assert ready is False
        assert "no chromium" in error
