"""
Shared fixtures for the report service tests.

PDFs are built in memory so no browser is needed: blank pages with pypdf,
and small hand-assembled documents whose pages carry a recognisable drawing
so page order can be checked after compositing.
"""

import io
import os

# Keep a developer's .env letterhead out of the tests
os.environ["LETTERHEAD_PATH"] = ""

import pytest
from pypdf import PdfWriter

from report_service.rasterizer import RenderEngine

A4_SIZE = (595, 842)
LETTERHEAD_SIZE = (600, 900)
LETTERHEAD_MARKER = 77


def build_pdf(*sizes):
    """Return PDF bytes with one blank page per (width, height) in sizes."""
    writer = PdfWriter()
    for width, height in sizes:
        writer.add_blank_page(width=width, height=height)
    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def build_marked_pdf(markers, size=A4_SIZE):
    """
    Return PDF bytes with one page per marker.

    Page i fills a square of side markers[i] points, so its content stream
    contains ``0 0 <side> <side> re``.
    """
    width, height = size
    count = len(markers)
    kids = " ".join(f"{3 + 2 * i} 0 R" for i in range(count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {count} >>".encode(),
    ]
    for i, side in enumerate(markers):
        content = f"0 0 {side} {side} re f".encode()
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width} {height}] "
            f"/Resources << >> /Contents {4 + 2 * i} 0 R >>".encode()
        )
        objects.append(
            f"<< /Length {len(content)} >>\nstream\n".encode() + content + b"\nendstream"
        )

    output = io.BytesIO()
    output.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(output.tell())
        output.write(f"{number} 0 obj\n".encode() + body + b"\nendobj\n")
    xref_offset = output.tell()
    output.write(f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode())
    for offset in offsets:
        output.write(f"{offset:010d} 00000 n \n".encode())
    output.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n".encode()
    )
    return output.getvalue()


class FakeEngine(RenderEngine):
    """Render engine double that records documents and returns canned PDF bytes."""

    def __init__(self, pdf=None, error=None, saturated=False):
        self.pdf = pdf if pdf is not None else build_pdf(A4_SIZE)
        self.error = error
        self.saturated = saturated
        self.documents = []

    async def render_html_to_pdf(self, html):
        self.documents.append(html)
        if self.error is not None:
            raise self.error
        return self.pdf

    @property
    def is_saturated(self):
        return self.saturated


@pytest.fixture
def make_pdf():
    """Factory fixture: make_pdf((w, h), (w, h), ...) -> PDF bytes."""
    return build_pdf


@pytest.fixture
def make_marked_pdf():
    """Factory fixture: make_marked_pdf([11, 22, 33]) -> PDF bytes."""
    return build_marked_pdf


@pytest.fixture
def raster_pdf():
    """Three blank A4 pages, as the rasterizer would produce them."""
    return build_pdf(A4_SIZE, A4_SIZE, A4_SIZE)


@pytest.fixture
def letterhead_file(tmp_path):
    """A single-page 600x900 letterhead PDF on disk, drawing a 77pt square."""
    path = tmp_path / "letterhead.pdf"
    path.write_bytes(build_marked_pdf([LETTERHEAD_MARKER], size=LETTERHEAD_SIZE))
    return path


@pytest.fixture
def fake_engine():
    """Render engine double returning a one-page A4 PDF."""
    return FakeEngine()


@pytest.fixture
def fake_engine_factory():
    """Factory for render engine doubles with custom output or errors."""
    return FakeEngine


@pytest.fixture(autouse=True)
def clear_letterhead_cache():
    """Isolate the process-wide letterhead cache between tests."""
    from report_service.letterhead import get_letterhead_cache
    get_letterhead_cache().clear()
    yield
    get_letterhead_cache().clear()
