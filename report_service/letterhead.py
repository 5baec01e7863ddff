"""
Letterhead compositor.

Places every rendered report page onto the first page of a letterhead PDF.
The letterhead is drawn full-bleed as the background and the report page is
scaled into the letterhead's safe area, the region left free of logo,
header and footer artwork.

The letterhead is cosmetic: when it is not configured, missing or broken the
rendered PDF is returned unchanged as a LetterheadSkipped result.
"""

import io
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from pypdf import PageObject, PdfReader, PdfWriter, Transformation

from .errors import LetterheadError

logger = logging.getLogger(__name__)

# Safe area paddings as fractions of the letterhead page size
TOP_PADDING_RATIO = 0.0717
BOTTOM_PADDING_RATIO = 0.1040
LEFT_PADDING_RATIO = 0.1042
RIGHT_PADDING_RATIO = 0.1042


@dataclass(frozen=True)
class SafeArea:
    """
    Rectangle inside the letterhead page where content may be drawn.

    Coordinates are PDF points with the origin at the bottom-left corner,
    so ``x`` is the left padding and ``y`` the bottom padding.
    """

    x: float
    y: float
    width: float
    height: float
    page_width: float
    page_height: float

    @property
    def left_padding(self) -> float:
        return self.x

    @property
    def bottom_padding(self) -> float:
        return self.y

    @property
    def right_padding(self) -> float:
        return self.page_width - self.x - self.width

    @property
    def top_padding(self) -> float:
        return self.page_height - self.y - self.height


def compute_safe_area(page_width: float, page_height: float) -> SafeArea:
    """
    Derive the safe area from the letterhead page size.

    Example:
        >>> area = compute_safe_area(595, 842)
        >>> round(area.width, 1), round(area.height, 1)
        (471.0, 694.0)
    """
    top = page_height * TOP_PADDING_RATIO
    bottom = page_height * BOTTOM_PADDING_RATIO
    left = page_width * LEFT_PADDING_RATIO
    right = page_width * RIGHT_PADDING_RATIO
    return SafeArea(
        x=left,
        y=bottom,
        width=page_width - left - right,
        height=page_height - top - bottom,
        page_width=page_width,
        page_height=page_height,
    )


@dataclass(frozen=True)
class LetterheadApplied:
    """Every report page was composited onto the letterhead."""

    pdf: bytes
    page_count: int
    safe_area: SafeArea

    applied = True


@dataclass(frozen=True)
class LetterheadSkipped:
    """The letterhead was not applied; ``pdf`` is the unmodified report."""

    pdf: bytes
    reason: str

    applied = False


LetterheadResult = Union[LetterheadApplied, LetterheadSkipped]


class LetterheadCache:
    """
    Process-wide cache of letterhead file contents.

    Entries are keyed by resolved path and invalidated when the file's
    modification time or size changes. Reads happen under a lock and a file
    that changed while being read is not cached.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Tuple[int, int], bytes]] = {}

    @staticmethod
    def _stamp(path: Path) -> Tuple[int, int]:
        stat = path.stat()
        return stat.st_mtime_ns, stat.st_size

    def read(self, path: Path) -> bytes:
        key = str(path)
        with self._lock:
            stamp = self._stamp(path)
            cached = self._entries.get(key)
            if cached is not None and cached[0] == stamp:
                return cached[1]

            data = path.read_bytes()
            if self._stamp(path) == stamp:
                self._entries[key] = (stamp, data)
            else:
                logger.warning(f"Letterhead changed while reading, not caching: {path}")
                self._entries.pop(key, None)
            return data

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


_letterhead_cache = LetterheadCache()


def get_letterhead_cache() -> LetterheadCache:
    return _letterhead_cache


def _page_size(page: PageObject) -> Tuple[float, float]:
    box = page.mediabox
    return float(box.width), float(box.height)


def _content_transformation(
    page: PageObject, area: SafeArea, preserve_aspect: bool
) -> Transformation:
    box = page.mediabox
    width, height = _page_size(page)
    if width <= 0 or height <= 0:
        raise LetterheadError(f"Report page has invalid size {width}x{height}")

    scale_x = area.width / width
    scale_y = area.height / height
    offset_x, offset_y = area.x, area.y
    if preserve_aspect:
        scale_x = scale_y = min(scale_x, scale_y)
        # Centre horizontally, keep content at the top of the safe area
        offset_x += (area.width - width * scale_x) / 2
        offset_y += area.height - height * scale_y

    return (
        Transformation()
        .translate(-float(box.left), -float(box.bottom))
        .scale(scale_x, scale_y)
        .translate(offset_x, offset_y)
    )


def composite_pages(
    report_pdf: bytes, letterhead_pdf: bytes, preserve_aspect: bool = False
) -> LetterheadApplied:
    """
    Draw every report page over the letterhead's first page.

    Output page count and order equal the report's. Every output page has
    the letterhead's size.

    Args:
        report_pdf: Rendered report PDF bytes
        letterhead_pdf: Letterhead PDF bytes
        preserve_aspect: Scale uniformly instead of stretching to fill

    Raises:
        LetterheadError: If either PDF cannot be read or composed
    """
    try:
        letterhead_reader = PdfReader(io.BytesIO(letterhead_pdf))
        if len(letterhead_reader.pages) == 0:
            raise LetterheadError("Letterhead PDF has no pages")
        letterhead_page = letterhead_reader.pages[0]
        page_width, page_height = _page_size(letterhead_page)
        if page_width <= 0 or page_height <= 0:
            raise LetterheadError(f"Letterhead has invalid size {page_width}x{page_height}")

        area = compute_safe_area(page_width, page_height)
        background = Transformation().translate(
            -float(letterhead_page.mediabox.left), -float(letterhead_page.mediabox.bottom)
        )

        report_reader = PdfReader(io.BytesIO(report_pdf))
        writer = PdfWriter()
        for page in report_reader.pages:
            output_page = writer.add_blank_page(width=page_width, height=page_height)
            output_page.merge_transformed_page(letterhead_page, background)
            output_page.merge_transformed_page(
                page, _content_transformation(page, area, preserve_aspect)
            )

        output = io.BytesIO()
        writer.write(output)
    except LetterheadError:
        raise
    except Exception as e:
        raise LetterheadError(f"Could not composite letterhead: {e}") from e

    return LetterheadApplied(
        pdf=output.getvalue(),
        page_count=len(report_reader.pages),
        safe_area=area,
    )


def apply_letterhead(
    raster_pdf: bytes,
    template_path: Optional[Union[str, Path]],
    *,
    preserve_aspect: bool = False,
    cache: Optional[LetterheadCache] = None,
) -> LetterheadResult:
    """
    Composite the rendered report onto the configured letterhead.

    Never raises: an absent, missing or unreadable letterhead yields a
    LetterheadSkipped result carrying the unmodified report.

    Args:
        raster_pdf: PDF produced by the rasterizer
        template_path: Letterhead PDF path, or None when not configured
        preserve_aspect: Scale uniformly instead of stretching to fill
        cache: Letterhead bytes cache (process-wide cache by default)

    Returns:
        LetterheadApplied or LetterheadSkipped
    """
    if not template_path:
        return LetterheadSkipped(pdf=raster_pdf, reason="not configured")

    path = Path(template_path).expanduser().resolve()
    if not path.is_file():
        logger.info(f"Letterhead not found at {path}, returning plain PDF")
        return LetterheadSkipped(pdf=raster_pdf, reason=f"not found: {path}")

    if cache is None:
        cache = get_letterhead_cache()
    try:
        try:
            letterhead_pdf = cache.read(path)
        except OSError as e:
            raise LetterheadError(f"Could not read letterhead {path}: {e}") from e
        result = composite_pages(raster_pdf, letterhead_pdf, preserve_aspect=preserve_aspect)
    except LetterheadError as e:
        logger.warning(f"Letterhead could not be applied: {e.message}")
        return LetterheadSkipped(pdf=raster_pdf, reason=e.message)

    logger.info(
        f"Letterhead applied to {result.page_count} page(s) "
        f"(safe area {result.safe_area.width:.1f}x{result.safe_area.height:.1f}pt)"
    )
    return result
