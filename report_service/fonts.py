"""
Font registry for report templates.

Maps the small set of font keys the report editor offers to concrete CSS
font-family stacks. Unknown keys resolve to the default stack.
"""

from typing import Optional, Union

DEFAULT_FONT_KEY = "default"
DEFAULT_TITLE_FONT_SIZE = 22  # pt
DEFAULT_BODY_FONT_SIZE = 12  # pt

FONT_STACKS = {
    "default": "'Segoe UI', Tahoma, Geneva, Verdana, sans-serif",
    "roboto": "'Roboto', sans-serif",
    "opensans": "'Open Sans', sans-serif",
    "lato": "'Lato', sans-serif",
    "montserrat": "'Montserrat', sans-serif",
    "playfair": "'Playfair Display', serif",
    "merriweather": "'Merriweather', serif",
    "times": "'Times New Roman', Times, serif",
    "georgia": "'Georgia', serif",
    "arial": "'Arial', Helvetica, sans-serif",
    "courier": "'Courier New', Courier, monospace",
}

# Families served from Google Fonts, with the weights the template uses
WEB_FONTS = [
    ("Roboto", "400;700"),
    ("Open Sans", "400;700"),
    ("Lato", "400;700"),
    ("Montserrat", "400;700;800"),
    ("Playfair Display", "400;700"),
    ("Merriweather", "400;700"),
]


def resolve_font(key: Optional[str]) -> str:
    """
    Resolve a font key to its CSS font-family stack.

    Args:
        key: Font key such as "roboto" or "times" (case-insensitive)

    Returns:
        CSS font-family value; the default stack for empty or unknown keys
    """
    if not key:
        return FONT_STACKS[DEFAULT_FONT_KEY]
    return FONT_STACKS.get(key.strip().lower(), FONT_STACKS[DEFAULT_FONT_KEY])


def resolve_font_size(value: Optional[Union[int, float]], default: Union[int, float]) -> Union[int, float]:
    """
    Return the requested size in points, or the default when unset or zero.

    Whole-number sizes come back as int so they render as ``14pt``, not ``14.0pt``.
    """
    size = value or default
    if isinstance(size, float) and size.is_integer():
        return int(size)
    return size


def google_fonts_url() -> str:
    """
    Build the Google Fonts stylesheet URL (API v2 format) for WEB_FONTS.

    Format: family=Font+Name:wght@400;700&family=Other+Font:wght@400;700
    """
    font_params = "&".join(
        f"family={font.replace(' ', '+')}:wght@{weights}"
        for font, weights in WEB_FONTS
    )
    return f"https://fonts.googleapis.com/css2?{font_params}&display=swap"
