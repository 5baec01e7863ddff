"""
Content sanitizer for report input.

Plain text is escaped and split into paragraphs. HTML is filtered through an
allow-list policy with bleach: disallowed tags are stripped (their text is
kept), disallowed attributes, URL schemes and CSS properties are dropped, and
a handful of tags (scripts, styles, frames) are removed together with their
content so it never ends up as visible text in the report.
"""

import html
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, FrozenSet, Tuple, Union

from bleach.sanitizer import Cleaner
from bleach.css_sanitizer import CSSSanitizer

from .errors import SanitizationError
from .models import ContentType

logger = logging.getLogger(__name__)

NBSP_PARAGRAPH = "<p>&nbsp;</p>"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class SanitizerPolicy:
    """Declarative allow-list interpreted by :func:`sanitize_html`."""

    tags: FrozenSet[str]
    attributes: Tuple[Tuple[str, Tuple[str, ...]], ...]
    protocols: FrozenSet[str]
    css_properties: FrozenSet[str]
    discard_content_tags: FrozenSet[str]

    @property
    def attribute_map(self) -> Dict[str, list]:
        """Attributes in the {tag: [attr, ...]} shape bleach expects."""
        return {tag: list(attrs) for tag, attrs in self.attributes}


DEFAULT_POLICY = SanitizerPolicy(
    tags=frozenset([
        "h1", "h2", "h3", "h4", "h5", "h6",
        "p", "blockquote", "code", "pre", "span", "div",
        "ul", "ol", "li",
        "table", "thead", "tbody", "tr", "th", "td",
        "strong", "em", "b", "i", "u",
        "a", "img", "br", "hr",
    ]),
    attributes=(
        ("*", ("class", "style")),
        ("a", ("href", "name", "target", "rel")),
        ("img", ("src", "alt", "width", "height")),
    ),
    protocols=frozenset(["http", "https", "data", "mailto"]),
    css_properties=frozenset([
        "color", "background-color", "text-align",
        "font-size", "font-weight", "font-style", "text-decoration",
        "padding", "margin", "border", "border-collapse",
        "width", "height",
    ]),
    discard_content_tags=frozenset([
        "script", "style", "iframe", "object", "embed",
        "noscript", "template", "textarea", "title", "head",
    ]),
)


@lru_cache(maxsize=8)
def _build_cleaner(policy: SanitizerPolicy) -> Cleaner:
    return Cleaner(
        tags=policy.tags,
        attributes=policy.attribute_map,
        protocols=policy.protocols,
        strip=True,
        strip_comments=True,
        css_sanitizer=CSSSanitizer(allowed_css_properties=policy.css_properties),
    )


@lru_cache(maxsize=8)
def _discard_pattern(tags: FrozenSet[str]) -> re.Pattern:
    names = "|".join(sorted(re.escape(tag) for tag in tags))
    return re.compile(
        rf"<({names})\b[^>]*>.*?</\1\s*>",
        re.IGNORECASE | re.DOTALL,
    )


def plain_text_to_html(text: str) -> str:
    """
    Convert plain text to paragraph markup.

    Every line becomes one ``<p>`` block with HTML metacharacters escaped.
    Blank lines become a non-breaking-space paragraph so they stay visible.

    Example:
        >>> plain_text_to_html("Line1\\n\\nLine3")
        '<p>Line1</p><p>&nbsp;</p><p>Line3</p>'
    """
    paragraphs = []
    for line in _LINE_BREAK.split(text):
        escaped = html.escape(line, quote=True)
        paragraphs.append(f"<p>{escaped}</p>" if escaped else NBSP_PARAGRAPH)
    return "".join(paragraphs)


def sanitize_html(markup: str, policy: SanitizerPolicy = DEFAULT_POLICY) -> str:
    """
    Filter HTML through an allow-list policy.

    Sanitizing already sanitized markup returns it unchanged.

    Args:
        markup: Untrusted HTML fragment
        policy: Allow-list to apply (defaults to the report policy)

    Returns:
        HTML fragment containing only allowed tags, attributes and styles

    Raises:
        SanitizationError: If the HTML parser fails on the input
    """
    try:
        if policy.discard_content_tags:
            markup = _discard_pattern(policy.discard_content_tags).sub("", markup)
        return _build_cleaner(policy).clean(markup)
    except Exception as e:
        logger.error(f"HTML sanitization failed: {e}", exc_info=True)
        raise SanitizationError(f"Could not sanitize HTML content: {e}") from e


def sanitize(content: str, content_type: Union[ContentType, str]) -> str:
    """
    Sanitize report content according to its content type.

    Args:
        content: Raw user content
        content_type: "plain" or "html"

    Returns:
        Safe HTML fragment for the report template
    """
    if ContentType(content_type) is ContentType.PLAIN:
        return plain_text_to_html(content)
    return sanitize_html(content)
