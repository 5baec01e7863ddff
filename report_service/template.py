"""
Print template for reports.

Builds the complete HTML document that the browser engine renders to PDF:
A4 page box with zero engine margin, typography from the font registry,
break-avoidance rules and a manual page-break marker
(``<div class="page-break"></div>``).
"""

import html
from typing import Optional

from .fonts import (
    DEFAULT_BODY_FONT_SIZE,
    DEFAULT_TITLE_FONT_SIZE,
    google_fonts_url,
    resolve_font,
    resolve_font_size,
)
from .models import StyleOptions

FALLBACK_DOCUMENT_TITLE = "Report"


def render_report_html(
    title: Optional[str],
    content_html: str,
    styles: Optional[StyleOptions] = None,
    language: str = "tr",
) -> str:
    """
    Build complete HTML document for PDF generation with embedded styles.

    Page margins are zero here. When a letterhead is configured the margins
    come from its safe area; otherwise the content fills the sheet.

    Args:
        title: Optional title, shown as a heading block when not blank
        content_html: Sanitized content fragment
        styles: Font keys and sizes; defaults apply for unset values
        language: Value for the document lang attribute

    Returns:
        Complete HTML document string
    """
    styles = styles or StyleOptions()
    title_size = resolve_font_size(styles.titleFontSize, DEFAULT_TITLE_FONT_SIZE)
    body_size = resolve_font_size(styles.bodyFontSize, DEFAULT_BODY_FONT_SIZE)
    title_font = resolve_font(styles.titleFont)
    body_font = resolve_font(styles.bodyFont)

    title_text = (title or "").strip()
    head_title = html.escape(title_text or FALLBACK_DOCUMENT_TITLE)
    title_block = f'<div class="doc-title">{html.escape(title_text)}</div>' if title_text else ""

    return f"""<!DOCTYPE html>
<html lang="{html.escape(language)}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{head_title}</title>
  <link href="{google_fonts_url()}" rel="stylesheet">
  <style>
    @page {{ size: A4; margin: 0; }}
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{
      font-family: {body_font};
      font-size: {body_size}pt;
      line-height: 1.6;
      color: #1e293b;
      background: transparent;
      -webkit-print-color-adjust: exact;
      print-color-adjust: exact;
    }}
    .page {{
      position: relative;
      width: 210mm;
      min-height: 297mm;
      padding: 0;
      page-break-after: always;
      break-after: page;
    }}
    .page:last-child {{ page-break-after: auto; break-after: auto; }}
    .safe-area {{ width: 100%; margin: 0 auto; }}
    .doc-title {{
      font-family: {title_font};
      font-size: {title_size}pt;
      font-weight: 800;
      color: #0f172a;
      margin-bottom: 18px;
    }}
    .content {{
      text-align: justify;
      overflow-wrap: break-word;
      word-break: break-word;
    }}
    .content > * {{ page-break-inside: avoid; break-inside: avoid; }}
    h1, h2, h3, h4, h5, h6 {{
      page-break-after: avoid;
      break-after: avoid;
      font-family: {title_font};
    }}
    .content p {{ margin-bottom: 12px; }}
    .content h1 {{ font-size: 20pt; color: #1e40af; margin: 25px 0 15px 0; }}
    .content h2 {{ font-size: 16pt; color: #2563eb; margin: 20px 0 12px 0; }}
    .content h3 {{ font-size: 14pt; color: #3b82f6; margin: 18px 0 10px 0; }}
    .content h4, .content h5, .content h6 {{ font-size: 12pt; color: #1e40af; margin: 14px 0 8px 0; }}
    .content ul, .content ol {{ margin: 12px 0; padding-left: 25px; }}
    .content li {{ margin-bottom: 6px; }}
    .content table {{ width: 100%; border-collapse: collapse; margin: 15px 0; }}
    .content table th, .content table td {{ border: 1px solid #cbd5e1; padding: 10px 12px; text-align: left; }}
    .content table th {{ background-color: #f1f5f9; font-weight: 600; color: #1e40af; }}
    .content table tr:nth-child(even) {{ background-color: #f8fafc; }}
    .content blockquote {{ border-left: 4px solid #2563eb; padding-left: 15px; margin: 15px 0; color: #475569; font-style: italic; }}
    .content code {{ background-color: #f1f5f9; padding: 2px 6px; border-radius: 4px; font-family: 'Consolas', 'Monaco', monospace; font-size: 10pt; }}
    .content pre {{ background-color: #1e293b; color: #e2e8f0; padding: 15px; border-radius: 8px; overflow-x: auto; margin: 15px 0; white-space: pre-wrap; }}
    .content pre code {{ background: none; padding: 0; color: inherit; }}
    .content img {{ max-width: 100%; height: auto; margin: 15px 0; }}
    .content a {{ color: #2563eb; text-decoration: underline; }}
    .page-break {{ page-break-before: always; break-before: page; }}
    p, h1, h2, h3, table, blockquote, ul, ol, pre {{ page-break-inside: avoid; break-inside: avoid; }}
    tr, td, th, li {{ page-break-inside: avoid; break-inside: avoid; }}
    @media print {{ body {{ -webkit-print-color-adjust: exact; print-color-adjust: exact; }} }}
  </style>
</head>
<body>
  <div class="page">
    <div class="safe-area">
      <div class="content">
        {title_block}
        {content_html}
      </div>
    </div>
  </div>
</body>
</html>"""
