"""
Report Service - Text/HTML to letterhead PDF generation.

This service sanitizes user-supplied report content, lays it out in an A4
print template, renders it to PDF using Playwright/Chromium and composites
every page onto an optional corporate letterhead.
"""

__version__ = "0.1.0"
