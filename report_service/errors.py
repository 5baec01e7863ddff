"""
Error taxonomy for the report pipeline.

Every error carries a category so the HTTP layer can map it to a status
code without knowing which stage failed:

- ``client``: the request itself is invalid (reported as 400)
- ``server``: the pipeline could not produce a document (reported as 500)
"""

CLIENT_ERROR = "client"
SERVER_ERROR = "server"


class ReportError(Exception):
    """Base class for all report pipeline failures."""

    category = SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": type(self).__name__,
            "category": self.category,
            "message": self.message,
        }


class ReportValidationError(ReportError):
    """Missing/empty content or unsupported content type."""

    category = CLIENT_ERROR


class SanitizationError(ReportError):
    """The sanitizer could not process the input.

    The sanitizer strips rather than rejects, so this is not expected to
    occur for well-formed UTF-8 input.
    """


class RenderEngineError(ReportError):
    """The browser engine failed to start, crashed, timed out or produced no PDF."""


class LetterheadError(ReportError):
    """Loading or compositing the letterhead failed.

    Never surfaced to callers: the compositor falls back to the plain
    rendered PDF.
    """
