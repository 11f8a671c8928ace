"""Error taxonomy for the page summary pipeline."""

from __future__ import annotations

from typing import Any, Optional


class SummaryError(Exception):
    """Request-level failure. Carries the HTTP status the route reports."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InsufficientContent(SummaryError):
    """Reconstructed page text is missing or too short to summarize."""

    status_code = 400


class NoVectorsFound(SummaryError):
    """No stored chunks for the requested URL."""

    status_code = 404


class GenerationFailure(SummaryError):
    """The selected strategy produced no summary."""

    status_code = 500


class ParseFailure(GenerationFailure):
    """Model output was not valid JSON."""


class PartialUnitFailure(Exception):
    """
    A single block or chunk call failed.

    Recovered where it happens (placeholder section or omitted chunk summary);
    never propagated to the caller.
    """

    def __init__(self, unit: str, cause: BaseException):
        super().__init__(f"{unit}: {cause}")
        self.unit = unit
        self.cause = cause
