"""Typed failures surfaced by the index service.

Each error carries the name reported to API clients (``error_type``) and the
HTTP status the web layer answers with.
"""

from __future__ import annotations


class KBIndexError(Exception):
    """Base class for all KB index failures."""

    error_type = "KBIndexError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KBIndexError):
    """Malformed or out-of-range caller input."""

    error_type = "ValidationError"
    status_code = 400


class NoDataError(KBIndexError):
    """No stored samples for the requested region or range."""

    error_type = "NoDataError"
    status_code = 404


class AnchorNotFoundError(KBIndexError):
    """No sample could be chosen as the rebasing anchor."""

    error_type = "AnchorNotFoundError"
    status_code = 404


class ComputationError(KBIndexError):
    """A zero-valued base index produced non-finite output."""

    error_type = "ComputationError"
    status_code = 422


class UpstreamError(KBIndexError):
    """Repository, store or file I/O failure."""

    error_type = "UpstreamError"
    status_code = 502
