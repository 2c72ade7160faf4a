"""Exceptions raised by the digest pipeline."""

from __future__ import annotations


class DigestError(Exception):
    """Base class for every pipeline error."""


class ValidationError(DigestError):
    """Raised when a filter spec compiles to zero usable query terms."""


class ProviderCallError(DigestError):
    """Raised when a single search-provider call fails."""


class SearchUnavailable(DigestError):
    """Raised when every query term's provider call failed.

    ``errors`` maps each query term to the exception it raised.
    """

    def __init__(self, message: str, errors: dict[str, Exception] | None = None) -> None:
        super().__init__(message)
        self.errors: dict[str, Exception] = dict(errors or {})
