from __future__ import annotations


class OfferAgentError(Exception):
    """Base class for errors surfaced to callers."""


class ValidationError(OfferAgentError):
    """Request input is missing or malformed; nothing was written."""


class StoreError(OfferAgentError):
    """The offer store could not complete a read or write."""
