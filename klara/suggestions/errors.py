"""
Suggestion error taxonomy.

Providers and the retrying fetcher raise these. The orchestrator catches
every one of them and turns it into a ``Failed`` result, so callers in the
UI layer never need a try/except around a suggestion request.

Only network failures and 5xx provider errors are worth retrying.
"""

from __future__ import annotations


class SuggestionError(Exception):
    """Base class for every suggestion failure."""

    retryable = False
    kind = "error"


class ProviderUnavailableError(SuggestionError):
    """No provider is configured. Permanent for the session."""

    kind = "provider_unavailable"


class ProviderNetworkError(SuggestionError):
    """The request never reached the provider or the connection dropped."""

    retryable = True
    kind = "network_error"


class ProviderServerError(SuggestionError):
    """The provider answered with a 5xx status."""

    retryable = True
    kind = "server_error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SuggestionValidationError(SuggestionError):
    """Malformed task text, a 4xx answer, or a response we cannot parse."""

    kind = "validation_error"


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, SuggestionError) and error.retryable


__all__ = [
    "ProviderNetworkError",
    "ProviderServerError",
    "ProviderUnavailableError",
    "SuggestionError",
    "SuggestionValidationError",
    "is_retryable",
]
