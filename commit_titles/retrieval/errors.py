"""Typed failures raised while resolving inputs and retrieving commits."""

from __future__ import annotations

from typing import Optional


class CommitTitlesError(Exception):
    """Base class for every failure the CLI reports to the user."""


class ConfigError(CommitTitlesError):
    """Invalid command-line option, configuration file, or auto-detection."""


class OutputError(CommitTitlesError):
    """The rendered report could not be written."""


class InvalidDate(CommitTitlesError):
    """A date expression could not be parsed."""


class UnreasonableDate(InvalidDate):
    """A parsed date lies implausibly far from the current year."""


class InvalidDateRange(InvalidDate):
    """The start of a range falls after its end."""


class InvalidPattern(CommitTitlesError):
    """A filter pattern is not a compilable regular expression."""


class ApiError(CommitTitlesError):
    """GitHub answered with a non-success HTTP status."""

    def __init__(self, message: str, status: int, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class NotFound(ApiError):
    """Owner, repository, or ref does not exist (HTTP 404)."""


class AuthFailure(ApiError):
    """The token was rejected (HTTP 401)."""


class Forbidden(ApiError):
    """Permissions or rate limit prevented the request (HTTP 403)."""


class MalformedRequest(ApiError):
    """GitHub rejected the ref or date parameters (HTTP 422)."""


class NetworkError(CommitTitlesError):
    """A request failed below the HTTP layer after all retries."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class NetworkTimeout(NetworkError):
    """The request did not complete within the configured timeout."""


class NetworkUnreachable(NetworkError):
    """The host could not be resolved or refused the connection."""

    def __init__(self, message: str, reason: str, url: Optional[str] = None) -> None:
        super().__init__(message, url)
        self.reason = reason


class NetworkOther(NetworkError):
    """Any other transport failure."""


__all__ = [
    "CommitTitlesError",
    "ConfigError",
    "OutputError",
    "InvalidDate",
    "UnreasonableDate",
    "InvalidDateRange",
    "InvalidPattern",
    "ApiError",
    "NotFound",
    "AuthFailure",
    "Forbidden",
    "MalformedRequest",
    "NetworkError",
    "NetworkTimeout",
    "NetworkUnreachable",
    "NetworkOther",
]
