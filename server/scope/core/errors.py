"""
Error taxonomy for the relay and its collaborators.

Every error carries the HTTP status the caller should see and a message that
is safe to show to the caller. Provider response bodies are never copied into
these messages.
"""

from __future__ import annotations

from typing import Optional


class ScopeError(Exception):
    """Base error rendered as ``{"error": message}`` with ``status_code``."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.upstream_status = upstream_status


class ConfigurationError(ScopeError):
    """No provider credential configured anywhere."""

    status_code = 503
    default_message = "No OpenAI API key configured. Please add your API key in settings."


class UpstreamAuthError(ScopeError):
    status_code = 503
    default_message = "Provider credential invalid. Please check your API key in settings."


class UpstreamRateLimited(ScopeError):
    status_code = 429
    default_message = "Rate limited by provider. Please wait a moment and try again."


class UpstreamServerError(ScopeError):
    status_code = 503
    default_message = "Provider unavailable. Please try again later."


class UpstreamBadRequest(ScopeError):
    status_code = 400
    default_message = "Provider rejected the request. Verify the model id and parameters."


class UpstreamUnavailable(ScopeError):
    """Network failure before any response arrived from the provider."""

    status_code = 500
    default_message = "Upstream request failed"


class MalformedRequestBody(ScopeError):
    status_code = 400
    default_message = "Malformed request body"


def error_for_status(status: int) -> ScopeError:
    """Map a non-success provider status onto the caller-facing error."""
    if status == 401:
        return UpstreamAuthError(upstream_status=status)
    if status == 429:
        return UpstreamRateLimited(upstream_status=status)
    if status >= 500:
        return UpstreamServerError(upstream_status=status)
    return UpstreamBadRequest(upstream_status=status)
