"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Custom exception hierarchy.

All exceptions are rooted at WorkforceError so callers can catch broadly
(except WorkforceError) or narrowly (except ClassificationError).

Every exception carries the HTTP status the Flask layer answers with:
  InvalidRequestError      → 400
  OccupationNotFoundError  → 404
  NoTaskDataError          → 404
  ClassificationError      → 502
    AuthenticationError    → 503
    LLMError               → 502
  ConfigurationError       → 500
  DataLoadError            → 500
"""
from __future__ import annotations


class WorkforceError(Exception):
    """Base exception for all application errors."""

    status_code = 500


class ConfigurationError(WorkforceError):
    """Raised when required configuration is missing or invalid."""


class DataLoadError(WorkforceError):
    """Raised when the static O*NET lookup files cannot be loaded."""


class InvalidRequestError(WorkforceError):
    """Raised when an analysis request fails validation."""

    status_code = 400


class OccupationNotFoundError(WorkforceError):
    """Raised when no occupation matches a well-formed job title."""

    status_code = 404


class NoTaskDataError(WorkforceError):
    """Raised when the matched occupation has no task statements."""

    status_code = 404


class ClassificationError(WorkforceError):
    """Raised when the classification gateway fails or returns unusable output."""

    status_code = 502


class AuthenticationError(ClassificationError):
    """Raised when LLM provider credentials are missing or rejected."""

    status_code = 503


class LLMError(ClassificationError):
    """Raised when the LLM API call fails at the transport level."""
