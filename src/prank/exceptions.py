"""Error taxonomy for the scoring engine."""

from __future__ import annotations


class ScoringError(Exception):
    """Base class for scoring engine errors."""


class InvalidInputError(ScoringError, ValueError):
    """Raised when a candidate attribute is missing or out of domain."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class ExternalDependencyError(InvalidInputError):
    """Raised when a score card's external collaborator fails or times out."""


class ConfigurationError(ScoringError, ValueError):
    """Raised for malformed request options or score card configuration."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:  # pragma: no cover - trivial
        if not self.errors:
            return super().__str__()
        return f"{super().__str__()}: {self.errors}"


__all__ = [
    "ScoringError",
    "InvalidInputError",
    "ExternalDependencyError",
    "ConfigurationError",
]
