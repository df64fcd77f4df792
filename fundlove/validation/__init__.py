"""Validation package."""

from fundlove.validation.validator import InputValidator, ValidationFailedError

__all__ = ["InputValidator", "ValidationFailedError"]
