"""Exceptions raised while driving the browser and the extension."""

from __future__ import annotations


class FilterCheckError(Exception):
    """Base class for all runner errors."""


class ElementNotFound(FilterCheckError):
    """The element's bounding rectangle could not be read."""


class CaptureFailure(FilterCheckError):
    """The remote screenshot call failed."""


class ComparisonTimeout(FilterCheckError, AssertionError):
    """Bitmaps never matched, even after the reload retry."""

    def __init__(self, title: str, attempts: int = 0, last_actual: object = None):
        super().__init__(title)
        self.title = title
        self.attempts = attempts
        self.last_actual = last_actual


class MessagingError(FilterCheckError):
    """The extension's messaging bridge returned an error payload."""

    def __init__(self, message: str, payload: object = None):
        super().__init__(message)
        self.payload = payload
