"""Custom exceptions for core logic."""

from __future__ import annotations


class TransformProfileError(Exception):
    """Raised when a transform profile fails validation in strict paths."""

    def __init__(self, message: str, *, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [message])


class ChapterScoringError(ValueError):
    """Raised when a chapter cannot be scored because its inputs are unusable."""

    def __init__(self, message: str, *, chapter_ref: str | None = None) -> None:
        super().__init__(message)
        self.chapter_ref = chapter_ref
