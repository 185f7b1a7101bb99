"""Categorized errors shared by the configuration subsystem.

Every error raised across a component boundary carries a category and a
small mapping of structured context (operation name, relevant path, ...), so
callers can branch on ``err.category`` and log ``err.context`` without
parsing message text.

Usage:
    try:
        store.load()
    except CategorizedError as e:
        if e.category is ErrorCategory.VALIDATION:
            ...
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from birdnet_core.config._validate import Finding


class ErrorCategory(str, Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    FILE_IO = "file-io"
    SYSTEM = "system"


class CategorizedError(Exception):
    """Error tagged with a category and structured context."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.category = category
        self.context = dict(context or {})
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return f"[{self.category.value}] {self.message}"
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"[{self.category.value}] {self.message} ({details})"

    @classmethod
    def wrap(cls, err: BaseException, category: ErrorCategory, **context: Any) -> CategorizedError:
        """Build a categorized error around ``err``.

        An already categorized error keeps its original category; the new
        context keys are merged in without overwriting existing ones.
        """
        if isinstance(err, CategorizedError):
            for key, value in context.items():
                err.context.setdefault(key, value)
            return err
        wrapped = cls(str(err) or type(err).__name__, category, context)
        wrapped.__cause__ = err
        return wrapped


class SettingsValidationError(CategorizedError):
    """Semantic validation found at least one fatal problem."""

    def __init__(
        self,
        errors: list[Finding],
        warnings: list[Finding] | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        summary = "; ".join(f.message for f in self.errors)
        super().__init__(f"invalid settings: {summary}", ErrorCategory.VALIDATION, context)

    @property
    def messages(self) -> list[str]:
        return [f.message for f in self.errors]
