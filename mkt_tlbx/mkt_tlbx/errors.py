"""Exception hierarchy raised by recipe declaration, preparation and application."""

from __future__ import annotations

from collections.abc import Iterable


class RecipeError(Exception):
    """Base class for recipe failures.

    Every error names the offending column(s) and, when a step is involved,
    the step kind, so callers can fix either the declaration or the data.
    """

    def __init__(
        self,
        message: str,
        *,
        columns: Iterable[str] = (),
        step_kind: str | None = None,
    ) -> None:
        self.columns: tuple[str, ...] = tuple(columns)
        self.step_kind = step_kind
        self.reason = message
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        prefix = f"[{self.step_kind}] " if self.step_kind else ""
        suffix = f" (columns: {', '.join(self.columns)})" if self.columns else ""
        return f"{prefix}{message}{suffix}"


class SchemaError(RecipeError, ValueError):
    """A column is missing, duplicated, undeclared or of the wrong kind."""


class StateError(RecipeError, RuntimeError):
    """An operation was invoked in the wrong lifecycle state."""


class DomainError(RecipeError, ValueError):
    """A transformation is undefined for the given values."""
