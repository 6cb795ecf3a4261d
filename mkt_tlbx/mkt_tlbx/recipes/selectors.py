"""Column selectors for recipe steps.

A selector is resolved exactly once, when the recipe is prepared, against the
schema of the declared variables in the reference dataset. The resolved names
are frozen on the step, so apply-time data never changes which columns a step
transforms.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

from mkt_tlbx.data.base_columns import ColumnKind
from mkt_tlbx.data.schema import ColumnSchema
from mkt_tlbx.errors import SchemaError


class Selector(ABC):
    """Deferred choice of the columns a step operates on."""

    @abstractmethod
    def resolve(self, schema: ColumnSchema, outcome: str, predictors: tuple[str, ...]) -> tuple[str, ...]:
        """Resolve to explicit column names.

        Args:
            schema: Schema of the declared variables in the reference dataset.
            outcome: Declared outcome column.
            predictors: Declared predictor columns.

        Returns:
            Ordered, de-duplicated column names.
        """
        ...

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable description used in summaries."""
        ...


@dataclass(frozen=True)
class ExplicitColumns(Selector):
    """Select columns by name; every name must be a declared variable."""

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.names:
            raise SchemaError("ExplicitColumns needs at least one column name.")
        object.__setattr__(self, "names", tuple(str(name) for name in self.names))

    def resolve(self, schema: ColumnSchema, outcome: str, predictors: tuple[str, ...]) -> tuple[str, ...]:
        declared = {outcome, *predictors}
        undeclared = [name for name in self.names if name not in declared]
        if undeclared:
            raise SchemaError("Selected columns are not declared outcome or predictor variables.", columns=undeclared)
        missing = [name for name in self.names if name not in schema]
        if missing:
            raise SchemaError("Selected columns are absent from the reference dataset.", columns=missing)
        return tuple(dict.fromkeys(self.names))

    def describe(self) -> str:
        return ", ".join(self.names)


@dataclass(frozen=True)
class ByKind(Selector):
    """Select all declared predictors of a kind (optionally the outcome too)."""

    kind: ColumnKind
    include_outcome: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ColumnKind(self.kind))

    def resolve(self, schema: ColumnSchema, outcome: str, predictors: tuple[str, ...]) -> tuple[str, ...]:
        candidates = [outcome, *predictors] if self.include_outcome else list(predictors)
        return tuple(col for col in candidates if col in schema and schema.kind_of(col) == self.kind)

    def describe(self) -> str:
        role = "variables" if self.include_outcome else "predictors"
        return f"all {self.kind} {role}"


def columns(*names: str) -> ExplicitColumns:
    """Select the named columns."""
    return ExplicitColumns(tuple(names))


def all_continuous(*, include_outcome: bool = False) -> ByKind:
    """Select every continuous predictor (and the outcome if requested)."""
    return ByKind(ColumnKind.CONTINUOUS, include_outcome=include_outcome)


def all_categorical(*, include_outcome: bool = False) -> ByKind:
    """Select every categorical predictor (and the outcome if requested)."""
    return ByKind(ColumnKind.CATEGORICAL, include_outcome=include_outcome)


def as_selector(selector: Selector | str | Iterable[str]) -> Selector:
    """Coerce a column name or an iterable of names into a selector."""
    if isinstance(selector, Selector):
        return selector
    if isinstance(selector, str):
        return ExplicitColumns((selector,))
    return ExplicitColumns(tuple(selector))
