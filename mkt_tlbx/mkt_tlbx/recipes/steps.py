"""Preprocessing steps with a strict fit/apply separation.

Every step is a frozen dataclass. An unprepared step carries only its selector
and configuration; :meth:`Step.fit` returns a *new* step holding the resolved
column names and the parameters learned from the reference data. Applying a
prepared step never changes it, so one prepared step can transform training,
testing and counterfactual data with identical parameters.

Adding a step kind means subclassing :class:`Step`, setting ``kind``,
``requires`` and ``config_fields``, implementing ``_learn`` and
``_transform_column`` and registering the class in :data:`STEP_TYPES`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, ClassVar, Literal

import numpy as np
import pandas as pd

from mkt_tlbx.data.base_columns import ColumnKind
from mkt_tlbx.data.schema import ColumnSchema
from mkt_tlbx.errors import DomainError, SchemaError, StateError

from .selectors import Selector, all_categorical, all_continuous, as_selector


logger = logging.getLogger(__name__)

_MAX_REPORTED_ROWS = 5


def _frozen(mapping: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Step(ABC):
    """Abstract base class for recipe steps.

    Attributes:
        selector: Deferred column choice, resolved once by :meth:`fit`.
        columns: Resolved column names; ``None`` until the step is prepared.
    """

    selector: Selector
    columns: tuple[str, ...] | None = None

    kind: ClassVar[str]
    """Registry name of the step kind."""
    requires: ClassVar[ColumnKind]
    """Column kind every selected column must have."""
    config_fields: ClassVar[tuple[str, ...]] = ()
    """User-settable configuration fields (everything else is learned)."""
    default_selector: ClassVar[Callable[[], Selector]]

    @property
    def is_prepared(self) -> bool:
        """Whether the step has been fitted on reference data."""
        return self.columns is not None

    def fit(
        self,
        df: pd.DataFrame,
        schema: ColumnSchema,
        outcome: str,
        predictors: tuple[str, ...],
    ) -> "Step":
        """Resolve the selector and learn parameters from ``df``.

        Args:
            df: Reference data as transformed by all preceding steps.
            schema: Schema of the declared variables in the reference data.
            outcome: Declared outcome column.
            predictors: Declared predictor columns.

        Returns:
            A new, prepared step. ``self`` is left untouched.

        Raises:
            StateError: If the step is already prepared.
            SchemaError: If a selected column has the wrong kind or was consumed by an earlier step.
        """
        if self.is_prepared:
            raise StateError("Step is already prepared.", columns=self.columns or (), step_kind=self.kind)

        columns = self.selector.resolve(schema, outcome, predictors)
        wrong_kind = [col for col in columns if schema.kind_of(col) != self.requires]
        if wrong_kind:
            raise SchemaError(f"Step requires {self.requires} columns.", columns=wrong_kind, step_kind=self.kind)
        consumed = [col for col in columns if col not in df.columns]
        if consumed:
            raise SchemaError("Selected columns were replaced by an earlier step.", columns=consumed, step_kind=self.kind)
        if not columns:
            logger.warning("Step %s selected no columns (%s).", self.kind, self.selector.describe())

        learned = self._learn(df, columns)
        logger.debug("Prepared %s on %s with %s", self.kind, list(columns), learned)
        return replace(self, columns=columns, **learned)

    def transform(self, df: pd.DataFrame, *, missing_ok: Collection[str] = ()) -> pd.DataFrame:
        """Apply the frozen transformation to ``df`` and return a new frame.

        Args:
            df: Data to transform (not mutated).
            missing_ok: Selected columns that may be absent (e.g. the outcome at prediction time).

        Raises:
            StateError: If the step has not been prepared.
            SchemaError: If a required column is absent.
        """
        if self.columns is None:
            raise StateError("Step must be prepared before it is applied.", step_kind=self.kind)

        absent = [col for col in self.columns if col not in df.columns]
        required = [col for col in absent if col not in missing_ok]
        if required:
            raise SchemaError("Dataset is missing columns required by the step.", columns=required, step_kind=self.kind)

        out = df.copy()
        for col in self.columns:
            if col not in absent:
                out = self._transform_column(out, col)
        return out

    def invert(self, column: str, values: Any) -> Any:
        """Map transformed ``values`` of ``column`` back to the input scale.

        Raises:
            DomainError: If the step kind has no inverse.
        """
        raise DomainError("Step has no inverse transformation.", columns=[column], step_kind=self.kind)

    @property
    def invertible(self) -> bool:
        """Whether :meth:`invert` is implemented for this step kind."""
        return type(self).invert is not Step.invert

    def parameters(self) -> dict[str, Any]:
        """Configuration plus learned parameters, for summaries."""
        return {name: getattr(self, name) for name in self.config_fields}

    def _numeric_values(self, df: pd.DataFrame, column: str) -> pd.Series:
        series = df[column]
        if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
            raise SchemaError(f"Column has non-numeric dtype '{series.dtype}'.", columns=[column], step_kind=self.kind)
        return series.astype(float)

    @abstractmethod
    def _learn(self, df: pd.DataFrame, columns: tuple[str, ...]) -> dict[str, Any]:
        """Return the learned fields to set on the prepared step."""
        ...

    @abstractmethod
    def _transform_column(self, out: pd.DataFrame, column: str) -> pd.DataFrame:
        """Transform one column of ``out`` (a private copy) and return the frame."""
        ...

    def __repr__(self) -> str:
        target = ", ".join(self.columns) if self.columns is not None else self.selector.describe()
        state = "prepared" if self.is_prepared else "unprepared"
        return f"<{self.__class__.__name__}: {self.kind}({target}) {state}>"


@dataclass(frozen=True, repr=False)
class LogTransformStep(Step):
    """Natural log of continuous columns: ``v -> ln(v + offset)``.

    Non-positive ``v + offset`` raises :class:`DomainError` instead of
    producing ``-inf``/``NaN``.
    """

    offset: float = 0.0

    kind: ClassVar[str] = "log_transform"
    requires: ClassVar[ColumnKind] = ColumnKind.CONTINUOUS
    config_fields: ClassVar[tuple[str, ...]] = ("offset",)
    default_selector: ClassVar[Callable[[], Selector]] = staticmethod(all_continuous)

    def __post_init__(self) -> None:
        offset = float(self.offset)
        if not np.isfinite(offset):
            raise ValueError(f"log_transform offset must be finite, got {self.offset!r}.")
        object.__setattr__(self, "offset", offset)

    def _learn(self, df: pd.DataFrame, columns: tuple[str, ...]) -> dict[str, Any]:
        for col in columns:
            self._numeric_values(df, col)
        return {}

    def _transform_column(self, out: pd.DataFrame, column: str) -> pd.DataFrame:
        shifted = self._numeric_values(out, column) + self.offset
        invalid = shifted <= 0
        if invalid.any():
            rows = shifted.index[invalid].tolist()[:_MAX_REPORTED_ROWS]
            raise DomainError(
                f"Logarithm undefined for {int(invalid.sum())} value(s) with value + offset <= 0 "
                f"(offset={self.offset:g}, first rows: {rows}).",
                columns=[column],
                step_kind=self.kind,
            )
        out[column] = np.log(shifted)
        return out

    def invert(self, column: str, values: Any) -> Any:
        """Undo the log: ``u -> exp(u) - offset``."""
        return np.exp(values) - self.offset


@dataclass(frozen=True, repr=False)
class DummyEncodeStep(Step):
    """Treatment (dummy) coding of categorical columns.

    Levels observed in the reference data are ordered lexicographically by
    their string form; the first one is the baseline and gets no indicator.
    Each other level becomes an ``int64`` column named
    ``<column><separator><level>`` at the position of the replaced column.

    Levels that were not observed during preparation never create columns:
    with ``unseen="ignore"`` they encode as all zeros (and are logged as a
    warning), with ``unseen="error"`` they raise :class:`DomainError`. Missing
    values encode as all zeros.
    """

    separator: str = "_"
    unseen: Literal["ignore", "error"] = "ignore"
    levels: Mapping[str, tuple[Any, ...]] = field(default_factory=_frozen)

    kind: ClassVar[str] = "dummy_encode"
    requires: ClassVar[ColumnKind] = ColumnKind.CATEGORICAL
    config_fields: ClassVar[tuple[str, ...]] = ("separator", "unseen")
    default_selector: ClassVar[Callable[[], Selector]] = staticmethod(all_categorical)

    def __post_init__(self) -> None:
        if not self.separator:
            raise ValueError("dummy_encode separator must be a non-empty string.")
        if self.unseen not in ("ignore", "error"):
            raise ValueError(f"Invalid unseen='{self.unseen}'. Use 'ignore' or 'error'.")
        object.__setattr__(self, "levels", _frozen(self.levels))

    @property
    def baselines(self) -> dict[str, Any]:
        """Baseline (reference) level per prepared column."""
        return {col: levels[0] for col, levels in self.levels.items() if levels}

    def dummy_names(self, column: str) -> list[str]:
        """Indicator column names produced for ``column``."""
        return [f"{column}{self.separator}{level}" for level in self.levels[column][1:]]

    def _learn(self, df: pd.DataFrame, columns: tuple[str, ...]) -> dict[str, Any]:
        levels: dict[str, tuple[Any, ...]] = {}
        for col in columns:
            observed = sorted(pd.unique(df[col].dropna().astype(object)), key=str)
            if not observed:
                raise DomainError("Column has no observed levels to encode.", columns=[col], step_kind=self.kind)
            if len(observed) == 1:
                logger.warning("Column %s has a single level %r; dummy encoding drops it.", col, observed[0])
            levels[col] = tuple(observed)

        produced: list[str] = []
        for col in columns:
            produced.extend(f"{col}{self.separator}{level}" for level in levels[col][1:])
        duplicated = sorted({name for name in produced if produced.count(name) > 1})
        clashing = [name for name in produced if name in df.columns]
        if duplicated or clashing:
            raise SchemaError(
                "Dummy column names collide with each other or with existing columns.",
                columns=duplicated + clashing,
                step_kind=self.kind,
            )
        return {"levels": levels}

    def _transform_column(self, out: pd.DataFrame, column: str) -> pd.DataFrame:
        values = out[column].astype(object)
        known = self.levels[column]
        unseen = values[values.notna() & ~values.isin(known)]
        if not unseen.empty:
            unseen_levels = sorted({str(level) for level in unseen})
            if self.unseen == "error":
                raise DomainError(
                    f"Levels not seen during preparation: {unseen_levels}.",
                    columns=[column],
                    step_kind=self.kind,
                )
            logger.warning(
                "Column %s has %d row(s) with levels not seen during preparation %s; encoded as all zeros.",
                column,
                len(unseen),
                unseen_levels,
            )

        indicators = pd.DataFrame(
            {
                name: (values == level).astype("int64")
                for name, level in zip(self.dummy_names(column), known[1:], strict=True)
            },
            index=out.index,
        )
        position = out.columns.get_loc(column)
        return pd.concat([out.iloc[:, :position], indicators, out.iloc[:, position + 1 :]], axis=1)

    def parameters(self) -> dict[str, Any]:
        return {**super().parameters(), "baseline": self.baselines, "levels": dict(self.levels)}


@dataclass(frozen=True, repr=False)
class NormalizeStep(Step):
    """Center and scale continuous columns with reference mean and standard deviation."""

    means: Mapping[str, float] = field(default_factory=_frozen)
    stds: Mapping[str, float] = field(default_factory=_frozen)

    kind: ClassVar[str] = "normalize"
    requires: ClassVar[ColumnKind] = ColumnKind.CONTINUOUS
    default_selector: ClassVar[Callable[[], Selector]] = staticmethod(all_continuous)

    def __post_init__(self) -> None:
        object.__setattr__(self, "means", _frozen(self.means))
        object.__setattr__(self, "stds", _frozen(self.stds))

    def _learn(self, df: pd.DataFrame, columns: tuple[str, ...]) -> dict[str, Any]:
        means: dict[str, float] = {}
        stds: dict[str, float] = {}
        for col in columns:
            values = self._numeric_values(df, col)
            sd = float(values.std(ddof=1))
            if not np.isfinite(sd) or sd == 0:
                raise DomainError(
                    "Standard deviation is zero or undefined; column cannot be scaled.",
                    columns=[col],
                    step_kind=self.kind,
                )
            means[col] = float(values.mean())
            stds[col] = sd
        return {"means": means, "stds": stds}

    def _transform_column(self, out: pd.DataFrame, column: str) -> pd.DataFrame:
        out[column] = (self._numeric_values(out, column) - self.means[column]) / self.stds[column]
        return out

    def invert(self, column: str, values: Any) -> Any:
        """Undo the scaling: ``u -> u * sd + mean``."""
        return values * self.stds[column] + self.means[column]

    def parameters(self) -> dict[str, Any]:
        return {"mean": dict(self.means), "sd": dict(self.stds)}


STEP_TYPES: dict[str, type[Step]] = {
    step_cls.kind: step_cls for step_cls in (LogTransformStep, DummyEncodeStep, NormalizeStep)
}
"""Registry of step kinds accepted by :func:`make_step`."""


def make_step(
    kind: str,
    selector: Selector | str | Collection[str] | None = None,
    **config: Any,
) -> Step:
    """Build an unprepared step from its kind name.

    Args:
        kind: Registered step kind (see :data:`STEP_TYPES`).
        selector: Selector, column name or list of names; the kind's default selector when ``None``.
        **config: Step configuration (e.g. ``offset`` for ``log_transform``).

    Raises:
        ValueError: If ``kind`` is unknown or ``config`` has fields the step does not accept.
    """
    try:
        step_cls = STEP_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown step kind '{kind}'. Available: {sorted(STEP_TYPES)}") from None

    unknown = sorted(set(config) - set(step_cls.config_fields))
    if unknown:
        raise ValueError(f"Step kind '{kind}' does not accept configuration {unknown}.")

    resolved_selector = step_cls.default_selector() if selector is None else as_selector(selector)
    return step_cls(selector=resolved_selector, **config)
