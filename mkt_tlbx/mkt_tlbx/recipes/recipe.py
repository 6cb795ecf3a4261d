"""Declarative preprocessing recipes with a one-shot preparation phase.

A :class:`Recipe` binds an outcome and its predictors to an ordered list of
steps. Its lifecycle is:

1. *Unprepared*: declaration plus step specifications (``declare``/``add_step``).
2. *Prepared*: every step fitted, in order, on a single reference dataset
   (``prepare``). Learned parameters are frozen.
3. *Applied*: the frozen steps replayed on any dataset with the same schema
   (``apply``), as often as needed, without changing the recipe.

Recipes are immutable values: ``add_step`` and ``prepare`` return new recipes
and leave the receiver untouched. A recipe never keeps a reference to a
dataset; it only remembers the schema of the declared variables and the
parameters its steps learned.

Example:
    >>> from mkt_tlbx.recipes import Recipe
    >>> recipe = (
    ...     Recipe.from_formula("sales ~ spend + spend_category")
    ...     .add_step("log_transform", "spend", offset=1)
    ...     .add_step("dummy_encode")
    ... )
    >>> prepared = recipe.prepare(train_df)
    >>> baked_train = prepared.apply(train_df)
    >>> baked_test = prepared.apply(test_df)  # same parameters, same columns
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from types import MappingProxyType
from typing import Any

import pandas as pd
from patsy import INTERCEPT, ModelDesc, PatsyError

from mkt_tlbx.data.base_columns import ColumnKind
from mkt_tlbx.data.schema import ColumnSchema
from mkt_tlbx.errors import SchemaError, StateError
from mkt_tlbx.utils.recipe_config import RecipeConfig

from .selectors import Selector
from .steps import DummyEncodeStep, Step, make_step


logger = logging.getLogger(__name__)


class RecipeState(StrEnum):
    """Lifecycle state of a recipe."""

    UNPREPARED = "unprepared"
    PREPARED = "prepared"


def _frozen_kinds(kinds: Mapping[str, ColumnKind | str] | None = None) -> Mapping[str, ColumnKind]:
    return MappingProxyType({str(col): ColumnKind(kind) for col, kind in (kinds or {}).items()})


@dataclass(frozen=True, repr=False)
class Recipe:
    """Outcome/predictor declaration plus an ordered list of preprocessing steps.

    Attributes:
        outcome: Name of the outcome column.
        predictors: Names of the predictor columns, in declaration order.
        steps: Steps in application order (prepared steps once the recipe is prepared).
        kinds: Explicit column kinds that override dtype inference.
        config: Defaults for steps added with :meth:`add_step`.
        schema: Schema of the declared variables in the reference data; ``None`` until prepared.
    """

    outcome: str
    predictors: tuple[str, ...]
    steps: tuple[Step, ...] = ()
    kinds: Mapping[str, ColumnKind] = field(default_factory=_frozen_kinds)
    config: RecipeConfig = field(default_factory=RecipeConfig)
    schema: ColumnSchema | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.outcome, str) or not self.outcome:
            raise SchemaError("Exactly one outcome column name is required.")
        predictors = (self.predictors,) if isinstance(self.predictors, str) else tuple(self.predictors)
        object.__setattr__(self, "outcome", str(self.outcome))
        object.__setattr__(self, "predictors", tuple(str(col) for col in predictors))
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "kinds", _frozen_kinds(self.kinds))

        if not self.predictors:
            raise SchemaError("At least one predictor column is required.", columns=[self.outcome])
        if self.outcome in self.predictors:
            raise SchemaError("The outcome cannot also be a predictor.", columns=[self.outcome])
        duplicated = sorted({col for col in self.predictors if self.predictors.count(col) > 1})
        if duplicated:
            raise SchemaError("Predictor columns must be distinct.", columns=duplicated)
        undeclared = [col for col in self.kinds if col not in self.variables]
        if undeclared:
            raise SchemaError("Column kinds given for undeclared variables.", columns=undeclared)

    # ------------------------------------------------------------------ construction
    @classmethod
    def declare(
        cls,
        outcome: str,
        predictors: Iterable[str],
        *,
        kinds: Mapping[str, ColumnKind | str] | None = None,
        config: RecipeConfig | None = None,
    ) -> "Recipe":
        """Declare an unprepared recipe with an empty step list.

        Args:
            outcome: Outcome column name.
            predictors: One or more predictor column names, distinct from the outcome.
            kinds: Optional explicit column kinds (e.g. an integer-coded categorical).
            config: Step defaults; :class:`RecipeConfig` defaults when omitted.

        Raises:
            SchemaError: If the outcome is also a predictor, predictors repeat, or none are given.
        """
        return cls(
            outcome=outcome,
            predictors=tuple(predictors) if not isinstance(predictors, str) else (predictors,),
            kinds=_frozen_kinds(kinds),
            config=config or RecipeConfig(),
        )

    @classmethod
    def from_formula(
        cls,
        formula: str,
        *,
        kinds: Mapping[str, ColumnKind | str] | None = None,
        config: RecipeConfig | None = None,
    ) -> "Recipe":
        """Declare a recipe from a Patsy-style formula such as ``"sales ~ spend + region"``.

        Only plain column names are accepted; interactions and inline
        transformations belong in steps.

        Raises:
            SchemaError: If the formula cannot be parsed or has other than one outcome.
        """
        try:
            desc = ModelDesc.from_formula(formula)
        except PatsyError as exc:
            raise SchemaError(f"Cannot parse formula '{formula}': {exc}") from exc

        lhs = _term_names(desc.lhs_termlist, formula)
        rhs = _term_names([term for term in desc.rhs_termlist if term != INTERCEPT], formula)
        if len(lhs) != 1:
            raise SchemaError(f"Formula '{formula}' must have exactly one outcome.", columns=lhs)
        return cls.declare(lhs[0], rhs, kinds=kinds, config=config)

    def add_step(
        self,
        step: str | Step,
        selector: Selector | str | Collection[str] | None = None,
        **config: Any,
    ) -> "Recipe":
        """Return a new recipe with ``step`` appended.

        Args:
            step: Step kind name (``"log_transform"``, ``"dummy_encode"``, ``"normalize"``)
                or an unprepared :class:`Step` instance.
            selector: Selector, column name or list of names; the kind's default when ``None``.
            **config: Step configuration, overriding the recipe's :class:`RecipeConfig` defaults.

        Raises:
            StateError: If the recipe (or the given step) is already prepared.
            ValueError: If the step kind or a configuration field is unknown.
        """
        if self.is_prepared:
            raise StateError(
                "Steps cannot be added to a prepared recipe; declare a new recipe instead.",
                step_kind=step if isinstance(step, str) else step.kind,
            )
        if isinstance(step, Step):
            if step.is_prepared:
                raise StateError("Only unprepared steps can be added.", step_kind=step.kind)
            if selector is not None or config:
                raise ValueError("Pass either a Step instance or a kind with selector/config, not both.")
            new_step = step
        else:
            new_step = make_step(step, selector, **{**self.config.step_defaults(step), **config})
        return replace(self, steps=(*self.steps, new_step))

    # ------------------------------------------------------------------ lifecycle
    @property
    def state(self) -> RecipeState:
        """Current lifecycle state."""
        return RecipeState.PREPARED if self.schema is not None else RecipeState.UNPREPARED

    @property
    def is_prepared(self) -> bool:
        """Whether :meth:`prepare` has produced this recipe."""
        return self.state is RecipeState.PREPARED

    @property
    def variables(self) -> tuple[str, ...]:
        """Outcome followed by the predictors."""
        return (self.outcome, *self.predictors)

    @property
    def formula(self) -> str:
        """Formula string equivalent to the declaration."""
        return f"{self.outcome} ~ {' + '.join(self.predictors)}"

    def prepare(self, reference: pd.DataFrame) -> "Recipe":
        """Fit every step, in declaration order, on ``reference`` only.

        Each step is fitted on the reference data as transformed by the
        steps before it, so e.g. a ``normalize`` after a ``log_transform``
        learns the mean of the logged values.

        Args:
            reference: Training data containing every declared variable.

        Returns:
            A new, prepared recipe. ``self`` stays unprepared.

        Raises:
            StateError: If the recipe is already prepared.
            SchemaError: If a declared column is missing or a step selects an unsuitable column.
            DomainError: If a step cannot be fitted or applied to the reference values.
        """
        if self.is_prepared:
            raise StateError("Recipe is already prepared; declare a fresh recipe to prepare it on other data.")

        schema = ColumnSchema.from_frame(reference, columns=list(self.variables), kinds=self.kinds)
        frame = reference.loc[:, list(schema.columns)]
        prepared_steps: list[Step] = []
        for step in self.steps:
            prepared_step = step.fit(frame, schema, self.outcome, self.predictors)
            frame = prepared_step.transform(frame)
            prepared_steps.append(prepared_step)

        logger.info(
            "Prepared recipe '%s' on %d rows with %d step(s) -> %d columns.",
            self.formula,
            len(reference),
            len(prepared_steps),
            frame.shape[1],
        )
        return replace(self, steps=tuple(prepared_steps), schema=schema)

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """Replay the frozen steps on ``df`` and return a new frame.

        The output holds the declared variables only, in reference column
        order, with transformed or expanded columns in the position of the
        column they replace. The outcome may be absent (prediction-time data).

        Raises:
            StateError: If the recipe is not prepared.
            SchemaError: If a predictor column is missing.
            DomainError: If a step is undefined for a value in ``df``.
        """
        schema = self._require_prepared()
        missing = [col for col in self.predictors if col not in df.columns]
        if missing:
            raise SchemaError("Dataset is missing predictor columns.", columns=missing)

        dropped = [str(col) for col in df.columns if col not in schema]
        if dropped:
            logger.debug("Dropping undeclared columns %s.", dropped)

        out = df.loc[:, [col for col in schema.columns if col in df.columns]]
        missing_ok = () if self.outcome in df.columns else (self.outcome,)
        for step in self.steps:
            out = step.transform(out, missing_ok=missing_ok)
        return out

    # ------------------------------------------------------------------ inverse transforms
    def invert(self, column: str, values: Any) -> Any:
        """Undo, in reverse order, every prepared step that transformed ``column``.

        Raises:
            StateError: If the recipe is not prepared.
            SchemaError: If ``column`` is not a declared variable.
            DomainError: If a step on the chain has no inverse (e.g. ``dummy_encode``).
        """
        schema = self._require_prepared()
        if column not in schema:
            raise SchemaError("Column is not a declared variable.", columns=[column])
        result = values
        for step in reversed(self.steps):
            if step.columns is not None and column in step.columns:
                result = step.invert(column, result)
        return result

    def invert_outcome(self, values: Any) -> Any:
        """Map outcome-scale ``values`` (e.g. predictions) back to the original scale."""
        return self.invert(self.outcome, values)

    def transforms(self, column: str) -> list[str]:
        """Kinds of the prepared steps that transform ``column``, in order."""
        self._require_prepared()
        return [step.kind for step in self.steps if step.columns is not None and column in step.columns]

    # ------------------------------------------------------------------ reporting
    def output_columns(self, *, include_outcome: bool = True) -> list[str]:
        """Column names :meth:`apply` produces when the outcome is present."""
        schema = self._require_prepared()
        out = list(schema.columns)
        for step in self.steps:
            if isinstance(step, DummyEncodeStep):
                for col in step.columns or ():
                    position = out.index(col)
                    out[position : position + 1] = step.dummy_names(col)
        if not include_outcome:
            out = [col for col in out if col != self.outcome]
        return out

    def summary_table(self) -> pd.DataFrame:
        """Tidy table with one row per step (kind, columns, state, parameters)."""
        rows = [
            {
                "step": number,
                "kind": step.kind,
                "columns": ", ".join(step.columns) if step.columns is not None else step.selector.describe(),
                "prepared": step.is_prepared,
                "parameters": step.parameters(),
            }
            for number, step in enumerate(self.steps, 1)
        ]
        return pd.DataFrame(rows, columns=["step", "kind", "columns", "prepared", "parameters"]).set_index("step")

    def _require_prepared(self) -> ColumnSchema:
        if self.schema is None:
            raise StateError("Recipe must be prepared before it is applied or inverted.")
        return self.schema

    def __repr__(self) -> str:
        steps = ", ".join(repr(step) for step in self.steps)
        return f"Recipe({self.formula}, steps=[{steps}], state={self.state})"


def _term_names(terms: list[Any], formula: str) -> list[str]:
    names: list[str] = []
    for term in terms:
        if len(term.factors) != 1:
            raise SchemaError(f"Formula '{formula}' has an interaction term '{term.name()}'; use plain columns.")
        code = term.factors[0].code
        if not code.isidentifier():
            raise SchemaError(f"Formula '{formula}' has a non-column term '{code}'; use steps for transformations.")
        names.append(code)
    return names


def declare(
    outcome: str,
    predictors: Iterable[str],
    *,
    kinds: Mapping[str, ColumnKind | str] | None = None,
    config: RecipeConfig | None = None,
) -> Recipe:
    """Declare an unprepared recipe (see :meth:`Recipe.declare`)."""
    return Recipe.declare(outcome, predictors, kinds=kinds, config=config)


def add_step(
    recipe: Recipe,
    step: str | Step,
    selector: Selector | str | Collection[str] | None = None,
    **config: Any,
) -> Recipe:
    """Append a step to an unprepared recipe (see :meth:`Recipe.add_step`)."""
    return recipe.add_step(step, selector, **config)


def prepare(recipe: Recipe, reference: pd.DataFrame) -> Recipe:
    """Prepare ``recipe`` on ``reference`` (see :meth:`Recipe.prepare`)."""
    return recipe.prepare(reference)


def apply(recipe: Recipe, df: pd.DataFrame) -> pd.DataFrame:
    """Apply a prepared recipe to ``df`` (see :meth:`Recipe.apply`)."""
    return recipe.apply(df)
