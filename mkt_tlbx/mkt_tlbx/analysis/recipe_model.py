"""OLS models whose design matrix comes from a prepared recipe.

The recipe is prepared on the training frame only; the same frozen recipe then
builds the design matrix for holdout and scenario data, so predictions never
see parameters learned outside the training rows.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import pandas as pd
import statsmodels.api as sm

from mkt_tlbx.errors import SchemaError
from mkt_tlbx.recipes import Recipe

from .ols_helper import EvalMetrics, RegressionResult, evaluate_predictions, fit_ols_design


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeModel:
    """Prepared recipe plus the OLS fit on its output.

    Attributes:
        recipe: Prepared recipe that turns raw frames into design matrices.
        result: OLS fit and in-sample diagnostics on the recipe's training output.
    """

    recipe: Recipe
    result: RegressionResult

    @property
    def outcome(self) -> str:
        return self.recipe.outcome

    @property
    def params(self) -> pd.Series:
        """Coefficients on the recipe's output columns (plus ``const``)."""
        return self.result.params

    def design_matrix(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply the recipe to ``df`` and return the design matrix with intercept.

        The outcome may be absent from ``df``.
        """
        baked = self.recipe.apply(df).drop(columns=[self.outcome], errors="ignore")
        exog = sm.add_constant(baked.astype(float), has_constant="add")
        return exog.loc[:, self.result.exog_names]

    def predict(self, df: pd.DataFrame, *, original_scale: bool = False) -> pd.Series:
        """Predict the outcome for ``df``.

        Args:
            df: Raw data with every predictor column.
            original_scale: Undo the outcome's recipe steps (e.g. the log) on the predictions.

        Returns:
            Predictions indexed like ``df``.
        """
        exog = self.design_matrix(df)
        pred = pd.Series(self.result.model.predict(exog), index=exog.index, name=self.outcome)
        if original_scale:
            pred = self.recipe.invert_outcome(pred)
        return pred

    def evaluate(
        self,
        df: pd.DataFrame,
        *,
        label: str | None = None,
        original_scale: bool = False,
    ) -> EvalMetrics:
        """Score the model on ``df`` (which must contain the outcome).

        With ``original_scale`` both predictions and observations are compared
        in raw outcome units, otherwise on the transformed scale the model was
        fitted on.

        Raises:
            SchemaError: If the outcome column is missing.
        """
        if self.outcome not in df.columns:
            raise SchemaError("Evaluation data is missing the outcome column.", columns=[self.outcome])
        pred = self.predict(df, original_scale=original_scale)
        observed = df[self.outcome] if original_scale else self.recipe.apply(df)[self.outcome]
        return evaluate_predictions(observed, pred, label=label)

    def predict_scenarios(
        self,
        base: pd.DataFrame,
        scenarios: Mapping[str, Mapping[str, Any]],
        *,
        original_scale: bool = True,
    ) -> pd.DataFrame:
        """Predict the outcome under counterfactual column overrides.

        Each scenario maps column names to replacement values (scalars, arrays
        or callables taking the base frame, as accepted by ``DataFrame.assign``).
        ``base`` is never modified.

        Example:
            >>> model.predict_scenarios(
            ...     test_df,
            ...     {"double_spend": {"spend": lambda d: d["spend"] * 2}, "all_tv": {"spend_category": "tv"}},
            ... )

        Returns:
            One column per scenario, preceded by a ``baseline`` column.
        """
        if "baseline" in scenarios:
            raise ValueError("Scenario name 'baseline' is reserved for the unmodified predictions.")
        predictions = {"baseline": self.predict(base, original_scale=original_scale)}
        for name, overrides in scenarios.items():
            unknown = [col for col in overrides if col not in self.recipe.predictors]
            if unknown:
                raise SchemaError(f"Scenario '{name}' overrides non-predictor columns.", columns=unknown)
            predictions[name] = self.predict(base.assign(**overrides), original_scale=original_scale)
        return pd.DataFrame(predictions, index=base.index)


def fit_recipe_model(
    recipe: Recipe,
    train_df: pd.DataFrame,
    *,
    cv_folds: int | None = None,
    shuffle_cv: bool = False,
    random_state: int | None = None,
) -> RecipeModel:
    """Prepare ``recipe`` on ``train_df`` (if needed) and fit OLS on its output.

    Rows whose transformed values are missing are dropped before fitting.

    Args:
        recipe: Unprepared recipe, or one already prepared on ``train_df``.
        train_df: Training data with the outcome and every predictor.
        cv_folds: Number of K-fold splits for CV RMSE on the training output.
        shuffle_cv: Whether to shuffle rows before CV splitting.
        random_state: Seed for shuffled CV.
    """
    prepared = recipe if recipe.is_prepared else recipe.prepare(train_df)
    baked = prepared.apply(train_df)
    complete = baked.dropna()
    if len(complete) < len(baked):
        logger.warning("Dropping %d training row(s) with missing values before OLS.", len(baked) - len(complete))

    result = fit_ols_design(
        complete,
        target_col=prepared.outcome,
        add_intercept=True,
        cv_folds=cv_folds,
        shuffle_cv=shuffle_cv,
        random_state=random_state,
    )
    logger.info("Fitted OLS on '%s' with %d rows (R²=%.3f).", prepared.formula, len(complete), result.r2)
    return RecipeModel(recipe=prepared, result=result)
