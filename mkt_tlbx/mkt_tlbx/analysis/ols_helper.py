"""OLS fitting and metric helpers for models built on recipe output.

The design matrices passed in here are the frames a prepared recipe produces:
every column is numeric (log-transformed, normalized or dummy coded) so they
go straight into ``statsmodels`` without Patsy. Metrics follow the usual
regression definitions and are computed with ``scikit-learn``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.linear_model import LinearRegression
from sklearn.metrics import (
    mean_absolute_error,
    mean_absolute_percentage_error,
    mean_squared_error,
    r2_score,
)
from sklearn.model_selection import KFold, cross_val_score
from statsmodels.stats.outliers_influence import variance_inflation_factor


_INTERCEPT_COLS = ("Intercept", "const")


@dataclass(frozen=True)
class MetricsResult:
    r"""In-sample fit metrics of an OLS model, plus optional CV RMSE.

    - :math:`R^2 = 1 - SS_{res}/SS_{tot}`
    - :math:`\text{RMSE} = \sqrt{\frac{1}{n}\sum_i (y_i - \hat{y}_i)^2}`
    - :math:`\text{AIC} = 2k - 2\log L`, :math:`\text{BIC} = k\log n - 2\log L`

    All values are on the scale of the modelled outcome, i.e. after the
    recipe's transformations.
    """

    r2: float
    adj_r2: float | None
    rmse: float
    mae: float
    mape: float | None
    """Mean absolute percentage error (fraction); ``None`` when an outcome value is zero."""
    aic: float | None
    bic: float | None
    n_obs: float | None
    cv_scores: list[float] | None
    """Raw cross-validation RMSE scores (if enabled)."""
    cv_rmse: float | None

    def __repr__(self) -> str:
        def fmt(value: float | None, decimals: int = 3) -> str:
            return "nan" if value is None else f"{value:.{decimals}f}"

        cv_block = ""
        if self.cv_scores is not None:
            cv_block = f" CV[rmse={fmt(self.cv_rmse)}, folds={len(self.cv_scores)}]"
        n_obs = f" n={int(self.n_obs)}" if self.n_obs is not None else ""
        return (
            f"MetricsResult(Fit[r2={fmt(self.r2)}, adj_r2={fmt(self.adj_r2)}, rmse={fmt(self.rmse)}, "
            f"mae={fmt(self.mae)}, aic={fmt(self.aic)}]{cv_block}{n_obs})"
        )


@dataclass(frozen=True)
class RegressionResult:
    """Packaged OLS fit with its design matrix, metrics and VIF table."""

    model: sm.regression.linear_model.RegressionResultsWrapper
    design_matrix: pd.DataFrame
    y: pd.Series
    metrics: MetricsResult
    vif: pd.Series
    residuals: pd.Series
    predictions: pd.Series

    def print_summary(self) -> None:
        """Print the statsmodels summary to stdout."""
        print(self.model.summary())  # noqa: T201

    @property
    def params(self) -> pd.Series:
        """Estimated coefficients indexed by design column."""
        return self.model.params

    @property
    def r2(self) -> float:
        return self.metrics.r2

    @property
    def aic(self) -> float:
        return self.metrics.aic if self.metrics.aic is not None else float("nan")

    @property
    def rmse(self) -> float:
        return self.metrics.rmse

    @property
    def exog_names(self) -> list[str]:
        """Design columns in the order the coefficients expect (intercept included)."""
        return list(self.design_matrix.columns)


@dataclass(frozen=True)
class EvalMetrics:
    """Evaluation metrics computed on a holdout dataset."""

    rmse: float
    mae: float
    r2: float
    n_obs: float
    label: str | None = None


def fit_ols_design(
    design_matrix_Xy: pd.DataFrame,
    *,
    target_col: str,
    add_intercept: bool | None = None,
    cv_folds: int | None = None,
    shuffle_cv: bool = False,
    random_state: int | None = None,
) -> RegressionResult:
    """Fit OLS on a design matrix (including target) and return diagnostics.

    Args:
        design_matrix_Xy: DataFrame containing predictors and the target column.
        target_col: Name of the target column contained in ``design_matrix_Xy``.
        add_intercept: Whether to add an intercept column. If ``None``, the
            function adds one only when no intercept column is present.
        cv_folds: Number of K-fold splits for CV RMSE (``None`` or ``< 2`` disables CV).
        shuffle_cv: Whether to shuffle rows before CV splitting.
        random_state: Seed for shuffled CV.

    Raises:
        KeyError: If ``target_col`` is not in ``design_matrix_Xy``.
    """
    if target_col not in design_matrix_Xy.columns:
        raise KeyError(f"Target column '{target_col}' not found in design matrix.")
    x_matrix = design_matrix_Xy.drop(columns=[target_col])
    y = design_matrix_Xy[target_col]
    if add_intercept is None:
        add_intercept = not any(col in x_matrix.columns for col in _INTERCEPT_COLS)
    if add_intercept:
        x_matrix = sm.add_constant(x_matrix, has_constant="add")

    model = sm.OLS(y.astype(float), x_matrix.astype(float)).fit()
    return diagnose_ols(
        model,
        cv_folds=cv_folds,
        shuffle_cv=shuffle_cv,
        random_state=random_state,
    )


def diagnose_ols(
    model: sm.regression.linear_model.RegressionResultsWrapper,
    *,
    cv_folds: int | None = None,
    shuffle_cv: bool = False,
    random_state: int | None = None,
) -> RegressionResult:
    """Compute metrics and VIF for an already-fitted OLS model."""
    design_matrix = design_matrix_from_model(model)
    predictions = pd.Series(model.fittedvalues, index=design_matrix.index)
    residuals = pd.Series(model.resid, index=design_matrix.index)
    y = pd.Series(model.model.endog, index=design_matrix.index, name=getattr(model.model, "endog_names", None))

    metrics = compute_metrics(
        model=model,
        y_true=y,
        y_pred=predictions,
        design_matrix=design_matrix,
        cv_folds=cv_folds,
        shuffle_cv=shuffle_cv,
        random_state=random_state,
    )
    return RegressionResult(
        model=model,
        design_matrix=design_matrix,
        y=y,
        metrics=metrics,
        vif=compute_vif(design_matrix),
        residuals=residuals,
        predictions=predictions,
    )


def design_matrix_from_model(
    model: sm.regression.linear_model.RegressionResultsWrapper,
) -> pd.DataFrame:
    """Return the design matrix (exog) a statsmodels OLS result was fitted on."""
    row_labels = getattr(getattr(model.model, "data", None), "row_labels", None)
    return pd.DataFrame(model.model.exog, columns=model.model.exog_names, index=row_labels)


def _drop_intercept_cols(design_matrix: pd.DataFrame) -> pd.DataFrame:
    cols_to_drop = [col for col in _INTERCEPT_COLS if col in design_matrix.columns]
    return design_matrix.drop(columns=cols_to_drop) if cols_to_drop else design_matrix


def compute_vif(design_matrix: pd.DataFrame) -> pd.Series:
    r"""Compute VIF per regressor (intercept excluded).

    :math:`VIF_j = 1 / (1 - R_j^2)`. A single regressor has VIF 1.0.
    """
    x = _drop_intercept_cols(design_matrix)
    if x.shape[1] == 0:
        return pd.Series(dtype=float)
    if x.shape[1] == 1:
        return pd.Series({x.columns[0]: 1.0})
    # VIF needs the constant in the auxiliary regressions
    exog = sm.add_constant(x.astype(float), has_constant="add")
    return pd.Series(
        {col: float(variance_inflation_factor(exog.values, idx)) for idx, col in enumerate(exog.columns) if col in x},
    )


def compute_cv_scores(
    design_matrix: pd.DataFrame,
    y: pd.Series,
    *,
    cv_folds: int,
    shuffle: bool = False,
    random_state: int | None = None,
) -> list[float]:
    """Compute cross-validation RMSE scores for a linear regression baseline."""
    has_intercept = any(col in design_matrix.columns for col in _INTERCEPT_COLS)
    splitter = KFold(
        n_splits=cv_folds,
        shuffle=shuffle,
        random_state=(random_state if shuffle else None),
    )
    scores = cross_val_score(
        LinearRegression(fit_intercept=not has_intercept),
        design_matrix,
        y,
        cv=splitter,
        scoring="neg_root_mean_squared_error",
        error_score="raise",
    )
    return [float(score) for score in -np.asarray(scores)]


def compute_metrics(
    model: sm.regression.linear_model.RegressionResultsWrapper,
    y_true: pd.Series,
    y_pred: pd.Series,
    design_matrix: pd.DataFrame,
    *,
    cv_folds: int | None = None,
    shuffle_cv: bool = False,
    random_state: int | None = None,
) -> MetricsResult:
    """Compute fit metrics, information criteria and optional CV scores."""
    cv_scores: list[float] | None = None
    cv_rmse: float | None = None
    if cv_folds and cv_folds > 1:
        cv_scores = compute_cv_scores(
            design_matrix,
            y_true,
            cv_folds=cv_folds,
            shuffle=shuffle_cv,
            random_state=random_state,
        )
        cv_rmse = float(np.mean(cv_scores))

    return MetricsResult(
        r2=float(r2_score(y_true, y_pred)),
        adj_r2=float(model.rsquared_adj) if hasattr(model, "rsquared_adj") else None,
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        mae=float(mean_absolute_error(y_true, y_pred)),
        mape=None if (y_true == 0).any() else float(mean_absolute_percentage_error(y_true, y_pred)),
        aic=float(model.aic) if hasattr(model, "aic") else None,
        bic=float(model.bic) if hasattr(model, "bic") else None,
        n_obs=float(model.nobs) if hasattr(model, "nobs") else None,
        cv_scores=cv_scores,
        cv_rmse=cv_rmse,
    )


def evaluate_predictions(
    y_true: pd.Series,
    y_pred: pd.Series,
    *,
    label: str | None = None,
) -> EvalMetrics:
    """Score predictions against observed values, skipping rows where either is missing."""
    y_true = pd.Series(y_true, dtype=float)
    y_pred = pd.Series(y_pred, index=y_true.index, dtype=float)
    mask = y_true.notna() & y_pred.notna()
    if not mask.any():
        raise ValueError("No rows with both an observed and a predicted value to evaluate.")
    y_true = y_true.loc[mask]
    y_pred = y_pred.loc[mask]
    return EvalMetrics(
        label=label,
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        mae=float(mean_absolute_error(y_true, y_pred)),
        r2=float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float("nan"),
        n_obs=float(len(y_true)),
    )


def compare_models(results: dict[str, RegressionResult]) -> pd.DataFrame:
    """Tabulate AIC/BIC, adj R² and RMSE for several fitted models (lower AIC first)."""
    rows = [
        {
            "model": name,
            "aic": res.metrics.aic,
            "bic": res.metrics.bic,
            "adj_r2": res.metrics.adj_r2,
            "rmse": res.metrics.rmse,
            "cv_rmse": res.metrics.cv_rmse,
            "n_params": len(res.exog_names),
        }
        for name, res in results.items()
    ]
    columns = ["model", "aic", "bic", "adj_r2", "rmse", "cv_rmse", "n_params"]
    return pd.DataFrame(rows, columns=columns).set_index("model").sort_values("aic")
