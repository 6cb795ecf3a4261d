"""Tests for OLS helpers and recipe-based models."""

import numpy as np
import pandas as pd
import pytest

from mkt_tlbx.analysis import (
    EvalMetrics,
    RecipeModel,
    compare_models,
    evaluate_predictions,
    fit_ols_design,
    fit_recipe_model,
)
from mkt_tlbx.analysis.ols_helper import compute_vif
from mkt_tlbx.recipes import Recipe, SchemaError, columns, declare


@pytest.fixture
def log_recipe() -> Recipe:
    """Log sales and spend, dummy encode channel and region."""
    return (
        declare("sales", ["spend", "spend_category", "region"])
        .add_step("log_transform", columns("sales", "spend"), offset=1)
        .add_step("dummy_encode")
    )


@pytest.fixture
def split(simulated_df: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Deterministic 90/30 split of the simulated frame."""
    return simulated_df.iloc[:90], simulated_df.iloc[90:]


class TestOlsHelper:
    """Test the OLS helper functions."""

    def test_fit_ols_design_recovers_coefficients(self) -> None:
        """Noise-free data is fitted exactly, intercept added first."""
        x = np.linspace(0.0, 10.0, 20)
        df = pd.DataFrame({"y": 2.0 + 3.0 * x, "x": x})
        result = fit_ols_design(df, target_col="y")
        assert result.exog_names == ["const", "x"]
        assert result.params["const"] == pytest.approx(2.0)
        assert result.params["x"] == pytest.approx(3.0)
        assert result.r2 == pytest.approx(1.0)

    def test_fit_ols_design_missing_target(self) -> None:
        """The target must be part of the design frame."""
        with pytest.raises(KeyError, match="Target column"):
            fit_ols_design(pd.DataFrame({"x": [1.0, 2.0]}), target_col="y")

    def test_cv_scores(self, simulated_df: pd.DataFrame) -> None:
        """CV RMSE is reported per fold."""
        result = fit_ols_design(simulated_df[["sales", "spend"]], target_col="sales", cv_folds=4)
        assert result.metrics.cv_scores is not None
        assert len(result.metrics.cv_scores) == 4
        assert result.metrics.cv_rmse == pytest.approx(np.mean(result.metrics.cv_scores))

    def test_compute_vif(self) -> None:
        """A single regressor has VIF 1; correlated regressors inflate it."""
        rng = np.random.default_rng(0)
        a = rng.normal(size=50)
        single = compute_vif(pd.DataFrame({"const": 1.0, "a": a}))
        assert single.to_dict() == {"a": 1.0}
        correlated = compute_vif(pd.DataFrame({"a": a, "b": a + rng.normal(scale=0.1, size=50)}))
        assert (correlated > 10).all()

    def test_evaluate_predictions_skips_missing(self) -> None:
        """Rows with a missing observation or prediction are ignored."""
        metrics = evaluate_predictions(
            pd.Series([1.0, 2.0, np.nan, 4.0]),
            pd.Series([1.0, 3.0, 5.0, 4.0]),
            label="holdout",
        )
        assert isinstance(metrics, EvalMetrics)
        assert metrics.n_obs == 3
        assert metrics.mae == pytest.approx(1 / 3)
        assert metrics.label == "holdout"

    def test_compare_models_sorted_by_aic(self, simulated_df: pd.DataFrame) -> None:
        """The comparison table is ordered by AIC."""
        logged = simulated_df.assign(spend=np.log(simulated_df["spend"] + 1))
        results = {
            "raw": fit_ols_design(simulated_df[["sales", "spend"]], target_col="sales"),
            "logged": fit_ols_design(logged[["sales", "spend"]], target_col="sales"),
        }
        table = compare_models(results)
        assert table.index.tolist()[0] == table["aic"].idxmin()
        assert set(table.index) == {"raw", "logged"}


class TestRecipeModel:
    """Test models fitted on recipe output."""

    def test_fit_recipe_model(self, log_recipe: Recipe, split) -> None:
        """The recipe is prepared on training data and the design follows its output."""
        train, _ = split
        model = fit_recipe_model(log_recipe, train)
        assert isinstance(model, RecipeModel)
        assert model.recipe.is_prepared
        assert not log_recipe.is_prepared
        assert model.result.exog_names == ["const", *model.recipe.output_columns(include_outcome=False)]
        assert model.params["spend"] == pytest.approx(0.3, abs=0.05)

    def test_prepared_recipe_is_reused(self, log_recipe: Recipe, split) -> None:
        """An already prepared recipe is not prepared again."""
        train, _ = split
        prepared = log_recipe.prepare(train)
        model = fit_recipe_model(prepared, train)
        assert model.recipe is prepared

    def test_predict_original_scale(self, log_recipe: Recipe, split) -> None:
        """Predictions on the original scale undo the outcome log."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        logged = model.predict(test)
        original = model.predict(test, original_scale=True)
        assert original.index.equals(test.index)
        assert np.allclose(original, np.exp(logged) - 1)
        assert (original > 0).all()

    def test_predict_without_outcome(self, log_recipe: Recipe, split) -> None:
        """Prediction-time data does not need the outcome column."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        pred = model.predict(test.drop(columns=["sales"]))
        assert len(pred) == len(test)

    def test_evaluate(self, log_recipe: Recipe, split) -> None:
        """Holdout metrics are computed on both scales."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        on_model_scale = model.evaluate(test, label="test")
        on_original_scale = model.evaluate(test, label="test", original_scale=True)
        assert on_model_scale.n_obs == len(test)
        assert on_model_scale.r2 > 0.5
        assert on_original_scale.rmse > on_model_scale.rmse

    def test_evaluate_without_outcome_raises(self, log_recipe: Recipe, split) -> None:
        """Evaluation needs observed outcomes."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        with pytest.raises(SchemaError):
            model.evaluate(test.drop(columns=["sales"]))

    def test_unseen_level_at_prediction(self, log_recipe: Recipe, split) -> None:
        """Unseen channels fall back to the baseline without new columns."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        unseen = test.assign(spend_category="podcast")
        baseline = test.assign(spend_category="digital")
        pd.testing.assert_series_equal(model.predict(unseen), model.predict(baseline))

    def test_predict_scenarios(self, log_recipe: Recipe, split) -> None:
        """Counterfactual spend changes move predictions in the fitted direction."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        before = test.copy()
        scenarios = model.predict_scenarios(
            test,
            {
                "double_spend": {"spend": lambda d: d["spend"] * 2},
                "all_tv": {"spend_category": "tv"},
            },
        )
        assert list(scenarios.columns) == ["baseline", "double_spend", "all_tv"]
        assert (scenarios["double_spend"] >= scenarios["baseline"]).all()
        pd.testing.assert_frame_equal(test, before)

    def test_scenario_validation(self, log_recipe: Recipe, split) -> None:
        """Scenarios may only override predictors and not reuse 'baseline'."""
        train, test = split
        model = fit_recipe_model(log_recipe, train)
        with pytest.raises(SchemaError):
            model.predict_scenarios(test, {"bad": {"sales": 1.0}})
        with pytest.raises(ValueError, match="reserved"):
            model.predict_scenarios(test, {"baseline": {"spend": 1.0}})

    def test_missing_rows_are_dropped(self, split, caplog: pytest.LogCaptureFixture) -> None:
        """Training rows with missing values are dropped with a warning."""
        train, _ = split
        train = train.copy()
        train.loc[train.index[0], "spend"] = np.nan
        recipe = declare("sales", ["spend"]).add_step("log_transform", "spend", offset=1)
        with caplog.at_level("WARNING", logger="mkt_tlbx"):
            model = fit_recipe_model(recipe, train)
        assert model.result.metrics.n_obs == len(train) - 1
        assert "Dropping 1 training row" in caplog.text
