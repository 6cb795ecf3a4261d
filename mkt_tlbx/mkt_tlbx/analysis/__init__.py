"""Analysis modules for fitting and comparing models on recipe output."""

from .model_registry import ModelEntry, ModelRegistry
from .ols_helper import (
    EvalMetrics,
    MetricsResult,
    RegressionResult,
    compare_models,
    evaluate_predictions,
    fit_ols_design,
)
from .recipe_model import RecipeModel, fit_recipe_model


__all__ = [
    "EvalMetrics",
    "MetricsResult",
    "ModelEntry",
    "ModelRegistry",
    "RecipeModel",
    "RegressionResult",
    "compare_models",
    "evaluate_predictions",
    "fit_ols_design",
    "fit_recipe_model",
]
