from dataclasses import asdict, dataclass, field

import pandas as pd

from ..recipes import Recipe
from .ols_helper import EvalMetrics, MetricsResult
from .recipe_model import RecipeModel, fit_recipe_model


@dataclass
class ModelEntry:
    """Typed model registry entry for reporting workflows."""

    name: str
    model: RecipeModel
    eval_metrics: EvalMetrics | None = None

    @property
    def formula(self) -> str:
        return self.model.recipe.formula

    @property
    def steps(self) -> str:
        """Compact description of the recipe steps, e.g. ``log_transform(sales, spend) > dummy_encode(region)``."""
        return " > ".join(f"{step.kind}({', '.join(step.columns or ())})" for step in self.model.recipe.steps)

    @property
    def metrics(self) -> MetricsResult:
        return self.model.result.metrics


@dataclass
class ModelRegistry:
    """Registry to cache recipe-based models and compare their diagnostics.

    Candidate recipes differ in their steps (e.g. raw vs. logged spend); each
    is prepared on the same training frame and compared on the same holdout.
    """

    models: dict[str, ModelEntry] = field(default_factory=dict)

    def add(self, entry: ModelEntry, *, overwrite: bool = False) -> None:
        """Add an entry to the registry (optionally overwriting by name)."""
        name = entry.name
        if name in self.models and not overwrite:
            raise KeyError(f"Model '{name}' already exists in registry.")
        self.models[name] = entry

    def get(self, name: str) -> ModelEntry:
        """Retrieve a model entry by name."""
        if name not in self.models:
            raise KeyError(f"Unknown model '{name}'.")
        return self.models[name]

    def fit(
        self,
        recipe: Recipe,
        train_df: pd.DataFrame,
        *,
        name: str | None = None,
        cv_folds: int | None = None,
        shuffle_cv: bool = False,
        random_state: int | None = None,
        refit: bool = False,
    ) -> RecipeModel:
        """Prepare a recipe, fit OLS on its output and cache it by name.

        Args:
            recipe: Unprepared recipe (or one prepared on ``train_df``).
            train_df: Training data including all predictors and the outcome.
            name: Unique name for the model in the registry.
            cv_folds: Number of CV folds for metrics (if None, no CV).
            shuffle_cv: Whether to shuffle data before CV splitting.
            random_state: Random state for reproducibility.
            refit: If True, refit even if model with `name` exists.
        """
        name = name or f"model_{len(self.models) + 1}"
        if name in self.models and not refit:
            return self.models[name].model

        model = fit_recipe_model(
            recipe,
            train_df,
            cv_folds=cv_folds,
            shuffle_cv=shuffle_cv,
            random_state=random_state,
        )
        self.add(ModelEntry(name=name, model=model), overwrite=True)
        return model

    def evaluate_on(
        self,
        name: str,
        df: pd.DataFrame,
        *,
        label: str = "test",
        original_scale: bool = False,
    ) -> EvalMetrics:
        """Evaluate a registered model on new data and cache the results.

        Args:
            name: Name of the registered model to evaluate.
            df: Evaluation data including all predictors and the outcome.
            label: Prefix for the evaluation columns in :meth:`compare`.
            original_scale: Compare in raw outcome units instead of the modelled scale.
        """
        entry = self.get(name)
        metrics = entry.model.evaluate(df, label=label, original_scale=original_scale)
        entry.eval_metrics = metrics
        return metrics

    def compare(self, *, sort_by: str = "aic") -> pd.DataFrame:
        """Return a comparison table for all cached models."""
        rows = []
        for entry in self.models.values():
            row = {"model": entry.name, "formula": entry.formula, "steps": entry.steps}
            row.update({key: value for key, value in asdict(entry.metrics).items() if key != "cv_scores"})
            if entry.eval_metrics is not None:
                prefix = entry.eval_metrics.label or "eval"
                row.update(
                    {
                        f"{prefix}_rmse": entry.eval_metrics.rmse,
                        f"{prefix}_mae": entry.eval_metrics.mae,
                        f"{prefix}_r2": entry.eval_metrics.r2,
                        f"{prefix}_n_obs": entry.eval_metrics.n_obs,
                    },
                )
            rows.append(row)
        df = pd.DataFrame(rows).set_index("model")
        if sort_by in df.columns:
            return df.sort_values(sort_by)
        return df

    def __iter__(self):
        return iter(self.models.values())

    def __len__(self) -> int:
        return len(self.models)
