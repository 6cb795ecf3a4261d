"""Base dataset class for all dataset implementations."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd


if TYPE_CHECKING:
    from mkt_tlbx.recipes import Recipe
    from mkt_tlbx.utils.recipe_config import RecipeConfig

from .base_columns import BaseColumn, ColumnKind
from .schema import ColumnSchema
from .utils import split_train_test


class BaseDataset(ABC):
    """Abstract base class for dataset handlers used throughout the toolbox."""

    Col: type[BaseColumn]

    def __init__(self, df: pd.DataFrame | None = None) -> None:
        """Initialize the base dataset.

        Args:
            df: Pre-loaded and cleaned DataFrame (optional)
        """
        self._df: pd.DataFrame | None = df

    @classmethod
    @abstractmethod
    def from_csv(cls, filepath: str | Path, **kwargs: object) -> "BaseDataset":
        """Load dataset from CSV file.

        Args:
            filepath: Path to the CSV file
            **kwargs: Additional loading parameters

        Returns:
            Dataset instance with loaded data
        """
        ...

    @property
    def df(self) -> pd.DataFrame:
        """Get the raw/cleaned DataFrame.

        Returns:
            The raw DataFrame

        Raises:
            ValueError: If dataset not loaded
        """
        if self._df is None:
            raise ValueError("Dataset not loaded. Use from_csv() to load data.")
        return self._df

    @property
    def df_pretty(self) -> pd.DataFrame:
        """Get the DataFrame with pretty column names."""
        return self.df.rename(columns={col: self.get_pretty_name(col) for col in self.df.columns})

    @property
    def schema(self) -> ColumnSchema:
        """Column schema using the kinds declared on :attr:`Col` where available."""
        declared = self.Col.declared_kinds()
        return ColumnSchema.from_frame(
            self.df,
            kinds={col: kind for col, kind in declared.items() if col in self.df.columns},
        )

    @property
    def numeric_cols(self) -> list[str]:
        """Continuous columns present in the data (identifiers excluded)."""
        return [col for col in self.schema.select(ColumnKind.CONTINUOUS) if col not in self.Col.identifier_columns()]

    @property
    def categorical_cols(self) -> list[str]:
        """Categorical columns present in the data (identifiers excluded)."""
        return [col for col in self.schema.select(ColumnKind.CATEGORICAL) if col not in self.Col.identifier_columns()]

    def get_pretty_names(self, column_names: list[str] | None = None) -> list[str]:
        """Convert multiple column names to pretty names.

        Args:
            column_names: List of cleaned column names

        Returns:
            List of pretty names suitable for report labels
        """
        return [self.get_pretty_name(name) for name in column_names or self.df.columns.to_list()]

    def get_pretty_name(self, column_name: str) -> str:
        """Convert column name to pretty name for reports.

        Args:
            column_name: The cleaned column name

        Returns:
            Pretty name suitable for labels and titles
        """
        try:
            col_enum = self.Col(column_name)
        except ValueError:
            # Fallback: capitalize and replace underscores if not in enum
            return column_name.replace("_", " ").title()
        else:
            return str(col_enum.pretty_name)

    def feature_columns(
        self,
        extra_exclude: Iterable[str] | None = None,
    ) -> list[str]:
        """Return predictor columns present in the data (identifiers and target excluded)."""
        exclude = set(self.Col.identifier_columns())
        if extra_exclude:
            exclude.update(extra_exclude)
        exclude.add(self.Col.TARGET)
        return [col for col in self.df.columns if col not in exclude]

    def split(
        self,
        *,
        test_size: float = 0.25,
        random_state: int | None = None,
        stratify_by: str | None = None,
    ) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Split the data into training and testing frames.

        See :func:`mkt_tlbx.data.utils.split_train_test`.
        """
        return split_train_test(
            self.df,
            test_size=test_size,
            random_state=random_state,
            stratify_by=stratify_by,
        )

    def make_recipe(
        self,
        predictors: Iterable[str] | None = None,
        *,
        config: "RecipeConfig | None" = None,
    ) -> "Recipe":
        """Declare an unprepared recipe for this dataset's target.

        Column kinds declared on :attr:`Col` are passed on, so selectors such as
        ``all_categorical()`` follow the dataset definition rather than dtypes.

        Args:
            predictors: Predictor columns (defaults to :meth:`feature_columns`).
            config: Step defaults for the recipe.

        Example:
            >>> from mkt_tlbx.data import MarketingDataset, MktCol
            >>> ds = MarketingDataset.from_csv()
            >>> train, test = ds.split(test_size=0.25, random_state=1)
            >>> recipe = (
            ...     ds.make_recipe([MktCol.SPEND, MktCol.SPEND_CATEGORY])
            ...     .add_step("log_transform", MktCol.SPEND, offset=1)
            ...     .add_step("dummy_encode")
            ...     .prepare(train)
            ... )
            >>> recipe.apply(test).columns.tolist()
        """
        from mkt_tlbx.recipes import Recipe

        chosen = list(predictors) if predictors is not None else self.feature_columns()
        declared = self.Col.declared_kinds()
        return Recipe.declare(
            str(self.Col.TARGET),
            [str(col) for col in chosen],
            kinds={col: declared[col] for col in [str(self.Col.TARGET), *map(str, chosen)] if col in declared},
            config=config,
        )
