"""Dataset class for the weekly marketing spend data."""

from pathlib import Path

import pandas as pd

from mkt_tlbx.utils.paths import get_dataset_path

from .base_dataset import BaseDataset
from .marketing_columns import MarketingColumn as Col


class MarketingDataset(BaseDataset):
    """Loading and type conversion for the bundled weekly marketing spend data.

    Each row is one week in one region: units sold, marketing spend and the
    channel the spend went to.

    **Example workflow**:
    >>> from mkt_tlbx.data import MarketingDataset, MktCol
    >>> from mkt_tlbx.analysis import fit_recipe_model
    >>> ds = MarketingDataset.from_csv()
    >>> train, test = ds.split(test_size=0.25, random_state=7)
    >>> recipe = (
    ...     ds.make_recipe([MktCol.SPEND, MktCol.SPEND_CATEGORY, MktCol.REGION])
    ...     .add_step("log_transform", [MktCol.SALES, MktCol.SPEND], offset=1)
    ...     .add_step("dummy_encode")
    ... )
    >>> model = fit_recipe_model(recipe, train)
    >>> model.evaluate(test, original_scale=True)
    """

    Col = Col

    @classmethod
    def from_csv(
        cls,
        *,
        csv_path: str | Path | None = None,
        drop_missing_target: bool = True,
    ) -> "MarketingDataset":
        """Load and preprocess the marketing dataset from a CSV file.

        - Normalize column names
        - Convert data types (channel and region become pandas categoricals)

        Args:
            csv_path: Path to the CSV file (defaults to the bundled ``marketing.csv``)
            drop_missing_target: If True, drop rows with missing sales values

        Returns:
            MarketingDataset instance with loaded and cleaned data
        """
        csv_path = get_dataset_path("marketing") if csv_path is None else Path(csv_path)

        mkt_df = pd.read_csv(csv_path).pipe(cls._normalize_col_names).pipe(cls._convert_data_types)

        if drop_missing_target:
            mkt_df = mkt_df.dropna(subset=[Col.TARGET])

        return cls(df=mkt_df.reset_index(drop=True))

    @staticmethod
    def _normalize_col_names(df: pd.DataFrame) -> pd.DataFrame:
        """Standardize column names to match MarketingColumn enum.

        Strip whitespace, convert to lowercase, replace spaces/slashes/hyphens with underscores, collapse multiple underscores
        """
        return df.set_axis(
            df.columns.str.strip()
            .str.lower()
            .str.replace(r"[\s/\-]+", "_", regex=True)
            .str.replace(r"_+", "_", regex=True),
            axis=1,
        )

    @staticmethod
    def _convert_data_types(df: pd.DataFrame) -> pd.DataFrame:
        """Set appropriate data types for each col.

        Categorical levels are stripped and lower-cased so that ``"TV "`` and
        ``"tv"`` end up as the same level.
        """
        categorical_cols = [col for col in Col.categorical_columns() if col in df.columns]
        numeric_cols = df.columns.difference(categorical_cols)

        converted = df.assign(
            **{col: df[col].astype(str).str.strip().str.lower().where(df[col].notna()) for col in categorical_cols},
        )
        return converted.assign(
            **{col: converted[col].astype("category") for col in categorical_cols},
            **{col: pd.to_numeric(converted[col], errors="coerce") for col in numeric_cols},
        )
