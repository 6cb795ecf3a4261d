"""Column definitions for the weekly marketing spend dataset."""

from .base_columns import BaseColumn, ColumnKind, ColumnMetadata


class MarketingColumn(BaseColumn):
    """Column names for the bundled weekly marketing spend dataset.

    Columns:
    - ``week``: int - Week number of the observation
    - ``sales``: float - Units sold in the week (target variable)
    - ``spend``: float - Marketing spend in the week (thousand USD)
    - ``spend_category``: category - Channel the spend went to (digital, print, radio, tv)
    - ``region``: category - Sales region (north, south, west)
    """

    # Target variable
    TARGET = "sales"
    """Units sold in the week (target variable)."""
    SALES = TARGET

    # Identifiers
    WEEK = "week"
    """Week number of the observation."""

    # Spend
    SPEND = "spend"
    """Marketing spend in the week (thousand USD)."""
    SPEND_CATEGORY = "spend_category"
    """Channel the spend went to."""

    # Market
    REGION = "region"
    """Sales region."""

    def metadata(self) -> ColumnMetadata:
        """Get metadata for this column.

        Returns:
            ColumnMetadata instance with original name, cleaned name, dtype, pretty name and kind.
        """
        return _COLUMN_METADATA_MARKETING[self]

    @classmethod
    def identifier_columns(cls) -> list[str]:
        """Get identifier column names.

        Returns:
            List of identifier column names (week).
        """
        return [cls.WEEK]


_COLUMN_METADATA_MARKETING: dict[MarketingColumn, ColumnMetadata] = {
    MarketingColumn.WEEK: ColumnMetadata(
        original_name="Week",
        cleaned_name="week",
        dtype="int64",
        pretty_name="Week",
    ),
    MarketingColumn.TARGET: ColumnMetadata(
        original_name="Sales",
        cleaned_name="sales",
        dtype="float64",
        pretty_name="Sales (units)",
    ),
    MarketingColumn.SPEND: ColumnMetadata(
        original_name="Spend",
        cleaned_name="spend",
        dtype="float64",
        pretty_name="Marketing Spend (kUSD)",
    ),
    MarketingColumn.SPEND_CATEGORY: ColumnMetadata(
        original_name="Spend Category",
        cleaned_name="spend_category",
        dtype="category",
        pretty_name="Spend Category",
        kind=ColumnKind.CATEGORICAL,
    ),
    MarketingColumn.REGION: ColumnMetadata(
        original_name="Region",
        cleaned_name="region",
        dtype="category",
        pretty_name="Region",
        kind=ColumnKind.CATEGORICAL,
    ),
}
