"""Tests for column definition modules."""

import pytest

from mkt_tlbx.data import ColumnKind, MktCol
from mkt_tlbx.data.base_columns import ColumnMetadata


class TestColumnMetadata:
    """Test ColumnMetadata dataclass."""

    def test_column_metadata_creation(self) -> None:
        """Test creating column metadata; kind defaults to continuous."""
        metadata = ColumnMetadata(
            original_name="Test Name",
            cleaned_name="test_name",
            dtype="float64",
            pretty_name="Test Name (units)",
        )
        assert metadata.original_name == "Test Name"
        assert metadata.cleaned_name == "test_name"
        assert metadata.kind == ColumnKind.CONTINUOUS

    def test_column_metadata_is_frozen(self) -> None:
        """Test that ColumnMetadata is immutable."""
        metadata = ColumnMetadata(
            original_name="Test",
            cleaned_name="test",
            dtype="str",
            pretty_name="Test",
        )
        with pytest.raises(AttributeError):
            metadata.kind = ColumnKind.CATEGORICAL  # type: ignore[misc]


class TestMarketingColumn:
    """Test MarketingColumn enum."""

    def test_target_column_exists(self) -> None:
        """TARGET and SALES name the same column."""
        assert MktCol.TARGET.value == "sales"
        assert MktCol.SALES is MktCol.TARGET

    def test_enum_values_are_snake_case(self) -> None:
        """All enum values are valid snake_case identifiers."""
        for col in MktCol:
            assert col.value.islower()
            assert col.value.isidentifier()

    def test_metadata_access(self) -> None:
        """Metadata is available for every member."""
        metadata = MktCol.SPEND_CATEGORY.metadata()
        assert metadata.cleaned_name == "spend_category"
        assert metadata.original_name == "Spend Category"
        assert metadata.dtype == "category"

    def test_pretty_name_property(self) -> None:
        """Pretty names are meant for report labels."""
        assert MktCol.SPEND.pretty_name == "Marketing Spend (kUSD)"
        assert MktCol.SALES.pretty_name == "Sales (units)"

    def test_kinds(self) -> None:
        """Channel and region are declared categorical."""
        assert MktCol.SPEND.kind == ColumnKind.CONTINUOUS
        assert MktCol.REGION.kind == ColumnKind.CATEGORICAL
        assert MktCol.declared_kinds() == {
            "sales": ColumnKind.CONTINUOUS,
            "week": ColumnKind.CONTINUOUS,
            "spend": ColumnKind.CONTINUOUS,
            "spend_category": ColumnKind.CATEGORICAL,
            "region": ColumnKind.CATEGORICAL,
        }

    def test_numeric_and_categorical_columns(self) -> None:
        """Identifier columns are excluded from both groups."""
        assert MktCol.numeric_columns() == ["sales", "spend"]
        assert MktCol.categorical_columns() == ["spend_category", "region"]

    def test_feature_columns(self) -> None:
        """Feature columns exclude identifiers and optionally the target."""
        assert MktCol.feature_columns() == ["sales", "spend", "spend_category", "region"]
        assert MktCol.feature_columns(exclude_target=True) == ["spend", "spend_category", "region"]

    def test_identifier_columns(self) -> None:
        """Week identifies an observation and is never a predictor."""
        assert MktCol.identifier_columns() == ["week"]
