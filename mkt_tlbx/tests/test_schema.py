"""Tests for column schemas and selectors."""

import pandas as pd
import pytest

from mkt_tlbx.data import ColumnKind, ColumnSchema
from mkt_tlbx.data.schema import infer_kind
from mkt_tlbx.recipes import ByKind, ExplicitColumns, SchemaError, all_categorical, all_continuous, columns
from mkt_tlbx.recipes.selectors import as_selector


class TestInferKind:
    """Test dtype-based kind inference."""

    @pytest.mark.parametrize(
        ("series", "expected"),
        [
            (pd.Series([1.0, 2.0]), ColumnKind.CONTINUOUS),
            (pd.Series([1, 2]), ColumnKind.CONTINUOUS),
            (pd.Series(["a", "b"]), ColumnKind.CATEGORICAL),
            (pd.Series(["a", "b"], dtype="category"), ColumnKind.CATEGORICAL),
            (pd.Series([True, False]), ColumnKind.CATEGORICAL),
        ],
    )
    def test_infer_kind(self, series: pd.Series, expected: ColumnKind) -> None:
        """Numeric non-boolean dtypes are continuous, everything else categorical."""
        assert infer_kind(series) == expected


class TestColumnSchema:
    """Test ColumnSchema snapshots."""

    def test_from_frame_keeps_frame_order(self, train_df: pd.DataFrame) -> None:
        """Selected columns keep the order they have in the frame."""
        schema = ColumnSchema.from_frame(train_df, columns=["spend_category", "sales"])
        assert schema.columns == ("sales", "spend_category")
        assert schema.kind_of("spend_category") == ColumnKind.CATEGORICAL

    def test_kind_overrides(self, train_df: pd.DataFrame) -> None:
        """Explicit kinds win over inference."""
        schema = ColumnSchema.from_frame(train_df, kinds={"spend": "categorical"})
        assert schema.select(ColumnKind.CATEGORICAL) == ["spend", "spend_category"]
        assert schema.select("continuous") == ["sales"]

    def test_missing_column_raises(self, train_df: pd.DataFrame) -> None:
        """Requested columns must exist."""
        with pytest.raises(SchemaError) as excinfo:
            ColumnSchema.from_frame(train_df, columns=["sales", "region"])
        assert excinfo.value.columns == ("region",)

    def test_duplicated_columns_raise(self) -> None:
        """Duplicated column names are ambiguous."""
        df = pd.DataFrame([[1.0, 2.0]], columns=["spend", "spend"])
        with pytest.raises(SchemaError, match="duplicated"):
            ColumnSchema.from_frame(df)

    def test_unknown_column_kind_raises(self, train_df: pd.DataFrame) -> None:
        """Asking for a column outside the schema fails."""
        schema = ColumnSchema.from_frame(train_df)
        with pytest.raises(SchemaError):
            schema.kind_of("region")

    def test_container_protocol(self, train_df: pd.DataFrame) -> None:
        """Schemas support membership, iteration and len."""
        schema = ColumnSchema.from_frame(train_df)
        assert "spend" in schema
        assert "region" not in schema
        assert list(schema) == ["sales", "spend", "spend_category"]
        assert len(schema) == 3

    def test_schema_is_frozen(self, train_df: pd.DataFrame) -> None:
        """Neither the schema nor its kinds can be changed."""
        schema = ColumnSchema.from_frame(train_df)
        with pytest.raises(AttributeError):
            schema.columns = ()  # type: ignore[misc]
        with pytest.raises(TypeError):
            schema.kinds["spend"] = ColumnKind.CATEGORICAL  # type: ignore[index]


class TestSelectors:
    """Test selector resolution."""

    @pytest.fixture
    def schema(self, train_df: pd.DataFrame) -> ColumnSchema:
        """Schema of the small reference frame."""
        return ColumnSchema.from_frame(train_df)

    def test_explicit_columns(self, schema: ColumnSchema) -> None:
        """Explicit names resolve in the given order without duplicates."""
        selector = ExplicitColumns(("spend", "sales", "spend"))
        assert selector.resolve(schema, "sales", ("spend", "spend_category")) == ("spend", "sales")

    def test_explicit_columns_empty_raises(self) -> None:
        """At least one name is required."""
        with pytest.raises(SchemaError):
            columns()

    def test_explicit_undeclared_raises(self, schema: ColumnSchema) -> None:
        """Names outside the declaration are rejected even if present in the data."""
        with pytest.raises(SchemaError) as excinfo:
            columns("spend_category").resolve(schema, "sales", ("spend",))
        assert excinfo.value.columns == ("spend_category",)

    def test_by_kind_selects_predictors(self, schema: ColumnSchema) -> None:
        """Kind selectors skip the outcome unless asked to include it."""
        predictors = ("spend", "spend_category")
        assert all_continuous().resolve(schema, "sales", predictors) == ("spend",)
        assert all_continuous(include_outcome=True).resolve(schema, "sales", predictors) == ("sales", "spend")
        assert all_categorical().resolve(schema, "sales", predictors) == ("spend_category",)

    def test_by_kind_from_string(self) -> None:
        """Kinds can be given by value."""
        assert ByKind("categorical").kind is ColumnKind.CATEGORICAL

    def test_describe(self) -> None:
        """Descriptions are short and readable."""
        assert columns("spend", "sales").describe() == "spend, sales"
        assert all_categorical(include_outcome=True).describe() == "all categorical variables"

    def test_as_selector(self) -> None:
        """Strings and iterables are coerced into explicit selectors."""
        assert as_selector("spend") == columns("spend")
        assert as_selector(["spend", "sales"]) == columns("spend", "sales")
        selector = all_continuous()
        assert as_selector(selector) is selector
