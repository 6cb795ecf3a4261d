"""Base column definitions and metadata structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ColumnKind(StrEnum):
    """Declared kind of a dataset column.

    Recipe steps select and validate columns by kind: continuous columns are
    real-valued, categorical columns draw from a finite set of levels.
    """

    CONTINUOUS = "continuous"
    CATEGORICAL = "categorical"


@dataclass(frozen=True)
class ColumnMetadata:
    """Metadata for a dataset column.

    Attributes:
        cleaned_name: Standardized column name used in DataFrames.
        dtype: Expected Python/pandas data type as a string.
        pretty_name: Human-readable name for reports.
        kind: Declared column kind used for recipe selectors.
    """

    original_name: str
    """Column name as it appears in the raw CSV file."""
    cleaned_name: str
    dtype: str
    pretty_name: str
    kind: ColumnKind = ColumnKind.CONTINUOUS


class BaseColumn(StrEnum):
    """Base class for dataset column enums.

    All derived column enums must define a TARGET member to specify
    the outcome variable for the dataset.

    Subclasses must implement:
    - metadata(): Return ColumnMetadata for each enum member
    - identifier_columns(): Return list of identifier column names
    """

    TARGET: str

    def metadata(self) -> ColumnMetadata:
        """Get metadata for this column.

        Returns:
            ColumnMetadata instance with original name, cleaned name, dtype, pretty name and kind.

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement metadata() method")

    @classmethod
    def identifier_columns(cls) -> list[str]:
        """Get identifier column names.

        Returns:
            List of identifier column names (never used as predictors).

        Raises:
            NotImplementedError: If not implemented by subclass.
        """
        raise NotImplementedError(f"{cls.__name__} must implement identifier_columns() method")

    @classmethod
    def columns_of_kind(cls, kind: ColumnKind) -> list[str]:
        """Get all non-identifier column names of the given kind."""
        identifiers = set(cls.identifier_columns())
        return [str(col) for col in cls if col.kind == kind and col not in identifiers]

    @classmethod
    def numeric_columns(cls) -> list[str]:
        """Get all continuous column names (target included)."""
        return cls.columns_of_kind(ColumnKind.CONTINUOUS)

    @classmethod
    def categorical_columns(cls) -> list[str]:
        """Get all categorical column names."""
        return cls.columns_of_kind(ColumnKind.CATEGORICAL)

    @classmethod
    def feature_columns(cls, *, exclude_target: bool = False) -> list[str]:
        """Get all feature column names.

        Args:
            exclude_target: If True, exclude the target from features.

        Returns:
            List of feature column names in enum order.
        """
        identifiers = set(cls.identifier_columns())
        features = [str(col) for col in cls if col not in identifiers]
        if exclude_target:
            features = list(filter(lambda f: f != cls.TARGET, features))
        return features

    @classmethod
    def declared_kinds(cls) -> dict[str, ColumnKind]:
        """Mapping from column name to declared kind for every member."""
        return {str(col): col.kind for col in cls}

    @property
    def pretty_name(self) -> str:
        """Get the human-readable name for reports."""
        return self.metadata().pretty_name

    @property
    def original_name(self) -> str:
        """Get the original column name from the CSV file."""
        return self.metadata().original_name

    @property
    def dtype_name(self) -> str:
        """Get the expected data type as a string."""
        return self.metadata().dtype

    @property
    def kind(self) -> ColumnKind:
        """Get the declared column kind."""
        return self.metadata().kind
