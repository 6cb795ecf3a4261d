"""Column schema snapshots taken from dataset content."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

import pandas as pd

from mkt_tlbx.errors import SchemaError

from .base_columns import ColumnKind


def infer_kind(series: pd.Series) -> ColumnKind:
    """Infer the column kind from a Series dtype.

    Numeric, non-boolean dtypes are continuous; booleans, strings, objects and
    pandas categoricals are categorical.
    """
    if pd.api.types.is_bool_dtype(series) or not pd.api.types.is_numeric_dtype(series):
        return ColumnKind.CATEGORICAL
    return ColumnKind.CONTINUOUS


@dataclass(frozen=True)
class ColumnSchema:
    """Immutable snapshot of ordered column names and their kinds.

    Attributes:
        columns: Ordered column names.
        kinds: Mapping from column name to its declared or inferred kind.
    """

    columns: tuple[str, ...]
    """Ordered column names."""
    kinds: Mapping[str, ColumnKind]
    """Read-only mapping from column name to kind."""

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        columns: list[str] | tuple[str, ...] | None = None,
        kinds: Mapping[str, ColumnKind | str] | None = None,
    ) -> "ColumnSchema":
        """Build a schema from a DataFrame.

        Args:
            df: Source frame (only its dtypes are read).
            columns: Optional subset of columns; output keeps the frame's column order.
            kinds: Explicit kinds overriding dtype inference.

        Returns:
            ColumnSchema over the selected columns.

        Raises:
            SchemaError: If a requested column is absent or a column name is duplicated.
        """
        duplicated = df.columns[df.columns.duplicated()].unique().tolist()
        if duplicated:
            raise SchemaError("Dataset has duplicated column names.", columns=map(str, duplicated))

        if columns is None:
            selected = [str(col) for col in df.columns]
        else:
            missing = [col for col in columns if col not in df.columns]
            if missing:
                raise SchemaError("Dataset is missing required columns.", columns=missing)
            wanted = set(columns)
            selected = [str(col) for col in df.columns if col in wanted]

        overrides = {col: ColumnKind(kind) for col, kind in (kinds or {}).items()}
        resolved = {col: overrides.get(col, infer_kind(df[col])) for col in selected}
        return cls(columns=tuple(selected), kinds=MappingProxyType(resolved))

    def kind_of(self, column: str) -> ColumnKind:
        """Return the kind of ``column``.

        Raises:
            SchemaError: If the column is not part of the schema.
        """
        try:
            return self.kinds[column]
        except KeyError:
            raise SchemaError("Column is not part of the schema.", columns=[column]) from None

    def select(self, kind: ColumnKind | str) -> list[str]:
        """Return the columns of ``kind`` in schema order."""
        kind = ColumnKind(kind)
        return [col for col in self.columns if self.kinds[col] == kind]

    def __contains__(self, column: object) -> bool:
        return column in self.kinds

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)
