"""Data module for dataset classes."""

from .base_columns import ColumnKind
from .marketing_columns import MarketingColumn as MktCol
from .marketing_dataset import MarketingDataset
from .schema import ColumnSchema
from .utils import split_train_test


__all__ = ["ColumnKind", "ColumnSchema", "MarketingDataset", "MktCol", "split_train_test"]
