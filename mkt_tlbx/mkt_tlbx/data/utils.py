"""Utility helpers for splitting datasets before recipe preparation."""

from __future__ import annotations

import pandas as pd
from sklearn.model_selection import train_test_split


def split_train_test(
    df: pd.DataFrame,
    *,
    test_size: float = 0.25,
    random_state: int | None = None,
    stratify_by: str | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split ``df`` into a training (reference) frame and a testing frame.

    Recipes are prepared on the training frame only; the testing frame is
    transformed with the parameters learned there.

    Args:
        df: Full dataset.
        test_size: Fraction of rows held out for testing (0 < test_size < 1).
        random_state: Seed for a reproducible split.
        stratify_by: Optional categorical column whose level proportions are kept in both parts.

    Returns:
        ``(train_df, test_df)``, both keeping the original index labels.

    Raises:
        ValueError: If ``test_size`` is out of range or ``stratify_by`` is not a column.
    """
    if not 0 < test_size < 1:
        raise ValueError(f"test_size must be in (0, 1), got {test_size}.")
    if stratify_by is not None and stratify_by not in df.columns:
        raise ValueError(f"Stratification column '{stratify_by}' not found.")

    train_df, test_df = train_test_split(
        df,
        test_size=test_size,
        random_state=random_state,
        stratify=df[stratify_by] if stratify_by is not None else None,
    )
    return train_df, test_df
