"""Test configuration for the marketing toolbox."""

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest


# Ensure the local package is importable when the repo isn't installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def train_df() -> pd.DataFrame:
    """Small reference frame: positive sales, non-negative spend, three channels."""
    return pd.DataFrame(
        {
            "sales": [100.0, 150.0, 120.0, 200.0],
            "spend": [10.0, 0.0, 5.0, 20.0],
            "spend_category": ["tv", "digital", "radio", "tv"],
        },
    )


@pytest.fixture
def test_df() -> pd.DataFrame:
    """Holdout frame with the same schema as :func:`train_df`."""
    return pd.DataFrame(
        {
            "sales": [130.0, 90.0],
            "spend": [8.0, 2.0],
            "spend_category": ["radio", "tv"],
        },
    )


@pytest.fixture
def simulated_df() -> pd.DataFrame:
    """Larger simulated frame with a log-linear spend effect and channel shifts."""
    rng = np.random.default_rng(42)
    n = 120
    spend = rng.uniform(0.0, 50.0, size=n)
    category = rng.choice(["digital", "print", "radio", "tv"], size=n)
    region = rng.choice(["north", "south", "west"], size=n)
    shift = pd.Series(category).map({"digital": 0.1, "print": -0.1, "radio": 0.0, "tv": 0.25}).to_numpy()
    log_sales = 5.0 + 0.3 * np.log(spend + 1.0) + shift + rng.normal(0.0, 0.05, size=n)
    return pd.DataFrame(
        {
            "week": np.arange(1, n + 1),
            "region": region,
            "spend_category": category,
            "spend": spend,
            "sales": np.exp(log_sales),
        },
    )


@pytest.fixture(scope="session")
def marketing_dataset():
    """Load the bundled marketing dataset once per test session."""
    from mkt_tlbx.data import MarketingDataset

    return MarketingDataset.from_csv()
