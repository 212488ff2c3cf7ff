from pathlib import Path

import numpy as np
import pandas as pd
import polars as pl
import pytest

DATA_BASE = Path(__file__).resolve().parents[1] / "examples" / "data"


def _load_dataset(name: str, as_polars: bool = True):
    data = pl.read_csv(DATA_BASE / f"{name}.csv")
    if not as_polars:
        data = data.to_pandas()
    return data


@pytest.fixture(scope="session")
def diamonds_data():
    """Small diamonds sample."""
    return _load_dataset("diamonds_small")


@pytest.fixture(scope="session")
def flights_data():
    """Small flights sample with cancelled flights (missing dep_time)."""
    return _load_dataset("flights_small")


@pytest.fixture(scope="session")
def clarity_frame():
    return pl.DataFrame({"clarity": ["A", "B", "A"]})


@pytest.fixture(scope="session")
def synthetic_group_frame():
    pdf = pd.DataFrame(
        {
            "group": ["a", "a", "b", "b", "b", "c", "c", "c", "c"],
            "value": [1.0, np.nan, 0.5, 0.5, 0.5, 3.0, 3.0, 3.0, np.nan],
        }
    )
    return pdf, pl.from_pandas(pdf, nan_to_null=False)


@pytest.fixture(scope="session")
def numeric_frame():
    return pl.DataFrame(
        {
            "id": [1, 2, 3, 4, 5, 6],
            "col": [3, 7, 5, 9, 1, 6],
            "score_a": [10, 12, 11, 9, 10, 12],
            "score_b": [8, 7, 6, 8, 9, 7],
            "g": ["x", "y", "x", "y", "x", "y"],
            "h": ["p", "p", "q", "q", "p", "q"],
        }
    )
