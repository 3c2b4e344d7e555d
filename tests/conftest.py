"""Shared fixtures for the housetree test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from housetree.dataset import Dataset

# Ten houses, three features, a 5/5 binary price bucket driven by lot area.
HOUSE_CSV_TEXT = """LotArea,OverallQual,YearBuilt,PriceBucket
1200,4,1950,0
1500,5,1962,0
1700,5,1971,0
2100,6,1958,0
2300,4,1980,0
5200,7,1999,1
5600,8,2003,1
6100,7,2007,1
6800,9,2010,1
7400,8,2015,1
"""


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes text to a file under `tmp_path`.

    Args:
        tmp_path (Path): Pytest temporary directory.

    Returns:
        Callable[[str, str], Path]: `write(name, text) -> path`.
    """

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def house_csv(write_csv: Callable[[str, str], Path]) -> Path:
    """A 10-row house table with 3 feature columns and a balanced binary label.

    Args:
        write_csv (Callable[[str, str], Path]): File-writing helper.

    Returns:
        Path: The CSV file.
    """
    return write_csv("houses.csv", HOUSE_CSV_TEXT)


@pytest.fixture
def house_dataset() -> Dataset:
    """The house table of `house_csv` as an in-memory Dataset.

    Returns:
        Dataset: 10 rows, 3 features, labels 0/1.
    """
    rows = np.array([[float(field) for field in line.split(",")] for line in HOUSE_CSV_TEXT.splitlines()[1:]])
    return Dataset(
        features=rows[:, :3],
        labels=rows[:, 3].astype(np.int64),
        feature_names=("LotArea", "OverallQual", "YearBuilt"),
        indices=np.arange(10, dtype=np.int64),
        target_name="PriceBucket",
    )
