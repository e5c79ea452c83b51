"""Core fixtures for edge-list generation tests."""

import numpy as np
import pandas as pd
import pytest

from tests.helpers import make_relocations


@pytest.fixture
def pair_close() -> pd.DataFrame:
    """Two entities 50 units apart in one timegroup."""
    return make_relocations([("A", 0.0, 0.0), ("B", 30.0, 40.0)])


@pytest.fixture
def pair_far() -> pd.DataFrame:
    """Two entities 150 units apart in one timegroup."""
    return make_relocations([("A", 0.0, 0.0), ("B", 90.0, 120.0)])


@pytest.fixture
def herds() -> pd.DataFrame:
    """Three entities split by herd into a pair and a singleton."""
    return make_relocations(
        [("A", 0.0, 0.0), ("B", 30.0, 40.0), ("C", 10.0, 10.0)],
        herd=["north", "north", "south"],
    )


@pytest.fixture
def telemetry() -> pd.DataFrame:
    """Random relocations over several timegroups and two populations."""
    rng = np.random.default_rng(42)
    n_ids, n_groups = 8, 5
    ids = [f"id{i}" for i in range(n_ids)]
    rows = [
        {
            "ID": ident,
            "X": float(rng.uniform(0, 500)),
            "Y": float(rng.uniform(0, 500)),
            "timegroup": tg,
            "population": "east" if i % 2 else "west",
        }
        for tg in range(n_groups)
        for i, ident in enumerate(ids)
    ]
    return pd.DataFrame(rows)
