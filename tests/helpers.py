"""Shared test helpers to reduce duplication and improve maintainability.

These utilities are intentionally lightweight and free of project imports
(other than third-party scientific stack) so they can be reused broadly
across tests without introducing circular dependencies.
"""

from __future__ import annotations

import math

import pandas as pd

# Public constants used in multiple test modules
TOLERANCE = 1e-9


# ----------------------------------------------------------------------------
# Frame factories
# ----------------------------------------------------------------------------


def make_relocations(
    records: list[tuple[object, float, float]],
    *,
    timegroup: object = 1,
    **extra: list[object],
) -> pd.DataFrame:
    """Create a relocation frame from ``(id, x, y)`` tuples.

    Every row shares ``timegroup`` unless an explicit ``timegroup`` list is
    passed through ``extra``. Remaining keyword lists become extra columns.
    """
    ids, xs, ys = zip(*records, strict=True) if records else ((), (), ())
    data: dict[str, list[object]] = {"ID": list(ids), "X": list(xs), "Y": list(ys)}
    data["timegroup"] = extra.pop("timegroups", [timegroup] * len(ids))
    data.update(extra)
    return pd.DataFrame(data)


# ----------------------------------------------------------------------------
# Assertions
# ----------------------------------------------------------------------------


def edge_set(edges: pd.DataFrame) -> set[tuple[object, object]]:
    """Return the matched (ID1, ID2) pairs of an edge list as a set."""
    matched = edges[edges["ID2"].notna()]
    return set(zip(matched["ID1"], matched["ID2"], strict=True))


def assert_edges_within_groups(
    edges: pd.DataFrame,
    relocations: pd.DataFrame,
    key_cols: list[str],
    threshold: float,
) -> None:
    """Every matched edge joins two distinct entities of one group below threshold."""
    positions = {
        (*key, ident): (x, y)
        for *key, ident, x, y in relocations[[*key_cols, "ID", "X", "Y"]].itertuples(
            index=False, name=None
        )
    }
    matched = edges[edges["ID2"].notna()]
    for row in matched[[*key_cols, "ID1", "ID2", "distance"]].itertuples(index=False, name=None):
        *key, id1, id2, dist = row
        assert id1 != id2
        assert (*key, id1) in positions
        assert (*key, id2) in positions
        (x1, y1), (x2, y2) = positions[(*key, id1)], positions[(*key, id2)]
        assert math.isclose(dist, math.hypot(x1 - x2, y1 - y2), abs_tol=TOLERANCE)
        assert dist < threshold


def assert_symmetric(edges: pd.DataFrame, key_cols: list[str]) -> None:
    """Each directional edge (A, B, d) has a mirrored (B, A, d) in the same group."""
    matched = edges[edges["ID2"].notna()]
    seen = {
        (*key, a, b): d
        for *key, a, b, d in matched[[*key_cols, "ID1", "ID2", "distance"]].itertuples(
            index=False, name=None
        )
    }
    for (*key, a, b), d in seen.items():
        assert (*key, b, a) in seen
        assert math.isclose(seen[(*key, b, a)], d, abs_tol=TOLERANCE)
