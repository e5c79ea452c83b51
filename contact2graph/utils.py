"""
Core Utilities Module.

This module provides input validation for relocation tables and the helpers
used after an edge list has been generated. It validates column bindings and
types before any distance is computed, labels undirected dyads, and converts
edge lists into NetworkX multigraphs or GeoDataFrames of edge geometries so
that contact networks can be analysed with the wider geospatial stack.
"""

# Future annotations for type hints
from __future__ import annotations

# Standard library imports
import datetime as dt
import logging
import math
import warnings
from numbers import Real
from typing import TYPE_CHECKING
from typing import Any

# Third-party imports
import geopandas as gpd
import networkx as nx
import pandas as pd
from shapely.geometry import LineString

# Local imports
from .base import DISTANCE
from .base import EDGE_COLUMNS
from .base import ID1
from .base import ID2
from .base import ColumnNotFoundError
from .base import DuplicateEntityWarning
from .base import GroupingKey
from .base import InvalidArgumentError
from .base import MissingInputError
from .base import SuspiciousTypeWarning
from .base import TypeMismatchError

if TYPE_CHECKING:
    from collections.abc import Sequence

# Public API definition
__all__ = [
    "dyad_id",
    "edges_to_gdf",
    "edges_to_nx",
    "validate_relocations",
]

# Module logger configuration
logger = logging.getLogger(__name__)


class _Unset:
    """Marker for an argument that was not passed at all."""

    def __repr__(self) -> str:
        return "<unset>"


UNSET: Any = _Unset()

DYAD_COLUMN = "dyadID"


# =============================================================================
# VALIDATION
# =============================================================================


def validate_relocations(  # noqa: PLR0913 (mirrors the edge_dist bindings)
    relocations: pd.DataFrame | None = None,
    threshold: float | None = None,
    id_column: str | None = None,
    coord_columns: Sequence[str] | None = None,
    timegroup_column: str | None = UNSET,
    split_by_columns: str | Sequence[str] | None = None,
) -> GroupingKey:
    """
    Validate a relocation table and its column bindings.

    All checks run up front and fail fast, so that no distance is computed
    for an invalid call. Conditions that are suspicious but not fatal are
    reported as warnings and do not stop the call.

    Parameters
    ----------
    relocations : pandas.DataFrame
        Relocation data with one row per entity fix.
    threshold : float
        Distance threshold in the units of the coordinates. Must be positive.
    id_column : str
        Column holding the entity identifiers.
    coord_columns : Sequence[str]
        Exactly two columns holding planar X and Y coordinates.
    timegroup_column : str or None
        Temporal group column, typically produced by an upstream temporal
        grouping step. It must be passed explicitly; ``None`` disables
        temporal grouping.
    split_by_columns : str or Sequence[str], optional
        Additional grouping columns.

    Returns
    -------
    GroupingKey
        The resolved grouping key (timegroup first, then split-by columns).

    Raises
    ------
    MissingInputError
        If the table, threshold, id column or timegroup argument is missing.
    InvalidArgumentError
        If the threshold is not a positive number, if ``coord_columns`` does
        not name exactly two columns, or if a grouping column collides with an
        output column name.
    ColumnNotFoundError
        If any named column is absent from the table.
    TypeMismatchError
        If the table is not a DataFrame or a coordinate column is not numeric.

    Warns
    -----
    SuspiciousTypeWarning
        If the timegroup column holds dates, times or text.
    DuplicateEntityWarning
        If an entity appears more than once within a group.

    See Also
    --------
    edge_dist : Generate a distance-based edge list.

    Examples
    --------
    >>> import pandas as pd
    >>> df = pd.DataFrame({"ID": ["A", "B"], "X": [0.0, 3.0], "Y": [0.0, 4.0],
    ...                    "timegroup": [1, 1]})
    >>> validate_relocations(df, 10, "ID", ["X", "Y"], "timegroup").columns
    ('timegroup',)
    """
    if relocations is None:
        msg = "input relocations DataFrame required"
        raise MissingInputError(msg)

    if not isinstance(relocations, pd.DataFrame):
        msg = f"relocations must be a pandas DataFrame, got {type(relocations).__name__}"
        raise TypeMismatchError(msg)

    _validate_threshold(threshold)

    if id_column is None:
        msg = "id_column required"
        raise MissingInputError(msg)

    coords = _normalize_coord_columns(coord_columns)

    if timegroup_column is UNSET:
        msg = "timegroup_column required (pass None to disable temporal grouping)"
        raise MissingInputError(msg)

    split_by = _normalize_split_by(split_by_columns)
    grouping = GroupingKey.from_columns(timegroup_column, split_by)

    reserved = [col for col in grouping.columns if col in EDGE_COLUMNS]
    if reserved:
        msg = f"grouping column(s) {', '.join(reserved)} collide with edge list output columns"
        raise InvalidArgumentError(msg)

    _validate_columns_present(relocations, [timegroup_column, id_column, *coords, *split_by])

    non_numeric = [col for col in coords if not _is_numeric(relocations[col])]
    if non_numeric:
        msg = f"coord_columns must be numeric: {', '.join(non_numeric)}"
        raise TypeMismatchError(msg)

    if timegroup_column is not None and _looks_temporal_or_text(relocations[timegroup_column]):
        warnings.warn(
            "timegroup provided is a date/time or character type, "
            "did you assign temporal groups upstream?",
            SuspiciousTypeWarning,
            stacklevel=2,
        )

    if not grouping.is_ungrouped:
        dup_mask = relocations.duplicated(subset=[id_column, *grouping.columns], keep=False)
        if dup_mask.any():
            warnings.warn(
                f"found duplicate id in a timegroup and/or split_by group ({int(dup_mask.sum())} "
                "rows) - does the temporal grouping threshold match the fix rate?",
                DuplicateEntityWarning,
                stacklevel=2,
            )

    return grouping


def _validate_threshold(threshold: object) -> None:
    """
    Validate that the threshold is a positive number.

    Parameters
    ----------
    threshold : object
        Candidate threshold value.
    """
    if threshold is None:
        msg = "threshold required"
        raise MissingInputError(msg)

    if isinstance(threshold, bool) or not isinstance(threshold, Real):
        msg = "threshold must be numeric"
        raise InvalidArgumentError(msg)

    if math.isnan(threshold) or threshold <= 0:
        msg = "threshold must be greater than 0"
        raise InvalidArgumentError(msg)


def _normalize_coord_columns(coord_columns: Sequence[str] | None) -> tuple[str, str]:
    """Return the coordinate bindings as an ``(x, y)`` tuple."""
    if coord_columns is None or isinstance(coord_columns, str) or len(coord_columns) != 2:
        msg = "coord_columns requires a sequence of column names for coordinates X and Y"
        raise InvalidArgumentError(msg)
    x_col, y_col = coord_columns
    return x_col, y_col


def _normalize_split_by(split_by_columns: str | Sequence[str] | None) -> list[str]:
    if split_by_columns is None:
        return []
    if isinstance(split_by_columns, str):
        return [split_by_columns]
    return list(split_by_columns)


def _validate_columns_present(
    df: pd.DataFrame, names: list[str | None], where: str = "input relocations"
) -> None:
    """
    Raise a single error listing every named column absent from ``df``.

    Parameters
    ----------
    df : pandas.DataFrame
        Table whose columns are checked.
    names : list[str | None]
        Column names to look for. ``None`` entries are skipped.
    where : str, default "input relocations"
        Description of ``df`` used in the error message.
    """
    requested = [name for name in dict.fromkeys(names) if name is not None]
    missing = [name for name in requested if name not in df.columns]
    if missing:
        msg = f"{', '.join(map(str, missing))} field(s) provided are not present in {where}"
        raise ColumnNotFoundError(msg, missing)


def _is_numeric(series: pd.Series) -> bool:
    return pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)


def _looks_temporal_or_text(series: pd.Series) -> bool:
    """
    Return whether a timegroup column holds dates, times or strings.

    Parameters
    ----------
    series : pandas.Series
        The timegroup column.

    Returns
    -------
    bool
        True for datetime, timedelta or string dtypes, and for object columns
        whose values are strings, dates or times.
    """
    if isinstance(series.dtype, pd.CategoricalDtype):
        return _looks_temporal_or_text(pd.Series(series.cat.categories))
    if pd.api.types.is_datetime64_any_dtype(series) or pd.api.types.is_timedelta64_dtype(series):
        return True
    if pd.api.types.is_string_dtype(series.dtype) and not pd.api.types.is_object_dtype(series):
        return True
    if pd.api.types.is_object_dtype(series):
        values = series.dropna()
        return any(isinstance(v, (str, dt.date, dt.time, dt.timedelta)) for v in values)
    return False


# =============================================================================
# EDGE LIST HELPERS
# =============================================================================


def dyad_id(edges: pd.DataFrame, id1: str = ID1, id2: str = ID2) -> pd.DataFrame:
    """
    Label each edge with an undirected dyad identifier.

    The edge list produced by :func:`edge_dist` is directional, so every
    matching pair appears twice, once per direction. The dyad label is built
    from both identifiers in sorted order, which gives ``(A, B)`` and
    ``(B, A)`` the same value and makes undirected counting straightforward.

    Parameters
    ----------
    edges : pandas.DataFrame
        Edge list with identifier columns.
    id1, id2 : str, default "ID1", "ID2"
        Names of the identifier columns.

    Returns
    -------
    pandas.DataFrame
        Copy of ``edges`` with an added ``dyadID`` column. Rows with a
        missing partner receive a missing label.

    Raises
    ------
    ColumnNotFoundError
        If ``id1`` or ``id2`` is not a column of ``edges``.

    Examples
    --------
    >>> import pandas as pd
    >>> edges = pd.DataFrame({"ID1": ["B", "A"], "ID2": ["A", "B"]})
    >>> dyad_id(edges)["dyadID"].tolist()
    ['A-B', 'A-B']
    """
    _validate_columns_present(edges, [id1, id2], "edges")

    labels = [
        pd.NA if pd.isna(a) or pd.isna(b) else "-".join(sorted((str(a), str(b))))
        for a, b in zip(edges[id1], edges[id2], strict=True)
    ]
    result = edges.copy()
    result[DYAD_COLUMN] = pd.Series(labels, index=edges.index, dtype="object")
    return result


def edges_to_nx(
    edges: pd.DataFrame,
    *,
    directed: bool = True,
    id1: str = ID1,
    id2: str = ID2,
) -> nx.MultiDiGraph | nx.MultiGraph:
    """
    Convert an edge list into a NetworkX multigraph.

    Every identifier becomes a node, including isolated entities reinstated
    with a missing partner. Each matched row becomes one edge whose
    attributes are the remaining columns of the row (group key values and,
    when present, ``distance``). A multigraph is used because the same pair
    can meet in many groups.

    Parameters
    ----------
    edges : pandas.DataFrame
        Edge list as returned by :func:`edge_dist`.
    directed : bool, default True
        If True, return a ``MultiDiGraph`` with one edge per row. If False,
        return a ``MultiGraph`` where the two directions of a dyad within the
        same group collapse into one edge.
    id1, id2 : str, default "ID1", "ID2"
        Names of the identifier columns.

    Returns
    -------
    networkx.MultiDiGraph or networkx.MultiGraph
        Contact network built from the edge list.

    Raises
    ------
    ColumnNotFoundError
        If ``id1`` or ``id2`` is not a column of ``edges``.

    See Also
    --------
    dyad_id : Label edges with an undirected dyad identifier.
    edges_to_gdf : Attach LineString geometries to an edge list.
    """
    _validate_columns_present(edges, [id1, id2], "edges")

    graph: nx.MultiDiGraph | nx.MultiGraph = nx.MultiDiGraph() if directed else nx.MultiGraph()
    graph.graph["directed_edge_list"] = directed

    graph.add_nodes_from(edges[id1].dropna().unique())
    graph.add_nodes_from(edges[id2].dropna().unique())

    matched = edges[edges[id1].notna() & edges[id2].notna()]
    attr_cols = [col for col in matched.columns if col not in (id1, id2)]

    if not directed and not matched.empty:
        group_cols = [col for col in attr_cols if col != DISTANCE]
        labelled = dyad_id(matched, id1, id2)
        keep = ~labelled.duplicated(subset=[DYAD_COLUMN, *group_cols])
        matched = matched[keep.to_numpy()]

    records = matched[attr_cols].to_dict("records")
    graph.add_edges_from(
        (u, v, attrs)
        for u, v, attrs in zip(matched[id1], matched[id2], records, strict=True)
    )

    logger.debug(
        "Built %s contact graph with %d nodes and %d edges",
        "directed" if directed else "undirected",
        graph.number_of_nodes(),
        graph.number_of_edges(),
    )
    return graph


def edges_to_gdf(
    edges: pd.DataFrame,
    relocations: pd.DataFrame,
    id_column: str,
    coord_columns: Sequence[str],
    *,
    crs: str | int | object | None = None,
) -> gpd.GeoDataFrame:
    """
    Attach straight LineString geometries to an edge list.

    Each edge is drawn between the positions of its two entities within the
    edge's group. Group key columns are taken to be every column of
    ``edges`` other than ``ID1``, ``ID2`` and ``distance``. When an entity
    appears more than once within a group, its first row supplies the
    position.

    Parameters
    ----------
    edges : pandas.DataFrame
        Edge list as returned by :func:`edge_dist`.
    relocations : pandas.DataFrame
        The relocation table the edge list was generated from.
    id_column : str
        Column of ``relocations`` holding the entity identifiers.
    coord_columns : Sequence[str]
        X and Y coordinate columns of ``relocations``.
    crs : str, int or pyproj.CRS, optional
        Coordinate reference system assigned to the result.

    Returns
    -------
    geopandas.GeoDataFrame
        Copy of ``edges`` with a ``geometry`` column. Rows with a missing
        partner receive a missing geometry.

    Raises
    ------
    ColumnNotFoundError
        If a required column is missing from either table.
    """
    x_col, y_col = _normalize_coord_columns(coord_columns)
    _validate_columns_present(edges, [ID1, ID2], "edges")
    group_cols = [col for col in edges.columns if col not in EDGE_COLUMNS]
    _validate_columns_present(relocations, [id_column, x_col, y_col, *group_cols])

    positions = relocations.drop_duplicates(subset=[*group_cols, id_column])
    lookup = {
        (*_hashable_key(key), ident): (float(x), float(y))
        for *key, ident, x, y in positions[[*group_cols, id_column, x_col, y_col]].itertuples(
            index=False, name=None
        )
    }

    geometries: list[LineString | None] = []
    for row in edges[[*group_cols, ID1, ID2]].itertuples(index=False, name=None):
        *key, u, v = row
        if pd.isna(u) or pd.isna(v):
            geometries.append(None)
            continue
        group = _hashable_key(key)
        geometries.append(LineString([lookup[(*group, u)], lookup[(*group, v)]]))

    return gpd.GeoDataFrame(edges.copy(), geometry=geometries, crs=crs)

def _hashable_key(values: list[Any]) -> tuple[Any, ...]:
    """Replace missing group key values with None so they compare equal."""
    return tuple(None if pd.isna(value) else value for value in values)

